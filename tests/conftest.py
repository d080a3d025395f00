"""
Shared fixtures and collaborator fakes for the ranking tests.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from reporank.core.errors import ReadmeNotFoundError
from reporank.shared.github_client import RepositorySource
from reporank.shared.tool_model_engine import ModelClient
from reporank.tasks.ranking import (
    CriterionKind,
    CriterionSpec,
    CriterionValue,
    RankedRepository,
    RepoRecord,
)


class FakeRepositorySource(RepositorySource):
    """In-memory repository source."""

    def __init__(self, records: List[RepoRecord], readmes: Dict[int, bytes]):
        self.records = records
        self.readmes = readmes

    def list_repositories(self, org: str) -> List[RepoRecord]:
        return list(self.records)

    def get_readme(self, repo_id: int) -> bytes:
        if repo_id not in self.readmes:
            raise ReadmeNotFoundError(f"No README for repository {repo_id}")
        return self.readmes[repo_id]


class FakeModelClient(ModelClient):
    """Answers keyed by README bytes; exceptions in the map are raised."""

    def __init__(self, answers: Dict[bytes, Any], delay: float = 0.0):
        self.answers = answers
        self.delay = delay
        self.schemas = []
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def invoke(self, schema, system_prompt, user_prompt, document):
        with self._lock:
            self.schemas.append(schema)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            answer = self.answers[document]
            if isinstance(answer, Exception):
                raise answer
            return answer
        finally:
            with self._lock:
                self.in_flight -= 1


def make_record(repo_id: int, name: str, pushed: Optional[datetime] = None,
                language: str = "Python", **fields) -> RepoRecord:
    pushed = pushed or datetime(2024, 5, 1, tzinfo=timezone.utc)
    raw = {"id": repo_id, "name": name, "language": language}
    raw.update(fields)
    return RepoRecord(
        id=repo_id,
        name=name,
        url=f"https://github.com/example/{name}",
        language=language,
        description=f"{name} description",
        pushed_at=pushed,
        open_issues_count=fields.get("open_issues_count", 0),
        fields=raw
    )


def make_entity(name: str, **values: int) -> RankedRepository:
    """Entity with weight-1.0 criteria from keyword values."""
    entity = RankedRepository(name=name, url=f"https://github.com/example/{name}")
    for criterion_name, value in values.items():
        entity.criteria.append(CriterionValue(
            name=criterion_name,
            description="",
            weight=1.0,
            value=value
        ))
    return entity


@pytest.fixture
def genai_specs() -> List[CriterionSpec]:
    return [
        CriterionSpec(name="summary", kind=CriterionKind.STRING,
                      description="Short summary"),
        CriterionSpec(name="hasTests", kind=CriterionKind.BOOLEAN,
                      description="Has tests", weight=0.2),
        CriterionSpec(name="setupComplexity", kind=CriterionKind.INTEGER,
                      description="Setup ease", weight=0.5, minimum=1, maximum=5),
    ]


@pytest.fixture
def repo_specs() -> List[CriterionSpec]:
    return [
        CriterionSpec(name="Stars", kind=CriterionKind.INTEGER,
                      description="Stargazers", weight=0.3, data_field="stargazers_count"),
    ]
