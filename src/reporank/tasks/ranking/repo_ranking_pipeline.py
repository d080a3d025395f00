# src/reporank/tasks/ranking/repo_ranking_pipeline.py
"""
Main pipeline for organization repository ranking.
Contains business logic for orchestrating the complete ranking workflow:
filter repositories, score each one concurrently, rank the full set and
write the report.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pandas as pd

from reporank.core.errors import CollaboratorError, ReadmeNotFoundError
from reporank.core.settings import SearchConfig
from reporank.shared.github_client import RepositorySource
from reporank.shared.tool_model_engine import ModelClient

from .answer_extractor import AnswerExtractor
from .models import RankedRepository, RepoRecord
from .ranking_engine import RankingEngine
from .report_writer import write_report
from .result_aggregator import ResultAggregator
from .schema_builder import build_schema

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """Result of processing one repository."""
    SCORED = "scored"
    NO_README = "no_readme"
    MODEL_FAILED = "model_failed"


@dataclass
class RankingSummary:
    """Counts reported at the end of a run."""
    organization: str
    min_updated_date: Optional[date] = None
    total_found: int = 0
    rejected_stale_or_ignored: int = 0
    rejected_language: int = 0
    rejected_no_readme: int = 0
    failed_model_requests: int = 0
    model_successes: int = 0
    rejected_deprecated: int = 0
    ranked: int = 0
    language_counts: Dict[str, int] = field(default_factory=dict)
    data_warnings: List[str] = field(default_factory=list)
    output_file: Optional[str] = None


class RepoRankingPipeline:
    """
    Main pipeline for ranking an organization's repositories.
    """

    def __init__(self, config: SearchConfig, source: RepositorySource,
                 model_client: ModelClient, max_concurrency: int = 4,
                 today: Optional[date] = None):
        """
        Initialize the ranking pipeline.

        Args:
            config: Validated run configuration
            source: Repository collaborator
            model_client: Model collaborator
            max_concurrency: Maximum repositories processed at once
            today: Reference date for the staleness cutoff
        """
        self.config = config
        self.source = source
        self.model_client = model_client
        self.max_concurrency = max(1, max_concurrency)
        self.today = today or date.today()

        # Initialize components
        self.genai_registry = config.build_genai_registry()
        self.repo_registry = config.build_repo_registry()
        self.schema = build_schema(self.genai_registry)
        self.extractor = AnswerExtractor()
        self.aggregator = ResultAggregator(self.repo_registry)
        self.engine = RankingEngine()

    @property
    def min_updated_date(self) -> date:
        """Repositories must have been pushed after this date."""
        cutoff = pd.Timestamp(self.today) - pd.DateOffset(years=self.config.years_included)
        return cutoff.date()

    def filter_repositories(self, records: List[RepoRecord],
                            summary: RankingSummary) -> List[RepoRecord]:
        """
        Drop stale, ignored and non-SDK-language repositories.

        Args:
            records: All repositories of the organization
            summary: Summary updated with rejection counts

        Returns:
            Remaining repositories, most recently pushed first
        """
        cutoff = self.min_updated_date
        summary.min_updated_date = cutoff

        ordered = sorted(
            records,
            key=lambda r: r.pushed_at.date() if r.pushed_at else date.min,
            reverse=True
        )

        recent = [
            r for r in ordered
            if r.pushed_at is not None
            and r.pushed_at.date() > cutoff
            and r.name not in self.config.ignore_repos
        ]
        summary.rejected_stale_or_ignored = len(ordered) - len(recent)

        languages = self.config.sdk_languages
        if not languages:
            return recent

        candidates = [r for r in recent if r.language in languages]
        summary.rejected_language = len(recent) - len(candidates)
        return candidates

    def score_repository(self, record: RepoRecord) -> RankedRepository:
        """
        Fetch the README, query the model and build the ranked record.
        Blocking; run in an executor.

        Raises:
            ReadmeNotFoundError: If the README is unavailable
            CollaboratorError: If the model call fails
        """
        logger.info(f"Fetching README contents for repository {record.name}")
        readme = self.source.get_readme(record.id)

        logger.info(f"Making model request for {record.name}")
        answer = self.model_client.invoke(
            self.schema,
            self.config.genai_system_text,
            self.config.genai_content_text,
            readme
        )
        logger.info(f"Finished model request for {record.name}")

        extracted = self.extractor.extract(answer, self.genai_registry)
        return self.aggregator.build_entity(record, extracted)

    async def _process_repository(self, record: RepoRecord,
                                  semaphore: asyncio.Semaphore
                                  ) -> Tuple[Outcome, Optional[RankedRepository]]:
        async with semaphore:
            loop = asyncio.get_running_loop()
            try:
                entity = await loop.run_in_executor(None, self.score_repository, record)
            except ReadmeNotFoundError as e:
                logger.warning(f"Unable to get readme for {record.name}, {e}")
                return Outcome.NO_README, None
            except CollaboratorError as e:
                logger.error(f"Model request failed for {record.name}: {e}")
                return Outcome.MODEL_FAILED, None

        return Outcome.SCORED, entity

    async def collect_entities(self, records: List[RepoRecord],
                               summary: RankingSummary) -> List[RankedRepository]:
        """
        Score all repositories concurrently and wait for every one to finish.

        Args:
            records: Repositories that passed filtering
            summary: Summary updated with per-repository outcomes

        Returns:
            Scored repositories in input order
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._process_repository(record, semaphore) for record in records),
            return_exceptions=True
        )

        entities: List[RankedRepository] = []
        for record, result in zip(records, results):
            if isinstance(result, Exception):
                logger.error(f"Unexpected failure processing {record.name}: {result}",
                             exc_info=result)
                summary.failed_model_requests += 1
                continue

            outcome, entity = result
            if outcome is Outcome.NO_README:
                summary.rejected_no_readme += 1
            elif outcome is Outcome.MODEL_FAILED:
                summary.failed_model_requests += 1
            else:
                summary.model_successes += 1
                entities.append(entity)

        logger.info(f"Model results returned for {summary.model_successes}/{len(records)} repositories")
        return entities

    def rank_entities(self, entities: List[RankedRepository],
                      summary: RankingSummary) -> List[RankedRepository]:
        """Remove deprecated repositories, then rank the rest."""
        active = [e for e in entities if not e.is_deprecated]
        summary.rejected_deprecated = len(entities) - len(active)

        ranked = self.engine.rank(active)
        summary.ranked = len(ranked)
        # Duplicates on deprecated repositories are reported too
        summary.data_warnings = [w for e in entities for w in e.data_warnings]
        summary.data_warnings.extend(self.engine.ranking_warnings)

        for language in self.config.sdk_languages:
            summary.language_counts[language] = sum(1 for r in ranked if r.language == language)

        return ranked

    async def run_async(self, org: str, output_file: Optional[str] = None
                        ) -> Tuple[RankingSummary, List[RankedRepository]]:
        """
        Run the complete ranking pipeline for one organization.

        Args:
            org: Organization login
            output_file: Report path (defaults to the configured output file)

        Returns:
            (summary, ranked repositories)
        """
        summary = RankingSummary(organization=org)

        # Step 1: List repositories
        logger.info(f"Step 1: Generating repository list from {org} organization")
        records = self.source.list_repositories(org)
        summary.total_found = len(records)

        # Step 2: Filter
        logger.info("Step 2: Filtering repositories")
        candidates = self.filter_repositories(records, summary)
        logger.info(f"Rejected {summary.rejected_stale_or_ignored} repos not updated after "
                    f"{summary.min_updated_date} or ignored; "
                    f"{summary.rejected_language} repos not using an SDK language")

        # Step 3: Score every candidate; full join before ranking
        logger.info(f"Step 3: Scoring {len(candidates)} repositories")
        entities = await self.collect_entities(candidates, summary)

        # Step 4: Rank
        logger.info("Step 4: Ranking repositories")
        ranked = self.rank_entities(entities, summary)

        # Step 5: Write report
        output_path = output_file or self.config.output_file
        logger.info("Step 5: Writing report")
        summary.output_file = str(write_report(ranked, output_path))

        logger.info("Repository ranking pipeline completed successfully")
        return summary, ranked

    def run(self, org: str, output_file: Optional[str] = None
            ) -> Tuple[RankingSummary, List[RankedRepository]]:
        """Synchronous wrapper around run_async."""
        return asyncio.run(self.run_async(org, output_file))
