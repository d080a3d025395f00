# src/reporank/tasks/ranking/result_aggregator.py
"""
Result aggregator for repository ranking.
Merges metadata criteria and model-derived criteria into one ranked repository record.
"""

import logging
from typing import Iterable, List

from .answer_extractor import ExtractedResult
from .criteria_registry import CriterionSpec
from .models import CriterionValue, RankedRepository, RepoRecord

logger = logging.getLogger(__name__)


class ResultAggregator:
    """
    Builds RankedRepository records from repository metadata and model answers.
    """

    def __init__(self, repo_specs: Iterable[CriterionSpec]):
        """
        Initialize the aggregator.

        Args:
            repo_specs: Metadata criteria, each naming a repository data field
        """
        self.repo_specs = list(repo_specs)

    def metadata_criteria(self, record: RepoRecord) -> List[CriterionValue]:
        """
        Compute metadata criteria for one repository.

        Only integer field values are used; missing or non-integer fields
        produce no criterion.
        """
        criteria = []
        for spec in self.repo_specs:
            value = record.get_field(spec.data_field)
            if isinstance(value, bool) or not isinstance(value, int):
                logger.debug(f"{record.name}: field {spec.data_field} is not an integer, "
                             f"skipping {spec.name}")
                continue

            criteria.append(CriterionValue(
                name=spec.name,
                description=spec.description,
                weight=spec.weight,
                value=value
            ))
        return criteria

    def build_entity(self, record: RepoRecord, extracted: ExtractedResult) -> RankedRepository:
        """
        Create the ranked repository record for one repository.

        Metadata criteria are added first; a model criterion with the same
        name is dropped with a warning recorded on the returned record.

        Args:
            record: Repository metadata
            extracted: Typed model answer

        Returns:
            RankedRepository with rank 0 on every criterion
        """
        entity = RankedRepository(
            name=record.name,
            url=record.url,
            language=record.language,
            summary=record.description,
            last_modified=record.pushed_at,
            open_issues_count=record.open_issues_count,
            free_text_summary=extracted.free_text_summary or "",
            service_names=extracted.service_names,
            is_deprecated=extracted.deprecated,
        )

        for criterion in self.metadata_criteria(record) + list(extracted.criteria):
            added = entity.add_criterion(
                criterion.name,
                criterion.description,
                criterion.weight,
                criterion.value
            )
            if not added:
                warning = f"{record.name}: duplicate criterion {criterion.name} dropped"
                logger.warning(warning)
                entity.data_warnings.append(warning)

        return entity
