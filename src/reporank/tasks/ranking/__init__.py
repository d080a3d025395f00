# src/reporank/tasks/ranking/__init__.py
"""
Repository Ranking Package

Criteria definitions, tool schema building, answer extraction, result
aggregation and distinct-value ranking. The end-to-end pipeline lives in
repo_ranking_pipeline and is imported from there directly.
"""

from .criteria_registry import CriteriaRegistry, CriterionKind, CriterionSpec
from .schema_builder import build_schema, ObjectSchema, DEPRECATED_FIELD, SERVICES_FIELD
from .answer_extractor import AnswerExtractor, AnswerMap, ExtractedResult, extract
from .models import CriterionValue, RankedRepository, RepoRecord
from .ranking_engine import RankingEngine, rank
from .result_aggregator import ResultAggregator

__all__ = [
    # Criteria
    'CriteriaRegistry',
    'CriterionKind',
    'CriterionSpec',

    # Schema and extraction
    'build_schema',
    'ObjectSchema',
    'DEPRECATED_FIELD',
    'SERVICES_FIELD',
    'AnswerExtractor',
    'AnswerMap',
    'ExtractedResult',
    'extract',

    # Ranking
    'CriterionValue',
    'RankedRepository',
    'RepoRecord',
    'RankingEngine',
    'rank',
    'ResultAggregator',
]
