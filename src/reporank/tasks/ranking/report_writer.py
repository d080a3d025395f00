# src/reporank/tasks/ranking/report_writer.py
"""
CSV report writer for ranked repositories.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from .models import RankedRepository

logger = logging.getLogger(__name__)

IDENTITY_COLUMNS = [
    "Name", "Url", "Language", "Summary", "GeneratedSummary",
    "Modified", "ServiceNames", "OpenIssuesCount"
]
TOTAL_COLUMN = "TotalWeightCalc"


def report_columns(rows: List[Dict[str, Any]]) -> List[str]:
    """Identity columns, then criterion columns in first-seen order, then the total."""
    columns = list(IDENTITY_COLUMNS)
    for row in rows:
        for key in row:
            if key not in columns and key != TOTAL_COLUMN:
                columns.append(key)
    columns.append(TOTAL_COLUMN)
    return columns


def build_report_frame(repositories: List[RankedRepository]) -> pd.DataFrame:
    """
    Flatten ranked repositories into a report table.

    Args:
        repositories: Repositories in report order

    Returns:
        DataFrame with one row per repository; criteria a repository lacks are empty
    """
    rows = [repo.to_output_row() for repo in repositories]
    return pd.DataFrame(rows, columns=report_columns(rows))


def write_report(repositories: List[RankedRepository], output_path: str) -> Path:
    """
    Write the ranked repositories as a header-first CSV file.

    Args:
        repositories: Repositories in report order
        output_path: Destination file

    Returns:
        Path of the written file
    """
    path = Path(output_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    frame = build_report_frame(repositories)
    frame.to_csv(path, index=False)

    logger.info(f"Repo list written to {path} ({len(frame)} rows)")
    return path
