"""
Tests for the CSV report writer.
"""

from datetime import datetime

import pandas as pd

from conftest import make_entity
from reporank.tasks.ranking import RankingEngine
from reporank.tasks.ranking.report_writer import IDENTITY_COLUMNS, build_report_frame, write_report


class TestReportWriter:

    def test_output_row(self):
        entity = make_entity("alpha", x=2)
        entity.last_modified = datetime(2024, 5, 1, 13, 30)
        entity.criteria[0].rank = 3

        row = entity.to_output_row()

        assert list(row)[:len(IDENTITY_COLUMNS)] == IDENTITY_COLUMNS
        assert row["Modified"] == "2024-05-01"
        assert row["x_Rank"] == 3
        assert row["x_Value"] == 2
        assert row["x_WeightRank"] == 3.0
        assert list(row)[-1] == "TotalWeightCalc"
        assert row["TotalWeightCalc"] == 3.0

    def test_columns_union_with_total_last(self):
        a = make_entity("a", x=1)
        b = make_entity("b", x=2, y=5)

        frame = build_report_frame([a, b])

        assert list(frame.columns) == IDENTITY_COLUMNS + [
            "x_Rank", "x_Value", "x_WeightRank",
            "y_Rank", "y_Value", "y_WeightRank",
            "TotalWeightCalc",
        ]
        assert pd.isna(frame.loc[0, "y_Value"])

    def test_write_report(self, tmp_path):
        entities = RankingEngine().rank([make_entity("a", x=1), make_entity("b", x=2)])
        output = tmp_path / "out" / "rankings.csv"

        path = write_report(entities, str(output))

        assert path == output
        lines = output.read_text().splitlines()
        assert lines[0].startswith("Name,Url,Language")
        assert lines[0].endswith("TotalWeightCalc")
        assert len(lines) == 3

        frame = pd.read_csv(output)
        assert list(frame["Name"]) == ["b", "a"]
        assert list(frame["x_Rank"]) == [1, 0]

    def test_empty_report_has_header(self, tmp_path):
        output = tmp_path / "empty.csv"
        write_report([], str(output))

        lines = output.read_text().splitlines()
        assert lines == [",".join(IDENTITY_COLUMNS + ["TotalWeightCalc"])]
