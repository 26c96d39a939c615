"""Tests for feeding Polars frames into trees."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import polars as pl
import pytest
from pytest_check import check

from jadetree.config import TreeSettings
from jadetree.exceptions import ColumnsNotFoundError, DuplicateColumnsError
from jadetree.polars_utils import ensure_dataframe, iter_instances
from jadetree.scoring import NominalAttribute
from jadetree.tree import ClassificationTree


@pytest.fixture
def churn_df() -> pl.DataFrame:
    """Small churn table with a categorical plan column and a label.

    Returns:
        pl.DataFrame: Four customers.
    """
    return pl.DataFrame({
        "customer_id": ["C-1", "C-2", "C-3", "C-4"],
        "plan": ["basic", "premium", "basic", "premium"],
        "tenure": [3, 40, 5, 36],
        "churned": ["yes", "no", "yes", "no"],
    })


class TestIterInstances:
    """Tests for iter_instances()."""

    def test_all_columns_by_default(self, churn_df: pl.DataFrame) -> None:
        """Each row becomes a dict with every column, in row order."""
        rows = list(iter_instances(churn_df))

        with check:
            assert len(rows) == 4
        with check:
            assert rows[0] == {"customer_id": "C-1", "plan": "basic", "tenure": 3, "churned": "yes"}

    def test_columns_filter_and_order(self, churn_df: pl.DataFrame) -> None:
        """Only the requested columns are kept, in the requested order."""
        rows = list(iter_instances(churn_df, columns=["churned", "plan"]))

        with check:
            assert list(rows[1]) == ["churned", "plan"]
        with check:
            assert rows[1] == {"churned": "no", "plan": "premium"}

    def test_lazy_frame_is_collected(self, churn_df: pl.DataFrame) -> None:
        """A LazyFrame yields the same rows as its collected DataFrame."""
        lazy = churn_df.lazy().filter(pl.col("tenure") > 10)

        with check:
            assert isinstance(ensure_dataframe(lazy), pl.DataFrame)
        with check:
            assert [row["customer_id"] for row in iter_instances(lazy)] == ["C-2", "C-4"]

    def test_empty_columns_raises(self, churn_df: pl.DataFrame) -> None:
        """An empty column list is rejected; None means all columns."""
        with pytest.raises(ValueError, match="must not be empty"):
            iter_instances(churn_df, columns=[])

    def test_duplicate_columns_raises_before_iteration(self, churn_df: pl.DataFrame) -> None:
        """Duplicate columns fail when the iterator is requested."""
        with pytest.raises(DuplicateColumnsError) as exc_info:
            iter_instances(churn_df, columns=["plan", "plan"])

        assert exc_info.value.duplicate_columns == ["plan"]

    def test_missing_columns_raises(self, churn_df: pl.DataFrame) -> None:
        """Unknown columns are reported sorted, with the available columns."""
        with pytest.raises(ColumnsNotFoundError) as exc_info:
            iter_instances(churn_df, columns=["plan", "zeta", "alpha"])

        with check:
            assert exc_info.value.missing_columns == ["alpha", "zeta"]
        with check:
            assert exc_info.value.available_columns == churn_df.columns


class TestInsertFrame:
    """Tests for ClassificationTree.insert_frame()."""

    def test_rows_are_buffered_and_scored(self, churn_df: pl.DataFrame, settings: TreeSettings) -> None:
        """Inserted rows reach the root leaf and feed the scorers."""
        # Arrange
        plan = NominalAttribute(column="plan", target="churned")
        tree = ClassificationTree([plan], target_attribute=NominalAttribute(column="churned"), settings=settings)

        # Act
        count = tree.insert_frame(churn_df, columns=["plan", "churned"])

        # Assert
        with check:
            assert count == 4
        with check:
            assert tree.root.instance_count == 4  # type: ignore[attr-defined]
        with check:
            assert tree.expand_score() == pytest.approx(0.6931, abs=1e-4)
        with check:
            assert tree.get_maximum_leaf().split_attribute is plan  # type: ignore[union-attr]

    def test_invalid_columns_insert_nothing(
        self,
        churn_df: pl.DataFrame,
        settings: TreeSettings,
        summing_attribute: Callable[[str], Any],
    ) -> None:
        """A frame with bad columns leaves the tree untouched."""
        tree = ClassificationTree([summing_attribute("tenure")], settings=settings)

        with pytest.raises(ColumnsNotFoundError):
            tree.insert_frame(churn_df, columns=["tenure", "missing"])

        assert tree.root.instance_count == 0  # type: ignore[attr-defined]
