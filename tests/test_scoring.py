"""Tests for the ready-made NominalAttribute and NumericThresholdAttribute scorers."""

from __future__ import annotations

import math

import pytest
from pytest_check import check

from jadetree.attributes import ObjectAttribute, SplitData
from jadetree.models import Predicate
from jadetree.scoring import NominalAttribute, NumericThresholdAttribute


class TestNominalAttribute:
    """Tests for mutual-information scoring of categorical columns."""

    def test_satisfies_object_attribute_protocol(self) -> None:
        """NominalAttribute can be registered as a source attribute."""
        assert isinstance(NominalAttribute(column="color", target="label"), ObjectAttribute)

    def test_perfectly_informative_column_scores_label_entropy(self) -> None:
        """A column that determines the label scores the label entropy."""
        # Arrange
        attribute = NominalAttribute(column="color", target="label")
        rows = [
            {"color": "red", "label": "a"},
            {"color": "blue", "label": "b"},
            {"color": "red", "label": "a"},
            {"color": "blue", "label": "b"},
        ]
        holder = SplitData()

        # Act
        score = attribute.calculate_score(rows, holder)

        # Assert
        with check:
            assert score == pytest.approx(math.log(2))
        with check:
            assert holder.data == ["red", "blue"]

    def test_uninformative_column_scores_zero(self) -> None:
        """A column independent of the label scores zero."""
        attribute = NominalAttribute(column="color", target="label")
        rows = [
            {"color": "red", "label": "a"},
            {"color": "red", "label": "b"},
            {"color": "blue", "label": "a"},
            {"color": "blue", "label": "b"},
        ]

        score = attribute.calculate_score(rows, SplitData())

        assert score == pytest.approx(0.0, abs=1e-12)

    def test_single_value_column_cannot_split(self) -> None:
        """A column with one distinct value scores -inf and clears the holder."""
        attribute = NominalAttribute(column="color", target="label")
        holder = SplitData(data="stale")

        score = attribute.calculate_score([{"color": "red", "label": "a"}], holder)

        with check:
            assert score == -math.inf
        with check:
            assert holder.is_empty

    def test_empty_batch_cannot_split(self) -> None:
        """An empty batch scores -inf."""
        attribute = NominalAttribute(column="color", target="label")

        assert attribute.calculate_score([], SplitData()) == -math.inf

    def test_missing_target_raises(self) -> None:
        """An attribute without a target column cannot score."""
        attribute = NominalAttribute(column="label")

        with pytest.raises(ValueError, match="target column"):
            attribute.calculate_score([{"label": "a"}], SplitData())

    def test_mixed_value_types_are_supported(self) -> None:
        """Values of different types are treated as distinct categories."""
        attribute = NominalAttribute(column="code", target="label")
        rows = [{"code": 1, "label": "a"}, {"code": "1", "label": "b"}, {"code": None, "label": "b"}]
        holder = SplitData()

        score = attribute.calculate_score(rows, holder)

        with check:
            assert score > 0.0
        with check:
            assert holder.data == [1, "1", None]

    def test_models_are_value_equal_and_hashable(self) -> None:
        """Two attributes over the same columns compare equal."""
        first = NominalAttribute(column="color", target="label")
        second = NominalAttribute(column="color", target="label")

        with check:
            assert first == second
        with check:
            assert hash(first) == hash(second)
        with check:
            assert first.name == "color"


class TestNumericThresholdAttribute:
    """Tests for best-threshold information gain scoring."""

    def test_separable_column_finds_midpoint_threshold(self) -> None:
        """A column separating the labels picks the midpoint between the groups."""
        # Arrange
        attribute = NumericThresholdAttribute(column="age", target="label")
        rows = [
            {"age": 20, "label": "young"},
            {"age": 60, "label": "old"},
            {"age": 25, "label": "young"},
            {"age": 70, "label": "old"},
        ]
        holder = SplitData()

        # Act
        score = attribute.calculate_score(rows, holder)

        # Assert
        with check:
            assert score == pytest.approx(math.log(2))
        with check:
            assert holder.data == {"threshold": 42.5}

    def test_threshold_never_splits_equal_values(self) -> None:
        """Thresholds only fall between different values."""
        attribute = NumericThresholdAttribute(column="age", target="label")
        rows = [
            {"age": 10, "label": "a"},
            {"age": 10, "label": "b"},
            {"age": 30, "label": "b"},
        ]
        holder = SplitData()

        attribute.calculate_score(rows, holder)

        assert holder.data == {"threshold": 20.0}

    def test_constant_column_cannot_split(self) -> None:
        """A column with one distinct value scores -inf."""
        attribute = NumericThresholdAttribute(column="age", target="label")
        rows = [{"age": 5, "label": "a"}, {"age": 5, "label": "b"}]
        holder = SplitData()

        with check:
            assert attribute.calculate_score(rows, holder) == -math.inf
        with check:
            assert holder.is_empty

    def test_single_row_cannot_split(self) -> None:
        """One instance cannot be split."""
        attribute = NumericThresholdAttribute(column="age", target="label")

        assert attribute.calculate_score([{"age": 5, "label": "a"}], SplitData()) == -math.inf

    def test_missing_target_raises(self) -> None:
        """An attribute without a target column cannot score."""
        attribute = NumericThresholdAttribute(column="age")

        with pytest.raises(ValueError, match="target column"):
            attribute.calculate_score([{"age": 1}, {"age": 2}], SplitData())

    def test_predicate_for_builds_threshold_predicate(self) -> None:
        """predicate_for turns split data into a `column <= threshold` predicate."""
        attribute = NumericThresholdAttribute(column="age", target="label")

        predicate = attribute.predicate_for(SplitData({"threshold": 42.5}))

        with check:
            assert predicate == Predicate(variable="age", operator="<=", value=42.5)
        with check:
            assert predicate.evaluate({"age": 30})

    def test_predicate_for_without_threshold_raises(self) -> None:
        """Split data without a threshold cannot become a predicate."""
        attribute = NumericThresholdAttribute(column="age", target="label")

        with pytest.raises(ValueError, match="no threshold"):
            attribute.predicate_for(SplitData())
