"""Ready-made attributes for instances that are mappings of column name to value.

Both attributes score a candidate split by how much it reduces uncertainty
about a nominal target column, measured in nats:

- NominalAttribute: multi-way split on every distinct value, scored by the
  mutual information between the column and the target.
- NumericThresholdAttribute: binary split `column <= threshold`, scored by the
  best information gain over all midpoints between consecutive distinct values.

A split that cannot separate anything (fewer than two distinct values) scores
`-math.inf` and leaves the split data empty.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
from pydantic import BaseModel, ConfigDict, Field
from sklearn.metrics import mutual_info_score

from jadetree.attributes import SplitData
from jadetree.models import Predicate

type Instance = Mapping[str, Any]


class NominalAttribute(BaseModel):
    """Attribute reading one categorical column of a mapping instance.

    Use it as a source attribute (with `target`) to score multi-way splits, or
    without `target` as a tree's target attribute. The split data of a scored
    split is the list of distinct column values in first-seen order.

    Attributes:
        column (str): Key of the value this attribute reads.
        target (str | None): Key of the label the split is scored against.

    Examples:
        >>> color = NominalAttribute(column="color", target="label")
        >>> color.evaluate({"color": "red", "label": "yes"})
        'red'
        >>> holder = SplitData()
        >>> rows = [{"color": "red", "label": "a"}, {"color": "blue", "label": "b"}]
        >>> round(color.calculate_score(rows, holder), 4)
        0.6931
        >>> holder.data
        ['red', 'blue']
    """

    model_config = ConfigDict(frozen=True)

    column: str = Field(description="Key of the value this attribute reads.")
    target: str | None = Field(default=None, description="Key of the label the split is scored against.")

    @property
    def name(self) -> str:
        """str: Display name, the column key."""
        return self.column

    def evaluate(self, instance: Instance) -> Any:
        """Return the column value of `instance`.

        Args:
            instance (Instance): The instance to read.

        Returns:
            Any: `instance[column]`.
        """
        return instance[self.column]

    def calculate_score(self, instances: Sequence[Instance], split_data: SplitData) -> float:
        """Score a multi-way split on this column by mutual information with the target.

        Args:
            instances (Sequence[Instance]): The instances buffered at a leaf.
            split_data (SplitData): Receives the distinct values in first-seen order.

        Returns:
            float: Mutual information in nats, or `-math.inf` when the column
                has fewer than two distinct values.

        Raises:
            ValueError: If the attribute has no target column.
        """
        labels = _encode_labels(instances, self.target)
        values = [instance[self.column] for instance in instances]
        distinct = list(dict.fromkeys(values))
        if len(distinct) < 2:
            split_data.clear()
            return -math.inf
        codes = {value: code for code, value in enumerate(distinct)}
        split_data.data = distinct
        return float(mutual_info_score(labels, [codes[value] for value in values]))


class NumericThresholdAttribute(BaseModel):
    """Attribute reading one numeric column, scored as a binary threshold split.

    The split data of a scored split is `{"threshold": t}`, where instances with
    `column <= t` go to the true branch of `predicate_for(split_data)`.

    Attributes:
        column (str): Key of the numeric value this attribute reads.
        target (str | None): Key of the label the split is scored against.

    Examples:
        >>> age = NumericThresholdAttribute(column="age", target="label")
        >>> holder = SplitData()
        >>> rows = [
        ...     {"age": 20, "label": "young"},
        ...     {"age": 25, "label": "young"},
        ...     {"age": 60, "label": "old"},
        ... ]
        >>> round(age.calculate_score(rows, holder), 4)
        0.6365
        >>> holder.data
        {'threshold': 42.5}
    """

    model_config = ConfigDict(frozen=True)

    column: str = Field(description="Key of the numeric value this attribute reads.")
    target: str | None = Field(default=None, description="Key of the label the split is scored against.")

    @property
    def name(self) -> str:
        """str: Display name, the column key."""
        return self.column

    def evaluate(self, instance: Instance) -> Any:
        """Return the column value of `instance`.

        Args:
            instance (Instance): The instance to read.

        Returns:
            Any: `instance[column]`.
        """
        return instance[self.column]

    def calculate_score(self, instances: Sequence[Instance], split_data: SplitData) -> float:
        """Score the best `column <= threshold` split by information gain.

        Args:
            instances (Sequence[Instance]): The instances buffered at a leaf.
            split_data (SplitData): Receives `{"threshold": t}` for the best split.

        Returns:
            float: The best information gain in nats, or `-math.inf` when the
                column has fewer than two distinct values.

        Raises:
            ValueError: If the attribute has no target column.
        """
        labels = _encode_labels(instances, self.target)
        values = np.asarray([float(instance[self.column]) for instance in instances], dtype=np.float64)
        if values.size < 2:
            split_data.clear()
            return -math.inf

        order = np.argsort(values, kind="stable")
        sorted_values = values[order]
        # Only a boundary between two different values is a usable threshold.
        boundaries = sorted_values[1:] > sorted_values[:-1]
        if not boundaries.any():
            split_data.clear()
            return -math.inf

        one_hot = np.eye(int(labels.max()) + 1)[labels[order]]
        left_counts = np.cumsum(one_hot, axis=0)[:-1]
        right_counts = one_hot.sum(axis=0) - left_counts
        n_total = values.size
        n_left = np.arange(1, n_total)
        weighted_child_entropy = (
            n_left * _entropy(left_counts) + (n_total - n_left) * _entropy(right_counts)
        ) / n_total
        gains = _entropy(one_hot.sum(axis=0)) - weighted_child_entropy
        gains = np.where(boundaries, gains, -np.inf)

        best = int(np.argmax(gains))
        split_data.data = {"threshold": float((sorted_values[best] + sorted_values[best + 1]) / 2)}
        return float(gains[best])

    def predicate_for(self, split_data: SplitData) -> Predicate:
        """Build the routing predicate described by this attribute's split data.

        Args:
            split_data (SplitData): Split data produced by `calculate_score`.

        Returns:
            Predicate: `column <= threshold`.

        Raises:
            ValueError: If `split_data` holds no threshold.
        """
        if not isinstance(split_data.data, dict) or "threshold" not in split_data.data:
            raise ValueError(f"Split data holds no threshold: {split_data.data!r}")
        return Predicate(variable=self.column, operator="<=", value=split_data.data["threshold"])


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _encode_labels(instances: Sequence[Instance], target: str | None) -> np.ndarray:
    """Encode the target labels of `instances` as consecutive integer codes.

    Args:
        instances (Sequence[Instance]): The instances to read labels from.
        target (str | None): Key of the label.

    Returns:
        np.ndarray: 1-D integer array of label codes in first-seen order.

    Raises:
        ValueError: If `target` is None.
    """
    if target is None:
        raise ValueError("A target column is required to score a split")
    codes: dict[Any, int] = {}
    return np.asarray(
        [codes.setdefault(instance[target], len(codes)) for instance in instances],
        dtype=np.intp,
    )


def _entropy(counts: np.ndarray) -> np.ndarray:
    """Shannon entropy in nats of class-count vectors along the last axis.

    Args:
        counts (np.ndarray): Class counts; rows of zeros have zero entropy.

    Returns:
        np.ndarray: Entropy per row (a scalar array for 1-D input).
    """
    totals = counts.sum(axis=-1, keepdims=True)
    probs = np.divide(counts, totals, out=np.zeros_like(counts, dtype=np.float64), where=totals > 0)
    logs = np.log(probs, out=np.zeros_like(probs), where=probs > 0)
    return -(probs * logs).sum(axis=-1)
