"""Pydantic models: routing predicates and tree summaries."""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type PredicateOp = Literal[">", ">=", "!=", "==", "<", "<=", "in", "not in"]

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class Predicate(BaseModel):
    """A single boolean condition on one variable of a mapping instance.

    Represents a comparison such as `tenure_months > 6` or
    `plan_type in {basic, standard}`. A Predicate satisfies the
    `InstancePredicate` protocol, so it can route instances in a
    `PredicateDecisionNode`.

    Attributes:
        variable (str): Key of the instance value the condition applies to.
        operator (PredicateOp): Comparison operator. Use `"in"` or `"not in"`
            for membership tests against a set of values.
        value (float | str | set[float] | set[str]): Threshold for scalar
            comparisons, or a set of candidate values for membership tests.

    Examples:
        >>> p = Predicate(variable="tenure_months", operator=">", value=6.0)
        >>> str(p)
        'tenure_months > 6.0'
        >>> p.evaluate({"tenure_months": 12.0})
        True
        >>> p2 = Predicate(variable="plan_type", operator="in", value={"basic", "standard"})
        >>> p2.eval("basic")
        True
    """

    model_config = ConfigDict(frozen=True)

    variable: str = Field(description="Key of the instance value the condition applies to.")
    operator: PredicateOp = Field(
        description=(
            "Comparison operator. Use 'in' or 'not in' for membership tests "
            "against a set of values; use the scalar operators for threshold comparisons."
        ),
    )
    value: float | str | frozenset[float] | frozenset[str] = Field(
        description=(
            "Threshold for scalar comparisons (float or str), or a set of candidate "
            "values for 'in' / 'not in' membership tests."
        ),
    )

    @model_validator(mode="before")
    @classmethod
    def _freeze_value_set(cls, data: Any) -> Any:
        """Convert a set `value` into a frozenset so the model stays hashable.

        Args:
            data (Any): Raw input data.

        Returns:
            Any: The input with a set value replaced by a frozenset.
        """
        if isinstance(data, dict) and isinstance(data.get("value"), set):
            return {**data, "value": frozenset(data["value"])}
        return data

    @model_validator(mode="after")
    def _validate_operator_value_compatibility(self) -> Predicate:
        """Validate that the operator and value type are compatible.

        Returns:
            Predicate: The validated model instance.

        Raises:
            ValueError: If a membership operator is used with a non-set value,
                or if a scalar operator is used with a set value.
        """
        try:
            _validate_operator_threshold_types(self.operator, self.value)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc
        return self

    def __str__(self) -> str:
        """Return a human-readable representation of this predicate.

        Returns:
            str: The predicate as `"<variable> <operator> <value>"`.
        """
        if isinstance(self.value, frozenset):
            sorted_values = ", ".join(str(v) for v in sorted(self.value))
            return f"{self.variable} {self.operator} {{{sorted_values}}}"
        return f"{self.variable} {self.operator} {self.value}"

    def eval(self, x: float | str) -> bool:
        """Evaluate this predicate against a raw value.

        Args:
            x (float | str): The value to test.

        Returns:
            bool: `True` if the predicate holds for `x`, `False` otherwise.
        """
        return _apply_operator(self.operator, x, self.value)

    def evaluate(self, instance: Mapping[str, Any]) -> bool:
        """Evaluate this predicate against an instance.

        Args:
            instance (Mapping[str, Any]): The instance; must contain `variable`.

        Returns:
            bool: `True` if the predicate holds for `instance[variable]`.

        Raises:
            KeyError: If the instance has no value for `variable`.
        """
        return self.eval(instance[self.variable])


class LeafSummary(BaseModel):
    """Snapshot of one leaf of a classification tree.

    Attributes:
        path (list[str]): Branch labels from the root down to this leaf. Empty
            for a root leaf.
        instance_count (int): Number of instances buffered at the leaf.
        expand_score (float): Best split score over the buffered instances;
            `-inf` when there is no valid split.
        split_index (int): Registry index of the best attribute, or -1.
        split_attribute (str | None): Display name of the best attribute.
        is_maximum (bool): Whether this is the tree's maximum leaf.
    """

    path: list[str] = Field(description="Branch labels from the root down to this leaf.")
    instance_count: int = Field(ge=0, description="Number of instances buffered at the leaf.")
    expand_score: float = Field(description="Best split score over the buffered instances.")
    split_index: int = Field(ge=-1, description="Registry index of the best attribute, or -1.")
    split_attribute: str | None = Field(default=None, description="Display name of the best attribute.")
    is_maximum: bool = Field(default=False, description="Whether this is the tree's maximum leaf.")

    @model_validator(mode="after")
    def _validate_split_attribute_matches_index(self) -> LeafSummary:
        """Validate that a split attribute is named exactly when the split index is valid.

        Returns:
            LeafSummary: The validated model instance.

        Raises:
            ValueError: If `split_attribute` and `split_index` disagree.
        """
        if (self.split_index >= 0) != (self.split_attribute is not None):
            raise ValueError("split_attribute must be set exactly when split_index >= 0")
        return self


class TreeSummary(BaseModel):
    """Structure and scoring snapshot of a classification tree.

    Attributes:
        attributes (list[str]): Display names of the source attributes, in
            registration order.
        target_attribute (str | None): Display name of the target attribute.
        node_count (int): Number of nodes, leaves included.
        leaf_count (int): Number of leaves.
        depth (int): Number of edges on the longest root-to-leaf path.
        instance_count (int): Total buffered instances over all leaves.
        expand_score (float): The tree's best split score.
        leaves (list[LeafSummary]): One entry per leaf in depth-first order.
    """

    attributes: list[str] = Field(description="Display names of the source attributes.")
    target_attribute: str | None = Field(default=None, description="Display name of the target attribute.")
    node_count: int = Field(ge=1, description="Number of nodes, leaves included.")
    leaf_count: int = Field(ge=0, description="Number of leaves.")
    depth: int = Field(ge=0, description="Number of edges on the longest root-to-leaf path.")
    instance_count: int = Field(ge=0, description="Total buffered instances over all leaves.")
    expand_score: float = Field(description="The tree's best split score.")
    leaves: list[LeafSummary] = Field(description="One entry per leaf in depth-first order.")

    @model_validator(mode="after")
    def _validate_leaves_match_counts(self) -> TreeSummary:
        """Validate that the leaf list agrees with the leaf and instance counts.

        Returns:
            TreeSummary: The validated model instance.

        Raises:
            ValueError: If `len(leaves)` differs from `leaf_count` or the leaf
                instance counts do not add up to `instance_count`.
        """
        if len(self.leaves) != self.leaf_count:
            raise ValueError(f"leaves length ({len(self.leaves)}) must equal leaf_count ({self.leaf_count})")
        total = sum(leaf.instance_count for leaf in self.leaves)
        if total != self.instance_count:
            raise ValueError(f"leaf instance counts ({total}) must add up to instance_count ({self.instance_count})")
        return self


# ---------------------------------------------------------------------------
# Private helpers -- Predicate operator evaluation
# ---------------------------------------------------------------------------

_SCALAR_OPS: dict[str, Callable[[Any, Any], bool]] = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


def _apply_operator(
    op: PredicateOp,
    x: float | str,
    threshold: float | str | frozenset[float] | frozenset[str],
) -> bool:
    """Apply a comparison operator between a value and a threshold.

    Args:
        op (PredicateOp): The comparison operator to apply.
        x (float | str): The value to compare.
        threshold (float | str | frozenset[float] | frozenset[str]): The
            threshold or set of candidate values to compare against.

    Returns:
        bool: Result of applying `op` between `x` and `threshold`.

    Raises:
        ValueError: If `op` is not a recognized `PredicateOp` value.
    """
    _validate_operator_threshold_types(op, threshold)
    if op in _SCALAR_OPS:
        return bool(_SCALAR_OPS[op](x, threshold))
    if op == "in" and isinstance(threshold, frozenset | set):
        return x in threshold
    if op == "not in" and isinstance(threshold, frozenset | set):
        return x not in threshold
    raise ValueError(f"Unexpected operator: {op!r}")


def _validate_operator_threshold_types(
    op: PredicateOp,
    threshold: float | str | frozenset[float] | frozenset[str],
) -> None:
    """Raise TypeError when operator and threshold types are incompatible.

    Args:
        op (PredicateOp): The comparison operator to validate.
        threshold (float | str | frozenset[float] | frozenset[str]): The
            threshold value to validate against the operator.

    Raises:
        TypeError: If a scalar operator is paired with a set threshold, or a
            membership operator is paired with a non-set threshold.
    """
    is_set = isinstance(threshold, frozenset | set)
    if op in _SCALAR_OPS and is_set:
        raise TypeError(f"Scalar operator '{op}' cannot compare against a set")
    if op in {"in", "not in"} and not is_set:
        raise TypeError(f"Membership operator '{op}' requires a set threshold")
