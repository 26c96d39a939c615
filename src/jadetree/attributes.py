"""Protocols for the attributes and predicates a classification tree consumes.

Attributes and predicates are supplied by the caller. The tree never inspects
their types; it only relies on the capabilities defined here, so attributes
with heterogeneous value types can share one ordered registry.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


class SplitData:
    """Mutable holder for the opaque split metadata an attribute produces.

    A scorer writes the metadata describing how it would partition a leaf into
    the holder it receives. The leaf keeps its own holder and copies the
    scorer's metadata into it whenever that scorer improves the best score.

    Examples:
        >>> holder = SplitData()
        >>> holder.is_empty
        True
        >>> holder.data = {"threshold": 2.5}
        >>> kept = SplitData()
        >>> kept.copy_from(holder)
        >>> holder.data["threshold"] = 9.0
        >>> kept.data
        {'threshold': 2.5}
    """

    __slots__ = ("data",)

    def __init__(self, data: Any = None) -> None:
        """Initialize the holder.

        Args:
            data (Any): Initial metadata. Defaults to None (empty).
        """
        self.data = data

    @property
    def is_empty(self) -> bool:
        """bool: True when no metadata is held."""
        return self.data is None

    def copy_from(self, other: SplitData) -> None:
        """Replace the held metadata with a deep copy of another holder's metadata.

        Args:
            other (SplitData): The holder to copy from. It is left untouched and
                may be reused by its owner afterwards.
        """
        self.data = copy.deepcopy(other.data)

    def clear(self) -> None:
        """Drop the held metadata."""
        self.data = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SplitData):
            return NotImplemented
        return self.data == other.data

    def __repr__(self) -> str:
        return f"SplitData(data={self.data!r})"


@runtime_checkable
class ObjectAttribute[TSource, TValue](Protocol):
    """Protocol for attributes that can both route and score instances.

    Implementations must provide two members:
    - evaluate(): the attribute's value for one instance, used by enumerable
      nodes to pick a branch. Values must be hashable.
    - calculate_score(): the quality of splitting a batch of instances on this
      attribute. Higher is better. Return `-math.inf` when no split is possible.
    """

    def evaluate(self, instance: TSource) -> TValue:
        """Evaluate the attribute on one instance.

        Args:
            instance (TSource): The instance to evaluate.

        Returns:
            TValue: The attribute value.
        """
        ...

    def calculate_score(self, instances: Sequence[TSource], split_data: SplitData) -> float:
        """Score a candidate split of `instances` on this attribute.

        Args:
            instances (Sequence[TSource]): The instances buffered at a leaf.
            split_data (SplitData): Holder to write split metadata into. The
                holder may be reused across attributes; implementations must
                overwrite `split_data.data` rather than read from it.

        Returns:
            float: The split quality score.
        """
        ...


def describe_attribute(attribute: object) -> str:
    """Return a short display name for an attribute.

    Args:
        attribute (object): Any attribute, or None.

    Returns:
        str: The attribute's `name` when it has a string one, otherwise its
            type name. `"None"` for None.

    Examples:
        >>> describe_attribute(None)
        'None'
    """
    if attribute is None:
        return "None"
    name = getattr(attribute, "name", None)
    if isinstance(name, str):
        return name
    return type(attribute).__name__


@runtime_checkable
class InstancePredicate[TSource](Protocol):
    """Protocol for boolean tests used by binary predicate nodes."""

    def evaluate(self, instance: TSource) -> bool:
        """Test one instance.

        Args:
            instance (TSource): The instance to test.

        Returns:
            bool: True routes the instance to the true branch.
        """
        ...
