"""Shared fixtures for jadetree tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from jadetree.attributes import SplitData
from jadetree.config import TreeSettings


class ScriptedAttribute:
    """Attribute whose score is computed by a plain function of the buffered instances.

    Records every batch it is asked to score and writes its own name and the
    batch size into the split data, so tests can see which attribute won.

    Attributes:
        name (str): Display name; also the instance key read by `evaluate`.
        calls (list[tuple[Any, ...]]): Every batch passed to `calculate_score`.
    """

    def __init__(self, name: str, score_fn: Callable[[Sequence[Any]], float]) -> None:
        self.name = name
        self._score_fn = score_fn
        self.calls: list[tuple[Any, ...]] = []

    def __repr__(self) -> str:
        return f"ScriptedAttribute({self.name!r})"

    def evaluate(self, instance: dict[str, Any]) -> Any:
        return instance[self.name]

    def calculate_score(self, instances: Sequence[Any], split_data: SplitData) -> float:
        self.calls.append(tuple(instances))
        split_data.data = {"attribute": self.name, "count": len(instances)}
        return self._score_fn(instances)


def sum_of(key: str) -> Callable[[Sequence[Any]], float]:
    """Build a score function summing `instance[key]` over the batch, `-inf` for an empty batch.

    Args:
        key (str): Instance key to sum.

    Returns:
        Callable[[Sequence[Any]], float]: The score function.
    """

    def score(instances: Sequence[Any]) -> float:
        if not instances:
            return float("-inf")
        return float(sum(instance[key] for instance in instances))

    return score


@pytest.fixture
def scripted_attribute() -> type[ScriptedAttribute]:
    """Provide the ScriptedAttribute class.

    Returns:
        type[ScriptedAttribute]: Class to build attributes with custom score functions.
    """
    return ScriptedAttribute


@pytest.fixture
def summing_attribute() -> Callable[[str], ScriptedAttribute]:
    """Provide a factory for attributes scoring a batch by the sum of one key.

    Returns:
        Callable[[str], ScriptedAttribute]: Factory taking the instance key.
    """

    def factory(key: str) -> ScriptedAttribute:
        return ScriptedAttribute(key, sum_of(key))

    return factory


@pytest.fixture
def settings() -> TreeSettings:
    """Settings independent of the environment, with upward invalidation enabled.

    Returns:
        TreeSettings: Default settings.
    """
    return TreeSettings(_env_file=None, propagate_insert_invalidation=True)
