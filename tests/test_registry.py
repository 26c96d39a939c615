"""Tests for AttributeRegistry and TreeContext."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from pytest_check import check

from jadetree.config import TreeSettings
from jadetree.context import TreeContext
from jadetree.exceptions import AttributeNotRegisteredError
from jadetree.registry import AttributeRegistry
from jadetree.scoring import NominalAttribute


class TestAttributeRegistry:
    """Tests for ordered registration and removal."""

    def test_add_returns_index_in_registration_order(self, summing_attribute: Callable[[str], Any]) -> None:
        """Attributes are indexed in the order they are added."""
        # Arrange
        registry = AttributeRegistry()
        first, second = summing_attribute("a"), summing_attribute("b")

        # Act
        indices = [registry.add(first), registry.add(second)]

        # Assert
        with check:
            assert indices == [0, 1]
        with check:
            assert registry.attributes == (first, second)
        with check:
            assert len(registry) == 2
        with check:
            assert list(registry) == [first, second]

    def test_duplicates_allowed_and_first_removed(self, summing_attribute: Callable[[str], Any]) -> None:
        """Registering twice keeps both entries; remove() drops the first occurrence."""
        # Arrange
        registry = AttributeRegistry()
        repeated, other = summing_attribute("a"), summing_attribute("b")
        for attribute in (repeated, other, repeated):
            registry.add(attribute)

        # Act
        removed_at = registry.remove(repeated)

        # Assert
        with check:
            assert removed_at == 0
        with check:
            assert registry.attributes == (other, repeated)
        with check:
            assert repeated in registry

    def test_remove_matches_by_equality(self) -> None:
        """Value-equal attributes are interchangeable for removal."""
        registry = AttributeRegistry()
        registry.add(NominalAttribute(column="color", target="label"))

        registry.remove(NominalAttribute(column="color", target="label"))

        assert len(registry) == 0

    def test_remove_unregistered_raises(self, summing_attribute: Callable[[str], Any]) -> None:
        """Removing an unknown attribute raises and leaves the registry unchanged."""
        # Arrange
        registry = AttributeRegistry()
        kept = summing_attribute("a")
        registry.add(kept)

        # Act
        with pytest.raises(AttributeNotRegisteredError) as exc_info:
            registry.remove(summing_attribute("missing"))

        # Assert
        with check:
            assert exc_info.value.registered_count == 1
        with check:
            assert registry.attributes == (kept,)
        with check:
            assert exc_info.value.__cause__ is None

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_get_out_of_range_returns_none(self, index: int, summing_attribute: Callable[[str], Any]) -> None:
        """get() returns None for -1 and for indices past the end.

        Args:
            index (int): An index with no attribute.
        """
        registry = AttributeRegistry()
        registry.add(summing_attribute("a"))

        assert registry.get(index) is None

    def test_attributes_snapshot_is_detached(self, summing_attribute: Callable[[str], Any]) -> None:
        """The attributes tuple does not change when the registry does."""
        registry = AttributeRegistry()
        registry.add(summing_attribute("a"))
        snapshot = registry.attributes

        registry.add(summing_attribute("b"))

        assert len(snapshot) == 1


class TestTreeContext:
    """Tests for the read-only view nodes use."""

    def test_reflects_registry_changes(self, summing_attribute: Callable[[str], Any], settings: TreeSettings) -> None:
        """The context sees attributes added to its registry after creation."""
        # Arrange
        registry = AttributeRegistry()
        context = TreeContext(registry, settings)
        attribute = summing_attribute("a")

        # Act
        registry.add(attribute)
        registry.target_attribute = NominalAttribute(column="label")

        # Assert
        with check:
            assert context.attributes == (attribute,)
        with check:
            assert context.attribute_count == 1
        with check:
            assert context.attribute_at(0) is attribute
        with check:
            assert context.attribute_at(-1) is None
        with check:
            assert context.target_attribute == NominalAttribute(column="label")

    def test_exposes_settings(self, settings: TreeSettings) -> None:
        """Settings and the invalidation flag are passed through."""
        context = TreeContext(AttributeRegistry(), settings)

        with check:
            assert context.settings is settings
        with check:
            assert context.propagate_insert_invalidation is True

    def test_has_no_mutating_operations(self, settings: TreeSettings) -> None:
        """The context offers no way to change the registry or gain new attributes."""
        context = TreeContext(AttributeRegistry(), settings)

        with check:
            assert not hasattr(context, "add")
        with check:
            assert not hasattr(context, "remove")
        with pytest.raises(AttributeError):
            context.extra = 1  # type: ignore[attr-defined]
