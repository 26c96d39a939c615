"""Shared read-only handle that tree nodes use to reach tree-wide state.

Nodes never hold a reference to the tree that owns them. Instead each node
receives the TreeContext of its tree, which exposes the attribute registry and
the settings without any mutating operation.
"""

from __future__ import annotations

from typing import Any

from jadetree.attributes import ObjectAttribute
from jadetree.config import TreeSettings
from jadetree.registry import AttributeRegistry


class TreeContext:
    """Narrow, read-only view of a tree's attribute registry and settings."""

    __slots__ = ("_registry", "_settings")

    def __init__(self, registry: AttributeRegistry, settings: TreeSettings) -> None:
        """Initialize the TreeContext.

        Args:
            registry (AttributeRegistry): The registry owned by the tree.
            settings (TreeSettings): The settings the tree was created with.
        """
        self._registry = registry
        self._settings = settings

    @property
    def attributes(self) -> tuple[ObjectAttribute[Any, Any], ...]:
        """tuple[ObjectAttribute, ...]: Source attributes in registration order."""
        return self._registry.attributes

    @property
    def attribute_count(self) -> int:
        """int: Number of registered source attributes."""
        return len(self._registry)

    @property
    def target_attribute(self) -> ObjectAttribute[Any, Any] | None:
        """ObjectAttribute | None: The tree's label attribute."""
        return self._registry.target_attribute

    @property
    def settings(self) -> TreeSettings:
        """TreeSettings: Settings of the owning tree."""
        return self._settings

    @property
    def propagate_insert_invalidation(self) -> bool:
        """bool: Whether inodes clear their cache on every insert routed through them."""
        return self._settings.propagate_insert_invalidation

    def attribute_at(self, index: int) -> ObjectAttribute[Any, Any] | None:
        """Return the source attribute at `index`, or None when out of range.

        Args:
            index (int): Registry index.

        Returns:
            ObjectAttribute | None: The attribute, if any.
        """
        return self._registry.get(index)
