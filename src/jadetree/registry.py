"""Ordered registry of the source attributes a tree scores splits with."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from jadetree.attributes import ObjectAttribute
from jadetree.exceptions import AttributeNotRegisteredError


@dataclass
class AttributeRegistry:
    """Groups the ordered source attributes and the target attribute of a tree.

    Registration order is significant: it is the tie-break order when two
    attributes score equally, and it is the index space of a leaf's
    `split_index`.

    Attributes:
        target_attribute (ObjectAttribute | None): The nominal label attribute.
    """

    target_attribute: ObjectAttribute[Any, Any] | None = None
    _attributes: list[ObjectAttribute[Any, Any]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self) -> Iterator[ObjectAttribute[Any, Any]]:
        return iter(self._attributes)

    def __contains__(self, attribute: object) -> bool:
        return attribute in self._attributes

    @property
    def attributes(self) -> tuple[ObjectAttribute[Any, Any], ...]:
        """Read-only snapshot of the registered source attributes."""
        return tuple(self._attributes)

    def add(self, attribute: ObjectAttribute[Any, Any]) -> int:
        """Append an attribute to the registry.

        Args:
            attribute (ObjectAttribute): The attribute to register.

        Returns:
            int: The index the attribute was registered at.
        """
        self._attributes.append(attribute)
        return len(self._attributes) - 1

    def remove(self, attribute: ObjectAttribute[Any, Any]) -> int:
        """Remove the first registration of an attribute.

        Args:
            attribute (ObjectAttribute): The attribute to remove.

        Returns:
            int: The index the attribute was removed from.

        Raises:
            AttributeNotRegisteredError: If the attribute is not registered.
        """
        try:
            index = self._attributes.index(attribute)
        except ValueError:
            raise AttributeNotRegisteredError(attribute, registered_count=len(self._attributes)) from None
        del self._attributes[index]
        return index

    def get(self, index: int) -> ObjectAttribute[Any, Any] | None:
        """Return the attribute at `index`, or None for a negative or out-of-range index.

        Args:
            index (int): Registry index, typically a leaf's `split_index`.

        Returns:
            ObjectAttribute | None: The attribute at that index, if any.
        """
        if 0 <= index < len(self._attributes):
            return self._attributes[index]
        return None
