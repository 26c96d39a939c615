"""Custom exceptions for the incremental decision tree.

Tree exceptions (subclass DecisionTreeError):
- UnsupportedOperationError: Raised for extension points that are not implemented.
- InvalidSplitError: Raised when a leaf has no valid candidate split to act on.
- LeafNotFoundError: Raised when a leaf is not part of the tree.
- ForeignNodeError: Raised when a node built for another tree is grafted.

Validation exceptions (subclass ValueError):
- AttributeNotRegisteredError: Raised when removing an attribute that is not registered.
- ColumnsNotFoundError: Raised when requested columns do not exist in a DataFrame.
- DuplicateColumnsError: Raised when duplicate column names are provided.
"""

from __future__ import annotations

from typing import Any


class DecisionTreeError(Exception):
    """Base exception for all decision tree errors.

    Catching this exception will catch every structural error raised by the
    tree and its nodes.
    """

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: String representation including the message.
        """
        return f"{self.__class__.__name__}(message={str(self)!r})"


class UnsupportedOperationError(DecisionTreeError, NotImplementedError):
    """Raised when an unimplemented extension point is invoked.

    Attributes:
        operation (str): Name of the operation that is not supported.

    Examples:
        >>> err = UnsupportedOperationError("DecisionLeaf.expand")
        >>> err.operation
        'DecisionLeaf.expand'
    """

    operation: str

    def __init__(self, operation: str) -> None:
        """Initialize UnsupportedOperationError.

        Args:
            operation (str): Name of the operation that is not supported.
        """
        super().__init__(f"{operation} is not supported yet")
        self.operation = operation


class InvalidSplitError(DecisionTreeError, ValueError):
    """Raised when a leaf has no valid split to act on.

    A leaf has no valid split when its buffer is empty, when no attribute is
    registered, or when no attribute scores above negative infinity.

    Attributes:
        instance_count (int): Number of instances buffered at the leaf.
        attribute_count (int): Number of attributes registered when scoring.
    """

    instance_count: int
    attribute_count: int

    def __init__(self, instance_count: int, attribute_count: int) -> None:
        """Initialize InvalidSplitError.

        Args:
            instance_count (int): Number of instances buffered at the leaf.
            attribute_count (int): Number of attributes registered when scoring.
        """
        super().__init__(
            f"Leaf has no valid split ({instance_count} instances, {attribute_count} attributes)",
        )
        self.instance_count = instance_count
        self.attribute_count = attribute_count


class LeafNotFoundError(DecisionTreeError, LookupError):
    """Raised when a leaf is not reachable from the root of the tree."""


class ForeignNodeError(DecisionTreeError, ValueError):
    """Raised when a node created for a different tree is attached to this tree."""


class AttributeNotRegisteredError(ValueError):
    """Raised when an attribute is not present in the source attribute registry.

    Attributes:
        attribute (Any): The attribute that was not found.
        registered_count (int): Number of attributes currently registered.

    Examples:
        >>> err = AttributeNotRegisteredError(attribute="age", registered_count=2)
        >>> err.registered_count
        2
    """

    attribute: Any
    registered_count: int

    def __init__(self, attribute: Any, registered_count: int) -> None:
        """Initialize AttributeNotRegisteredError.

        Args:
            attribute (Any): The attribute that was not found.
            registered_count (int): Number of attributes currently registered.
        """
        super().__init__(f"Attribute is not registered: {attribute!r}")
        self.attribute = attribute
        self.registered_count = registered_count


class ColumnsNotFoundError(ValueError):
    """Raised when requested columns do not exist in a DataFrame.

    Attributes:
        missing_columns (list[str]): Column names that were not found.
        available_columns (list[str]): Column names present in the DataFrame.

    Examples:
        >>> err = ColumnsNotFoundError(
        ...     missing_columns=["x", "y"],
        ...     available_columns=["a", "b", "c"],
        ... )
        >>> err.missing_columns
        ['x', 'y']
    """

    missing_columns: list[str]
    available_columns: list[str]

    def __init__(
        self,
        missing_columns: list[str],
        available_columns: list[str],
    ) -> None:
        """Initialize ColumnsNotFoundError.

        Args:
            missing_columns (list[str]): Column names not found in the DataFrame.
            available_columns (list[str]): Column names present in the DataFrame.
        """
        super().__init__(f"Columns not found in DataFrame: {sorted(missing_columns)}")
        self.missing_columns = missing_columns
        self.available_columns = available_columns


class DuplicateColumnsError(ValueError):
    """Raised when duplicate column names are provided.

    Attributes:
        columns (list[str]): The column list that contains duplicates.
        duplicate_columns (list[str]): The specific column names that are
            duplicated (each listed once).

    Examples:
        >>> err = DuplicateColumnsError(columns=["a", "a", "b"])
        >>> err.duplicate_columns
        ['a']
    """

    columns: list[str]
    duplicate_columns: list[str]

    def __init__(self, columns: list[str]) -> None:
        """Initialize DuplicateColumnsError.

        Args:
            columns (list[str]): The column list containing duplicates.
        """
        super().__init__("Duplicate column names are not allowed")
        self.columns = columns
        seen: set[str] = set()
        self.duplicate_columns = []
        for col in columns:
            if col in seen and col not in self.duplicate_columns:
                self.duplicate_columns.append(col)
            seen.add(col)
