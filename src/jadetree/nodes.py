"""Decision tree nodes: leaves that buffer instances and inodes that route them.

Every node exposes the same capabilities (`next_hop`, `insert`,
`expand_score`, `make_dirty`, `get_maximum_leaf`). Leaves cache the score of
their best candidate split; inodes cache which leaf of their subtree has the
highest such score. Both caches are derived state and are rebuilt on demand
after `make_dirty()`.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from jadetree.attributes import InstancePredicate, ObjectAttribute, SplitData, describe_attribute
from jadetree.context import TreeContext
from jadetree.exceptions import (
    ForeignNodeError,
    InvalidSplitError,
    LeafNotFoundError,
    UnsupportedOperationError,
)
from jadetree.logging import RESCORE_LEVEL


class DecisionNode(ABC):
    """A node of a classification tree.

    Nodes exclusively own their children. A node is bound to the TreeContext of
    the tree it was created for and can only be attached to that tree.
    """

    def __init__(self, context: TreeContext) -> None:
        """Initialize the node.

        Args:
            context (TreeContext): Read-only handle to the owning tree's state.
        """
        self._context = context

    @property
    def context(self) -> TreeContext:
        """TreeContext: The context this node was created for."""
        return self._context

    @property
    def is_leaf(self) -> bool:
        """bool: True only for DecisionLeaf."""
        return False

    def next_hop(self, instance: Any) -> DecisionNode:
        """Return the node `instance` is routed to from here.

        Args:
            instance (Any): The instance being routed.

        Returns:
            DecisionNode: A child for inodes; the node itself for leaves.
        """
        return self

    def insert(self, instance: Any) -> None:
        """Route `instance` down to a leaf and buffer it there.

        Args:
            instance (Any): The instance to insert.
        """
        self.next_hop(instance).insert(instance)

    @abstractmethod
    def expand_score(self) -> float:
        """Return the best split score reachable from this node."""

    @abstractmethod
    def make_dirty(self) -> None:
        """Invalidate cached derived state. Calling it repeatedly has no further effect."""

    @abstractmethod
    def get_maximum_leaf(self) -> DecisionLeaf | None:
        """Return the leaf of this subtree with the highest expand score."""

    def labeled_children(self) -> tuple[tuple[str, DecisionNode], ...]:
        """Return the direct children paired with a label describing their branch.

        Returns:
            tuple[tuple[str, DecisionNode], ...]: `(label, child)` pairs in branch order.
        """
        return ()

    def children(self) -> tuple[DecisionNode, ...]:
        """Return the direct children in branch order.

        Returns:
            tuple[DecisionNode, ...]: Children; empty for leaves.
        """
        return tuple(child for _, child in self.labeled_children())

    def replace_child(self, old: DecisionNode, new: DecisionNode) -> None:
        """Replace a direct child of this node.

        Args:
            old (DecisionNode): The current child.
            new (DecisionNode): The node to put in its place.

        Raises:
            LeafNotFoundError: If `old` is not a direct child of this node.
        """
        raise LeafNotFoundError(f"{type(self).__name__} has no child {old!r}")

    def _check_context(self, node: DecisionNode) -> None:
        if node.context is not self._context:
            raise ForeignNodeError(f"{type(node).__name__} belongs to a different tree")


class DecisionInode(DecisionNode):
    """Internal node that routes instances to children and caches its best leaf."""

    def __init__(self, context: TreeContext) -> None:
        super().__init__(context)
        self._maximum_leaf: DecisionLeaf | None = None

    def expand_score(self) -> float:
        """Return the expand score of the best leaf in this subtree.

        Returns:
            float: `get_maximum_leaf().expand_score()`, or `-math.inf` when the
                subtree has no leaf yet.
        """
        leaf = self.get_maximum_leaf()
        if leaf is None:
            return -math.inf
        return leaf.expand_score()

    def get_maximum_leaf(self) -> DecisionLeaf | None:
        """Return the cached best leaf, recalculating it when the cache is empty.

        Returns:
            DecisionLeaf | None: The best leaf, or None when the subtree has no leaf.
        """
        if self._maximum_leaf is None:
            self._maximum_leaf = self._recalc_maximum_leaf()
        return self._maximum_leaf

    def insert(self, instance: Any) -> None:
        """Route `instance` to a child, then forget the cached best leaf.

        The leaf receiving the instance changes score, so the sibling
        comparison cached here is stale afterwards.

        Args:
            instance (Any): The instance to insert.
        """
        super().insert(instance)
        if self._context.propagate_insert_invalidation:
            self._maximum_leaf = None

    def make_dirty(self) -> None:
        """Clear this node's cached best leaf only."""
        self._maximum_leaf = None

    @abstractmethod
    def _recalc_maximum_leaf(self) -> DecisionLeaf | None:
        """Compute the best leaf of this subtree from scratch."""

    @staticmethod
    def _best_leaf(nodes: Iterable[DecisionNode]) -> DecisionLeaf | None:
        """Return the best leaf among the subtrees of `nodes`.

        The first subtree with the strictly highest score wins, so earlier
        branches win ties.

        Args:
            nodes (Iterable[DecisionNode]): Subtree roots in branch order.

        Returns:
            DecisionLeaf | None: The winning leaf, or None if no subtree has a leaf.
        """
        best_leaf: DecisionLeaf | None = None
        best_score = -math.inf
        for node in nodes:
            leaf = node.get_maximum_leaf()
            if leaf is None:
                continue
            score = leaf.expand_score()
            if best_leaf is None or score > best_score:
                best_leaf = leaf
                best_score = score
        return best_leaf


class AttributeDecisionNode(DecisionInode):
    """Inode that routes on the value of an attribute."""

    def __init__(self, context: TreeContext, attribute: ObjectAttribute[Any, Any]) -> None:
        """Initialize the node.

        Args:
            context (TreeContext): Read-only handle to the owning tree's state.
            attribute (ObjectAttribute): The attribute whose value selects a branch.
        """
        super().__init__(context)
        self._object_attribute = attribute

    @property
    def object_attribute(self) -> ObjectAttribute[Any, Any]:
        """ObjectAttribute: The attribute this node routes on."""
        return self._object_attribute

    def evaluate_attribute(self, instance: Any) -> Any:
        """Return the routing attribute's value for `instance`.

        Args:
            instance (Any): The instance to evaluate.

        Returns:
            Any: The attribute value.
        """
        return self._object_attribute.evaluate(instance)


class PredicateDecisionNode(DecisionInode):
    """Binary inode: instances satisfying the predicate go to `true_node`, others to `false_node`."""

    def __init__(
        self,
        context: TreeContext,
        predicate: InstancePredicate[Any],
        true_node: DecisionNode | None = None,
        false_node: DecisionNode | None = None,
    ) -> None:
        """Initialize the node.

        Args:
            context (TreeContext): Read-only handle to the owning tree's state.
            predicate (InstancePredicate): The boolean test used for routing.
            true_node (DecisionNode | None): Child for instances passing the test.
                Defaults to a new empty leaf.
            false_node (DecisionNode | None): Child for instances failing the test.
                Defaults to a new empty leaf.

        Raises:
            ForeignNodeError: If a child was created for a different tree.
        """
        super().__init__(context)
        self._predicate = predicate
        self._true_node = true_node if true_node is not None else DecisionLeaf(context)
        self._false_node = false_node if false_node is not None else DecisionLeaf(context)
        self._check_context(self._true_node)
        self._check_context(self._false_node)

    @property
    def predicate(self) -> InstancePredicate[Any]:
        """InstancePredicate: The routing test."""
        return self._predicate

    @property
    def true_node(self) -> DecisionNode:
        """DecisionNode: Child for instances passing the test."""
        return self._true_node

    @true_node.setter
    def true_node(self, node: DecisionNode) -> None:
        self._check_context(node)
        self._true_node = node
        self._maximum_leaf = None

    @property
    def false_node(self) -> DecisionNode:
        """DecisionNode: Child for instances failing the test."""
        return self._false_node

    @false_node.setter
    def false_node(self, node: DecisionNode) -> None:
        self._check_context(node)
        self._false_node = node
        self._maximum_leaf = None

    def next_hop(self, instance: Any) -> DecisionNode:
        if self._predicate.evaluate(instance):
            return self._true_node
        return self._false_node

    def make_dirty(self) -> None:
        """Invalidate both subtrees, then this node's cached best leaf."""
        self._true_node.make_dirty()
        self._false_node.make_dirty()
        super().make_dirty()

    def labeled_children(self) -> tuple[tuple[str, DecisionNode], ...]:
        return ((f"{self._predicate}", self._true_node), (f"not ({self._predicate})", self._false_node))

    def replace_child(self, old: DecisionNode, new: DecisionNode) -> None:
        if old is self._true_node:
            self.true_node = new
        elif old is self._false_node:
            self.false_node = new
        else:
            super().replace_child(old, new)

    def _recalc_maximum_leaf(self) -> DecisionLeaf | None:
        return self._best_leaf((self._true_node, self._false_node))


class EnumerableDecisionNode(AttributeDecisionNode):
    """Multi-way inode with one branch per observed attribute value.

    Branches are created lazily: routing an instance whose attribute value has
    not been seen before adds a new empty leaf under that value. Branch order is
    the order in which values were first seen.
    """

    def __init__(self, context: TreeContext, attribute: ObjectAttribute[Any, Any]) -> None:
        super().__init__(context, attribute)
        self._branches: dict[Any, DecisionNode] = {}

    @property
    def branches(self) -> Mapping[Any, DecisionNode]:
        """Read-only view of the attribute value to child mapping."""
        return MappingProxyType(self._branches)

    def next_hop(self, instance: Any) -> DecisionNode:
        """Return the branch for the instance's attribute value, creating it if needed.

        Creating a branch changes the set of leaves below this node, so the
        cached best leaf is cleared when that happens.

        Args:
            instance (Any): The instance being routed.

        Returns:
            DecisionNode: The child for the instance's attribute value.
        """
        key = self.evaluate_attribute(instance)
        node = self._branches.get(key)
        if node is None:
            node = DecisionLeaf(self._context)
            self._branches[key] = node
            self._maximum_leaf = None
            logger.debug(
                "Branch created",
                attribute=describe_attribute(self._object_attribute),
                value=key,
                branch_count=len(self._branches),
            )
        return node

    def make_dirty(self) -> None:
        """Invalidate every branch, then this node's cached best leaf."""
        for node in self._branches.values():
            node.make_dirty()
        super().make_dirty()

    def labeled_children(self) -> tuple[tuple[str, DecisionNode], ...]:
        name = describe_attribute(self._object_attribute)
        return tuple((f"{name} == {key!r}", node) for key, node in self._branches.items())

    def replace_child(self, old: DecisionNode, new: DecisionNode) -> None:
        for key, node in self._branches.items():
            if node is old:
                self._check_context(new)
                self._branches[key] = new
                self._maximum_leaf = None
                return
        super().replace_child(old, new)

    def _recalc_maximum_leaf(self) -> DecisionLeaf | None:
        return self._best_leaf(self._branches.values())


class DecisionLeaf(DecisionNode):
    """Leaf that buffers instances and scores the best candidate split over them.

    The score is cached; `math.nan` marks the cache as dirty. `split_index` is
    the registry index of the attribute that produced the best score, or -1
    when no attribute produced a score above negative infinity.
    """

    def __init__(self, context: TreeContext) -> None:
        super().__init__(context)
        self._memory: list[Any] = []
        self._score = math.nan
        self._split_index = -1
        self._split_data = SplitData()

    def __repr__(self) -> str:
        score = "dirty" if self.is_dirty else f"{self._score:.4g}"
        return f"DecisionLeaf(instances={len(self._memory)}, score={score})"

    @property
    def is_leaf(self) -> bool:
        return True

    @property
    def is_dirty(self) -> bool:
        """bool: True when the cached score must be recalculated."""
        return math.isnan(self._score)

    @property
    def memory(self) -> tuple[Any, ...]:
        """tuple[Any, ...]: Snapshot of the buffered instances in insertion order."""
        return tuple(self._memory)

    @property
    def instance_count(self) -> int:
        """int: Number of buffered instances."""
        return len(self._memory)

    @property
    def split_index(self) -> int:
        """int: Registry index of the best attribute, or -1. Rescores a dirty leaf first."""
        self.expand_score()
        return self._split_index

    @property
    def split_data(self) -> SplitData:
        """SplitData: Metadata of the best attribute's split. Rescores a dirty leaf first."""
        self.expand_score()
        return self._split_data

    @property
    def split_attribute(self) -> ObjectAttribute[Any, Any] | None:
        """ObjectAttribute | None: The attribute at `split_index`, if any. Rescores a dirty leaf first."""
        return self._context.attribute_at(self.split_index)

    @property
    def has_valid_split(self) -> bool:
        """bool: True when some attribute scored above negative infinity."""
        return self.split_index >= 0

    def insert(self, instance: Any) -> None:
        """Buffer `instance` and mark this leaf dirty.

        Args:
            instance (Any): The instance to buffer.
        """
        self.make_dirty()
        self._memory.append(instance)

    def make_dirty(self) -> None:
        """Drop the cached score and split. The instance buffer is kept."""
        self._score = math.nan
        self._split_index = -1
        self._split_data.clear()

    def expand_score(self) -> float:
        """Return the best split score over the buffered instances.

        Returns:
            float: The cached score, recalculated first if the leaf is dirty.
                `-math.inf` when there is no valid split.
        """
        if self.is_dirty:
            self._score = self._calculate_score()
        return self._score

    def get_maximum_leaf(self) -> DecisionLeaf:
        return self

    def expand(self) -> DecisionNode:
        """Turn this leaf into an inode using its best split.

        Raises:
            InvalidSplitError: If the leaf has no valid split.
            UnsupportedOperationError: Always otherwise; split execution is not
                implemented.
        """
        if not self.has_valid_split:
            logger.warning(
                "Leaf expansion failed",
                reason="no valid split",
                instance_count=len(self._memory),
                attribute_count=self._context.attribute_count,
            )
            raise InvalidSplitError(len(self._memory), self._context.attribute_count)
        logger.warning(
            "Leaf expansion failed",
            reason="not supported",
            split_attribute=describe_attribute(self.split_attribute),
        )
        raise UnsupportedOperationError("DecisionLeaf.expand")

    def _calculate_score(self) -> float:
        """Score every registered attribute over the buffer and keep the best.

        An empty buffer has no split, so no attribute is asked to score it.

        Returns:
            float: The highest score, or `-math.inf` if none beat it.
        """
        instances = tuple(self._memory)
        max_score = -math.inf
        max_index = -1
        current = SplitData()
        attributes = self._context.attributes if instances else ()
        for index, attribute in enumerate(attributes):
            score = attribute.calculate_score(instances, current)
            if score > max_score:
                max_score = score
                max_index = index
                self._split_data.copy_from(current)
        self._split_index = max_index
        logger.log(
            RESCORE_LEVEL,
            "Leaf rescored",
            score=max_score,
            split_index=max_index,
            instance_count=len(instances),
        )
        return max_score


def iter_subtree(node: DecisionNode) -> Iterator[DecisionNode]:
    """Yield `node` and all of its descendants in depth-first, branch order.

    Args:
        node (DecisionNode): Root of the subtree.

    Yields:
        DecisionNode: Each node of the subtree, parents before children.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))
