"""Incremental classification tree.

The tree buffers instances at its leaves and scores, for each leaf, the best
split any registered source attribute could make over that leaf's buffer.
`expand_score()` and `get_maximum_leaf()` answer which leaf anywhere in the
tree is the best candidate to grow next; both are served from per-node caches
that inserts and attribute-set changes invalidate.

Design Note:
    Nodes do not hold a reference to the tree. They share a read-only
    TreeContext exposing the attribute registry and settings, so the registry
    can be mutated only through the tree, which then invalidates every cache
    reachable from the root.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Any

import polars as pl
from loguru import logger

from jadetree.attributes import InstancePredicate, ObjectAttribute, describe_attribute
from jadetree.config import TreeSettings
from jadetree.context import TreeContext
from jadetree.exceptions import (
    AttributeNotRegisteredError,
    ForeignNodeError,
    InvalidSplitError,
    LeafNotFoundError,
)
from jadetree.models import LeafSummary, TreeSummary
from jadetree.nodes import (
    DecisionLeaf,
    DecisionNode,
    EnumerableDecisionNode,
    PredicateDecisionNode,
    iter_subtree,
)
from jadetree.polars_utils import iter_instances
from jadetree.registry import AttributeRegistry


class ClassificationTree:
    """A mutable decision tree grown incrementally from a stream of instances.

    Attributes are scored in registration order; on equal scores the earliest
    registered attribute wins.

    Examples:
        >>> from jadetree.scoring import NominalAttribute
        >>> color = NominalAttribute(column="color", target="label")
        >>> tree = ClassificationTree([color], target_attribute=NominalAttribute(column="label"))
        >>> tree.insert({"color": "red", "label": "yes"})
        >>> tree.insert({"color": "blue", "label": "no"})
        >>> round(tree.expand_score(), 4)
        0.6931
        >>> tree.get_maximum_leaf().split_attribute is color
        True
    """

    def __init__(
        self,
        source_attributes: Iterable[ObjectAttribute[Any, Any]] | None = None,
        *,
        target_attribute: ObjectAttribute[Any, Any] | None = None,
        settings: TreeSettings | None = None,
    ) -> None:
        """Initialize the tree with a single empty leaf as root.

        Args:
            source_attributes (Iterable[ObjectAttribute] | None): Attributes to
                register, in order. Defaults to None (no attributes).
            target_attribute (ObjectAttribute | None): The nominal label
                attribute. Defaults to None.
            settings (TreeSettings | None): Tree settings. Defaults to
                `TreeSettings()`, which reads `JADETREE_*` environment variables.
        """
        self._registry = AttributeRegistry(target_attribute=target_attribute)
        for attribute in source_attributes or ():
            self._registry.add(attribute)
        self._context = TreeContext(self._registry, settings or TreeSettings())
        self._root: DecisionNode = DecisionLeaf(self._context)

    def __repr__(self) -> str:
        names = ", ".join(describe_attribute(attribute) for attribute in self._registry)
        return f"ClassificationTree(attributes=[{names}], root={type(self._root).__name__})"

    @property
    def root(self) -> DecisionNode:
        """DecisionNode: The root node; never None."""
        return self._root

    @property
    def context(self) -> TreeContext:
        """TreeContext: The read-only handle shared by this tree's nodes."""
        return self._context

    @property
    def settings(self) -> TreeSettings:
        """TreeSettings: The settings this tree was created with."""
        return self._context.settings

    @property
    def source_attributes(self) -> tuple[ObjectAttribute[Any, Any], ...]:
        """tuple[ObjectAttribute, ...]: Registered source attributes in order."""
        return self._registry.attributes

    @property
    def target_attribute(self) -> ObjectAttribute[Any, Any] | None:
        """ObjectAttribute | None: The nominal label attribute."""
        return self._registry.target_attribute

    @target_attribute.setter
    def target_attribute(self, attribute: ObjectAttribute[Any, Any] | None) -> None:
        self._registry.target_attribute = attribute

    # ------------------------------------------------------------------
    # Attribute registry
    # ------------------------------------------------------------------

    def add_source_attribute(self, attribute: ObjectAttribute[Any, Any]) -> None:
        """Register a source attribute and invalidate every cached score.

        Args:
            attribute (ObjectAttribute): The attribute to append.
        """
        index = self._registry.add(attribute)
        self._root.make_dirty()
        logger.info(
            "Source attribute added",
            attribute=describe_attribute(attribute),
            index=index,
            attribute_count=len(self._registry),
        )

    def remove_source_attribute(self, attribute: ObjectAttribute[Any, Any]) -> None:
        """Unregister the first registration of a source attribute and invalidate every cached score.

        Args:
            attribute (ObjectAttribute): The attribute to remove.

        Raises:
            AttributeNotRegisteredError: If the attribute is not registered. The
                tree is left unchanged.
        """
        try:
            index = self._registry.remove(attribute)
        except AttributeNotRegisteredError:
            logger.warning(
                "Source attribute removal failed",
                attribute=describe_attribute(attribute),
                reason="not registered",
            )
            raise
        self._root.make_dirty()
        logger.info(
            "Source attribute removed",
            attribute=describe_attribute(attribute),
            index=index,
            attribute_count=len(self._registry),
        )

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def insert(self, instance: Any) -> None:
        """Route an instance to its leaf and buffer it there.

        Args:
            instance (Any): The instance to insert.
        """
        self._root.insert(instance)

    def insert_many(self, instances: Iterable[Any]) -> int:
        """Insert instances one by one, in order.

        Args:
            instances (Iterable[Any]): The instances to insert.

        Returns:
            int: Number of instances inserted.
        """
        count = 0
        for instance in instances:
            self._root.insert(instance)
            count += 1
        logger.debug("Instances inserted", count=count)
        return count

    def insert_frame(self, frame: pl.DataFrame | pl.LazyFrame, columns: Sequence[str] | None = None) -> int:
        """Insert every row of a Polars frame as a column-name to value dict.

        Args:
            frame (pl.DataFrame | pl.LazyFrame): The rows to insert.
            columns (Sequence[str] | None): Columns to keep in each instance.
                Defaults to None (all columns).

        Returns:
            int: Number of rows inserted.

        Raises:
            ColumnsNotFoundError: If any of `columns` is missing from the frame.
            DuplicateColumnsError: If `columns` contains duplicates.

        Examples:
            >>> tree = ClassificationTree()
            >>> tree.insert_frame(pl.DataFrame({"age": [31, 45], "label": ["a", "b"]}))
            2
        """
        return self.insert_many(iter_instances(frame, columns))

    def reduce_memory(self) -> None:
        """Drop every cached score and maximum leaf. Buffered instances are kept."""
        self._root.make_dirty()
        logger.debug("Tree caches cleared")

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def expand_score(self) -> float:
        """Return the highest split score of any leaf in the tree.

        Returns:
            float: The best expand score, `-math.inf` when no leaf has a valid split.
        """
        return self._root.expand_score()

    def get_maximum_leaf(self) -> DecisionLeaf | None:
        """Return the leaf with the highest expand score.

        Returns:
            DecisionLeaf | None: The best leaf; None only when the root is an
                enumerable node without branches.
        """
        return self._root.get_maximum_leaf()

    def expand(self) -> DecisionNode:
        """Expand the maximum leaf using its best split.

        Raises:
            InvalidSplitError: If the tree has no leaf with a valid split.
            UnsupportedOperationError: If it has one; split execution is not
                implemented.
        """
        leaf = self.get_maximum_leaf()
        if leaf is None:
            logger.warning("Tree expansion failed", reason="no leaf", attribute_count=len(self._registry))
            raise InvalidSplitError(0, len(self._registry))
        return leaf.expand()

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def new_leaf(self) -> DecisionLeaf:
        """Create an empty leaf bound to this tree.

        Returns:
            DecisionLeaf: A detached leaf, ready to be attached or grafted.
        """
        return DecisionLeaf(self._context)

    def new_predicate_node(
        self,
        predicate: InstancePredicate[Any],
        true_node: DecisionNode | None = None,
        false_node: DecisionNode | None = None,
    ) -> PredicateDecisionNode:
        """Create a binary predicate node bound to this tree.

        Args:
            predicate (InstancePredicate): The routing test.
            true_node (DecisionNode | None): Child for passing instances.
                Defaults to a new empty leaf.
            false_node (DecisionNode | None): Child for failing instances.
                Defaults to a new empty leaf.

        Returns:
            PredicateDecisionNode: A detached node.
        """
        return PredicateDecisionNode(self._context, predicate, true_node, false_node)

    def new_enumerable_node(self, attribute: ObjectAttribute[Any, Any]) -> EnumerableDecisionNode:
        """Create a multi-way node bound to this tree.

        Args:
            attribute (ObjectAttribute): The attribute whose values select a branch.

        Returns:
            EnumerableDecisionNode: A detached node without branches.
        """
        return EnumerableDecisionNode(self._context, attribute)

    def graft(self, leaf: DecisionLeaf, node: DecisionNode, *, reinsert: bool = True) -> int:
        """Replace a leaf of this tree with a node built by the caller.

        Every cache in the tree is invalidated afterwards. The tree is left
        unchanged when an error is raised.

        Args:
            leaf (DecisionLeaf): The leaf to replace.
            node (DecisionNode): The replacement, created through this tree's
                `new_*` factories and not yet attached.
            reinsert (bool): Whether to route the leaf's buffered instances
                through `node`. Defaults to True.

        Returns:
            int: Number of instances re-inserted.

        Raises:
            ForeignNodeError: If `node` was created for a different tree.
            ValueError: If `node` is already attached to this tree, or contains `leaf`.
            LeafNotFoundError: If `leaf` is not a leaf of this tree.
        """
        node_type = type(node).__name__
        if not isinstance(leaf, DecisionLeaf):
            logger.warning("Graft failed", reason="target is not a leaf", node_type=node_type)
            raise LeafNotFoundError(f"{type(leaf).__name__} is not a leaf")
        if node.context is not self._context:
            logger.warning("Graft failed", reason="foreign node", node_type=node_type)
            raise ForeignNodeError(f"{node_type} belongs to a different tree")
        if any(current is node for current in iter_subtree(self._root)):
            logger.warning("Graft failed", reason="node already attached", node_type=node_type)
            raise ValueError("Replacement node is already part of the tree")
        if any(current is leaf for current in iter_subtree(node)):
            logger.warning("Graft failed", reason="node contains leaf", node_type=node_type)
            raise ValueError("Replacement node must not contain the leaf it replaces")

        if leaf is self._root:
            self._root = node
        else:
            parent = self._find_parent(leaf)
            if parent is None:
                logger.warning("Graft failed", reason="leaf not found", node_type=node_type)
                raise LeafNotFoundError("Leaf is not part of this tree")
            parent.replace_child(leaf, node)
        self._root.make_dirty()

        count = 0
        if reinsert:
            for instance in leaf.memory:
                node.insert(instance)
                count += 1

        logger.info("Leaf grafted", node_type=node_type, reinserted=count)
        return count

    def nodes(self) -> Iterator[DecisionNode]:
        """Iterate over every node, parents before children, in branch order.

        Returns:
            Iterator[DecisionNode]: Depth-first iterator over the tree.
        """
        return iter_subtree(self._root)

    def leaves(self) -> Iterator[DecisionLeaf]:
        """Iterate over every leaf in depth-first branch order.

        Yields:
            DecisionLeaf: Each leaf of the tree.
        """
        for node in iter_subtree(self._root):
            if isinstance(node, DecisionLeaf):
                yield node

    def depth(self) -> int:
        """Return the number of edges on the longest root-to-leaf path.

        Returns:
            int: 0 for a tree that is a single leaf.
        """
        return max((len(path) for path, _ in self._leaf_paths()), default=0)

    def describe(self) -> TreeSummary:
        """Summarize the structure and current scores of the tree.

        Scores every dirty leaf as a side effect.

        Returns:
            TreeSummary: Counts, scores and one LeafSummary per leaf.
        """
        maximum_leaf = self.get_maximum_leaf()
        leaf_paths = self._leaf_paths()
        leaf_summaries = [
            LeafSummary(
                path=path,
                instance_count=leaf.instance_count,
                expand_score=leaf.expand_score(),
                split_index=leaf.split_index,
                split_attribute=(
                    describe_attribute(leaf.split_attribute) if leaf.split_attribute is not None else None
                ),
                is_maximum=leaf is maximum_leaf,
            )
            for path, leaf in leaf_paths
        ]
        target = self._registry.target_attribute
        return TreeSummary(
            attributes=[describe_attribute(attribute) for attribute in self._registry],
            target_attribute=describe_attribute(target) if target is not None else None,
            node_count=sum(1 for _ in iter_subtree(self._root)),
            leaf_count=len(leaf_summaries),
            depth=max((len(path) for path, _ in leaf_paths), default=0),
            instance_count=sum(summary.instance_count for summary in leaf_summaries),
            expand_score=self.expand_score(),
            leaves=leaf_summaries,
        )

    def _leaf_paths(self) -> list[tuple[list[str], DecisionLeaf]]:
        """Collect every leaf with the branch labels leading to it.

        Returns:
            list[tuple[list[str], DecisionLeaf]]: `(path, leaf)` pairs in depth-first order.
        """
        result: list[tuple[list[str], DecisionLeaf]] = []
        stack: list[tuple[list[str], DecisionNode]] = [([], self._root)]
        while stack:
            path, node = stack.pop()
            if isinstance(node, DecisionLeaf):
                result.append((path, node))
                continue
            for label, child in reversed(node.labeled_children()):
                stack.append(([*path, label], child))
        return result

    def _find_parent(self, target: DecisionNode) -> DecisionNode | None:
        for node in iter_subtree(self._root):
            if any(child is target for child in node.children()):
                return node
        return None
