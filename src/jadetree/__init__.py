"""jadetree: An incremental decision tree that scores candidate splits lazily."""

from loguru import logger

from jadetree.attributes import InstancePredicate, ObjectAttribute, SplitData
from jadetree.config import TreeSettings
from jadetree.logging import PACKAGE_NAME, enable_logging
from jadetree.models import Predicate, TreeSummary
from jadetree.nodes import (
    DecisionInode,
    DecisionLeaf,
    DecisionNode,
    EnumerableDecisionNode,
    PredicateDecisionNode,
)
from jadetree.scoring import NominalAttribute, NumericThresholdAttribute
from jadetree.tree import ClassificationTree

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the jadetree package by default

__all__ = [
    "ClassificationTree",
    "DecisionInode",
    "DecisionLeaf",
    "DecisionNode",
    "EnumerableDecisionNode",
    "InstancePredicate",
    "NominalAttribute",
    "NumericThresholdAttribute",
    "ObjectAttribute",
    "Predicate",
    "PredicateDecisionNode",
    "SplitData",
    "TreeSettings",
    "TreeSummary",
    "enable_logging",
]
