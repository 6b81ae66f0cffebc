# SPDX-License-Identifier: MIT
"""Core target graph, aggregation engine and rule emission."""

from repomake.core.component import ComponentHelper, strip_special_dirs
from repomake.core.config import BuildConfig
from repomake.core.errors import (
    ConfigurationError,
    DependencyCycleError,
    DuplicateOutputError,
    DuplicateRuleError,
    GenerateError,
    GraphError,
    InvalidSourceError,
    RepomakeError,
    RuleError,
)
from repomake.core.graph import BuildGraph
from repomake.core.makefile import Makefile, Rule
from repomake.core.node import Node
from repomake.core.registry import graph_from_specs, register_node_kind
from repomake.core.resource import Resource, ResourceFileSet, ResourceRoot
from repomake.core.target import TargetInfo
from repomake.core.types import DependencyCollectionType, LanguageType

__all__ = [
    "BuildConfig",
    "BuildGraph",
    "ComponentHelper",
    "ConfigurationError",
    "DependencyCollectionType",
    "DependencyCycleError",
    "DuplicateOutputError",
    "DuplicateRuleError",
    "GenerateError",
    "GraphError",
    "InvalidSourceError",
    "LanguageType",
    "Makefile",
    "Node",
    "RepomakeError",
    "Resource",
    "ResourceFileSet",
    "ResourceRoot",
    "Rule",
    "RuleError",
    "TargetInfo",
    "graph_from_specs",
    "register_node_kind",
    "strip_special_dirs",
]
