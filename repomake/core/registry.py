# SPDX-License-Identifier: MIT
"""Registry of node kinds.

Each build-file entry names a kind (``gen_sh``, ``java_library``, ...).
The registry maps kinds to Node subclasses so new languages plug in
without touching the graph or the generators.

Example:
    @register_node_kind
    class ProtoLibraryNode(Node):
        kind = "proto_library"
        ...

    graph = graph_from_specs(config, [
        {"kind": "java_library", "dir": "java/acme", "name": "app",
         "java_sources": ["App.java"], "java_root": "."},
    ])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from repomake.core.errors import ConfigurationError
from repomake.core.graph import BuildGraph
from repomake.core.target import TargetInfo

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from repomake.core.config import BuildConfig
    from repomake.core.node import Node

logger = logging.getLogger(__name__)

N = TypeVar("N", bound="type[Node]")

_node_kinds: dict[str, type[Node]] = {}


def register_node_kind(cls: N) -> N:
    """Class decorator registering a Node subclass under its ``kind``.

    Raises:
        ConfigurationError: If another class already uses the kind.
    """
    existing = _node_kinds.get(cls.kind)
    if existing is not None and existing is not cls:
        raise ConfigurationError(
            f"node kind {cls.kind!r} is already registered by {existing.__name__}"
        )
    _node_kinds[cls.kind] = cls
    return cls


def get_node_kind(kind: str) -> type[Node]:
    """Look up a Node subclass by kind.

    Raises:
        ConfigurationError: If the kind is unknown.
    """
    # Built-in kinds register themselves on import.
    import repomake.nodes  # noqa: F401

    try:
        return _node_kinds[kind]
    except KeyError:
        raise ConfigurationError(f"unknown target kind {kind!r}") from None


def registered_kinds() -> list[str]:
    import repomake.nodes  # noqa: F401

    return sorted(_node_kinds)


def graph_from_specs(
    config: BuildConfig, specs: Iterable[Mapping[str, Any]]
) -> BuildGraph:
    """Build an unlinked BuildGraph from parsed build-file entries.

    Each entry must carry ``kind`` and ``name``; ``dir`` defaults to the
    project root. The remaining keys are the kind's fields.

    Args:
        config: Global configuration.
        specs: Entries handed over by the build-file parser.

    Returns:
        A graph ready for freeze().
    """
    graph = BuildGraph(config)
    for spec in specs:
        fields = dict(spec)
        kind = fields.pop("kind", None)
        name = fields.pop("name", None)
        if not isinstance(kind, str) or not isinstance(name, str):
            raise ConfigurationError(f"build entry needs 'kind' and 'name': {spec!r}")
        target = TargetInfo(fields.pop("dir", ""), name)
        node = get_node_kind(kind).from_fields(target, config, fields)
        logger.debug("Created %s %s", kind, target)
        graph.add(node)
    return graph
