# src/flowgen/core/dag/models.py
"""Types and exceptions for graph operations.

Leaf module: no intra-package imports.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

NodeID: TypeAlias = str


class GraphValidationError(ValueError):
    """Raised when a graph invariant is violated.

    Attributes:
        node_ids: Nodes implicated in the violation (input order)
        cycles: Cycles found, each as the ordered node ids forming it
    """

    def __init__(
        self,
        message: str,
        *,
        node_ids: tuple[NodeID, ...] = (),
        cycles: tuple[tuple[NodeID, ...], ...] = (),
    ) -> None:
        super().__init__(message)
        self.node_ids = node_ids
        self.cycles = cycles


@dataclass(frozen=True, slots=True)
class NodeInfo:
    """Information about a node in the flow graph.

    `node` is the validated document node handed to converters. `index` is
    the node's position in the input document and is the tie-break that
    keeps topological order deterministic.
    """

    node_id: NodeID
    node_type: str
    index: int
    label: str = ""
    category: str | None = None
    description: str | None = None
    node: Any = None

    def __post_init__(self) -> None:
        if not self.node_id:
            raise GraphValidationError("node_id must be non-empty")


@dataclass(frozen=True, slots=True)
class EdgeInfo:
    """A directed edge: `source` must be generated before `target`."""

    edge_id: str
    source: NodeID
    target: NodeID
    source_handle: str | None = None
    target_handle: str | None = None


@dataclass(frozen=True, slots=True)
class AdjacencyView:
    """Derived dependency maps. Recomputed on demand, never mutated.

    Attributes:
        dependencies: node -> nodes it depends on (sources of incoming edges)
        dependents: node -> nodes it feeds (targets of outgoing edges)
    """

    dependencies: Mapping[NodeID, frozenset[NodeID]] = field(default_factory=dict)
    dependents: Mapping[NodeID, frozenset[NodeID]] = field(default_factory=dict)
