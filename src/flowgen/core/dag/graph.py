# src/flowgen/core/dag/graph.py
"""FlowGraph: in-memory graph model with query and ordering operations.

Built once per parse call from a validated document. Edges whose endpoints
are missing are kept aside as dangling rather than dropped, so the analyzer
and the assembler can report them instead of silently mis-ordering.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, cast

import networkx as nx
from networkx import MultiDiGraph

from flowgen.core.dag.models import (
    AdjacencyView,
    EdgeInfo,
    GraphValidationError,
    NodeID,
    NodeInfo,
)

if TYPE_CHECKING:
    from flowgen.core.schema import AnyFlowDocument


class FlowGraph:
    """Flow graph for code-fragment assembly.

    Wraps NetworkX MultiDiGraph with domain-specific operations.
    Uses MultiDiGraph because editors allow several edges between the same
    node pair (one per port).
    """

    def __init__(self, name: str | None = None) -> None:
        self._graph: MultiDiGraph[str] = nx.MultiDiGraph()
        self._node_order: list[NodeID] = []
        self._edges: list[EdgeInfo] = []
        self._dangling: list[EdgeInfo] = []
        self.name = name

    @classmethod
    def from_document(cls, document: AnyFlowDocument) -> FlowGraph:
        """Build a graph from a schema-valid document.

        Raises:
            GraphValidationError: If node ids are duplicated
        """
        graph = cls(name=document.name)
        for node in document.nodes:
            graph.add_node(
                node.id,
                node_type=node.converter_type,
                label=node.label,
                category=node.category,
                description=node.description,
                node=node,
            )
        for edge in document.edges:
            graph.add_edge(
                edge.source,
                edge.target,
                edge_id=edge.key,
                source_handle=edge.source_handle,
                target_handle=edge.target_handle,
            )
        return graph

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of input edges, dangling ones included."""
        return len(self._edges)

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return self._graph.has_node(node_id)

    def get_nx_graph(self) -> MultiDiGraph[str]:
        """Return a frozen copy of the underlying NetworkX graph.

        Dangling edges are not part of it.
        """
        return nx.freeze(self._graph.copy())  # type: ignore[no-any-return]

    def add_node(
        self,
        node_id: str,
        *,
        node_type: str,
        label: str = "",
        category: str | None = None,
        description: str | None = None,
        node: Any = None,
    ) -> None:
        """Add a node to the graph.

        Args:
            node_id: Unique node identifier
            node_type: Converter type tag
            label: Display label
            category: Editor category
            description: Editor description
            node: Validated document node handed to converters

        Raises:
            GraphValidationError: If node_id is empty or already present
        """
        if self._graph.has_node(node_id):
            raise GraphValidationError(f"Duplicate node id: '{node_id}'", node_ids=(node_id,))
        info = NodeInfo(
            node_id=node_id,
            node_type=node_type,
            index=len(self._node_order),
            label=label,
            category=category,
            description=description,
            node=node,
        )
        self._graph.add_node(node_id, info=info)
        self._node_order.append(node_id)

    def add_edge(
        self,
        source: str,
        target: str,
        *,
        edge_id: str | None = None,
        source_handle: str | None = None,
        target_handle: str | None = None,
    ) -> None:
        """Add an edge meaning "target depends on source".

        An edge naming a node that does not exist is recorded as dangling
        and kept out of the adjacency.
        """
        edge = EdgeInfo(
            edge_id=edge_id or f"{source}->{target}",
            source=source,
            target=target,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        self._edges.append(edge)
        if not (self._graph.has_node(source) and self._graph.has_node(target)):
            self._dangling.append(edge)
            return
        self._graph.add_edge(source, target, info=edge)

    def node_ids(self) -> list[NodeID]:
        """Node ids in input order."""
        return list(self._node_order)

    def get_node_info(self, node_id: str) -> NodeInfo:
        """Get NodeInfo for a node.

        Raises:
            KeyError: If node doesn't exist
        """
        if not self._graph.has_node(node_id):
            raise KeyError(f"Node not found: {node_id}")
        return cast(NodeInfo, self._graph.nodes[node_id]["info"])

    def get_nodes(self) -> list[NodeInfo]:
        """All nodes in input order."""
        return [self.get_node_info(node_id) for node_id in self._node_order]

    def get_edges(self) -> list[EdgeInfo]:
        """All input edges in input order, dangling ones included."""
        return list(self._edges)

    @property
    def dangling_edges(self) -> list[EdgeInfo]:
        """Edges whose source or target is not a node of this graph."""
        return list(self._dangling)

    def in_degree(self, node_id: str) -> int:
        return cast(int, self._graph.in_degree(node_id))

    def out_degree(self, node_id: str) -> int:
        return cast(int, self._graph.out_degree(node_id))

    def dependencies(self, node_id: str) -> list[NodeID]:
        """Distinct nodes node_id depends on, in input order."""
        preds = set(self._graph.predecessors(node_id))
        return [n for n in self._node_order if n in preds]

    def dependents(self, node_id: str) -> list[NodeID]:
        """Distinct nodes fed by node_id, in input order."""
        succs = set(self._graph.successors(node_id))
        return [n for n in self._node_order if n in succs]

    def adjacency(self) -> AdjacencyView:
        """Compute a fresh, read-only adjacency view."""
        return AdjacencyView(
            dependencies=MappingProxyType({n: frozenset(self._graph.predecessors(n)) for n in self._node_order}),
            dependents=MappingProxyType({n: frozenset(self._graph.successors(n)) for n in self._node_order}),
        )

    def successors_in_order(self) -> dict[NodeID, list[NodeID]]:
        """node -> distinct successors, ordered by the first input edge reaching each."""
        successors: dict[NodeID, list[NodeID]] = {n: [] for n in self._node_order}
        seen: set[tuple[NodeID, NodeID]] = set()
        for edge in self._edges:
            if edge in self._dangling:
                continue
            pair = (edge.source, edge.target)
            if pair not in seen:
                seen.add(pair)
                successors[edge.source].append(edge.target)
        return successors

    def topological_order(self) -> list[NodeID]:
        """Return nodes in dependency order (Kahn's algorithm).

        Among nodes whose dependencies are all placed, the one earliest in
        the input document goes first, so identical input always yields
        identical order.

        Returns:
            List of node IDs; every edge's source precedes its target

        Raises:
            GraphValidationError: If a cycle leaves nodes unsorted; carries
                the unsorted node ids in input order
        """
        in_degree: dict[NodeID, int] = {n: self.in_degree(n) for n in self._node_order}
        index = {n: i for i, n in enumerate(self._node_order)}
        ready = [(index[n], n) for n in self._node_order if in_degree[n] == 0]
        heapq.heapify(ready)

        order: list[NodeID] = []
        while ready:
            _, node_id = heapq.heappop(ready)
            order.append(node_id)
            # One decrement per edge; parallel edges were counted in in_degree
            for _, target in self._graph.out_edges(node_id):
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    heapq.heappush(ready, (index[target], target))

        if len(order) != len(self._node_order):
            placed = set(order)
            remaining = tuple(n for n in self._node_order if n not in placed)
            raise GraphValidationError(
                f"Cannot sort graph: {len(remaining)} node(s) remain in or behind a cycle: {', '.join(remaining)}",
                node_ids=remaining,
            )
        return order

    def subgraph(self, node_ids: Iterable[str]) -> FlowGraph:
        """New graph holding node_ids (input order kept) and the edges among them."""
        keep = set(node_ids)
        sub = FlowGraph(name=self.name)
        for info in self.get_nodes():
            if info.node_id in keep:
                sub.add_node(
                    info.node_id,
                    node_type=info.node_type,
                    label=info.label,
                    category=info.category,
                    description=info.description,
                    node=info.node,
                )
        for edge in self._edges:
            if edge.source in keep and edge.target in keep:
                sub.add_edge(
                    edge.source,
                    edge.target,
                    edge_id=edge.edge_id,
                    source_handle=edge.source_handle,
                    target_handle=edge.target_handle,
                )
        return sub
