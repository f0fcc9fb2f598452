# src/flowgen/core/dag/analysis.py
"""Structural analysis of a FlowGraph.

The analysis doubles as the generation gate: cycles and dangling edges
make a graph unsuitable for dependency-ordered assembly, and orphans make
it invalid unless the caller opts into generating them anyway.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Final

import networkx as nx

from flowgen.contracts.enums import Complexity
from flowgen.core.dag.graph import FlowGraph
from flowgen.core.dag.models import NodeID
from flowgen.core.logging import get_logger

logger = get_logger(__name__)

# Strictly-greater-than thresholds
COMPLEX_NODE_THRESHOLD: Final = 20
COMPLEX_EDGE_THRESHOLD: Final = 30
MEDIUM_NODE_THRESHOLD: Final = 8
MEDIUM_EDGE_THRESHOLD: Final = 12


def classify_complexity(node_count: int, edge_count: int) -> Complexity:
    """Bucket a graph by size. Diagnostic only; never blocks generation."""
    if node_count > COMPLEX_NODE_THRESHOLD or edge_count > COMPLEX_EDGE_THRESHOLD:
        return Complexity.COMPLEX
    if node_count > MEDIUM_NODE_THRESHOLD or edge_count > MEDIUM_EDGE_THRESHOLD:
        return Complexity.MEDIUM
    return Complexity.SIMPLE


@dataclass(frozen=True, slots=True)
class GraphAnalysis:
    """Result of analyzing one graph.

    All node-id sequences are in input order, except `cycles` (discovery
    order, each cycle starting at the node the back-edge returned to),
    `critical_path` and each of `parallel_chains` (path order).
    """

    node_count: int
    edge_count: int
    complexity: Complexity
    entry_points: tuple[NodeID, ...] = ()
    exit_points: tuple[NodeID, ...] = ()
    orphaned_nodes: tuple[NodeID, ...] = ()
    cycles: tuple[tuple[NodeID, ...], ...] = ()
    dangling_edges: tuple[str, ...] = ()
    bottlenecks: tuple[NodeID, ...] = ()
    critical_path: tuple[NodeID, ...] = ()
    parallel_chains: tuple[tuple[NodeID, ...], ...] = ()
    max_depth: int = 0
    average_degree: float = 0.0
    node_types: dict[str, int] = field(default_factory=dict)
    categories: dict[str, int] = field(default_factory=dict)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def can_assemble(self) -> bool:
        """Whether a total dependency order exists over every edge."""
        return not self.cycles and not self.dangling_edges

    @property
    def is_valid(self) -> bool:
        """No cycles, no orphans, no dangling edges."""
        return self.can_assemble and not self.orphaned_nodes

    def cycle_nodes(self) -> tuple[NodeID, ...]:
        """Every node on at least one reported cycle, first-seen order."""
        return tuple(dict.fromkeys(node for cycle in self.cycles for node in cycle))


class GraphAnalyzer:
    """Computes GraphAnalysis for a FlowGraph.

    Stateless; one instance can analyze any number of graphs.
    """

    def analyze(self, graph: FlowGraph) -> GraphAnalysis:
        node_ids = graph.node_ids()
        entry_points = tuple(n for n in node_ids if graph.in_degree(n) == 0)
        exit_points = tuple(n for n in node_ids if graph.out_degree(n) == 0)
        orphaned = tuple(n for n in entry_points if graph.out_degree(n) == 0)
        cycles = tuple(find_cycles(graph))
        if cycles:
            logger.warning("graph_cycle_detected", cycle_count=len(cycles), cycles=[list(c) for c in cycles])

        nodes = graph.get_nodes()
        node_types = dict(Counter(info.node_type for info in nodes))
        categories = dict(Counter(info.category for info in nodes if info.category))

        return GraphAnalysis(
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            complexity=classify_complexity(graph.node_count, graph.edge_count),
            entry_points=entry_points,
            exit_points=exit_points,
            orphaned_nodes=orphaned,
            cycles=cycles,
            dangling_edges=tuple(edge.edge_id for edge in graph.dangling_edges),
            bottlenecks=tuple(n for n in node_ids if graph.in_degree(n) > 1 or graph.out_degree(n) > 1),
            critical_path=tuple(critical_path(graph)) if not cycles else (),
            parallel_chains=tuple(parallel_chains(graph)),
            max_depth=max_depth(graph),
            average_degree=(graph.edge_count * 2) / max(graph.node_count, 1),
            node_types=node_types,
            categories=categories,
        )


def find_cycles(graph: FlowGraph) -> Iterator[tuple[NodeID, ...]]:
    """Yield every cycle closed by a DFS back-edge.

    Traversal starts from each unvisited node in input order and follows
    successors in input edge order. Each cycle is the DFS path from the
    back-edge target to the node that closed it; a self-loop yields a
    one-node cycle. Iterative, so deep chains do not hit the recursion limit.
    """
    successors = graph.successors_in_order()
    visited: set[NodeID] = set()
    seen: set[tuple[NodeID, ...]] = set()

    for start in graph.node_ids():
        if start in visited:
            continue
        path: list[NodeID] = [start]
        on_stack: dict[NodeID, int] = {start: 0}
        stack: list[Iterator[NodeID]] = [iter(successors[start])]
        visited.add(start)

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                del on_stack[path.pop()]
                continue
            if nxt in on_stack:
                cycle = tuple(path[on_stack[nxt] :])
                if cycle not in seen:
                    seen.add(cycle)
                    yield cycle
            elif nxt not in visited:
                visited.add(nxt)
                on_stack[nxt] = len(path)
                path.append(nxt)
                stack.append(iter(successors[nxt]))


def _simple_digraph(graph: FlowGraph) -> nx.DiGraph[str]:
    """Collapse parallel edges; nodes inserted in input order."""
    simple: nx.DiGraph[str] = nx.DiGraph()
    simple.add_nodes_from(graph.node_ids())
    for edge in graph.get_edges():
        if graph.has_node(edge.source) and graph.has_node(edge.target):
            simple.add_edge(edge.source, edge.target)
    return simple


def max_depth(graph: FlowGraph) -> int:
    """Longest edge path, counted in edges.

    On a cyclic graph each strongly connected component counts as one
    step, so the depth stays finite.
    """
    simple = _simple_digraph(graph)
    if simple.number_of_nodes() == 0:
        return 0
    if nx.is_directed_acyclic_graph(simple):
        return int(nx.dag_longest_path_length(simple))
    return int(nx.dag_longest_path_length(nx.condensation(simple)))


def critical_path(graph: FlowGraph) -> list[NodeID]:
    """Longest entry-to-exit path of an acyclic graph, ties broken by input order.

    Raises:
        GraphValidationError: If the graph has a cycle
    """
    simple = _simple_digraph(graph)
    if simple.number_of_nodes() == 0:
        return []
    return list(nx.dag_longest_path(simple, topo_order=graph.topological_order()))


def find_path(graph: FlowGraph, start: NodeID, end: NodeID) -> list[NodeID] | None:
    """Shortest directed path from start to end, or None when unreachable.

    A node reaches itself with a one-node path. Unknown ids yield None.
    """
    if not (graph.has_node(start) and graph.has_node(end)):
        return None
    try:
        return list(nx.shortest_path(_simple_digraph(graph), start, end))
    except nx.NetworkXNoPath:
        return None


def parallel_chains(graph: FlowGraph) -> list[tuple[NodeID, ...]]:
    """Linear runs of two or more nodes that share no node with each other.

    A chain starts at the first unclaimed node in input order and extends
    while the current node has exactly one outgoing edge to an unclaimed
    node. Several chains in one graph are independent work that could run
    side by side.
    """
    claimed: set[NodeID] = set()
    chains: list[tuple[NodeID, ...]] = []
    for start in graph.node_ids():
        if start in claimed:
            continue
        chain: list[NodeID] = []
        current: NodeID | None = start
        while current is not None and current not in claimed:
            claimed.add(current)
            chain.append(current)
            successors = graph.dependents(current)
            current = successors[0] if graph.out_degree(current) == 1 else None
        if len(chain) > 1:
            chains.append(tuple(chain))
    return chains


def dependency_closure(graph: FlowGraph, node_ids: Iterable[NodeID]) -> set[NodeID]:
    """node_ids plus every node they transitively depend on."""
    closure: set[NodeID] = set()
    queue = [n for n in node_ids if graph.has_node(n)]
    while queue:
        node_id = queue.pop()
        if node_id in closure:
            continue
        closure.add(node_id)
        queue.extend(graph.dependencies(node_id))
    return closure


def extract_subgraph(
    graph: FlowGraph,
    node_ids: Iterable[NodeID],
    *,
    include_dependencies: bool = False,
) -> FlowGraph:
    """New graph of the named nodes and the edges between them.

    Unknown ids are ignored. With include_dependencies, every transitive
    dependency of the named nodes is pulled in too.
    """
    wanted = list(node_ids)
    keep = dependency_closure(graph, wanted) if include_dependencies else {n for n in wanted if graph.has_node(n)}
    return graph.subgraph(keep)
