# src/flowgen/engine/assembler.py
"""FragmentAssembler: dependency-ordered code-fragment assembly.

For each node in topological order, the registered converter produces
fragments. Final sequence:

    topological position of the producing node
      -> fragment kind (import < declaration < setup < initialization < postInit)
        -> fragment `order`
          -> emission index within the converter's output

Preconditions are checked, not assumed: a graph with cycles or dangling
edges yields a failed AssemblyResult with no fragments. Per-node problems
(unregistered type, converter exception) are recorded and the remaining
nodes still convert.
"""

from __future__ import annotations

from typing import TypeAlias

from flowgen.contracts.enums import ErrorKind, WarningKind
from flowgen.contracts.errors import ParseError, ParseWarning
from flowgen.contracts.fragments import CodeFragment, GenerationContext
from flowgen.contracts.results import AssemblyResult
from flowgen.core.dag.analysis import GraphAnalysis, GraphAnalyzer
from flowgen.core.dag.graph import FlowGraph
from flowgen.core.dag.models import GraphValidationError, NodeID, NodeInfo
from flowgen.core.logging import get_logger
from flowgen.engine.dedup import merge_imports
from flowgen.registry.manager import ConverterRegistry, is_deprecated, replacement_for

logger = get_logger(__name__)

_SortKey: TypeAlias = tuple[int, int, int, int]


def precondition_errors(analysis: GraphAnalysis) -> list[ParseError]:
    """Structure errors for every cycle and every dangling edge."""
    errors: list[ParseError] = []
    for cycle in analysis.cycles:
        loop = " -> ".join((*cycle, cycle[0]))
        errors.append(
            ParseError(
                kind=ErrorKind.STRUCTURE,
                message=f"Cycle detected: {loop}",
                code="cycle_detected",
                suggestion="Remove one of the edges in the cycle so nodes can be generated in dependency order",
                node_id=cycle[0],
            )
        )
    for edge_id in analysis.dangling_edges:
        errors.append(
            ParseError(
                kind=ErrorKind.STRUCTURE,
                message=f"Edge '{edge_id}' references a node that does not exist",
                code="dangling_edge",
                suggestion="Remove the edge or add the missing node",
            )
        )
    return errors


class FragmentAssembler:
    """Drives the converter registry over a graph in dependency order.

    Stateless between calls: every assemble() works on a fresh copy of the
    context, so one assembler can serve any number of graphs.
    """

    def __init__(self, registry: ConverterRegistry, analyzer: GraphAnalyzer | None = None) -> None:
        self._registry = registry
        self._analyzer = analyzer or GraphAnalyzer()

    @property
    def registry(self) -> ConverterRegistry:
        return self._registry

    def order(self, graph: FlowGraph) -> list[NodeID]:
        """Topological order, ties broken by input position.

        Raises:
            GraphValidationError: If nodes remain unsorted (a cycle exists)
        """
        return graph.topological_order()

    def assemble(
        self,
        graph: FlowGraph,
        context: GenerationContext | None = None,
        *,
        analysis: GraphAnalysis | None = None,
    ) -> AssemblyResult:
        """Convert every node and return the ordered, deduplicated fragments.

        Args:
            graph: Graph to convert
            context: Generation settings; flow_state is reset for this call
            analysis: Precomputed analysis of graph, to skip re-analysis

        Returns:
            AssemblyResult; never raises for problems in the graph
        """
        context = (context or GenerationContext()).fresh()
        analysis = analysis or self._analyzer.analyze(graph)
        total = graph.node_count

        errors = precondition_errors(analysis)
        if errors:
            logger.warning(
                "assembly_aborted",
                cycle_count=len(analysis.cycles),
                dangling_edge_count=len(analysis.dangling_edges),
            )
            return AssemblyResult(success=False, errors=tuple(errors), total_nodes=total)

        try:
            order = self.order(graph)
        except GraphValidationError as e:
            # Only reachable with an analysis computed for a different graph
            return AssemblyResult(
                success=False,
                errors=(
                    ParseError(
                        kind=ErrorKind.STRUCTURE,
                        message=str(e),
                        code="cycle_detected",
                        suggestion="Remove the cyclic dependency between these nodes",
                        node_id=e.node_ids[0] if e.node_ids else None,
                    ),
                ),
                total_nodes=total,
            )

        keyed: list[tuple[_SortKey, CodeFragment]] = []
        dependencies: set[str] = set()
        warnings: list[ParseWarning] = []
        converted = 0

        for position, node_id in enumerate(order):
            info = graph.get_node_info(node_id)
            converter = self._registry.resolve(info.node_type)
            if converter is None:
                logger.warning("converter_missing", node_id=node_id, node_type=info.node_type)
                errors.append(
                    ParseError(
                        kind=ErrorKind.STRUCTURE,
                        message=f"No converter registered for node type '{info.node_type}' (node {node_id})",
                        path=f"nodes.{info.index}",
                        code="converter_missing",
                        suggestion="Register a converter for this node type or remove the node",
                        node_id=node_id,
                    )
                )
                continue

            if is_deprecated(converter):
                warnings.append(_deprecation_warning(info, replacement_for(converter)))

            try:
                fragments = list(converter.convert(info, context))
                node_dependencies = list(converter.get_dependencies(info, context))
            except Exception as e:
                logger.exception("converter_failed", node_id=node_id, node_type=info.node_type, error_type=type(e).__name__)
                errors.append(
                    ParseError(
                        kind=ErrorKind.STRUCTURE,
                        message=f"Converter for '{info.node_type}' failed on node {node_id}: {e}",
                        path=f"nodes.{info.index}",
                        code="converter_failed",
                        suggestion="Check the node's inputs; the converter rejected them",
                        node_id=node_id,
                    )
                )
                continue

            converted += 1
            dependencies.update(node_dependencies)
            for emitted, fragment in enumerate(fragments):
                if fragment.source_node_id is None:
                    fragment = fragment.with_source(node_id)
                dependencies.update(fragment.dependencies)
                keyed.append(((position, fragment.kind.rank, fragment.order, emitted), fragment))

        keyed.sort(key=lambda item: item[0])
        fragments, merged = merge_imports(fragment for _, fragment in keyed)
        if merged:
            logger.debug("import_fragments_merged", merged=merged)

        logger.info(
            "assembly_completed",
            converted_nodes=converted,
            total_nodes=total,
            fragment_count=len(fragments),
            error_count=len(errors),
        )
        return AssemblyResult(
            success=not errors,
            fragments=tuple(fragments),
            dependencies=tuple(sorted(dependencies)),
            order=tuple(order),
            errors=tuple(errors),
            warnings=tuple(warnings),
            converted_nodes=converted,
            total_nodes=total,
            merged_imports=merged,
        )


def _deprecation_warning(info: NodeInfo, replacement: str | None) -> ParseWarning:
    message = f"Converter for '{info.node_type}' is deprecated"
    suggestion = f"Use '{replacement}' instead" if replacement else "Consider upgrading to newer node types"
    logger.warning("converter_deprecated", node_id=info.node_id, node_type=info.node_type, replacement=replacement)
    return ParseWarning(
        kind=WarningKind.DEPRECATED,
        message=f"{message} (node {info.node_id})",
        path=f"nodes.{info.index}",
        suggestion=suggestion,
    )
