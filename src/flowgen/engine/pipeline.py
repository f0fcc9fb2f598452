# src/flowgen/engine/pipeline.py
"""ConversionPipeline: parse, analyze, gate, assemble.

The analyzer is the generation gate: no converter runs for a graph with
cycles, dangling edges, or (unless allow_orphans is set) orphaned nodes.
Every entry point returns a ConversionResult; nothing in the input makes
the pipeline raise.
"""

from __future__ import annotations

import time
from pathlib import Path

from flowgen.contracts.enums import Complexity, ErrorKind, WarningKind
from flowgen.contracts.errors import ParseError, ParseWarning
from flowgen.contracts.results import ConversionMetadata, ConversionResult, ParseResult
from flowgen.core.config import FlowgenSettings
from flowgen.core.dag.analysis import GraphAnalysis, GraphAnalyzer
from flowgen.core.dag.graph import FlowGraph
from flowgen.core.dag.models import GraphValidationError
from flowgen.core.logging import get_logger
from flowgen.core.parser import FlowParser
from flowgen.core.schema import AnyFlowDocument
from flowgen.engine.assembler import FragmentAssembler, precondition_errors
from flowgen.registry.manager import ConverterRegistry

logger = get_logger(__name__)


class ConversionPipeline:
    """End-to-end conversion of one flow document into ordered fragments.

    Usage:
        pipeline = ConversionPipeline(registry, load_settings(Path("settings.yaml")))
        result = pipeline.convert_file(Path("flow.json"))
        for fragment in result.assembly.fragments:
            ...
    """

    def __init__(self, registry: ConverterRegistry, settings: FlowgenSettings | None = None) -> None:
        self._settings = settings or FlowgenSettings()
        self._registry = registry
        self._parser = FlowParser(self._settings.parser)
        self._analyzer = GraphAnalyzer()
        self._assembler = FragmentAssembler(registry, self._analyzer)

    @property
    def settings(self) -> FlowgenSettings:
        return self._settings

    @property
    def parser(self) -> FlowParser:
        return self._parser

    def convert_string(self, text: str) -> ConversionResult:
        started = time.perf_counter()
        return self._convert(self._parser.parse_string(text), started)

    def convert_bytes(self, data: bytes) -> ConversionResult:
        started = time.perf_counter()
        return self._convert(self._parser.parse_bytes(data), started)

    def convert_file(self, path: Path | str) -> ConversionResult:
        started = time.perf_counter()
        return self._convert(self._parser.parse_file(path), started)

    async def convert_url(self, url: str) -> ConversionResult:
        started = time.perf_counter()
        parse = await self._parser.parse_url(url)
        return self._convert(parse, started)

    def supported_types(self, document: AnyFlowDocument) -> list[str]:
        """Distinct converter types in document that the registry resolves, sorted."""
        return sorted({node.converter_type for node in document.nodes if self._registry.has_converter(node.converter_type)})

    def unsupported_types(self, document: AnyFlowDocument) -> list[str]:
        """Distinct converter types in document with no converter, sorted."""
        return sorted({node.converter_type for node in document.nodes if not self._registry.has_converter(node.converter_type)})

    def _convert(self, parse: ParseResult, started: float) -> ConversionResult:
        if not parse.success or parse.document is None:
            return self._finish(ConversionResult(success=False, parse=parse, errors=parse.errors, warnings=parse.warnings), started)

        try:
            graph = FlowGraph.from_document(parse.document)
        except GraphValidationError as e:
            error = ParseError(
                kind=ErrorKind.STRUCTURE,
                message=str(e),
                code="duplicate_node_id",
                suggestion="Give every node a unique id",
                node_id=e.node_ids[0] if e.node_ids else None,
            )
            return self._finish(ConversionResult(success=False, parse=parse, errors=(error,), warnings=parse.warnings), started)

        analysis = self._analyzer.analyze(graph)
        gate_errors, gate_warnings = self._gate(analysis)
        warnings = (*parse.warnings, *gate_warnings)
        if gate_errors:
            logger.info("generation_blocked", error_count=len(gate_errors))
            result = ConversionResult(success=False, parse=parse, analysis=analysis, errors=tuple(gate_errors), warnings=warnings)
            return self._finish(result, started)

        assembly = self._assembler.assemble(graph, self._settings.generation.to_context(), analysis=analysis)
        result = ConversionResult(
            success=assembly.success,
            parse=parse,
            analysis=analysis,
            assembly=assembly,
            errors=assembly.errors,
            warnings=(*warnings, *assembly.warnings),
        )
        return self._finish(result, started)

    def _gate(self, analysis: GraphAnalysis) -> tuple[list[ParseError], list[ParseWarning]]:
        """Errors that block generation, plus orphan and parallelization warnings."""
        errors = precondition_errors(analysis)
        warnings: list[ParseWarning] = []
        for node_id in analysis.orphaned_nodes:
            message = f"Node {node_id} has no connections"
            if self._settings.generation.allow_orphans:
                warnings.append(
                    ParseWarning(
                        kind=WarningKind.BEST_PRACTICE,
                        message=message,
                        suggestion="Connect the node or remove it from the flow",
                    )
                )
            else:
                errors.append(
                    ParseError(
                        kind=ErrorKind.STRUCTURE,
                        message=f"{message}; its position in execution order is undefined",
                        code="orphaned_node",
                        suggestion="Connect the node, remove it, or set generation.allow_orphans",
                        node_id=node_id,
                    )
                )
        if analysis.complexity == Complexity.COMPLEX and len(analysis.parallel_chains) > 1:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.PERFORMANCE,
                    message=f"Flow has {len(analysis.parallel_chains)} independent chains",
                    suggestion="Consider parallelizing independent chains for better performance",
                )
            )
        return errors, warnings

    def _finish(self, result: ConversionResult, started: float) -> ConversionResult:
        parse_meta = result.parse.metadata
        assembly = result.assembly
        metadata = ConversionMetadata(
            node_count=parse_meta.node_count,
            edge_count=parse_meta.edge_count,
            dialect=parse_meta.dialect,
            complexity=parse_meta.complexity,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
            coverage=assembly.coverage if assembly is not None else 0.0,
        )
        logger.info(
            "pipeline_completed",
            success=result.success,
            source_type=str(parse_meta.source_type),
            node_count=metadata.node_count,
            coverage=metadata.coverage,
            error_count=len(result.errors),
            elapsed_ms=round(metadata.elapsed_ms, 3),
        )
        return ConversionResult(
            success=result.success,
            parse=result.parse,
            analysis=result.analysis,
            assembly=result.assembly,
            errors=result.errors,
            warnings=result.warnings,
            metadata=metadata,
        )
