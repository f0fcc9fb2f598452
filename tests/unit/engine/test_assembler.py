# tests/unit/engine/test_assembler.py
"""Tests for dependency-ordered fragment assembly."""

from __future__ import annotations

import pytest

from flowgen.contracts import CodeFragment, ErrorKind, FragmentKind, GenerationContext, WarningKind
from flowgen.core.dag import FlowGraph, GraphAnalyzer, GraphValidationError, NodeInfo
from flowgen.engine import FragmentAssembler
from flowgen.registry import BaseConverter, ConverterRegistry
from tests.fixtures.converters import FailingConverter, StateRecordingConverter, StaticConverter


def _graph(nodes: list[tuple[str, str]], edges: list[tuple[str, str]]) -> FlowGraph:
    graph = FlowGraph()
    for node_id, node_type in nodes:
        graph.add_node(node_id, node_type=node_type)
    for source, target in edges:
        graph.add_edge(source, target)
    return graph


class OrderedConverter(BaseConverter):
    """Emits fragments in deliberately scrambled order."""

    node_type = "ordered"
    category = "test"

    def convert(self, node: NodeInfo, context: GenerationContext) -> list[CodeFragment]:
        return [
            CodeFragment(id="post", kind=FragmentKind.POST_INIT, content="post"),
            CodeFragment(id="init-2", kind=FragmentKind.INITIALIZATION, content="init-2", order=2),
            CodeFragment(id="init-1", kind=FragmentKind.INITIALIZATION, content="init-1", order=1),
            CodeFragment(id="setup-b", kind=FragmentKind.SETUP, content="setup-b"),
            CodeFragment(id="setup-a", kind=FragmentKind.SETUP, content="setup-a"),
            CodeFragment(id="decl", kind=FragmentKind.DECLARATION, content="decl"),
            CodeFragment(id="imp", kind=FragmentKind.IMPORT, content="imp"),
        ]


class TestOrdering:
    def test_order_follows_dependencies(self, registry: ConverterRegistry) -> None:
        graph = _graph([("chain", "llmChain"), ("model", "chatOpenAI")], [("model", "chain")])
        assert FragmentAssembler(registry).order(graph) == ["model", "chain"]

    def test_order_raises_on_cycle(self, registry: ConverterRegistry) -> None:
        graph = _graph([("A", "chatOpenAI"), ("B", "chatOpenAI")], [("A", "B"), ("B", "A")])
        with pytest.raises(GraphValidationError) as exc_info:
            FragmentAssembler(registry).order(graph)
        assert set(exc_info.value.node_ids) == {"A", "B"}

    def test_fragments_grouped_by_node_in_topological_order(self, registry: ConverterRegistry) -> None:
        graph = _graph([("chain", "llmChain"), ("model", "chatOpenAI")], [("model", "chain")])
        result = FragmentAssembler(registry).assemble(graph)

        assert result.success
        assert result.order == ("model", "chain")
        assert [f.source_node_id for f in result.fragments] == ["model", "model", "chain", "chain"]

    def test_imports_precede_initialization_within_node(self, registry: ConverterRegistry) -> None:
        result = FragmentAssembler(registry).assemble(_graph([("m", "chatOpenAI")], []))
        assert [f.kind for f in result.fragments] == [FragmentKind.IMPORT, FragmentKind.INITIALIZATION]

    def test_sort_key_kind_then_order_then_emission(self) -> None:
        registry = ConverterRegistry()
        registry.register_converter(OrderedConverter())
        result = FragmentAssembler(registry).assemble(_graph([("n", "ordered")], []))

        assert [f.id for f in result.fragments] == ["imp", "decl", "setup-b", "setup-a", "init-1", "init-2", "post"]

    def test_source_node_attributed(self, registry: ConverterRegistry) -> None:
        result = FragmentAssembler(registry).assemble(_graph([("m", "chatOpenAI")], []))
        assert {f.source_node_id for f in result.fragments} == {"m"}


class TestDeduplication:
    def test_shared_import_emitted_once(self, registry: ConverterRegistry) -> None:
        graph = _graph([("a", "chatOpenAI"), ("b", "chatOpenAI")], [("a", "b")])
        result = FragmentAssembler(registry).assemble(graph)
        imports = [f for f in result.fragments if f.kind == FragmentKind.IMPORT]

        assert len(imports) == 1
        assert imports[0].source_node_id == "a"
        assert result.merged_imports == 1

    def test_dependencies_sorted_union(self, registry: ConverterRegistry) -> None:
        graph = _graph([("m", "chatOpenAI"), ("c", "llmChain"), ("mem", "bufferMemory")], [("m", "c"), ("mem", "c")])
        result = FragmentAssembler(registry).assemble(graph)

        assert result.dependencies == ("@langchain/openai", "langchain")


class TestPreconditions:
    def test_cycle_aborts_before_any_converter(self) -> None:
        registry = ConverterRegistry()
        registry.register_converter(StateRecordingConverter("rec"))
        graph = _graph([("A", "rec"), ("B", "rec")], [("A", "B"), ("B", "A")])
        result = FragmentAssembler(registry).assemble(graph)

        assert not result.success
        assert result.fragments == ()
        assert result.converted_nodes == 0
        error = result.errors[0]
        assert error.kind == ErrorKind.STRUCTURE
        assert error.code == "cycle_detected"
        assert "A -> B -> A" in error.message

    def test_dangling_edge_aborts(self, registry: ConverterRegistry) -> None:
        graph = _graph([("a", "chatOpenAI")], [("a", "ghost")])
        result = FragmentAssembler(registry).assemble(graph)

        assert not result.success
        assert [e.code for e in result.errors] == ["dangling_edge"]

    def test_stale_analysis_still_cannot_misorder(self, registry: ConverterRegistry) -> None:
        clean = GraphAnalyzer().analyze(_graph([("A", "chatOpenAI"), ("B", "chatOpenAI")], [("A", "B")]))
        cyclic = _graph([("A", "chatOpenAI"), ("B", "chatOpenAI")], [("A", "B"), ("B", "A")])
        result = FragmentAssembler(registry).assemble(cyclic, analysis=clean)

        assert not result.success
        assert result.fragments == ()
        assert result.errors[0].code == "cycle_detected"

    def test_orphans_do_not_block_assembly(self, registry: ConverterRegistry) -> None:
        assert FragmentAssembler(registry).assemble(_graph([("solo", "chatOpenAI")], [])).success


class TestPartialConversion:
    def test_missing_converter_recorded_rest_converted(self, registry: ConverterRegistry) -> None:
        graph = _graph([("m", "chatOpenAI"), ("x", "mysteryNode"), ("c", "llmChain")], [("m", "x"), ("x", "c")])
        result = FragmentAssembler(registry).assemble(graph)

        assert not result.success
        assert result.converted_nodes == 2
        assert result.total_nodes == 3
        assert result.coverage == pytest.approx(2 / 3)
        error = result.errors[0]
        assert error.code == "converter_missing"
        assert error.node_id == "x"
        assert "mysteryNode" in error.message
        assert {f.source_node_id for f in result.fragments} == {"m", "c"}

    def test_converter_exception_recorded(self, registry: ConverterRegistry) -> None:
        registry.register_converter(FailingConverter("broken"))
        graph = _graph([("m", "chatOpenAI"), ("b", "broken")], [("m", "b")])
        result = FragmentAssembler(registry).assemble(graph)

        assert [e.code for e in result.errors] == ["converter_failed"]
        assert result.errors[0].node_id == "b"
        assert result.converted_nodes == 1

    def test_alias_used_for_resolution(self, registry: ConverterRegistry) -> None:
        registry.register_alias("chatOpenAICustom", "chatOpenAI")
        result = FragmentAssembler(registry).assemble(_graph([("m", "chatOpenAICustom")], []))

        assert result.success
        assert result.converted_nodes == 1


class TestDeprecation:
    def test_deprecated_converter_warns(self) -> None:
        registry = ConverterRegistry()
        registry.register_converter(StaticConverter("pdfLoader", deprecated=True, replacement_type="pdfFile"))
        result = FragmentAssembler(registry).assemble(_graph([("p", "pdfLoader")], []))

        assert result.success
        assert [w.kind for w in result.warnings] == [WarningKind.DEPRECATED]
        assert result.warnings[0].suggestion == "Use 'pdfFile' instead"


class TestContextIsolation:
    def test_flow_state_fresh_per_assembly(self) -> None:
        registry = ConverterRegistry()
        registry.register_converter(StateRecordingConverter("rec"))
        assembler = FragmentAssembler(registry)
        graph = _graph([("a", "rec"), ("b", "rec")], [("a", "b")])
        context = GenerationContext()

        first = assembler.assemble(graph, context)
        second = assembler.assemble(graph, context)

        assert [f.content for f in first.fragments] == ["a", "a,b"]
        assert [f.content for f in second.fragments] == ["a", "a,b"]
        assert context.flow_state == {}

    def test_identical_input_identical_output(self, registry: ConverterRegistry) -> None:
        graph = _graph([("c", "llmChain"), ("m", "chatOpenAI"), ("mem", "bufferMemory")], [("m", "c"), ("mem", "c")])
        assembler = FragmentAssembler(registry)

        assert assembler.assemble(graph) == assembler.assemble(graph)
