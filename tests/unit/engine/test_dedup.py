# tests/unit/engine/test_dedup.py
"""Tests for import fragment deduplication."""

from __future__ import annotations

from flowgen.contracts import CodeFragment, FragmentKind, ImportSpec
from flowgen.engine.dedup import merge_imports


def _import(fragment_id: str, package: str, *symbols: str, node: str = "n") -> CodeFragment:
    return CodeFragment(
        id=fragment_id,
        kind=FragmentKind.IMPORT,
        content=f"import {{ {', '.join(symbols)} }} from '{package}';",
        source_node_id=node,
        import_spec=ImportSpec.of(package, *symbols),
    )


class TestMergeImports:
    def test_identical_imports_merged_first_kept(self) -> None:
        first = _import("a", "langchain", "LLMChain", node="n1")
        second = _import("b", "langchain", "LLMChain", node="n2")
        kept, dropped = merge_imports([first, second])

        assert kept == [first]
        assert dropped == 1

    def test_symbol_order_is_irrelevant(self) -> None:
        kept, dropped = merge_imports([_import("a", "pkg", "X", "Y"), _import("b", "pkg", "Y", "X")])

        assert [f.id for f in kept] == ["a"]
        assert dropped == 1

    def test_partial_overlap_kept_separately(self) -> None:
        kept, dropped = merge_imports([_import("a", "pkg", "X"), _import("b", "pkg", "X", "Y")])

        assert [f.id for f in kept] == ["a", "b"]
        assert dropped == 0

    def test_same_symbols_other_package_kept(self) -> None:
        kept, _ = merge_imports([_import("a", "pkg1", "X"), _import("b", "pkg2", "X")])
        assert len(kept) == 2

    def test_imports_without_spec_never_merged(self) -> None:
        raw = CodeFragment(id="r", kind=FragmentKind.IMPORT, content="import 'polyfill';")
        kept, dropped = merge_imports([raw, raw])

        assert kept == [raw, raw]
        assert dropped == 0

    def test_other_kinds_never_merged(self) -> None:
        init = CodeFragment(id="i", kind=FragmentKind.INITIALIZATION, content="const x = 1;")
        kept, dropped = merge_imports([init, init])

        assert len(kept) == 2
        assert dropped == 0

    def test_relative_order_preserved(self) -> None:
        init = CodeFragment(id="i", kind=FragmentKind.INITIALIZATION, content="x")
        fragments = [_import("a", "p", "A"), init, _import("b", "p", "A"), _import("c", "q", "B")]
        kept, _ = merge_imports(fragments)

        assert [f.id for f in kept] == ["a", "i", "c"]
