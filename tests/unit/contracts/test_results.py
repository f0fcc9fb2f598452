# tests/unit/contracts/test_results.py
"""Tests for result objects."""

from __future__ import annotations

from flowgen.contracts import (
    AssemblyResult,
    Dialect,
    ErrorKind,
    ParseError,
    ParseMetadata,
    ParseResult,
    SourceType,
    VersionDetectionResult,
)


class TestAssemblyResult:
    def test_coverage_is_fraction_converted(self) -> None:
        result = AssemblyResult(success=False, converted_nodes=3, total_nodes=4)
        assert result.coverage == 0.75

    def test_coverage_of_empty_graph_is_complete(self) -> None:
        assert AssemblyResult(success=True).coverage == 1.0


class TestParseResult:
    def test_with_source_relabels_metadata(self) -> None:
        result = ParseResult(
            success=True,
            metadata=ParseMetadata(source_type=SourceType.STRING, source_size=10, parse_time_ms=1.0),
        )
        relabeled = result.with_source(SourceType.URL, 12)

        assert relabeled.metadata.source_type == SourceType.URL
        assert relabeled.metadata.source_size == 12
        assert result.metadata.source_type == SourceType.STRING

    def test_with_source_keeps_size_by_default(self) -> None:
        result = ParseResult(
            success=True,
            metadata=ParseMetadata(source_type=SourceType.STRING, source_size=10, parse_time_ms=1.0),
        )
        assert result.with_source(SourceType.FILE).metadata.source_size == 10


class TestVersionDetectionResult:
    def test_unknown_is_not_known(self) -> None:
        assert not VersionDetectionResult(version=Dialect.UNKNOWN, confidence=0.0).is_known
        assert VersionDetectionResult(version=Dialect.V2, confidence=0.7).is_known


class TestParseError:
    def test_to_dict_uses_wire_values(self) -> None:
        error = ParseError(kind=ErrorKind.VALIDATION, message="bad", path="nodes.0.id", code="missing")
        data = error.to_dict()

        assert data["kind"] == "validation"
        assert data["path"] == "nodes.0.id"
        assert data["line"] is None
