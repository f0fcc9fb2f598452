# tests/unit/core/test_version.py
"""Tests for heuristic dialect detection."""

from __future__ import annotations

from typing import Any

import pytest

from flowgen.contracts import Dialect
from flowgen.core.version import detect_version
from tests.fixtures.flows import make_flow, make_node


class TestExplicitMarker:
    def test_version_two_marks_v2(self) -> None:
        result = detect_version(make_flow([make_node("a", version=2)]))

        assert result.version == Dialect.V2
        assert result.confidence == pytest.approx(0.7)
        assert result.indicators == ("Node version >= 2",)

    def test_version_one_marks_v1(self) -> None:
        result = detect_version(make_flow([make_node("a", version=1)]))

        assert result.version == Dialect.V1
        assert result.confidence == pytest.approx(0.7)

    def test_boolean_is_not_a_version(self) -> None:
        result = detect_version(make_flow([make_node("a", version=True)]))
        assert result.version == Dialect.UNKNOWN

    def test_only_first_node_marker_counts(self) -> None:
        result = detect_version(make_flow([make_node("a"), make_node("b", version=2)]))
        assert result.version == Dialect.UNKNOWN

    def test_marker_wins_over_v2_node_types(self) -> None:
        flow = make_flow([make_node("a", version=1), make_node("b", "conversationChain")])
        result = detect_version(flow)

        assert result.version == Dialect.V1
        assert result.confidence == pytest.approx(1.0)
        assert any("contradict" in indicator for indicator in result.indicators)


class TestStructuralHeuristics:
    def test_base_chain_alone_stays_unknown(self) -> None:
        result = detect_version(make_flow([make_node("a", base_classes=("BaseChain",))]))

        assert result.version == Dialect.UNKNOWN
        assert result.confidence == pytest.approx(0.2)

    def test_v2_node_type_alone_is_at_threshold(self) -> None:
        result = detect_version(make_flow([make_node("a", "sqlDatabaseChain")]))

        assert result.version == Dialect.UNKNOWN
        assert result.confidence == pytest.approx(0.3)

    def test_base_chain_plus_v2_node_type(self) -> None:
        flow = make_flow([make_node("a", "conversationChain", base_classes=("BaseChain",))])
        result = detect_version(flow)

        assert result.version == Dialect.V2
        assert result.confidence == pytest.approx(0.5)

    def test_extended_metadata_adds_confidence(self) -> None:
        flow = make_flow([make_node("a", version=2)], chatflow={"name": "x", "createdDate": "2024-01-01"})
        result = detect_version(flow)

        assert result.confidence == pytest.approx(0.8)
        assert "Extended metadata" in result.indicators

    def test_confidence_is_clamped(self) -> None:
        flow = make_flow(
            [make_node("a", "conversationChain", version=2)],
            chatflow={"updatedDate": "2024-01-01"},
        )
        assert detect_version(flow).confidence == pytest.approx(1.0)


class TestNeverRaises:
    @pytest.mark.parametrize(
        "document",
        [None, [], "nodes", {"nodes": []}, {"nodes": {}}, {"nodes": [None, 3]}, {"nodes": [{"data": "x"}]}],
    )
    def test_malformed_input_is_unknown(self, document: Any) -> None:
        result = detect_version(document)

        assert result.version == Dialect.UNKNOWN
        assert result.confidence == 0.0
