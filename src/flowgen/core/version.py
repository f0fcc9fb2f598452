# src/flowgen/core/version.py
"""Heuristic detection of the schema dialect that produced a document.

Detection is advisory: it never blocks parsing and never raises. A low
score yields Dialect.UNKNOWN, which makes the parser fall back to the
permissive schema.

Heuristics, in order:
1. Explicit version marker on the first node's data block (+0.7). When
   present it is authoritative for the dialect.
2. Capability tags on the first node (+0.2), consulted only when no
   explicit marker exists.
3. v2-only node types anywhere in the node list (+0.3). Always consulted;
   it raises confidence even after an explicit match, but never overrides
   an explicit marker's dialect.
4. Extended top-level metadata with timestamps (+0.1).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Final

from flowgen.contracts.enums import Dialect
from flowgen.contracts.results import VersionDetectionResult
from flowgen.core.logging import get_logger

logger = get_logger(__name__)

EXPLICIT_MARKER_WEIGHT: Final = 0.7
CAPABILITY_TAG_WEIGHT: Final = 0.2
V2_NODE_TYPE_WEIGHT: Final = 0.3
EXTENDED_METADATA_WEIGHT: Final = 0.1

# Confidence at or below this is reported as UNKNOWN
UNKNOWN_THRESHOLD: Final = 0.3

V2_CAPABILITY_TAGS: Final = frozenset({"BaseChain"})
V2_NODE_TYPES: Final = frozenset({"conversationChain", "sqlDatabaseChain", "vectorDBQAChain"})


def detect_version(document: Any) -> VersionDetectionResult:
    """Infer the dialect of a decoded document.

    Args:
        document: Decoded JSON of any shape

    Returns:
        VersionDetectionResult; UNKNOWN with zero confidence when the
        document has no nodes or detection fails internally
    """
    try:
        return _detect(document)
    except Exception as e:
        # Detection is advisory; a malformed document is the validator's to report.
        logger.debug("dialect_detection_failed", error=str(e), error_type=type(e).__name__)
        return VersionDetectionResult(version=Dialect.UNKNOWN, confidence=0.0)


def _detect(document: Any) -> VersionDetectionResult:
    indicators: list[str] = []
    score = 0.0
    dialect = Dialect.UNKNOWN

    if not isinstance(document, Mapping):
        return VersionDetectionResult(version=Dialect.UNKNOWN, confidence=0.0)
    nodes = document.get("nodes")
    if not isinstance(nodes, Sequence) or isinstance(nodes, str) or not nodes:
        return VersionDetectionResult(version=Dialect.UNKNOWN, confidence=0.0)

    first_data = _data_block(nodes[0])

    explicit = _explicit_marker(first_data.get("version"))
    if explicit is not None:
        score += EXPLICIT_MARKER_WEIGHT
        dialect = explicit
        indicators.append("Node version >= 2" if explicit == Dialect.V2 else "Node version = 1")
    else:
        base_classes = first_data.get("baseClasses")
        if isinstance(base_classes, Sequence) and not isinstance(base_classes, str):
            if V2_CAPABILITY_TAGS.intersection(tag for tag in base_classes if isinstance(tag, str)):
                score += CAPABILITY_TAG_WEIGHT
                dialect = Dialect.V2
                indicators.append("BaseChain support")

    node_types = {node_type for node in nodes for node_type in _node_types(node)}
    if node_types & V2_NODE_TYPES:
        score += V2_NODE_TYPE_WEIGHT
        indicators.append("V2-specific node types")
        if explicit is not None and explicit != Dialect.V2:
            logger.warning(
                "dialect_marker_disagreement",
                explicit=str(explicit),
                structural=str(Dialect.V2),
                node_types=sorted(node_types & V2_NODE_TYPES),
            )
            indicators.append("V2-specific node types contradict explicit version marker")
        elif explicit is None:
            dialect = Dialect.V2

    chatflow = document.get("chatflow")
    if isinstance(chatflow, Mapping) and (chatflow.get("createdDate") or chatflow.get("updatedDate")):
        score += EXTENDED_METADATA_WEIGHT
        indicators.append("Extended metadata")

    # Rounding keeps 0.2 + 0.1 from landing a hair above the threshold
    confidence = round(min(score, 1.0), 6)
    if confidence <= UNKNOWN_THRESHOLD:
        dialect = Dialect.UNKNOWN

    logger.debug("dialect_detected", dialect=str(dialect), confidence=confidence, indicators=indicators)
    return VersionDetectionResult(version=dialect, confidence=confidence, indicators=tuple(indicators))


def _data_block(node: Any) -> Mapping[str, Any]:
    if isinstance(node, Mapping):
        data = node.get("data")
        if isinstance(data, Mapping):
            return data
    return {}


def _explicit_marker(version: Any) -> Dialect | None:
    # bool is an int subclass; True must not read as version 1
    if isinstance(version, bool) or not isinstance(version, int | float):
        return None
    if version >= 2:
        return Dialect.V2
    if version == 1:
        return Dialect.V1
    return None


def _node_types(node: Any) -> set[str]:
    """Every type tag a node carries (data.type, data.name, node type)."""
    data = _data_block(node)
    candidates = [data.get("type"), data.get("name")]
    if isinstance(node, Mapping):
        candidates.append(node.get("type"))
    return {candidate for candidate in candidates if isinstance(candidate, str) and candidate}
