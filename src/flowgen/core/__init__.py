# src/flowgen/core/__init__.py
"""Core infrastructure: logging, configuration, canonical JSON, schema, parsing, graphs."""

from flowgen.core.canonical import (
    CANONICAL_VERSION,
    canonical_json,
    stable_hash,
)
from flowgen.core.config import (
    FlowgenSettings,
    GenerationSettings,
    ParserSettings,
    load_settings,
)
from flowgen.core.dag import (
    FlowGraph,
    GraphAnalysis,
    GraphAnalyzer,
    GraphValidationError,
)
from flowgen.core.logging import configure_logging, get_logger
from flowgen.core.parser import FlowParser
from flowgen.core.schema import (
    FlowDocument,
    MinimalFlowDocument,
    get_validation_schema,
)
from flowgen.core.validation import SchemaValidator
from flowgen.core.version import detect_version

__all__ = [
    "CANONICAL_VERSION",
    "FlowDocument",
    "FlowGraph",
    "FlowParser",
    "FlowgenSettings",
    "GenerationSettings",
    "GraphAnalysis",
    "GraphAnalyzer",
    "GraphValidationError",
    "MinimalFlowDocument",
    "ParserSettings",
    "SchemaValidator",
    "canonical_json",
    "configure_logging",
    "detect_version",
    "get_logger",
    "get_validation_schema",
    "load_settings",
    "stable_hash",
]
