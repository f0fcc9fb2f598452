"""Result objects returned across the public API.

All results are frozen. Error and warning lists are tuples so a result can
be shared between threads of an embedding application without copying.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from flowgen.contracts.enums import Complexity, Dialect, SourceType
from flowgen.contracts.errors import ParseError, ParseWarning
from flowgen.contracts.fragments import CodeFragment

if TYPE_CHECKING:
    from flowgen.core.dag.analysis import GraphAnalysis
    from flowgen.core.schema import FlowDocument


@dataclass(frozen=True, slots=True)
class VersionDetectionResult:
    """Advisory dialect guess. Never blocks parsing.

    Attributes:
        version: Detected dialect, or UNKNOWN when confidence <= 0.3
        confidence: Accumulated heuristic score clamped to [0.0, 1.0]
        indicators: Human-readable evidence, one entry per heuristic that fired
    """

    version: Dialect
    confidence: float
    indicators: tuple[str, ...] = ()

    @property
    def is_known(self) -> bool:
        return self.version != Dialect.UNKNOWN


@dataclass(frozen=True, slots=True)
class ParseMetadata:
    """Diagnostics about one parse call.

    `hash_version` names the canonicalization scheme behind `document_hash`;
    both are None when the document cannot be canonicalized.
    """

    source_type: SourceType
    source_size: int
    parse_time_ms: float
    dialect: Dialect | None = None
    dialect_confidence: float = 0.0
    node_count: int = 0
    edge_count: int = 0
    complexity: Complexity = Complexity.SIMPLE
    has_metadata: bool = False
    document_hash: str | None = None
    hash_version: str | None = None
    timestamp: float = 0.0


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Outcome of parsing and validating one document.

    `document` is set only when `success` is True.
    """

    success: bool
    metadata: ParseMetadata
    document: FlowDocument | None = None
    errors: tuple[ParseError, ...] = ()
    warnings: tuple[ParseWarning, ...] = ()

    def with_source(self, source_type: SourceType, source_size: int | None = None) -> ParseResult:
        """Re-label the metadata of a result produced by parse_string()."""
        metadata = dataclasses.replace(
            self.metadata,
            source_type=source_type,
            source_size=self.metadata.source_size if source_size is None else source_size,
        )
        return dataclasses.replace(self, metadata=metadata)


@dataclass(frozen=True, slots=True)
class AssemblyResult:
    """Ordered fragments plus everything the emitter and caller need.

    A partial result is possible: when some node types are unregistered,
    `fragments` holds the output of every other node and `errors` names
    the failures. `success` is False whenever `errors` is non-empty.
    """

    success: bool
    fragments: tuple[CodeFragment, ...] = ()
    dependencies: tuple[str, ...] = ()
    order: tuple[str, ...] = ()
    errors: tuple[ParseError, ...] = ()
    warnings: tuple[ParseWarning, ...] = ()
    converted_nodes: int = 0
    total_nodes: int = 0
    merged_imports: int = 0

    @property
    def coverage(self) -> float:
        """Fraction of nodes converted (1.0 for an empty graph)."""
        if self.total_nodes == 0:
            return 1.0
        return self.converted_nodes / self.total_nodes


@dataclass(frozen=True, slots=True)
class ConversionMetadata:
    """Summary metadata for an end-to-end conversion."""

    node_count: int = 0
    edge_count: int = 0
    dialect: Dialect | None = None
    complexity: Complexity = Complexity.SIMPLE
    elapsed_ms: float = 0.0
    coverage: float = 0.0


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of parse -> analyze -> assemble."""

    success: bool
    parse: ParseResult
    analysis: GraphAnalysis | None = None
    assembly: AssemblyResult | None = None
    errors: tuple[ParseError, ...] = ()
    warnings: tuple[ParseWarning, ...] = ()
    metadata: ConversionMetadata = field(default_factory=ConversionMetadata)
