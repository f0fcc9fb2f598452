"""Error and warning records reported to callers.

Problems found in untrusted input are never raised: they are collected
into these records so a caller can display the full list in one pass.
Exceptions are reserved for invariant violations inside the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flowgen.contracts.enums import ErrorKind, WarningKind


@dataclass(frozen=True, slots=True)
class ParseError:
    """A single reported error.

    Attributes:
        kind: Taxonomy bucket (syntax, validation, structure, ...)
        message: Human-readable description
        path: Dot-separated field path into the document (e.g. "nodes.0.data.label")
        line: 1-based line for syntax errors
        column: 1-based column for syntax errors
        code: Machine-readable error code (e.g. "missing", "dangling_edge")
        suggestion: One-line remediation hint, where derivable
        node_id: Node the error is attributed to, where applicable
    """

    kind: ErrorKind
    message: str
    path: str | None = None
    line: int | None = None
    column: int | None = None
    code: str | None = None
    suggestion: str | None = None
    node_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "message": self.message,
            "path": self.path,
            "line": self.line,
            "column": self.column,
            "code": self.code,
            "suggestion": self.suggestion,
            "node_id": self.node_id,
        }


@dataclass(frozen=True, slots=True)
class ParseWarning:
    """A non-fatal advisory. Warnings never change a result's success flag."""

    kind: WarningKind
    message: str
    path: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": str(self.kind),
            "message": self.message,
            "path": self.path,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of validate-only calls."""

    is_valid: bool
    errors: tuple[ParseError, ...] = field(default_factory=tuple)
    warnings: tuple[ParseWarning, ...] = field(default_factory=tuple)


# =============================================================================
# Exceptions
# =============================================================================


class ConverterRegistrationError(ValueError):
    """Raised when a converter cannot be registered.

    Covers duplicate node types across plugins and aliases that point at
    a node type nobody registered.
    """

    pass
