# src/flowgen/core/parser.py
"""FlowParser: entry point for ingesting flow documents.

Every public method returns a ParseResult; problems in the input are
reported through its error list, never raised. Only programmer errors
(bad settings types and the like) escape as exceptions.

Sources:
    parse_string  text already in memory
    parse_bytes   raw bytes, decoded as UTF-8
    parse_file    .json / .flowise file; size checked via stat() first
    parse_url     async HTTP fetch; size checked from Content-Length and
                  again while streaming the body
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import httpx
import rfc8785
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from flowgen.contracts.enums import Complexity, Dialect, ErrorKind, SourceType, WarningKind
from flowgen.contracts.errors import ParseError, ParseWarning, ValidationReport
from flowgen.contracts.results import ParseMetadata, ParseResult, VersionDetectionResult
from flowgen.core.canonical import CANONICAL_VERSION, stable_hash
from flowgen.core.config import ParserSettings
from flowgen.core.dag.analysis import classify_complexity
from flowgen.core.logging import get_logger
from flowgen.core.schema import AnyFlowDocument, get_validation_schema
from flowgen.core.validation import SchemaValidator, issue_to_error
from flowgen.core.version import detect_version

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".json", ".flowise"})


class FlowParser:
    """Validate, version-detect and describe flow documents.

    Usage:
        parser = FlowParser(ParserSettings(strict=False))
        result = parser.parse_file(Path("flow.json"))
        if result.success:
            graph = FlowGraph.from_document(result.document)
    """

    def __init__(self, settings: ParserSettings | None = None) -> None:
        self._settings = settings or ParserSettings()
        self._validator = SchemaValidator(self._settings)

    @property
    def settings(self) -> ParserSettings:
        return self._settings

    # === Sources ===

    def parse_string(self, text: str) -> ParseResult:
        """Parse a document held in memory as text."""
        started = time.perf_counter()
        size_error = self._validator.check_size(len(text), unit="characters")
        if size_error is not None:
            return _failure([size_error], SourceType.STRING, len(text), started)
        return self._parse_text(text, SourceType.STRING, len(text), started)

    def parse_bytes(self, data: bytes, *, source_type: SourceType = SourceType.BYTES) -> ParseResult:
        """Parse UTF-8 encoded bytes. The ceiling is checked on the raw length first."""
        started = time.perf_counter()
        size_error = self._validator.check_size(len(data))
        if size_error is not None:
            return _failure([size_error], source_type, len(data), started)
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            logger.info("document_syntax_error", position=e.start, reason=e.reason)
            error = ParseError(
                kind=ErrorKind.SYNTAX,
                message=f"Document is not valid UTF-8: {e.reason} at byte {e.start}",
                code="invalid_encoding",
                suggestion="Save the flow export as UTF-8",
            )
            return _failure([error], source_type, len(data), started)
        return self._parse_text(text, source_type, len(data), started)

    def parse_file(self, path: Path | str) -> ParseResult:
        """Parse a .json or .flowise file.

        The file is never opened when its extension is unsupported or its
        size exceeds the ceiling.
        """
        started = time.perf_counter()
        path = Path(path)
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            error = ParseError(
                kind=ErrorKind.STRUCTURE,
                message=f"Unsupported file extension: {path.suffix or '(none)'}",
                path=str(path),
                code="unsupported_extension",
                suggestion="Use .json or .flowise files",
            )
            return _failure([error], SourceType.FILE, 0, started)

        try:
            size = path.stat().st_size
            size_error = self._validator.check_size(size)
            if size_error is not None:
                return _failure([size_error], SourceType.FILE, size, started)
            data = path.read_bytes()
        except OSError as e:
            error = ParseError(
                kind=ErrorKind.STRUCTURE,
                message=f"Cannot read file: {e.strerror or e}",
                path=str(path),
                code="file_read_error",
                suggestion="Check that the file exists and is readable",
            )
            return _failure([error], SourceType.FILE, 0, started)

        return self.parse_bytes(data, source_type=SourceType.FILE)

    async def parse_url(self, url: str) -> ParseResult:
        """Fetch and parse a document over HTTP(S).

        Transport failures, timeouts and HTTP status >= 400 become `network`
        errors. Cancellation of the awaiting task propagates unchanged.
        """
        started = time.perf_counter()
        body = bytearray()
        try:
            async with httpx.AsyncClient(timeout=self._settings.fetch_timeout_seconds, follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code >= 400:
                        error = _network_error(
                            f"HTTP {response.status_code}: {response.reason_phrase}",
                            url,
                            code="http_status",
                            suggestion="Check the URL and that the server allows access to the flow",
                        )
                        return _failure([error], SourceType.URL, 0, started)

                    declared = response.headers.get("content-length")
                    if declared is not None and declared.isdigit():
                        size_error = self._validator.check_size(int(declared))
                        if size_error is not None:
                            return _failure([size_error], SourceType.URL, int(declared), started)

                    async for chunk in response.aiter_bytes():
                        body.extend(chunk)
                        size_error = self._validator.check_size(len(body))
                        if size_error is not None:
                            return _failure([size_error], SourceType.URL, len(body), started)
        except httpx.TimeoutException as e:
            logger.warning("document_fetch_failed", url=url, error_type=type(e).__name__)
            error = _network_error(
                f"Request timed out after {self._settings.fetch_timeout_seconds}s",
                url,
                code="fetch_timeout",
                suggestion="Increase parser.fetch_timeout_seconds or check the server",
            )
            return _failure([error], SourceType.URL, len(body), started)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("document_fetch_failed", url=url, error_type=type(e).__name__, error=str(e))
            error = _network_error(
                f"Failed to fetch URL: {e}",
                url,
                code="fetch_failed",
                suggestion="Check the URL and network connectivity",
            )
            return _failure([error], SourceType.URL, len(body), started)

        return self.parse_bytes(bytes(body), source_type=SourceType.URL)

    # === Validation-only entry points ===

    def validate(self, text: str) -> ValidationReport:
        """Full validation without keeping the document."""
        result = self.parse_string(text)
        return ValidationReport(is_valid=result.success, errors=result.errors, warnings=result.warnings)

    def quick_validate(self, text: str) -> list[str]:
        """Structural shape check only. Returns error messages; empty means valid."""
        data, syntax_error = self._validator.decode(text)
        if syntax_error is not None:
            return [syntax_error.message]
        schema = get_validation_schema(Dialect.UNKNOWN, strict=False, minimal=True)
        try:
            schema.model_validate(data)
        except ValidationError as e:
            return [_describe(issue_to_error(issue)) for issue in e.errors()]
        return []

    # === Internals ===

    def _parse_text(self, text: str, source_type: SourceType, source_size: int, started: float) -> ParseResult:
        data, syntax_error = self._validator.decode(text)
        if syntax_error is not None:
            return _failure([syntax_error], source_type, source_size, started)

        detection = self._detect(data)
        outcome = self._validator.validate(data, detection.version)
        if not outcome.is_valid or outcome.document is None:
            return _failure(outcome.errors, source_type, source_size, started, detection=detection)

        document = outcome.document
        document_hash = _document_hash(document)
        warnings = self._warnings(document, detection, document_hash) if self._settings.include_warnings else []
        metadata = ParseMetadata(
            source_type=source_type,
            source_size=source_size,
            parse_time_ms=_elapsed_ms(started),
            dialect=detection.version,
            dialect_confidence=detection.confidence,
            node_count=len(document.nodes),
            edge_count=len(document.edges),
            complexity=classify_complexity(len(document.nodes), len(document.edges)),
            has_metadata=document.chatflow is not None,
            document_hash=document_hash,
            hash_version=CANONICAL_VERSION if document_hash is not None else None,
            timestamp=time.time(),
        )
        logger.debug(
            "document_parsed",
            source_type=str(source_type),
            dialect=str(detection.version),
            node_count=metadata.node_count,
            edge_count=metadata.edge_count,
            warning_count=len(warnings),
        )
        return ParseResult(
            success=True,
            metadata=metadata,
            document=document,
            warnings=tuple(warnings),
        )

    def _detect(self, data: Any) -> VersionDetectionResult:
        if self._settings.version == "auto":
            return detect_version(data)
        return VersionDetectionResult(
            version=Dialect(self._settings.version),
            confidence=1.0,
            indicators=("Configured version",),
        )

    def _warnings(
        self,
        document: AnyFlowDocument,
        detection: VersionDetectionResult,
        document_hash: str | None,
    ) -> list[ParseWarning]:
        warnings: list[ParseWarning] = []
        deprecated = set(self._settings.deprecated_node_types)

        for index, node in enumerate(document.nodes):
            if node.converter_type in deprecated:
                warnings.append(
                    ParseWarning(
                        kind=WarningKind.DEPRECATED,
                        message=f"Node type '{node.converter_type}' is deprecated",
                        path=f"nodes.{index}",
                        suggestion="Consider upgrading to newer node types",
                    )
                )

        node_count = len(document.nodes)
        if node_count > self._settings.large_flow_node_threshold:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.PERFORMANCE,
                    message=f"Large number of nodes ({node_count}) may impact performance",
                    suggestion="Consider breaking the flow into smaller sub-flows",
                )
            )

        complexity = classify_complexity(node_count, len(document.edges))
        if complexity == Complexity.COMPLEX:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.PERFORMANCE,
                    message=f"Flow complexity is '{complexity}' ({node_count} nodes, {len(document.edges)} edges)",
                    suggestion="Review the flow for parts that can be split out",
                )
            )

        undocumented = sum(1 for node in document.nodes if not node.description)
        if undocumented:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.BEST_PRACTICE,
                    message=f"{undocumented} nodes are missing descriptions",
                    suggestion="Add descriptions to improve flow documentation",
                )
            )

        if self._settings.version == "auto" and detection.confidence < self._settings.low_confidence_threshold:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.COMPATIBILITY,
                    message=f"Flow dialect detected as '{detection.version}' with low confidence ({detection.confidence:.2f})",
                    suggestion="Set parser.version explicitly if validation is too lenient or too strict",
                )
            )

        if document_hash is None:
            warnings.append(
                ParseWarning(
                    kind=WarningKind.COMPATIBILITY,
                    message="Document cannot be canonicalized; document_hash is unavailable",
                    suggestion="Keep numbers within the IEEE-754 safe integer range and avoid NaN or Infinity",
                )
            )
        return warnings


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _failure(
    errors: list[ParseError],
    source_type: SourceType,
    source_size: int,
    started: float,
    *,
    detection: VersionDetectionResult | None = None,
) -> ParseResult:
    metadata = ParseMetadata(
        source_type=source_type,
        source_size=source_size,
        parse_time_ms=_elapsed_ms(started),
        dialect=detection.version if detection is not None else None,
        dialect_confidence=detection.confidence if detection is not None else 0.0,
        timestamp=time.time(),
    )
    return ParseResult(success=False, metadata=metadata, errors=tuple(errors))


def _network_error(message: str, url: str, *, code: str, suggestion: str) -> ParseError:
    return ParseError(kind=ErrorKind.NETWORK, message=message, path=url, code=code, suggestion=suggestion)


def _document_hash(document: AnyFlowDocument) -> str | None:
    try:
        return stable_hash(document.to_payload())
    except (rfc8785.CanonicalizationError, PydanticSerializationError, RecursionError) as e:
        logger.debug("document_hash_unavailable", error=str(e), error_type=type(e).__name__)
        return None


def _describe(error: ParseError) -> str:
    return f"{error.path}: {error.message}" if error.path else error.message
