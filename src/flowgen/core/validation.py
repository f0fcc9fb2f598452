# src/flowgen/core/validation.py
"""Schema validation of raw flow documents.

Validation is TOTAL: pydantic collects every schema violation in one pass,
and the referential pass that follows reports every duplicate id, dangling
edge, and unknown port handle rather than stopping at the first.

The full referential pass runs over the validated document. When the
schema pass fails, a best-effort pass over the raw data still reports
duplicate ids and dangling edges alongside the schema errors.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from pydantic_core import ErrorDetails

from flowgen.contracts.enums import Dialect, ErrorKind
from flowgen.contracts.errors import ParseError
from flowgen.core.config import ParserSettings
from flowgen.core.logging import get_logger
from flowgen.core.schema import AnyFlowDocument, get_validation_schema

logger = get_logger(__name__)

# Pydantic error types -> the JSON type the schema expected
_EXPECTED_JSON_TYPE: dict[str, str] = {
    "string_type": "string",
    "int_type": "integer",
    "int_parsing": "integer",
    "int_from_float": "integer",
    "float_type": "number",
    "float_parsing": "number",
    "bool_type": "boolean",
    "bool_parsing": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
}


@dataclass(slots=True)
class ValidationOutcome:
    """Result of validating one decoded document.

    `document` is the validated model when the schema pass succeeded; it is
    still set when only referential errors were found, so diagnostics can
    run over it. Callers must treat any non-empty `errors` as failure.
    """

    document: AnyFlowDocument | None
    errors: list[ParseError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.document is not None and not self.errors


def json_type_name(value: Any) -> str:
    """Name of a decoded JSON value's type as a user would write it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def format_path(loc: tuple[int | str, ...]) -> str | None:
    """Dot-separated field path; None for the document root."""
    if not loc:
        return None
    return ".".join(str(part) for part in loc)


def suggestion_for(issue: ErrorDetails) -> str:
    """Derive a one-line remediation from a pydantic issue's error code."""
    code = issue["type"]
    ctx = issue.get("ctx") or {}
    if code == "missing":
        name = issue["loc"][-1] if issue["loc"] else "field"
        return f"Add required field '{name}'"
    if code in _EXPECTED_JSON_TYPE:
        return f"Expected {_EXPECTED_JSON_TYPE[code]}, got {json_type_name(issue.get('input'))}"
    if code == "too_short":
        return f"Value must have at least {ctx.get('min_length', 1)} item(s)"
    if code == "too_long":
        return f"Value must have at most {ctx.get('max_length')} item(s)"
    if code == "string_too_short":
        return "Value must not be empty"
    if code == "extra_forbidden":
        name = issue["loc"][-1] if issue["loc"] else "field"
        return f"Unexpected property: {name}"
    if code == "value_error":
        return "Check the validation requirements for this field"
    return "Please verify the data structure and format"


def issue_to_error(issue: ErrorDetails) -> ParseError:
    return ParseError(
        kind=ErrorKind.VALIDATION,
        message=issue["msg"],
        path=format_path(issue["loc"]),
        code=issue["type"],
        suggestion=suggestion_for(issue),
    )


class SchemaValidator:
    """Size ceiling, JSON decoding, schema and referential validation.

    Usage:
        validator = SchemaValidator(ParserSettings())
        data, error = validator.decode(text)
        outcome = validator.validate(data, Dialect.V2)
    """

    def __init__(self, settings: ParserSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> ParserSettings:
        return self._settings

    def check_size(self, size: int, *, unit: str = "bytes") -> ParseError | None:
        """Reject documents above the configured ceiling.

        Called before any parsing so oversized input costs nothing beyond
        its length check.
        """
        limit = self._settings.max_document_bytes
        if size <= limit:
            return None
        logger.warning("document_rejected_oversize", size=size, limit=limit)
        return ParseError(
            kind=ErrorKind.STRUCTURE,
            message=f"Content size ({size} {unit}) exceeds maximum allowed size ({limit} bytes)",
            code="document_too_large",
            suggestion="Consider breaking down the flow into smaller components",
        )

    def decode(self, text: str) -> tuple[Any, ParseError | None]:
        """Parse text as JSON.

        Returns:
            (data, None) on success, (None, syntax error) otherwise
        """
        try:
            return json.loads(text), None
        except RecursionError:
            logger.info("document_syntax_error", reason="nesting_too_deep", size=len(text))
            return None, ParseError(
                kind=ErrorKind.SYNTAX,
                message="JSON nesting is too deep to decode",
                code="json_too_deep",
                suggestion="Flatten deeply nested arrays or objects; flow exports nest only a few levels",
            )
        except json.JSONDecodeError as e:
            logger.info("document_syntax_error", line=e.lineno, column=e.colno, position=e.pos)
            return None, ParseError(
                kind=ErrorKind.SYNTAX,
                message=f"JSON syntax error: {e.msg} (char {e.pos})",
                line=e.lineno,
                column=e.colno,
                code="json_decode",
                suggestion="Ensure the JSON is properly formatted with matching brackets and quotes",
            )

    def validate(self, data: Any, dialect: Dialect = Dialect.UNKNOWN) -> ValidationOutcome:
        """Validate decoded data against the schema selected for dialect.

        Args:
            data: Decoded JSON
            dialect: Schema dialect (UNKNOWN selects the permissive schema)

        Returns:
            ValidationOutcome with every violation found
        """
        schema = get_validation_schema(dialect, strict=self._settings.strict, minimal=self._settings.minimal)
        try:
            document = schema.model_validate(data)
        except ValidationError as e:
            errors = [issue_to_error(issue) for issue in e.errors()]
            errors.extend(check_raw_references(data))
            logger.info("document_validation_failed", schema=schema.__name__, error_count=len(errors))
            return ValidationOutcome(document=None, errors=errors)

        errors = check_references(document)
        if errors:
            logger.info("document_validation_failed", schema=schema.__name__, error_count=len(errors))
        return ValidationOutcome(document=document, errors=errors)


def check_references(document: AnyFlowDocument) -> list[ParseError]:
    """Referential integrity of a schema-valid document.

    Checks:
    1. Node ids are unique
    2. Every edge endpoint names an existing node
    3. Port handles name a port the node declares (only checked when the
       node declares ports at all)
    """
    errors: list[ParseError] = []
    nodes_by_id: dict[str, Any] = {}

    for index, node in enumerate(document.nodes):
        if node.id in nodes_by_id:
            errors.append(_duplicate_id_error(node.id, index))
            continue
        nodes_by_id[node.id] = node

    for index, edge in enumerate(document.edges):
        for end, handle_field in (("source", "sourceHandle"), ("target", "targetHandle")):
            node_id: str = getattr(edge, end)
            node = nodes_by_id.get(node_id)
            if node is None:
                errors.append(_dangling_edge_error(edge.key, end, node_id, index))
                continue

            handle: str | None = edge.source_handle if end == "source" else edge.target_handle
            if not handle:
                continue
            ports = node.output_port_ids() if end == "source" else node.input_port_ids()
            if ports and handle not in ports:
                errors.append(
                    ParseError(
                        kind=ErrorKind.VALIDATION,
                        message=f"Edge '{edge.key}' references unknown {end} handle '{handle}' on node {node_id}",
                        path=f"edges.{index}.{handle_field}",
                        code="unknown_handle",
                        suggestion=f"Use one of the ports declared by node {node_id}",
                        node_id=node_id,
                    )
                )
    return errors


def check_raw_references(data: Any) -> list[ParseError]:
    """Best-effort referential pass over decoded data that failed the schema.

    Only nodes with a string id and edges with string endpoints take part;
    anything malformed is left to the schema errors. Handles are not
    checked because port declarations may themselves be invalid.
    """
    if not isinstance(data, dict):
        return []
    nodes = data.get("nodes")
    edges = data.get("edges")
    errors: list[ParseError] = []
    known: set[str] = set()

    for index, node in enumerate(nodes if isinstance(nodes, list) else ()):
        node_id = node.get("id") if isinstance(node, dict) else None
        if not isinstance(node_id, str) or not node_id:
            continue
        if node_id in known:
            errors.append(_duplicate_id_error(node_id, index))
            continue
        known.add(node_id)

    for index, edge in enumerate(edges if isinstance(edges, list) else ()):
        if not isinstance(edge, dict):
            continue
        source, target = edge.get("source"), edge.get("target")
        edge_id = edge.get("id")
        key = edge_id if isinstance(edge_id, str) and edge_id else f"{source}->{target}"
        for end, node_id in (("source", source), ("target", target)):
            if isinstance(node_id, str) and node_id and node_id not in known:
                errors.append(_dangling_edge_error(key, end, node_id, index))
    return errors


def _duplicate_id_error(node_id: str, index: int) -> ParseError:
    return ParseError(
        kind=ErrorKind.VALIDATION,
        message=f"Duplicate node id: {node_id}",
        path=f"nodes.{index}.id",
        code="duplicate_node_id",
        suggestion="Give every node a unique id",
        node_id=node_id,
    )


def _dangling_edge_error(edge_key: str, end: str, node_id: str, index: int) -> ParseError:
    return ParseError(
        kind=ErrorKind.VALIDATION,
        message=f"Edge '{edge_key}' references missing {end} node: {node_id}",
        path=f"edges.{index}.{end}",
        code="dangling_edge",
        suggestion="Remove the edge or add the missing node",
        node_id=node_id,
    )
