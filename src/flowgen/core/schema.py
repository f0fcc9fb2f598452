# src/flowgen/core/schema.py
"""Pydantic schema for flow documents exported from the visual editor.

Dialects:
    permissive  dialect unknown; node data fields optional with defaults
    1.x         node data requires label/name/type/category/baseClasses/inputs
    2.x         1.x plus inputParams/inputAnchors/outputAnchors
    minimal     only ids, data objects and edge endpoints (structural shape)

Strict variants reject unrecognized TOP-LEVEL fields. Nested models always
allow extra keys: editors add presentation fields freely and the core only
preserves them for round-trip fidelity.

Field names follow Python conventions with the editor's camelCase names as
aliases. Validation error locations use the aliases, so reported paths
match the document the user wrote.
"""

from __future__ import annotations

from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from flowgen.contracts.enums import Dialect
from flowgen.core.canonical import canonical_json

_EMPTY_FLOW_MESSAGE = "Flow must contain at least one node"


class _FlowModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Position(_FlowModel):
    x: float
    y: float


class Viewport(_FlowModel):
    x: float
    y: float
    zoom: float


class Anchor(_FlowModel):
    """A named input or output port on a node."""

    id: str
    name: str | None = None
    label: str | None = None
    type: str | None = None
    description: str | None = None
    optional: bool | None = None
    is_list: bool | None = Field(default=None, alias="list")
    options: list[dict[str, Any]] | None = None


class InputParam(_FlowModel):
    label: str | None = None
    name: str
    type: str | None = None
    id: str | None = None
    optional: bool | None = None
    description: str | None = None
    default: Any = None


class NodeData(_FlowModel):
    """Type-specific node parameters (permissive dialect)."""

    id: str | None = None
    label: str = ""
    name: str | None = None
    type: str | None = None
    category: str | None = None
    description: str | None = None
    base_classes: list[str] = Field(default_factory=list, alias="baseClasses")
    version: float | None = None
    input_params: list[InputParam] = Field(default_factory=list, alias="inputParams")
    input_anchors: list[Anchor] = Field(default_factory=list, alias="inputAnchors")
    output_anchors: list[Anchor] = Field(default_factory=list, alias="outputAnchors")
    inputs: dict[str, Any] = Field(default_factory=dict)
    outputs: dict[str, Any] | None = None


class NodeDataV1(NodeData):
    label: str
    name: str
    type: str
    category: str
    base_classes: list[str] = Field(alias="baseClasses")
    inputs: dict[str, Any]


class NodeDataV2(NodeDataV1):
    input_params: list[InputParam] = Field(alias="inputParams")
    input_anchors: list[Anchor] = Field(alias="inputAnchors")
    output_anchors: list[Anchor] = Field(alias="outputAnchors")


def _anchor_ids(anchors: list[dict[str, Any]]) -> set[str]:
    """Collect port ids, including the nested options of multi-output anchors."""
    ids: set[str] = set()
    for anchor in anchors:
        if not isinstance(anchor, dict):
            continue
        anchor_id = anchor.get("id")
        if isinstance(anchor_id, str):
            ids.add(anchor_id)
        for option in anchor.get("options") or ():
            if isinstance(option, dict) and isinstance(option.get("id"), str):
                ids.add(option["id"])
    return ids


class FlowNode(_FlowModel):
    """A typed unit of the input graph.

    `position` is irrelevant to logic; it is kept only so a validated
    document re-serializes faithfully.
    """

    id: str = Field(min_length=1)
    type: str | None = None
    position: Position | None = None
    position_absolute: Position | None = Field(default=None, alias="positionAbsolute")
    width: float | None = None
    height: float | None = None
    selected: bool | None = None
    dragging: bool | None = None
    data: NodeData

    @property
    def converter_type(self) -> str:
        """Tag that selects a converter: data.name, then data.type, then the node type."""
        return self.data.name or self.data.type or self.type or ""

    @property
    def label(self) -> str:
        return self.data.label

    @property
    def category(self) -> str | None:
        return self.data.category

    @property
    def description(self) -> str | None:
        return self.data.description

    def input_port_ids(self) -> set[str]:
        data = self.data.model_dump(by_alias=True)
        ids = _anchor_ids(data["inputAnchors"])
        ids.update(param["id"] for param in data["inputParams"] if param.get("id"))
        return ids

    def output_port_ids(self) -> set[str]:
        return _anchor_ids(self.data.model_dump(by_alias=True)["outputAnchors"])


class FlowNodeV1(FlowNode):
    data: NodeDataV1


class FlowNodeV2(FlowNode):
    data: NodeDataV2


class FlowEdge(_FlowModel):
    """A directed dependency/data-flow link between two nodes."""

    id: str | None = None
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    type: str | None = None
    data: dict[str, Any] | None = None

    @property
    def key(self) -> str:
        """Edge identifier; synthesized from the endpoints when the export omits one."""
        return self.id or f"{self.source}->{self.target}"


class FlowEdgeV1(FlowEdge):
    id: str = Field(min_length=1)


class ChatflowMetadata(_FlowModel):
    id: str | None = None
    name: str | None = None
    flow_data: str | None = Field(default=None, alias="flowData")
    deployed: bool | None = None
    is_public: bool | None = Field(default=None, alias="isPublic")
    apikeyid: str | None = None
    category: str | None = None
    created_date: str | None = Field(default=None, alias="createdDate")
    updated_date: str | None = Field(default=None, alias="updatedDate")


class _DocumentBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Plain JSON data carrying exactly the fields the input carried."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    def to_json(self) -> str:
        """Canonical JSON text of the document."""
        return canonical_json(self.to_payload())


class FlowDocument(_DocumentBase):
    """A full flow document (permissive dialect)."""

    nodes: list[FlowNode]
    edges: list[FlowEdge]
    chatflow: ChatflowMetadata | None = None
    viewport: Viewport | None = None
    version: str | float | None = None

    @field_validator("nodes")
    @classmethod
    def validate_has_nodes(cls, v: list[Any]) -> list[Any]:
        if not v:
            raise ValueError(_EMPTY_FLOW_MESSAGE)
        return v

    @property
    def name(self) -> str | None:
        return self.chatflow.name if self.chatflow is not None else None


class FlowDocumentV1(FlowDocument):
    nodes: list[FlowNodeV1]
    edges: list[FlowEdgeV1]


class FlowDocumentV2(FlowDocument):
    nodes: list[FlowNodeV2]
    edges: list[FlowEdgeV1]


class StrictFlowDocument(FlowDocument):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class StrictFlowDocumentV1(FlowDocumentV1):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class StrictFlowDocumentV2(FlowDocumentV2):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


# =============================================================================
# Minimal schema (structural shape only)
# =============================================================================


class MinimalNode(_FlowModel):
    id: str = Field(min_length=1)
    type: str | None = None
    data: dict[str, Any]

    @property
    def converter_type(self) -> str:
        for key in ("name", "type"):
            value = self.data.get(key)
            if isinstance(value, str) and value:
                return value
        return self.type or ""

    @property
    def label(self) -> str:
        label = self.data.get("label")
        return label if isinstance(label, str) else ""

    @property
    def category(self) -> str | None:
        category = self.data.get("category")
        return category if isinstance(category, str) else None

    @property
    def description(self) -> str | None:
        description = self.data.get("description")
        return description if isinstance(description, str) else None

    def input_port_ids(self) -> set[str]:
        ids = _anchor_ids(self.data.get("inputAnchors") or [])
        for param in self.data.get("inputParams") or ():
            if isinstance(param, dict) and isinstance(param.get("id"), str):
                ids.add(param["id"])
        return ids

    def output_port_ids(self) -> set[str]:
        return _anchor_ids(self.data.get("outputAnchors") or [])


class MinimalEdge(_FlowModel):
    id: str | None = None
    source: str = Field(min_length=1)
    target: str = Field(min_length=1)
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")

    @property
    def key(self) -> str:
        return self.id or f"{self.source}->{self.target}"


class MinimalFlowDocument(_DocumentBase):
    nodes: list[MinimalNode]
    edges: list[MinimalEdge] = Field(default_factory=list)
    chatflow: dict[str, Any] | None = None
    viewport: dict[str, Any] | None = None
    version: str | float | None = None

    @field_validator("nodes")
    @classmethod
    def validate_has_nodes(cls, v: list[Any]) -> list[Any]:
        if not v:
            raise ValueError(_EMPTY_FLOW_MESSAGE)
        return v

    @property
    def name(self) -> str | None:
        if self.chatflow is not None and isinstance(self.chatflow.get("name"), str):
            return self.chatflow["name"]
        return None


class StrictMinimalFlowDocument(MinimalFlowDocument):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


AnyFlowDocument: TypeAlias = FlowDocument | MinimalFlowDocument

_SCHEMAS: dict[tuple[Dialect, bool], type[FlowDocument]] = {
    (Dialect.UNKNOWN, False): FlowDocument,
    (Dialect.UNKNOWN, True): StrictFlowDocument,
    (Dialect.V1, False): FlowDocumentV1,
    (Dialect.V1, True): StrictFlowDocumentV1,
    (Dialect.V2, False): FlowDocumentV2,
    (Dialect.V2, True): StrictFlowDocumentV2,
}


def get_validation_schema(
    dialect: Dialect,
    *,
    strict: bool = True,
    minimal: bool = False,
) -> type[FlowDocument] | type[MinimalFlowDocument]:
    """Select the document model for a dialect and option combination.

    Args:
        dialect: Detected or configured dialect; UNKNOWN selects the
            permissive schema
        strict: Reject unrecognized top-level fields
        minimal: Structural shape only (dialect is ignored)

    Returns:
        Pydantic model class to validate against
    """
    if minimal:
        return StrictMinimalFlowDocument if strict else MinimalFlowDocument
    return _SCHEMAS[(dialect, strict)]
