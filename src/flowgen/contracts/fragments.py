"""Code fragments and the context handed to converters.

Fragments are the assembler's output unit. They never reference each
other: cross-fragment relationships are expressed only through `kind`
and `order`, and `source_node_id` is a plain identifier used for error
attribution, never for traversal.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from flowgen.contracts.enums import FragmentKind


@dataclass(frozen=True, slots=True)
class ImportSpec:
    """What an import fragment brings into scope.

    Two import fragments are the same import only when both the package
    and the exact symbol set match. Partial overlaps are distinct.
    """

    package: str
    symbols: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, package: str, *symbols: str) -> ImportSpec:
        return cls(package=package, symbols=frozenset(symbols))

    @property
    def key(self) -> tuple[str, tuple[str, ...]]:
        return (self.package, tuple(sorted(self.symbols)))


@dataclass(frozen=True, slots=True)
class CodeFragment:
    """An opaque, ordered unit of generated source text.

    Attributes:
        id: Fragment identifier (unique per producing node)
        kind: Structural role (import, declaration, setup, ...)
        content: Source text; opaque to the core
        dependencies: Package names the fragment needs installed
        source_node_id: Node that produced the fragment (set by the assembler
            when the converter leaves it empty)
        order: Tie-break within one node's fragments of the same kind
        import_spec: Package + symbols for import fragments; the
            deduplication key. Import fragments without one are never merged.
    """

    id: str
    kind: FragmentKind
    content: str
    dependencies: tuple[str, ...] = ()
    source_node_id: str | None = None
    order: int = 0
    import_spec: ImportSpec | None = None

    def with_source(self, node_id: str) -> CodeFragment:
        """Return a copy attributed to node_id."""
        return dataclasses.replace(self, source_node_id=node_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "kind": str(self.kind),
            "content": self.content,
            "dependencies": list(self.dependencies),
            "source_node_id": self.source_node_id,
            "order": self.order,
        }
        if self.import_spec is not None:
            data["import"] = {
                "package": self.import_spec.package,
                "symbols": sorted(self.import_spec.symbols),
            }
        return data


@dataclass(frozen=True)
class GenerationContext:
    """Per-assembly context threaded through every converter call.

    `flow_state` is scratch space shared by the converters of ONE assembly
    (e.g. variable names already claimed). The assembler hands every run a
    fresh copy via `fresh()`, so concurrent assemblies never share it.
    """

    target_language: str = "typescript"
    project_name: str = "converted-flow"
    include_langfuse: bool = False
    options: dict[str, Any] = field(default_factory=dict)
    flow_state: dict[str, Any] = field(default_factory=dict)

    def fresh(self) -> GenerationContext:
        """Copy with an empty flow_state."""
        return dataclasses.replace(self, options=dict(self.options), flow_state={})
