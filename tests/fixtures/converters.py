# tests/fixtures/converters.py
"""Converters used to drive the assembler in tests."""

from __future__ import annotations

from collections.abc import Sequence

from flowgen.contracts import CodeFragment, FragmentKind, GenerationContext, ImportSpec
from flowgen.core.dag import NodeInfo
from flowgen.registry import BaseConverter, hookimpl


class StaticConverter(BaseConverter):
    """Emits one import fragment per import spec and one initialization fragment."""

    def __init__(
        self,
        node_type: str,
        *,
        category: str = "test",
        imports: Sequence[tuple[str, Sequence[str]]] = (("@langchain/core", ("BaseMessage",)),),
        dependencies: Sequence[str] = ("@langchain/core",),
        deprecated: bool = False,
        replacement_type: str | None = None,
    ) -> None:
        self.node_type = node_type
        self.category = category
        self.deprecated = deprecated
        self.replacement_type = replacement_type
        self._imports = imports
        self._dependencies = dependencies

    def convert(self, node: NodeInfo, context: GenerationContext) -> list[CodeFragment]:
        # Initialization first to prove the assembler sorts by kind
        fragments = [
            CodeFragment(
                id=f"{node.node_id}-init",
                kind=FragmentKind.INITIALIZATION,
                content=f"const {node.node_id} = new {self.node_type}();",
            )
        ]
        for index, (package, symbols) in enumerate(self._imports):
            fragments.append(
                CodeFragment(
                    id=f"{node.node_id}-import-{index}",
                    kind=FragmentKind.IMPORT,
                    content=f"import {{ {', '.join(symbols)} }} from '{package}';",
                    import_spec=ImportSpec.of(package, *symbols),
                )
            )
        return fragments

    def get_dependencies(self, node: NodeInfo, context: GenerationContext) -> list[str]:
        return list(self._dependencies)


class FailingConverter(BaseConverter):
    category = "test"

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type

    def convert(self, node: NodeInfo, context: GenerationContext) -> list[CodeFragment]:
        raise RuntimeError(f"cannot convert {node.node_id}")


class StateRecordingConverter(BaseConverter):
    """Records every node it sees in context.flow_state["seen"]."""

    category = "test"

    def __init__(self, node_type: str) -> None:
        self.node_type = node_type

    def convert(self, node: NodeInfo, context: GenerationContext) -> list[CodeFragment]:
        seen = context.flow_state.setdefault("seen", [])
        seen.append(node.node_id)
        return [
            CodeFragment(
                id=f"{node.node_id}-seen",
                kind=FragmentKind.SETUP,
                content=",".join(seen),
            )
        ]


class ConverterBundle:
    """Plugin contributing several converters through the hook."""

    def __init__(self, *converters: BaseConverter) -> None:
        self._converters = list(converters)

    @hookimpl
    def flowgen_get_converters(self) -> list[BaseConverter]:
        return list(self._converters)
