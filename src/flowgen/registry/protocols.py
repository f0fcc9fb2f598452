# src/flowgen/registry/protocols.py
"""Converter protocol: the contract between the assembler and node handlers.

Used for type checking and a cheap isinstance() sanity check at
registration; conversion logic itself is opaque to the core.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from flowgen.contracts.fragments import CodeFragment, GenerationContext
    from flowgen.core.dag.models import NodeInfo


@runtime_checkable
class ConverterProtocol(Protocol):
    """Handler for one node type.

    Optional attributes, read with getattr() defaults:
        deprecated: bool - usage adds a `deprecated` warning
        replacement_type: str | None - suggested successor node type

    Example:
        class BufferMemoryConverter(BaseConverter):
            node_type = "bufferMemory"
            category = "memory"

            def convert(self, node, context):
                return [CodeFragment(id="memory", kind=FragmentKind.INITIALIZATION, content="...")]
    """

    node_type: str
    category: str

    def convert(self, node: "NodeInfo", context: "GenerationContext") -> list["CodeFragment"]:
        """Produce the fragments for one node.

        `context.flow_state` is shared with the other converters of the
        same assembly and may be mutated.
        """
        ...

    def get_dependencies(self, node: "NodeInfo", context: "GenerationContext") -> list[str]:
        """Package names the generated code needs installed."""
        ...
