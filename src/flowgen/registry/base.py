# src/flowgen/registry/base.py
"""Base class for converters.

Subclasses set `node_type` and `category` and implement convert().
"""

from abc import ABC, abstractmethod

from flowgen.contracts.fragments import CodeFragment, GenerationContext
from flowgen.core.dag.models import NodeInfo


class BaseConverter(ABC):
    """Convenience base implementing the optional parts of ConverterProtocol."""

    node_type: str
    category: str = "uncategorized"
    deprecated: bool = False
    replacement_type: str | None = None

    @abstractmethod
    def convert(self, node: NodeInfo, context: GenerationContext) -> list[CodeFragment]:
        """Produce the fragments for one node."""
        ...

    def get_dependencies(self, node: NodeInfo, context: GenerationContext) -> list[str]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(node_type={self.node_type!r})"
