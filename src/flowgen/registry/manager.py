# src/flowgen/registry/manager.py
"""Converter registry: discovery, registration, and lookup.

Uses pluggy for hook-based registration. The lookup table is rebuilt on
every registration and only read during assembly, so one registry can
serve concurrent assemblies.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import pluggy

from flowgen.contracts.errors import ConverterRegistrationError
from flowgen.core.logging import get_logger
from flowgen.registry.hookspecs import PROJECT_NAME, FlowgenConverterSpec, hookimpl
from flowgen.registry.protocols import ConverterProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistryStatistics:
    """Snapshot of what a registry can convert."""

    total_converters: int
    total_aliases: int
    by_category: dict[str, int] = field(default_factory=dict)
    deprecated_converters: int = 0


def is_deprecated(converter: ConverterProtocol) -> bool:
    return bool(getattr(converter, "deprecated", False))


def replacement_for(converter: ConverterProtocol) -> str | None:
    replacement = getattr(converter, "replacement_type", None)
    return replacement if isinstance(replacement, str) and replacement else None


class _ConverterPlugin:
    """Hook implementation wrapping directly registered converters."""

    def __init__(self, converters: list[ConverterProtocol]) -> None:
        self._converters = converters

    @hookimpl
    def flowgen_get_converters(self) -> list[ConverterProtocol]:
        return list(self._converters)


class ConverterRegistry:
    """Maps node types to converters.

    Usage:
        registry = ConverterRegistry()
        registry.register(MyConverterPlugin())      # any object with hookimpls
        registry.register_converter(MyConverter())  # single converter
        registry.register_alias("chatOpenAICustom", "chatOpenAI")

        converter = registry.resolve("chatOpenAICustom")
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FlowgenConverterSpec)

        self._converters: dict[str, ConverterProtocol] = {}
        self._aliases: dict[str, str] = {}

    def register(self, plugin: Any) -> None:
        """Register a plugin implementing flowgen_get_converters.

        Args:
            plugin: Plugin instance implementing hook methods

        Raises:
            ConverterRegistrationError: If the plugin contributes a node type
                that is already registered, or an object that is not a
                converter. The plugin is left unregistered.
        """
        self._pm.register(plugin)
        try:
            self._refresh()
        except ConverterRegistrationError:
            self._pm.unregister(plugin)
            raise

    def register_converter(self, converter: ConverterProtocol) -> None:
        """Register a single converter instance."""
        self.register(_ConverterPlugin([converter]))

    def _refresh(self) -> None:
        """Rebuild the lookup table from hooks.

        Raises:
            ConverterRegistrationError: On duplicate node types or non-converters
        """
        table: dict[str, ConverterProtocol] = {}
        # pluggy calls hookimpls in LIFO registration order; reverse so the
        # first-registered plugin is named as the original owner of a type
        for converters in reversed(self._pm.hook.flowgen_get_converters()):
            for converter in converters:
                if not isinstance(converter, ConverterProtocol):
                    raise ConverterRegistrationError(f"{converter!r} does not implement ConverterProtocol")
                node_type = converter.node_type
                if not node_type:
                    raise ConverterRegistrationError(f"{converter!r} has an empty node_type")
                if node_type in table:
                    raise ConverterRegistrationError(
                        f"Duplicate converter for node type: '{node_type}'. Already registered by {table[node_type]!r}"
                    )
                if node_type in self._aliases:
                    raise ConverterRegistrationError(f"Node type '{node_type}' is already registered as an alias")
                table[node_type] = converter
        self._converters = table

    def register_alias(self, alias: str, node_type: str) -> None:
        """Resolve `alias` to the converter registered for `node_type`.

        Raises:
            ConverterRegistrationError: If node_type is not registered or
                alias already names a converter
        """
        if node_type not in self._converters:
            raise ConverterRegistrationError(f"Target type '{node_type}' is not registered")
        if alias in self._converters:
            raise ConverterRegistrationError(f"Alias '{alias}' collides with a registered node type")
        self._aliases[alias] = node_type

    def resolve(self, node_type: str) -> ConverterProtocol | None:
        """Converter for node_type: direct registration first, then aliases."""
        converter = self._converters.get(node_type)
        if converter is not None:
            return converter
        target = self._aliases.get(node_type)
        if target is not None:
            return self._converters.get(target)
        return None

    def has_converter(self, node_type: str) -> bool:
        return self.resolve(node_type) is not None

    def registered_types(self) -> list[str]:
        """Directly registered node types, sorted. Aliases excluded."""
        return sorted(self._converters)

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def statistics(self) -> RegistryStatistics:
        converters = list(self._converters.values())
        return RegistryStatistics(
            total_converters=len(converters),
            total_aliases=len(self._aliases),
            by_category=dict(Counter(converter.category for converter in converters)),
            deprecated_converters=sum(1 for converter in converters if is_deprecated(converter)),
        )
