# src/flowgen/registry/hookspecs.py
"""pluggy hook specifications for converter plugins.

Plugins implement these hooks to contribute converters to a registry.
The registry calls them every time a plugin is registered.

Usage (implementing a plugin):
    from flowgen.registry.hookspecs import hookimpl

    class LangchainConverters:
        @hookimpl  # NOT @hookspec - that's for defining specs
        def flowgen_get_converters(self):
            return [ChatOpenAIConverter(), BufferMemoryConverter()]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from flowgen.registry.protocols import ConverterProtocol

# Project name for pluggy
PROJECT_NAME = "flowgen"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class FlowgenConverterSpec:
    """Hook specifications for converter plugins."""

    @hookspec
    def flowgen_get_converters(self) -> list["ConverterProtocol"]:  # type: ignore[empty-body]
        """Return converter instances.

        Returns:
            List of converters; each handles the node type named by its
            `node_type` attribute
        """
