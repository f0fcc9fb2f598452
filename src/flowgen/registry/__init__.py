# src/flowgen/registry/__init__.py
"""Converter registry: the lookup table the assembler drives per node."""

from flowgen.registry.base import BaseConverter
from flowgen.registry.hookspecs import PROJECT_NAME, hookimpl, hookspec
from flowgen.registry.manager import ConverterRegistry, RegistryStatistics
from flowgen.registry.protocols import ConverterProtocol

__all__ = [
    "PROJECT_NAME",
    "BaseConverter",
    "ConverterProtocol",
    "ConverterRegistry",
    "RegistryStatistics",
    "hookimpl",
    "hookspec",
]
