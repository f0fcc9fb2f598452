"""Shared contracts for flowgen.

Leaf package: imports nothing from flowgen.core, flowgen.registry, or
flowgen.engine at runtime, so every other layer can depend on it.
"""

from flowgen.contracts.enums import (
    Complexity,
    Dialect,
    ErrorKind,
    FragmentKind,
    SourceType,
    WarningKind,
)
from flowgen.contracts.errors import (
    ConverterRegistrationError,
    ParseError,
    ParseWarning,
    ValidationReport,
)
from flowgen.contracts.fragments import CodeFragment, GenerationContext, ImportSpec
from flowgen.contracts.results import (
    AssemblyResult,
    ConversionMetadata,
    ConversionResult,
    ParseMetadata,
    ParseResult,
    VersionDetectionResult,
)

__all__ = [
    "AssemblyResult",
    "CodeFragment",
    "Complexity",
    "ConversionMetadata",
    "ConversionResult",
    "ConverterRegistrationError",
    "Dialect",
    "ErrorKind",
    "FragmentKind",
    "GenerationContext",
    "ImportSpec",
    "ParseError",
    "ParseMetadata",
    "ParseResult",
    "ParseWarning",
    "SourceType",
    "ValidationReport",
    "VersionDetectionResult",
    "WarningKind",
]
