"""All kinds, tiers, and dialect tags used across subsystem boundaries.

Every value here crosses a module boundary (parser -> analyzer -> assembler
-> caller), so they are StrEnums: they compare equal to their string form
and serialize without custom encoders.
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Taxonomy of errors reported to callers.

    Values:
        SYNTAX: Document is not parseable as structured text
        VALIDATION: Schema or referential violation
        STRUCTURE: Internal invariant violation (cycle, dangling edge,
            unregistered node type, oversized input)
        VERSION: Reserved for dialect-specific hard failures
        NETWORK: Upstream fetch failure
    """

    SYNTAX = "syntax"
    VALIDATION = "validation"
    STRUCTURE = "structure"
    VERSION = "version"
    NETWORK = "network"


class WarningKind(StrEnum):
    """Advisory warnings. Never blocking."""

    DEPRECATED = "deprecated"
    COMPATIBILITY = "compatibility"
    PERFORMANCE = "performance"
    BEST_PRACTICE = "best_practice"


class FragmentKind(StrEnum):
    """Structural role of a code fragment.

    Declaration order is the emission rank within a single node: a node's
    imports always precede its initialization.
    """

    IMPORT = "import"
    DECLARATION = "declaration"
    SETUP = "setup"
    INITIALIZATION = "initialization"
    POST_INIT = "postInit"

    @property
    def rank(self) -> int:
        return _FRAGMENT_RANK[self]


_FRAGMENT_RANK: dict[FragmentKind, int] = {kind: index for index, kind in enumerate(FragmentKind)}


class Complexity(StrEnum):
    """Diagnostic complexity tier of a graph."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class Dialect(StrEnum):
    """Schema generation that produced a flow document."""

    V1 = "1.x"
    V2 = "2.x"
    UNKNOWN = "unknown"


class SourceType(StrEnum):
    """Where a parsed document came from."""

    STRING = "string"
    BYTES = "bytes"
    FILE = "file"
    URL = "url"
