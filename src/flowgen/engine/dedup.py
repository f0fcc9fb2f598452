# src/flowgen/engine/dedup.py
"""Import fragment deduplication.

This is the only place fragments are compared by content. Two import
fragments merge only when package AND exact symbol set match; subsets and
overlaps stay separate for the emitter to coalesce textually.
"""

from __future__ import annotations

from collections.abc import Iterable

from flowgen.contracts.enums import FragmentKind
from flowgen.contracts.fragments import CodeFragment


def merge_imports(fragments: Iterable[CodeFragment]) -> tuple[list[CodeFragment], int]:
    """Drop repeated import fragments, keeping the first occurrence in place.

    Import fragments without an import_spec are opaque and always kept.

    Returns:
        (fragments in their original relative order, number dropped)
    """
    seen: set[tuple[str, tuple[str, ...]]] = set()
    kept: list[CodeFragment] = []
    dropped = 0
    for fragment in fragments:
        if fragment.kind == FragmentKind.IMPORT and fragment.import_spec is not None:
            key = fragment.import_spec.key
            if key in seen:
                dropped += 1
                continue
            seen.add(key)
        kept.append(fragment)
    return kept, dropped
