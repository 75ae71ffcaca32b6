from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from ..models.record import Record
from .dates import to_display_date

"""Change-set builder for partial record updates.

The editing surface works on clean headers, the backing store identifies
columns by their raw header text. The builder diffs the two value snapshots,
treats ISO and display forms of the same date as equal, and emits only the
changed cells keyed by the sanitized raw header.

An empty change-set means "nothing to update"; callers skip the write.
Locked columns (computed day counts, status, year, owning unit) are never
offered for editing; the builder itself does not filter them.
"""

__all__ = [
    "sanitize_header",
    "normalize_for_compare",
    "build_change_set",
    "build_record_change_set",
    "is_locked",
    "editable_fields",
]

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


def sanitize_header(raw: str | None) -> str:
    """Raw header as the update endpoint expects it: no line breaks, trimmed."""
    if not raw:
        return ""
    return _LINE_BREAKS.sub("", raw).strip()


def normalize_for_compare(value: str | None) -> str:
    if value is None:
        return ""
    return to_display_date(value)


def build_change_set(
    initial_values: Mapping[str, str | None],
    edited_values: Mapping[str, str | None],
    header_mapping: Mapping[str, str],
) -> dict[str, str]:
    """Return ``{sanitized raw header: edited value}`` for every changed field.

    Args:
        initial_values: Snapshot before editing, keyed by clean header
        edited_values: Values after editing, keyed by clean header
        header_mapping: Clean header -> raw header

    Returns:
        Only the fields whose normalized values differ. The edited value is
        sent as typed, not in its normalized form.
    """
    changes: dict[str, str] = {}
    for clean, edited in edited_values.items():
        if normalize_for_compare(initial_values.get(clean)) == normalize_for_compare(edited):
            continue
        raw = header_mapping.get(clean)
        if not raw:
            logger.debug("no raw header for %r, change skipped", clean)
            continue
        changes[sanitize_header(raw)] = edited if edited is not None else ""
    return changes


def build_record_change_set(record: Record, edited_values: Mapping[str, str | None]) -> dict[str, str]:
    return build_change_set(record.initial_values(), edited_values, record.header_mapping())


def is_locked(clean_header: str, locked_fields: Iterable[str]) -> bool:
    lowered = clean_header.lower()
    for pattern in locked_fields:
        p = pattern.lower()
        if p.endswith("*"):
            if lowered.startswith(p[:-1]):
                return True
        elif lowered == p:
            return True
    return False


def editable_fields(record: Record, locked_fields: Iterable[str]) -> list[str]:
    """Clean headers an editing surface may offer for ``record``."""
    locked = tuple(locked_fields)
    seen: set[str] = set()
    result: list[str] = []
    for clean in record.clean_headers:
        if not clean or clean in seen or is_locked(clean, locked):
            continue
        seen.add(clean)
        result.append(clean)
    return result
