from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from ..models.config_models import FieldSpec, SheetLayoutConfig
from ..models.record import HeaderRow

"""Header row location and semantic column resolution.

The sheet has no schema contract: the header row may move down a few rows,
titles may contain line breaks, and columns get reordered. Resolution is done
by substring matching against a FieldSpec table, first match wins. Nothing in
here raises on bad data; a wrong header row yields unresolved columns.
"""

__all__ = [
    "clean_header",
    "locate_header_row",
    "resolve_header",
    "find_column",
    "resolve_columns",
]

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"\s+")


def clean_header(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _LINE_BREAKS.sub(" ", text)).strip()


def _cell(grid: Sequence[Sequence[str]], row: int, column: int) -> str:
    if row < 0 or row >= len(grid):
        return ""
    cells = grid[row]
    if column < 0 or column >= len(cells):
        return ""
    return cells[column] or ""


def locate_header_row(
    grid: Sequence[Sequence[str]],
    start_column: int,
    anchor: str,
    default_row: int,
    scan_window: int,
) -> int:
    """Return the 0-based index of the header row.

    The default row is kept when its anchor cell contains the anchor token.
    Otherwise the first ``scan_window`` rows are searched for a cell equal to
    the anchor; when none is found the default row is returned anyway.
    """
    anchor = anchor.strip().lower()
    if anchor in _cell(grid, default_row, start_column).lower():
        return default_row
    for i in range(min(len(grid), scan_window)):
        if _cell(grid, i, start_column).strip().lower() == anchor:
            if i != default_row:
                logger.debug("header row found at %d (default %d)", i, default_row)
            return i
    logger.warning("anchor %r not found in first %d rows, using row %d", anchor, scan_window, default_row)
    return default_row


def resolve_header(grid: Sequence[Sequence[str]], layout: SheetLayoutConfig) -> HeaderRow:
    index = locate_header_row(
        grid,
        layout.start_column,
        layout.anchor,
        layout.default_header_row,
        layout.scan_window,
    )
    if index >= len(grid):
        return HeaderRow(row_index=index, raw_headers=(), clean_headers=())
    raw = tuple(cell or "" for cell in grid[index])
    return HeaderRow(row_index=index, raw_headers=raw, clean_headers=tuple(clean_header(c) for c in raw))


def _matches(header: str, candidate: tuple[str, ...], exact: bool) -> bool:
    lowered = header.lower()
    if exact:
        return len(candidate) == 1 and lowered == candidate[0].lower()
    return all(token.lower() in lowered for token in candidate)


def find_column(clean_headers: Sequence[str], spec: FieldSpec) -> int | None:
    """Index of the first header matching any candidate, or None."""
    for index, header in enumerate(clean_headers):
        if any(_matches(header, candidate, spec.exact) for candidate in spec.candidates):
            return index
    if spec.fallback_index is not None and len(clean_headers) > spec.fallback_index:
        return spec.fallback_index
    return None


def resolve_columns(header: HeaderRow, fields: Mapping[str, FieldSpec]) -> dict[str, int | None]:
    columns = {name: find_column(header.clean_headers, spec) for name, spec in fields.items()}
    missing = sorted(name for name, index in columns.items() if index is None)
    if missing:
        logger.debug("unresolved fields: %s", missing)
    return columns
