from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ..models.config_models import SheetLayoutConfig
from ..models.record import SEMANTIC_FIELDS, HeaderRow, Record
from ..sheet.headers import resolve_columns, resolve_header
from .change_set import sanitize_header

"""Record mapping: data rows + resolved columns -> Record objects.

Rows after the header whose identifier cell is empty are blank separators or
unfinished drafts; they are skipped, never materialized. Every row is padded
or truncated to the header width so raw cells stay aligned with the shared
header views.
"""

__all__ = [
    "map_rows",
    "load_records",
]

logger = logging.getLogger(__name__)


def _fit(row: Sequence[str], width: int) -> tuple[str, ...]:
    cells = tuple(c or "" for c in row[:width])
    if len(cells) < width:
        cells += ("",) * (width - len(cells))
    return cells


def map_rows(
    grid: Sequence[Sequence[str]],
    header: HeaderRow,
    columns: Mapping[str, int | None],
    *,
    key_based: bool = False,
) -> list[Record]:
    """Build records from every row strictly after the header row.

    Args:
        grid: Parsed cell grid
        header: Located header row (shared by all returned records)
        columns: Semantic field -> column index (None when unresolved)
        key_based: True when the backing store addresses rows by key, in which
            case row_number is 0

    Returns:
        Records in source order
    """
    id_index = columns.get("id")
    if id_index is None:
        logger.warning("identifier column not resolved, no records mapped")
        return []

    key_column = sanitize_header(header.raw_headers[id_index]) or "Mapa"
    width = header.width
    records: list[Record] = []
    skipped = 0
    for position, row in enumerate(grid[header.row_index + 1:]):
        cells = _fit(row, width)
        if not cells[id_index].strip():
            skipped += 1
            continue
        values = {
            name: (cells[index] if index is not None else "")
            for name, index in ((f, columns.get(f)) for f in SEMANTIC_FIELDS)
        }
        records.append(
            Record(
                **values,
                raw_row=cells,
                header=header,
                row_number=0 if key_based else header.row_index + 1 + position + 1,
                key_column=key_column,
            )
        )
    logger.debug("mapped records=%d skipped_rows=%d header_row=%d", len(records), skipped, header.row_index)
    return records


def load_records(
    grid: Sequence[Sequence[str]],
    layout: SheetLayoutConfig | None = None,
    *,
    key_based: bool = False,
) -> list[Record]:
    """Resolve the header, its columns and map every data row in one call."""
    layout = layout or SheetLayoutConfig()
    header = resolve_header(grid, layout)
    columns = resolve_columns(header, layout.fields)
    return map_rows(grid, header, columns, key_based=key_based)
