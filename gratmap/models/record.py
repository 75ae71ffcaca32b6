from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Header and record models.

A parse produces exactly one HeaderRow. Every Record built from that parse
references the same HeaderRow instance, so raw headers, clean headers and the
record's raw cells are always read through one index space.
"""

__all__ = [
    "Column",
    "HeaderRow",
    "Record",
    "SEMANTIC_FIELDS",
    "EMPTY_HEADER",
]

SEMANTIC_FIELDS: tuple[str, ...] = (
    "id",
    "evento",
    "ult_dia_evento",
    "valor",
    "doc_autoriza",
    "nr_diex",
    "data_diex",
    "observacao",
    "situacao",
    "om",
)


@dataclass(frozen=True)
class Column:
    index: int
    raw_name: str  # exactly as exported (may contain line breaks)
    clean_name: str  # whitespace-normalized, used for lookups


@dataclass(frozen=True)
class HeaderRow:
    """The located header row with its two index-aligned views."""
    row_index: int  # 0-based index in the grid
    raw_headers: tuple[str, ...]
    clean_headers: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.raw_headers) != len(self.clean_headers):
            raise ValueError(
                f"header views out of alignment: raw={len(self.raw_headers)} clean={len(self.clean_headers)}"
            )

    @property
    def width(self) -> int:
        return len(self.raw_headers)

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(
            Column(index=i, raw_name=raw, clean_name=clean)
            for i, (raw, clean) in enumerate(zip(self.raw_headers, self.clean_headers))
        )

    def mapping(self) -> dict[str, str]:
        """Clean header -> raw header. The first column wins on duplicate titles."""
        result: dict[str, str] = {}
        for raw, clean in zip(self.raw_headers, self.clean_headers):
            if clean and clean not in result:
                result[clean] = raw
        return result


EMPTY_HEADER = HeaderRow(row_index=0, raw_headers=(), clean_headers=())


@dataclass(frozen=True)
class Record:
    """One gratuity map parsed from one data row."""
    id: str  # "Mapa" column, never empty
    evento: str = ""
    ult_dia_evento: str = ""
    valor: str = ""  # display-formatted currency text
    doc_autoriza: str = ""
    nr_diex: str = ""
    data_diex: str = ""
    observacao: str = ""
    situacao: str = ""
    om: str = ""
    raw_row: tuple[str, ...] = ()
    header: HeaderRow = field(default=EMPTY_HEADER, repr=False)
    row_number: int = 0  # 1-based physical row; 0 for key-based stores
    key_column: str = "Mapa"

    @property
    def raw_headers(self) -> tuple[str, ...]:
        return self.header.raw_headers

    @property
    def clean_headers(self) -> tuple[str, ...]:
        return self.header.clean_headers

    def value_of(self, clean_header: str) -> str:
        try:
            index = self.header.clean_headers.index(clean_header)
        except ValueError:
            return ""
        return self.raw_row[index] if index < len(self.raw_row) else ""

    def initial_values(self) -> dict[str, str]:
        """Snapshot keyed by clean header, the shape the change-set builder diffs."""
        values: dict[str, str] = {}
        for clean, cell in zip(self.header.clean_headers, self.raw_row):
            if clean and clean not in values:
                values[clean] = cell
        return values

    def header_mapping(self) -> dict[str, str]:
        return self.header.mapping()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {name: getattr(self, name) for name in SEMANTIC_FIELDS}
        data["row_number"] = self.row_number
        return data
