from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd

from .parser import Grid, parse_delimited

"""Sheet export readers.

Both readers return the same plain grid of strings so the header resolver and
the record mapper never see where the data came from:
- .csv / .txt exports go through the tolerant parser
- .xlsx exports are read with pandas (header=None) and stringified cell by cell
"""

__all__ = [
    "ReaderError",
    "read_grid",
    "read_csv_grid",
    "read_excel_grid",
    "frame_to_grid",
]

TEXT_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


class ReaderError(Exception):
    """Raised when an export file cannot be read at all."""


def read_csv_grid(path: Path, encoding: str = "utf-8") -> Grid:
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise ReaderError(f"cannot read {path}: {e}") from e
    # utf-8-sig exports carry a BOM in the first cell
    return parse_delimited(text.lstrip("\ufeff"))


def _stringify(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    # datetime and pd.Timestamp are date subclasses
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        # decimal comma, as the sheet displays money
        return str(float(value)).replace(".", ",")
    return str(value).strip()


def frame_to_grid(df: pd.DataFrame) -> Grid:
    """Convert a header-less DataFrame into a grid of trimmed strings."""
    grid: Grid = []
    for raw in df.itertuples(index=False, name=None):
        cells = [_stringify(v) for v in raw]
        # Excel pads every row to the used range; drop trailing blanks
        while cells and cells[-1] == "":
            cells.pop()
        # blank rows are kept so grid positions stay equal to sheet rows
        grid.append(cells or [""])
    return grid


def read_excel_grid(path: Path, sheet_name: str | int = 0) -> Grid:
    """Read one worksheet of an .xlsx export as a grid.

    Parameters
    ----------
    path: .xlsx file path
    sheet_name: worksheet name or 0-based position (default: first sheet)
    """
    try:
        df = pd.read_excel(path, sheet_name=sheet_name, header=None, dtype=object, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise ReaderError(f"cannot read {path}: {e}") from e
    return frame_to_grid(df)


def read_grid(path: Path, sheet_name: str | int = 0) -> Grid:
    if not path.exists():
        raise ReaderError(f"file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in TEXT_SUFFIXES:
        return read_csv_grid(path)
    if suffix in EXCEL_SUFFIXES:
        return read_excel_grid(path, sheet_name=sheet_name)
    raise ReaderError(f"unsupported export format: {path.suffix}")
