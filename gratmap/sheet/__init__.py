"""Sheet-level parsing: delimited text, exports and header resolution."""

from .headers import clean_header, find_column, locate_header_row, resolve_columns, resolve_header
from .parser import Grid, parse_delimited
from .reader import ReaderError, read_grid

__all__ = [
    "Grid",
    "ReaderError",
    "clean_header",
    "find_column",
    "locate_header_row",
    "parse_delimited",
    "read_grid",
    "resolve_columns",
    "resolve_header",
]
