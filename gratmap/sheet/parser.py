from __future__ import annotations

"""Tolerant delimited-text parser.

The exported sheet is edited by hand upstream and is not guaranteed to be
well-formed CSV, so the parser never raises: unbalanced quotes simply turn the
rest of the input into literal text of the current cell.

Rules:
- a quote toggles quoted mode; a doubled quote inside quotes is a literal quote
- the delimiter ends a cell unless inside quotes
- ``\\n``, ``\\r`` or ``\\r\\n`` ends a row unless inside quotes
- every cell is trimmed when it is closed
- a row with no cells and no pending text is not emitted
"""

__all__ = [
    "parse_delimited",
    "Grid",
]

Grid = list[list[str]]


def parse_delimited(text: str, delimiter: str = ",", quote: str = '"') -> Grid:
    """Parse ``text`` into a grid of string cells in a single pass."""
    result: Grid = []
    row: list[str] = []
    token: list[str] = []
    inside_quotes = False

    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        next_char = text[i + 1] if i + 1 < n else ""

        if char == quote:
            if inside_quotes and next_char == quote:
                token.append(quote)
                i += 1
            else:
                inside_quotes = not inside_quotes
        elif char == delimiter and not inside_quotes:
            row.append("".join(token).strip())
            token = []
        elif char in "\r\n" and not inside_quotes:
            if token or row:
                row.append("".join(token).strip())
                result.append(row)
            row = []
            token = []
            if char == "\r" and next_char == "\n":
                i += 1
        else:
            token.append(char)
        i += 1

    if token or row:
        row.append("".join(token).strip())
        result.append(row)

    return result
