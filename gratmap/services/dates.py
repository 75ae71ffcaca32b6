from __future__ import annotations

import re
from datetime import date

"""Date text conversions between the ISO form (date pickers, database) and
the DD/MM/YYYY display form used in the sheet."""

__all__ = [
    "ISO_DATE",
    "is_iso_date",
    "to_display_date",
    "to_iso_date",
    "year_of",
]

ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def is_iso_date(value: str) -> bool:
    return bool(ISO_DATE.match(value.strip()))


def to_display_date(value: str | None) -> str:
    """``2026-01-05`` -> ``05/01/2026``; anything else is returned unchanged."""
    if not value:
        return ""
    m = ISO_DATE.match(value.strip())
    if not m:
        return value
    year, month, day = m.groups()
    return f"{day}/{month}/{year}"


def to_iso_date(value: str | None) -> str | None:
    """``5/1/26`` -> ``2026-01-05``. Empty text becomes None (SQL NULL)."""
    if not value or not value.strip():
        return None
    text = value.strip()
    if "-" in text:
        return text
    parts = text.split("/")
    if len(parts) != 3:
        return text
    day, month, year = parts
    if len(year) == 2:
        year = "20" + year
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def year_of(value: str | None, default: int | None = None) -> str:
    """Year of an ISO or DD/MM/YYYY date text, falling back to ``default``
    (current year when not given)."""
    fallback = str(default if default is not None else date.today().year)
    if not value:
        return fallback
    text = value.strip()
    if "-" in text:
        head = text.split("-")[0]
        return head if head.isdigit() and len(head) == 4 else fallback
    parts = text.split("/")
    if len(parts) == 3 and parts[2].isdigit():
        return parts[2] if len(parts[2]) == 4 else "20" + parts[2].zfill(2)
    return fallback
