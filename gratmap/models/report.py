from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

"""Report models for the financial aggregation.

A Report is rebuilt from scratch whenever the filters or the grouping dimension
change; none of these objects is mutated after construction.
"""

__all__ = [
    "GroupBy",
    "StatusClass",
    "Bucket",
    "ReportRow",
    "Report",
]


class GroupBy(Enum):
    """Grouping dimension of a report."""
    EVENT = "evento"
    UNIT = "om"

    @property
    def placeholder(self) -> str:
        return "Sem Evento" if self is GroupBy.EVENT else "Sem OM"

    @property
    def total_label(self) -> str:
        return "EVENTO/TOTAIS" if self is GroupBy.EVENT else "OM/TOTAIS"


class StatusClass(Enum):
    """Mutually exclusive classification of a status text.

    Every class except CANCELED counts toward the active total.
    """
    AUTHORIZED = "authorized"
    PENDING = "pending"
    CANCELED = "canceled"
    OTHER = "other"

    @property
    def is_active(self) -> bool:
        return self is not StatusClass.CANCELED


@dataclass(frozen=True)
class Bucket:
    count: int = 0
    value: Decimal = Decimal("0")

    def plus(self, value: Decimal) -> Bucket:
        return Bucket(count=self.count + 1, value=self.value + value)


@dataclass(frozen=True)
class ReportRow:
    label: str
    authorized: Bucket = field(default_factory=Bucket)
    pending: Bucket = field(default_factory=Bucket)
    canceled: Bucket = field(default_factory=Bucket)
    active_total: Bucket = field(default_factory=Bucket)

    def bucket(self, name: str) -> Bucket:
        return getattr(self, name)


@dataclass(frozen=True)
class Report:
    group_by: GroupBy
    rows: tuple[ReportRow, ...]  # sorted by label
    grand_total: ReportRow

    @property
    def labels(self) -> list[str]:
        return [row.label for row in self.rows]

    def row_for(self, label: str) -> ReportRow | None:
        for row in self.rows:
            if row.label == label:
                return row
        return None
