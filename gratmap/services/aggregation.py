from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import pandas as pd

from ..models.config_models import StatusRules
from ..models.record import Record
from ..models.report import Bucket, GroupBy, Report, ReportRow, StatusClass

"""Financial report aggregation.

Records are grouped by event or owning unit. Each record is classified once
from its status text, with precedence canceled > authorized > pending > other;
everything not canceled counts toward the active total. The grand total is
accumulated in the same pass with the same classification.

Money is held as Decimal. Unparseable currency text counts as zero so one dirty
cell never breaks a report.
"""

__all__ = [
    "classify",
    "parse_money",
    "aggregate",
    "percentage",
    "format_percent",
    "format_money",
    "report_to_frame",
]

logger = logging.getLogger(__name__)

_MONEY_NOISE = re.compile(r"[R$\s.]")
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")

BUCKETS = ("authorized", "pending", "canceled", "active_total")


def classify(status: str | None, rules: StatusRules | None = None) -> StatusClass:
    rules = rules or StatusRules()
    text = (status or "").strip().lower()
    if not text:
        return StatusClass.OTHER
    if any(p.lower() in text for p in rules.canceled):
        return StatusClass.CANCELED
    if any(p.lower() in text for p in rules.authorized):
        return StatusClass.AUTHORIZED
    if any(p.lower() in text for p in rules.pending):
        return StatusClass.PENDING
    return StatusClass.OTHER


def parse_money(text: str | None) -> Decimal:
    """``R$ 1.500,00`` -> ``Decimal('1500.00')``; garbage -> 0."""
    if not text:
        return _ZERO
    cleaned = _MONEY_NOISE.sub("", text).replace(",", ".")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return _ZERO
    if not value.is_finite():
        return _ZERO
    return value


class _RowAccumulator:
    def __init__(self, label: str) -> None:
        self.label = label
        self.buckets: dict[str, Bucket] = {name: Bucket() for name in BUCKETS}

    def add(self, status_class: StatusClass, value: Decimal) -> None:
        if status_class is not StatusClass.OTHER:
            name = status_class.value
            self.buckets[name] = self.buckets[name].plus(value)
        if status_class.is_active:
            self.buckets["active_total"] = self.buckets["active_total"].plus(value)

    def freeze(self) -> ReportRow:
        return ReportRow(label=self.label, **self.buckets)


def aggregate(
    records: Iterable[Record],
    group_by: GroupBy = GroupBy.EVENT,
    rules: StatusRules | None = None,
) -> Report:
    """Group ``records`` and accumulate the four buckets per group.

    Args:
        records: Any record stream (typically the filtered dashboard records)
        group_by: GroupBy.EVENT or GroupBy.UNIT
        rules: Status phrases, defaults to StatusRules()

    Returns:
        Report with rows sorted by label and a grand-total row
    """
    rules = rules or StatusRules()
    groups: dict[str, _RowAccumulator] = {}
    total = _RowAccumulator(group_by.total_label)
    count = 0
    for record in records:
        key = getattr(record, group_by.value) or group_by.placeholder
        value = parse_money(record.valor)
        status_class = classify(record.situacao, rules)
        if key not in groups:
            groups[key] = _RowAccumulator(key)
        groups[key].add(status_class, value)
        total.add(status_class, value)
        count += 1

    rows = tuple(groups[label].freeze() for label in sorted(groups))
    logger.debug("aggregated records=%d groups=%d group_by=%s", count, len(rows), group_by.name)
    return Report(group_by=group_by, rows=rows, grand_total=total.freeze())


def percentage(value: Decimal, total: Decimal) -> Decimal:
    """Share of ``value`` in ``total`` as a 0-100 percentage, 2 decimal places.

    A zero total yields 0. A canceled bucket can exceed the active total; the
    result is clamped to 100.
    """
    if total == 0:
        return Decimal("0.00")
    pct = (value / total * _HUNDRED).quantize(_CENTS, rounding=ROUND_HALF_UP)
    return min(max(pct, Decimal("0.00")), Decimal("100.00"))


def format_percent(value: Decimal, total: Decimal) -> str:
    return f"{percentage(value, total)}%"


def format_money(value: Decimal) -> str:
    """Brazilian currency display: ``Decimal('1500')`` -> ``R$ 1.500,00``."""
    text = f"{value.quantize(_CENTS, rounding=ROUND_HALF_UP):,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")


def report_to_frame(report: Report) -> pd.DataFrame:
    """Flatten a report into a DataFrame: group rows first, grand total last."""
    records = []
    for row in (*report.rows, report.grand_total):
        entry: dict[str, object] = {report.group_by.name.lower(): row.label}
        for name in BUCKETS:
            bucket = row.bucket(name)
            entry[f"{name}_count"] = bucket.count
            entry[f"{name}_value"] = float(bucket.value)
            if name != "active_total":
                entry[f"{name}_pct"] = float(percentage(bucket.value, row.active_total.value))
        records.append(entry)
    return pd.DataFrame.from_records(records)
