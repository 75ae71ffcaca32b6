from __future__ import annotations

from decimal import Decimal

from ..models.report import Report

"""SUMMARY line rendering for reports.

Format:
SUMMARY records={n} groups={g} group_by={event|unit} authorized={c}/{v}
pending={c}/{v} canceled={c}/{v} active={c}/{v}
"""


def _format_value(value: Decimal) -> str:
    # Plain decimal, two places, no thousands separator (machine readable)
    return f"{value:.2f}"


def render_summary_line(record_count: int, report: Report) -> str:
    """Render a SUMMARY line for a report.

    Args:
        record_count: Number of records that went into the report
        report: Aggregated report

    Returns:
        Single line starting with "SUMMARY "

    Examples:
        >>> from gratmap.models.report import GroupBy, Report, ReportRow
        >>> empty = Report(group_by=GroupBy.UNIT, rows=(), grand_total=ReportRow(label="OM/TOTAIS"))
        >>> render_summary_line(0, empty)  # doctest: +ELLIPSIS
        'SUMMARY records=0 groups=0 group_by=unit authorized=0/0.00 ...'
    """
    total = report.grand_total
    return (
        f"SUMMARY records={record_count} "
        f"groups={len(report.rows)} "
        f"group_by={report.group_by.name.lower()} "
        f"authorized={total.authorized.count}/{_format_value(total.authorized.value)} "
        f"pending={total.pending.count}/{_format_value(total.pending.value)} "
        f"canceled={total.canceled.count}/{_format_value(total.canceled.value)} "
        f"active={total.active_total.count}/{_format_value(total.active_total.value)}"
    )
