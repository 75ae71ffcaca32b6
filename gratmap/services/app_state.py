from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from ..models.config_models import StatusRules
from ..models.dashboard import DashboardState, DashboardStats, RecordFilters, User, UserRole
from ..models.record import Record
from ..models.report import GroupBy, Report
from .aggregation import aggregate

"""Dashboard state transitions.

State is an immutable DashboardState; every UI event becomes an action and
``reduce`` returns the next state. Visible records, counters and the report
are derived from the state on demand and never stored in it.
"""

__all__ = [
    "RecordsLoaded",
    "FiltersChanged",
    "GroupingChanged",
    "initial_state",
    "reduce",
    "visible_records",
    "dashboard_stats",
    "current_report",
]


@dataclass(frozen=True)
class RecordsLoaded:
    records: tuple[Record, ...]


@dataclass(frozen=True)
class FiltersChanged:
    om: str | None = None
    mapa: str | None = None
    status: str | None = None


@dataclass(frozen=True)
class GroupingChanged:
    group_by: GroupBy


Action = RecordsLoaded | FiltersChanged | GroupingChanged


def initial_state(user: User) -> DashboardState:
    """OM users start with the unit filter preset to their own unit."""
    filters = RecordFilters(om=user.om or "") if user.role is UserRole.OM else RecordFilters()
    return DashboardState(user=user, filters=filters)


def reduce(state: DashboardState, action: Action) -> DashboardState:
    if isinstance(action, RecordsLoaded):
        return replace(state, records=tuple(action.records))
    if isinstance(action, FiltersChanged):
        current = state.filters
        filters = RecordFilters(
            om=current.om if action.om is None else action.om,
            mapa=current.mapa if action.mapa is None else action.mapa,
            status=current.status if action.status is None else action.status,
        )
        return replace(state, filters=filters)
    if isinstance(action, GroupingChanged):
        return replace(state, group_by=action.group_by)
    raise TypeError(f"unknown action: {type(action).__name__}")


def _contains(text: str, needle: str) -> bool:
    return not needle or needle.lower() in text.lower()


def visible_records(state: DashboardState) -> list[Record]:
    user = state.user
    f = state.filters
    result = []
    for record in state.records:
        if user.role is UserRole.OM and record.om.strip() != (user.om or ""):
            continue
        if not (_contains(record.om, f.om) and _contains(record.id, f.mapa) and _contains(record.situacao, f.status)):
            continue
        result.append(record)
    return result


def dashboard_stats(records: Iterable[Record]) -> DashboardStats:
    total = aprovados = devolvidos = cancelados = 0
    for record in records:
        status = record.situacao.lower()
        total += 1
        aprovados += "aprovado" in status
        devolvidos += "devolvido" in status
        cancelados += "cancelado" in status
    return DashboardStats(total=total, aprovados=aprovados, devolvidos=devolvidos, cancelados=cancelados)


def current_report(state: DashboardState, rules: StatusRules | None = None) -> Report:
    return aggregate(visible_records(state), state.group_by, rules)
