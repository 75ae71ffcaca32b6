from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .record import Record
from .report import GroupBy

"""Dashboard state models.

The dashboard keeps the fetched records, the active filters and the report
grouping in one explicit immutable state object. Transitions live in
gratmap/services/app_state.py.
"""

__all__ = [
    "UserRole",
    "User",
    "RecordFilters",
    "DashboardStats",
    "DashboardState",
]


class UserRole(Enum):
    ADMIN = "ADMIN"
    OM = "OM"


@dataclass(frozen=True)
class User:
    name: str
    role: UserRole
    om: str | None = None  # owning unit, set for OM users
    email: str | None = None


@dataclass(frozen=True)
class RecordFilters:
    """Case-insensitive substring filters. Empty string disables a filter."""
    om: str = ""
    mapa: str = ""
    status: str = ""


@dataclass(frozen=True)
class DashboardStats:
    total: int
    aprovados: int
    devolvidos: int
    cancelados: int


@dataclass(frozen=True)
class DashboardState:
    user: User
    records: tuple[Record, ...] = ()
    filters: RecordFilters = field(default_factory=RecordFilters)
    group_by: GroupBy = GroupBy.EVENT
