"""Domain models for the gratuity map engine.

Configuration, header/record, report, dashboard-state and write-operation
models. All of them are frozen dataclasses.
"""

from .config_models import (
    AppConfig,
    BackendConfig,
    CreateConfig,
    DatabaseConfig,
    FieldSpec,
    SheetLayoutConfig,
    StatusRules,
)
from .dashboard import DashboardState, DashboardStats, RecordFilters, User, UserRole
from .operations import CreateRequest, DeleteRequest, OperationResult, UpdateOutcome, UpdateRequest
from .record import Column, HeaderRow, Record
from .report import Bucket, GroupBy, Report, ReportRow, StatusClass

__all__ = [
    # Configuration models
    "AppConfig",
    "BackendConfig",
    "CreateConfig",
    "DatabaseConfig",
    "FieldSpec",
    "SheetLayoutConfig",
    "StatusRules",
    # Sheet models
    "Column",
    "HeaderRow",
    "Record",
    # Report models
    "Bucket",
    "GroupBy",
    "Report",
    "ReportRow",
    "StatusClass",
    # Dashboard models
    "DashboardState",
    "DashboardStats",
    "RecordFilters",
    "User",
    "UserRole",
    # Write operations
    "CreateRequest",
    "DeleteRequest",
    "OperationResult",
    "UpdateOutcome",
    "UpdateRequest",
]
