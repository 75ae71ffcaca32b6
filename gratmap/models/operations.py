from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Write-operation payloads sent to the backing store.

Each request renders the payload shape the spreadsheet script endpoint expects.
Update and delete carry both a key value and a physical row number so either a
key-based or a position-based store can service them.
"""

__all__ = [
    "CreateRequest",
    "UpdateRequest",
    "DeleteRequest",
    "OperationResult",
    "UpdateOutcome",
]


@dataclass(frozen=True)
class CreateRequest:
    collection: str  # sheet / table name
    fields: dict[str, Any]  # semantic field -> value

    action = "create"

    def to_payload(self) -> dict[str, Any]:
        return {
            **self.fields,
            "action": self.action,
            "sheetName": self.collection,
            "sheet": self.collection,
        }


@dataclass(frozen=True)
class UpdateRequest:
    collection: str
    key_column: str  # trimmed raw header of the identifier column
    key_value: str
    changes: dict[str, str]  # sanitized raw header -> new value
    row_number: int | None = None  # None for key-based stores

    action = "update"

    def to_payload(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "sheetName": self.collection,
            "sheet": self.collection,
            **self.changes,
            "filterColumn": self.key_column,
            "filterValue": self.key_value,
            "rowIndex": self.row_number,
            "row": self.row_number,
        }


@dataclass(frozen=True)
class DeleteRequest:
    collection: str
    row_number: int | None
    key_value: str

    action = "delete"

    def to_payload(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "sheetName": self.collection,
            "sheet": self.collection,
            "rowIndex": self.row_number,
            "filterValue": self.key_value,
        }


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one write. The message is for display only."""
    ok: bool
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def success(message: str | None = None) -> OperationResult:
        return OperationResult(ok=True, message=message)

    @staticmethod
    def failure(message: str) -> OperationResult:
        return OperationResult(ok=False, message=message)


class UpdateOutcome(Enum):
    NO_CHANGES = "no_changes"  # empty change-set, nothing was sent
    APPLIED = "applied"
    FAILED = "failed"
