from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the failed-operation log.

One ErrorRecord is written per create/update/delete request the backing store
did not accept. row=-1 is used when the request carried no physical row
number (key-based stores, creates).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        action: create / update / delete
        collection: Target sheet or table name
        row: Physical row number (1-based), -1 when unknown
        key_value: Identifier of the affected map ("" for creates)
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Transport or backing-store message
    """
    timestamp: str
    action: str
    collection: str
    row: int
    key_value: str
    error_type: str
    message: str

    @staticmethod
    def create(
        action: str,
        collection: str,
        row: int | None,
        key_value: str,
        error_type: str,
        message: str,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            action=action,
            collection=collection,
            row=row if row else -1,
            key_value=key_value,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
