from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from ..models.operations import CreateRequest, DeleteRequest, OperationResult, UpdateOutcome, UpdateRequest
from ..models.record import Record
from .payloads import delete_request_for, update_request_for

"""Write flows on top of a transport.

A transport is anything with ``send(request) -> OperationResult``: the HTTP
script client or the PostgreSQL store. An empty change-set short-circuits to
NO_CHANGES without touching the transport.
"""

__all__ = [
    "Transport",
    "submit_update",
    "submit_delete",
    "submit_create",
]

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, request: Any) -> OperationResult: ...


def submit_update(
    transport: Transport,
    record: Record,
    edited_values: Mapping[str, str | None],
    collection: str,
) -> UpdateOutcome:
    request: UpdateRequest | None = update_request_for(record, edited_values, collection)
    if request is None:
        logger.info("map %s: nothing to update", record.id)
        return UpdateOutcome.NO_CHANGES
    result = transport.send(request)
    return UpdateOutcome.APPLIED if result.ok else UpdateOutcome.FAILED


def submit_delete(transport: Transport, record: Record, collection: str) -> OperationResult:
    request: DeleteRequest = delete_request_for(record, collection)
    return transport.send(request)


def submit_create(transport: Transport, request: CreateRequest) -> OperationResult:
    return transport.send(request)
