from __future__ import annotations

import json
import logging
from typing import Any

import requests

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorRecord
from ..models.operations import OperationResult
from ..sheet.parser import Grid, parse_delimited
from ..sheet.reader import ReaderError

"""HTTP transport to the spreadsheet script endpoint.

Requests are posted as JSON with a text/plain content type (the script host
answers simple requests without a CORS preflight). The endpoint answers
``{"status": "success"}`` or ``{"status": "error", "message": ...}``; anything
that is not explicitly a success is a failure. Failures are never raised to
the caller, they come back as OperationResult(ok=False).
"""

__all__ = [
    "HttpEndpointClient",
    "fetch_csv_grid",
]

logger = logging.getLogger(__name__)


def fetch_csv_grid(url: str, *, timeout: float = 60, session: requests.Session | None = None) -> Grid:
    """Download a CSV export and parse it.

    Raises:
        ReaderError: network failure or non-2xx response
    """
    http = session or requests
    try:
        response = http.get(url, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ReaderError(f"cannot fetch export {url}: {e}") from e
    response.encoding = "utf-8"
    return parse_delimited(response.text)


class HttpEndpointClient:
    """Posts create/update/delete payloads to the script endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.error_log = error_log

    def _post(self, payload: dict[str, Any]) -> OperationResult:
        try:
            response = self.session.post(
                self.url,
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return OperationResult.failure(f"request failed: {e}")

        if not response.ok:
            return OperationResult.failure(f"HTTP error: {response.status_code}")
        try:
            body = response.json()
        except ValueError:
            return OperationResult.failure("malformed response body")
        if isinstance(body, dict) and body.get("status") == "success":
            return OperationResult.success(body.get("message"))
        message = body.get("message") if isinstance(body, dict) else None
        return OperationResult.failure(str(message or "endpoint did not report success"))

    def send(self, request: Any) -> OperationResult:
        """Send a CreateRequest, UpdateRequest or DeleteRequest."""
        payload = request.to_payload()
        result = self._post(payload)
        if result.ok:
            logger.info("%s %s ok", request.action, request.collection)
        else:
            logger.error("%s %s failed: %s", request.action, request.collection, result.message)
            if self.error_log is not None:
                self.error_log.append(
                    ErrorRecord.create(
                        action=request.action,
                        collection=request.collection,
                        row=payload.get("rowIndex"),
                        key_value=str(payload.get("filterValue") or payload.get("id") or ""),
                        error_type="ENDPOINT_ERROR",
                        message=result.message or "",
                    )
                )
        return result
