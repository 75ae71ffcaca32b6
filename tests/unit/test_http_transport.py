from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from gratmap.logging.error_log import ErrorLogBuffer
from gratmap.models.operations import DeleteRequest, UpdateRequest
from gratmap.sheet.reader import ReaderError
from gratmap.transport.http import HttpEndpointClient, fetch_csv_grid

URL = "https://script.example.test/exec"


def _response(status_code=200, body=None, text=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    if body is not None:
        resp.json.return_value = body
    else:
        resp.json.side_effect = ValueError("no json")
    resp.text = text or ""
    return resp


def _update() -> UpdateRequest:
    return UpdateRequest(
        collection="Controle de Mapas",
        key_column="Mapa",
        key_value="3",
        changes={"Valor": "1,00"},
        row_number=5,
    )


def test_fetch_csv_grid(sample_csv_text, sheet_grid):
    session = MagicMock()
    session.get.return_value = _response(text=sample_csv_text)
    assert fetch_csv_grid("https://x.test/export", session=session) == sheet_grid
    assert session.get.call_args.kwargs["allow_redirects"] is True


def test_fetch_csv_grid_network_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("offline")
    with pytest.raises(ReaderError, match="cannot fetch"):
        fetch_csv_grid("https://x.test/export", session=session)


def test_send_posts_json_as_plain_text():
    session = MagicMock()
    session.post.return_value = _response(body={"status": "success"})
    client = HttpEndpointClient(URL, session=session, timeout=5)
    result = client.send(_update())
    assert result.ok
    kwargs = session.post.call_args.kwargs
    assert kwargs["headers"]["Content-Type"] == "text/plain;charset=utf-8"
    assert kwargs["timeout"] == 5
    payload = json.loads(kwargs["data"].decode("utf-8"))
    assert payload["action"] == "update"
    assert payload["filterValue"] == "3"
    assert payload["rowIndex"] == 5


@pytest.mark.parametrize(
    "response, fragment",
    [
        (_response(body={"status": "error", "message": "Linha não encontrada"}), "Linha não encontrada"),
        (_response(body={"result": "ok"}), "did not report success"),
        (_response(body=["success"]), "did not report success"),
        (_response(status_code=500, body={"status": "success"}), "HTTP error: 500"),
        (_response(), "malformed"),
    ],
)
def test_anything_but_success_is_failure(response, fragment):
    session = MagicMock()
    session.post.return_value = response
    result = HttpEndpointClient(URL, session=session).send(_update())
    assert not result.ok
    assert fragment in result.message


def test_network_error_is_failure_and_logged(temp_workdir):
    session = MagicMock()
    session.post.side_effect = requests.Timeout("slow")
    error_log = ErrorLogBuffer()
    client = HttpEndpointClient(URL, session=session, error_log=error_log)
    result = client.send(DeleteRequest(collection="Controle de Mapas", row_number=None, key_value="7"))
    assert not result.ok
    assert "request failed" in result.message
    path = error_log.flush()
    entry = json.loads(path.read_text(encoding="utf-8").strip())
    assert entry["action"] == "delete"
    assert entry["row"] == -1
    assert entry["key_value"] == "7"
    assert entry["error_type"] == "ENDPOINT_ERROR"
