from __future__ import annotations

from gratmap.models.config_models import CreateConfig
from gratmap.models.operations import CreateRequest, DeleteRequest, UpdateRequest
from gratmap.services.mapper import load_records
from gratmap.services.payloads import (
    compose_map_id,
    delete_request_for,
    initial_status,
    new_map_request,
    next_map_number,
    update_request_for,
)

COLLECTION = "Controle de Mapas"


def test_update_request_carries_key_and_row(sheet_grid):
    record = load_records(sheet_grid)[1]
    edited = record.initial_values()
    edited["Valor"] = "2.100,00"
    request = update_request_for(record, edited, COLLECTION)
    assert isinstance(request, UpdateRequest)
    assert request.changes == {"Valor": "2.100,00"}
    assert request.key_column == "Mapa"
    assert request.key_value == "4"
    assert request.row_number == 6

    payload = request.to_payload()
    assert payload["action"] == "update"
    assert payload["sheetName"] == payload["sheet"] == COLLECTION
    assert payload["Valor"] == "2.100,00"
    assert payload["filterColumn"] == "Mapa"
    assert payload["filterValue"] == "4"
    assert payload["rowIndex"] == payload["row"] == 6


def test_unchanged_record_gives_no_request(sheet_grid):
    record = load_records(sheet_grid)[0]
    assert update_request_for(record, record.initial_values(), COLLECTION) is None


def test_key_based_record_has_no_row_index(sheet_grid):
    record = load_records(sheet_grid, key_based=True)[0]
    request = update_request_for(record, {"Valor": "9,00"}, COLLECTION)
    assert request.row_number is None
    assert request.to_payload()["rowIndex"] is None


def test_delete_request(sheet_grid):
    record = load_records(sheet_grid)[0]
    request = delete_request_for(record, COLLECTION)
    assert request == DeleteRequest(collection=COLLECTION, row_number=5, key_value="3")
    assert request.to_payload() == {
        "action": "delete",
        "sheetName": COLLECTION,
        "sheet": COLLECTION,
        "rowIndex": 5,
        "filterValue": "3",
    }


def test_next_map_number_per_year():
    ids = ["1/2026 - 4 Bda/OM-A", "7/2026 - 4 Bda/OM-B", "12/2025 - 4 Bda/OM-A", "lixo", ""]
    assert next_map_number(ids, "2026") == 8
    assert next_map_number(ids, "2025") == 13
    assert next_map_number(ids, "2027") == 1


def test_compose_map_id():
    assert compose_map_id(8, "2026", "OM-A") == "8/2026 - 4 Bda/OM-A"
    assert compose_map_id(1, "2026", "X", "{unit}-{number}-{year}") == "X-1-2026"


def test_initial_status():
    create = CreateConfig()
    assert initial_status("77", create) == create.status_forwarded
    assert initial_status("  ", create) == create.status_not_forwarded
    assert initial_status(None) == "Não encaminhado à Bda"


def test_new_map_request():
    form = {"evento": "Curso", "ult_dia_evento": "2026-03-02", "valor": "1.000,00", "nr_diex": "12"}
    request = new_map_request(form, "OM-A", ["3/2026 - 4 Bda/OM-B"], COLLECTION)
    assert isinstance(request, CreateRequest)
    fields = request.fields
    assert fields["id"] == "4/2026 - 4 Bda/OM-A"
    assert fields["om"] == "OM-A"
    assert fields["ano"] == "2026"
    assert fields["situacao"] == "Encaminhado para a 4ª Bda Inf L Mth."
    assert fields["observacao"] == ""
    payload = request.to_payload()
    assert payload["action"] == "create"
    assert payload["sheetName"] == COLLECTION
