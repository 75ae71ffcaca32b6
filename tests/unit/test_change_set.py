from __future__ import annotations

from gratmap.models.config_models import SheetLayoutConfig
from gratmap.services.change_set import (
    build_change_set,
    build_record_change_set,
    editable_fields,
    is_locked,
    normalize_for_compare,
    sanitize_header,
)
from gratmap.services.mapper import load_records

MAPPING = {
    "Mapa": "Mapa",
    "Ult Dia Evento": "Ult Dia\nEvento",
    "Valor": "Valor",
    "Observação": " Observação ",
}


def test_sanitize_header():
    assert sanitize_header("Ult Dia\nEvento") == "Ult DiaEvento"
    assert sanitize_header("  Valor \r\n") == "Valor"
    assert sanitize_header(None) == ""


def test_normalize_for_compare_maps_iso_to_display():
    assert normalize_for_compare("2026-01-10") == "10/01/2026"
    assert normalize_for_compare("10/01/2026") == "10/01/2026"
    assert normalize_for_compare(None) == ""
    assert normalize_for_compare("Curso") == "Curso"


def test_only_changed_fields_are_emitted():
    initial = {"Mapa": "3", "Valor": "1.500,00", "Observação": ""}
    edited = {"Mapa": "3", "Valor": "1.600,00", "Observação": ""}
    assert build_change_set(initial, edited, MAPPING) == {"Valor": "1.600,00"}


def test_identical_snapshots_give_empty_change_set():
    values = {"Mapa": "3", "Valor": "1,00"}
    assert build_change_set(values, dict(values), MAPPING) == {}


def test_iso_and_display_dates_are_equal():
    initial = {"Ult Dia Evento": "10/01/2026"}
    edited = {"Ult Dia Evento": "2026-01-10"}
    assert build_change_set(initial, edited, MAPPING) == {}


def test_changed_date_keyed_by_sanitized_raw_header():
    initial = {"Ult Dia Evento": "10/01/2026"}
    edited = {"Ult Dia Evento": "2026-01-11"}
    # sent as typed, keyed by the raw header without its line break
    assert build_change_set(initial, edited, MAPPING) == {"Ult DiaEvento": "2026-01-11"}


def test_raw_header_is_trimmed():
    changes = build_change_set({"Observação": ""}, {"Observação": "ok"}, MAPPING)
    assert changes == {"Observação": "ok"}


def test_field_without_raw_header_is_skipped():
    changes = build_change_set({"Extra": "a"}, {"Extra": "b", "Valor": "2,00"}, MAPPING)
    assert changes == {"Valor": "2,00"}


def test_cleared_value_is_sent_as_empty():
    changes = build_change_set({"Valor": "1,00"}, {"Valor": None}, MAPPING)
    assert changes == {"Valor": ""}


def test_record_change_set(sheet_grid):
    record = load_records(sheet_grid)[0]
    edited = record.initial_values()
    edited["Nr DIEx Remessa 4 Bda"] = "91"
    edited["Ult Dia Evento"] = "10/01/2026"  # same date, display form
    assert build_record_change_set(record, edited) == {"Nr DIEx Remessa 4 Bda": "91"}


def test_is_locked_exact_and_prefix():
    locked = SheetLayoutConfig().locked_fields
    assert is_locked("Situação", locked)
    assert is_locked("om", locked)
    assert is_locked("Dias Decorridos", locked)
    assert not is_locked("Valor", locked)
    assert not is_locked("OM Apoiada", locked)


def test_editable_fields_excludes_locked(sheet_grid):
    record = load_records(sheet_grid)[0]
    fields = editable_fields(record, SheetLayoutConfig().locked_fields)
    assert "Valor" in fields
    assert "Mapa" in fields
    assert "Situação" not in fields
    assert "OM" not in fields
    assert "Ano" not in fields
