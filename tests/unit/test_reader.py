from __future__ import annotations

import datetime as dt
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from gratmap.models.config_models import SheetLayoutConfig
from gratmap.services.aggregation import aggregate
from gratmap.services.change_set import build_record_change_set
from gratmap.services.mapper import load_records
from gratmap.sheet.reader import ReaderError, frame_to_grid, read_grid


def test_read_csv_export(sample_export: Path, sheet_grid):
    assert read_grid(sample_export) == sheet_grid


def test_read_csv_with_bom(temp_workdir: Path):
    f = temp_workdir / "bom.csv"
    f.write_text("Mapa,Valor\n1,2\n", encoding="utf-8-sig")
    assert read_grid(f)[0] == ["Mapa", "Valor"]


def test_read_xlsx_export(temp_workdir: Path, sheet_grid):
    f = temp_workdir / "controle.xlsx"
    width = max(len(r) for r in sheet_grid)
    padded = [row + [None] * (width - len(row)) for row in sheet_grid]
    with pd.ExcelWriter(f) as writer:
        pd.DataFrame(padded).to_excel(writer, index=False, header=False)
    grid = read_grid(f)
    assert grid[3][:3] == ["Mapa", "Evento", "Ult Dia\nEvento"]
    assert grid[4][0] == "3"
    assert grid[5][19] == "OM-A"
    # title rows are not padded to the sheet width
    assert grid[0] == ["CONTROLE DE MAPAS DE GRATIFICAÇÃO"]


def test_frame_to_grid_stringifies_cells():
    # the cell types read_excel(dtype=object) actually yields
    df = pd.DataFrame(
        [
            ["3", dt.datetime(2026, 1, 10), 1500.5, 2000.0, 7, None, " x "],
            [None, None, None, None, None, None, None],
        ],
        dtype=object,
    )
    assert frame_to_grid(df) == [["3", "10/01/2026", "1500,5", "2000", "7", "", "x"], [""]]


def test_workbook_dates_and_money_survive_reading(temp_workdir: Path):
    f = temp_workdir / "controle.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Mapa", "Evento", "Ult Dia Evento", "Valor", "Situação"])
    ws.append(["1/2026", "Curso", dt.datetime(2026, 1, 10), 1500.5, "Pagamento autorizado"])
    ws.append(["2/2026", "Curso", dt.date(2026, 2, 1), 2000, "Pagamento autorizado"])
    wb.save(f)

    grid = read_grid(f)
    assert grid[1] == ["1/2026", "Curso", "10/01/2026", "1500,5", "Pagamento autorizado"]
    assert grid[2][2:4] == ["01/02/2026", "2000"]

    layout = SheetLayoutConfig(default_header_row=0)
    record = load_records(grid, layout)[0]
    # a date picker sends the untouched date back as ISO
    assert build_record_change_set(record, {"Ult Dia Evento": "2026-01-10"}) == {}

    report = aggregate(load_records(grid, layout))
    assert report.grand_total.authorized.value == Decimal("3500.5")


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ReaderError, match="not found"):
        read_grid(temp_workdir / "nope.csv")


def test_unsupported_suffix(temp_workdir: Path):
    f = temp_workdir / "controle.ods"
    f.write_bytes(b"")
    with pytest.raises(ReaderError, match="unsupported"):
        read_grid(f)


def test_undecodable_csv(temp_workdir: Path):
    f = temp_workdir / "latin.csv"
    f.write_bytes("Situação".encode("latin-1"))
    with pytest.raises(ReaderError):
        read_grid(f)
