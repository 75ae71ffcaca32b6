# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
import pytest

HEADER = [
    "Mapa",
    "Evento",
    "Ult Dia\nEvento",
    "Valor",
    "Doc que autoriza o Evento",
    "Nr DIEx Remessa 4 Bda",
    "Data DIEx Remessa 4 Bda",
    "Nr DIEx Saída",
    "Data DIEx Saída",
    "Destino DIEx Saída",
    "DIEx da 1ª DE ao CML",
    "Data DIEx da 1ª DE ao CML",
    "Nr DIEx Devol",
    "Data DIEx Devol",
    "Destino DIEx Devolução",
    "Motivo",
    "Doc Autorização de Pagamento",
    "Data Doc Autz Pg",
    "Situação",
    "OM",
    "Ano",
]


def _blank(n: int) -> list[str]:
    return [""] * n


@pytest.fixture()
def header_cells() -> list[str]:
    return list(HEADER)


@pytest.fixture()
def data_rows() -> list[list[str]]:
    return [
        ["3", "Curso", "2026-01-10", "1.500,00", "DIM 1", "", "", *_blank(11), "Não encaminhado à Bda", "OM-A", "2026"],
        ["4", "Curso", "2026-01-11", "2.000,00", "DIM 2", "77", "2026-01-12", *_blank(11), "Encaminhado para a 4ª Bda", "OM-A", "2026"],
    ]


@pytest.fixture()
def sheet_grid(header_cells, data_rows) -> list[list[str]]:
    """Grid as exported: three title rows, the header on row 3, then data."""
    return [
        ["CONTROLE DE MAPAS DE GRATIFICAÇÃO"],
        ["4ª Bda Inf L Mth"],
        ["", ""],
        header_cells,
        *data_rows,
    ]


@pytest.fixture()
def sample_csv_text(sheet_grid) -> str:
    def quote(cell: str) -> str:
        if any(c in cell for c in ',"\n\r'):
            return '"' + cell.replace('"', '""') + '"'
        return cell
    return "\r\n".join(",".join(quote(c) for c in row) for row in sheet_grid) + "\r\n"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_export(temp_workdir: Path, sample_csv_text: str) -> Path:
    f = temp_workdir / "data" / "controle_2026.csv"
    f.write_text(sample_csv_text, encoding="utf-8")
    return f


@pytest.fixture()
def sample_config_yaml() -> str:
    return """layout:
  default_header_row: 3
backend:
  kind: http
  script_url: https://script.example.test/exec
  collection: Controle de Mapas
error_log_dir: logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "gratmap.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
