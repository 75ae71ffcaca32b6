from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2 import sql

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import DatabaseConfig
from ..models.error_record import ErrorRecord
from ..models.operations import CreateRequest, DeleteRequest, OperationResult, UpdateRequest
from ..services.dates import to_display_date, to_iso_date
from ..sheet.parser import Grid

"""PostgreSQL backing store.

The relational table stands in for the "Controle de Mapas" sheet. Reads are
rendered as a grid with one virtual header row so the regular header resolver
and record mapper consume them unchanged. Writes translate sheet headers and
semantic field names to table columns; dates are stored as ISO and shown as
DD/MM/YYYY. Rows are addressed by the ``id`` column (key-based store).
"""

__all__ = [
    "StoreError",
    "PostgresStore",
    "VIRTUAL_COLUMNS",
    "DATE_COLUMNS",
    "open_cursor",
    "resolve_dsn",
]

logger = logging.getLogger(__name__)

# (sheet header, table column) in sheet order
VIRTUAL_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Mapa", "id"),
    ("Evento", "evento"),
    ("Ult Dia Evento", "ult_dia_evento"),
    ("Valor", "valor"),
    ("Doc que autoriza o Evento", "doc_autoriza_evento"),
    ("Nr DIEx Remessa 4 Bda", "nr_diex_remessa"),
    ("Data DIEx Remessa 4 Bda", "data_diex_remessa"),
    ("Nr DIEx Saída", "nr_diex_saida"),
    ("Data DIEx Saída", "data_diex_saida"),
    ("Destino DIEx Saída", "destino_diex_saida"),
    ("DIEx da 1ª DE ao CML", "diex_de_ao_cml"),
    ("Data DIEx da 1ª DE ao CML", "data_diex_de_ao_cml"),
    ("Nr DIEx Devol", "nr_diex_devol"),
    ("Data DIEx Devol", "data_diex_devol"),
    ("Destino DIEx Devolução", "destino_diex_devolucao"),
    ("Motivo", "motivo_devolucao"),
    ("Doc Autorização de Pagamento", "doc_autz_pagamento"),
    ("Data Doc Autz Pg", "data_doc_autz_pg"),
    ("Observação", "observacao"),
    ("Situação", "situacao"),
    ("OM", "om"),
    ("Ano", "ano"),
)

DATE_COLUMNS = frozenset({
    "ult_dia_evento",
    "data_diex_remessa",
    "data_diex_saida",
    "data_diex_de_ao_cml",
    "data_diex_devol",
    "data_doc_autz_pg",
})

# semantic create-field names that differ from the column name
_SEMANTIC_COLUMNS = {
    "doc_autoriza": "doc_autoriza_evento",
    "nr_diex": "nr_diex_remessa",
    "data_diex": "data_diex_remessa",
}


class StoreError(Exception):
    """Raised when the database cannot be reached or the map table cannot be read."""


def _column_value(column: str, value: Any) -> Any:
    if column in DATE_COLUMNS:
        return to_iso_date(value) if isinstance(value, str) else value
    return value


class PostgresStore:
    """Applies create/update/delete requests to the map table."""

    def __init__(self, cursor: Any, table: str = "map_data", *, error_log: ErrorLogBuffer | None = None) -> None:
        self.cursor = cursor
        self.table = table
        self.error_log = error_log
        self._by_header = {header: column for header, column in VIRTUAL_COLUMNS}

    # ---- reads -------------------------------------------------------------

    def fetch_grid(self) -> Grid:
        """Whole table as a grid: virtual header row, then one row per map."""
        columns = [column for _, column in VIRTUAL_COLUMNS]
        query = sql.SQL("SELECT {} FROM {} ORDER BY {}").format(
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.Identifier(self.table),
            sql.Identifier("id"),
        )
        try:
            self.cursor.execute(query)
            rows = self.cursor.fetchall()
        except psycopg2.Error as e:
            raise StoreError(f"cannot read {self.table}: {str(e).strip() or type(e).__name__}") from e
        grid: Grid = [[header for header, _ in VIRTUAL_COLUMNS]]
        for row in rows:
            cells = []
            for column, value in zip(columns, row):
                text = "" if value is None else str(value)
                cells.append(to_display_date(text) if column in DATE_COLUMNS else text)
            grid.append(cells)
        return grid

    # ---- writes ------------------------------------------------------------

    def _insert(self, request: CreateRequest) -> int:
        values: dict[str, Any] = {}
        for name, value in request.fields.items():
            column = _SEMANTIC_COLUMNS.get(name, name)
            values[column] = _column_value(column, value)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({})").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(sql.Identifier(c) for c in values),
            sql.SQL(", ").join(sql.Placeholder() for _ in values),
        )
        self.cursor.execute(query, list(values.values()))
        return 1

    def _update(self, request: UpdateRequest) -> int:
        assignments: dict[str, Any] = {}
        for header, value in request.changes.items():
            column = self._by_header.get(header.strip())
            if column is None:
                logger.warning("update %s: no column for header %r", request.key_value, header)
                continue
            assignments[column] = _column_value(column, value)
        if not assignments:
            return 0
        query = sql.SQL("UPDATE {} SET {} WHERE {} = %s").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(c), sql.Placeholder()) for c in assignments
            ),
            sql.Identifier("id"),
        )
        self.cursor.execute(query, [*assignments.values(), request.key_value])
        return self.cursor.rowcount

    def _delete(self, request: DeleteRequest) -> int:
        query = sql.SQL("DELETE FROM {} WHERE {} = %s").format(sql.Identifier(self.table), sql.Identifier("id"))
        self.cursor.execute(query, [request.key_value])
        return self.cursor.rowcount

    def send(self, request: CreateRequest | UpdateRequest | DeleteRequest) -> OperationResult:
        """Apply one request in its own transaction."""
        key_value = request.fields.get("id", "") if isinstance(request, CreateRequest) else request.key_value
        try:
            if isinstance(request, CreateRequest):
                affected = self._insert(request)
            elif isinstance(request, UpdateRequest):
                affected = self._update(request)
            else:
                affected = self._delete(request)
            if affected == 0:
                self.cursor.connection.rollback()
                result = OperationResult.failure(f"no row matched id={key_value}")
            else:
                self.cursor.connection.commit()
                result = OperationResult.success()
        except psycopg2.Error as e:
            try:
                self.cursor.connection.rollback()
            except psycopg2.Error:
                logger.debug("rollback failed", exc_info=True)
            result = OperationResult.failure(str(e).strip() or type(e).__name__)

        if result.ok:
            logger.info("%s %s id=%s ok", request.action, self.table, key_value)
        else:
            logger.error("%s %s id=%s failed: %s", request.action, self.table, key_value, result.message)
            if self.error_log is not None:
                self.error_log.append(
                    ErrorRecord.create(
                        action=request.action,
                        collection=self.table,
                        row=None,
                        key_value=str(key_value),
                        error_type="DATABASE_ERROR",
                        message=result.message or "",
                    )
                )
        return result


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection string; environment variables win over the config file.

    1. DATABASE_URL / PGDSN
    2. config ``database.dsn``
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE with config fallbacks
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (needs a live database)
    try:
        conn = psycopg2.connect(resolve_dsn(db_cfg))
    except psycopg2.Error as e:
        raise StoreError(f"cannot connect: {e}") from e
    conn.autocommit = False
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()
