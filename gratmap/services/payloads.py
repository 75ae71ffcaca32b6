from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from ..models.config_models import CreateConfig
from ..models.operations import CreateRequest, DeleteRequest, UpdateRequest
from ..models.record import Record
from .change_set import build_record_change_set
from .dates import year_of

"""Payload builders for create / update / delete.

Map identifiers follow "<number>/<year> - 4 Bda/<unit>", numbered
sequentially per year across all units.
"""

__all__ = [
    "update_request_for",
    "delete_request_for",
    "next_map_number",
    "compose_map_id",
    "initial_status",
    "new_map_request",
]

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^(\d+)/(\d{4})")


def update_request_for(
    record: Record,
    edited_values: Mapping[str, str | None],
    collection: str,
) -> UpdateRequest | None:
    """Update request for the edited copy of ``record``, None when nothing changed."""
    changes = build_record_change_set(record, edited_values)
    if not changes:
        return None
    return UpdateRequest(
        collection=collection,
        key_column=record.key_column.strip(),
        key_value=record.id,
        changes=changes,
        row_number=record.row_number or None,
    )


def delete_request_for(record: Record, collection: str) -> DeleteRequest:
    return DeleteRequest(collection=collection, row_number=record.row_number or None, key_value=record.id)


def next_map_number(existing_ids: Iterable[str], year: str) -> int:
    numbers = []
    for map_id in existing_ids:
        m = _LEADING_NUMBER.match((map_id or "").strip())
        if m and m.group(2) == year and int(m.group(1)) > 0:
            numbers.append(int(m.group(1)))
    return max(numbers) + 1 if numbers else 1


def compose_map_id(number: int, year: str, unit: str, template: str = CreateConfig.id_template) -> str:
    return template.format(number=number, year=year, unit=unit)


def initial_status(nr_diex: str | None, create: CreateConfig | None = None) -> str:
    """A map that already has a shipment number starts as forwarded."""
    create = create or CreateConfig()
    return create.status_forwarded if (nr_diex or "").strip() else create.status_not_forwarded


def new_map_request(
    form: Mapping[str, str],
    unit: str,
    existing_ids: Iterable[str],
    collection: str,
    create: CreateConfig | None = None,
) -> CreateRequest:
    """Build the create request for a new map filled in by ``unit``.

    ``form`` holds the semantic fields typed by the user (evento,
    ult_dia_evento, valor, doc_autoriza, nr_diex, data_diex, observacao).
    Identifier, status, unit and year are derived here.
    """
    create = create or CreateConfig()
    year = year_of(form.get("ult_dia_evento"))
    number = next_map_number(existing_ids, year)
    map_id = compose_map_id(number, year, unit, create.id_template)
    fields = {
        "id": map_id,
        "evento": form.get("evento", ""),
        "ult_dia_evento": form.get("ult_dia_evento", ""),
        "valor": form.get("valor", ""),
        "doc_autoriza": form.get("doc_autoriza", ""),
        "nr_diex": form.get("nr_diex", ""),
        "data_diex": form.get("data_diex", ""),
        "observacao": form.get("observacao", ""),
        "situacao": initial_status(form.get("nr_diex"), create),
        "om": unit,
        "ano": year,
    }
    logger.debug("new map id=%s unit=%s", map_id, unit)
    return CreateRequest(collection=collection, fields=fields)
