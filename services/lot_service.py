# services/lot_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from config.settings import TABLE_LOTS
from schemas.lot import LotDto
from schemas.shared import Option
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from utils.cells import (
    extract_link_row_ids,
    extract_link_row_labels,
    normalize_field,
    sanitize_ids,
    to_bool,
    to_number,
    to_string_or_empty,
)
from utils.errors import FormValidationError, NoChangesError
from utils.forms import is_blank, parse_form_number
from utils.text import spanish_sort_key

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_CODE = "Nombre / Código Lote"
F_NOTES = "Notas"
F_FIELD = "Campo"
F_AREA = "Superficie (ha)"
F_CYCLES = "Ciclos de Siembra"
F_CYCLES_LEGACY = "Ciclos"
F_ACTIVE = "Activo ?"


# ==================== MAPPER ====================

def map_lot_raw_to_dto(row: Any) -> LotDto:
    row = row if isinstance(row, dict) else {}
    field_ids = extract_link_row_ids(row.get(F_FIELD))
    field_labels = extract_link_row_labels(row.get(F_FIELD))
    cycles_raw = row.get(F_CYCLES)
    if cycles_raw is None:
        cycles_raw = row.get(F_CYCLES_LEGACY)

    return LotDto(
        id=row.get("id") if isinstance(row.get("id"), int) else 0,
        code=normalize_field(row.get(F_CODE)).strip(),
        field_name=field_labels[0] if field_labels else normalize_field(row.get(F_FIELD)),
        field_id=field_ids[0] if field_ids else None,
        area_ha=to_number(row.get(F_AREA)),
        notes=to_string_or_empty(row.get(F_NOTES)),
        cycle_ids=extract_link_row_ids(cycles_raw),
        is_active=to_bool(row.get(F_ACTIVE), default=True),
    )


# ==================== PAYLOADS ====================

def build_lot_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    values: code, fieldId, areaHa, notes, cycleIds.
    Solo se incluyen las claves presentes en `values` (edición parcial).
    """
    payload: Dict[str, Any] = {}

    if "code" in values:
        code = str(values.get("code") or "").strip()
        if not code:
            raise FormValidationError("Ingresá un nombre o código válido para el lote")
        payload[F_CODE] = code

    if "fieldId" in values:
        field_id = values.get("fieldId")
        if field_id is None:
            payload[F_FIELD] = []
        else:
            ids = sanitize_ids([field_id])
            if not ids:
                raise FormValidationError("Seleccioná un campo válido")
            payload[F_FIELD] = ids

    if "areaHa" in values:
        raw = values.get("areaHa")
        if is_blank(raw):
            payload[F_AREA] = None
        else:
            try:
                payload[F_AREA] = parse_form_number(raw)
            except ValueError:
                raise FormValidationError("Ingresá una superficie válida (número)")

    if "notes" in values:
        payload[F_NOTES] = str(values.get("notes") or "").strip()

    if "cycleIds" in values:
        payload[F_CYCLES] = sanitize_ids(values.get("cycleIds"))

    return payload


def lot_dto_to_payload(dto: LotDto) -> Dict[str, Any]:
    return {
        F_CODE: dto.code,
        F_FIELD: [dto.field_id] if dto.field_id else [],
        F_AREA: dto.area_ha,
        F_NOTES: (dto.notes or "").strip(),
        F_CYCLES: list(dto.cycle_ids),
    }


def lots_by_field_id(lots: Iterable[LotDto], field_id: int) -> List[Option]:
    """Opciones de lote de un campo; sin código => 'Lote #id'."""
    options = [
        Option(id=lot.id, label=lot.code or f"Lote #{lot.id}")
        for lot in lots
        if lot.field_id == field_id
    ]
    return sorted(options, key=lambda o: spanish_sort_key(o.label))


# ==================== GATEWAY ====================

def list_lots(client: BaserowClient) -> List[LotDto]:
    return [map_lot_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_LOTS))]


def get_lot(client: BaserowClient, lot_id: int) -> LotDto:
    return map_lot_raw_to_dto(client.get_row(client.table_id(TABLE_LOTS), lot_id))


def create_lot(client: BaserowClient, values: Mapping[str, Any]) -> LotDto:
    payload = build_lot_payload(values)
    if F_CODE not in payload:
        raise FormValidationError("Ingresá un nombre o código válido para el lote")
    row = client.create_row(client.table_id(TABLE_LOTS), payload)
    logger.info("Lote creado #%s", row.get("id"))
    return map_lot_raw_to_dto(row)


def update_lot(client: BaserowClient, lot_id: int, values: Mapping[str, Any]) -> LotDto:
    payload = build_lot_payload(values)
    if not payload:
        raise NoChangesError()
    current = get_lot(client, lot_id)
    row = update_with_diff(client, TABLE_LOTS, lot_id, lot_dto_to_payload(current), payload)
    return map_lot_raw_to_dto(row)


def delete_lot(client: BaserowClient, lot_id: int) -> None:
    client.delete_row(client.table_id(TABLE_LOTS), lot_id)
    logger.info("Lote eliminado #%s", lot_id)
