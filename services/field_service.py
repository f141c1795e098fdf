# services/field_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from config.settings import TABLE_FIELDS, TABLE_LOTS
from schemas.field import FieldDto
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from services.lot_service import build_lot_payload, F_FIELD as LOT_F_FIELD
from utils.cells import extract_link_row_ids, normalize_field, to_bool, to_number, to_string_or_empty
from utils.errors import BaserowRequestError, FormValidationError
from utils.forms import get_str, parse_form_number

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_NAME = "Nombre"
F_LOCATION = "Ubicación"
F_AREA = "Superficie (ha)"
F_NOTES = "Notas"
F_LOTS = "Lotes"
F_RENTED = "Alquiler ?"
F_ACTIVE = "Activo ?"


# ==================== MAPPER ====================

def map_field_raw_to_dto(row: Any) -> FieldDto:
    row = row if isinstance(row, dict) else {}
    return FieldDto(
        id=row.get("id") if isinstance(row.get("id"), int) else 0,
        name=normalize_field(row.get(F_NAME)).strip(),
        location=normalize_field(row.get(F_LOCATION)),
        total_area_ha=to_number(row.get(F_AREA)),
        notes=to_string_or_empty(row.get(F_NOTES)),
        lot_ids=extract_link_row_ids(row.get(F_LOTS)),
        is_rented=to_bool(row.get(F_RENTED)),
        is_active=to_bool(row.get(F_ACTIVE), default=True),
    )


# ==================== PAYLOADS ====================

def build_field_payload(values: Mapping[str, Any], include_empty_optional: bool = False) -> Dict[str, Any]:
    """
    values: name, totalAreaHa, location, notes, isRented, isActive.
    """
    name = get_str(values, "name")
    if not name:
        raise FormValidationError("Ingresá un nombre válido para el campo")

    try:
        area = parse_form_number(values.get("totalAreaHa"))
    except ValueError:
        area = None
    if area is None or area <= 0:
        raise FormValidationError("Ingresá una superficie total válida")

    payload: Dict[str, Any] = {F_NAME: name, F_AREA: area}

    location = get_str(values, "location")
    if location or include_empty_optional:
        payload[F_LOCATION] = location
    notes = get_str(values, "notes")
    if notes or include_empty_optional:
        payload[F_NOTES] = notes
    if "isRented" in values:
        payload[F_RENTED] = to_bool(values.get("isRented"))
    if "isActive" in values:
        payload[F_ACTIVE] = to_bool(values.get("isActive"), default=True)
    return payload


def field_dto_to_payload(dto: FieldDto) -> Dict[str, Any]:
    return {
        F_NAME: dto.name,
        F_AREA: dto.total_area_ha,
        F_LOCATION: dto.location.strip(),
        F_NOTES: (dto.notes or "").strip(),
        F_RENTED: dto.is_rented,
        F_ACTIVE: dto.is_active,
    }


def _validate_nested_lots(lots: Sequence[Mapping[str, Any]]) -> None:
    for lot in lots:
        code = str(lot.get("code") or "").strip()
        try:
            area = parse_form_number(lot.get("areaHa"))
        except ValueError:
            area = None
        if not code or area is None or area <= 0:
            raise FormValidationError("Todos los lotes deben tener un código y superficie válida")


# ==================== GATEWAY ====================

def list_fields(client: BaserowClient) -> List[FieldDto]:
    return [map_field_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_FIELDS))]


def get_field(client: BaserowClient, field_id: int) -> FieldDto:
    return map_field_raw_to_dto(client.get_row(client.table_id(TABLE_FIELDS), field_id))


def create_field_with_lots(
        client: BaserowClient,
        values: Mapping[str, Any],
        lots: Sequence[Mapping[str, Any]] = (),
) -> FieldDto:
    """
    Crea el campo, luego sus lotes, y por último vincula los lotes al campo.

    Si algo falla a mitad de camino se borran los lotes creados y el campo
    (best effort) y se re-levanta el error original.
    """
    payload = build_field_payload(values)
    _validate_nested_lots(lots)
    lot_payloads = [build_lot_payload(lot) for lot in lots]

    fields_table = client.table_id(TABLE_FIELDS)
    lots_table = client.table_id(TABLE_LOTS) if lot_payloads else None

    field_row = client.create_row(fields_table, payload)
    field_id = field_row["id"]
    created_lot_ids: List[int] = []
    try:
        for lot_payload in lot_payloads:
            lot_payload[LOT_F_FIELD] = [field_id]
            lot_row = client.create_row(lots_table, lot_payload)
            created_lot_ids.append(lot_row["id"])
        if created_lot_ids:
            field_row = client.update_row(fields_table, field_id, {F_LOTS: created_lot_ids})
    except Exception:
        logger.warning("Fallo al crear campo #%s; revirtiendo %s lotes", field_id, len(created_lot_ids))
        for lot_id in created_lot_ids:
            try:
                client.delete_row(lots_table, lot_id)
            except BaserowRequestError as exc:
                logger.error("No se pudo revertir lote #%s: %s", lot_id, exc)
        try:
            client.delete_row(fields_table, field_id)
        except BaserowRequestError as exc:
            logger.error("No se pudo revertir campo #%s: %s", field_id, exc)
        raise

    logger.info("Campo creado #%s con %s lotes", field_id, len(created_lot_ids))
    return map_field_raw_to_dto(field_row)


def update_field(client: BaserowClient, field_id: int, values: Mapping[str, Any]) -> FieldDto:
    current = get_field(client, field_id)
    next_payload = build_field_payload(values, include_empty_optional=True)
    row = update_with_diff(client, TABLE_FIELDS, field_id, field_dto_to_payload(current), next_payload)
    return map_field_raw_to_dto(row)


def delete_field(client: BaserowClient, field_id: int) -> None:
    client.delete_row(client.table_id(TABLE_FIELDS), field_id)
    logger.info("Campo eliminado #%s", field_id)
