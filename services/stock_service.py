# services/stock_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from config.settings import TABLE_STOCK
from schemas.shared import Option
from schemas.stock import StockDto
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from utils.cells import (
    extract_link_row_ids,
    extract_link_row_labels,
    extract_link_row_labels_trimmed,
    extract_single_select_id,
    normalize_field,
    to_number,
    to_optional_number,
    to_string_or_empty,
)
from utils.datetime_utils import parse_date_string
from utils.errors import FormValidationError
from utils.forms import get_str, positive_id, required_id, set_optional

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_ID = "ID"
F_NOTES = "Notas"
F_CYCLE = "Ciclo de siembra"
F_UNIT_TYPE = "Tipo unidad"
F_CREATED_AT = "Fecha de creación"
F_ORIGIN_HARVESTS = "Cosechas Origen"
F_HARVESTED_KGS = "Kgs Ingresados a Stock"
F_TOTAL_IN_KGS = "Total kgs ingresados"
F_TRUCK_TRIPS = "Viajes de camión desde stock"
F_TOTAL_OUT_KGS = "Total kgs egresados cosecha"
F_CURRENT_KGS = "Kgs actuales"
F_STATUS = "Estado"
F_FIELD = "Campo"
F_CROP = "Cultivo"


# ==================== MAPPER ====================

def map_stock_raw_to_dto(row: Any) -> StockDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0
    stock_id = normalize_field(row.get(F_ID)) or str(row_id)
    field_ids = extract_link_row_ids(row.get(F_FIELD))
    created_at = normalize_field(row.get(F_CREATED_AT)).strip()

    return StockDto(
        id=row_id,
        stock_id=stock_id,
        name=stock_id,
        notes=to_string_or_empty(row.get(F_NOTES)),
        cycle_ids=extract_link_row_ids(row.get(F_CYCLE)),
        cycle_labels=extract_link_row_labels(row.get(F_CYCLE)),
        unit_type=normalize_field(row.get(F_UNIT_TYPE)),
        unit_type_id=extract_single_select_id(row.get(F_UNIT_TYPE)),
        created_at=created_at or None,
        origin_harvest_ids=extract_link_row_ids(row.get(F_ORIGIN_HARVESTS)),
        origin_harvests_labels=extract_link_row_labels_trimmed(row.get(F_ORIGIN_HARVESTS)),
        harvested_kgs=to_number(row.get(F_HARVESTED_KGS)),
        total_in_kgs=to_number(row.get(F_TOTAL_IN_KGS)),
        truck_trip_ids=extract_link_row_ids(row.get(F_TRUCK_TRIPS)),
        truck_trip_labels=extract_link_row_labels_trimmed(row.get(F_TRUCK_TRIPS)),
        total_out_from_harvest_kgs=to_number(row.get(F_TOTAL_OUT_KGS)),
        current_kgs=to_optional_number(row.get(F_CURRENT_KGS)),
        status=normalize_field(row.get(F_STATUS)),
        status_id=extract_single_select_id(row.get(F_STATUS)),
        field=normalize_field(row.get(F_FIELD)),
        field_id=field_ids[0] if field_ids else None,
        crop=normalize_field(row.get(F_CROP)),
    )


# ==================== PAYLOADS ====================

def stock_dto_to_form_values(dto: StockDto) -> Dict[str, Any]:
    """Valores iniciales del formulario de edición."""
    return {
        F_UNIT_TYPE: dto.unit_type_id,
        F_CYCLE: dto.cycle_ids[0] if dto.cycle_ids else None,
        F_CREATED_AT: (dto.created_at or "")[:10],
        F_STATUS: dto.status_id,
        F_NOTES: dto.notes or "",
    }


def build_stock_payload(values: Mapping[str, Any], include_empty_optional: bool = False) -> Dict[str, Any]:
    """
    Requeridos: Tipo unidad, Fecha de creación (YYYY-MM-DD), Estado.
    Opcionales: Ciclo de siembra, Notas.
    """
    unit_type_id = required_id(values, F_UNIT_TYPE, "Seleccioná un tipo de unidad válido")
    created_raw = get_str(values, F_CREATED_AT)
    if parse_date_string(created_raw) is None:
        raise FormValidationError("Ingresá una fecha de creación válida (YYYY-MM-DD)")
    status_id = required_id(values, F_STATUS, "Seleccioná un estado válido")

    payload: Dict[str, Any] = {
        F_UNIT_TYPE: unit_type_id,
        F_CREATED_AT: created_raw,
        F_STATUS: status_id,
    }
    cycle_id = positive_id(values.get(F_CYCLE))
    set_optional(payload, F_CYCLE, [cycle_id] if cycle_id else [], include_empty_optional, empty=[])
    set_optional(payload, F_NOTES, get_str(values, F_NOTES), include_empty_optional, empty="")
    return payload


def stock_dto_to_payload(dto: StockDto) -> Dict[str, Any]:
    return {
        F_UNIT_TYPE: dto.unit_type_id,
        F_CREATED_AT: (dto.created_at or "")[:10] or None,
        F_STATUS: dto.status_id,
        F_CYCLE: dto.cycle_ids[:1],
        F_NOTES: (dto.notes or "").strip(),
    }


# ==================== GATEWAY ====================

def list_stocks(client: BaserowClient) -> List[StockDto]:
    return [map_stock_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_STOCK))]


def get_stock(client: BaserowClient, stock_id: int) -> StockDto:
    return map_stock_raw_to_dto(client.get_row(client.table_id(TABLE_STOCK), stock_id))


def list_stocks_by_cycle(client: BaserowClient, cycle_id: int) -> List[StockDto]:
    return [s for s in list_stocks(client) if cycle_id in s.cycle_ids]


def stock_select_options(client: BaserowClient, field_name: str) -> List[Option]:
    table_id = client.table_id(TABLE_STOCK)
    return [Option(**o) for o in client.select_options(table_id, field_name, "single_select")]


def create_stock(client: BaserowClient, values: Mapping[str, Any]) -> StockDto:
    payload = build_stock_payload(values)
    row = client.create_row(client.table_id(TABLE_STOCK), payload)
    logger.info("Stock creado #%s", row.get("id"))
    return map_stock_raw_to_dto(row)


def update_stock(client: BaserowClient, stock_id: int, values: Mapping[str, Any]) -> StockDto:
    current = get_stock(client, stock_id)
    next_payload = build_stock_payload(values, include_empty_optional=True)
    row = update_with_diff(client, TABLE_STOCK, stock_id, stock_dto_to_payload(current), next_payload)
    return map_stock_raw_to_dto(row)


def delete_stock(client: BaserowClient, stock_id: int) -> None:
    client.delete_row(client.table_id(TABLE_STOCK), stock_id)
    logger.info("Stock eliminado #%s", stock_id)
