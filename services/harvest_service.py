# services/harvest_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from config.settings import TABLE_HARVESTS
from schemas.harvest import HarvestDto
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from utils.cells import (
    extract_link_row_ids,
    extract_link_row_labels,
    extract_link_row_labels_trimmed,
    first_or_none,
    normalize_field,
    to_number,
    to_string_or_empty,
)
from utils.datetime_utils import (
    combine_date_and_time_to_iso,
    split_iso_to_date_and_time_local,
    to_utc_iso,
)
from utils.errors import FormValidationError
from utils.forms import get_str, id_list, positive_id, required_id, required_number, set_optional

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_ID = "ID"
F_DATE = "Fecha"
F_HARVESTED_KGS = "KG Cosechados"
F_TO_STOCK_KGS = "Kgs Ingresados a Stock"
F_LOTS = "Lotes"
F_CYCLE = "Ciclo de siembra"
F_PERIOD = "Periodo"
F_FIELD = "Campo"
F_FIELD_TEXT = "Campo texto"
F_CROP = "Cultivo"
F_STOCK = "Stock"
F_DIRECT_TRIPS = "Viajes camión directos"
F_STOCK_TRIPS = "Viajes de camión desde stock"
F_DIRECT_TRUCK_KGS = "Kgs Egresados Camión Directo"
F_NOTES = "Notas"

# Claves del formulario de cosecha (fecha y hora van separadas)
FORM_DATE = "Fecha_fecha"
FORM_TIME = "Fecha_hora"


# ==================== MAPPER ====================

def map_harvest_raw_to_dto(row: Any) -> HarvestDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0

    cycle_ids = extract_link_row_ids(row.get(F_CYCLE))
    cycle_labels = extract_link_row_labels(row.get(F_CYCLE))
    field_ids = extract_link_row_ids(row.get(F_FIELD))
    date = row.get(F_DATE)

    return HarvestDto(
        id=row_id,
        harvest_id=normalize_field(row.get(F_ID)) or str(row_id),
        date=date if isinstance(date, str) and date.strip() else None,
        field=normalize_field(row.get(F_FIELD_TEXT)) or normalize_field(row.get(F_FIELD)),
        field_id=first_or_none(field_ids),
        crop=normalize_field(row.get(F_CROP)),
        harvested_kgs=to_number(row.get(F_HARVESTED_KGS)),
        lots_ids=extract_link_row_ids(row.get(F_LOTS)),
        lots_labels=extract_link_row_labels_trimmed(row.get(F_LOTS)),
        cycle_ids=cycle_ids,
        cycle_id=first_or_none(cycle_ids),
        cycle_label=first_or_none(cycle_labels),
        period=normalize_field(row.get(F_PERIOD)).strip() or None,
        stock_ids=extract_link_row_ids(row.get(F_STOCK)),
        stock_labels=extract_link_row_labels_trimmed(row.get(F_STOCK)),
        stock_kgs=to_number(row.get(F_TO_STOCK_KGS)),
        direct_truck_trip_ids=extract_link_row_ids(row.get(F_DIRECT_TRIPS)),
        direct_truck_labels=extract_link_row_labels_trimmed(row.get(F_DIRECT_TRIPS)),
        direct_truck_kgs=to_number(row.get(F_DIRECT_TRUCK_KGS)),
        stock_truck_trip_ids=extract_link_row_ids(row.get(F_STOCK_TRIPS)),
        notes=to_string_or_empty(row.get(F_NOTES)),
    )


# ==================== PAYLOADS ====================

def build_harvest_payload(values: Mapping[str, Any], include_empty_optional: bool = False) -> Dict[str, Any]:
    """
    Formulario de cosecha -> payload Baserow.

    Requeridos: fecha, kilos cosechados, al menos un lote, ciclo de siembra.
    Opcionales: Stock y Viajes camión directos (un id cada uno), Notas.
    """
    date_raw = get_str(values, FORM_DATE)
    if not date_raw:
        raise FormValidationError("Ingresá una fecha válida para la cosecha")
    kgs_message = "Ingresá un número válido para los kilos cosechados"
    if not get_str(values, F_HARVESTED_KGS):
        raise FormValidationError(kgs_message)
    lots = id_list(values, F_LOTS)
    if not lots:
        raise FormValidationError("Seleccioná al menos un lote")
    cycle_id = required_id(values, F_CYCLE, "Seleccioná un ciclo de siembra válido")

    date_iso = combine_date_and_time_to_iso(date_raw, values.get(FORM_TIME))
    if date_iso is None:
        raise FormValidationError("Ingresá una fecha válida para la cosecha")
    harvested_kgs = required_number(values, F_HARVESTED_KGS, kgs_message)

    payload: Dict[str, Any] = {
        F_DATE: date_iso,
        F_HARVESTED_KGS: harvested_kgs,
        F_LOTS: lots,
        F_CYCLE: [cycle_id],
    }

    stock_id = positive_id(values.get(F_STOCK))
    set_optional(payload, F_STOCK, [stock_id] if stock_id else [], include_empty_optional, empty=[])
    trip_id = positive_id(values.get(F_DIRECT_TRIPS))
    set_optional(payload, F_DIRECT_TRIPS, [trip_id] if trip_id else [], include_empty_optional, empty=[])
    set_optional(payload, F_NOTES, get_str(values, F_NOTES), include_empty_optional, empty="")
    return payload


def harvest_dto_to_form_values(dto: HarvestDto) -> Dict[str, Any]:
    """Valores iniciales del formulario de edición (fecha y hora locales)."""
    date_part, time_part = split_iso_to_date_and_time_local(dto.date)
    return {
        FORM_DATE: date_part,
        FORM_TIME: time_part,
        F_HARVESTED_KGS: dto.harvested_kgs,
        F_LOTS: list(dto.lots_ids),
        F_CYCLE: dto.cycle_id,
        F_STOCK: first_or_none(dto.stock_ids),
        F_DIRECT_TRIPS: first_or_none(dto.direct_truck_trip_ids),
        F_NOTES: dto.notes or "",
    }


def harvest_dto_to_payload(dto: HarvestDto) -> Dict[str, Any]:
    """Payload "previo" para diffs de edición; mismas claves que build_harvest_payload."""
    return {
        F_DATE: to_utc_iso(dto.date, truncate_seconds=True),
        F_HARVESTED_KGS: dto.harvested_kgs,
        F_LOTS: list(dto.lots_ids),
        F_CYCLE: [dto.cycle_id] if dto.cycle_id else [],
        F_STOCK: dto.stock_ids[:1],
        F_DIRECT_TRIPS: dto.direct_truck_trip_ids[:1],
        F_NOTES: (dto.notes or "").strip(),
    }


# ==================== GATEWAY ====================

def list_harvests(client: BaserowClient) -> List[HarvestDto]:
    return [map_harvest_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_HARVESTS))]


def get_harvest(client: BaserowClient, harvest_id: int) -> HarvestDto:
    return map_harvest_raw_to_dto(client.get_row(client.table_id(TABLE_HARVESTS), harvest_id))


def list_harvests_by_cycle(client: BaserowClient, cycle_id: int) -> List[HarvestDto]:
    return [h for h in list_harvests(client) if cycle_id in h.cycle_ids]


def create_harvest(client: BaserowClient, values: Mapping[str, Any]) -> HarvestDto:
    payload = build_harvest_payload(values)
    row = client.create_row(client.table_id(TABLE_HARVESTS), payload)
    logger.info("Cosecha creada #%s", row.get("id"))
    return map_harvest_raw_to_dto(row)


def update_harvest(client: BaserowClient, harvest_id: int, values: Mapping[str, Any]) -> HarvestDto:
    current = get_harvest(client, harvest_id)
    next_payload = build_harvest_payload(values, include_empty_optional=True)
    row = update_with_diff(client, TABLE_HARVESTS, harvest_id, harvest_dto_to_payload(current), next_payload)
    return map_harvest_raw_to_dto(row)


def delete_harvest(client: BaserowClient, harvest_id: int) -> None:
    client.delete_row(client.table_id(TABLE_HARVESTS), harvest_id)
    logger.info("Cosecha eliminada #%s", harvest_id)
