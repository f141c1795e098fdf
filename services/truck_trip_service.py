# services/truck_trip_service.py
"""
Viajes de camión: mapper, builder del formulario, estado del evento
(kgs disponibles en el origen) y operaciones contra Baserow.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config.settings import TABLE_TRUCK_TRIPS
from enums.enums import TripEventStatusEnum, TripOriginTypeEnum
from schemas.harvest import HarvestDto
from schemas.cycle import CycleDto
from schemas.shared import Option
from schemas.stock import StockDto
from schemas.truck_trip import TruckTripDto
from services.baserow_client import BaserowClient
from services.diff_service import compute_diff_payload, require_changes
from utils.cells import (
    extract_link_row_ids,
    extract_link_row_labels,
    extract_single_select_id,
    normalize_field,
    to_number,
    to_optional_number,
    to_string_or_empty,
)
from utils.datetime_utils import (
    combine_date_and_time_to_iso,
    split_iso_to_date_and_time_local,
    to_utc_iso,
)
from utils.errors import FormValidationError
from utils.forms import (
    get_str,
    optional_number,
    positive_id,
    required_id,
    required_number,
    set_optional,
)

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_ID = "ID"
F_NOTES = "Notas"
F_TRUCK = "Camión"
F_CTG = "CTG"
F_DATE = "Fecha de salida"
F_PERIOD = "Periodo"
F_ORIGIN_FIELD = "Campo Origen"
F_ORIGIN_FIELD_HARVEST = "Campo Origen Cosecha"
F_ORIGIN_FIELD_STOCK = "Campo Origen Stock"
F_DESTINATION_TYPE = "Tipo destino"
F_PROVIDER = "Proveedor"
F_DESTINATION_DETAIL = "Detalle Destino (opcional)"
F_KGS_ORIGIN = "Kg carga origen"
F_KGS_DESTINATION = "Kg carga destino"
F_STATUS = "Estado"
F_HARVEST_ORIGIN = "Cosecha Origen (opcional)"
F_STOCK_ORIGIN = "Stock Origen (opcional)"
F_CYCLE = "Ciclo de siembra"
F_EVENT_STATUS = "eventStatus"

# Claves exclusivas del formulario
FORM_DATE = "Fecha de salida - Fecha"
FORM_TIME = "Fecha de salida - Hora"
FORM_ORIGIN_TYPE = "Tipo origen"
FORM_ORIGIN_ID = "Origen"

_ORIGIN_TYPE_ALIASES = {
    "cosecha": TripOriginTypeEnum.harvest,
    "harvest": TripOriginTypeEnum.harvest,
    "stock": TripOriginTypeEnum.stock,
}


def resolve_origin_type(harvest_ids: Sequence[int], stock_ids: Sequence[int]) -> TripOriginTypeEnum:
    """Cosecha tiene prioridad si (anómalamente) vienen ambos orígenes."""
    if harvest_ids:
        return TripOriginTypeEnum.harvest
    if stock_ids:
        return TripOriginTypeEnum.stock
    return TripOriginTypeEnum.unknown


def _ctg_or_none(value: Any) -> Optional[int]:
    number = to_optional_number(value)
    if number is None or number <= 0:
        return None
    return int(number)


# ==================== MAPPER ====================

def map_truck_trip_raw_to_dto(row: Any) -> TruckTripDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0
    harvest_ids = extract_link_row_ids(row.get(F_HARVEST_ORIGIN))
    stock_ids = extract_link_row_ids(row.get(F_STOCK_ORIGIN))
    truck_ids = extract_link_row_ids(row.get(F_TRUCK))
    provider_labels = extract_link_row_labels(row.get(F_PROVIDER))
    date = row.get(F_DATE)

    return TruckTripDto(
        id=row_id,
        trip_id=normalize_field(row.get(F_ID)),
        notes=to_string_or_empty(row.get(F_NOTES)),
        date=date if isinstance(date, str) and date.strip() else None,
        period=normalize_field(row.get(F_PERIOD)).strip() or None,
        truck_plate=normalize_field(row.get(F_TRUCK)),
        truck_id=truck_ids[0] if truck_ids else None,
        ctg=_ctg_or_none(row.get(F_CTG)),
        destination_type=normalize_field(row.get(F_DESTINATION_TYPE)),
        destination_type_id=extract_single_select_id(row.get(F_DESTINATION_TYPE)),
        destination_detail=to_string_or_empty(row.get(F_DESTINATION_DETAIL)),
        provider=provider_labels[0] if provider_labels else normalize_field(row.get(F_PROVIDER)),
        provider_ids=extract_link_row_ids(row.get(F_PROVIDER)),
        total_kgs_origin=to_number(row.get(F_KGS_ORIGIN)),
        total_kgs_destination=to_optional_number(row.get(F_KGS_DESTINATION)),
        status=normalize_field(row.get(F_STATUS)),
        status_id=extract_single_select_id(row.get(F_STATUS)),
        harvest_origin_ids=harvest_ids,
        stock_origin_ids=stock_ids,
        origin_type=resolve_origin_type(harvest_ids, stock_ids),
        origin_field=to_string_or_empty(row.get(F_ORIGIN_FIELD)),
        origin_field_from_stock=normalize_field(row.get(F_ORIGIN_FIELD_STOCK)),
        origin_field_from_harvest=normalize_field(row.get(F_ORIGIN_FIELD_HARVEST)),
        cycle_label=to_string_or_empty(row.get(F_CYCLE)),
        cycle_row_id=None,
    )


def destination_label(trip: TruckTripDto) -> str:
    """Proveedor > detalle > tipo de destino > '—'."""
    return trip.provider or trip.destination_detail or trip.destination_type or "—"


def attach_cycle_row_ids(trips: Iterable[TruckTripDto], cycles: Iterable[CycleDto]) -> List[TruckTripDto]:
    """Resuelve cycle_row_id buscando el ciclo por su etiqueta (sin distinguir mayúsculas)."""
    by_label: Dict[str, int] = {}
    for cycle in cycles:
        key = cycle.cycle_id.strip().lower()
        if key and key not in by_label:
            by_label[key] = cycle.id
    return [
        trip.model_copy(update={"cycle_row_id": by_label.get(trip.cycle_label.strip().lower())})
        for trip in trips
    ]


# ==================== PAYLOADS ====================

def build_truck_trip_payload(values: Mapping[str, Any], include_empty_optional: bool = False) -> Dict[str, Any]:
    """
    Formulario de viaje -> payload Baserow.

    El tipo de origen decide qué lista de origen lleva el id; la otra se vacía.
    """
    truck_id = required_id(values, F_TRUCK, "Seleccioná un camión válido")
    date_iso = combine_date_and_time_to_iso(get_str(values, FORM_DATE), values.get(FORM_TIME))
    if date_iso is None:
        raise FormValidationError("Ingresá una fecha de salida válida")
    status_id = required_id(values, F_STATUS, "Seleccioná un estado válido")

    origin_type = _ORIGIN_TYPE_ALIASES.get(get_str(values, FORM_ORIGIN_TYPE).lower())
    if origin_type is None:
        raise FormValidationError("Seleccioná un tipo de origen válido")
    origin_id = required_id(values, FORM_ORIGIN_ID, "Seleccioná un origen válido")

    kgs_origin = required_number(values, F_KGS_ORIGIN, "Ingresá un número válido para los kgs de origen")
    kgs_destination = optional_number(values, F_KGS_DESTINATION, "Ingresá un número válido para los kgs de destino")

    ctg = optional_number(values, F_CTG, "Ingresá un CTG válido")
    if ctg is not None and (ctg <= 0 or not float(ctg).is_integer()):
        raise FormValidationError("Ingresá un CTG válido")

    payload: Dict[str, Any] = {
        F_TRUCK: [truck_id],
        F_DATE: date_iso,
        F_STATUS: status_id,
        F_HARVEST_ORIGIN: [origin_id] if origin_type == TripOriginTypeEnum.harvest else [],
        F_STOCK_ORIGIN: [origin_id] if origin_type == TripOriginTypeEnum.stock else [],
        F_KGS_ORIGIN: kgs_origin,
    }
    set_optional(payload, F_KGS_DESTINATION, kgs_destination, include_empty_optional)
    set_optional(payload, F_CTG, int(ctg) if ctg is not None else None, include_empty_optional)
    set_optional(payload, F_DESTINATION_TYPE, positive_id(values.get(F_DESTINATION_TYPE)), include_empty_optional)
    provider_id = positive_id(values.get(F_PROVIDER))
    set_optional(payload, F_PROVIDER, [provider_id] if provider_id else [], include_empty_optional, empty=[])
    set_optional(payload, F_DESTINATION_DETAIL, get_str(values, F_DESTINATION_DETAIL), include_empty_optional, empty="")
    set_optional(payload, F_NOTES, get_str(values, F_NOTES), include_empty_optional, empty="")
    return payload


def truck_trip_dto_to_form_values(dto: TruckTripDto) -> Dict[str, Any]:
    """Valores iniciales del formulario de edición; el origen vuelve a tipo + id."""
    date_part, time_part = split_iso_to_date_and_time_local(dto.date)
    origin_ids = dto.harvest_origin_ids or dto.stock_origin_ids
    return {
        F_TRUCK: dto.truck_id,
        FORM_DATE: date_part,
        FORM_TIME: time_part,
        F_STATUS: dto.status_id,
        FORM_ORIGIN_TYPE: dto.origin_type.value if dto.origin_type != TripOriginTypeEnum.unknown else "",
        FORM_ORIGIN_ID: origin_ids[0] if origin_ids else None,
        F_KGS_ORIGIN: dto.total_kgs_origin,
        F_KGS_DESTINATION: dto.total_kgs_destination,
        F_CTG: dto.ctg,
        F_DESTINATION_TYPE: dto.destination_type_id,
        F_PROVIDER: dto.provider_ids[0] if dto.provider_ids else None,
        F_DESTINATION_DETAIL: dto.destination_detail,
        F_NOTES: dto.notes,
    }


def truck_trip_dto_to_payload(dto: TruckTripDto) -> Dict[str, Any]:
    return {
        F_TRUCK: [dto.truck_id] if dto.truck_id else [],
        F_DATE: to_utc_iso(dto.date, truncate_seconds=True),
        F_STATUS: dto.status_id,
        F_HARVEST_ORIGIN: dto.harvest_origin_ids[:1],
        F_STOCK_ORIGIN: dto.stock_origin_ids[:1],
        F_KGS_ORIGIN: dto.total_kgs_origin,
        F_KGS_DESTINATION: dto.total_kgs_destination,
        F_CTG: dto.ctg,
        F_DESTINATION_TYPE: dto.destination_type_id,
        F_PROVIDER: dto.provider_ids[:1],
        F_DESTINATION_DETAIL: (dto.destination_detail or "").strip(),
        F_NOTES: (dto.notes or "").strip(),
    }


# ==================== ESTADO DEL EVENTO ====================

def harvest_available_kgs(harvest: HarvestDto) -> float:
    """Kgs de la cosecha que aún no salieron en camión directo ni fueron a stock."""
    return harvest.harvested_kgs - harvest.direct_truck_kgs - harvest.stock_kgs


def stock_available_kgs(stock: StockDto) -> float:
    return stock.current_kgs or 0.0


def _origin_from_payload(payload: Mapping[str, Any]) -> Optional[Tuple[TripOriginTypeEnum, Optional[int]]]:
    if F_HARVEST_ORIGIN not in payload and F_STOCK_ORIGIN not in payload:
        return None
    harvest_ids = extract_link_row_ids(payload.get(F_HARVEST_ORIGIN))
    stock_ids = extract_link_row_ids(payload.get(F_STOCK_ORIGIN))
    origin_type = resolve_origin_type(harvest_ids, stock_ids)
    origin_id = (harvest_ids or stock_ids or [None])[0]
    return origin_type, origin_id


def compute_trip_event_status(
        payload: Mapping[str, Any],
        harvests: Sequence[HarvestDto],
        stocks: Sequence[StockDto],
        existing: Optional[TruckTripDto] = None,
) -> Tuple[Optional[TripEventStatusEnum], Optional[float]]:
    """
    'applied' si los kgs de origen entran en lo disponible, si no 'kgsError'.

    En edición, si el origen no cambió, los kgs previos del viaje se devuelven
    al disponible antes de comparar.
    """
    origin = _origin_from_payload(payload)
    existing_origin: Optional[Tuple[TripOriginTypeEnum, Optional[int]]] = None
    if existing is not None:
        existing_origin = (
            existing.origin_type,
            (existing.harvest_origin_ids or existing.stock_origin_ids or [None])[0],
        )
    if origin is None or origin[0] == TripOriginTypeEnum.unknown:
        origin = existing_origin or origin
    if origin is None:
        return None, None

    origin_type, origin_id = origin
    if F_KGS_ORIGIN in payload:
        origin_kgs = to_number(payload.get(F_KGS_ORIGIN))
    elif existing is not None:
        origin_kgs = existing.total_kgs_origin
    else:
        return None, None
    if origin_type == TripOriginTypeEnum.unknown or origin_id is None:
        return None, None

    if origin_type == TripOriginTypeEnum.harvest:
        source = next((h for h in harvests if h.id == origin_id), None)
        available = harvest_available_kgs(source) if source else 0.0
    else:
        source = next((s for s in stocks if s.id == origin_id), None)
        available = stock_available_kgs(source) if source else 0.0

    if existing is not None and existing_origin == (origin_type, origin_id):
        available += existing.total_kgs_origin

    status = TripEventStatusEnum.applied if origin_kgs <= available else TripEventStatusEnum.kgs_error
    return status, available


# ==================== GATEWAY ====================

def list_truck_trips(client: BaserowClient) -> List[TruckTripDto]:
    return [map_truck_trip_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_TRUCK_TRIPS))]


def get_truck_trip(client: BaserowClient, trip_id: int) -> TruckTripDto:
    return map_truck_trip_raw_to_dto(client.get_row(client.table_id(TABLE_TRUCK_TRIPS), trip_id))


def truck_trip_select_options(client: BaserowClient, field_name: str) -> List[Option]:
    table_id = client.table_id(TABLE_TRUCK_TRIPS)
    return [Option(**o) for o in client.select_options(table_id, field_name, "single_select")]


def create_truck_trip(
        client: BaserowClient,
        values: Mapping[str, Any],
        harvests: Sequence[HarvestDto] = (),
        stocks: Sequence[StockDto] = (),
) -> TruckTripDto:
    payload = build_truck_trip_payload(values)
    status, _ = compute_trip_event_status(payload, harvests, stocks)
    if status is not None:
        payload[F_EVENT_STATUS] = status.value
    row = client.create_row(client.table_id(TABLE_TRUCK_TRIPS), payload)
    logger.info("Viaje creado #%s (%s)", row.get("id"), status.value if status else "sin estado")
    return map_truck_trip_raw_to_dto(row)


def update_truck_trip(
        client: BaserowClient,
        trip_id: int,
        values: Mapping[str, Any],
        harvests: Sequence[HarvestDto] = (),
        stocks: Sequence[StockDto] = (),
) -> TruckTripDto:
    current = get_truck_trip(client, trip_id)
    next_payload = build_truck_trip_payload(values, include_empty_optional=True)
    diff = compute_diff_payload(truck_trip_dto_to_payload(current), next_payload)
    require_changes(diff)

    status, _ = compute_trip_event_status(diff, harvests, stocks, existing=current)
    if status is not None:
        diff[F_EVENT_STATUS] = status.value
    row = client.update_row(client.table_id(TABLE_TRUCK_TRIPS), trip_id, diff)
    logger.info("Viaje actualizado #%s: %s", trip_id, sorted(diff))
    return map_truck_trip_raw_to_dto(row)


def delete_truck_trip(client: BaserowClient, trip_id: int) -> None:
    client.delete_row(client.table_id(TABLE_TRUCK_TRIPS), trip_id)
    logger.info("Viaje eliminado #%s", trip_id)
