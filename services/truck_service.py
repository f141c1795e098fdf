# services/truck_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping

from config.settings import TABLE_TRUCKS
from schemas.shared import Option
from schemas.truck import TruckDto
from schemas.truck_trip import TruckTripDto
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from utils.cells import extract_link_row_ids, extract_single_select_id, normalize_field, normalize_labels_array
from utils.errors import FormValidationError
from utils.forms import get_str, positive_id
from utils.text import spanish_sort_key

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_PLATE = "Patente"
F_OWNER = "Propietario"
F_TYPE = "Tipo"
F_TRIPS = "Viajes de camión"
F_TRIP_PERIODS = "Periodo viajes"


def map_truck_raw_to_dto(row: Any) -> TruckDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0
    return TruckDto(
        id=row_id,
        plate=normalize_field(row.get(F_PLATE)).strip() or f"Camión #{row_id}",
        owner=normalize_field(row.get(F_OWNER)),
        type_id=extract_single_select_id(row.get(F_TYPE)),
        type_label=normalize_field(row.get(F_TYPE)),
        trip_ids=extract_link_row_ids(row.get(F_TRIPS)),
        trip_labels=normalize_labels_array(row.get(F_TRIPS)),
        period_labels=normalize_labels_array(row.get(F_TRIP_PERIODS)),
    )


def sort_trucks(trucks: Iterable[TruckDto]) -> List[TruckDto]:
    return sorted(trucks, key=lambda t: spanish_sort_key(t.plate))


def enrich_truck_trip_labels(trucks: Iterable[TruckDto], trips: Iterable[TruckTripDto]) -> List[TruckDto]:
    """Reemplaza las etiquetas de viajes por el ID del viaje ('#id' si no se conoce)."""
    labels = {t.id: t.trip_id for t in trips if t.trip_id}
    return [
        truck.model_copy(update={
            "trip_labels": [labels.get(trip_id, f"#{trip_id}") for trip_id in truck.trip_ids],
        })
        for truck in trucks
    ]


def build_truck_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    plate = get_str(values, F_PLATE)
    if not plate:
        raise FormValidationError("Ingresá una patente válida")
    owner = get_str(values, F_OWNER)
    if not owner:
        raise FormValidationError("Ingresá un propietario válido")
    type_id = positive_id(values.get(F_TYPE))
    if type_id is None:
        raise FormValidationError("Seleccioná un tipo de camión válido")
    return {F_PLATE: plate, F_OWNER: owner, F_TYPE: type_id}


def truck_dto_to_payload(dto: TruckDto) -> Dict[str, Any]:
    return {F_PLATE: dto.plate, F_OWNER: dto.owner, F_TYPE: dto.type_id}


# ==================== GATEWAY ====================

def list_trucks(client: BaserowClient) -> List[TruckDto]:
    rows = client.list_rows(client.table_id(TABLE_TRUCKS))
    return sort_trucks(map_truck_raw_to_dto(r) for r in rows)


def get_truck(client: BaserowClient, truck_id: int) -> TruckDto:
    return map_truck_raw_to_dto(client.get_row(client.table_id(TABLE_TRUCKS), truck_id))


def truck_type_options(client: BaserowClient) -> List[Option]:
    table_id = client.table_id(TABLE_TRUCKS)
    return [Option(**o) for o in client.select_options(table_id, F_TYPE, "single_select")]


def create_truck(client: BaserowClient, values: Mapping[str, Any]) -> TruckDto:
    row = client.create_row(client.table_id(TABLE_TRUCKS), build_truck_payload(values))
    logger.info("Camión creado #%s", row.get("id"))
    return map_truck_raw_to_dto(row)


def update_truck(client: BaserowClient, truck_id: int, values: Mapping[str, Any]) -> TruckDto:
    current = get_truck(client, truck_id)
    row = update_with_diff(
        client, TABLE_TRUCKS, truck_id, truck_dto_to_payload(current), build_truck_payload(values)
    )
    return map_truck_raw_to_dto(row)


def delete_truck(client: BaserowClient, truck_id: int) -> None:
    client.delete_row(client.table_id(TABLE_TRUCKS), truck_id)
    logger.info("Camión eliminado #%s", truck_id)
