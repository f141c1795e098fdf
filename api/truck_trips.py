"""
Endpoints de viajes de camión.

Alta y edición calculan el estado del evento (`eventStatus`) contra los kgs
disponibles en la cosecha o el stock de origen.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.shared import FormValuesIn, Msg, Option
from schemas.truck_trip import TruckTripDto, TruckTripTotals
from services.baserow_client import BaserowClient
from services.cycle_service import list_cycles
from services.field_service import list_fields
from services.filters_service import filter_truck_trips, truck_trip_filter_options, truck_trip_totals
from services.form_options_service import field_options
from services.harvest_service import list_harvests
from services.relations_service import trips_by_origins
from services.stock_service import list_stocks
from services.truck_trip_service import (
    attach_cycle_row_ids,
    create_truck_trip,
    delete_truck_trip,
    get_truck_trip,
    list_truck_trips,
    truck_trip_dto_to_form_values,
    truck_trip_select_options,
    update_truck_trip,
)
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/truck-trips", tags=["truck-trips"])


def _list_enriched(client: BaserowClient) -> List[TruckTripDto]:
    return attach_cycle_row_ids(list_truck_trips(client), list_cycles(client))


# ==========================================
# GET - Listados
# ==========================================

@router.get(
    "",
    response_model=list[TruckTripDto],
    summary="Listar viajes",
    description=(
            "Filtros combinados (AND), más recientes primero. `field` compara contra "
            "el campo de origen resuelto (Campo Origen > de cosecha > de stock)."
    ),
)
def get_truck_trips(
        period: Optional[str] = Query(FILTER_ALL),
        field: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        destination: Optional[str] = Query(FILTER_ALL),
        origin_type: Optional[str] = Query(FILTER_ALL, alias="originType"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return filter_truck_trips(
        _list_enriched(client),
        period, field, cycle, destination, origin_type,
        field_opts=field_options(list_fields(client)),
    )


@router.get("/filter-options", summary="Opciones de filtros de viajes")
def get_truck_trip_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return truck_trip_filter_options(list_truck_trips(client), field_options(list_fields(client)))


@router.get("/totals", response_model=TruckTripTotals, summary="Totales de viajes")
def get_truck_trip_totals(
        period: Optional[str] = Query(FILTER_ALL),
        field: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        destination: Optional[str] = Query(FILTER_ALL),
        origin_type: Optional[str] = Query(FILTER_ALL, alias="originType"),
        client: BaserowClient = Depends(get_baserow_client),
):
    trips = filter_truck_trips(
        list_truck_trips(client),
        period, field, cycle, destination, origin_type,
        field_opts=field_options(list_fields(client)),
    )
    return truck_trip_totals(trips)


@router.get(
    "/by-origins",
    response_model=list[TruckTripDto],
    summary="Viajes por origen",
    description="Viajes cuyo origen es alguna de las cosechas o alguno de los stocks indicados (unión).",
)
def get_truck_trips_by_origins(
        harvest_ids: List[int] = Query([], alias="harvestIds"),
        stock_ids: List[int] = Query([], alias="stockIds"),
        client: BaserowClient = Depends(get_baserow_client),
):
    if not harvest_ids and not stock_ids:
        return []
    return trips_by_origins(list_truck_trips(client), harvest_ids, stock_ids)


@router.get(
    "/select-options/{field_name}",
    response_model=list[Option],
    summary="Opciones de un select de viajes ('Estado', 'Tipo destino')",
)
def get_truck_trip_select_options(
        field_name: str = Path(...),
        client: BaserowClient = Depends(get_baserow_client),
):
    return truck_trip_select_options(client, field_name)


@router.get("/{trip_id}", response_model=TruckTripDto, summary="Obtener viaje")
def get_truck_trip_by_id(
        trip_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_truck_trip(client, trip_id)


@router.get("/{trip_id}/form-values", response_model=Dict[str, Any], summary="Valores para editar")
def get_truck_trip_form_values(
        trip_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return truck_trip_dto_to_form_values(get_truck_trip(client, trip_id))


# ==========================================
# POST / PATCH / DELETE
# ==========================================

@router.post(
    "",
    response_model=TruckTripDto,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar viaje",
    description=(
            "`values` usa los nombres de columna de Baserow, más `Tipo origen` "
            "(cosecha | stock), `Origen` (id) y la salida separada en "
            "`Fecha de salida - Fecha` / `Fecha de salida - Hora`."
    ),
)
def post_truck_trip(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_truck_trip(client, payload.values, list_harvests(client), list_stocks(client))


@router.patch("/{trip_id}", response_model=TruckTripDto, summary="Editar viaje (solo cambios)")
def patch_truck_trip(
        payload: FormValuesIn,
        trip_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_truck_trip(client, trip_id, payload.values, list_harvests(client), list_stocks(client))


@router.delete("/{trip_id}", response_model=Msg, summary="Eliminar viaje")
def remove_truck_trip(
        trip_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_truck_trip(client, trip_id)
    return Msg(detail="Viaje eliminado")
