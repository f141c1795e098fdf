"""
Opciones para los selectores de formularios.

Los filtros por campo aceptan `fieldId`, `fieldName` o ambos: si los dos
lados tienen id se compara por id, si no por nombre normalizado.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from enums.enums import TripOriginTypeEnum
from schemas.shared import Option
from schemas.truck_trip import TripOriginOption
from services.baserow_client import BaserowClient
from services.cycle_service import list_cycles
from services.field_service import list_fields
from services.form_options_service import (
    cycle_options,
    field_options,
    harvest_field_dependencies,
    provider_options,
    stock_field_dependencies,
    trip_origin_options,
    truck_options,
)
from services.harvest_service import list_harvests
from services.lot_service import list_lots, lots_by_field_id
from services.provider_service import list_providers
from services.stock_service import list_stocks
from services.truck_service import list_trucks
from services.truck_trip_service import list_truck_trips
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/options", tags=["options"])


@router.get("/fields", response_model=list[Option], summary="Campos")
def get_field_options(client: BaserowClient = Depends(get_baserow_client)):
    return field_options(list_fields(client))


@router.get("/lots", response_model=list[Option], summary="Lotes de un campo")
def get_lot_options(
        field_id: int = Query(..., gt=0, alias="fieldId"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return lots_by_field_id(list_lots(client), field_id)


@router.get("/cycles", response_model=list[Option], summary="Ciclos (más recientes primero)")
def get_cycle_options(client: BaserowClient = Depends(get_baserow_client)):
    return cycle_options(list_cycles(client))


@router.get("/trucks", response_model=list[Option], summary="Camiones")
def get_truck_options(client: BaserowClient = Depends(get_baserow_client)):
    return truck_options(list_trucks(client))


@router.get("/providers", response_model=list[Option], summary="Proveedores")
def get_provider_options(client: BaserowClient = Depends(get_baserow_client)):
    return provider_options(list_providers(client))


@router.get(
    "/harvest-dependencies",
    response_model=Dict[str, List[Option]],
    summary="Dependencias del formulario de cosecha",
    description="Lotes, ciclos, stocks y viajes (`truckTrips`) del campo elegido.",
)
def get_harvest_dependencies(
        field_id: Optional[int] = Query(None, alias="fieldId"),
        field_name: Optional[str] = Query(None, alias="fieldName"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return harvest_field_dependencies(
        field_id,
        field_name,
        list_lots(client),
        list_cycles(client),
        list_stocks(client),
        list_truck_trips(client),
    )


@router.get(
    "/stock-dependencies",
    response_model=Dict[str, List[Option]],
    summary="Dependencias del formulario de stock",
)
def get_stock_dependencies(
        field_id: Optional[int] = Query(None, alias="fieldId"),
        field_name: Optional[str] = Query(None, alias="fieldName"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return stock_field_dependencies(field_id, field_name, list_cycles(client))


@router.get(
    "/trip-origins",
    response_model=list[TripOriginOption],
    summary="Orígenes posibles de un viaje",
    description="Cosechas o stocks (según `originType`) del campo elegido, id descendente.",
)
def get_trip_origin_options(
        origin_type: TripOriginTypeEnum = Query(..., alias="originType"),
        field_id: Optional[int] = Query(None, alias="fieldId"),
        field_name: Optional[str] = Query(None, alias="fieldName"),
        client: BaserowClient = Depends(get_baserow_client),
):
    harvests = list_harvests(client) if origin_type == TripOriginTypeEnum.harvest else []
    stocks = list_stocks(client) if origin_type == TripOriginTypeEnum.stock else []
    return trip_origin_options(
        origin_type, harvests, stocks, list_cycles(client), field_id=field_id, field_name=field_name
    )
