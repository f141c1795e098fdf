from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.shared import FormValuesIn, Msg, Option
from schemas.truck import TruckDto
from services.baserow_client import BaserowClient
from services.filters_service import filter_trucks, truck_filter_options
from services.truck_service import (
    create_truck,
    delete_truck,
    enrich_truck_trip_labels,
    get_truck,
    list_trucks,
    truck_type_options,
    update_truck,
)
from services.truck_trip_service import list_truck_trips
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/trucks", tags=["trucks"])


@router.get(
    "",
    response_model=list[TruckDto],
    summary="Listar camiones",
    description="Ordenados por patente. `type` vacío selecciona los camiones sin tipo.",
)
def get_trucks(
        period: Optional[str] = Query(FILTER_ALL),
        truck_type: Optional[str] = Query(FILTER_ALL, alias="type"),
        client: BaserowClient = Depends(get_baserow_client),
):
    trucks = enrich_truck_trip_labels(list_trucks(client), list_truck_trips(client))
    return filter_trucks(trucks, period, truck_type)


@router.get("/filter-options", summary="Opciones de filtros de camiones")
def get_truck_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return truck_filter_options(list_trucks(client))


@router.get("/types", response_model=list[Option], summary="Tipos de camión")
def get_truck_types(client: BaserowClient = Depends(get_baserow_client)):
    return truck_type_options(client)


@router.get("/{truck_id}", response_model=TruckDto, summary="Obtener camión")
def get_truck_by_id(
        truck_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_truck(client, truck_id)


@router.post("", response_model=TruckDto, status_code=status.HTTP_201_CREATED, summary="Crear camión")
def post_truck(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_truck(client, payload.values)


@router.patch("/{truck_id}", response_model=TruckDto, summary="Editar camión (solo cambios)")
def patch_truck(
        payload: FormValuesIn,
        truck_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_truck(client, truck_id, payload.values)


@router.delete("/{truck_id}", response_model=Msg, summary="Eliminar camión")
def remove_truck(
        truck_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_truck(client, truck_id)
    return Msg(detail="Camión eliminado")
