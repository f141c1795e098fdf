from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.provider import ProviderDto, ProviderPeriodRow
from schemas.shared import FormValuesIn, Msg, Option
from services.baserow_client import BaserowClient
from services.dashboard_service import provider_period_rows
from services.filters_service import filter_providers, provider_filter_options
from services.provider_service import (
    create_provider,
    delete_provider,
    get_provider,
    list_providers,
    provider_admit_options,
    update_provider,
)
from services.truck_trip_service import list_truck_trips
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=list[ProviderDto], summary="Listar proveedores")
def get_providers(
        period: Optional[str] = Query(FILTER_ALL),
        admit: Optional[str] = Query(FILTER_ALL),
        client: BaserowClient = Depends(get_baserow_client),
):
    return filter_providers(list_providers(client), period, admit)


@router.get("/filter-options", summary="Opciones de filtros de proveedores")
def get_provider_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return provider_filter_options(list_providers(client))


@router.get(
    "/period-rows",
    response_model=list[ProviderPeriodRow],
    summary="Proveedores por periodo",
    description=(
            "Una fila por proveedor y periodo con los kgs entregados (suma de kgs "
            "de destino). Un proveedor sin viajes aparece con periodo '—'."
    ),
)
def get_provider_period_rows(client: BaserowClient = Depends(get_baserow_client)):
    return provider_period_rows(list_providers(client), list_truck_trips(client))


@router.get("/admits", response_model=list[Option], summary="Opciones de 'Admite'")
def get_provider_admits(client: BaserowClient = Depends(get_baserow_client)):
    return provider_admit_options(client)


@router.get("/{provider_id}", response_model=ProviderDto, summary="Obtener proveedor")
def get_provider_by_id(
        provider_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_provider(client, provider_id)


@router.post("", response_model=ProviderDto, status_code=status.HTTP_201_CREATED, summary="Crear proveedor")
def post_provider(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_provider(client, payload.values)


@router.patch("/{provider_id}", response_model=ProviderDto, summary="Editar proveedor (solo cambios)")
def patch_provider(
        payload: FormValuesIn,
        provider_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_provider(client, provider_id, payload.values)


@router.delete("/{provider_id}", response_model=Msg, summary="Eliminar proveedor")
def remove_provider(
        provider_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_provider(client, provider_id)
    return Msg(detail="Proveedor eliminado")
