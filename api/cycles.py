"""
Endpoints de ciclos de siembra: listado filtrable, alta, cambio de estado,
edición de fechas y detalle con todo lo relacionado.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.cycle import CycleDatesIn, CycleDetail, CycleDto, CycleStatusIn
from schemas.shared import FormValuesIn, Msg, Option
from services.baserow_client import BaserowClient
from services.cycle_service import (
    create_cycle,
    cycle_select_options,
    delete_cycle,
    get_cycle,
    get_cycle_detail,
    list_cycles,
    update_cycle_dates,
    update_cycle_status,
)
from services.filters_service import cycle_filter_options, filter_cycles
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/cycles", tags=["cycles"])


# ==========================================
# GET - Listado y opciones
# ==========================================

@router.get(
    "",
    response_model=list[CycleDto],
    summary="Listar ciclos",
    description=(
            "Filtros combinados con AND. `all` desactiva el filtro; "
            "un valor vacío selecciona los ciclos sin ese dato."
    ),
)
def get_cycles(
        period: Optional[str] = Query(FILTER_ALL),
        crop: Optional[str] = Query(FILTER_ALL),
        field: Optional[str] = Query(FILTER_ALL),
        cycle_status: Optional[str] = Query(FILTER_ALL, alias="status"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return filter_cycles(list_cycles(client), period, crop, field, cycle_status)


@router.get("/filter-options", summary="Opciones de filtros de ciclos")
def get_cycle_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return cycle_filter_options(list_cycles(client))


@router.get(
    "/select-options/{field_name}",
    response_model=list[Option],
    summary="Opciones de un select de la tabla de ciclos ('Cultivo', 'Estado')",
)
def get_cycle_select_options(
        field_name: str = Path(...),
        client: BaserowClient = Depends(get_baserow_client),
):
    return cycle_select_options(client, field_name)


@router.get("/{cycle_id}", response_model=CycleDto, summary="Obtener ciclo")
def get_cycle_by_id(
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_cycle(client, cycle_id)


@router.get(
    "/{cycle_id}/detail",
    response_model=CycleDetail,
    summary="Detalle del ciclo",
    description=(
            "Ciclo con sus lotes, cosechas y stocks vinculados, y los viajes cuyo "
            "origen es alguna de esas cosechas o stocks."
    ),
)
def get_cycle_detail_by_id(
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_cycle_detail(client, cycle_id)


# ==========================================
# POST / PATCH / DELETE
# ==========================================

@router.post(
    "",
    response_model=CycleDto,
    status_code=status.HTTP_201_CREATED,
    summary="Crear ciclo",
    description=(
            "`values`: lotIds, cropOptionId, statusOptionId y opcionales fallowStartDate, "
            "sowingDate, seed, expectedYield, notes, cropDurationDays.\n\n"
            "Con siembra y duración se calcula la fecha estimada de cosecha."
    ),
)
def post_cycle(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_cycle(client, payload.values)


@router.patch("/{cycle_id}/status", response_model=CycleDto, summary="Cambiar estado del ciclo")
def patch_cycle_status(
        payload: CycleStatusIn,
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_cycle_status(client, cycle_id, payload.status)


@router.patch(
    "/{cycle_id}/dates",
    response_model=CycleDto,
    summary="Editar fechas del ciclo",
    description="Fechas 'YYYY-MM-DD' o vacías. Debe cumplirse barbecho <= siembra <= cosecha estimada.",
)
def patch_cycle_dates(
        payload: CycleDatesIn,
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_cycle_dates(
        client,
        cycle_id,
        payload.fallow_start_date,
        payload.sowing_date,
        payload.estimated_harvest_date,
    )


@router.delete("/{cycle_id}", response_model=Msg, summary="Eliminar ciclo")
def remove_cycle(
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_cycle(client, cycle_id)
    return Msg(detail="Ciclo eliminado")
