from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.harvest import HarvestDto, HarvestTotals
from schemas.shared import FormValuesIn, Msg
from services.baserow_client import BaserowClient
from services.filters_service import filter_harvests, harvest_filter_options, harvest_totals
from services.harvest_service import (
    create_harvest,
    delete_harvest,
    get_harvest,
    harvest_dto_to_form_values,
    list_harvests,
    list_harvests_by_cycle,
    update_harvest,
)
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/harvests", tags=["harvests"])


@router.get(
    "",
    response_model=list[HarvestDto],
    summary="Listar cosechas",
    description="Filtros combinados (AND), más recientes primero.",
)
def get_harvests(
        period: Optional[str] = Query(FILTER_ALL),
        field: Optional[str] = Query(FILTER_ALL),
        crop: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        client: BaserowClient = Depends(get_baserow_client),
):
    return filter_harvests(list_harvests(client), period, field, crop, cycle)


@router.get("/filter-options", summary="Opciones de filtros de cosechas")
def get_harvest_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return harvest_filter_options(list_harvests(client))


@router.get(
    "/totals",
    response_model=HarvestTotals,
    summary="Totales de cosechas",
    description="Totales sobre el subconjunto filtrado (mismos filtros que el listado).",
)
def get_harvest_totals(
        period: Optional[str] = Query(FILTER_ALL),
        field: Optional[str] = Query(FILTER_ALL),
        crop: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        client: BaserowClient = Depends(get_baserow_client),
):
    return harvest_totals(filter_harvests(list_harvests(client), period, field, crop, cycle))


@router.get("/by-cycle/{cycle_id}", response_model=list[HarvestDto], summary="Cosechas de un ciclo")
def get_harvests_by_cycle(
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return list_harvests_by_cycle(client, cycle_id)


@router.get("/{harvest_id}", response_model=HarvestDto, summary="Obtener cosecha")
def get_harvest_by_id(
        harvest_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_harvest(client, harvest_id)


@router.post(
    "",
    response_model=HarvestDto,
    status_code=status.HTTP_201_CREATED,
    summary="Registrar cosecha",
    description=(
            "`values` usa los nombres de columna de Baserow, con la fecha separada en "
            "`Fecha_fecha` (YYYY-MM-DD) y `Fecha_hora` (HH:MM, hora local)."
    ),
)
def post_harvest(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_harvest(client, payload.values)


@router.patch("/{harvest_id}", response_model=HarvestDto, summary="Editar cosecha (solo cambios)")
def patch_harvest(
        payload: FormValuesIn,
        harvest_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_harvest(client, harvest_id, payload.values)


@router.delete("/{harvest_id}", response_model=Msg, summary="Eliminar cosecha")
def remove_harvest(
        harvest_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_harvest(client, harvest_id)
    return Msg(detail="Cosecha eliminada")


@router.get("/{harvest_id}/form-values", response_model=Dict[str, Any], summary="Valores para editar")
def get_harvest_form_values(
        harvest_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return harvest_dto_to_form_values(get_harvest(client, harvest_id))
