from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Path, Query, status

from config.settings import settings
from schemas.field import CropProductionSummary, FieldCreateIn, FieldDto, FieldOverview
from schemas.shared import FormValuesIn, Msg
from services.baserow_client import BaserowClient
from services.cycle_service import list_cycles
from services.dashboard_service import (
    build_fields_overview,
    default_period,
    period_options,
    production_summary,
)
from services.field_service import (
    create_field_with_lots,
    delete_field,
    get_field,
    list_fields,
    update_field,
)
from services.lot_service import list_lots
from utils.datetime_utils import today_local
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/fields", tags=["fields"])


def _resolve_period(period: Optional[str], cycles) -> str:
    if period and period.strip():
        return period.strip()
    year = today_local(ZoneInfo(settings.FARM_TIMEZONE)).year
    return default_period(cycles, year) or ""


@router.get("", response_model=list[FieldDto], summary="Listar campos")
def get_fields(client: BaserowClient = Depends(get_baserow_client)):
    return list_fields(client)


@router.get(
    "/periods",
    summary="Periodos disponibles",
    description=(
            "Periodos de los ciclos, del más reciente al más antiguo.\n\n"
            "`default` es el primer periodo con un ciclo cuyo barbecho empezó "
            "en el año actual (o el primero de la lista)."
    ),
)
def get_periods(client: BaserowClient = Depends(get_baserow_client)):
    cycles = list_cycles(client)
    return {"periods": period_options(cycles), "default": _resolve_period(None, cycles) or None}


@router.get(
    "/overview",
    response_model=list[FieldOverview],
    summary="Tablero de campos",
    description=(
            "Cada campo con sus lotes (vinculados o por nombre) y el ciclo vigente "
            "de cada lote en el periodo. Campos con ciclo activo primero."
    ),
)
def get_fields_overview(
        period: Optional[str] = Query(None, description="Periodo 'YYYY/YYYY'; vacío => periodo por defecto"),
        client: BaserowClient = Depends(get_baserow_client),
):
    cycles = list_cycles(client)
    return build_fields_overview(
        list_fields(client), list_lots(client), cycles, _resolve_period(period, cycles)
    )


@router.get(
    "/production-summary",
    response_model=list[CropProductionSummary],
    summary="Producción por cultivo",
)
def get_production_summary(
        period: Optional[str] = Query(None),
        client: BaserowClient = Depends(get_baserow_client),
):
    cycles = list_cycles(client)
    overviews = build_fields_overview(
        list_fields(client), list_lots(client), cycles, _resolve_period(period, cycles)
    )
    return production_summary(overviews)


@router.get("/{field_id}", response_model=FieldDto, summary="Obtener campo")
def get_field_by_id(
        field_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_field(client, field_id)


@router.post(
    "",
    response_model=FieldDto,
    status_code=status.HTTP_201_CREATED,
    summary="Crear campo con lotes",
    description=(
            "Crea el campo, luego cada lote apuntando al campo y por último vincula "
            "los lotes. Si algo falla se revierte lo creado."
    ),
)
def post_field(payload: FieldCreateIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_field_with_lots(client, payload.values, payload.lots)


@router.patch("/{field_id}", response_model=FieldDto, summary="Editar campo (solo cambios)")
def patch_field(
        payload: FormValuesIn,
        field_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_field(client, field_id, payload.values)


@router.delete("/{field_id}", response_model=Msg, summary="Eliminar campo")
def remove_field(
        field_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_field(client, field_id)
    return Msg(detail="Campo eliminado")
