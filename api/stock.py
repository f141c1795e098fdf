from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from enums.enums import FILTER_ALL
from schemas.shared import FormValuesIn, Msg, Option
from schemas.stock import StockDto, StockTotals
from services.baserow_client import BaserowClient
from services.filters_service import filter_stocks, stock_filter_options, stock_totals
from services.stock_service import (
    create_stock,
    delete_stock,
    get_stock,
    list_stocks,
    list_stocks_by_cycle,
    stock_dto_to_form_values,
    stock_select_options,
    update_stock,
)
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/stock", tags=["stock"])


@router.get("", response_model=list[StockDto], summary="Listar stock")
def get_stocks(
        field: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        stock_status: Optional[str] = Query(FILTER_ALL, alias="status"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return filter_stocks(list_stocks(client), field, cycle, stock_status)


@router.get("/filter-options", summary="Opciones de filtros de stock")
def get_stock_filter_options(client: BaserowClient = Depends(get_baserow_client)):
    return stock_filter_options(list_stocks(client))


@router.get(
    "/totals",
    response_model=StockTotals,
    summary="Totales de stock",
    description="Ingresos, egresos y saldo sobre el subconjunto filtrado.",
)
def get_stock_totals(
        field: Optional[str] = Query(FILTER_ALL),
        cycle: Optional[str] = Query(FILTER_ALL),
        stock_status: Optional[str] = Query(FILTER_ALL, alias="status"),
        client: BaserowClient = Depends(get_baserow_client),
):
    return stock_totals(filter_stocks(list_stocks(client), field, cycle, stock_status))


@router.get(
    "/select-options/{field_name}",
    response_model=list[Option],
    summary="Opciones de un select de stock ('Tipo unidad', 'Estado')",
)
def get_stock_select_options(
        field_name: str = Path(...),
        client: BaserowClient = Depends(get_baserow_client),
):
    return stock_select_options(client, field_name)


@router.get("/by-cycle/{cycle_id}", response_model=list[StockDto], summary="Stock de un ciclo")
def get_stocks_by_cycle(
        cycle_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return list_stocks_by_cycle(client, cycle_id)


@router.get("/{stock_id}", response_model=StockDto, summary="Obtener stock")
def get_stock_by_id(
        stock_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_stock(client, stock_id)


@router.get("/{stock_id}/form-values", response_model=Dict[str, Any], summary="Valores para editar")
def get_stock_form_values(
        stock_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return stock_dto_to_form_values(get_stock(client, stock_id))


@router.post("", response_model=StockDto, status_code=status.HTTP_201_CREATED, summary="Crear stock")
def post_stock(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_stock(client, payload.values)


@router.patch("/{stock_id}", response_model=StockDto, summary="Editar stock (solo cambios)")
def patch_stock(
        payload: FormValuesIn,
        stock_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_stock(client, stock_id, payload.values)


@router.delete("/{stock_id}", response_model=Msg, summary="Eliminar stock")
def remove_stock(
        stock_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_stock(client, stock_id)
    return Msg(detail="Stock eliminado")
