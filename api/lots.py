from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status

from schemas.lot import LotDto
from schemas.shared import FormValuesIn, Msg
from services.baserow_client import BaserowClient
from services.lot_service import create_lot, delete_lot, get_lot, list_lots, update_lot
from utils.dependencies import get_baserow_client

router = APIRouter(prefix="/lots", tags=["lots"])


@router.get("", response_model=list[LotDto], summary="Listar lotes")
def get_lots(client: BaserowClient = Depends(get_baserow_client)):
    return list_lots(client)


@router.get("/{lot_id}", response_model=LotDto, summary="Obtener lote")
def get_lot_by_id(
        lot_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return get_lot(client, lot_id)


@router.post("", response_model=LotDto, status_code=status.HTTP_201_CREATED, summary="Crear lote")
def post_lot(payload: FormValuesIn, client: BaserowClient = Depends(get_baserow_client)):
    return create_lot(client, payload.values)


@router.patch(
    "/{lot_id}",
    response_model=LotDto,
    summary="Editar lote",
    description="Solo se envían las claves presentes en `values` (code, fieldId, areaHa, notes, cycleIds).",
)
def patch_lot(
        payload: FormValuesIn,
        lot_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    return update_lot(client, lot_id, payload.values)


@router.delete("/{lot_id}", response_model=Msg, summary="Eliminar lote")
def remove_lot(
        lot_id: int = Path(..., gt=0),
        client: BaserowClient = Depends(get_baserow_client),
):
    delete_lot(client, lot_id)
    return Msg(detail="Lote eliminado")
