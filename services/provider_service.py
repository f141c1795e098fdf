# services/provider_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from config.settings import TABLE_PROVIDERS
from schemas.provider import ProviderDto
from schemas.shared import Option
from services.baserow_client import BaserowClient
from services.diff_service import update_with_diff
from utils.cells import (
    extract_link_row_ids,
    extract_multi_select_ids,
    normalize_field,
    normalize_labels_array,
    sanitize_ids,
    to_number,
)
from utils.errors import FormValidationError
from utils.forms import get_str, set_optional
from utils.text import spanish_sort_key

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_NAME = "Nombre"
F_NOTES = "Notes"
F_ADMITS = "Admite"
F_TRIPS = "Viajes de camión"
F_DELIVERED_KGS = "Kgs entregados"
F_PERIOD = "Periodo"
F_TRIP_PERIODS = "Periodo viajes"


def _unique(labels: List[str]) -> List[str]:
    return list(dict.fromkeys(labels))


def map_provider_raw_to_dto(row: Any) -> ProviderDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0
    periods = _unique(normalize_labels_array(row.get(F_PERIOD)))
    if not periods:
        periods = _unique(normalize_labels_array(row.get(F_TRIP_PERIODS)))

    return ProviderDto(
        id=row_id,
        name=normalize_field(row.get(F_NAME)).strip() or f"Proveedor #{row_id}",
        notes=normalize_field(row.get(F_NOTES)),
        admits_ids=extract_multi_select_ids(row.get(F_ADMITS)),
        admits_labels=normalize_labels_array(row.get(F_ADMITS)),
        trip_ids=extract_link_row_ids(row.get(F_TRIPS)),
        delivered_kgs=to_number(row.get(F_DELIVERED_KGS)),
        periods=periods,
    )


def build_provider_payload(values: Mapping[str, Any], include_empty_optional: bool = False) -> Dict[str, Any]:
    name = get_str(values, F_NAME)
    if not name:
        raise FormValidationError("Ingresá un nombre válido para el proveedor")
    payload: Dict[str, Any] = {
        F_NAME: name,
        F_ADMITS: sanitize_ids(values.get(F_ADMITS)),
    }
    set_optional(payload, F_NOTES, get_str(values, F_NOTES), include_empty_optional, empty="")
    return payload


def provider_dto_to_payload(dto: ProviderDto) -> Dict[str, Any]:
    return {
        F_NAME: dto.name,
        F_ADMITS: list(dto.admits_ids),
        F_NOTES: (dto.notes or "").strip(),
    }


# ==================== GATEWAY ====================

def list_providers(client: BaserowClient) -> List[ProviderDto]:
    rows = client.list_rows(client.table_id(TABLE_PROVIDERS))
    return sorted((map_provider_raw_to_dto(r) for r in rows), key=lambda p: spanish_sort_key(p.name))


def get_provider(client: BaserowClient, provider_id: int) -> ProviderDto:
    return map_provider_raw_to_dto(client.get_row(client.table_id(TABLE_PROVIDERS), provider_id))


def provider_admit_options(client: BaserowClient) -> List[Option]:
    table_id = client.table_id(TABLE_PROVIDERS)
    return [Option(**o) for o in client.select_options(table_id, F_ADMITS, "multiple_select")]


def create_provider(client: BaserowClient, values: Mapping[str, Any]) -> ProviderDto:
    row = client.create_row(client.table_id(TABLE_PROVIDERS), build_provider_payload(values))
    logger.info("Proveedor creado #%s", row.get("id"))
    return map_provider_raw_to_dto(row)


def update_provider(client: BaserowClient, provider_id: int, values: Mapping[str, Any]) -> ProviderDto:
    current = get_provider(client, provider_id)
    next_payload = build_provider_payload(values, include_empty_optional=True)
    row = update_with_diff(client, TABLE_PROVIDERS, provider_id, provider_dto_to_payload(current), next_payload)
    return map_provider_raw_to_dto(row)


def delete_provider(client: BaserowClient, provider_id: int) -> None:
    client.delete_row(client.table_id(TABLE_PROVIDERS), provider_id)
    logger.info("Proveedor eliminado #%s", provider_id)
