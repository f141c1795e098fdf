# services/cycle_service.py
"""
Ciclos de siembra: mapper, clasificación de estado, builders de alta,
fechas y estado, y operaciones contra Baserow.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from config.settings import TABLE_CYCLES
from enums.enums import CycleStatusEnum
from schemas.cycle import CycleDetail, CycleDto
from schemas.shared import Option
from services.baserow_client import BaserowClient
from services.harvest_service import list_harvests
from services.lot_service import list_lots
from services.relations_service import build_cycle_detail
from services.stock_service import list_stocks
from services.truck_trip_service import list_truck_trips
from utils.cells import (
    extract_link_row_ids,
    extract_link_row_labels_trimmed,
    extract_single_select_id,
    normalize_field,
    parse_locale_number,
    to_number,
    to_string_or_empty,
)
from utils.datetime_utils import (
    add_days,
    days_to_duration_seconds,
    duration_seconds_to_days,
    parse_date_string,
)
from utils.errors import FormValidationError
from utils.forms import get_str, id_list, optional_number, positive_id
from utils.text import slugify

logger = logging.getLogger(__name__)

# Columnas en Baserow
F_ID = "ID"
F_FIELD = "Campo"
F_CROP = "Cultivo"
F_STATUS = "Estado"
F_LOTS = "Lotes"
F_AREA = "Superficie (has)"
F_EXPECTED_YIELD = "Rendimiento esperado (qq/ha)"
F_ACTUAL_YIELD = "Rendimiento obtenido (qq/ha)"
F_TOTAL_KGS = "Kgs totales"
F_STOCK_KGS = "Kgs en Stock"
F_TRUCK_FROM_STOCK = "Kgs Camión desde Stock"
F_TRUCK_FROM_HARVEST = "Kgs Camión desde Cosecha"
F_CHECK_KGS = "Kgs Check"
F_PERIOD = "Periodo"
F_PERIOD_LEGACY = "Año de campaña"
F_FALLOW = "Fecha inicio barbecho"
F_SOWING = "Fecha de siembra"
F_ESTIMATED_HARVEST = "Fecha estimada de cosecha"
F_HARVEST_START = "Inicio cosecha"
F_HARVEST_END = "Fin cosecha"
F_CROP_DURATION = "Duración cultivo"
F_SEED = "Semilla"
F_NOTES = "Notas"

# Primer match gana (substring, sin distinguir mayúsculas)
_STATUS_RULES = (
    ("barbecho", CycleStatusEnum.barbecho),
    ("planific", CycleStatusEnum.planificado),
    ("sembrado", CycleStatusEnum.sembrado),
    ("listo", CycleStatusEnum.listo_para_cosechar),
    ("en cosecha", CycleStatusEnum.en_cosecha),
    ("cosechado", CycleStatusEnum.cosechado),
)


def classify_cycle_status(raw: Any) -> CycleStatusEnum:
    """'Listo para cosechar' -> listo-para-cosechar; cualquier otra cosa -> planificado."""
    label = normalize_field(raw).lower()
    for needle, status in _STATUS_RULES:
        if needle in label:
            return status
    return CycleStatusEnum.planificado


def _date_or_none(value: Any) -> Optional[str]:
    s = normalize_field(value).strip()
    return s or None


# ==================== MAPPER ====================

def map_cycle_raw_to_dto(row: Any) -> CycleDto:
    row = row if isinstance(row, dict) else {}
    row_id = row.get("id") if isinstance(row.get("id"), int) else 0
    field_ids = extract_link_row_ids(row.get(F_FIELD))

    period = normalize_field(row.get(F_PERIOD)).strip()
    if not period:
        period = normalize_field(row.get(F_PERIOD_LEGACY)).strip()

    duration_seconds = parse_locale_number(row.get(F_CROP_DURATION))

    return CycleDto(
        id=row_id,
        cycle_id=normalize_field(row.get(F_ID)) or str(row_id),
        field=normalize_field(row.get(F_FIELD)),
        field_id=field_ids[0] if field_ids else None,
        crop=normalize_field(row.get(F_CROP)),
        crop_id=extract_single_select_id(row.get(F_CROP)),
        area_ha=to_number(row.get(F_AREA)),
        status=classify_cycle_status(row.get(F_STATUS)),
        status_label=normalize_field(row.get(F_STATUS)),
        expected_yield=to_number(row.get(F_EXPECTED_YIELD)),
        actual_yield=to_number(row.get(F_ACTUAL_YIELD)),
        total_kgs=to_number(row.get(F_TOTAL_KGS)),
        stock_kgs=to_number(row.get(F_STOCK_KGS)),
        truck_kgs=to_number(row.get(F_TRUCK_FROM_STOCK)) + to_number(row.get(F_TRUCK_FROM_HARVEST)),
        check_kgs=to_number(row.get(F_CHECK_KGS)),
        period=period,
        sowing_date=_date_or_none(row.get(F_SOWING)),
        fallow_start_date=_date_or_none(row.get(F_FALLOW)),
        estimated_harvest_date=_date_or_none(row.get(F_ESTIMATED_HARVEST)),
        harvest_start_date=_date_or_none(row.get(F_HARVEST_START)),
        harvest_end_date=_date_or_none(row.get(F_HARVEST_END)),
        crop_duration_days=duration_seconds_to_days(duration_seconds),
        seed=to_string_or_empty(row.get(F_SEED)),
        notes=to_string_or_empty(row.get(F_NOTES)),
        lot_ids=extract_link_row_ids(row.get(F_LOTS)),
        lot_labels=extract_link_row_labels_trimmed(row.get(F_LOTS)),
    )


# ==================== PAYLOADS ====================

def _parse_optional_date(values: Mapping[str, Any], key: str, message: str) -> Optional[str]:
    raw = get_str(values, key)
    if not raw:
        return None
    d = parse_date_string(raw)
    if d is None:
        raise FormValidationError(message)
    return d.isoformat()


def build_cycle_create_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    """
    values: lotIds, fallowStartDate, sowingDate, cropOptionId, statusOptionId,
    seed, expectedYield, notes, cropDurationDays.

    La fecha estimada de cosecha se deriva: siembra + round(días de cultivo).
    """
    lot_ids = id_list(values, "lotIds")
    if not lot_ids:
        raise FormValidationError("Seleccioná al menos un lote")
    crop_id = positive_id(values.get("cropOptionId"))
    if crop_id is None:
        raise FormValidationError("Seleccioná un cultivo válido")
    status_id = positive_id(values.get("statusOptionId"))
    if status_id is None:
        raise FormValidationError("Seleccioná un estado válido")

    fallow = _parse_optional_date(values, "fallowStartDate", "Fecha inicio barbecho inválida")
    sowing = _parse_optional_date(values, "sowingDate", "Fecha de siembra inválida")
    expected_yield = optional_number(
        values, "expectedYield", "Ingresá un rendimiento esperado válido (número)"
    )
    duration_days = optional_number(
        values, "cropDurationDays", "Ingresá una duración de cultivo válida (días)"
    )
    if duration_days is not None and duration_days < 0:
        raise FormValidationError("Ingresá una duración de cultivo válida (días)")

    payload: Dict[str, Any] = {
        F_LOTS: lot_ids,
        F_CROP: crop_id,
        F_STATUS: status_id,
    }
    if fallow:
        payload[F_FALLOW] = fallow
    if sowing:
        payload[F_SOWING] = sowing
    if expected_yield is not None:
        payload[F_EXPECTED_YIELD] = expected_yield
    if duration_days is not None:
        payload[F_CROP_DURATION] = days_to_duration_seconds(duration_days)
        if sowing:
            payload[F_ESTIMATED_HARVEST] = add_days(sowing, duration_seconds_to_days(payload[F_CROP_DURATION]))

    seed = get_str(values, "seed")
    if seed:
        payload[F_SEED] = seed
    notes = get_str(values, "notes")
    if notes:
        payload[F_NOTES] = notes
    return payload


def build_cycle_dates_payload(
        fallow_start_date: Optional[str],
        sowing_date: Optional[str],
        estimated_harvest_date: Optional[str],
) -> Dict[str, Any]:
    """
    Cada fecha es 'YYYY-MM-DD' o vacía (se limpia con None).
    Orden: barbecho <= siembra <= cosecha estimada.
    """
    values = {
        "fallow": fallow_start_date,
        "sowing": sowing_date,
        "estimated": estimated_harvest_date,
    }
    fallow = _parse_optional_date(values, "fallow", "Fecha inicio barbecho inválida")
    sowing = _parse_optional_date(values, "sowing", "Fecha de siembra inválida")
    estimated = _parse_optional_date(values, "estimated", "Fecha estimada de cosecha inválida")

    # ISO 'YYYY-MM-DD' se ordena igual que la fecha
    if fallow and sowing and fallow > sowing:
        raise FormValidationError("La fecha de barbecho debe ser anterior o igual a la siembra")
    if sowing and estimated and sowing > estimated:
        raise FormValidationError(
            "La fecha de siembra debe ser anterior o igual a la fecha estimada de cosecha"
        )

    return {
        F_FALLOW: fallow,
        F_SOWING: sowing,
        F_ESTIMATED_HARVEST: estimated,
    }


def resolve_status_option(options: Sequence[Option], status: CycleStatusEnum | str) -> int:
    """Busca la opción del select 'Estado' cuyo slug coincide con el estado pedido."""
    wanted = slugify(status.value if isinstance(status, CycleStatusEnum) else status)
    for opt in options:
        if opt.id is not None and slugify(opt.label) == wanted:
            return opt.id
    raise FormValidationError("Estado inválido")


# ==================== GATEWAY ====================

def list_cycles(client: BaserowClient) -> List[CycleDto]:
    return [map_cycle_raw_to_dto(r) for r in client.list_rows(client.table_id(TABLE_CYCLES))]


def get_cycle(client: BaserowClient, cycle_id: int) -> CycleDto:
    return map_cycle_raw_to_dto(client.get_row(client.table_id(TABLE_CYCLES), cycle_id))


def cycle_select_options(client: BaserowClient, field_name: str) -> List[Option]:
    table_id = client.table_id(TABLE_CYCLES)
    return [Option(**o) for o in client.select_options(table_id, field_name, "single_select")]


def create_cycle(client: BaserowClient, values: Mapping[str, Any]) -> CycleDto:
    payload = build_cycle_create_payload(values)
    row = client.create_row(client.table_id(TABLE_CYCLES), payload)
    logger.info("Ciclo creado #%s", row.get("id"))
    return map_cycle_raw_to_dto(row)


def update_cycle_status(client: BaserowClient, cycle_id: int, status: CycleStatusEnum | str) -> CycleDto:
    option_id = resolve_status_option(cycle_select_options(client, F_STATUS), status)
    row = client.update_row(client.table_id(TABLE_CYCLES), cycle_id, {F_STATUS: option_id})
    logger.info("Ciclo #%s -> estado %s", cycle_id, status)
    return map_cycle_raw_to_dto(row)


def update_cycle_dates(
        client: BaserowClient,
        cycle_id: int,
        fallow_start_date: Optional[str],
        sowing_date: Optional[str],
        estimated_harvest_date: Optional[str],
) -> CycleDto:
    payload = build_cycle_dates_payload(fallow_start_date, sowing_date, estimated_harvest_date)
    row = client.update_row(client.table_id(TABLE_CYCLES), cycle_id, payload)
    return map_cycle_raw_to_dto(row)


def delete_cycle(client: BaserowClient, cycle_id: int) -> None:
    client.delete_row(client.table_id(TABLE_CYCLES), cycle_id)
    logger.info("Ciclo eliminado #%s", cycle_id)


def get_cycle_detail(client: BaserowClient, cycle_id: int) -> CycleDetail:
    """Ciclo con sus lotes, cosechas, stocks y viajes (por origen cosecha o stock)."""
    cycle = get_cycle(client, cycle_id)
    return build_cycle_detail(
        cycle,
        list_lots(client),
        list_harvests(client),
        list_stocks(client),
        list_truck_trips(client),
    )
