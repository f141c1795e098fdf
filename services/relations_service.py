# services/relations_service.py
"""
Resolución de relaciones entre entidades, en memoria y sin efectos colaterales.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence

from schemas.cycle import CycleDetail, CycleDto
from schemas.field import FieldDto
from schemas.harvest import HarvestDto
from schemas.lot import LotDto
from schemas.stock import StockDto
from schemas.truck_trip import TruckTripDto
from utils.datetime_utils import to_timestamp


# -------------------------------------------------------------------
# Ciclo vigente por lote y periodo
# -------------------------------------------------------------------
def _ts_or_min(value: Optional[str]) -> float:
    ts = to_timestamp(value)
    return ts if ts is not None else -math.inf


def current_cycle_for_lot(
        cycles: Iterable[CycleDto],
        lot_id: int,
        period: str,
) -> Optional[CycleDto]:
    """
    Ciclo vigente de un lote en un periodo.

    Desempate si hay más de uno:
    1. inicio de barbecho más reciente
    2. fecha de siembra más reciente
    3. id más alto
    Fechas ausentes o inválidas cuentan como las más antiguas.
    """
    wanted = (period or "").strip()
    best: Optional[CycleDto] = None
    best_key = None
    for cycle in cycles:
        if cycle.period.strip() != wanted or lot_id not in cycle.lot_ids:
            continue
        key = (_ts_or_min(cycle.fallow_start_date), _ts_or_min(cycle.sowing_date), cycle.id)
        if best_key is None or key > best_key:
            best, best_key = cycle, key
    return best


# -------------------------------------------------------------------
# Lotes de un campo (link + fallback por nombre)
# -------------------------------------------------------------------
def lots_for_field(field: FieldDto, lots: Iterable[LotDto]) -> List[LotDto]:
    """
    Lotes vinculados por `field.lot_ids`, más los que solo tienen el nombre del
    campo como texto (comparación trim + minúsculas) y no estaban ya vinculados.
    """
    lots = list(lots)
    linked_ids = set(field.lot_ids)
    linked = [lot for lot in lots if lot.id in linked_ids]

    name = field.name.strip().lower()
    by_name = [
        lot for lot in lots
        if lot.id not in linked_ids and name and lot.field_name.strip().lower() == name
    ]
    return linked + by_name


# -------------------------------------------------------------------
# Viajes por origen
# -------------------------------------------------------------------
def trips_by_origins(
        trips: Iterable[TruckTripDto],
        harvest_ids: Iterable[int],
        stock_ids: Iterable[int],
) -> List[TruckTripDto]:
    """Viajes cuyo origen intersecta las cosechas O los stocks dados (unión)."""
    harvest_set, stock_set = set(harvest_ids), set(stock_ids)
    if not harvest_set and not stock_set:
        return []
    return [
        t for t in trips
        if harvest_set.intersection(t.harvest_origin_ids) or stock_set.intersection(t.stock_origin_ids)
    ]


# -------------------------------------------------------------------
# Detalle de ciclo
# -------------------------------------------------------------------
def infer_cycle_field_id(
        cycle: CycleDto,
        lots: Sequence[LotDto],
        stocks: Sequence[StockDto],
) -> Optional[int]:
    """Campo del ciclo; si no está vinculado, el del primer lote o el del primer stock."""
    if cycle.field_id is not None:
        return cycle.field_id
    for lot in lots:
        if lot.field_id is not None:
            return lot.field_id
    for stock in stocks:
        if stock.field_id is not None:
            return stock.field_id
    return None


def build_cycle_detail(
        cycle: CycleDto,
        lots: Iterable[LotDto],
        harvests: Iterable[HarvestDto],
        stocks: Iterable[StockDto],
        trips: Iterable[TruckTripDto],
) -> CycleDetail:
    lot_ids = set(cycle.lot_ids)
    cycle_lots = [lot for lot in lots if lot.id in lot_ids]
    cycle_harvests = [h for h in harvests if cycle.id in h.cycle_ids]
    cycle_stocks = [s for s in stocks if cycle.id in s.cycle_ids]
    cycle_trips = trips_by_origins(
        trips,
        (h.id for h in cycle_harvests),
        (s.id for s in cycle_stocks),
    )
    return CycleDetail(
        cycle=cycle,
        field_id=infer_cycle_field_id(cycle, cycle_lots, cycle_stocks),
        lots=cycle_lots,
        harvests=cycle_harvests,
        stocks=cycle_stocks,
        truck_trips=cycle_trips,
    )
