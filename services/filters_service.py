# services/filters_service.py
"""
Vistas por página: opciones únicas de filtros, filtros combinados (AND),
orden y totales calculados SIEMPRE sobre el subconjunto filtrado.
"""
from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from enums.enums import FILTER_ALL
from schemas.cycle import CycleDto
from schemas.harvest import HarvestDto, HarvestTotals
from schemas.provider import ProviderDto
from schemas.shared import Option
from schemas.stock import StockDto, StockTotals
from schemas.truck import TruckDto
from schemas.truck_trip import TruckTripDto, TruckTripTotals
from services.matching_service import resolve_trip_origin_field
from services.truck_trip_service import destination_label
from utils.datetime_utils import to_timestamp
from utils.text import spanish_sort_key

T = TypeVar("T")
Accessor = Callable[[Any], Any]

_PERIOD_RE = re.compile(r"(\d{4})/(\d{4})")


# ====================================================================
# Periodos
# ====================================================================

def period_sort_key(period: str) -> Tuple[int, int, str]:
    """'2024/2025' -> (2025, 2024, '2024/2025'); sin formato => años 0."""
    m = _PERIOD_RE.search(period or "")
    if not m:
        return 0, 0, period or ""
    return int(m.group(2)), int(m.group(1)), period


def sort_periods(periods: Iterable[str]) -> List[str]:
    """Descendente por año final, luego año inicial, luego texto."""
    return sorted(periods, key=period_sort_key, reverse=True)


# ====================================================================
# Genéricos
# ====================================================================

def _values_of(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        return [str(v).strip() for v in raw if v is not None and str(v).strip()]
    s = str(raw).strip()
    return [s] if s else []


def unique_options(items: Iterable[T], accessor: Accessor) -> List[str]:
    """Valores distintos no vacíos, orden alfabético español sin distinguir mayúsculas."""
    seen: Dict[str, None] = {}
    for item in items:
        for value in _values_of(accessor(item)):
            seen.setdefault(value, None)
    return sorted(seen, key=spanish_sort_key)


def matches_filter(selected: Any, actual: Any) -> bool:
    """
    - "all" => filtro inactivo
    - "" / None => categoría explícita "sin valor"
    - lista => pertenencia
    """
    if selected == FILTER_ALL:
        return True
    values = _values_of(actual)
    if selected is None or (isinstance(selected, str) and not selected.strip()):
        return not values
    return str(selected).strip() in values


def apply_filters(items: Iterable[T], criteria: Sequence[Tuple[Any, Accessor]]) -> List[T]:
    """Todos los filtros activos se combinan con AND."""
    active = [(sel, acc) for sel, acc in criteria if sel != FILTER_ALL]
    return [item for item in items if all(matches_filter(sel, acc(item)) for sel, acc in active)]


def _sort_by_date_desc(items: Iterable[T], accessor: Accessor) -> List[T]:
    """Más recientes primero; sin fecha al final."""
    def key(item):
        ts = to_timestamp(accessor(item))
        return ts if ts is not None else -math.inf
    return sorted(items, key=key, reverse=True)


# ====================================================================
# Cosechas
# ====================================================================

def harvest_filter_options(harvests: Sequence[HarvestDto]) -> Dict[str, List[str]]:
    return {
        "periods": sort_periods(unique_options(harvests, lambda h: h.period)),
        "fields": unique_options(harvests, lambda h: h.field),
        "crops": unique_options(harvests, lambda h: h.crop),
        "cycles": unique_options(harvests, lambda h: h.cycle_label),
    }


def filter_harvests(
        harvests: Iterable[HarvestDto],
        period: Optional[str] = FILTER_ALL,
        field: Optional[str] = FILTER_ALL,
        crop: Optional[str] = FILTER_ALL,
        cycle: Optional[str] = FILTER_ALL,
) -> List[HarvestDto]:
    filtered = apply_filters(harvests, [
        (period, lambda h: h.period),
        (field, lambda h: h.field),
        (crop, lambda h: h.crop),
        (cycle, lambda h: h.cycle_label),
    ])
    return _sort_by_date_desc(filtered, lambda h: h.date)


def harvest_totals(harvests: Iterable[HarvestDto]) -> HarvestTotals:
    harvests = list(harvests)
    trip_ids = set()
    for h in harvests:
        trip_ids.update(h.direct_truck_trip_ids)
    return HarvestTotals(
        total_harvested_kgs=sum(h.harvested_kgs for h in harvests),
        total_direct_truck_kgs=sum(h.direct_truck_kgs for h in harvests),
        total_to_stock_kgs=sum(h.stock_kgs for h in harvests),
        harvest_count=len(harvests),
        truck_trip_count=len(trip_ids),
    )


# ====================================================================
# Stock
# ====================================================================

def stock_filter_options(stocks: Sequence[StockDto]) -> Dict[str, List[str]]:
    return {
        "fields": unique_options(stocks, lambda s: s.field),
        "cycles": unique_options(stocks, lambda s: s.cycle_labels),
        "statuses": unique_options(stocks, lambda s: s.status),
    }


def filter_stocks(
        stocks: Iterable[StockDto],
        field: Optional[str] = FILTER_ALL,
        cycle: Optional[str] = FILTER_ALL,
        status: Optional[str] = FILTER_ALL,
) -> List[StockDto]:
    filtered = apply_filters(stocks, [
        (field, lambda s: s.field),
        (cycle, lambda s: s.cycle_labels),
        (status, lambda s: s.status),
    ])
    return _sort_by_date_desc(filtered, lambda s: s.created_at)


def stock_totals(stocks: Iterable[StockDto]) -> StockTotals:
    stocks = list(stocks)
    return StockTotals(
        in_kgs=sum(s.total_in_kgs for s in stocks),
        out_kgs=sum(s.total_out_from_harvest_kgs for s in stocks),
        balance_kgs=sum(s.current_kgs or 0.0 for s in stocks),
        stock_count=len(stocks),
    )


# ====================================================================
# Viajes de camión
# ====================================================================

def trip_field_label(trip: TruckTripDto, field_opts: Sequence[Option] = ()) -> str:
    option = resolve_trip_origin_field(
        trip.origin_field, trip.origin_field_from_harvest, trip.origin_field_from_stock, field_opts
    )
    return option.label if option else ""


def truck_trip_filter_options(
        trips: Sequence[TruckTripDto],
        field_opts: Sequence[Option] = (),
) -> Dict[str, List[str]]:
    return {
        "periods": sort_periods(unique_options(trips, lambda t: t.period)),
        "fields": unique_options(trips, lambda t: trip_field_label(t, field_opts)),
        "cycles": unique_options(trips, lambda t: t.cycle_label),
        "destinations": unique_options(trips, destination_label),
        "originTypes": unique_options(trips, lambda t: t.origin_type.value),
    }


def filter_truck_trips(
        trips: Iterable[TruckTripDto],
        period: Optional[str] = FILTER_ALL,
        field: Optional[str] = FILTER_ALL,
        cycle: Optional[str] = FILTER_ALL,
        destination: Optional[str] = FILTER_ALL,
        origin_type: Optional[str] = FILTER_ALL,
        field_opts: Sequence[Option] = (),
) -> List[TruckTripDto]:
    filtered = apply_filters(trips, [
        (period, lambda t: t.period),
        (field, lambda t: trip_field_label(t, field_opts)),
        (cycle, lambda t: t.cycle_label),
        (destination, destination_label),
        (origin_type, lambda t: t.origin_type.value),
    ])
    return _sort_by_date_desc(filtered, lambda t: t.date)


def truck_trip_totals(trips: Iterable[TruckTripDto]) -> TruckTripTotals:
    trips = list(trips)
    total_origin = sum(t.total_kgs_origin for t in trips)
    total_destination = sum(t.total_kgs_destination or 0.0 for t in trips)
    return TruckTripTotals(
        total_kgs_origin=total_origin,
        total_kgs_destination=total_destination,
        total_difference=total_destination - total_origin,
        trip_count=len(trips),
    )


# ====================================================================
# Camiones, proveedores y ciclos
# ====================================================================

def truck_filter_options(trucks: Sequence[TruckDto]) -> Dict[str, List[str]]:
    return {
        "periods": unique_options(trucks, lambda t: t.period_labels),
        "types": unique_options(trucks, lambda t: t.type_label),
    }


def filter_trucks(
        trucks: Iterable[TruckDto],
        period: Optional[str] = FILTER_ALL,
        truck_type: Optional[str] = FILTER_ALL,
) -> List[TruckDto]:
    """truck_type "" => camiones sin tipo asignado."""
    return apply_filters(trucks, [
        (period, lambda t: t.period_labels),
        (truck_type, lambda t: t.type_label),
    ])


def provider_filter_options(providers: Sequence[ProviderDto]) -> Dict[str, List[str]]:
    return {
        "periods": sort_periods(unique_options(providers, lambda p: p.periods)),
        "admits": unique_options(providers, lambda p: p.admits_labels),
    }


def filter_providers(
        providers: Iterable[ProviderDto],
        period: Optional[str] = FILTER_ALL,
        admit: Optional[str] = FILTER_ALL,
) -> List[ProviderDto]:
    filtered = apply_filters(providers, [
        (period, lambda p: p.periods),
        (admit, lambda p: p.admits_labels),
    ])
    return sorted(filtered, key=lambda p: spanish_sort_key(p.name))


def cycle_filter_options(cycles: Sequence[CycleDto]) -> Dict[str, List[str]]:
    return {
        "periods": sort_periods(unique_options(cycles, lambda c: c.period)),
        "crops": unique_options(cycles, lambda c: c.crop),
        "fields": unique_options(cycles, lambda c: c.field),
        "statuses": unique_options(cycles, lambda c: c.status.value),
    }


def filter_cycles(
        cycles: Iterable[CycleDto],
        period: Optional[str] = FILTER_ALL,
        crop: Optional[str] = FILTER_ALL,
        field: Optional[str] = FILTER_ALL,
        status: Optional[str] = FILTER_ALL,
) -> List[CycleDto]:
    return apply_filters(cycles, [
        (period, lambda c: c.period),
        (crop, lambda c: c.crop),
        (field, lambda c: c.field),
        (status, lambda c: c.status.value),
    ])
