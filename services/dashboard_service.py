# services/dashboard_service.py
"""
Vistas agregadas del tablero: campos con sus lotes y ciclo vigente,
resumen de producción por cultivo, periodo por defecto y filas
proveedor × periodo.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence

from enums.enums import ACTIVE_CYCLE_STATUSES
from schemas.cycle import CycleDto
from schemas.field import CropProductionSummary, FieldDto, FieldOverview, LotWithCycle
from schemas.lot import LotDto
from schemas.provider import ProviderDto, ProviderPeriodRow
from schemas.truck_trip import TruckTripDto
from services.filters_service import sort_periods, unique_options
from services.relations_service import current_cycle_for_lot, lots_for_field
from utils.datetime_utils import parse_datetime
from utils.text import spanish_sort_key

NO_CROP_LABEL = "Sin cultivo"
NO_PERIOD_LABEL = "—"


# ==================== CAMPOS ====================

def build_field_overview(
        field: FieldDto,
        lots: Sequence[LotDto],
        cycles: Sequence[CycleDto],
        period: str,
) -> FieldOverview:
    items: List[LotWithCycle] = []
    active_area = 0.0
    has_active = False
    for lot in lots_for_field(field, lots):
        cycle = current_cycle_for_lot(cycles, lot.id, period)
        items.append(LotWithCycle(lot=lot, current_cycle=cycle))
        if cycle is None:
            continue
        if lot.is_active:
            active_area += lot.area_ha
        if cycle.status in ACTIVE_CYCLE_STATUSES:
            has_active = True
    return FieldOverview(
        field=field,
        lots=items,
        active_area_ha=active_area,
        has_active_cycle=has_active,
    )


def build_fields_overview(
        fields: Iterable[FieldDto],
        lots: Sequence[LotDto],
        cycles: Sequence[CycleDto],
        period: str,
) -> List[FieldOverview]:
    """Campos con ciclo activo primero, luego por nombre."""
    overviews = [build_field_overview(f, lots, cycles, period) for f in fields]
    return sorted(
        overviews,
        key=lambda o: (not o.has_active_cycle, spanish_sort_key(o.field.name)),
    )


def production_summary(overviews: Iterable[FieldOverview]) -> List[CropProductionSummary]:
    """
    Kgs totales y rendimiento promedio por cultivo (ciclos sin repetir).
    El promedio solo considera rendimientos > 0; si no hay ninguno => None.
    """
    seen: Dict[int, CycleDto] = OrderedDict()
    for overview in overviews:
        for item in overview.lots:
            if item.current_cycle is not None:
                seen.setdefault(item.current_cycle.id, item.current_cycle)

    groups: Dict[str, List[CycleDto]] = OrderedDict()
    for cycle in seen.values():
        crop = cycle.crop.strip() or NO_CROP_LABEL
        groups.setdefault(crop, []).append(cycle)

    summaries = []
    for crop, group in groups.items():
        yields = [c.actual_yield for c in group if c.actual_yield > 0]
        summaries.append(CropProductionSummary(
            crop=crop,
            cycle_count=len(group),
            total_kgs=sum(c.total_kgs for c in group),
            average_yield=sum(yields) / len(yields) if yields else None,
        ))
    return sorted(summaries, key=lambda s: s.total_kgs, reverse=True)


# ==================== PERIODOS ====================

def period_options(cycles: Iterable[CycleDto]) -> List[str]:
    return sort_periods(unique_options(cycles, lambda c: c.period))


def default_period(cycles: Sequence[CycleDto], year: int) -> Optional[str]:
    """Primer periodo (ya ordenado) con un ciclo cuyo barbecho empezó en `year`."""
    periods = period_options(cycles)
    if not periods:
        return None
    for period in periods:
        for cycle in cycles:
            if cycle.period.strip() != period:
                continue
            fallow = parse_datetime(cycle.fallow_start_date)
            if fallow is not None and fallow.year == year:
                return period
    return periods[0]


# ==================== PROVEEDORES ====================

def provider_period_rows(
        providers: Iterable[ProviderDto],
        trips: Iterable[TruckTripDto],
) -> List[ProviderPeriodRow]:
    """
    Una fila por proveedor y periodo, sumando kgs de destino de sus viajes.
    Proveedor sin viajes => fila '<id>-no-period' con periodo '—'.
    """
    trips_by_id = {t.id: t for t in trips}
    rows: List[ProviderPeriodRow] = []

    for provider in providers:
        groups: Dict[str, Dict[str, list]] = OrderedDict()
        for trip_id in provider.trip_ids:
            trip = trips_by_id.get(trip_id)
            if trip is None:
                continue
            period = trip.period or NO_PERIOD_LABEL
            group = groups.setdefault(period, {"ids": [], "labels": [], "kgs": []})
            group["ids"].append(trip_id)
            group["labels"].append(trip.trip_id or f"#{trip_id}")
            group["kgs"].append(trip.total_kgs_destination or 0.0)

        common = dict(
            provider_id=provider.id,
            name=provider.name,
            notes=provider.notes,
            admits_ids=provider.admits_ids,
            admits_labels=provider.admits_labels,
        )
        if not groups:
            rows.append(ProviderPeriodRow(id=f"{provider.id}-no-period", period=NO_PERIOD_LABEL, **common))
            continue
        for period, group in groups.items():
            rows.append(ProviderPeriodRow(
                id=f"{provider.id}-{period}",
                period=period,
                trip_ids=group["ids"],
                trip_labels=group["labels"],
                delivered_kgs=sum(group["kgs"]),
                **common,
            ))

    return sorted(rows, key=lambda r: (spanish_sort_key(r.name), spanish_sort_key(r.period)))
