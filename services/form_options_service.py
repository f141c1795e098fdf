# services/form_options_service.py
"""
Opciones para los selectores de los formularios (campos, ciclos, lotes,
stock, viajes y orígenes), filtradas por campo con match id-o-nombre.
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence

from enums.enums import TripOriginTypeEnum
from schemas.cycle import CycleDto
from schemas.field import FieldDto
from schemas.harvest import HarvestDto
from schemas.lot import LotDto
from schemas.provider import ProviderDto
from schemas.shared import Option
from schemas.stock import StockDto
from schemas.truck import TruckDto
from schemas.truck_trip import TripOriginOption, TruckTripDto
from services.matching_service import first_non_empty, matches_field, normalize_field_label
from utils.datetime_utils import to_timestamp
from utils.text import spanish_sort_key


def _by_label(options: Iterable[Option]) -> List[Option]:
    return sorted(options, key=lambda o: spanish_sort_key(o.label))


def field_options(fields: Iterable[FieldDto]) -> List[Option]:
    return _by_label(Option(id=f.id, label=f.name or f"Campo #{f.id}") for f in fields)


def truck_options(trucks: Iterable[TruckDto]) -> List[Option]:
    return [Option(id=t.id, label=t.plate) for t in trucks]


def provider_options(providers: Iterable[ProviderDto]) -> List[Option]:
    return [Option(id=p.id, label=p.name) for p in providers]


# -------------------------------------------------------------------
# Ciclos
# -------------------------------------------------------------------
def cycle_option_label(cycle: CycleDto) -> str:
    if cycle.cycle_id:
        return f"{cycle.cycle_id} · {cycle.crop or 'Sin cultivo'}"
    return cycle.crop or f"Ciclo #{cycle.id}"


def _cycle_order_ts(cycle: CycleDto) -> float:
    order_date = cycle.harvest_start_date or cycle.estimated_harvest_date or cycle.sowing_date
    ts = to_timestamp(order_date)
    return ts if ts is not None else -math.inf


def cycle_options(cycles: Iterable[CycleDto]) -> List[Option]:
    """Más recientes primero (inicio cosecha > cosecha estimada > siembra), luego id desc."""
    ordered = sorted(cycles, key=lambda c: (_cycle_order_ts(c), c.id), reverse=True)
    return [Option(id=c.id, label=cycle_option_label(c)) for c in ordered]


# -------------------------------------------------------------------
# Dependencias por campo
# -------------------------------------------------------------------
def harvest_field_dependencies(
        field_id: Optional[int],
        field_name: Optional[str],
        lots: Sequence[LotDto],
        cycles: Sequence[CycleDto],
        stocks: Sequence[StockDto],
        trips: Sequence[TruckTripDto],
) -> Dict[str, List[Option]]:
    """Lotes, ciclos, stocks y viajes del campo elegido en el formulario de cosecha."""
    lot_opts = _by_label(
        Option(id=lot.id, label=lot.code or f"Lote #{lot.id}")
        for lot in lots
        if matches_field(lot.field_id, lot.field_name, field_id, field_name)
    )
    cycle_opts = cycle_options(
        c for c in cycles if matches_field(c.field_id, c.field, field_id, field_name)
    )
    stock_opts = sorted(
        (
            Option(id=s.id, label=s.name or f"Stock #{s.id}")
            for s in stocks
            if matches_field(s.field_id, s.field, field_id, field_name)
        ),
        key=lambda o: o.id,
        reverse=True,
    )

    wanted = normalize_field_label(field_name)
    trip_opts: List[Option] = []
    if wanted:
        trip_opts = sorted(
            (
                Option(id=t.id, label=t.trip_id or f"Viaje #{t.id}")
                for t in trips
                if normalize_field_label(first_non_empty(
                    (t.origin_field, t.origin_field_from_harvest, t.origin_field_from_stock)
                )) == wanted
            ),
            key=lambda o: o.id,
            reverse=True,
        )

    return {"lots": lot_opts, "cycles": cycle_opts, "stocks": stock_opts, "truckTrips": trip_opts}


def stock_field_dependencies(
        field_id: Optional[int],
        field_name: Optional[str],
        cycles: Sequence[CycleDto],
) -> Dict[str, List[Option]]:
    return {
        "cycles": cycle_options(
            c for c in cycles if matches_field(c.field_id, c.field, field_id, field_name)
        ),
    }


# -------------------------------------------------------------------
# Orígenes de viajes
# -------------------------------------------------------------------
def _cycle_row_id_by_label(cycles: Sequence[CycleDto], label: Optional[str]) -> Optional[int]:
    wanted = (label or "").strip().lower()
    if not wanted:
        return None
    for cycle in cycles:
        if cycle.cycle_id.strip().lower() == wanted:
            return cycle.id
    return None


def trip_origin_options(
        origin_type: TripOriginTypeEnum,
        harvests: Sequence[HarvestDto],
        stocks: Sequence[StockDto],
        cycles: Sequence[CycleDto] = (),
        field_id: Optional[int] = None,
        field_name: Optional[str] = None,
) -> List[TripOriginOption]:
    """
    Cosechas o stocks candidatos como origen de un viaje, del campo elegido
    (si hay filtro), id descendente. El ciclo sin id se resuelve por etiqueta.
    """
    has_filter = field_id is not None or bool(normalize_field_label(field_name))
    options: List[TripOriginOption] = []

    if origin_type == TripOriginTypeEnum.harvest:
        for h in harvests:
            if has_filter and not matches_field(h.field_id, h.field, field_id, field_name):
                continue
            options.append(TripOriginOption(
                id=h.id,
                label=h.harvest_id or f"Cosecha #{h.id}",
                origin_type=origin_type,
                cycle_label=h.cycle_label,
                cycle_row_id=h.cycle_id,
            ))
    elif origin_type == TripOriginTypeEnum.stock:
        for s in stocks:
            if has_filter and not matches_field(s.field_id, s.field, field_id, field_name):
                continue
            options.append(TripOriginOption(
                id=s.id,
                label=s.stock_id or f"Stock #{s.id}",
                origin_type=origin_type,
                cycle_label=s.cycle_labels[0] if s.cycle_labels else None,
                cycle_row_id=s.cycle_ids[0] if s.cycle_ids else None,
            ))

    for opt in options:
        if opt.cycle_row_id is None and opt.cycle_label:
            opt.cycle_row_id = _cycle_row_id_by_label(cycles, opt.cycle_label)

    return sorted(options, key=lambda o: o.id, reverse=True)
