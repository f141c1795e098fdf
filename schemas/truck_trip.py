# schemas/truck_trip.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from enums.enums import TripOriginTypeEnum
from schemas.shared import DTOModel


class TruckTripDto(DTOModel):
    id: int
    trip_id: str = ""
    notes: str = ""
    date: Optional[str] = None
    period: Optional[str] = None
    truck_plate: str = ""
    truck_id: Optional[int] = None
    ctg: Optional[int] = None  # 0 o ausente => sin CTG
    destination_type: str = ""
    destination_type_id: Optional[int] = None
    destination_detail: str = ""
    provider: str = ""
    provider_ids: List[int] = Field(default_factory=list)
    total_kgs_origin: float = 0.0
    total_kgs_destination: Optional[float] = None  # None = aún sin pesar en destino
    status: str = ""
    status_id: Optional[int] = None
    harvest_origin_ids: List[int] = Field(default_factory=list)
    stock_origin_ids: List[int] = Field(default_factory=list)
    origin_type: TripOriginTypeEnum = TripOriginTypeEnum.unknown
    origin_field: str = ""
    origin_field_from_stock: str = ""
    origin_field_from_harvest: str = ""
    cycle_label: str = ""
    cycle_row_id: Optional[int] = None


class TruckTripTotals(DTOModel):
    total_kgs_origin: float = 0.0
    total_kgs_destination: float = 0.0
    total_difference: float = 0.0
    trip_count: int = 0


class TripOriginOption(DTOModel):
    """Opción de origen (cosecha o stock) para el formulario de viajes."""
    id: int
    label: str
    origin_type: TripOriginTypeEnum
    cycle_label: Optional[str] = None
    cycle_row_id: Optional[int] = None
