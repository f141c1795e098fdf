# schemas/harvest.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from schemas.shared import DTOModel


class HarvestDto(DTOModel):
    id: int
    harvest_id: str = ""
    date: Optional[str] = None
    field: str = ""
    field_id: Optional[int] = None
    crop: str = ""
    harvested_kgs: float = 0.0
    lots_ids: List[int] = Field(default_factory=list)
    lots_labels: List[str] = Field(default_factory=list)
    cycle_ids: List[int] = Field(default_factory=list)
    cycle_id: Optional[int] = None
    cycle_label: Optional[str] = None
    period: Optional[str] = None
    stock_ids: List[int] = Field(default_factory=list)
    stock_labels: List[str] = Field(default_factory=list)
    stock_kgs: float = 0.0
    direct_truck_trip_ids: List[int] = Field(default_factory=list)
    direct_truck_labels: List[str] = Field(default_factory=list)
    direct_truck_kgs: float = 0.0
    stock_truck_trip_ids: List[int] = Field(default_factory=list)
    notes: str = ""


class HarvestTotals(DTOModel):
    total_harvested_kgs: float = 0.0
    total_direct_truck_kgs: float = 0.0
    total_to_stock_kgs: float = 0.0
    harvest_count: int = 0
    truck_trip_count: int = 0
