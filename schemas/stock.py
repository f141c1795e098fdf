# schemas/stock.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from schemas.shared import DTOModel


class StockDto(DTOModel):
    id: int
    stock_id: str = ""
    name: str = ""
    notes: str = ""
    cycle_ids: List[int] = Field(default_factory=list)
    cycle_labels: List[str] = Field(default_factory=list)
    unit_type: str = ""
    unit_type_id: Optional[int] = None
    created_at: Optional[str] = None
    origin_harvest_ids: List[int] = Field(default_factory=list)
    origin_harvests_labels: List[str] = Field(default_factory=list)
    harvested_kgs: float = 0.0
    total_in_kgs: float = 0.0
    truck_trip_ids: List[int] = Field(default_factory=list)
    truck_trip_labels: List[str] = Field(default_factory=list)
    total_out_from_harvest_kgs: float = 0.0
    current_kgs: Optional[float] = None  # None = sin dato; 0 = stock vacío
    status: str = ""
    status_id: Optional[int] = None
    field: str = ""
    field_id: Optional[int] = None
    crop: str = ""


class StockTotals(DTOModel):
    in_kgs: float = 0.0
    out_kgs: float = 0.0
    balance_kgs: float = 0.0
    stock_count: int = 0
