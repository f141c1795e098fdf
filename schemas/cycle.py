# schemas/cycle.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from enums.enums import CycleStatusEnum
from schemas.shared import DTOModel
from schemas.lot import LotDto
from schemas.harvest import HarvestDto
from schemas.stock import StockDto
from schemas.truck_trip import TruckTripDto


class CycleDto(DTOModel):
    id: int
    cycle_id: str = ""
    field: str = ""
    field_id: Optional[int] = None
    crop: str = ""
    crop_id: Optional[int] = None
    area_ha: float = 0.0
    status: CycleStatusEnum = CycleStatusEnum.planificado
    status_label: str = ""
    expected_yield: float = 0.0
    actual_yield: float = 0.0
    total_kgs: float = 0.0
    stock_kgs: float = 0.0
    truck_kgs: float = 0.0
    check_kgs: float = 0.0
    period: str = ""
    sowing_date: Optional[str] = None
    fallow_start_date: Optional[str] = None
    estimated_harvest_date: Optional[str] = None
    harvest_start_date: Optional[str] = None
    harvest_end_date: Optional[str] = None
    crop_duration_days: Optional[int] = None
    seed: str = ""
    notes: str = ""
    lot_ids: List[int] = Field(default_factory=list)
    lot_labels: List[str] = Field(default_factory=list)


class CycleDetail(DTOModel):
    """Ciclo con todo lo relacionado: lotes, cosechas, stock y viajes."""
    cycle: CycleDto
    field_id: Optional[int] = None
    lots: List[LotDto] = Field(default_factory=list)
    harvests: List[HarvestDto] = Field(default_factory=list)
    stocks: List[StockDto] = Field(default_factory=list)
    truck_trips: List[TruckTripDto] = Field(default_factory=list)


class CycleStatusIn(BaseModel):
    status: CycleStatusEnum


class CycleDatesIn(BaseModel):
    fallow_start_date: Optional[str] = Field(None, alias="fallowStartDate")
    sowing_date: Optional[str] = Field(None, alias="sowingDate")
    estimated_harvest_date: Optional[str] = Field(None, alias="estimatedHarvestDate")

    model_config = {"populate_by_name": True}
