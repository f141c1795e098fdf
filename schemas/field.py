# schemas/field.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemas.shared import DTOModel
from schemas.lot import LotDto
from schemas.cycle import CycleDto


class FieldDto(DTOModel):
    id: int
    name: str = ""
    location: str = ""
    total_area_ha: float = 0.0
    notes: str = ""
    lot_ids: List[int] = Field(default_factory=list)
    is_rented: bool = False
    is_active: bool = True


class LotWithCycle(DTOModel):
    lot: LotDto
    current_cycle: Optional[CycleDto] = None


class FieldOverview(DTOModel):
    """Campo con sus lotes (vinculados + por nombre) y el ciclo vigente de cada uno."""
    field: FieldDto
    lots: List[LotWithCycle] = Field(default_factory=list)
    active_area_ha: float = 0.0
    has_active_cycle: bool = False


class CropProductionSummary(DTOModel):
    crop: str
    cycle_count: int = 0
    total_kgs: float = 0.0
    average_yield: Optional[float] = None


class FieldCreateIn(BaseModel):
    """Alta de campo con lotes anidados."""
    values: Dict[str, Any] = Field(default_factory=dict)
    lots: List[Dict[str, Any]] = Field(default_factory=list)
