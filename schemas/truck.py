# schemas/truck.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from schemas.shared import DTOModel


class TruckDto(DTOModel):
    id: int
    plate: str = ""
    owner: str = ""
    type_id: Optional[int] = None
    type_label: str = ""
    trip_ids: List[int] = Field(default_factory=list)
    trip_labels: List[str] = Field(default_factory=list)
    period_labels: List[str] = Field(default_factory=list)
