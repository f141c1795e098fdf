# schemas/lot.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from schemas.shared import DTOModel


class LotDto(DTOModel):
    id: int
    code: str = ""
    field_name: str = ""
    field_id: Optional[int] = None
    area_ha: float = 0.0
    notes: str = ""
    cycle_ids: List[int] = Field(default_factory=list)
    is_active: bool = True
