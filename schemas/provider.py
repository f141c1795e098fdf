# schemas/provider.py
from __future__ import annotations

from typing import List

from pydantic import Field

from schemas.shared import DTOModel


class ProviderDto(DTOModel):
    id: int
    name: str = ""
    notes: str = ""
    admits_ids: List[int] = Field(default_factory=list)
    admits_labels: List[str] = Field(default_factory=list)
    trip_ids: List[int] = Field(default_factory=list)
    delivered_kgs: float = 0.0
    periods: List[str] = Field(default_factory=list)


class ProviderPeriodRow(DTOModel):
    """Fila proveedor × periodo con kgs entregados (suma de destino)."""
    id: str
    provider_id: int
    name: str
    notes: str = ""
    admits_ids: List[int] = Field(default_factory=list)
    admits_labels: List[str] = Field(default_factory=list)
    period: str
    trip_ids: List[int] = Field(default_factory=list)
    trip_labels: List[str] = Field(default_factory=list)
    delivered_kgs: float = 0.0
