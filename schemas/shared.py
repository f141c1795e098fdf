# schemas/shared.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


# -------------------------------------------------------------------
# Base común para todos los DTOs (Pydantic v2)
# -------------------------------------------------------------------
class DTOModel(BaseModel):
    """
    Modelo base para DTOs.
    - alias_generator=to_camel: en JSON los campos salen en camelCase (totalAreaHa, lotIds...).
    - populate_by_name=True: en Python se construyen con snake_case.
    """
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class Option(DTOModel):
    """Opción de selector (id + etiqueta). id=None => opción sintética sin match."""
    id: Optional[int] = None
    label: str


# -------------------------------------------------------------------
# Entradas de formularios
# -------------------------------------------------------------------
class FormValuesIn(BaseModel):
    """Valores crudos de un formulario (strings de inputs, ids de selects)."""
    values: Dict[str, Any] = Field(default_factory=dict)


class Msg(BaseModel):
    """Respuesta simple con mensaje plano (útil para deletes, acciones, etc.)."""
    detail: str
