# utils/cells.py
"""
Normalizadores de celdas de Baserow.

Una celda cruda puede llegar como:
- link_row:      [{"id": 3, "value": "Lote 1"}, ...]
- single select: {"id": 7, "value": "Soja", "color": "green"}
- lookup:        {"value": ...} (posiblemente anidado)
- escalar:       str / int / float / bool

`classify_cell` reconoce la forma y devuelve una variante etiquetada; cada
variante tiene su propio normalizador. Ninguna función de este módulo lanza
excepciones: lo malformado degrada a "", 0, None o [].
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

MAX_UNWRAP_DEPTH = 5


# -------------------------------------------------------------------
# Variantes de celda
# -------------------------------------------------------------------
@dataclass(frozen=True)
class EmptyCell:
    """None o una forma no reconocida."""


@dataclass(frozen=True)
class ScalarCell:
    value: Union[str, int, float, bool]


@dataclass(frozen=True)
class LinkRowCell:
    items: Tuple[Any, ...]


@dataclass(frozen=True)
class SelectOptionCell:
    id: Any
    value: Any = None
    color: Optional[str] = None


@dataclass(frozen=True)
class LookupWrapperCell:
    inner: Any


Cell = Union[EmptyCell, ScalarCell, LinkRowCell, SelectOptionCell, LookupWrapperCell]


def classify_cell(value: Any) -> Cell:
    """Clasifica una celda cruda según su forma."""
    if value is None:
        return EmptyCell()
    if isinstance(value, (str, int, float, bool)):
        return ScalarCell(value)
    if isinstance(value, (list, tuple)):
        return LinkRowCell(tuple(value))
    if isinstance(value, dict):
        if "color" in value or ("id" in value and "value" in value and not isinstance(value.get("value"), dict)):
            return SelectOptionCell(value.get("id"), value.get("value"), value.get("color"))
        if "value" in value:
            return LookupWrapperCell(value["value"])
        if "id" in value:
            return SelectOptionCell(value.get("id"))
    return EmptyCell()


# -------------------------------------------------------------------
# normalize_field
# -------------------------------------------------------------------
def _scalar_to_str(value: Union[str, int, float, bool]) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _normalize(value: Any, depth: int) -> str:
    cell = classify_cell(value)

    if isinstance(cell, ScalarCell):
        return _scalar_to_str(cell.value)

    if isinstance(cell, LinkRowCell):
        parts = (_normalize(item, depth) for item in cell.items)
        return ", ".join(p for p in parts if p)

    if isinstance(cell, SelectOptionCell):
        if cell.value is None:
            return ""
        return _normalize(cell.value, depth)

    if isinstance(cell, LookupWrapperCell):
        # Límite contra estructuras anidadas malformadas
        if depth >= MAX_UNWRAP_DEPTH:
            return ""
        return _normalize(cell.inner, depth + 1)

    return ""


def normalize_field(value: Any) -> str:
    """
    Convierte cualquier celda a string plano.

    {"value": {"value": "Soja"}}        -> "Soja"
    [{"value": "A"}, {"value": "B"}]    -> "A, B"
    None                                -> ""
    """
    return _normalize(value, 0)


def to_string_or_empty(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return normalize_field(value)


# -------------------------------------------------------------------
# Números (formato local)
# -------------------------------------------------------------------
_NUMBER_STRIP_RE = re.compile(r"[^0-9,.\-]")


def parse_locale_number(value: Any) -> Optional[float]:
    """
    Parsea un número que puede venir con formato local.

    - Números: tal cual (bool no cuenta como número)
    - "1.234,5"   -> 1234.5  (punto = miles, coma = decimal)
    - "12,5"      -> 12.5
    - "1.234.567" -> 1234567 (todos los grupos tras el primero de 3 dígitos)
    - "12.5"      -> 12.5
    - Ausente o no parseable -> None
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if not isinstance(value, str):
        cell = classify_cell(value)
        if isinstance(cell, (SelectOptionCell, LookupWrapperCell)):
            return parse_locale_number(normalize_field(value) or None)
        return None

    s = _NUMBER_STRIP_RE.sub("", value)
    if not any(ch.isdigit() for ch in s):
        return None

    has_comma = "," in s
    has_dot = "." in s
    if has_comma and has_dot:
        s = s.replace(".", "").replace(",", ".")
    elif has_comma:
        s = s.replace(",", ".")
    elif has_dot:
        groups = s.split(".")
        if len(groups) > 1 and all(len(g) == 3 and g.isdigit() for g in groups[1:]):
            s = "".join(groups)

    try:
        number = float(s)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_number(value: Any) -> float:
    """Como parse_locale_number pero con 0 por defecto (cero y ausente se confunden)."""
    number = parse_locale_number(value)
    return number if number is not None else 0.0


def to_optional_number(value: Any) -> Optional[float]:
    """Distingue "presente en cero" de "ausente"."""
    if isinstance(value, str) and not value.strip():
        return None
    return parse_locale_number(value)


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "si", "sí", "yes")
    return default


# -------------------------------------------------------------------
# Link rows
# -------------------------------------------------------------------
def _as_int_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def extract_link_row_ids(value: Any) -> List[int]:
    """Ids numéricos de una celda link_row; descarta entradas malformadas."""
    cell = classify_cell(value)
    if not isinstance(cell, LinkRowCell):
        return []
    ids: List[int] = []
    for item in cell.items:
        raw = item.get("id") if isinstance(item, dict) else item
        item_id = _as_int_id(raw)
        if item_id is not None:
            ids.append(item_id)
    return ids


def extract_link_row_labels(value: Any) -> List[str]:
    """Etiquetas (`.value`) de una celda link_row, sin vacíos."""
    cell = classify_cell(value)
    if not isinstance(cell, LinkRowCell):
        return []
    labels: List[str] = []
    for item in cell.items:
        if not isinstance(item, dict) or "value" not in item:
            continue
        label = normalize_field(item["value"]).strip()
        if label:
            labels.append(label)
    return labels


def normalize_labels_array(value: Any) -> List[str]:
    """Como extract_link_row_labels pero acepta también elementos escalares."""
    cell = classify_cell(value)
    if not isinstance(cell, LinkRowCell):
        return []
    labels: List[str] = []
    for item in cell.items:
        raw = item["value"] if isinstance(item, dict) and item.get("value") is not None else item
        label = normalize_field(raw).strip()
        if label:
            labels.append(label)
    return labels


def trim_label(label: str) -> str:
    """
    Conserva solo los dos primeros segmentos separados por '-'.

    "VC4-FGZ083-La Victoria-Cerealista" -> "VC4-FGZ083"
    "A-B" / "SingleWord"                -> sin cambios
    """
    parts = label.split("-")
    if len(parts) <= 2:
        return label
    return f"{parts[0]}-{parts[1]}"


def extract_link_row_labels_trimmed(value: Any) -> List[str]:
    return [trim_label(label) for label in extract_link_row_labels(value)]


# -------------------------------------------------------------------
# Single select
# -------------------------------------------------------------------
def _parse_id(value: Any) -> Optional[int]:
    item_id = _as_int_id(value)
    if item_id is not None:
        return item_id
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        if math.isfinite(number) and number.is_integer():
            return int(number)
    return None


def extract_single_select_id(value: Any) -> Optional[int]:
    """
    Id de una celda single select: id suelto, string numérico, {"id": ...}
    o un array de un elemento con cualquiera de esas formas.
    """
    cell = classify_cell(value)
    if isinstance(cell, LinkRowCell):
        return extract_single_select_id(cell.items[0]) if cell.items else None
    if isinstance(cell, SelectOptionCell):
        return _parse_id(cell.id)
    if isinstance(cell, ScalarCell):
        return _parse_id(cell.value)
    return None


def extract_multi_select_ids(value: Any) -> List[int]:
    cell = classify_cell(value)
    if not isinstance(cell, LinkRowCell):
        return []
    ids: List[int] = []
    for item in cell.items:
        item_id = extract_single_select_id(item)
        if item_id is not None:
            ids.append(item_id)
    return ids


def sanitize_ids(values: Any) -> List[int]:
    """Ids positivos de una lista de ints o strings numéricos (formularios)."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple, set)):
        values = [values]
    ids: List[int] = []
    for v in values:
        item_id = _parse_id(v)
        if item_id is not None and item_id > 0:
            ids.append(item_id)
    return ids


def first_or_none(values: List[Any]) -> Any:
    return values[0] if values else None
