# services/matching_service.py
"""
Matching de campos por id o por etiqueta.

Muchas filas históricas solo tienen el nombre del campo como texto (sin link),
así que el id manda y la etiqueta normalizada es el fallback.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from schemas.shared import Option
from utils.text import strip_diacritics

_TRAILING_ID_RE = re.compile(r"\(\s*#?\s*\d+\s*\)\s*$")
_FIELD_ID_PATTERNS = (
    re.compile(r"#\s*(\d+)"),
    re.compile(r"\bID[:\s-]*(\d+)", re.IGNORECASE),
    re.compile(r"\(\s*(\d+)\s*\)"),
)


# -------------------------------------------------------------------
# Normalización de etiquetas
# -------------------------------------------------------------------
def normalize_field_label(value: Optional[str]) -> str:
    """
    'La Victoria (#12) ' -> 'la victoria'
    Quita acentos, el sufijo '(#id)', colapsa espacios y pasa a minúsculas.
    """
    if not value:
        return ""
    s = strip_diacritics(str(value))
    s = _TRAILING_ID_RE.sub("", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s.lower()


def extract_field_id_from_label(value: Optional[str]) -> Optional[int]:
    """Busca un id positivo embebido en la etiqueta: '#12', 'ID: 12' o '(12)'."""
    if not value:
        return None
    for pattern in _FIELD_ID_PATTERNS:
        m = pattern.search(str(value))
        if m and int(m.group(1)) > 0:
            return int(m.group(1))
    return None


def are_field_labels_equivalent(a: Optional[str], b: Optional[str]) -> bool:
    na, nb = normalize_field_label(a), normalize_field_label(b)
    if not na or not nb:
        return False
    return na == nb or na.startswith(nb) or nb.startswith(na)


# -------------------------------------------------------------------
# Match candidato vs filtro
# -------------------------------------------------------------------
def matches_field(
        candidate_field_id: Optional[int],
        candidate_field_name: Optional[str],
        field_id: Optional[int],
        field_name: Optional[str],
) -> bool:
    """
    Si ambos lados tienen id, se compara solo por id.
    Si falta alguno, se compara por nombre normalizado.
    """
    if candidate_field_id is not None and field_id is not None:
        return candidate_field_id == field_id
    a = normalize_field_label(candidate_field_name)
    b = normalize_field_label(field_name)
    return bool(a) and a == b


def find_matching_field_option(
        options: Sequence[Option],
        field_id: Optional[int] = None,
        label: Optional[str] = None,
) -> Optional[Option]:
    """
    Orden de resolución:
    1. id (explícito o embebido en la etiqueta)
    2. etiqueta normalizada exacta, si hay una sola
    3. prefijo de etiqueta, si hay uno solo
    """
    id_candidate = field_id if field_id is not None else extract_field_id_from_label(label)
    if id_candidate is not None:
        for opt in options:
            if opt.id == id_candidate:
                return opt

    normalized = normalize_field_label(label)
    if not normalized:
        return None

    exact = [opt for opt in options if normalize_field_label(opt.label) == normalized]
    if len(exact) == 1:
        return exact[0]
    if exact:
        return None

    prefix = [opt for opt in options if are_field_labels_equivalent(opt.label, normalized)]
    if len(prefix) == 1:
        return prefix[0]
    return None


def resolve_trip_origin_field(
        origin_field: Optional[str],
        origin_field_from_harvest: Optional[str],
        origin_field_from_stock: Optional[str],
        options: Sequence[Option],
) -> Optional[Option]:
    """
    Prueba los tres candidatos en orden fijo contra las opciones de campo.
    Sin match => opción sintética {label} con la primera etiqueta no vacía.
    """
    candidates: List[str] = [
        c.strip() for c in (origin_field, origin_field_from_harvest, origin_field_from_stock)
        if c and c.strip()
    ]
    for candidate in candidates:
        hit = find_matching_field_option(options, label=candidate)
        if hit is not None:
            return hit
    if candidates:
        return Option(id=None, label=candidates[0])
    return None


def first_non_empty(values: Iterable[Optional[str]]) -> str:
    for v in values:
        if v and v.strip():
            return v.strip()
    return ""
