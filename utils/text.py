# utils/text.py
"""Helpers de texto: acentos, orden alfabético en español, slugs."""
import re
import unicodedata
from typing import Any, Tuple

_COMBINING_TILDE = "\u0303"


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def spanish_sort_key(value: Any) -> Tuple[str, str]:
    """
    Clave de orden tipo collation 'es' con sensitivity 'base':
    ignora mayúsculas y acentos, pero la ñ va entre n y o.
    """
    s = "" if value is None else str(value)
    decomposed = unicodedata.normalize("NFD", s.casefold())
    out = []
    for ch in decomposed:
        if ch == _COMBINING_TILDE and out and out[-1] == "n":
            out[-1] = "n\x7f"
            continue
        if unicodedata.combining(ch):
            continue
        out.append(ch)
    # Desempate estable por el texto original
    return "".join(out), s


def slugify(value: Any) -> str:
    """'Listo para cosechar' -> 'listo-para-cosechar'."""
    s = strip_diacritics(str(value or "")).lower()
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"\s+", "-", s.strip())
    return s
