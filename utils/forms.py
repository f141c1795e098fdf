# utils/forms.py
"""
Lectura de valores de formulario (strings de inputs, ids de selects).

Los builders validan requeridos antes de parsear; todo error sale como
FormValidationError con el mensaje para el usuario.
"""
from typing import Any, List, Mapping, Optional

from utils.cells import extract_single_select_id, parse_locale_number, sanitize_ids
from utils.errors import FormValidationError


def get_str(values: Mapping[str, Any], key: str) -> str:
    raw = values.get(key)
    if raw is None:
        return ""
    return str(raw).strip()


def is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, set)):
        return len(raw) == 0
    return False


def parse_form_number(raw: Any) -> Optional[float]:
    """Vacío => None. No parseable => ValueError."""
    if is_blank(raw):
        return None
    number = parse_locale_number(raw)
    if number is None:
        raise ValueError(f"Número inválido: {raw!r}")
    return number


def required_number(values: Mapping[str, Any], key: str, message: str) -> float:
    raw = values.get(key)
    if is_blank(raw):
        raise FormValidationError(message)
    try:
        return parse_form_number(raw)
    except ValueError:
        raise FormValidationError(message)


def optional_number(values: Mapping[str, Any], key: str, message: str) -> Optional[float]:
    try:
        return parse_form_number(values.get(key))
    except ValueError:
        raise FormValidationError(message)


def positive_id(raw: Any) -> Optional[int]:
    """Id de un select: int, string numérico, {id} o [id]. <= 0 => None."""
    if is_blank(raw):
        return None
    item_id = extract_single_select_id(raw)
    if item_id is None or item_id <= 0:
        return None
    return item_id


def required_id(values: Mapping[str, Any], key: str, message: str) -> int:
    item_id = positive_id(values.get(key))
    if item_id is None:
        raise FormValidationError(message)
    return item_id


def id_list(values: Mapping[str, Any], key: str) -> List[int]:
    return sanitize_ids(values.get(key))


def set_optional(
        payload: dict,
        key: str,
        value: Any,
        include_empty_optional: bool,
        empty: Any = None,
) -> None:
    """
    Opcionales: si el valor está vacío se omite la clave, salvo en edición
    (include_empty_optional) donde se manda explícito para poder limpiar.
    """
    if value is None or value == "" or value == []:
        if include_empty_optional:
            payload[key] = empty
        return
    payload[key] = value
