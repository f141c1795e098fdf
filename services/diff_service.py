# services/diff_service.py
"""
Diff de payloads para ediciones parciales.

Se compara el payload previo (derivado del DTO) contra el nuevo (derivado del
formulario) y solo viajan las claves que cambiaron. Diff vacío => no se hace
ningún PATCH.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, TYPE_CHECKING

from utils.errors import NoChangesError

if TYPE_CHECKING:
    from services.baserow_client import BaserowClient

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sorted_for_comparison(values: List[Any]) -> List[Any]:
    if all(_is_number(v) for v in values):
        return sorted(values)
    if all(isinstance(v, str) for v in values):
        return sorted(values)
    return list(values)


def is_equal_value(a: Any, b: Any) -> bool:
    """
    Igualdad tipada e insensible al orden en arrays:
    [3, 1] == [1, 3]; 1 != "1"; None != "".
    """
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if len(a) != len(b):
            return False
        sa = _sorted_for_comparison(list(a))
        sb = _sorted_for_comparison(list(b))
        return all(is_equal_value(x, y) for x, y in zip(sa, sb))
    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if type(a) is not type(b):
        return False
    return a == b


def compute_diff_payload(prev: Mapping[str, Any], next_: Mapping[str, Any]) -> Dict[str, Any]:
    """Claves de `next_` cuyo valor difiere del previo (clave ausente en prev = cambio)."""
    diff: Dict[str, Any] = {}
    for key, value in next_.items():
        if key not in prev or not is_equal_value(prev[key], value):
            diff[key] = value
    return diff


def require_changes(diff: Mapping[str, Any]) -> None:
    if not diff:
        raise NoChangesError()


def update_with_diff(
        client: "BaserowClient",
        table: str,
        row_id: int,
        prev_payload: Mapping[str, Any],
        next_payload: Mapping[str, Any],
) -> Dict[str, Any]:
    """PATCH solo con lo que cambió. Sin cambios => NoChangesError y ninguna llamada."""
    diff = compute_diff_payload(prev_payload, next_payload)
    require_changes(diff)
    logger.info("Actualizando %s #%s: %s", table, row_id, sorted(diff))
    return client.update_row(client.table_id(table), row_id, diff)
