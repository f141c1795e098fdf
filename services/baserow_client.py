# services/baserow_client.py
"""
Gateway HTTP hacia Baserow (API REST de filas y campos).

- Filas:  {url}/api/database/rows/table/{table_id}/?user_field_names=true
- Campos: {url}/api/database/fields/table/{table_id}/
- Auth:   header "Authorization: Token <token>"

Las respuestas no 2xx (y los fallos de red) se levantan como BaserowRequestError.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config.settings import BaserowConfig
from utils.errors import BaserowConfigError, BaserowRequestError, EntityNotFoundError

logger = logging.getLogger(__name__)

SELECT_FIELD_TYPES = ("single_select", "multiple_select")


class BaserowClient:
    def __init__(self, config: BaserowConfig, session: Optional[requests.Session] = None):
        if not config.url:
            raise BaserowConfigError("Falta configurar BASEROW_URL")
        if not config.token:
            raise BaserowConfigError("Falta configurar BASEROW_TOKEN")
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Token {config.token}",
            "Content-Type": "application/json",
        })

    # ==================== TABLAS ====================

    def table_id(self, table: str) -> int:
        """Resuelve el id numérico de una tabla lógica ('harvests', 'stock', ...)."""
        table_id = self.config.tables.get(table)
        if not table_id:
            raise BaserowConfigError(f"Falta configurar el ID de tabla para '{table}'")
        return int(table_id)

    # ==================== HTTP ====================

    def _rows_url(self, table_id: int, row_id: Optional[int] = None) -> str:
        base = f"{self.config.url}/api/database/rows/table/{table_id}/"
        if row_id is not None:
            base += f"{row_id}/"
        return base

    def _request(self, method: str, url: str, **kwargs) -> Any:
        logger.debug("Baserow %s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=self.config.timeout_s, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Baserow %s %s falló: %s", method, url, exc)
            raise BaserowRequestError(None, str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            logger.warning("Baserow %s %s -> %s: %s", method, url, resp.status_code, resp.text)
            raise BaserowRequestError(resp.status_code, resp.text)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ==================== FILAS ====================

    def list_rows(self, table_id: int) -> List[Dict[str, Any]]:
        """Todas las filas de la tabla, siguiendo la paginación 'next'."""
        rows: List[Dict[str, Any]] = []
        url: Optional[str] = self._rows_url(table_id)
        params: Optional[Dict[str, Any]] = {
            "user_field_names": "true",
            "size": self.config.page_size,
        }
        while url:
            data = self._request("GET", url, params=params) or {}
            rows.extend(data.get("results") or [])
            url = data.get("next")
            # 'next' ya trae los query params
            params = None
        return rows

    def get_row(self, table_id: int, row_id: int) -> Dict[str, Any]:
        try:
            return self._request("GET", self._rows_url(table_id, row_id), params={"user_field_names": "true"})
        except BaserowRequestError as exc:
            if exc.status == 404:
                raise EntityNotFoundError(f"Fila {row_id} no encontrada en la tabla {table_id}") from exc
            raise

    def create_row(self, table_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "POST", self._rows_url(table_id), params={"user_field_names": "true"}, json=payload
        )

    def update_row(self, table_id: int, row_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request(
            "PATCH", self._rows_url(table_id, row_id), params={"user_field_names": "true"}, json=payload
        )

    def delete_row(self, table_id: int, row_id: int) -> None:
        self._request("DELETE", self._rows_url(table_id, row_id))

    def close(self) -> None:
        self.session.close()

    # ==================== CAMPOS ====================

    def list_fields(self, table_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"{self.config.url}/api/database/fields/table/{table_id}/") or []

    def select_options(
            self,
            table_id: int,
            field_name: str,
            field_type: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Opciones [{id, label}] de un campo single/multiple select.
        Campo inexistente o de otro tipo => [].
        """
        for f in self.list_fields(table_id):
            if f.get("name") != field_name:
                continue
            ftype = f.get("type")
            if field_type and ftype != field_type:
                continue
            if ftype not in SELECT_FIELD_TYPES:
                continue
            return [
                {"id": opt.get("id"), "label": str(opt.get("value") or "")}
                for opt in f.get("select_options") or []
                if isinstance(opt.get("id"), int)
            ]
        return []
