import copy
from typing import Any, Dict, List, Optional

import pytest

from utils.errors import BaserowRequestError, EntityNotFoundError


# -------------------------------------------------------------------
# Filas crudas de ejemplo (forma de la API de Baserow con user_field_names)
# -------------------------------------------------------------------
SAMPLE_ROWS: Dict[str, List[Dict[str, Any]]] = {
    "fields": [
        {
            "id": 1,
            "Nombre": "La Victoria",
            "Ubicación": "Ruta 5 km 30",
            "Superficie (ha)": "120,5",
            "Notas": "",
            "Lotes": [{"id": 10, "value": "L1"}],
            "Alquiler ?": False,
            "Activo ?": True,
        },
        {
            "id": 2,
            "Nombre": "El Ñandú",
            "Superficie (ha)": 80,
            "Lotes": [],
        },
    ],
    "lots": [
        {
            "id": 10,
            "Nombre / Código Lote": "L1",
            "Campo": [{"id": 1, "value": "La Victoria"}],
            "Superficie (ha)": "50",
            "Ciclos de Siembra": [{"id": 100, "value": "C-100"}],
            "Activo ?": True,
        },
        {
            # Fila histórica: el campo solo como texto, sin link
            "id": 11,
            "Nombre / Código Lote": "L2",
            "Campo": "La Victoria",
            "Superficie (ha)": 30,
        },
        {
            "id": 20,
            "Nombre / Código Lote": "N1",
            "Campo": [{"id": 2, "value": "El Ñandú"}],
            "Superficie (ha)": 80,
        },
    ],
    "cycles": [
        {
            "id": 100,
            "ID": "C-100",
            "Campo": [{"id": 1, "value": "La Victoria"}],
            "Cultivo": {"id": 501, "value": "Soja", "color": "green"},
            "Estado": {"id": 601, "value": "Sembrado", "color": "blue"},
            "Lotes": [{"id": 10, "value": "L1-La Victoria-Norte"}],
            "Superficie (has)": 50,
            "Rendimiento obtenido (qq/ha)": 0,
            "Kgs totales": "150.000",
            "Periodo": "2024/2025",
            "Fecha inicio barbecho": "2024-06-01",
            "Fecha de siembra": "2024-10-15",
            "Duración cultivo": 10368000,
        },
        {
            "id": 101,
            "ID": "C-101",
            "Campo": [{"id": 2, "value": "El Ñandú"}],
            "Cultivo": {"id": 502, "value": "Maíz", "color": "yellow"},
            "Estado": {"id": 603, "value": "Cosechado", "color": "gray"},
            "Lotes": [{"id": 20, "value": "N1"}],
            "Kgs totales": 90000,
            "Rendimiento obtenido (qq/ha)": "45,5",
            "Periodo": "2023/2024",
            "Fecha inicio barbecho": "2023-05-01",
        },
    ],
    "harvests": [
        {
            "id": 200,
            "ID": "H-200",
            "Fecha": "2025-03-10T13:00:00Z",
            "Campo": [{"id": 1, "value": "La Victoria"}],
            "Cultivo": "Soja",
            "KG Cosechados": 30000,
            "Kgs Ingresados a Stock": 10000,
            "Kgs Egresados Camión Directo": 15000,
            "Lotes": [{"id": 10, "value": "L1"}],
            "Ciclo de siembra": [{"id": 100, "value": "C-100"}],
            "Periodo": "2024/2025",
            "Stock": [{"id": 300, "value": "S-300"}],
            "Viajes camión directos": [{"id": 400, "value": "V-400"}],
            "Notas": "",
        },
    ],
    "stock": [
        {
            "id": 300,
            "ID": "S-300",
            "Ciclo de siembra": [{"id": 100, "value": "C-100"}],
            "Tipo unidad": {"id": 701, "value": "Silo bolsa", "color": "red"},
            "Fecha de creación": "2025-03-10",
            "Total kgs ingresados": 10000,
            "Total kgs egresados cosecha": 2000,
            "Kgs actuales": 8000,
            "Estado": {"id": 801, "value": "Abierto", "color": "green"},
            "Campo": [{"id": 1, "value": "La Victoria"}],
            "Cultivo": "Soja",
        },
    ],
    "truck_trips": [
        {
            "id": 400,
            "ID": "V-400",
            "Camión": [{"id": 900, "value": "AB123CD"}],
            "CTG": 0,
            "Fecha de salida": "2025-03-11T12:00:00Z",
            "Periodo": "2024/2025",
            "Cosecha Origen (opcional)": [{"id": 200, "value": "H-200"}],
            "Stock Origen (opcional)": [],
            "Kg carga origen": 15000,
            "Kg carga destino": 14900,
            "Proveedor": [{"id": 950, "value": "Acopio Sur"}],
            "Campo Origen Cosecha": "La Victoria",
            "Ciclo de siembra": "C-100",
            "Estado": {"id": 1001, "value": "Entregado", "color": "green"},
        },
        {
            "id": 401,
            "ID": "V-401",
            "Camión": [{"id": 900, "value": "AB123CD"}],
            "Fecha de salida": "2025-03-12T12:00:00Z",
            "Periodo": "2024/2025",
            "Stock Origen (opcional)": [{"id": 300, "value": "S-300"}],
            "Kg carga origen": 2000,
            "Campo Origen Stock": "La Victoria",
            "Tipo destino": {"id": 1101, "value": "Planta", "color": "blue"},
        },
    ],
    "trucks": [
        {
            "id": 901,
            "Patente": "ZZ999AA",
            "Propietario": "Ana",
            "Tipo": None,
        },
        {
            "id": 900,
            "Patente": "AB123CD",
            "Propietario": "Juan",
            "Tipo": {"id": 1201, "value": "Chasis", "color": "blue"},
            "Viajes de camión": [{"id": 400, "value": "V-400"}, {"id": 401, "value": "V-401"}],
            "Periodo viajes": [{"value": "2024/2025"}, {"value": "2024/2025"}],
        },
    ],
    "providers": [
        {
            "id": 951,
            "Nombre": "Molino Ñuñoa",
            "Viajes de camión": [],
        },
        {
            "id": 950,
            "Nombre": "Acopio Sur",
            "Admite": [{"id": 1301, "value": "Soja", "color": "green"}],
            "Viajes de camión": [{"id": 400, "value": "V-400"}],
            "Periodo viajes": [{"value": "2024/2025"}],
        },
    ],
}

SAMPLE_SELECT_OPTIONS = {
    ("cycles", "Estado"): [
        {"id": 600, "label": "Planificado"},
        {"id": 601, "label": "Sembrado"},
        {"id": 602, "label": "Listo para cosechar"},
        {"id": 603, "label": "Cosechado"},
    ],
    ("trucks", "Tipo"): [{"id": 1201, "label": "Chasis"}, {"id": 1202, "label": "Acoplado"}],
}


class FakeBaserowClient:
    """
    Cliente en memoria con la misma interfaz que BaserowClient.
    Los ids de tabla son los nombres lógicos ('harvests', 'stock', ...).
    """

    def __init__(self, rows: Optional[Dict[str, List[Dict[str, Any]]]] = None, select_options=None):
        rows = copy.deepcopy(SAMPLE_ROWS if rows is None else rows)
        self.tables: Dict[str, Dict[int, Dict[str, Any]]] = {
            name: {row["id"]: row for row in table_rows} for name, table_rows in rows.items()
        }
        self.options = SAMPLE_SELECT_OPTIONS if select_options is None else select_options
        self.calls: List[tuple] = []
        self.fail_on_create: Optional[str] = None

    def table_id(self, table: str) -> str:
        return table

    def list_rows(self, table_id: str) -> List[Dict[str, Any]]:
        self.calls.append(("list", table_id))
        return [copy.deepcopy(r) for r in self.tables.get(table_id, {}).values()]

    def get_row(self, table_id: str, row_id: int) -> Dict[str, Any]:
        self.calls.append(("get", table_id, row_id))
        row = self.tables.get(table_id, {}).get(row_id)
        if row is None:
            raise EntityNotFoundError(f"Fila {row_id} no encontrada en la tabla {table_id}")
        return copy.deepcopy(row)

    def create_row(self, table_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("create", table_id, copy.deepcopy(payload)))
        if self.fail_on_create == table_id:
            raise BaserowRequestError(400, "ERROR_REQUEST_BODY_VALIDATION")
        table = self.tables.setdefault(table_id, {})
        row_id = max(table, default=0) + 1
        row = {"id": row_id, **copy.deepcopy(payload)}
        table[row_id] = row
        return copy.deepcopy(row)

    def update_row(self, table_id: str, row_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(("update", table_id, row_id, copy.deepcopy(payload)))
        row = self.tables[table_id][row_id]
        row.update(copy.deepcopy(payload))
        return copy.deepcopy(row)

    def delete_row(self, table_id: str, row_id: int) -> None:
        self.calls.append(("delete", table_id, row_id))
        self.tables.get(table_id, {}).pop(row_id, None)

    def select_options(self, table_id: str, field_name: str, field_type: Optional[str] = None):
        self.calls.append(("options", table_id, field_name))
        return list(self.options.get((table_id, field_name), []))

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("create", "update", "delete")]


@pytest.fixture
def fake_client():
    return FakeBaserowClient()


@pytest.fixture
def make_client():
    def _make(rows=None, select_options=None):
        return FakeBaserowClient(rows, select_options)
    return _make


@pytest.fixture
def api_client(fake_client):
    from fastapi.testclient import TestClient

    from main import app
    from utils.dependencies import get_baserow_client

    app.dependency_overrides[get_baserow_client] = lambda: fake_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
