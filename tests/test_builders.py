import pytest

from enums.enums import CycleStatusEnum
from schemas.shared import Option
from services.cycle_service import (
    build_cycle_create_payload,
    build_cycle_dates_payload,
    resolve_status_option,
)
from services.field_service import build_field_payload
from services.harvest_service import build_harvest_payload
from services.lot_service import build_lot_payload
from services.provider_service import build_provider_payload
from services.stock_service import build_stock_payload
from services.truck_service import build_truck_payload
from services.truck_trip_service import build_truck_trip_payload
from utils.errors import FormValidationError


# ------------------------------------------------------------------
# Cosechas
# ------------------------------------------------------------------
def _harvest_values(**overrides):
    values = {
        "Fecha_fecha": "2025-03-10",
        "Fecha_hora": "10:00",
        "KG Cosechados": "30.000",
        "Lotes": [10, "11"],
        "Ciclo de siembra": "100",
        "Stock": 300,
        "Notas": " ok ",
    }
    values.update(overrides)
    return values


def test_build_harvest_payload():
    payload = build_harvest_payload(_harvest_values())
    assert payload == {
        "Fecha": "2025-03-10T13:00:00Z",
        "KG Cosechados": 30000.0,
        "Lotes": [10, 11],
        "Ciclo de siembra": [100],
        "Stock": [300],
        "Notas": "ok",
    }


def test_build_harvest_payload_edit_mode_sends_empty_optionals():
    payload = build_harvest_payload(_harvest_values(Stock="", Notas=""), include_empty_optional=True)
    assert payload["Stock"] == []
    assert payload["Viajes camión directos"] == []
    assert payload["Notas"] == ""


@pytest.mark.parametrize("overrides, message", [
    ({"Fecha_fecha": ""}, "Ingresá una fecha válida para la cosecha"),
    ({"Fecha_hora": "99:99"}, "Ingresá una fecha válida para la cosecha"),
    ({"KG Cosechados": ""}, "Ingresá un número válido para los kilos cosechados"),
    ({"KG Cosechados": "mucho"}, "Ingresá un número válido para los kilos cosechados"),
    ({"Lotes": []}, "Seleccioná al menos un lote"),
    ({"Ciclo de siembra": None}, "Seleccioná un ciclo de siembra válido"),
])
def test_build_harvest_payload_validation(overrides, message):
    with pytest.raises(FormValidationError) as exc:
        build_harvest_payload(_harvest_values(**overrides))
    assert exc.value.message == message


# ------------------------------------------------------------------
# Ciclos
# ------------------------------------------------------------------
def test_build_cycle_create_payload_derives_estimated_harvest():
    payload = build_cycle_create_payload({
        "lotIds": ["10"],
        "cropOptionId": 501,
        "statusOptionId": "601",
        "sowingDate": "2024-10-15",
        "cropDurationDays": "120",
        "seed": "DM 46i20",
    })
    assert payload == {
        "Lotes": [10],
        "Cultivo": 501,
        "Estado": 601,
        "Fecha de siembra": "2024-10-15",
        "Duración cultivo": 10368000,
        "Fecha estimada de cosecha": "2025-02-12",
        "Semilla": "DM 46i20",
    }


def test_build_cycle_create_payload_requires_lots_and_crop():
    with pytest.raises(FormValidationError, match="al menos un lote"):
        build_cycle_create_payload({"cropOptionId": 1, "statusOptionId": 1})
    with pytest.raises(FormValidationError, match="cultivo"):
        build_cycle_create_payload({"lotIds": [1], "statusOptionId": 1})


def test_build_cycle_dates_payload_clears_and_orders():
    assert build_cycle_dates_payload("2024-06-01", "", None) == {
        "Fecha inicio barbecho": "2024-06-01",
        "Fecha de siembra": None,
        "Fecha estimada de cosecha": None,
    }
    with pytest.raises(FormValidationError, match="barbecho"):
        build_cycle_dates_payload("2024-11-01", "2024-10-15", None)
    with pytest.raises(FormValidationError, match="estimada"):
        build_cycle_dates_payload(None, "2024-10-15", "2024-10-01")
    with pytest.raises(FormValidationError, match="inválida"):
        build_cycle_dates_payload("01/06/2024", None, None)


def test_resolve_status_option_by_slug():
    options = [Option(id=601, label="Sembrado"), Option(id=602, label="Listo para cosechar")]
    assert resolve_status_option(options, CycleStatusEnum.listo_para_cosechar) == 602
    assert resolve_status_option(options, "sembrado") == 601
    with pytest.raises(FormValidationError):
        resolve_status_option(options, CycleStatusEnum.cosechado)


# ------------------------------------------------------------------
# Campos y lotes
# ------------------------------------------------------------------
def test_build_field_payload():
    payload = build_field_payload({"name": " Norte ", "totalAreaHa": "12,5", "isRented": "true"})
    assert payload == {"Nombre": "Norte", "Superficie (ha)": 12.5, "Alquiler ?": True}

    with pytest.raises(FormValidationError, match="superficie"):
        build_field_payload({"name": "Norte", "totalAreaHa": "0"})


def test_build_lot_payload_is_partial():
    assert build_lot_payload({"notes": " nota "}) == {"Notas": "nota"}
    assert build_lot_payload({"fieldId": None, "areaHa": ""}) == {"Campo": [], "Superficie (ha)": None}
    assert build_lot_payload({"code": "L9", "fieldId": "3", "cycleIds": [1, "x", 2]}) == {
        "Nombre / Código Lote": "L9",
        "Campo": [3],
        "Ciclos de Siembra": [1, 2],
    }
    with pytest.raises(FormValidationError):
        build_lot_payload({"areaHa": "abc"})


# ------------------------------------------------------------------
# Stock, viajes, camiones y proveedores
# ------------------------------------------------------------------
def test_build_stock_payload():
    payload = build_stock_payload({
        "Tipo unidad": "701",
        "Fecha de creación": "2025-03-10",
        "Estado": {"id": 801},
        "Ciclo de siembra": 100,
    })
    assert payload == {
        "Tipo unidad": 701,
        "Fecha de creación": "2025-03-10",
        "Estado": 801,
        "Ciclo de siembra": [100],
    }
    with pytest.raises(FormValidationError, match="fecha de creación"):
        build_stock_payload({"Tipo unidad": 1, "Fecha de creación": "10/03/2025", "Estado": 1})


def _trip_values(**overrides):
    values = {
        "Camión": 900,
        "Fecha de salida - Fecha": "2025-03-11",
        "Fecha de salida - Hora": "9:00",
        "Estado": 1001,
        "Tipo origen": "cosecha",
        "Origen": 200,
        "Kg carga origen": "4.000",
        "CTG": "123",
    }
    values.update(overrides)
    return values


def test_build_truck_trip_payload_from_harvest():
    payload = build_truck_trip_payload(_trip_values())
    assert payload == {
        "Camión": [900],
        "Fecha de salida": "2025-03-11T12:00:00Z",
        "Estado": 1001,
        "Cosecha Origen (opcional)": [200],
        "Stock Origen (opcional)": [],
        "Kg carga origen": 4000.0,
        "CTG": 123,
    }


def test_build_truck_trip_payload_from_stock_clears_harvest():
    payload = build_truck_trip_payload(_trip_values(**{"Tipo origen": "stock", "Origen": "300"}))
    assert payload["Cosecha Origen (opcional)"] == []
    assert payload["Stock Origen (opcional)"] == [300]


@pytest.mark.parametrize("overrides, message", [
    ({"Camión": None}, "Seleccioná un camión válido"),
    ({"Fecha de salida - Fecha": ""}, "Ingresá una fecha de salida válida"),
    ({"Tipo origen": "otro"}, "Seleccioná un tipo de origen válido"),
    ({"Origen": 0}, "Seleccioná un origen válido"),
    ({"Kg carga origen": ""}, "Ingresá un número válido para los kgs de origen"),
    ({"CTG": "12.5"}, "Ingresá un CTG válido"),
])
def test_build_truck_trip_payload_validation(overrides, message):
    with pytest.raises(FormValidationError) as exc:
        build_truck_trip_payload(_trip_values(**overrides))
    assert exc.value.message == message


def test_build_truck_payload_requires_all_fields():
    assert build_truck_payload({"Patente": " AB123CD ", "Propietario": "Juan", "Tipo": "1201"}) == {
        "Patente": "AB123CD",
        "Propietario": "Juan",
        "Tipo": 1201,
    }
    with pytest.raises(FormValidationError, match="tipo de camión"):
        build_truck_payload({"Patente": "AB123CD", "Propietario": "Juan"})


def test_build_provider_payload():
    assert build_provider_payload({"Nombre": "Acopio", "Admite": ["1", 2]}) == {
        "Nombre": "Acopio",
        "Admite": [1, 2],
    }
    with pytest.raises(FormValidationError):
        build_provider_payload({"Nombre": "  "})
