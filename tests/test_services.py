import pytest

from services.cycle_service import update_cycle_dates, update_cycle_status
from services.field_service import create_field_with_lots, get_field, update_field
from services.harvest_service import (
    create_harvest,
    get_harvest,
    harvest_dto_to_form_values,
    list_harvests,
    update_harvest,
)
from services.lot_service import create_lot, get_lot, update_lot
from services.stock_service import get_stock, list_stocks, stock_dto_to_form_values, update_stock
from services.truck_trip_service import (
    create_truck_trip,
    get_truck_trip,
    truck_trip_dto_to_form_values,
    update_truck_trip,
)
from utils.errors import BaserowRequestError, FormValidationError, NoChangesError


# ------------------------------------------------------------------
# Campos con lotes
# ------------------------------------------------------------------
FIELD_VALUES = {"name": "Norte", "totalAreaHa": "40"}
NESTED_LOTS = [{"code": "A1", "areaHa": "20"}, {"code": "A2", "areaHa": "20,5"}]


def test_create_field_with_lots_links_created_lots(fake_client):
    field = create_field_with_lots(fake_client, FIELD_VALUES, NESTED_LOTS)

    assert field.id == 3
    assert field.lot_ids == [21, 22]
    assert fake_client.tables["lots"][21]["Campo"] == [3]
    assert fake_client.tables["lots"][22]["Superficie (ha)"] == 20.5
    assert fake_client.writes()[-1] == ("update", "fields", 3, {"Lotes": [21, 22]})


def test_create_field_rolls_back_when_a_lot_fails(fake_client):
    fake_client.fail_on_create = "lots"

    with pytest.raises(BaserowRequestError):
        create_field_with_lots(fake_client, FIELD_VALUES, NESTED_LOTS)

    assert 3 not in fake_client.tables["fields"]
    assert fake_client.writes()[-1] == ("delete", "fields", 3)


def test_create_field_validates_nested_lots_before_writing(fake_client):
    with pytest.raises(FormValidationError, match="lotes"):
        create_field_with_lots(fake_client, FIELD_VALUES, [{"code": "", "areaHa": "10"}])
    assert fake_client.writes() == []


def test_update_field_patches_diff(fake_client):
    update_field(fake_client, 2, {"name": "El Ñandú", "totalAreaHa": 80, "notes": "Arrendado"})
    assert fake_client.writes() == [("update", "fields", 2, {"Notas": "Arrendado"})]


def test_unchanged_field_with_padded_text_is_no_change(fake_client):
    fake_client.tables["fields"][1]["Notas"] = "Nota\n"
    fake_client.tables["fields"][1]["Ubicación"] = "Ruta 5 km 30 "
    field = get_field(fake_client, 1)

    with pytest.raises(NoChangesError):
        update_field(fake_client, 1, {
            "name": field.name,
            "totalAreaHa": field.total_area_ha,
            "location": field.location,
            "notes": field.notes,
            "isRented": field.is_rented,
            "isActive": field.is_active,
        })
    assert fake_client.writes() == []


# ------------------------------------------------------------------
# Lotes
# ------------------------------------------------------------------
def test_create_lot_requires_code(fake_client):
    with pytest.raises(FormValidationError):
        create_lot(fake_client, {"fieldId": 1})
    lot = create_lot(fake_client, {"code": "L3", "fieldId": 1, "areaHa": "12"})
    assert lot.id == 21
    assert lot.area_ha == 12


def test_update_lot_empty_payload_is_no_change(fake_client):
    with pytest.raises(NoChangesError):
        update_lot(fake_client, 10, {})
    update_lot(fake_client, 10, {"notes": "Bajo"})
    assert fake_client.writes() == [("update", "lots", 10, {"Notas": "Bajo"})]


def test_unchanged_lot_with_padded_notes_is_no_change(fake_client):
    fake_client.tables["lots"][10]["Notas"] = "Bajo \n"
    lot = get_lot(fake_client, 10)

    with pytest.raises(NoChangesError):
        update_lot(fake_client, 10, {"code": lot.code, "notes": lot.notes})
    assert fake_client.writes() == []


# ------------------------------------------------------------------
# Ciclos
# ------------------------------------------------------------------
def test_update_cycle_status_resolves_option_by_slug(fake_client):
    update_cycle_status(fake_client, 100, "listo-para-cosechar")
    assert fake_client.writes() == [("update", "cycles", 100, {"Estado": 602})]


def test_update_cycle_status_unknown_option(fake_client):
    with pytest.raises(FormValidationError):
        update_cycle_status(fake_client, 100, "en-cosecha")
    assert fake_client.writes() == []


def test_update_cycle_dates_clears_empty_values(fake_client):
    cycle = update_cycle_dates(fake_client, 100, "2024-06-01", "2024-10-20", "")
    assert cycle.sowing_date == "2024-10-20"
    assert cycle.estimated_harvest_date is None


# ------------------------------------------------------------------
# Cosechas y stock
# ------------------------------------------------------------------
def test_create_harvest(fake_client):
    dto = create_harvest(fake_client, {
        "Fecha_fecha": "2025-04-01",
        "Fecha_hora": "",
        "KG Cosechados": "12.500",
        "Lotes": [10],
        "Ciclo de siembra": 100,
    })
    assert dto.id == 201
    assert dto.date == "2025-04-01T03:00:00Z"
    assert dto.harvested_kgs == 12500
    assert len(list_harvests(fake_client)) == 2


def test_unchanged_harvest_with_stored_seconds_is_no_change(fake_client):
    fake_client.tables["harvests"][200]["Fecha"] = "2025-03-10T13:00:45Z"
    values = harvest_dto_to_form_values(get_harvest(fake_client, 200))
    with pytest.raises(NoChangesError):
        update_harvest(fake_client, 200, values)
    assert fake_client.writes() == []


def test_stock_form_values_round_trip_has_no_changes(fake_client):
    values = stock_dto_to_form_values(get_stock(fake_client, 300))
    with pytest.raises(NoChangesError):
        update_stock(fake_client, 300, values)
    assert [s.id for s in list_stocks(fake_client)] == [300]


# ------------------------------------------------------------------
# Viajes de camión
# ------------------------------------------------------------------
def _new_trip(kgs):
    return {
        "Camión": 900,
        "Fecha de salida - Fecha": "2025-03-15",
        "Fecha de salida - Hora": "08:30",
        "Estado": 1001,
        "Tipo origen": "cosecha",
        "Origen": 200,
        "Kg carga origen": kgs,
    }


@pytest.mark.parametrize("kgs, expected", [("4000", "applied"), ("6000", "kgsError")])
def test_create_truck_trip_sets_event_status(fake_client, kgs, expected):
    harvests = list_harvests(fake_client)
    create_truck_trip(fake_client, _new_trip(kgs), harvests, list_stocks(fake_client))

    _, table, payload = fake_client.writes()[-1]
    assert table == "truck_trips"
    assert payload["eventStatus"] == expected


@pytest.mark.parametrize("kgs, expected", [(19000, "applied"), (21000, "kgsError")])
def test_update_truck_trip_returns_previous_kgs_to_origin(fake_client, kgs, expected):
    harvests, stocks = list_harvests(fake_client), list_stocks(fake_client)
    values = truck_trip_dto_to_form_values(get_truck_trip(fake_client, 400))
    assert values["Tipo origen"] == "harvest"
    assert values["Origen"] == 200

    # Disponible: 5000 de la cosecha + 15000 que ya llevaba este viaje
    values["Kg carga origen"] = kgs
    update_truck_trip(fake_client, 400, values, harvests, stocks)
    assert fake_client.writes() == [
        ("update", "truck_trips", 400, {"Kg carga origen": float(kgs), "eventStatus": expected}),
    ]


def test_update_truck_trip_without_changes(fake_client):
    values = truck_trip_dto_to_form_values(get_truck_trip(fake_client, 400))
    with pytest.raises(NoChangesError):
        update_truck_trip(fake_client, 400, values)
    assert fake_client.writes() == []


def test_unchanged_trip_with_stored_seconds_is_no_change(fake_client):
    fake_client.tables["truck_trips"][400]["Fecha de salida"] = "2025-03-11T12:00:30Z"
    values = truck_trip_dto_to_form_values(get_truck_trip(fake_client, 400))
    assert values["Fecha de salida - Hora"] == "09:00"
    with pytest.raises(NoChangesError):
        update_truck_trip(fake_client, 400, values)
    assert fake_client.writes() == []
