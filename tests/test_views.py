import pytest

from enums.enums import TripEventStatusEnum, TripOriginTypeEnum
from schemas.shared import Option
from schemas.truck_trip import TruckTripDto
from services.cycle_service import list_cycles
from services.dashboard_service import (
    build_fields_overview,
    default_period,
    period_options,
    production_summary,
    provider_period_rows,
)
from services.field_service import list_fields
from services.filters_service import (
    filter_harvests,
    filter_providers,
    filter_trucks,
    filter_truck_trips,
    harvest_totals,
    matches_filter,
    sort_periods,
    stock_totals,
    truck_trip_filter_options,
    truck_trip_totals,
    unique_options,
)
from services.form_options_service import (
    cycle_options,
    field_options,
    harvest_field_dependencies,
    stock_field_dependencies,
    trip_origin_options,
)
from services.harvest_service import list_harvests
from services.lot_service import list_lots, lots_by_field_id
from services.provider_service import list_providers
from services.stock_service import list_stocks
from services.truck_service import list_trucks
from services.truck_trip_service import compute_trip_event_status, get_truck_trip, list_truck_trips


@pytest.fixture
def data(fake_client):
    return {
        "fields": list_fields(fake_client),
        "lots": list_lots(fake_client),
        "cycles": list_cycles(fake_client),
        "harvests": list_harvests(fake_client),
        "stocks": list_stocks(fake_client),
        "trips": list_truck_trips(fake_client),
        "trucks": list_trucks(fake_client),
        "providers": list_providers(fake_client),
    }


# ------------------------------------------------------------------
# Filtros genéricos y periodos
# ------------------------------------------------------------------
def test_sort_periods_newest_first_and_unformatted_last():
    assert sort_periods(["2023/2024", "otro", "2024/2025", "2022/2023"]) == [
        "2024/2025", "2023/2024", "2022/2023", "otro",
    ]


def test_matches_filter_semantics():
    assert matches_filter("all", None)
    assert matches_filter("", None)
    assert matches_filter("", [])
    assert not matches_filter("", "Chasis")
    assert matches_filter("Soja", ["Maíz", "Soja"])
    assert not matches_filter("Soja", "Maíz")


def test_unique_options_sorted_spanish():
    items = ["Ñandú", "Oeste", "Norte", "", "Norte", None]
    assert unique_options(items, lambda x: x) == ["Norte", "Ñandú", "Oeste"]


# ------------------------------------------------------------------
# Cosechas, stock y viajes
# ------------------------------------------------------------------
def test_harvest_filters_and_totals(data):
    filtered = filter_harvests(data["harvests"], period="2024/2025", field="La Victoria")
    assert [h.id for h in filtered] == [200]
    assert filter_harvests(data["harvests"], crop="Maíz") == []

    totals = harvest_totals(filtered)
    assert totals.total_harvested_kgs == 30000
    assert totals.total_direct_truck_kgs == 15000
    assert totals.total_to_stock_kgs == 10000
    assert totals.harvest_count == 1
    assert totals.truck_trip_count == 1


def test_stock_totals(data):
    totals = stock_totals(data["stocks"])
    assert (totals.in_kgs, totals.out_kgs, totals.balance_kgs) == (10000, 2000, 8000)
    assert totals.stock_count == 1


def test_truck_trip_totals_over_filtered_subset(data):
    totals = truck_trip_totals(data["trips"])
    assert totals.total_kgs_origin == 17000
    assert totals.total_kgs_destination == 14900
    assert totals.total_difference == -2100
    assert totals.trip_count == 2

    only_stock = filter_truck_trips(data["trips"], origin_type="stock")
    assert [t.id for t in only_stock] == [401]
    assert truck_trip_totals(only_stock).total_kgs_destination == 0


def test_truck_trips_sorted_newest_first_and_filtered_by_field(data):
    field_opts = field_options(data["fields"])
    trips = filter_truck_trips(data["trips"], field="La Victoria", field_opts=field_opts)
    assert [t.id for t in trips] == [401, 400]

    options = truck_trip_filter_options(data["trips"], field_opts)
    assert options["fields"] == ["La Victoria"]
    assert options["destinations"] == ["Acopio Sur", "Planta"]
    assert options["originTypes"] == ["harvest", "stock"]


def test_trucks_empty_type_filter_means_without_type(data):
    assert [t.id for t in filter_trucks(data["trucks"], truck_type="")] == [901]
    assert [t.id for t in filter_trucks(data["trucks"], period="2024/2025")] == [900]


def test_filter_providers_sorted_by_name(data):
    assert [p.id for p in filter_providers(data["providers"])] == [950, 951]
    assert [p.id for p in filter_providers(data["providers"], admit="Soja")] == [950]


# ------------------------------------------------------------------
# Tablero
# ------------------------------------------------------------------
def test_fields_overview_for_period(data):
    overviews = build_fields_overview(data["fields"], data["lots"], data["cycles"], "2024/2025")
    first, second = overviews

    assert first.field.id == 1
    assert first.has_active_cycle is True
    assert first.active_area_ha == 50
    assert [(item.lot.code, item.current_cycle.id if item.current_cycle else None) for item in first.lots] == [
        ("L1", 100),
        ("L2", None),
    ]

    assert second.field.id == 2
    assert second.has_active_cycle is False
    assert [item.lot.code for item in second.lots] == ["N1"]
    assert second.lots[0].current_cycle is None


def test_production_summary(data):
    current = production_summary(
        build_fields_overview(data["fields"], data["lots"], data["cycles"], "2024/2025")
    )
    assert [(s.crop, s.cycle_count, s.total_kgs, s.average_yield) for s in current] == [
        ("Soja", 1, 150000, None),
    ]

    previous = production_summary(
        build_fields_overview(data["fields"], data["lots"], data["cycles"], "2023/2024")
    )
    assert [(s.crop, s.total_kgs, s.average_yield) for s in previous] == [("Maíz", 90000, 45.5)]


def test_default_period_uses_fallow_year(data):
    assert period_options(data["cycles"]) == ["2024/2025", "2023/2024"]
    assert default_period(data["cycles"], 2024) == "2024/2025"
    assert default_period(data["cycles"], 2023) == "2023/2024"
    assert default_period(data["cycles"], 1999) == "2024/2025"
    assert default_period([], 2024) is None


def test_provider_period_rows(data):
    rows = provider_period_rows(data["providers"], data["trips"])
    assert [r.id for r in rows] == ["950-2024/2025", "951-no-period"]

    delivered = rows[0]
    assert delivered.trip_labels == ["V-400"]
    assert delivered.delivered_kgs == 14900
    assert delivered.admits_labels == ["Soja"]

    empty = rows[1]
    assert empty.period == "—"
    assert empty.trip_ids == []


def test_provider_period_rows_groups_trips_without_period():
    from schemas.provider import ProviderDto

    provider = ProviderDto(id=1, name="P", trip_ids=[5, 6, 7])
    trips = [
        TruckTripDto(id=5, trip_id="V-5", period="2024/2025", total_kgs_destination=100),
        TruckTripDto(id=6, period=None, total_kgs_destination=None),
        TruckTripDto(id=7, trip_id="V-7", period="2024/2025", total_kgs_destination=50),
    ]
    rows = provider_period_rows([provider], trips)
    assert [(r.period, r.trip_labels, r.delivered_kgs) for r in rows] == [
        ("2024/2025", ["V-5", "V-7"], 150),
        ("—", ["#6"], 0),
    ]


# ------------------------------------------------------------------
# Opciones de formularios
# ------------------------------------------------------------------
def test_harvest_field_dependencies(data):
    deps = harvest_field_dependencies(
        1, "La Victoria", data["lots"], data["cycles"], data["stocks"], data["trips"]
    )
    assert [o.label for o in deps["lots"]] == ["L1", "L2"]
    assert deps["cycles"] == [Option(id=100, label="C-100 · Soja")]
    assert deps["stocks"] == [Option(id=300, label="S-300")]
    assert [o.id for o in deps["truckTrips"]] == [401, 400]


def test_harvest_field_dependencies_by_name_only(data):
    deps = harvest_field_dependencies(
        None, "el ñandú", data["lots"], data["cycles"], data["stocks"], data["trips"]
    )
    assert [o.id for o in deps["lots"]] == [20]
    assert [o.id for o in deps["cycles"]] == [101]
    assert deps["stocks"] == []
    assert deps["truckTrips"] == []


def test_stock_field_dependencies(data):
    assert [o.id for o in stock_field_dependencies(2, None, data["cycles"])["cycles"]] == [101]


def test_cycle_options_newest_first(data):
    assert [o.id for o in cycle_options(data["cycles"])] == [100, 101]


def test_lots_by_field_id(data):
    assert lots_by_field_id(data["lots"], 1) == [Option(id=10, label="L1")]


def test_trip_origin_options(data):
    harvests = trip_origin_options(
        TripOriginTypeEnum.harvest, data["harvests"], data["stocks"], data["cycles"], field_id=1
    )
    assert [(o.id, o.label, o.cycle_row_id) for o in harvests] == [(200, "H-200", 100)]

    stocks = trip_origin_options(TripOriginTypeEnum.stock, data["harvests"], data["stocks"], data["cycles"])
    assert [(o.id, o.cycle_label, o.cycle_row_id) for o in stocks] == [(300, "C-100", 100)]

    assert trip_origin_options(
        TripOriginTypeEnum.harvest, data["harvests"], data["stocks"], field_id=2
    ) == []


# ------------------------------------------------------------------
# Estado del evento de viaje
# ------------------------------------------------------------------
def _origin_payload(harvest_id=None, stock_id=None, kgs=0):
    return {
        "Cosecha Origen (opcional)": [harvest_id] if harvest_id else [],
        "Stock Origen (opcional)": [stock_id] if stock_id else [],
        "Kg carga origen": kgs,
    }


def test_new_trip_event_status_against_harvest_availability(data):
    status, available = compute_trip_event_status(
        _origin_payload(harvest_id=200, kgs=4000), data["harvests"], data["stocks"]
    )
    assert status == TripEventStatusEnum.applied
    assert available == 5000

    status, _ = compute_trip_event_status(
        _origin_payload(harvest_id=200, kgs=6000), data["harvests"], data["stocks"]
    )
    assert status == TripEventStatusEnum.kgs_error


def test_new_trip_event_status_against_stock(data):
    status, available = compute_trip_event_status(
        _origin_payload(stock_id=300, kgs=8000), data["harvests"], data["stocks"]
    )
    assert status == TripEventStatusEnum.applied
    assert available == 8000


def test_edit_trip_returns_previous_kgs_to_same_origin(data, fake_client):
    existing = get_truck_trip(fake_client, 400)

    status, available = compute_trip_event_status(
        {"Kg carga origen": 19000}, data["harvests"], data["stocks"], existing=existing
    )
    assert status == TripEventStatusEnum.applied
    assert available == 20000

    status, _ = compute_trip_event_status(
        {"Kg carga origen": 21000}, data["harvests"], data["stocks"], existing=existing
    )
    assert status == TripEventStatusEnum.kgs_error


def test_trip_event_status_without_origin_is_none(data):
    assert compute_trip_event_status({"Kg carga origen": 10}, data["harvests"], data["stocks"]) == (None, None)


def test_edit_trip_with_cleared_origin_keeps_previous_origin(data, fake_client):
    existing = get_truck_trip(fake_client, 400)
    payload = {"Cosecha Origen (opcional)": [], "Stock Origen (opcional)": [], "Kg carga origen": 19000}

    status, available = compute_trip_event_status(payload, data["harvests"], data["stocks"], existing=existing)
    assert status == TripEventStatusEnum.applied
    assert available == 20000
