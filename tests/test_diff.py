import pytest

from services.diff_service import compute_diff_payload, is_equal_value, update_with_diff
from services.harvest_service import get_harvest, harvest_dto_to_form_values, update_harvest
from utils.errors import NoChangesError


@pytest.mark.parametrize("a, b, expected", [
    ([3, 1, 2], [1, 2, 3], True),
    (["b", "a"], ["a", "b"], True),
    ([1, 2], [1, 2, 3], False),
    (1, 1.0, True),
    (1, "1", False),
    (None, "", False),
    (None, None, True),
    (True, 1, False),
    ([], None, False),
    ("Soja", "Soja", True),
])
def test_is_equal_value(a, b, expected):
    assert is_equal_value(a, b) is expected


def test_compute_diff_payload_only_changed_keys():
    prev = {"Lotes": [1, 3], "Notas": "", "KG Cosechados": 100.0}
    next_ = {"Lotes": [3, 1], "Notas": "nueva", "KG Cosechados": 100, "Stock": []}
    assert compute_diff_payload(prev, next_) == {"Notas": "nueva", "Stock": []}


def test_update_with_diff_without_changes_does_not_write(fake_client):
    payload = {"Nombre": "La Victoria"}
    with pytest.raises(NoChangesError):
        update_with_diff(fake_client, "fields", 1, payload, dict(payload))
    assert fake_client.writes() == []


def test_update_with_diff_sends_only_diff(fake_client):
    update_with_diff(fake_client, "fields", 1, {"Nombre": "A", "Notas": ""}, {"Nombre": "B", "Notas": ""})
    assert fake_client.writes() == [("update", "fields", 1, {"Nombre": "B"})]


def test_identical_harvest_edit_raises_no_changes(fake_client):
    values = harvest_dto_to_form_values(get_harvest(fake_client, 200))
    assert values["Fecha_fecha"] == "2025-03-10"
    assert values["Fecha_hora"] == "10:00"

    with pytest.raises(NoChangesError):
        update_harvest(fake_client, 200, values)
    assert fake_client.writes() == []


def test_harvest_edit_patches_changed_fields_only(fake_client):
    values = harvest_dto_to_form_values(get_harvest(fake_client, 200))
    values["Notas"] = "Lote húmedo"
    values["Stock"] = None

    update_harvest(fake_client, 200, values)
    assert fake_client.writes() == [
        ("update", "harvests", 200, {"Stock": [], "Notas": "Lote húmedo"}),
    ]
