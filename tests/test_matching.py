from schemas.shared import Option
from services.matching_service import (
    are_field_labels_equivalent,
    extract_field_id_from_label,
    find_matching_field_option,
    first_non_empty,
    matches_field,
    normalize_field_label,
    resolve_trip_origin_field,
)
from utils.text import slugify, spanish_sort_key, strip_diacritics


# ------------------------------------------------------------------
# Texto
# ------------------------------------------------------------------
def test_spanish_sort_key_places_enie_after_n():
    words = ["Ñandú", "Oliva", "nube", "Álamo", "zorro"]
    assert sorted(words, key=spanish_sort_key) == ["Álamo", "nube", "Ñandú", "Oliva", "zorro"]


def test_spanish_sort_key_ignores_case_and_accents():
    assert spanish_sort_key("Maíz")[0] == spanish_sort_key("maiz")[0]


def test_slugify_and_strip_diacritics():
    assert slugify("Listo para cosechar") == "listo-para-cosechar"
    assert slugify("En cosecha") == "en-cosecha"
    assert strip_diacritics("Ñandú") == "Nandu"


# ------------------------------------------------------------------
# Etiquetas de campo
# ------------------------------------------------------------------
def test_normalize_field_label():
    assert normalize_field_label("  La   Victoria (#12) ") == "la victoria"
    assert normalize_field_label("El Ñandú") == "el nandu"
    assert normalize_field_label(None) == ""


def test_extract_field_id_from_label():
    assert extract_field_id_from_label("La Victoria #12") == 12
    assert extract_field_id_from_label("Campo ID 7") == 7
    assert extract_field_id_from_label("Norte (3)") == 3
    assert extract_field_id_from_label("Sin id") is None
    assert extract_field_id_from_label("Campo ID: 12") == 12
    assert extract_field_id_from_label("Campo id-4") == 4
    assert extract_field_id_from_label("Campo (0)") is None
    assert extract_field_id_from_label("Sur #0 (5)") == 5


def test_are_field_labels_equivalent_allows_prefix():
    assert are_field_labels_equivalent("La Victoria", "la victoria norte")
    assert not are_field_labels_equivalent("La Victoria", "")


# ------------------------------------------------------------------
# matches_field
# ------------------------------------------------------------------
def test_lot_without_field_id_matches_by_name():
    assert matches_field(None, "La Victoria", 9, "la victoria")
    assert matches_field(None, " LA VICTORIA ", None, "La Victoria")


def test_ids_decide_when_both_sides_have_them():
    assert matches_field(9, "Otro nombre", 9, "la victoria")
    assert not matches_field(3, "La Victoria", 9, "la victoria")


def test_blank_names_never_match():
    assert not matches_field(None, "", None, "")


def test_id_match_wins_over_label_match_in_same_option_set():
    options = [Option(id=4, label="la victoria"), Option(id=9, label="Campo Norte")]
    # Etiqueta apunta a la opción 4 pero el id explícito manda
    assert find_matching_field_option(options, field_id=9, label="La Victoria").id == 9
    assert find_matching_field_option(options, label="La Victoria").id == 4


def test_find_matching_field_option_fallbacks():
    options = [
        Option(id=1, label="La Victoria"),
        Option(id=2, label="La Victoria Sur"),
        Option(id=3, label="El Ñandú"),
    ]
    assert find_matching_field_option(options, label="Campo #3").id == 3
    assert find_matching_field_option(options, label="el nandu").id == 3
    # "La Victoria" es exacto para 1 aunque 2 también sea prefijo
    assert find_matching_field_option(options, label="la victoria").id == 1
    # Prefijo ambiguo => sin match
    assert find_matching_field_option(options, label="La") is None
    assert find_matching_field_option(options, label="") is None


def test_resolve_trip_origin_field_order_and_synthetic_option():
    options = [Option(id=1, label="La Victoria"), Option(id=2, label="El Ñandú")]
    hit = resolve_trip_origin_field("", "El Ñandú", "La Victoria", options)
    assert hit.id == 2

    synthetic = resolve_trip_origin_field(None, "  ", "Campo Perdido", options)
    assert synthetic == Option(id=None, label="Campo Perdido")

    assert resolve_trip_origin_field(None, None, None, options) is None


def test_first_non_empty():
    assert first_non_empty(["", "  ", " B ", "C"]) == "B"
    assert first_non_empty([None, ""]) == ""
