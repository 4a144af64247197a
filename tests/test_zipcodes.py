"""Unit tests for postcode normalisation and zipcode list handling."""
import pytest

from daily_care_api.app.services.zipcodes import (
    Literal,
    Parsed,
    classify_zipcode_item,
    dedupe,
    derive_tokens,
    is_uk_postcode,
    load_zipcodes,
    merge_zipcodes,
    normalize,
    normalize_list,
    remove_zipcodes,
)


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("SW1A 1AA", "SW1A1AA"),
        ("  m1   1aa ", "M11AA"),
        (None, ""),
        ("", ""),
        ("ec1a-1bb", "EC1A1BB"),
        ("\tw1a\n0ax", "W1A0AX"),
        ("!!!", ""),
        (12345, "12345"),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["SW1A 1AA", " m1 1aa ", "b-15 2tt", "ZZ99 9ZZ", "ünïcödé 12", "", "  ", "a.b,c;d", "12 34"],
)
def test_normalize_is_idempotent(raw):
    once = normalize(raw)
    assert normalize(once) == once


# ---------------------------------------------------------------------------
# derive_tokens
# ---------------------------------------------------------------------------


def test_derive_tokens_full_postcode():
    assert derive_tokens("SW1A1AA") == {
        "full": "SW1A1AA",
        "area": "SW",
        "outward": "SW1A",
        "sector": "SW1A1",
    }


def test_derive_tokens_single_character_yields_nothing():
    assert derive_tokens("M") == {}
    assert derive_tokens("") == {}


def test_derive_tokens_respects_length_thresholds():
    # Two characters: full and area only.
    assert derive_tokens("SW") == {"full": "SW", "area": "SW"}
    # Four characters: outward appears, sector does not.
    assert derive_tokens("M11A") == {"full": "M11A", "outward": "M", "area": "M"}
    # Five characters: sector appears.
    assert derive_tokens("M11AA") == {"full": "M11AA", "sector": "M11", "outward": "M1", "area": "M"}


def test_derive_tokens_no_area_for_leading_digit():
    tokens = derive_tokens("12345")
    assert "area" not in tokens
    assert tokens["full"] == "12345"
    assert tokens["sector"] == "123"


def test_every_token_is_a_prefix_of_full():
    tokens = derive_tokens("EC1A1BB")
    for value in tokens.values():
        assert tokens["full"].startswith(value)


def test_is_uk_postcode():
    assert is_uk_postcode("SW1A1AA")
    assert is_uk_postcode("M11AA")
    assert is_uk_postcode("SW1A")
    assert not is_uk_postcode("12345")
    assert not is_uk_postcode("ZZZZZZ")


# ---------------------------------------------------------------------------
# normalize_list
# ---------------------------------------------------------------------------


def test_classify_zipcode_item():
    assert classify_zipcode_item('["M2 2BB","M3 3CC"]') == Parsed(["M2 2BB", "M3 3CC"])
    assert classify_zipcode_item("M1 1AA") == Literal("M1 1AA")
    assert classify_zipcode_item("[not json") == Literal("[not json")
    assert classify_zipcode_item('["unterminated"') == Literal('["unterminated"')


def test_normalize_list_flattens_encoded_arrays():
    assert normalize_list(["M1 1AA", '["M2 2BB","M3 3CC"]']) == ["M11AA", "M22BB", "M33CC"]


def test_normalize_list_comma_separated_string():
    assert normalize_list("m1 1aa, M2 2BB ,, sw1a") == ["M11AA", "M22BB", "SW1A"]


def test_normalize_list_json_array_string():
    assert normalize_list('["m1 1aa", "M2 2BB"]') == ["M11AA", "M22BB"]


def test_normalize_list_does_not_deduplicate():
    assert normalize_list(["M1 1AA", "m11aa"]) == ["M11AA", "M11AA"]


def test_normalize_list_drops_empty_and_null_tokens():
    assert normalize_list(["", "  ", None, "null", "M1 1AA", "---"]) == ["M11AA"]
    assert normalize_list(None) == []


def test_normalize_list_treats_malformed_json_as_literal():
    assert normalize_list(['["M1 1AA"']) == ["M11AA"]


def test_normalize_list_nested_lists():
    assert normalize_list([["M1 1AA", "M2 2BB"], "M3 3CC"]) == ["M11AA", "M22BB", "M33CC"]


# ---------------------------------------------------------------------------
# merge / remove
# ---------------------------------------------------------------------------


def test_merge_zipcodes_reports_duplicates():
    merge = merge_zipcodes(["M11AA"], normalize_list(["m1 1aa", "M2 2BB"]))
    assert merge.added == ["M22BB"]
    assert merge.duplicates == ["M11AA"]
    assert merge.total == ["M11AA", "M22BB"]


def test_merge_zipcodes_duplicate_within_incoming():
    merge = merge_zipcodes([], ["M2 2BB", "m22bb"])
    assert merge.added == ["M22BB"]
    assert merge.duplicates == ["M22BB"]
    assert merge.total == ["M22BB"]


def test_merge_keeps_existing_order_first():
    merge = merge_zipcodes(["SW1A1AA", "B152TT"], ["E16JE", "B15 2TT", "CF101BH"])
    assert merge.total == ["SW1A1AA", "B152TT", "E16JE", "CF101BH"]


def test_remove_zipcodes():
    removal = remove_zipcodes(["M11AA", "M22BB", "M33CC"], ["m2 2bb", "ZZ99 9ZZ"])
    assert removal.removed == ["M22BB"]
    assert removal.not_found == ["ZZ999ZZ"]
    assert removal.total == ["M11AA", "M33CC"]


def test_dedupe_keeps_first_occurrence():
    assert dedupe(["B", "A", "B", "C", "A"]) == ["B", "A", "C"]


def test_load_zipcodes():
    assert load_zipcodes(None) == []
    assert load_zipcodes('["M11AA", "M22BB"]') == ["M11AA", "M22BB"]
    assert load_zipcodes("M1 1AA, M2 2BB") == ["M11AA", "M22BB"]
