"""Unit tests for the cascading availability matcher against an in-memory store."""
import pytest

from daily_care_api.app.core.exceptions import InvalidInput, StorageUnavailable
from daily_care_api.app.services.availability_service import AvailabilityMatcher


class FakeStore:
    """In-memory AvailabilityStore.

    ``rows`` are (service_id, name, postcode_search) tuples.  Queries are
    recorded so tests can assert on the cascade.
    """

    def __init__(self, rows):
        self.rows = rows
        self.queries = []

    def _result(self, predicate, service_id):
        matches = [
            {"service_id": sid, "name": name, "description": None, "slug": None}
            for sid, name, key in self.rows
            if predicate(key) and (service_id is None or sid == service_id)
        ]
        return sorted(matches, key=lambda row: row["name"])

    def find_exact(self, key, service_id=None):
        self.queries.append(("exact", key))
        return self._result(lambda stored: stored == key, service_id)

    def find_prefix(self, prefix, service_id=None):
        self.queries.append(("prefix", prefix))
        return self._result(lambda stored: stored.startswith(prefix), service_id)


class BrokenStore:
    def find_exact(self, key, service_id=None):
        raise StorageUnavailable("Availability lookup failed")

    def find_prefix(self, prefix, service_id=None):
        raise StorageUnavailable("Availability lookup failed")


def test_full_match_wins_over_broader_tiers():
    store = FakeStore([(1, "Home Care", "SW1A1AA"), (2, "Nursing", "SW1A")])
    result = AvailabilityMatcher(store).match("sw1a 1aa")
    assert result.tier == "full"
    assert [s["service_id"] for s in result.services] == [1]
    assert store.queries == [("exact", "SW1A1AA")]


def test_falls_through_to_area_tier():
    store = FakeStore([(3, "Companionship", "SW")])
    result = AvailabilityMatcher(store).match("SW1A 1AA")
    assert result.tier == "area"
    assert result.available
    assert [s["name"] for s in result.services] == ["Companionship"]
    assert store.queries == [
        ("exact", "SW1A1AA"),
        ("prefix", "SW1A1"),
        ("prefix", "SW1A"),
        ("prefix", "SW"),
    ]


def test_sector_tier_matches_stored_keys_with_prefix():
    store = FakeStore([(1, "Home Care", "SW1A1BB"), (2, "Nursing", "SW1A2AA")])
    result = AvailabilityMatcher(store).match("SW1A 1AA")
    assert result.tier == "sector"
    assert [s["service_id"] for s in result.services] == [1]


def test_outward_tier():
    store = FakeStore([(2, "Nursing", "SW1A2AA")])
    result = AvailabilityMatcher(store).match("SW1A 1AA")
    assert result.tier == "outward"


def test_no_match_is_a_successful_empty_result():
    store = FakeStore([(1, "Home Care", "M11AA")])
    result = AvailabilityMatcher(store).match("ZZ99 9ZZ")
    assert result.tier is None
    assert not result.available
    assert result.services == []
    assert result.zipcode == "ZZ999ZZ"


def test_results_are_deduplicated_and_sorted_by_name():
    store = FakeStore(
        [
            (2, "Nursing", "M11AB"),
            (1, "Home Care", "M11AC"),
            (2, "Nursing", "M11AD"),
        ]
    )
    result = AvailabilityMatcher(store).match("M1 1AA")
    assert result.tier == "sector"
    assert [s["service_id"] for s in result.services] == [1, 2]


def test_service_filter_restricts_every_tier():
    store = FakeStore([(1, "Home Care", "SW1A1AA"), (2, "Nursing", "SW")])
    result = AvailabilityMatcher(store).match("SW1A1AA", service_id=2)
    assert result.tier == "area"
    assert [s["service_id"] for s in result.services] == [2]


@pytest.mark.parametrize("raw", [None, "", "   ", "--"])
def test_empty_postcode_is_rejected(raw):
    with pytest.raises(InvalidInput, match="Zipcode is required"):
        AvailabilityMatcher(FakeStore([])).match(raw)


def test_too_short_postcode_is_rejected_without_querying():
    store = FakeStore([(1, "Home Care", "M")])
    with pytest.raises(InvalidInput, match="too short"):
        AvailabilityMatcher(store).match("m")
    assert store.queries == []


def test_strict_mode_rejects_non_uk_input():
    store = FakeStore([(1, "Home Care", "12345")])
    with pytest.raises(InvalidInput, match="not a valid UK postcode"):
        AvailabilityMatcher(store, strict_uk=True).match("12345")
    assert store.queries == []


def test_strict_mode_accepts_outward_code():
    store = FakeStore([(1, "Home Care", "SW1A1AA")])
    result = AvailabilityMatcher(store, strict_uk=True).match("SW1A")
    # Four characters: the outward token is the string minus its last three.
    assert result.tier == "outward"
    assert store.queries == [("exact", "SW1A"), ("prefix", "S")]


def test_permissive_mode_passes_any_string_through_the_cascade():
    store = FakeStore([(1, "Home Care", "12345")])
    result = AvailabilityMatcher(store).match("12345")
    assert result.tier == "full"


def test_storage_failure_propagates():
    with pytest.raises(StorageUnavailable):
        AvailabilityMatcher(BrokenStore()).match("M1 1AA")
