"""
Tests for the listing view model: sorting, expansion, paging, deletes and
the loading overlay.
"""
import asyncio
import itertools
import logging

import pytest

from society_console.errors import GatewayError
from society_console.listing import ListingViewModel, LoadingOverlay, compare_values, sort_key, sort_rows
from society_console.models.entities import MeterReading
from society_console.screens import open_listing
from society_console.services import DemoCrudGateway


def ids(listing):
    return [row["flatId"] for row in listing.rows]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def test_sort_same_field_twice_toggles_direction(make_flat_listing):
    listing = make_flat_listing()
    asyncio.run(listing.load())

    assert listing.sort("flatNumber") is True
    assert listing.state.sort_field == "flatNumber"
    assert listing.state.sort_ascending is True

    assert listing.sort("flatNumber") is True
    assert listing.state.sort_field == "flatNumber"
    assert listing.state.sort_ascending is False


def test_sort_other_field_resets_to_ascending(make_flat_listing):
    listing = make_flat_listing(sort_field="flatNumber", sort_ascending=False)
    asyncio.run(listing.load())

    listing.sort("floorNumber")
    assert listing.state.sort_field == "floorNumber"
    assert listing.state.sort_ascending is True


def test_strings_sort_case_insensitively(make_flat_listing):
    listing = make_flat_listing(sort_field="flatNumber")
    asyncio.run(listing.load())
    assert ids(listing) == [2, 4, 1, 3]

    listing.sort("flatNumber")
    assert ids(listing) == [3, 1, 4, 2]


def test_numbers_sort_numerically(make_flat_listing):
    listing = make_flat_listing(sort_field="floorNumber")
    asyncio.run(listing.load())
    # 2 < 9 < 10 < 100, not the string order "10" < "100" < "2" < "9"
    assert ids(listing) == [4, 2, 1, 3]


def test_date_fields_sort_chronologically_with_mixed_formats(make_flat_listing):
    listing = make_flat_listing(sort_field="possessionDate")
    asyncio.run(listing.load())
    assert ids(listing) == [2, 4, 1, 3]


def test_none_sorts_last_in_both_directions(make_flat_listing):
    listing = make_flat_listing(sort_field="area")
    asyncio.run(listing.load())
    assert ids(listing) == [4, 2, 3, 1]

    listing.sort("area")
    assert ids(listing) == [3, 2, 4, 1]


def test_unparsable_dates_fall_back_to_string_comparison():
    assert compare_values("pending", "Approved", date_like=True) == 1
    assert compare_values("2024-01-02", "2024-01-10", date_like=True) == -1


def test_mixed_date_column_sorts_the_same_from_any_input_order():
    values = ["12/01/2023", "01/05/2024", "05-bad", 7, "2023-06-30"]
    orders = {
        tuple(r["readingDate"] for r in sort_rows([{"readingDate": v} for v in perm], "readingDate"))
        for perm in itertools.permutations(values)
    }
    assert orders == {("2023-06-30", "12/01/2023", "01/05/2024", 7, "05-bad")}


def test_mixed_numbers_and_text_sort_numbers_first():
    rows = [{"k": "b"}, {"k": 10}, {"k": "A"}, {"k": 2}]
    assert [r["k"] for r in sort_rows(rows, "k")] == [2, 10, "A", "b"]
    assert sort_key("x") > sort_key(10**9)


def test_sort_rows_keeps_ties_in_original_order():
    rows = [{"k": 1, "n": "x"}, {"k": 1, "n": "y"}, {"k": 0, "n": "z"}]
    assert [r["n"] for r in sort_rows(rows, "k")] == ["z", "x", "y"]
    assert [r["n"] for r in sort_rows(rows, "k", ascending=False)] == ["x", "y", "z"]


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------

def test_expand_toggles(make_flat_listing):
    listing = make_flat_listing()
    asyncio.run(listing.load())

    assert listing.expand(2) is True
    assert listing.state.expanded_row_id == 2
    listing.expand(3)
    assert listing.state.expanded_row_id == 3
    listing.expand(3)
    assert listing.state.expanded_row_id is None


def test_expanded_id_without_row_reads_collapsed(make_flat_listing, flat_gateway):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    listing.expand(1)

    # Row removed elsewhere, then a refresh
    asyncio.run(flat_gateway.remove("/flat/Delete-Flat", 1, "7"))
    asyncio.run(listing.load())

    assert listing.state.expanded_row_id is None
    assert listing.expand(99) is True
    assert listing.state.expanded_row_id is None


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------

@pytest.fixture
def paged_listing(demo_gateway, clock, actor):
    return ListingViewModel(
        demo_gateway,
        list_endpoint="/meterreading/Get-All-MeterReadings-Paged",
        delete_endpoint="/meterreading/Delete-MeterReading",
        id_field="meter_reading_id",
        decode=MeterReading.from_dict,
        sort_field="reading_date",
        sort_ascending=False,
        page_size=8,
        actor=actor,
        clock=clock,
        min_loading_ms=0,
    )


def test_paged_load_requests_page_and_size(paged_listing, demo_gateway):
    asyncio.run(paged_listing.load())

    assert demo_gateway.calls[-1] == (
        "fetch_paged",
        "/meterreading/Get-All-MeterReadings-Paged?pageNumber=1&pageSize=8",
    )
    pagination = paged_listing.state.pagination
    assert (pagination.total_count, pagination.total_pages) == (12, 2)
    assert len(paged_listing.rows) == 8
    assert paged_listing.state.range_text == "Showing 1-8 of 12"
    dates = [row.reading_date for row in paged_listing.rows]
    assert dates == sorted(dates, reverse=True)


@pytest.mark.parametrize("page", [0, -1])
def test_change_page_ignores_non_positive_pages(paged_listing, demo_gateway, page):
    asyncio.run(paged_listing.load())
    calls = len(demo_gateway.calls)

    assert asyncio.run(paged_listing.change_page(page)) is False
    assert paged_listing.state.pagination.page_number == 1
    assert len(demo_gateway.calls) == calls


def test_change_page_fetches_requested_page(paged_listing, demo_gateway):
    asyncio.run(paged_listing.load())

    assert asyncio.run(paged_listing.change_page(2)) is True
    assert demo_gateway.calls[-1][1].endswith("?pageNumber=2&pageSize=8")
    assert len(paged_listing.rows) == 4
    assert paged_listing.state.range_text == "Showing 9-12 of 12"


def test_change_page_has_no_upper_clamp(paged_listing):
    asyncio.run(paged_listing.load())

    assert asyncio.run(paged_listing.change_page(99)) is True
    assert paged_listing.state.pagination.page_number == 99
    assert paged_listing.rows == []


def test_change_page_size_returns_to_first_page(paged_listing, demo_gateway):
    asyncio.run(paged_listing.load())
    asyncio.run(paged_listing.change_page(2))

    assert asyncio.run(paged_listing.change_page_size(15)) is True
    assert paged_listing.state.pagination.page_number == 1
    assert paged_listing.state.pagination.page_size == 15
    assert demo_gateway.calls[-1][1].endswith("?pageNumber=1&pageSize=15")
    assert len(paged_listing.rows) == 12

    assert asyncio.run(paged_listing.change_page_size(0)) is False
    assert paged_listing.state.pagination.page_size == 15


def test_unpaged_listing_ignores_paging(make_flat_listing):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    assert listing.is_paged is False
    assert asyncio.run(listing.change_page(2)) is False


# ---------------------------------------------------------------------------
# Loading overlay
# ---------------------------------------------------------------------------

def test_fast_fetch_keeps_overlay_for_minimum_time(make_flat_listing, flat_gateway, clock):
    flat_gateway.fetch_seconds = 0.010
    listing = make_flat_listing(min_loading_ms=300)

    asyncio.run(listing.load())

    assert listing.overlay_visible is True
    assert listing.state.is_loading is False
    assert listing.overlay.remaining() == pytest.approx(0.290)
    clock.advance(0.289)
    assert listing.overlay_visible is True
    clock.advance(0.002)
    assert listing.overlay_visible is False


def test_slow_fetch_hides_overlay_on_completion(make_flat_listing, flat_gateway):
    flat_gateway.fetch_seconds = 0.5
    listing = make_flat_listing(min_loading_ms=300)

    asyncio.run(listing.load())

    assert listing.overlay_visible is False
    assert listing.overlay.remaining() == 0.0


def test_actions_disabled_while_overlay_visible(make_flat_listing, flat_gateway, clock):
    edits = []
    listing = make_flat_listing(min_loading_ms=300, sort_field="flatNumber", on_edit=edits.append)
    asyncio.run(listing.load())
    before = ids(listing)

    assert listing.overlay_visible is True
    assert listing.sort("flatNumber") is False
    assert listing.expand(1) is False
    assert listing.request_edit(1) is False
    assert asyncio.run(listing.delete(1)) is False
    assert ids(listing) == before
    assert listing.state.sort_ascending is True
    assert listing.state.expanded_row_id is None
    assert edits == []
    assert "remove" not in flat_gateway.operations()

    clock.advance(0.3)
    assert listing.sort("flatNumber") is True


def test_overlay_notifies_when_it_hides():
    changes = []

    async def scenario():
        overlay = LoadingOverlay(min_visible_ms=30, on_hidden=lambda: changes.append("hidden"))
        overlay.start()
        overlay.finish()
        await asyncio.sleep(0.08)

    asyncio.run(scenario())
    assert changes == ["hidden"]


def test_close_cancels_pending_hide_notification(make_flat_listing):
    changes = []

    async def scenario():
        listing = make_flat_listing(clock=None, min_loading_ms=30, on_change=lambda: changes.append(1))
        await listing.load()
        seen = len(changes)
        listing.close()
        await asyncio.sleep(0.08)
        return seen

    seen = asyncio.run(scenario())
    assert len(changes) == seen


# ---------------------------------------------------------------------------
# Fetch failures and superseded fetches
# ---------------------------------------------------------------------------

def test_load_failure_clears_rows_and_reraises(paged_listing, demo_gateway):
    asyncio.run(paged_listing.load())
    demo_gateway.fetch_error = GatewayError("HTTP 500", status_code=500)

    with pytest.raises(GatewayError):
        asyncio.run(paged_listing.load())

    assert paged_listing.rows == []
    assert paged_listing.state.pagination.total_count == 0
    assert paged_listing.state.pagination.total_pages == 0
    assert paged_listing.state.is_loading is False


class GatedGateway(DemoCrudGateway):
    """Each fetch waits for its own gate and returns its own rows."""

    def __init__(self, responses):
        super().__init__(records={}, lists={}, id_keys={})
        self.responses = list(responses)
        self.gates = []

    async def fetch_all(self, endpoint):
        index = len(self.gates)
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return self.responses[index]


def test_only_latest_fetch_writes_rows():
    gateway = GatedGateway([[{"flatId": 1}], [{"flatId": 2}]])
    listing = ListingViewModel(
        gateway, "/flat/Get-All-Flats", "/flat/Delete-Flat", "flatId", min_loading_ms=0
    )

    async def scenario():
        first = asyncio.create_task(listing.load())
        await asyncio.sleep(0)
        second = asyncio.create_task(listing.load())
        await asyncio.sleep(0)
        gateway.gates[1].set()
        await second
        gateway.gates[0].set()
        await first

    asyncio.run(scenario())
    assert listing.rows == [{"flatId": 2}]
    assert listing.state.is_loading is False


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def test_delete_removes_row_and_reloads(make_flat_listing, flat_gateway):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    listing.expand(2)

    assert asyncio.run(listing.delete(2)) is True

    assert ("remove", "/flat/Delete-Flat", 2, "42") in flat_gateway.calls
    assert flat_gateway.operations()[-1] == "fetch_all"
    assert 2 not in ids(listing)
    assert listing.state.expanded_row_id is None


def test_delete_survives_reload_failure(make_flat_listing, flat_gateway, caplog):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    flat_gateway.fetch_error_after_remove = GatewayError("Network error: timed out")

    with caplog.at_level(logging.WARNING):
        assert asyncio.run(listing.delete(3)) is True

    assert ids(listing) == [1, 2, 4]
    assert "reload after deleting 3 failed" in caplog.text


def test_delete_failure_propagates_and_keeps_rows(make_flat_listing, flat_gateway):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    flat_gateway.remove_error = GatewayError("HTTP 409", status_code=409)

    with pytest.raises(GatewayError):
        asyncio.run(listing.delete(1))

    assert ids(listing) == [1, 2, 3, 4]


def test_delete_without_actor_sends_anonymous_id(make_flat_listing, flat_gateway):
    listing = make_flat_listing(actor=None)
    asyncio.run(listing.load())

    asyncio.run(listing.delete(4))

    assert ("remove", "/flat/Delete-Flat", 4, "0") in flat_gateway.calls


# ---------------------------------------------------------------------------
# Edit requests and external refresh
# ---------------------------------------------------------------------------

def test_request_edit_hands_id_to_callback(make_flat_listing):
    edits = []
    listing = make_flat_listing(on_edit=edits.append)
    asyncio.run(listing.load())

    assert listing.request_edit(3) is True
    assert edits == [3]


def test_request_edit_without_callback_is_refused(make_flat_listing):
    listing = make_flat_listing()
    asyncio.run(listing.load())
    assert listing.request_edit(3) is False


def test_invalidate_reloads_and_notifies_until_unsubscribed(make_flat_listing, flat_gateway):
    listing = make_flat_listing()
    seen = []
    unsubscribe = listing.on_external_invalidate(lambda: seen.append("refreshed"))

    asyncio.run(listing.invalidate())
    assert seen == ["refreshed"]
    assert flat_gateway.operations() == ["fetch_all"]

    unsubscribe()
    asyncio.run(listing.invalidate())
    assert seen == ["refreshed"]
    assert flat_gateway.operations() == ["fetch_all", "fetch_all"]


def test_open_listing_uses_screen_defaults(demo_gateway, clock):
    listing = open_listing("meter_reading", demo_gateway, clock=clock, min_loading_ms=0)
    asyncio.run(listing.load())

    assert listing.is_paged
    assert listing.state.sort_field == "reading_date"
    assert listing.state.sort_ascending is False
    assert isinstance(listing.rows[0], MeterReading)
    assert demo_gateway.calls[-1][1].startswith("/meterreading/Get-All-MeterReadings-Paged?")

    flats = open_listing("flat", demo_gateway, clock=clock, min_loading_ms=0)
    asyncio.run(flats.load())
    assert flats.is_paged is False
    assert [f.flat_number for f in flats.rows][:2] == ["A-101", "A-102"]
