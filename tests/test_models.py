"""
Tests for entity decoding, state models, display helpers and error reports.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from society_console.errors import GatewayError, describe_error
from society_console.lib.objects import to_json
from society_console.models import (
    ExtraExpense,
    Flat,
    ListingState,
    MeterReading,
    PagedResult,
    PaginationState,
    UnitCharge,
)
from society_console.models.entities import wire_name
from society_console.utils import format_date, label_or_id, parse_date, safe_value, to_nullable_number


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

def test_from_dict_reads_camel_and_pascal_keys():
    flat = Flat.from_dict(
        {"flatId": "5", "ApartmentId": 2, "flatNumber": "B-5", "SuperBuiltUpArea": "980.25", "isRented": "true"}
    )
    assert flat.flat_id == 5
    assert flat.apartment_id == 2
    assert flat.flat_number == "B-5"
    assert flat.super_built_up_area == Decimal("980.25")
    assert flat.is_rented is True
    assert flat.is_active is True
    assert flat.entity_id == 5


def test_from_dict_decodes_dates():
    reading = MeterReading.from_dict({"meterReadingId": 1, "readingDate": "2024-06-05T00:00:00", "billingFromDate": None})
    assert reading.reading_date == date(2024, 6, 5)
    assert reading.billing_from_date is None


def test_from_dict_falls_back_to_alias_keys():
    expense = ExtraExpense.from_dict({"extraExpenseid": 7, "monthYear": "2024-05-01T00:00:00", "expenseAmount": 99})
    assert expense.entity_id == 7
    assert expense.expense_month == date(2024, 5, 1)

    # A null camelCase key does not hide the alias
    created = ExtraExpense.from_dict({"extraExpenseId": None, "extraExpenseid": 8})
    assert created.extra_expense_id == 8
    assert "extraExpenseid" not in created.to_payload()


def test_to_payload_uses_wire_names():
    charge = UnitCharge(unit_charge_id=1, effective_from=date(2024, 4, 1), charge_per_unit=Decimal("7.25"))
    payload = charge.to_payload()
    assert payload["unitChargeId"] == 1
    assert payload["effectiveFrom"] == "2024-04-01"
    assert payload["chargePerUnit"] == "7.25"
    assert MeterReading(reading_value=Decimal("12345678.123456789")).to_payload()["readingValue"] == "12345678.123456789"
    assert payload["applicableMonthFrom"] is None
    assert wire_name("super_built_up_area") == "superBuiltUpArea"


def test_coerce_converts_form_input():
    assert Flat.coerce("floor_number", "3") == 3
    assert Flat.coerce("floor_number", "  ") is None
    assert Flat.coerce("flat_number", "") == ""
    assert Flat.coerce("super_built_up_area", "12.5") == Decimal("12.5")
    assert MeterReading.coerce("reading_date", "2024-06-05") == date(2024, 6, 5)
    with pytest.raises(KeyError):
        Flat.coerce("colour", "red")


def test_field_kinds():
    kinds = MeterReading.field_kinds()
    assert kinds["reading_date"] == "date"
    assert kinds["reading_value"] == "number"
    assert kinds["is_estimated"] == "bool"
    assert kinds["notes"] == "text"


# ---------------------------------------------------------------------------
# State models
# ---------------------------------------------------------------------------

def test_paged_result_defaults_for_missing_or_odd_bodies():
    assert PagedResult.from_response(None) == PagedResult()
    page = PagedResult.from_response({"items": "nope", "totalCount": "12"})
    assert page.items == []
    assert page.total_count == 12
    assert page.page_size == 15


def test_paged_result_map():
    page = PagedResult(items=[{"flatId": 1}], total_count=1, total_pages=1).map(Flat.from_dict)
    assert page.items == [Flat(flat_id=1)]
    assert page.total_pages == 1


def test_pagination_counters():
    state = PaginationState(page_number=3, page_size=8, total_count=20, total_pages=3)
    assert state.range_text(4) == "Showing 17-20 of 20"
    assert state.has_previous is True
    assert state.has_next is False
    assert PaginationState().range_text(0) == "Showing 0 of 0"


def test_listing_state_round_trips_through_dict():
    state = ListingState(
        rows=[{"flatId": 1}],
        sort_field="flatNumber",
        sort_ascending=False,
        expanded_row_id=1,
        pagination=PaginationState(2, 8, 9, 2),
    )
    restored = ListingState.from_dict(state.to_dict())
    assert restored == state
    assert restored.range_text == "Showing 9-9 of 9"
    assert ListingState.from_dict(None) == ListingState()


def test_empty_state_waits_for_overlay():
    assert ListingState(overlay_visible=True).is_empty is False
    assert ListingState().is_empty is True


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def test_parse_date_formats():
    assert parse_date("2024-12-25") == date(2024, 12, 25)
    assert parse_date("2024-12-25T10:30:00Z") == date(2024, 12, 25)
    assert parse_date("12/25/2024") == date(2024, 12, 25)
    assert parse_date(datetime(2024, 12, 25, 9)) == date(2024, 12, 25)
    assert parse_date("25.12.2024") is None
    assert parse_date(None) is None


def test_to_nullable_number():
    assert to_nullable_number(" 12.50 ") == Decimal("12.50")
    assert to_nullable_number(3) == Decimal(3)
    assert to_nullable_number("") is None
    assert to_nullable_number("abc") is None
    assert to_nullable_number("NaN") is None
    assert to_nullable_number(True) is None


def test_safe_value_and_format_date():
    assert safe_value(None) == "-"
    assert safe_value("  ") == "-"
    assert safe_value(False) == "No"
    assert safe_value(Decimal("7.25")) == "7.25"
    assert safe_value(date(1991, 12, 25)) == "25-Dec-1991"
    assert format_date("not a date", fallback="n/a") == "n/a"


def test_label_or_id():
    assert label_or_id("Tower A", 1) == "Tower A"
    assert label_or_id("", 5) == "#5"
    assert label_or_id(None, 5, "Meter") == "Meter #5"
    assert label_or_id(None, 0) == "#0"
    assert label_or_id(None, 0, "Flat") == "Flat #0"
    assert label_or_id(None, None) == "-"
    assert label_or_id(" ", "") == "-"


def test_to_json_handles_dates_and_decimals():
    assert to_json({"d": date(2024, 1, 2), "n": Decimal("1.5")}) == '{"d": "2024-01-02", "n": "1.5"}'


# ---------------------------------------------------------------------------
# Error reports
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "status, message",
    [
        (400, "Invalid input. Please correct the form."),
        (401, "You are not authorized. Please login again."),
        (404, "Requested resource not found."),
        (409, "Conflict. The data might already exist."),
        (503, "Server is currently unavailable. Try again soon."),
    ],
)
def test_known_statuses_have_fixed_messages(status, message):
    report = describe_error(GatewayError(f"HTTP {status}", status_code=status, api_message="ignored"))
    assert report.user_message == message
    assert report.status_code == status


def test_unknown_status_prefers_api_message():
    assert describe_error(GatewayError("HTTP 418", 418, "Teapot")).user_message == "Teapot"
    assert describe_error(GatewayError("HTTP 418", 418)).user_message == "Unexpected error (Code: 418)"


def test_other_errors_use_fallback():
    report = describe_error(ValueError("bad"), fallback_message="Could not save.")
    assert report.user_message == "Could not save."
    assert report.developer_message == "bad"
