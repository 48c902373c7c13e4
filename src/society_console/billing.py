"""
Billing period calculation for meter readings and unit charges.

A reading taken in the first week of a month bills the previous month;
anything later bills the month it was taken in:

    2024-06-05 -> May-2024  (2024-05-01 .. 2024-05-31)
    2024-06-08 -> June-2024 (2024-06-01 .. 2024-06-30)
    2024-01-03 -> December-2023

The period is always derived, never stored on its own. The derivation
helpers at the bottom plug it into an edit session so billing fields follow
the date they are derived from.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from society_console.utils import parse_date

#: Last day of the month that still bills the previous month.
PREVIOUS_MONTH_CUTOFF_DAY = 7

MIN_YEAR = 1900
MAX_YEAR = 2099

EMPTY_LABEL = "-"

FieldDerivation = Callable[[str, Any, Any], dict[str, Any]]


@dataclass(frozen=True)
class BillingPeriod:
    """
    Billing month derived from a reading or effective date.

    Attributes:
        from_date: First day of the billing month, None when underivable.
        to_date: Last day of the billing month, None when underivable.
        label: "<MonthName>-<Year>", or "-" when underivable.
    """

    from_date: date | None = None
    to_date: date | None = None
    label: str = EMPTY_LABEL

    @property
    def is_empty(self) -> bool:
        return self.from_date is None


EMPTY_PERIOD = BillingPeriod()


def billing_period(reading_date: Any) -> BillingPeriod:
    """
    Derive the billing period for a reading date.

    Args:
        reading_date: date, datetime, or a date string in ISO or m/d/y form.

    Returns:
        The billing period, or EMPTY_PERIOD when the input cannot be parsed
        or its year falls outside 1900-2099. Never raises.
    """
    parsed = parse_date(reading_date)
    if parsed is None or not MIN_YEAR <= parsed.year <= MAX_YEAR:
        return EMPTY_PERIOD

    year, month = parsed.year, parsed.month
    if parsed.day <= PREVIOUS_MONTH_CUTOFF_DAY:
        month -= 1
        if month == 0:
            month = 12
            year -= 1

    last_day = calendar.monthrange(year, month)[1]
    return BillingPeriod(
        from_date=date(year, month, 1),
        to_date=date(year, month, last_day),
        label=f"{calendar.month_name[month]}-{year}",
    )


def billing_derivation(
    source: str = "reading_date",
    from_field: str = "billing_from_date",
    to_field: str = "billing_to_date",
) -> FieldDerivation:
    """
    Build a session derivation that keeps billing dates in step with a date.

    When source changes, from_field and to_field are set to the derived
    period (both None when the new value is not a usable date).
    """

    def derive(name: str, value: Any, current: Any) -> dict[str, Any]:
        if name != source:
            return {}
        period = billing_period(value)
        return {from_field: period.from_date, to_field: period.to_date}

    return derive


def applicable_month_derivation(
    pairs: dict[str, str] | None = None,
) -> FieldDerivation:
    """
    Build a session derivation that tracks a tariff's applicable months.

    Args:
        pairs: Date field -> month field. Defaults to effective_from ->
            applicable_month_from and effective_to -> applicable_month_to.

    Clearing the date keeps the month already chosen.
    """
    mapping = pairs or {
        "effective_from": "applicable_month_from",
        "effective_to": "applicable_month_to",
    }

    def derive(name: str, value: Any, current: Any) -> dict[str, Any]:
        target = mapping.get(name)
        if target is None:
            return {}
        parsed = parse_date(value)
        if parsed is None:
            return {}
        return {target: parsed.month}

    return derive


def month_start_derivation(source: str = "expense_month") -> FieldDerivation:
    """
    Build a session derivation that snaps a month field to its first day.

    Month pickers send any day of the month; the record stores the month
    as its first day. Unparsable input is left as it is.
    """

    def derive(name: str, value: Any, current: Any) -> dict[str, Any]:
        if name != source:
            return {}
        parsed = parse_date(value)
        if parsed is None or parsed.day == 1:
            return {}
        return {source: parsed.replace(day=1)}

    return derive
