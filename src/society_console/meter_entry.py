"""
Bulk meter reading entry.

Readings for every meter of an apartment are taken on one date, so they are
entered as a batch: pick the apartment and reading date, fetch one entry row
per meter, type the current readings, and finalise. Rows left blank are
skipped. The whole batch bills the same period, derived from the reading
date with the usual first-week rule (see billing.billing_period).

    batch = MeterReadingBatch(gateway, actor=actor)
    await batch.load_rows(apartment_id=1, reading_date="2024-06-05")
    batch.set_reading(2, "15234")
    await batch.finalise()
"""

import urllib.parse
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable, Mapping

from society_console.billing import BillingPeriod, billing_period
from society_console.lib import logs
from society_console.models.common import GatewayResponse
from society_console.services.actors import ActorProvider, resolve_actor_id
from society_console.services.crud_gateway import CrudGateway
from society_console.utils import parse_date

LOG = logs.logger(__file__)

ENTRY_ROWS_ENDPOINT = "/meterreading/Get-MeterReading-Entry-Rows"
BULK_ADD_ENDPOINT = "/meterreading/Add-MeterReadings-Bulk"
READING_TYPES_ENDPOINT = "/meterreading/Get-All-ReadingTypes"

#: Longest reading the meters can display.
MAX_READING_DIGITS = 12


class BatchError(ValueError):
    """A batch that cannot be loaded or finalised as entered."""


@dataclass
class EntryRow:
    """
    One meter of the batch.

    Attributes:
        meter_id: Meter the reading is for.
        flat_id: Flat the meter belongs to, None for common meters.
        label: Flat number and occupant, or the common meter's name.
        reading_type_id: Reading type sent with the reading.
        reading_text: Digits typed so far; blank rows are not sent.
        error: Validation message for the row, if any.
    """

    meter_id: int
    flat_id: int | None = None
    label: str = ""
    reading_type_id: int | None = None
    reading_text: str = ""
    error: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], default_type: int | None = None) -> "EntryRow":
        flat = record.get("flatNumber")
        occupant = record.get("ownerRenterDisplay")
        if record.get("isApartmentCommonMeter") or flat is None:
            label = "Common meter"
        else:
            label = " - ".join(str(part) for part in (flat, occupant) if part)
        type_id = record.get("readingTypeIdDefault")
        return cls(
            meter_id=int(record["meterId"]),
            flat_id=record.get("flatId"),
            label=label,
            reading_type_id=type_id if type_id is not None else default_type,
        )

    @property
    def is_filled(self) -> bool:
        return bool(self.reading_text.strip())


def default_reading_type(types: Iterable[Mapping[str, Any]]) -> int | None:
    """Pick the monthly reading type, else the first type, else None."""
    types = list(types)
    for record in types:
        name = str(record.get("readingTypeName") or record.get("typeName") or "")
        if "monthly" in name.strip().lower():
            return record.get("readingTypeId")
    return types[0].get("readingTypeId") if types else None


def digits_only(raw: str, max_length: int = MAX_READING_DIGITS) -> str:
    """Keep the digits of typed input, cut to max_length."""
    return "".join(ch for ch in str(raw) if ch.isdigit())[:max_length]


class MeterReadingBatch:
    """
    One bulk entry for an apartment and reading date.

    Attributes:
        apartment_id: Apartment whose meters are read.
        reading_date: Date the readings were taken.
        rows: Entry rows, one per meter, in the order the backend sent them.
    """

    def __init__(
        self,
        gateway: CrudGateway,
        actor: ActorProvider | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._gateway = gateway
        self._actor = actor
        self._today = today or date.today
        self.apartment_id: int | None = None
        self.reading_date: date | None = None
        self.rows: list[EntryRow] = []

    @property
    def period(self) -> BillingPeriod:
        """Billing period every reading of the batch falls in."""
        return billing_period(self.reading_date)

    def date_error(self, reading_date: Any) -> str | None:
        parsed = parse_date(reading_date)
        if parsed is None:
            return "Reading Date is required."
        if parsed > self._today():
            return "Future reading date is not allowed."
        return None

    async def load_rows(self, apartment_id: Any, reading_date: Any) -> list[EntryRow]:
        """
        Fetch the entry rows of an apartment for a reading date.

        Raises:
            BatchError: If the apartment or date is missing or the date lies
                in the future.
            GatewayError: If the backend call fails.
        """
        if apartment_id in (None, ""):
            raise BatchError("Apartment is required.")
        problem = self.date_error(reading_date)
        if problem is not None:
            raise BatchError(problem)

        self.apartment_id = int(apartment_id)
        self.reading_date = parse_date(reading_date)
        try:
            types = await self._gateway.fetch_all(READING_TYPES_ENDPOINT)
        except Exception:
            LOG.warning("load_rows - reading types unavailable", exc_info=True)
            types = []
        default_type = default_reading_type(t for t in types if isinstance(t, Mapping))

        query = urllib.parse.urlencode({"readingDate": self.reading_date.isoformat()})
        records = await self._gateway.fetch_all(f"{ENTRY_ROWS_ENDPOINT}/{self.apartment_id}?{query}")
        self.rows = [EntryRow.from_record(r, default_type) for r in records if isinstance(r, Mapping)]
        LOG.info(
            "load_rows - apartment:%s date:%s period:%s rows:%s",
            self.apartment_id,
            self.reading_date,
            self.period.label,
            len(self.rows),
        )
        return self.rows

    def row(self, meter_id: Any) -> EntryRow:
        for row in self.rows:
            if str(row.meter_id) == str(meter_id):
                return row
        raise KeyError(f"No entry row for meter {meter_id}")

    def set_reading(self, meter_id: Any, raw: str) -> None:
        """Store the typed reading of a meter, keeping digits only."""
        row = self.row(meter_id)
        row.reading_text = digits_only(raw)
        row.error = None

    def set_reading_type(self, meter_id: Any, reading_type_id: Any) -> None:
        self.row(meter_id).reading_type_id = int(reading_type_id) if reading_type_id not in (None, "") else None

    def validate(self) -> bool:
        """Mark every filled row that cannot be sent; True when none is marked."""
        ok = True
        for row in self.rows:
            row.error = None
            if not row.is_filled:
                continue
            text = row.reading_text.strip()
            if not text.isdigit():
                row.error = "Only numbers allowed."
            elif len(text) > MAX_READING_DIGITS:
                row.error = f"Max {MAX_READING_DIGITS} digits allowed."
            elif row.reading_type_id is None:
                row.error = "Reading Type is required."
            ok = ok and row.error is None
        return ok

    def request(self) -> dict[str, Any]:
        """
        Build the bulk request from the filled rows.

        Raises:
            BatchError: If nothing was entered or a row is invalid.
        """
        if self.apartment_id is None or self.reading_date is None:
            raise BatchError("Load the meters before finalising.")
        filled = [r for r in self.rows if r.is_filled]
        if not filled:
            raise BatchError("Please enter at least one Current Reading before finalising.")
        if not self.validate():
            raise BatchError("Please fix validation errors before finalising.")
        period = self.period
        return {
            "apartmentId": self.apartment_id,
            "readingDate": self.reading_date.isoformat(),
            "billingFromDate": period.from_date.isoformat() if period.from_date else None,
            "billingToDate": period.to_date.isoformat() if period.to_date else None,
            "entries": [
                {
                    "meterId": r.meter_id,
                    "currentReading": int(r.reading_text),
                    "readingTypeId": r.reading_type_id,
                }
                for r in filled
            ],
        }

    async def finalise(self) -> GatewayResponse:
        """
        Send the batch as one JSON request.

        On success the rows are cleared; on failure they stay as entered.
        """
        payload = self.request()
        response = await self._gateway.create(
            BULK_ADD_ENDPOINT,
            payload,
            resolve_actor_id(self._actor),
            is_multipart=False,
        )
        LOG.info(
            "finalise - apartment:%s period:%s entries:%s",
            self.apartment_id,
            self.period.label,
            len(payload["entries"]),
        )
        self.rows = []
        return response
