"""
Entity models and wire codec for the Society Console.

Each entity mirrors a backend DTO. The backend speaks camelCase JSON (some
endpoints PascalCase), while the Python side uses snake_case dataclass
fields. Entity.from_dict/to_payload convert between the two:

    Society ─┐
             └─ Apartment ─┐
                           ├─ Flat
                           ├─ Meter ── MeterReading
                           ├─ MaintenanceGroup ── MaintenanceGroupComponent
                           │        └─ FlatMaintenance (with Flat)
                           └─ ExtraExpense (ExpenseCategory, optional Flat)
    UnitCharge, MaintenanceComponent, ExpenseCategory (master data)

Dates decode to datetime.date and money to Decimal; payloads carry money as
decimal strings so no digits are lost.
"""

import types
import typing
from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, TypeVar

from benedict import benedict

from society_console.models.common import pascal_case
from society_console.utils import parse_date, to_nullable_number

E = TypeVar("E", bound="Entity")


def wire_name(name: str) -> str:
    """Convert a snake_case field name to the backend's camelCase key."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class Entity:
    """Mixin giving entity dataclasses their backend wire codec."""

    __slots__ = ()

    #: Field holding the entity's primary key.
    id_field: typing.ClassVar[str] = ""

    #: Extra record key read for a field, e.g. a backend misspelling.
    wire_aliases: typing.ClassVar[dict[str, str]] = {}

    @property
    def entity_id(self) -> Any:
        return getattr(self, self.id_field)

    @classmethod
    def from_dict(cls: type[E], payload: Mapping[str, Any]) -> E:
        """
        Build an entity from a backend record.

        Keys are tried in camelCase, PascalCase, then the field's alias, and
        the first non-null value wins; fields absent from the record keep
        their defaults.
        """
        b = benedict(dict(payload), keypath_separator=None)
        hints = typing.get_type_hints(cls)
        values: dict[str, Any] = {}
        for f in fields(cls):
            key = wire_name(f.name)
            candidates = [k for k in (key, pascal_case(key), cls.wire_aliases.get(f.name)) if k is not None and k in b]
            if not candidates:
                continue
            raw = next((b[k] for k in candidates if b[k] is not None), None)
            values[f.name] = _decode(hints[f.name], raw)
        return cls(**values)

    def to_payload(self) -> dict[str, Any]:
        """Encode the entity as a camelCase payload for create/update."""
        return {wire_name(f.name): _encode(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def coerce(cls, name: str, raw: Any) -> Any:
        """
        Convert form input to the type of a field.

        Raises:
            KeyError: If the entity has no such field.
        """
        hints = typing.get_type_hints(cls)
        if name not in hints or name in ("id_field", "wire_aliases"):
            raise KeyError(f"{cls.__name__} has no field '{name}'")
        if isinstance(raw, str) and not raw.strip() and _unwrap_optional(hints[name]) is not str:
            return None
        return _decode(hints[name], raw)

    @classmethod
    def field_kinds(cls) -> dict[str, str]:
        """Input kind per field: "date", "number", "bool" or "text"."""
        hints = typing.get_type_hints(cls)
        kinds = {}
        for f in fields(cls):
            base = _unwrap_optional(hints[f.name])
            if base is date:
                kinds[f.name] = "date"
            elif base in (int, Decimal):
                kinds[f.name] = "number"
            elif base is bool:
                kinds[f.name] = "bool"
            else:
                kinds[f.name] = "text"
        return kinds


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _decode(hint: Any, raw: Any) -> Any:
    if raw is None:
        return None
    base = _unwrap_optional(hint)
    if base is date:
        return parse_date(raw)
    if base is Decimal:
        return to_nullable_number(raw)
    if base is bool:
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in {"true", "1", "yes"}
    if base is int:
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None
    if base is str:
        return str(raw)
    return raw


def _encode(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        # Money goes out as exact decimal text
        return str(value)
    return value


@dataclass(slots=True)
class Society(Entity):
    """A housing society, the root of the property hierarchy."""

    id_field = "society_id"

    society_id: int | None = None
    society_name: str = ""
    address: str | None = None
    city: str | None = None
    pin_code: str | None = None
    society_type: str | None = None
    contact_person: str | None = None
    contact_number: str | None = None
    email: str | None = None
    registration_number: str | None = None
    has_clubhouse: bool = False
    has_swimming_pool: bool = False


@dataclass(slots=True)
class Apartment(Entity):
    """A building (apartment block) inside a society."""

    id_field = "apartment_id"

    apartment_id: int | None = None
    society_id: int | None = None
    apartment_name: str = ""
    block_name: str | None = None
    construction_year: int | None = None
    building_type: str | None = None
    total_floors: int | None = None
    total_flats: int | None = None
    has_lift: bool = False
    has_generator: bool = False
    caretaker_name: str | None = None
    caretaker_phone: str | None = None


@dataclass(slots=True)
class Flat(Entity):
    """A single flat inside an apartment."""

    id_field = "flat_id"

    flat_id: int | None = None
    apartment_id: int | None = None
    flat_number: str = ""
    floor_number: int | None = None
    flat_type: str | None = None
    super_built_up_area: Decimal | None = None
    car_parking_slots: int | None = None
    is_rented: bool = False
    is_furnished: bool = False
    has_gas_pipeline: bool = False
    registered_email: str | None = None
    registered_mobile: str | None = None
    utility_notes: str | None = None
    is_active: bool = True


@dataclass(slots=True)
class Meter(Entity):
    """A utility meter attached to an apartment and optionally a flat."""

    id_field = "meter_id"

    meter_id: int | None = None
    apartment_id: int | None = None
    flat_id: int | None = None
    meter_number: str = ""
    utility_type: str = "Electricity"
    meter_scope: str = "Apartment"
    installation_date: date | None = None
    last_verified_date: date | None = None
    is_smart_meter: bool = False
    serial_number: str | None = None
    reading_unit: str | None = None
    is_active: bool = True


@dataclass(slots=True)
class MeterReading(Entity):
    """A meter reading and the billing period it was derived into."""

    id_field = "meter_reading_id"

    meter_reading_id: int | None = None
    meter_id: int | None = None
    reading_date: date | None = None
    reading_value: Decimal | None = None
    is_estimated: bool = False
    reading_type_id: int | None = None
    billing_from_date: date | None = None
    billing_to_date: date | None = None
    notes: str | None = None
    is_active: bool = True


@dataclass(slots=True)
class UnitCharge(Entity):
    """A per-unit electricity tariff and its applicability window."""

    id_field = "unit_charge_id"

    unit_charge_id: int | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    charge_per_unit: Decimal | None = None
    currency_id: int | None = None
    rate_type_id: int | None = None
    min_unit: int | None = None
    max_unit: int | None = None
    threshold: Decimal | None = None
    subsidized_flag: bool = False
    applicable_month_from: int | None = None
    applicable_month_to: int | None = None
    is_active: bool = True


@dataclass(slots=True)
class MaintenanceGroup(Entity):
    """A maintenance charge group for an apartment."""

    id_field = "maintenance_group_id"

    maintenance_group_id: int | None = None
    apartment_id: int | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    total_charge: Decimal | None = None
    is_active: bool = True


@dataclass(slots=True)
class MaintenanceComponent(Entity):
    """A chargeable maintenance component (security, housekeeping, ...)."""

    id_field = "maintenance_component_id"

    maintenance_component_id: int | None = None
    component_name: str = ""
    description: str | None = None
    is_active: bool = True
    is_deprecated: bool = False


@dataclass(slots=True)
class MaintenanceGroupComponent(Entity):
    """Maps a component into a maintenance group with an amount."""

    id_field = "maintenance_group_component_id"

    maintenance_group_component_id: int | None = None
    maintenance_group_id: int | None = None
    maintenance_component_id: int | None = None
    amount: Decimal | None = None
    is_active: bool = True
    component_name: str | None = None


@dataclass(slots=True)
class FlatMaintenance(Entity):
    """
    Assigns a flat to a maintenance group for a date range.

    apartment_id only drives the form's cascade; the backend derives it
    from the flat.
    """

    id_field = "flat_maintenance_id"

    flat_maintenance_id: int | None = None
    apartment_id: int | None = None
    maintenance_group_id: int | None = None
    flat_id: int | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    is_active: bool = True


@dataclass(slots=True)
class ExpenseCategory(Entity):
    """A category extra expenses are booked under."""

    id_field = "expense_category_id"

    expense_category_id: int | None = None
    category_name: str = ""
    description: str | None = None
    is_active: bool = True


@dataclass(slots=True)
class ExtraExpense(Entity):
    """A one-off expense, shared by the apartment or charged to one flat."""

    id_field = "extra_expense_id"
    wire_aliases = {"extra_expense_id": "extraExpenseid", "expense_month": "monthYear"}

    extra_expense_id: int | None = None
    apartment_id: int | None = None
    expense_category_id: int | None = None
    flat_id: int | None = None
    expense_month: date | None = None
    expense_amount: Decimal | None = None
    expense_description: str | None = None
    is_shared: bool = True
    is_active: bool = True
