"""
Screen catalogue for the Society Console.

Every listing and add/edit screen in the console is the same engine with
different settings. SCREENS holds those settings per screen kind:

- the entity model and its id field
- the backend endpoints (list, paged list, get, add, update, delete)
- the default sort and whether the listing is paged
- fields kept on "save and next", required fields, lookups

open_listing() and open_session() build configured view models from them.
"""

import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from society_console.billing import (
    applicable_month_derivation,
    billing_derivation,
    month_start_derivation,
)
from society_console.listing import Clock, ListingViewModel
from society_console.lookups import (
    LookupHierarchy,
    LookupLevel,
    LookupSource,
    RollupHierarchy,
    cascade_derivation,
)
from society_console.lib import logs
from society_console.lib.objects import field_value, set_field_value
from society_console.models.entities import (
    Apartment,
    Entity,
    ExpenseCategory,
    ExtraExpense,
    Flat,
    FlatMaintenance,
    MaintenanceComponent,
    MaintenanceGroup,
    MaintenanceGroupComponent,
    Meter,
    MeterReading,
    Society,
    UnitCharge,
)
from society_console.services.actors import ActorProvider
from society_console.services.crud_gateway import CrudGateway
from society_console.session import EditSession
from society_console.utils import parse_date

LOG = logs.logger(__file__)

PAGE_SIZE = int(os.getenv("SOCIETY_CONSOLE_PAGE_SIZE", "8"))
PAGE_SIZE_OPTIONS = (8, 15, 25, 50)

GROUP_COMPONENTS_ENDPOINT = "/maintenancegroupcomponent/Get-All-MaintenanceGroup-Components"

LOOKUP_SOURCES: dict[str, tuple[LookupSource, str]] = {
    "society": (LookupSource("/society/Get-All-Societies", "societyId", "societyName"), "Society"),
    "apartment": (
        LookupSource("/apartment/Get-All-Apartment", "apartmentId", "apartmentName", "societyId"),
        "Apartment",
    ),
    "flat": (LookupSource("/flat/Get-All-Flats", "flatId", "flatNumber", "apartmentId"), "Flat"),
    "meter": (LookupSource("/meter/Get-All-Meters", "meterId", "meterNumber"), "Meter"),
    "reading_type": (
        LookupSource("/meterreading/Get-All-ReadingTypes", "readingTypeId", "readingTypeName"),
        "Type",
    ),
    "maintenance_group": (
        LookupSource(
            "/maintenancegroup/Get-All-MaintenanceGroups",
            "maintenanceGroupId",
            "groupName",
            "apartmentId",
        ),
        "Group",
    ),
    "maintenance_component": (
        LookupSource(
            "/maintenancecomponent/Get-All-MaintenanceComponents",
            "maintenanceComponentId",
            "componentName",
        ),
        "Component",
    ),
    "expense_category": (
        LookupSource("/expensecategory/Get-All-Expense-Categories", "expenseCategoryId", "categoryName"),
        "Category",
    ),
}


@dataclass(frozen=True)
class ScreenSpec:
    """
    Settings of one entity screen.

    Attributes:
        kind: Screen key, also the URL segment.
        title: Human readable title.
        entity: Entity model.
        list_endpoint: Endpoint returning every record.
        get_endpoint: Endpoint returning one record (id appended).
        add_endpoint: Create endpoint.
        update_endpoint: Update endpoint (id appended).
        delete_endpoint: Delete endpoint (id appended).
        paged_endpoint: Paged list endpoint, when the backend has one.
        sort_field: Default sort field.
        sort_ascending: Default sort direction.
        paged: Whether the listing pages server-side.
        sticky_fields: Fields kept on "save and next".
        required_fields: Fields that must be filled before saving.
        columns: (field, header) pairs shown in the listing.
        lookups: (field, lookup source) pairs, in hierarchy order.
        cascade: Whether the lookups form one dependent chain.
        is_multipart: Send writes as multipart/form-data.
        date_ranges: (start, end) field pairs; end may not precede start.
        required_unless: (field, flag) pairs; field is required while the
            flag is off.
    """

    kind: str
    title: str
    entity: type[Entity]
    list_endpoint: str
    get_endpoint: str
    add_endpoint: str
    update_endpoint: str
    delete_endpoint: str
    paged_endpoint: str | None = None
    sort_field: str = ""
    sort_ascending: bool = True
    paged: bool = False
    sticky_fields: tuple[str, ...] = ()
    required_fields: tuple[str, ...] = ()
    columns: tuple[tuple[str, str], ...] = ()
    lookups: tuple[tuple[str, str], ...] = ()
    cascade: bool = False
    is_multipart: bool = False
    date_ranges: tuple[tuple[str, str], ...] = ()
    required_unless: tuple[tuple[str, str], ...] = ()

    @property
    def id_field(self) -> str:
        return self.entity.id_field

    @property
    def listing_route(self) -> str:
        return f"/{self.kind.replace('_', '-')}"

    @property
    def edit_route(self) -> str:
        return f"{self.listing_route}/edit"


SCREENS: dict[str, ScreenSpec] = {
    spec.kind: spec
    for spec in (
        ScreenSpec(
            kind="society",
            title="Societies",
            entity=Society,
            list_endpoint="/society/Get-All-Societies",
            get_endpoint="/society/Get-Society-By-Id",
            add_endpoint="/society/Add-New-Society",
            update_endpoint="/society/Update-Existing-Society",
            delete_endpoint="/society/Delete-Society",
            sort_field="society_id",
            required_fields=("society_name", "city"),
            columns=(("society_name", "Name"), ("city", "City"), ("contact_person", "Contact"), ("has_clubhouse", "Clubhouse")),
        ),
        ScreenSpec(
            kind="apartment",
            title="Apartments",
            entity=Apartment,
            list_endpoint="/apartment/Get-All-Apartment",
            get_endpoint="/apartment/Get-Apartment-By-Id",
            add_endpoint="/apartment/Add-New-Apartment",
            update_endpoint="/apartment/Update-Existing-Apartment",
            delete_endpoint="/apartment/Delete-Apartment",
            sort_field="apartment_id",
            required_fields=("society_id", "apartment_name"),
            columns=(("apartment_name", "Name"), ("society_id", "Society"), ("total_floors", "Floors"), ("has_lift", "Lift")),
            lookups=(("society_id", "society"),),
        ),
        ScreenSpec(
            kind="flat",
            title="Flats",
            entity=Flat,
            list_endpoint="/flat/Get-All-Flats",
            get_endpoint="/flat/Get-Flat-By-Id",
            add_endpoint="/flat/Add-New-Flat",
            update_endpoint="/flat/Update-Flat-By-Id",
            delete_endpoint="/flat/Delete-Flat",
            sort_field="flat_number",
            sticky_fields=("apartment_id",),
            required_fields=("apartment_id", "flat_number"),
            columns=(("flat_number", "Flat"), ("apartment_id", "Apartment"), ("flat_type", "Type"), ("is_rented", "Rented")),
            lookups=(("apartment_id", "apartment"),),
        ),
        ScreenSpec(
            kind="meter",
            title="Meters",
            entity=Meter,
            list_endpoint="/meter/Get-All-Meters",
            get_endpoint="/meter/Get-Meter-By-Id",
            add_endpoint="/meter/Create-New-Meter",
            update_endpoint="/meter/Update-Meter-By-Id",
            delete_endpoint="/meter/Delete-Meter",
            sort_field="meter_id",
            sticky_fields=("apartment_id",),
            required_fields=("apartment_id", "meter_number", "utility_type"),
            columns=(("meter_number", "Meter"), ("apartment_id", "Apartment"), ("flat_id", "Flat"), ("utility_type", "Utility"), ("installation_date", "Installed")),
            lookups=(("apartment_id", "apartment"), ("flat_id", "flat")),
            cascade=True,
        ),
        ScreenSpec(
            kind="meter_reading",
            title="Meter Readings",
            entity=MeterReading,
            list_endpoint="/meterreading/Get-All-MeterReadings",
            paged_endpoint="/meterreading/Get-All-MeterReadings-Paged",
            get_endpoint="/meterreading/Get-MeterReading-By-Id",
            add_endpoint="/meterreading/Add-New-MeterReading",
            update_endpoint="/meterreading/Update-MeterReading-By-Id",
            delete_endpoint="/meterreading/Delete-MeterReading",
            sort_field="reading_date",
            sort_ascending=False,
            paged=True,
            sticky_fields=("meter_id", "reading_type_id"),
            required_fields=("meter_id", "reading_date", "reading_value", "reading_type_id"),
            columns=(("meter_id", "Meter"), ("reading_date", "Date"), ("reading_value", "Reading"), ("reading_type_id", "Type"), ("billing_from_date", "Billing From"), ("billing_to_date", "Billing To")),
            lookups=(("meter_id", "meter"), ("reading_type_id", "reading_type")),
        ),
        ScreenSpec(
            kind="unit_charge",
            title="Unit Charges",
            entity=UnitCharge,
            list_endpoint="/unitcharge/Get-All-UnitCharges",
            get_endpoint="/unitcharge/Get-UnitCharge-By-Id",
            add_endpoint="/unitcharge/Add-New-UnitCharge",
            update_endpoint="/unitcharge/Update-Existing-UnitCharge",
            delete_endpoint="/unitcharge/Delete-UnitCharge",
            sort_field="unit_charge_id",
            required_fields=("effective_from", "effective_to", "charge_per_unit"),
            columns=(("effective_from", "From"), ("effective_to", "To"), ("charge_per_unit", "Per Unit"), ("min_unit", "Min"), ("max_unit", "Max")),
        ),
        ScreenSpec(
            kind="maintenance_group",
            title="Maintenance Groups",
            entity=MaintenanceGroup,
            list_endpoint="/maintenancegroup/Get-All-MaintenanceGroups",
            get_endpoint="/maintenancegroup/Get-MaintenanceGroup-By-Id",
            add_endpoint="/maintenancegroup/Create-New-MaintenanceGroup",
            update_endpoint="/maintenancegroup/Update-MaintenanceGroup-By-Id",
            delete_endpoint="/maintenancegroup/Delete-MaintenanceGroup",
            sort_field="maintenance_group_id",
            required_fields=("apartment_id", "effective_from"),
            columns=(("apartment_id", "Apartment"), ("effective_from", "From"), ("effective_to", "To"), ("total_charge", "Total")),
            lookups=(("apartment_id", "apartment"),),
        ),
        ScreenSpec(
            kind="maintenance_component",
            title="Maintenance Components",
            entity=MaintenanceComponent,
            list_endpoint="/maintenancecomponent/Get-All-MaintenanceComponents",
            get_endpoint="/maintenancecomponent/Get-MaintenanceComponent-By-Id",
            add_endpoint="/maintenancecomponent/Create-New-MaintenanceComponent",
            update_endpoint="/maintenancecomponent/Update-MaintenanceComponent-By-Id",
            delete_endpoint="/maintenancecomponent/Delete-MaintenanceComponent",
            sort_field="maintenance_component_id",
            required_fields=("component_name",),
            columns=(("component_name", "Component"), ("description", "Description"), ("is_deprecated", "Deprecated")),
        ),
        ScreenSpec(
            kind="group_component",
            title="Group Components",
            entity=MaintenanceGroupComponent,
            list_endpoint=GROUP_COMPONENTS_ENDPOINT,
            get_endpoint="/maintenancegroupcomponent/Get-MaintenanceGroup-Component-By-Id",
            add_endpoint="/maintenancegroupcomponent/Add-New-MaintenanceGroupComponent",
            update_endpoint="/maintenancegroupcomponent/Update-MaintenanceGroup-Component-By-Id",
            delete_endpoint="/maintenancegroupcomponent/Delete-MaintenanceGroup-Component",
            sort_field="maintenance_group_component_id",
            sticky_fields=("maintenance_group_id",),
            required_fields=("maintenance_group_id", "maintenance_component_id", "amount"),
            columns=(("maintenance_group_id", "Group"), ("maintenance_component_id", "Component"), ("amount", "Amount")),
            lookups=(("maintenance_group_id", "maintenance_group"), ("maintenance_component_id", "maintenance_component")),
        ),
        ScreenSpec(
            kind="flat_maintenance",
            title="Flat Maintenance",
            entity=FlatMaintenance,
            list_endpoint="/flatmaintenance/Get-All-FlatMaintenances",
            get_endpoint="/flatmaintenance/Get-FlatMaintenance-By-Id",
            add_endpoint="/flatmaintenance/Add-New-FlatMaintenance",
            update_endpoint="/flatmaintenance/Update-FlatMaintenance-By-Id",
            delete_endpoint="/flatmaintenance/Delete-FlatMaintenance",
            sort_field="flat_maintenance_id",
            sticky_fields=("apartment_id", "maintenance_group_id"),
            required_fields=("apartment_id", "maintenance_group_id", "flat_id", "effective_from"),
            columns=(("flat_id", "Flat"), ("maintenance_group_id", "Group"), ("effective_from", "From"), ("effective_to", "To")),
            lookups=(("apartment_id", "apartment"), ("maintenance_group_id", "maintenance_group"), ("flat_id", "flat")),
            cascade=True,
            date_ranges=(("effective_from", "effective_to"),),
        ),
        ScreenSpec(
            kind="expense_category",
            title="Expense Categories",
            entity=ExpenseCategory,
            list_endpoint="/expensecategory/Get-All-Expense-Categories",
            get_endpoint="/expensecategory/Get-Expense-Category-By-Id",
            add_endpoint="/expensecategory/Add-New-Expense-Category",
            update_endpoint="/expensecategory/Update-Expense-Category-By-Id",
            delete_endpoint="/expensecategory/Delete-Expense-Category",
            sort_field="category_name",
            required_fields=("category_name",),
            columns=(("category_name", "Category"), ("description", "Description"), ("is_active", "Active")),
        ),
        ScreenSpec(
            kind="extra_expense",
            title="Extra Expenses",
            entity=ExtraExpense,
            list_endpoint="/extraexpense/Get-All-ExtraExpenses",
            get_endpoint="/extraexpense/Get-ExtraExpense-By-Id",
            add_endpoint="/extraexpense/Create-New-ExtraExpense",
            update_endpoint="/extraexpense/Update-ExtraExpense-By-Id",
            delete_endpoint="/extraexpense/Delete-ExtraExpense",
            sort_field="expense_month",
            sort_ascending=False,
            sticky_fields=("apartment_id", "expense_month"),
            required_fields=("apartment_id", "expense_month", "expense_amount"),
            columns=(("expense_month", "Month"), ("apartment_id", "Apartment"), ("expense_category_id", "Category"), ("is_shared", "Shared"), ("flat_id", "Flat"), ("expense_amount", "Amount")),
            lookups=(("apartment_id", "apartment"), ("expense_category_id", "expense_category"), ("flat_id", "flat")),
            required_unless=(("flat_id", "is_shared"),),
        ),
    )
}


def get_screen(kind: str) -> ScreenSpec:
    try:
        return SCREENS[kind]
    except KeyError as exc:
        msg = f"Unknown screen kind: {kind}"
        raise ValueError(msg) from exc


def required_validator(spec: ScreenSpec) -> Callable[[Any], bool]:
    """
    Validator rejecting records with an empty required field.

    Conditionally required fields (required_unless) and date ranges whose
    end precedes their start are rejected too.
    """

    def validate(record: Any) -> bool:
        required = list(spec.required_fields)
        required += [name for name, flag in spec.required_unless if not field_value(record, flag)]
        for name in required:
            if _is_blank(field_value(record, name)):
                return False
        for start_name, end_name in spec.date_ranges:
            start = parse_date(field_value(record, start_name))
            end = parse_date(field_value(record, end_name))
            if start is not None and end is not None and end < start:
                return False
        return True

    return validate


def lookup_hierarchies(spec: ScreenSpec) -> dict[str, tuple[LookupHierarchy, int]]:
    """
    Build the lookups a screen's fields read their options from.

    Returns:
        field -> (hierarchy, level). Cascading screens share one hierarchy,
        each level filtered by the nearest earlier level its records point
        at; otherwise every field gets a single-level hierarchy of its own.
    """
    levels = {
        name: LookupLevel(name=source_name, prefix=LOOKUP_SOURCES[source_name][1], source=LOOKUP_SOURCES[source_name][0])
        for name, source_name in spec.lookups
    }
    if spec.cascade:
        chain = list(levels.values())
        for index, lvl in enumerate(chain):
            lvl.filter_level = next(
                (i for i in range(index - 1, -1, -1) if chain[i].source.id_key == lvl.source.parent_key),
                None,
            )
        shared = LookupHierarchy(chain)
        return {name: (shared, index) for index, name in enumerate(levels)}
    return {name: (LookupHierarchy([level]), 0) for name, level in levels.items()}


async def load_lookups(lookups: Mapping[str, tuple[LookupHierarchy, int]], gateway: CrudGateway) -> None:
    """Load every distinct hierarchy once."""
    seen: list[LookupHierarchy] = []
    for hierarchy, _ in lookups.values():
        if any(hierarchy is h for h in seen):
            continue
        seen.append(hierarchy)
        await hierarchy.load(gateway)


async def load_group_rollup(gateway: CrudGateway) -> RollupHierarchy:
    """Group -> component amounts, for maintenance group totals."""
    records = await gateway.fetch_all(GROUP_COMPONENTS_ENDPOINT)
    return RollupHierarchy.from_records(r for r in records if isinstance(r, Mapping))


def open_listing(
    kind: str,
    gateway: CrudGateway,
    actor: ActorProvider | None = None,
    on_edit: Callable[[Any], Any] | None = None,
    on_change: Callable[[], None] | None = None,
    clock: Clock | None = None,
    page_size: int | None = None,
    min_loading_ms: int | None = None,
) -> ListingViewModel[Entity]:
    """Build the listing view model for a screen kind."""
    spec = get_screen(kind)
    LOG.debug("open_listing - kind:%s paged:%s", kind, spec.paged)
    return ListingViewModel(
        gateway,
        list_endpoint=spec.paged_endpoint if spec.paged and spec.paged_endpoint else spec.list_endpoint,
        delete_endpoint=spec.delete_endpoint,
        id_field=spec.id_field,
        decode=spec.entity.from_dict,
        sort_field=spec.sort_field,
        sort_ascending=spec.sort_ascending,
        page_size=(page_size or PAGE_SIZE) if spec.paged else None,
        actor=actor,
        on_edit=on_edit,
        on_change=on_change,
        clock=clock,
        min_loading_ms=min_loading_ms,
    )


def open_session(
    kind: str,
    gateway: CrudGateway,
    actor: ActorProvider | None = None,
    navigate: Callable[[Any], Any] | None = None,
    confirm_leave: Callable[[], Awaitable[bool]] | None = None,
    validate: Callable[[Any], bool] | None = None,
    lookups: Mapping[str, tuple[LookupHierarchy, int]] | None = None,
) -> EditSession[Entity]:
    """
    Build the edit session for a screen kind.

    Meter readings derive their billing dates from the reading date; unit
    charges derive their applicable months from the effective dates; extra
    expenses book against the first of their month and drop the flat once
    shared; cascading screens clear dependent selections when a parent changes.
    """
    spec = get_screen(kind)
    derivations = []
    if kind == "meter_reading":
        derivations.append(billing_derivation("reading_date", "billing_from_date", "billing_to_date"))
    if kind == "unit_charge":
        derivations.append(applicable_month_derivation())
    if kind == "extra_expense":
        derivations.append(month_start_derivation("expense_month"))
        derivations.append(shared_flat_derivation())
    if spec.cascade:
        bound = lookups if lookups is not None else lookup_hierarchies(spec)
        hierarchy = next(iter(bound.values()))[0]
        derivations.append(cascade_derivation(hierarchy, {name: level for name, (_, level) in bound.items()}))

    return EditSession(
        gateway,
        factory=spec.entity,
        get_endpoint=spec.get_endpoint,
        add_endpoint=spec.add_endpoint,
        update_endpoint=spec.update_endpoint,
        decode=spec.entity.from_dict,
        encode=lambda record: record.to_payload(),
        validate=validate or required_validator(spec),
        navigate=navigate,
        confirm_leave=confirm_leave,
        actor=actor,
        sticky_fields=spec.sticky_fields,
        derivations=derivations,
        is_multipart=spec.is_multipart,
        leave_target=spec.listing_route,
    )


def backfill_cascade(session: EditSession[Any], lookups: Mapping[str, tuple[LookupHierarchy, int]]) -> None:
    """
    Fill empty parent selections of a freshly loaded record.

    Records such as flat maintenance store only the deepest choice (the
    flat); the apartment above it is read from the flat's option. The value
    is written to both the snapshot and the working copy so the record
    stays clean, and every bound level is selected in its hierarchy.
    """
    if session.current is None:
        return
    by_level = {(id(h), level): name for name, (h, level) in lookups.items()}
    for name, (hierarchy, level) in sorted(lookups.items(), key=lambda item: -item[1][1]):
        parent_level = hierarchy.parent_level(level)
        parent_name = by_level.get((id(hierarchy), parent_level))
        if parent_name is None or not _is_blank(field_value(session.current, parent_name)):
            continue
        node = hierarchy.find(level, field_value(session.current, name))
        if node is None or _is_blank(node.parent_id):
            continue
        for record in (session.snapshot, session.current):
            if record is not None:
                set_field_value(record, parent_name, node.parent_id)
    for name, (hierarchy, level) in lookups.items():
        hierarchy.level(level).selected = field_value(session.current, name)


def shared_flat_derivation(flag: str = "is_shared", target: str = "flat_id") -> Callable[[str, Any, Any], dict[str, Any]]:
    """Turning an expense into a shared one drops the flat it was charged to."""

    def derive(name: str, value: Any, current: Any) -> dict[str, Any]:
        if name == flag and value:
            return {target: None}
        return {}

    return derive


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
