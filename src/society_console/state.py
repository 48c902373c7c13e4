"""
Reflex state management for the Society Console.

Listing and add/edit pages share two state classes. The view models they
drive (ListingViewModel, EditSession) hold callables and entity objects
that Reflex cannot serialize, so they live in a bounded ScreenRegistry keyed
by browser client and screen kind; the rx.State vars mirror what the page
renders.

The bulk meter reading entry page keeps its rows in plain state vars and
rebuilds a MeterReadingBatch from them for each call.
"""

import asyncio
from datetime import date
from typing import Any

import reflex as rx

from society_console.billing import billing_period
from society_console.errors import describe_error
from society_console.handles import ScreenHandle, ScreenRegistry, edit_handle, listing_handle
from society_console.lib import logs
from society_console.lib.objects import field_value
from society_console.lookups import LookupHierarchy, LookupLevel
from society_console.meter_entry import BatchError, EntryRow, MeterReadingBatch, digits_only
from society_console.screens import (
    LOOKUP_SOURCES,
    PAGE_SIZE_OPTIONS,
    load_group_rollup,
    load_lookups,
)
from society_console.services import EnvActor, get_crud_gateway
from society_console.session import SubmitOutcome
from society_console.utils import parse_date, safe_value

LOG = logs.logger(__file__)

ACTOR = EnvActor()

_HANDLES = ScreenRegistry()


def _display(handle: ScreenHandle, name: str, value: Any) -> str:
    bound = handle.lookups.get(name)
    if bound is not None and value is not None:
        hierarchy, level = bound
        return hierarchy.label(level, value)
    return safe_value(value)


class ListingScreenState(rx.State):
    """State of the listing page currently open in a client."""

    kind: str = ""
    title: str = ""
    columns: list[list[str]] = []
    rows: list[dict[str, str]] = []
    details: list[list[str]] = []
    sort_field: str = ""
    sort_ascending: bool = True
    expanded_row_id: str = ""
    is_paged: bool = False
    page_number: int = 1
    page_size: int = 0
    total_pages: int = 0
    has_previous: bool = False
    has_next: bool = False
    range_text: str = ""
    overlay_visible: bool = False
    error_message: str = ""

    @rx.var
    def is_empty(self) -> bool:
        """Check if the empty state should be shown."""
        return not self.overlay_visible and len(self.rows) == 0

    @rx.var
    def page_size_options(self) -> list[str]:
        return [str(size) for size in PAGE_SIZE_OPTIONS]

    def _key(self) -> tuple[str, str]:
        return (self.router.session.client_token, "listing")

    def _handle(self) -> ScreenHandle | None:
        return _HANDLES.get(self._key())

    @rx.event
    async def open(self, kind: str):
        """
        Event handler for page load.

        Builds a fresh view model for the screen, loads lookups and rows, and
        keeps the overlay up for its minimum time.
        """
        gateway = get_crud_gateway()
        handle = listing_handle(kind, gateway, actor=ACTOR)
        spec = handle.spec
        _HANDLES.put(self._key(), handle)

        self.kind = kind
        self.title = spec.title
        self.columns = [[name, header] for name, header in spec.columns]
        self.error_message = ""
        self.details = []
        self._sync(handle)
        yield

        await load_lookups(handle.lookups, gateway)
        if kind == "maintenance_group":
            try:
                handle.rollup = await load_group_rollup(gateway)
            except Exception:
                LOG.warning("open - group component totals unavailable", exc_info=True)
        async for _ in self._run(handle, handle.listing.load()):
            yield

    @rx.event
    def sort(self, field_name: str):
        handle = self._handle()
        if handle is not None and handle.listing.sort(field_name):
            self._sync(handle)

    @rx.event
    def expand(self, row_id: str):
        handle = self._handle()
        if handle is None:
            return
        if handle.listing.expand(self._resolve(handle, row_id)):
            self._sync(handle)

    @rx.event
    async def change_page(self, page_number: int):
        handle = self._handle()
        if handle is None:
            return
        async for _ in self._run(handle, handle.listing.change_page(int(page_number))):
            yield

    @rx.event
    async def change_page_size(self, page_size: str):
        handle = self._handle()
        if handle is None:
            return
        async for _ in self._run(handle, handle.listing.change_page_size(int(page_size))):
            yield

    @rx.event
    async def delete(self, row_id: str):
        handle = self._handle()
        if handle is None:
            return
        async for _ in self._run(handle, handle.listing.delete(self._resolve(handle, row_id))):
            yield

    @rx.event
    def edit(self, row_id: str):
        handle = self._handle()
        if handle is None or not handle.listing.request_edit(self._resolve(handle, row_id)):
            return
        target = handle.edit_request
        handle.edit_request = None
        return rx.redirect(f"{handle.spec.edit_route}?id={target}")

    @rx.event
    def add(self):
        handle = self._handle()
        if handle is None or handle.listing.overlay_visible:
            return
        return rx.redirect(handle.spec.edit_route)

    @rx.event
    async def refresh(self):
        handle = self._handle()
        if handle is None:
            return
        async for _ in self._run(handle, handle.listing.invalidate()):
            yield

    async def _run(self, handle: ScreenHandle, action):
        """Await a view model action, then hold the overlay for its minimum time."""
        try:
            await action
            self.error_message = ""
        except Exception as e:
            report = describe_error(e)
            LOG.error("%s - %s", handle.spec.kind, report.developer_message, exc_info=True)
            self.error_message = report.user_message
        self._sync(handle)
        remaining = handle.listing.overlay.remaining()
        if remaining > 0:
            yield
            await asyncio.sleep(remaining)
            self._sync(handle)
        yield

    def _resolve(self, handle: ScreenHandle, row_id: str) -> Any:
        for row in handle.listing.rows:
            value = handle.listing.row_id(row)
            if str(value) == str(row_id):
                return value
        return row_id

    def _sync(self, handle: ScreenHandle) -> None:
        listing = handle.listing
        state = listing.state
        self.rows = [
            {
                "__id": str(listing.row_id(row)),
                **{name: _display(handle, name, field_value(row, name)) for name, _ in handle.spec.columns},
            }
            for row in state.rows
        ]
        self.sort_field = state.sort_field
        self.sort_ascending = state.sort_ascending
        self.expanded_row_id = "" if state.expanded_row_id is None else str(state.expanded_row_id)
        self.details = self._details(handle, state.expanded_row_id)
        self.is_paged = state.is_paged
        if state.pagination is not None:
            self.page_number = state.pagination.page_number
            self.page_size = state.pagination.page_size
            self.total_pages = state.pagination.total_pages
            self.has_previous = state.pagination.has_previous
            self.has_next = state.pagination.has_next
        self.range_text = state.range_text
        self.overlay_visible = state.overlay_visible

    def _details(self, handle: ScreenHandle, row_id: Any) -> list[list[str]]:
        if row_id is None:
            return []
        row = next((r for r in handle.listing.rows if handle.listing.row_id(r) == row_id), None)
        if row is None:
            return []
        details = [
            [name.replace("_", " ").title(), _display(handle, name, field_value(row, name))]
            for name in handle.spec.entity.field_kinds()
        ]
        if handle.rollup is not None:
            details.append(["Components Total", safe_value(handle.rollup.total(row_id))])
        return details


class EditScreenState(rx.State):
    """State of the add/edit page currently open in a client."""

    kind: str = ""
    title: str = ""
    is_edit: bool = False
    form_fields: list[dict[str, str]] = []
    options: dict[str, list[list[str]]] = {}
    is_dirty: bool = False
    is_submitting: bool = False
    confirm_open: bool = False
    pending_target: str = ""
    error_message: str = ""
    notice: str = ""

    def _key(self) -> tuple[str, str]:
        return (self.router.session.client_token, "edit")

    def _handle(self) -> ScreenHandle | None:
        return _HANDLES.get(self._key())

    @rx.event
    async def open(self, kind: str):
        """Event handler for page load; reads the optional ?id= parameter."""
        gateway = get_crud_gateway()
        handle = edit_handle(kind, gateway, actor=ACTOR)
        spec = handle.spec
        _HANDLES.put(self._key(), handle)

        self.kind = kind
        self.title = spec.title
        self.error_message = ""
        self.notice = ""
        self.confirm_open = False
        entity_id = self.router.page.params.get("id") or None
        self.is_edit = entity_id is not None
        yield

        try:
            await handle.load_record(gateway, entity_id)
        except Exception as e:
            report = describe_error(e, "Unable to load the record.")
            LOG.error("open - %s", report.developer_message, exc_info=True)
            self.error_message = report.user_message
        self._sync(handle)

    @rx.event
    def set_value(self, name: str, value: Any):
        handle = self._handle()
        if handle is None or handle.session.current is None:
            return
        handle.session.set_field(name, handle.spec.entity.coerce(name, value))
        self._sync(handle)

    @rx.event
    def reset_form(self):
        handle = self._handle()
        if handle is None:
            return
        handle.session.commands().reset()
        self._sync(handle)

    @rx.event
    async def submit(self):
        handle = self._handle()
        if handle is None:
            return
        async for event in self._submit(handle, handle.session.commands().submit):
            yield event

    @rx.event
    async def save_and_next(self):
        handle = self._handle()
        if handle is None:
            return

        async def action(_mode):
            return await handle.session.commands().save_and_next()

        async for event in self._submit(handle, action):
            yield event

    @rx.event
    async def leave(self, target: str = ""):
        """
        Leave the page for target (the listing by default).

        Every link on an edit page routes through here, so unsaved changes
        open the confirmation dialog instead of being dropped.
        """
        handle = self._handle()
        if handle is None:
            yield rx.redirect(target or "/")
            return
        target = target or handle.spec.listing_route
        redirect = await handle.leave(target)
        if redirect is not None:
            yield self._redirect(redirect)
            return
        if handle.confirm_requested:
            self.pending_target = target
            self.confirm_open = True

    @rx.event
    async def confirm_leave(self):
        handle = self._handle()
        self.confirm_open = False
        if handle is None:
            return
        redirect = await handle.confirm_leave(self.pending_target)
        if redirect is not None:
            yield self._redirect(redirect)

    @rx.event
    def cancel_leave(self):
        self.confirm_open = False
        self.pending_target = ""

    async def _submit(self, handle: ScreenHandle, action):
        self.is_submitting = True
        self.error_message = ""
        self.notice = ""
        yield
        try:
            outcome = await action("save")
        except Exception as e:
            report = describe_error(e, "Save failed.")
            LOG.error("submit - %s", report.developer_message, exc_info=True)
            self.error_message = report.user_message
            self._sync(handle)
            return
        self._sync(handle)
        if outcome is SubmitOutcome.INVALID:
            self.error_message = "Please fill in all required fields."
        elif outcome is SubmitOutcome.SAVED_AND_NEXT:
            self.notice = "Saved. Enter the next record."
        elif outcome is SubmitOutcome.SAVED_AND_LEFT:
            yield self._redirect(handle.take_redirect())

    def _redirect(self, target: str):
        _HANDLES.discard(self._key())
        return rx.redirect(target)

    def _sync(self, handle: ScreenHandle) -> None:
        session = handle.session
        current = session.current
        kinds = handle.spec.entity.field_kinds()
        id_field = handle.spec.id_field
        required = set(handle.spec.required_fields)
        self.form_fields = []
        if current is not None:
            self.form_fields = [
                {
                    "name": name,
                    "label": name.replace("_", " ").title() + (" *" if name in required else ""),
                    "kind": "select" if name in handle.lookups else kind,
                    "value": _form_value(field_value(current, name)),
                }
                for name, kind in kinds.items()
                if name != id_field
            ]
        self.options = {
            name: [[str(node.id), node.label or f"#{node.id}"] for node in self._options(handle, name)]
            for name in handle.lookups
        }
        self.is_dirty = session.is_dirty
        self.is_submitting = session.is_submitting

    def _options(self, handle: ScreenHandle, name: str):
        hierarchy, level = handle.lookups[name]
        parent = None
        parent_level = hierarchy.parent_level(level)
        if parent_level is not None:
            parent_field = next(
                (n for n, (h, lvl) in handle.lookups.items() if h is hierarchy and lvl == parent_level),
                None,
            )
            if parent_field is not None and handle.session.current is not None:
                parent = field_value(handle.session.current, parent_field)
        return hierarchy.options_for(level, parent)


def _form_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _options_of(source_name: str, hierarchy: LookupHierarchy) -> list[list[str]]:
    prefix = LOOKUP_SOURCES[source_name][1]
    return [[str(node.id), node.label or f"{prefix} #{node.id}"] for node in hierarchy.options_for(0)]


def _entry_row(row: EntryRow) -> dict[str, str]:
    return {
        "meter_id": str(row.meter_id),
        "label": row.label,
        "reading": row.reading_text,
        "type_id": "" if row.reading_type_id is None else str(row.reading_type_id),
        "error": row.error or "",
    }


class MeterEntryState(rx.State):
    """State of the bulk meter reading entry page."""

    apartments: list[list[str]] = []
    reading_types: list[list[str]] = []
    apartment_id: str = ""
    reading_date: str = ""
    period_label: str = "-"
    rows: list[dict[str, str]] = []
    is_loading: bool = False
    is_saving: bool = False
    error_message: str = ""
    notice: str = ""

    @rx.event
    async def open(self):
        """Event handler for page load: fetch apartments and reading types."""
        self.rows = []
        self.error_message = ""
        self.notice = ""
        self.reading_date = date.today().isoformat()
        self.period_label = billing_period(self.reading_date).label
        yield

        gateway = get_crud_gateway()
        lookups = {}
        for name in ("apartment", "reading_type"):
            source, prefix = LOOKUP_SOURCES[name]
            lookups[name] = LookupHierarchy([LookupLevel(name=name, prefix=prefix, source=source)])
            await lookups[name].load(gateway)
        self.apartments = _options_of("apartment", lookups["apartment"])
        self.reading_types = _options_of("reading_type", lookups["reading_type"])

    @rx.event
    def set_apartment(self, value: str):
        self.apartment_id = value
        self.rows = []

    @rx.event
    def set_reading_date(self, value: str):
        self.reading_date = value
        self.period_label = billing_period(value).label
        self.rows = []

    @rx.event
    async def load_rows(self):
        self.error_message = ""
        self.notice = ""
        self.is_loading = True
        yield
        batch = MeterReadingBatch(get_crud_gateway(), actor=ACTOR)
        try:
            rows = await batch.load_rows(self.apartment_id or None, self.reading_date)
            self.rows = [_entry_row(r) for r in rows]
            if not rows:
                self.notice = "No active meters for this apartment."
        except BatchError as e:
            self.error_message = str(e)
        except Exception as e:
            report = describe_error(e, "Failed to load meters for entry. Please try again.")
            LOG.error("load_rows - %s", report.developer_message, exc_info=True)
            self.error_message = report.user_message
        self.is_loading = False

    @rx.event
    def set_reading(self, meter_id: str, value: str):
        self._update_row(meter_id, reading=digits_only(value), error="")

    @rx.event
    def set_reading_type(self, meter_id: str, value: str):
        self._update_row(meter_id, type_id=value)

    @rx.event
    async def finalise(self):
        self.error_message = ""
        self.is_saving = True
        yield
        batch = self._batch()
        try:
            await batch.finalise()
            self.notice = f"Meter readings saved for {batch.period.label}."
            self.rows = []
        except BatchError as e:
            self.error_message = str(e)
            self.rows = [_entry_row(r) for r in batch.rows]
        except Exception as e:
            report = describe_error(e, "Save failed.")
            LOG.error("finalise - %s", report.developer_message, exc_info=True)
            self.error_message = report.user_message
        self.is_saving = False

    def _update_row(self, meter_id: str, **changes: str) -> None:
        self.rows = [{**row, **changes} if row["meter_id"] == str(meter_id) else row for row in self.rows]

    def _batch(self) -> MeterReadingBatch:
        """Rebuild the batch from the rows on the page."""
        batch = MeterReadingBatch(get_crud_gateway(), actor=ACTOR)
        batch.apartment_id = int(self.apartment_id) if self.apartment_id else None
        batch.reading_date = parse_date(self.reading_date)
        batch.rows = [
            EntryRow(
                meter_id=int(row["meter_id"]),
                label=row["label"],
                reading_type_id=int(row["type_id"]) if row["type_id"] else None,
                reading_text=row["reading"],
            )
            for row in self.rows
        ]
        return batch
