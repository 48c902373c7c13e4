"""
Listing view model shared by every entity listing screen.

A ListingViewModel owns one screen's ListingState and provides:
- Client-side sorting (numbers numerically, dates chronologically,
  everything else case-insensitively, empty values always last)
- Row expansion
- Optional server-side paging
- Deletes followed by a best-effort reload
- A debounced loading overlay

The overlay appears as soon as a fetch starts and stays up for at least
MIN_LOADING_MS after it started, so fast responses do not flicker. While it
is visible the interactive actions (sort, expand, page, edit, delete) are
disabled and report False.

Only the most recent fetch may write state; responses of superseded fetches
are dropped.
"""

import asyncio
import inspect
import os
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Generic, Sequence, TypeVar

from society_console.lib import logs
from society_console.lib.objects import field_value
from society_console.models.common import ListingState, PaginationState
from society_console.services.actors import ActorProvider, resolve_actor_id
from society_console.services.crud_gateway import CrudGateway
from society_console.utils import parse_date

LOG = logs.logger(__file__)

T = TypeVar("T")

MIN_LOADING_MS = int(os.getenv("SOCIETY_CONSOLE_MIN_LOADING_MS", "300"))

Clock = Callable[[], float]

_EPOCH = datetime(1970, 1, 1)


class LoadingOverlay:
    """
    Debounced loading indicator.

    Times come from an injectable clock returning seconds (time.monotonic by
    default). When a fetch finishes early, a hide notification is scheduled
    on the running loop for the moment the minimum visible time runs out.
    """

    def __init__(
        self,
        min_visible_ms: int | None = None,
        clock: Clock | None = None,
        on_hidden: Callable[[], None] | None = None,
    ) -> None:
        self.min_visible_ms = MIN_LOADING_MS if min_visible_ms is None else min_visible_ms
        self._clock = clock or time.monotonic
        self._on_hidden = on_hidden
        self._started_at: float | None = None
        self._hide_at = 0.0
        self._timer: asyncio.TimerHandle | None = None
        self.is_loading = False

    @property
    def visible(self) -> bool:
        return self.is_loading or self._clock() < self._hide_at

    def remaining(self) -> float:
        """Seconds until the overlay may hide; 0 while loading or hidden."""
        if self.is_loading:
            return 0.0
        return max(self._hide_at - self._clock(), 0.0)

    def start(self) -> None:
        self._cancel_timer()
        self.is_loading = True
        self._started_at = self._clock()

    def finish(self) -> None:
        self.is_loading = False
        started = self._clock() if self._started_at is None else self._started_at
        self._hide_at = started + self.min_visible_ms / 1000.0
        delay = self.remaining()
        if delay <= 0 or self._on_hidden is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(delay, self._fire)

    def close(self) -> None:
        """Cancel any pending hide notification."""
        self._cancel_timer()

    def _fire(self) -> None:
        self._timer = None
        if self._on_hidden is not None:
            self._on_hidden()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class ListingViewModel(Generic[T]):
    """
    View model behind one listing screen.

    Attributes:
        list_endpoint: List endpoint, or the paged endpoint without its query
            string when the listing is paged.
        delete_endpoint: Delete endpoint; the row id is appended.
        id_field: Row field holding the id.
    """

    def __init__(
        self,
        gateway: CrudGateway,
        list_endpoint: str,
        delete_endpoint: str,
        id_field: str,
        decode: Callable[[Any], T] | None = None,
        sort_field: str = "",
        sort_ascending: bool = True,
        page_size: int | None = None,
        actor: ActorProvider | None = None,
        on_edit: Callable[[Any], Any] | None = None,
        on_change: Callable[[], None] | None = None,
        clock: Clock | None = None,
        min_loading_ms: int | None = None,
    ) -> None:
        """
        Args:
            gateway: Transport for every fetch and delete.
            decode: Converts a raw record into a row; rows stay raw when None.
            sort_field: Initial sort field.
            sort_ascending: Initial sort direction.
            page_size: Rows per page; None for an unpaged listing.
            actor: Current actor provider for deletes.
            on_edit: Receives the row id from request_edit().
            on_change: Called after every state change, including the
                delayed overlay hide.
            clock: Seconds clock for the overlay.
            min_loading_ms: Minimum overlay time in milliseconds.
        """
        self._gateway = gateway
        self.list_endpoint = list_endpoint
        self.delete_endpoint = delete_endpoint
        self.id_field = id_field
        self._decode = decode
        self._actor = actor
        self._on_edit = on_edit
        self._on_change = on_change
        self._overlay = LoadingOverlay(min_loading_ms, clock, on_hidden=self._notify)
        self._loaded: list[T] = []
        self._generation = 0
        self._refresh_handlers: list[Callable[[], Any]] = []
        self._state: ListingState[T] = ListingState(
            sort_field=sort_field,
            sort_ascending=sort_ascending,
            pagination=PaginationState(page_size=page_size) if page_size else None,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> ListingState[T]:
        self._state.is_loading = self._overlay.is_loading
        self._state.overlay_visible = self._overlay.visible
        if self._state.expanded_row_id is not None and self._find(self._state.expanded_row_id) is None:
            self._state.expanded_row_id = None
        return self._state

    @property
    def rows(self) -> list[T]:
        return self._state.rows

    @property
    def overlay(self) -> LoadingOverlay:
        return self._overlay

    @property
    def overlay_visible(self) -> bool:
        return self._overlay.visible

    @property
    def is_paged(self) -> bool:
        return self._state.pagination is not None

    def row_id(self, row: T) -> Any:
        return field_value(row, self.id_field)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """
        Fetch the current page (or the whole list when unpaged).

        A failed fetch clears rows and totals, then re-raises.
        """
        await self._fetch(clear_on_error=True)

    async def _fetch(self, clear_on_error: bool) -> None:
        self._generation += 1
        generation = self._generation
        self._overlay.start()
        self._notify()
        try:
            rows, pagination = await self._request()
        except Exception:
            if generation != self._generation:
                LOG.debug("load - superseded fetch %s failed", generation, exc_info=True)
                return
            self._overlay.finish()
            if clear_on_error:
                self._loaded = []
                self._state.rows = []
                self._state.expanded_row_id = None
                if self._state.pagination is not None:
                    self._state.pagination.total_count = 0
                    self._state.pagination.total_pages = 0
            self._notify()
            raise

        if generation != self._generation:
            LOG.debug("load - dropping superseded fetch %s", generation)
            return
        self._overlay.finish()
        self._loaded = rows
        if pagination is not None and self._state.pagination is not None:
            self._state.pagination.total_count = pagination.total_count
            self._state.pagination.total_pages = pagination.total_pages
        self._apply_sort()
        LOG.info("load - endpoint:%s rows:%s", self.list_endpoint, len(rows))
        self._notify()

    async def _request(self) -> tuple[list[T], PaginationState | None]:
        pagination = self._state.pagination
        if pagination is None:
            records = await self._gateway.fetch_all(self.list_endpoint)
            return [self._decode_row(r) for r in records or []], None

        endpoint = (
            f"{self.list_endpoint}?pageNumber={pagination.page_number}"
            f"&pageSize={pagination.page_size}"
        )
        page = await self._gateway.fetch_paged(endpoint)
        return (
            [self._decode_row(r) for r in page.items],
            PaginationState(
                page_number=pagination.page_number,
                page_size=pagination.page_size,
                total_count=page.total_count,
                total_pages=page.total_pages,
            ),
        )

    def _decode_row(self, record: Any) -> T:
        return self._decode(record) if self._decode else record

    # ------------------------------------------------------------------
    # Interactive actions (disabled while the overlay is visible)
    # ------------------------------------------------------------------

    def sort(self, field: str) -> bool:
        """Sort by field; sorting by the current field flips the direction."""
        if self.overlay_visible:
            return False
        if field == self._state.sort_field:
            self._state.sort_ascending = not self._state.sort_ascending
        else:
            self._state.sort_field = field
            self._state.sort_ascending = True
        self._apply_sort()
        self._notify()
        return True

    def expand(self, row_id: Any) -> bool:
        """Toggle the expanded row; expanding the expanded row collapses it."""
        if self.overlay_visible:
            return False
        if self._state.expanded_row_id is not None and self._state.expanded_row_id == row_id:
            self._state.expanded_row_id = None
        else:
            self._state.expanded_row_id = row_id if self._find(row_id) is not None else None
        self._notify()
        return True

    async def change_page(self, page_number: int) -> bool:
        """Go to a page and fetch it. Pages below 1 are ignored."""
        pagination = self._state.pagination
        if self.overlay_visible or pagination is None or page_number <= 0:
            return False
        pagination.page_number = page_number
        await self.load()
        return True

    async def change_page_size(self, page_size: int) -> bool:
        """Change the page size, return to page 1 and fetch it."""
        pagination = self._state.pagination
        if self.overlay_visible or pagination is None or page_size <= 0:
            return False
        pagination.page_size = page_size
        pagination.page_number = 1
        await self.load()
        return True

    def request_edit(self, row_id: Any) -> bool:
        """Hand a row id to the screen's edit callback."""
        if self.overlay_visible or self._on_edit is None:
            return False
        self._on_edit(row_id)
        return True

    async def delete(self, row_id: Any) -> bool:
        """
        Delete a row, drop it locally, then reload the current page.

        A failed delete propagates with rows untouched. A failed reload is
        logged and swallowed; the row stays gone.
        """
        if self.overlay_visible:
            return False
        actor_id = resolve_actor_id(self._actor)
        await self._gateway.remove(self.delete_endpoint, row_id, actor_id)
        LOG.info("delete - endpoint:%s id:%s actor:%s", self.delete_endpoint, row_id, actor_id)

        self._loaded = [r for r in self._loaded if self.row_id(r) != row_id]
        self._state.rows = [r for r in self._state.rows if self.row_id(r) != row_id]
        if self._state.expanded_row_id == row_id:
            self._state.expanded_row_id = None
        self._notify()

        try:
            await self._fetch(clear_on_error=False)
        except Exception:
            LOG.warning("delete - reload after deleting %s failed", row_id, exc_info=True)
        return True

    # ------------------------------------------------------------------
    # External refresh
    # ------------------------------------------------------------------

    def on_external_invalidate(self, handler: Callable[[], Any]) -> Callable[[], None]:
        """
        Register a handler run after every invalidate().

        Returns:
            A callable that unregisters the handler.
        """
        self._refresh_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._refresh_handlers:
                self._refresh_handlers.remove(handler)

        return unsubscribe

    async def invalidate(self) -> None:
        """Reload after data changed elsewhere, then notify handlers."""
        await self.load()
        for handler in list(self._refresh_handlers):
            result = handler()
            if inspect.isawaitable(result):
                await result

    def close(self) -> None:
        """Release the screen: cancel the overlay timer and drop handlers."""
        self._overlay.close()
        self._refresh_handlers.clear()
        self._on_change = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_sort(self) -> None:
        self._state.rows = sort_rows(
            self._loaded, self._state.sort_field, self._state.sort_ascending
        )

    def _find(self, row_id: Any) -> T | None:
        for row in self._state.rows:
            if self.row_id(row) == row_id:
                return row
        return None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()


def sort_rows(rows: Sequence[T], field: str, ascending: bool = True) -> list[T]:
    """
    Return rows ordered by field.

    Rows whose value is None go last in both directions; ties keep their
    original order.
    """
    if not field:
        return list(rows)
    present = [r for r in rows if field_value(r, field) is not None]
    missing = [r for r in rows if field_value(r, field) is None]
    date_like = "date" in field.lower()
    return sorted(
        present, key=lambda r: sort_key(field_value(r, field), date_like), reverse=not ascending
    ) + missing


def sort_key(value: Any, date_like: bool = False) -> tuple:
    """
    Total-order key for one value.

    In date columns parsable dates rank first (chronologically), then
    numbers, then any other text case-insensitively.
    """
    if date_like:
        stamp = _timestamp(value)
        if stamp is not None:
            return (0, stamp)
    if _is_number(value):
        return (1, value)
    return (2, str(value).casefold())


def compare_values(left: Any, right: Any, date_like: bool = False) -> int:
    """Three-way comparison consistent with sort_key."""
    return _cmp(sort_key(left, date_like), sort_key(right, date_like))


def _cmp(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal))


def _timestamp(value: Any) -> float | None:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, datetime.min.time())
    elif isinstance(value, str):
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            parsed = parse_date(value)
            if parsed is None:
                return None
            moment = datetime.combine(parsed, datetime.min.time())
    else:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return (moment - _EPOCH).total_seconds()
