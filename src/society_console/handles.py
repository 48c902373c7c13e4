"""
Per-client screen handles and their registry.

A browser client has at most one listing and one add/edit screen open. The
view models behind them hold callables and entity objects that Reflex cannot
serialize, so they live here, keyed by (client token, "listing" | "edit").

Clients that close a tab never say goodbye, so the registry is bounded:
handles idle for longer than SCREEN_IDLE_SECONDS are expired, and beyond
MAX_SCREENS the least recently used handle is evicted. Evicted handles are
closed (overlay timers cancelled, sessions marked closed).
"""

import os
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable

from society_console.listing import Clock, ListingViewModel
from society_console.lookups import LookupHierarchy, RollupHierarchy
from society_console.lib import logs
from society_console.screens import (
    ScreenSpec,
    backfill_cascade,
    get_screen,
    load_lookups,
    lookup_hierarchies,
    open_listing,
    open_session,
)
from society_console.services.actors import ActorProvider
from society_console.services.crud_gateway import CrudGateway
from society_console.session import EditSession

LOG = logs.logger(__file__)

MAX_SCREENS = int(os.getenv("SOCIETY_CONSOLE_MAX_SCREENS", "500"))
SCREEN_IDLE_SECONDS = float(os.getenv("SOCIETY_CONSOLE_SCREEN_IDLE_SECONDS", "1800"))

HandleKey = tuple[str, str]


@dataclass
class ScreenHandle:
    """
    Objects behind one open screen of one client.

    Attributes:
        spec: Screen settings.
        listing: Listing view model (listing screens).
        session: Edit session (add/edit screens).
        lookups: Field -> (hierarchy, level) for labels and options.
        rollup: Group totals (maintenance group listing only).
        redirect: Target recorded by the session's navigate callback.
        edit_request: Row id recorded by the listing's on_edit callback.
        confirm_requested: Set when a leave was blocked pending confirmation.
    """

    spec: ScreenSpec
    listing: ListingViewModel | None = None
    session: EditSession | None = None
    lookups: dict[str, tuple[LookupHierarchy, int]] = field(default_factory=dict)
    rollup: RollupHierarchy | None = None
    redirect: str | None = None
    edit_request: Any = None
    confirm_requested: bool = False

    async def load_record(self, gateway: CrudGateway, entity_id: Any = None) -> Any:
        """Load the options, then the record of an add/edit screen."""
        await load_lookups(self.lookups, gateway)
        record = await self.session.load(entity_id)
        if self.spec.cascade:
            backfill_cascade(self.session, self.lookups)
        return record

    async def leave(self, target: str | None = None) -> str | None:
        """
        Ask the session to leave for target.

        Returns:
            The route to redirect to, or None when leaving is on hold until
            the user confirms (confirm_requested is then True).
        """
        self.confirm_requested = False
        if await self.session.request_leave(target or self.spec.listing_route):
            return self.take_redirect()
        return None

    async def confirm_leave(self, target: str | None = None) -> str | None:
        """Leave for target, discarding unsaved changes."""
        self.session.suppress_guard_once()
        return await self.leave(target)

    def take_redirect(self) -> str:
        target = self.redirect or self.spec.listing_route
        self.redirect = None
        return target

    def close(self) -> None:
        if self.listing is not None:
            self.listing.close()
        if self.session is not None:
            self.session.is_closed = True


def listing_handle(
    kind: str,
    gateway: CrudGateway,
    actor: ActorProvider | None = None,
    clock: Clock | None = None,
) -> ScreenHandle:
    """Build the handle of a listing screen; edit requests are recorded on it."""
    spec = get_screen(kind)
    handle = ScreenHandle(spec=spec, lookups=lookup_hierarchies(spec))

    def remember_edit(row_id: Any) -> None:
        handle.edit_request = row_id

    handle.listing = open_listing(kind, gateway, actor=actor, on_edit=remember_edit, clock=clock)
    return handle


def edit_handle(kind: str, gateway: CrudGateway, actor: ActorProvider | None = None) -> ScreenHandle:
    """
    Build the handle of an add/edit screen.

    Navigation is recorded as handle.redirect for the page to perform, and a
    dirty leave is held back with confirm_requested set, so every way off
    the page goes through EditSession.request_leave.
    """
    spec = get_screen(kind)
    handle = ScreenHandle(spec=spec, lookups=lookup_hierarchies(spec))

    def navigate(target: Any) -> None:
        handle.redirect = str(target) if target is not None else spec.listing_route

    async def confirm_leave() -> bool:
        handle.confirm_requested = True
        return False

    handle.session = open_session(
        kind,
        gateway,
        actor=actor,
        navigate=navigate,
        confirm_leave=confirm_leave,
        lookups=handle.lookups,
    )
    return handle


class ScreenRegistry:
    """Bounded LRU map of HandleKey -> ScreenHandle with idle expiry."""

    def __init__(
        self,
        max_entries: int | None = None,
        idle_seconds: float | None = None,
        clock: Callable[[], float] | None = None,
        on_evict: Callable[[HandleKey, ScreenHandle], None] | None = None,
    ) -> None:
        self.max_entries = max(1, max_entries if max_entries is not None else MAX_SCREENS)
        self.idle_seconds = idle_seconds if idle_seconds is not None else SCREEN_IDLE_SECONDS
        self._clock = clock or time.monotonic
        self._on_evict = on_evict
        self._entries: OrderedDict[HandleKey, tuple[ScreenHandle, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: HandleKey) -> bool:
        return key in self._entries

    def get(self, key: HandleKey) -> ScreenHandle | None:
        """Return the handle and mark it used; expired handles read as missing."""
        self._expire()
        entry = self._entries.get(key)
        if entry is None:
            return None
        self._entries[key] = (entry[0], self._clock())
        self._entries.move_to_end(key)
        return entry[0]

    def put(self, key: HandleKey, handle: ScreenHandle) -> None:
        """Store a handle, closing the one it replaces and evicting the overflow."""
        self.discard(key)
        self._entries[key] = (handle, self._clock())
        self._expire()
        while len(self._entries) > self.max_entries:
            old_key, (old, _) = self._entries.popitem(last=False)
            self._evict(old_key, old, "capacity")

    def discard(self, key: HandleKey) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            entry[0].close()

    def _expire(self) -> None:
        if self.idle_seconds <= 0:
            return
        cutoff = self._clock() - self.idle_seconds
        # Oldest first; stop at the first handle used after the cutoff
        while self._entries:
            key, (handle, used) = next(iter(self._entries.items()))
            if used > cutoff:
                break
            del self._entries[key]
            self._evict(key, handle, "idle")

    def _evict(self, key: HandleKey, handle: ScreenHandle, reason: str) -> None:
        LOG.debug("evict - key:%s reason:%s", key, reason)
        handle.close()
        if self._on_evict is not None:
            self._on_evict(key, handle)
