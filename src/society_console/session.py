"""
Edit session controller for add/edit screens.

An EditSession holds the record a form edits and everything around it:

- snapshot: a private shallow copy of what was loaded (or the default
  record when adding), reassigned after every successful save
- current: the working copy the form writes into
- dirty tracking: a field is dirty when it differs from the snapshot; plain
  values compare by value, nested records and containers by identity
- submit modes: "save" leaves the screen, "saveAndNext" (add only) starts a
  fresh record that keeps the sticky fields
- a navigation guard asking for confirmation before dirty changes are lost

Screens drive the session through SessionCommands instead of reaching into
the form.
"""

import enum
import inspect
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, Generic, Iterable, Sequence, TypeVar

from society_console.errors import GatewayError
from society_console.lib import logs
from society_console.lib.objects import (
    field_names,
    field_value,
    set_field_value,
    shallow_copy,
    to_json,
)
from society_console.models.common import GatewayResponse
from society_console.services.actors import ActorProvider, resolve_actor_id
from society_console.services.crud_gateway import CrudGateway

LOG = logs.logger(__file__)

T = TypeVar("T")

FieldDerivation = Callable[[str, Any, Any], dict[str, Any]]

_SCALARS = (str, int, float, bool, Decimal, date, datetime, type(None))


class SubmitMode(str, enum.Enum):
    SAVE = "save"
    SAVE_AND_NEXT = "saveAndNext"


class SubmitOutcome(enum.Enum):
    """What a submit did."""

    INVALID = "invalid"
    SAVED_AND_LEFT = "saved_and_left"
    SAVED_AND_NEXT = "saved_and_next"
    BUSY = "busy"


@dataclass(frozen=True)
class SessionCommands:
    """Command handle a screen's buttons call into."""

    submit: Callable[[SubmitMode], Awaitable[SubmitOutcome]]
    reset: Callable[[], None]
    save_and_next: Callable[[], Awaitable[SubmitOutcome]]


class EditSession(Generic[T]):
    """
    State and lifecycle of one add/edit screen.

    Attributes:
        entity_id: Id being edited, None when adding.
        snapshot: Last loaded or saved record.
        current: Working copy.
        submit_mode: Mode of the submit in flight.
        is_submitting: True while a save is outstanding.
        last_response: Response of the last successful save.
    """

    def __init__(
        self,
        gateway: CrudGateway,
        factory: Callable[[], T],
        get_endpoint: str,
        add_endpoint: str,
        update_endpoint: str,
        decode: Callable[[Any], T] | None = None,
        encode: Callable[[T], dict[str, Any]] | None = None,
        validate: Callable[[T], bool] | None = None,
        navigate: Callable[[Any], Any] | None = None,
        confirm_leave: Callable[[], Awaitable[bool]] | None = None,
        actor: ActorProvider | None = None,
        sticky_fields: Sequence[str] = (),
        derivations: Iterable[FieldDerivation] = (),
        is_multipart: bool = False,
        leave_target: Any = None,
    ) -> None:
        """
        Args:
            gateway: Transport for fetch/create/update.
            factory: Builds the default (empty) record.
            decode: Converts a fetched record; defaults to a plain dict copy.
            encode: Builds the request payload; defaults to the record's
                to_payload() or a dict copy.
            validate: Returns False to block a submit.
            navigate: Performs navigation to a target (sync or async).
            confirm_leave: Asks the user whether dirty changes may be lost.
                Without it, leaving is never blocked.
            actor: Current actor provider for CreatedBy/ModifiedBy.
            sticky_fields: Fields carried into the next record on saveAndNext.
            derivations: Run after every set_field; each returns further
                field updates.
            is_multipart: Send payloads as multipart/form-data.
            leave_target: Where a "save" navigates to, usually the listing.
        """
        self._gateway = gateway
        self._factory = factory
        self.get_endpoint = get_endpoint
        self.add_endpoint = add_endpoint
        self.update_endpoint = update_endpoint
        self._decode = decode or _default_decode
        self._encode = encode or _default_encode
        self._validate = validate
        self._navigate = navigate
        self._confirm_leave = confirm_leave
        self._actor = actor
        self.sticky_fields = tuple(sticky_fields)
        self._derivations = list(derivations)
        self.is_multipart = is_multipart
        self.leave_target = leave_target

        self.entity_id: Any = None
        self.snapshot: T | None = None
        self.current: T | None = None
        self.submit_mode = SubmitMode.SAVE
        self.is_submitting = False
        self.is_closed = False
        self.last_response: GatewayResponse | None = None
        self._suppress_guard = False

    @property
    def is_edit(self) -> bool:
        return self.entity_id is not None

    @property
    def is_dirty(self) -> bool:
        if self.current is None or self.snapshot is None:
            return False
        return bool(self.dirty_fields())

    def dirty_fields(self) -> list[str]:
        """Names of the fields that differ from the snapshot."""
        if self.current is None or self.snapshot is None:
            return []
        return [
            name
            for name in field_names(self.current)
            if _differs(field_value(self.current, name), field_value(self.snapshot, name))
        ]

    async def load(self, entity_id: Any = None) -> T:
        """
        Start the session.

        Without an id the session starts from the default record; with an
        id the record is fetched. Snapshot and working copy are separate
        shallow copies.
        """
        if entity_id is None or entity_id == "":
            record = self._factory()
            self.entity_id = None
        else:
            raw = await self._gateway.fetch_by_id(self.get_endpoint, entity_id)
            if raw is None:
                raise GatewayError(
                    f"{self.get_endpoint} returned no record for {entity_id}",
                    status_code=404,
                )
            record = self._decode(raw)
            self.entity_id = entity_id
            LOG.info("load - endpoint:%s id:%s", self.get_endpoint, entity_id)
        self.snapshot = shallow_copy(record)
        self.current = shallow_copy(record)
        self.is_closed = False
        return self.current

    def set_field(self, name: str, value: Any) -> None:
        """
        Write one field of the working copy and run the derivations.

        Raises:
            KeyError: If the record has no such field.
        """
        if self.current is None:
            raise RuntimeError("EditSession.load() must run before set_field()")
        set_field_value(self.current, name, value)
        for derive in self._derivations:
            for derived_name, derived_value in derive(name, value, self.current).items():
                set_field_value(self.current, derived_name, derived_value)

    def reset(self) -> None:
        """Discard edits: the working copy becomes a copy of the snapshot."""
        if self.snapshot is not None:
            self.current = shallow_copy(self.snapshot)

    async def submit(self, mode: SubmitMode = SubmitMode.SAVE) -> SubmitOutcome:
        """
        Validate and save the working copy.

        A transport failure propagates and leaves the session as it was,
        apart from is_submitting being cleared.
        """
        if self.current is None:
            raise RuntimeError("EditSession.load() must run before submit()")
        if self.is_submitting:
            return SubmitOutcome.BUSY
        if self._validate is not None and not self._validate(self.current):
            LOG.info("submit - validation failed, nothing sent")
            return SubmitOutcome.INVALID

        mode = SubmitMode(mode)
        self.is_submitting = True
        self.submit_mode = mode
        try:
            payload = self._encode(self.current)
            LOG.debug("submit - payload:%s", to_json(payload))
            actor_id = resolve_actor_id(self._actor)
            if self.is_edit:
                response = await self._gateway.update(
                    self.update_endpoint, self.entity_id, payload, actor_id, self.is_multipart
                )
            else:
                response = await self._gateway.create(
                    self.add_endpoint, payload, actor_id, self.is_multipart
                )
        except Exception:
            LOG.error("submit - save failed mode:%s", mode.value, exc_info=True)
            raise
        finally:
            self.is_submitting = False
            self.submit_mode = SubmitMode.SAVE

        self.last_response = response
        LOG.info(
            "submit - saved mode:%s edit:%s status:%s", mode.value, self.is_edit, response.status_code
        )

        if not self.is_edit and mode is SubmitMode.SAVE_AND_NEXT:
            fresh = self._factory()
            for name in self.sticky_fields:
                set_field_value(fresh, name, field_value(self.current, name))
            self.snapshot = shallow_copy(fresh)
            self.current = fresh
            return SubmitOutcome.SAVED_AND_NEXT

        self.snapshot = shallow_copy(self.current)
        self.suppress_guard_once()
        await self.request_leave(self.leave_target)
        return SubmitOutcome.SAVED_AND_LEFT

    async def save_and_next(self) -> SubmitOutcome:
        return await self.submit(SubmitMode.SAVE_AND_NEXT)

    def commands(self) -> SessionCommands:
        return SessionCommands(submit=self.submit, reset=self.reset, save_and_next=self.save_and_next)

    def suppress_guard_once(self) -> None:
        """Let the next leave through without asking."""
        self._suppress_guard = True

    async def request_leave(self, target: Any = None) -> bool:
        """
        Leave the screen, asking first when there are unsaved changes.

        Returns:
            True if navigation went ahead.
        """
        if self._suppress_guard:
            self._suppress_guard = False
        elif self.is_dirty and not self.is_submitting and self._confirm_leave is not None:
            if not await self._confirm_leave():
                LOG.debug("request_leave - cancelled target:%s", target)
                return False

        self.is_closed = True
        if self._navigate is not None:
            result = self._navigate(target)
            if inspect.isawaitable(result):
                await result
        return True


def _differs(current: Any, snapshot: Any) -> bool:
    if isinstance(current, _SCALARS) and isinstance(snapshot, _SCALARS):
        return current != snapshot
    return current is not snapshot


def _default_decode(raw: Any) -> Any:
    return dict(raw)


def _default_encode(record: Any) -> dict[str, Any]:
    if hasattr(record, "to_payload"):
        return record.to_payload()
    return dict(record)
