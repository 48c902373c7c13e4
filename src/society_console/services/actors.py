"""
Current actor providers.

The identity of the signed-in user is owned by the authentication layer.
The core only reads it, through an injected provider, when it needs to
stamp CreatedBy / ModifiedBy / DeletedBy on a write.
"""

import os
from typing import Any, Protocol

ANONYMOUS_ACTOR = "0"


class ActorProvider(Protocol):
    """Synchronous read of the opaque current-actor identity."""

    def current_actor(self) -> Any: ...


class StaticActor:
    """Actor provider returning a fixed identity."""

    def __init__(self, actor_id: Any = None) -> None:
        self.actor_id = actor_id

    def current_actor(self) -> Any:
        return self.actor_id


class EnvActor:
    """Actor provider reading SOCIETY_CONSOLE_ACTOR_ID on every call."""

    def current_actor(self) -> Any:
        return os.getenv("SOCIETY_CONSOLE_ACTOR_ID")


def resolve_actor_id(provider: ActorProvider | None) -> str:
    """
    Return the current actor as a transport string.

    A missing provider or identity resolves to "0"; the call still goes out
    and is expected to be rejected server-side.
    """
    if provider is None:
        return ANONYMOUS_ACTOR
    actor = provider.current_actor()
    if actor is None or str(actor).strip() == "":
        return ANONYMOUS_ACTOR
    return str(actor).strip()
