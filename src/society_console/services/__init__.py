"""
Gateway factory for the Society Console.

This module provides the get_crud_gateway() factory function that returns
the appropriate CrudGateway implementation based on configuration.

Available Implementations:
- demo: In-memory gateway with static demo records (no backend required)
- live: requests-backed gateway for the REST backend

The gateway is cached at the module level, so the same instance is reused
across all screens. Configure via SOCIETY_CONSOLE_GATEWAY environment
variable.
"""

import os
from functools import cache
from typing import Callable, Dict

from society_console.lib import logs
from society_console.services.actors import (
    ANONYMOUS_ACTOR,
    ActorProvider,
    EnvActor,
    StaticActor,
    resolve_actor_id,
)
from society_console.services.crud_gateway import CrudGateway
from society_console.services.crud_gateway_demo import DemoCrudGateway
from society_console.services.crud_gateway_impl import HttpCrudGateway

LOG = logs.logger(__file__)

_GATEWAY_REGISTRY: Dict[str, Callable[[], CrudGateway]] = {
    "demo": lambda: DemoCrudGateway(),
    "live": lambda: HttpCrudGateway(),
}


@cache
def get_crud_gateway(kind: str | None = None) -> CrudGateway:
    """Return the configured gateway implementation."""
    resolved_kind = (kind or os.getenv("SOCIETY_CONSOLE_GATEWAY", "live")).lower()
    LOG.info("get_crud_gateway - kind:%s resolved_kind:%s", kind, resolved_kind)
    try:
        factory = _GATEWAY_REGISTRY[resolved_kind]
    except KeyError as exc:
        msg = f"Unknown gateway kind: {resolved_kind}"
        raise ValueError(msg) from exc
    return factory()


__all__ = [
    "ANONYMOUS_ACTOR",
    "ActorProvider",
    "CrudGateway",
    "DemoCrudGateway",
    "EnvActor",
    "HttpCrudGateway",
    "StaticActor",
    "get_crud_gateway",
    "resolve_actor_id",
]
