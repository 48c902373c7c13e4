"""
Abstract base class defining the generic CRUD gateway contract.

Every listing and add/edit screen talks to the backend through a
CrudGateway. The contract is entity-agnostic: callers pass the endpoint
string and a payload, and the gateway threads the current actor through to
the transport as CreatedBy / ModifiedBy / DeletedBy.

All operations are coroutines. A gateway performs no retries and keeps no
local cache; each call is a fresh round trip and transport failures raise
GatewayError.

Implementations:
- HttpCrudGateway: requests-backed client for the REST backend
- DemoCrudGateway: in-memory records for development and tests
"""

from abc import ABC, abstractmethod
from typing import Any

from society_console.models.common import GatewayResponse, PagedResult

CREATED_BY_HEADER = "CreatedBy"
MODIFIED_BY_HEADER = "ModifiedBy"
DELETED_BY_HEADER = "DeletedBy"


class CrudGateway(ABC):
    """
    Abstract base class for backend data access.

    Records are returned as decoded JSON (dicts); screens convert them to
    entity models.
    """

    @abstractmethod
    async def create(
        self,
        endpoint: str,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        """
        Create an entity (POST endpoint).

        Args:
            endpoint: Path of the add endpoint, e.g. "/flat/Add-New-Flat".
            payload: Camel-cased entity payload.
            actor_id: Identity recorded as CreatedBy.
            is_multipart: Send as multipart/form-data instead of JSON.
        """

    @abstractmethod
    async def fetch_all(self, endpoint: str) -> list[Any]:
        """Fetch every record from a list endpoint (GET endpoint)."""

    @abstractmethod
    async def fetch_by_id(self, endpoint: str, entity_id: Any) -> Any:
        """Fetch a single record (GET endpoint/id)."""

    @abstractmethod
    async def fetch_paged(self, endpoint: str) -> PagedResult[Any]:
        """
        Fetch one page from a paged endpoint.

        Args:
            endpoint: Path including the paging query string, e.g.
                "/meterreading/Get-All-MeterReadings-Paged?pageNumber=2&pageSize=8".
        """

    @abstractmethod
    async def update(
        self,
        endpoint: str,
        entity_id: Any,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        """Update an entity (PUT endpoint/id), recording ModifiedBy."""

    @abstractmethod
    async def remove(self, endpoint: str, entity_id: Any, actor_id: str) -> GatewayResponse:
        """Delete an entity (DELETE endpoint/id), recording DeletedBy."""

    async def close(self) -> None:
        """Release transport resources. Default implementation does nothing."""
