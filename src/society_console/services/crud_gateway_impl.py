"""
requests-backed implementation of CrudGateway for the REST backend.

This module provides the production gateway that:
- Sends JSON or multipart/form-data bodies depending on the screen
- Stamps the acting user on writes (CreatedBy / ModifiedBy / DeletedBy)
- Attaches an optional bearer token
- Decodes paged responses into PagedResult

requests is blocking, so every round trip runs on a worker thread through
asyncio.to_thread and the event loop driving the screens never stalls.
"""

import asyncio
import urllib.parse
from typing import Any

import requests

from society_console.errors import GatewayError
from society_console.lib import clients, logs
from society_console.models.common import GatewayResponse, PagedResult
from society_console.services.crud_gateway import (
    CREATED_BY_HEADER,
    DELETED_BY_HEADER,
    MODIFIED_BY_HEADER,
    CrudGateway,
)

LOG = logs.logger(__file__)


class HttpCrudGateway(CrudGateway):
    """
    Production gateway talking to the console's REST backend.

    Optional Environment Variables:
        SOCIETY_CONSOLE_API_URL: Backend base URL
        SOCIETY_CONSOLE_API_TIMEOUT: Request timeout in seconds

    Attributes:
        base_url: Backend base URL, without trailing slash.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = (base_url or clients.api_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else clients.api_timeout()
        self._session = session or clients.http_session()
        self._token = token

    async def create(
        self,
        endpoint: str,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        return await self._write(
            "POST", self._url(endpoint), payload, {CREATED_BY_HEADER: actor_id}, is_multipart
        )

    async def fetch_all(self, endpoint: str) -> list[Any]:
        response = await self._call("GET", self._url(endpoint))
        data = _decode_body(response)
        if not isinstance(data, list):
            LOG.warning("fetch_all - %s did not return a list", endpoint)
            return []
        return data

    async def fetch_by_id(self, endpoint: str, entity_id: Any) -> Any:
        response = await self._call("GET", self._url(endpoint, entity_id))
        return _decode_body(response)

    async def fetch_paged(self, endpoint: str) -> PagedResult[Any]:
        response = await self._call("GET", self._url(endpoint))
        return PagedResult.from_response(_decode_body(response))

    async def update(
        self,
        endpoint: str,
        entity_id: Any,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        return await self._write(
            "PUT",
            self._url(endpoint, entity_id),
            payload,
            {MODIFIED_BY_HEADER: actor_id},
            is_multipart,
        )

    async def remove(self, endpoint: str, entity_id: Any, actor_id: str) -> GatewayResponse:
        response = await self._call(
            "DELETE", self._url(endpoint, entity_id), headers={DELETED_BY_HEADER: actor_id}
        )
        return GatewayResponse(status_code=response.status_code, data=_decode_body(response))

    async def close(self) -> None:
        # The shared session outlives individual gateways
        if self._session is not clients.http_session():
            self._session.close()

    def _url(self, endpoint: str, entity_id: Any = None) -> str:
        url = self.base_url + "/" + endpoint.lstrip("/")
        if entity_id is not None:
            url += "/" + urllib.parse.quote(str(entity_id), safe="")
        return url

    async def _write(
        self,
        method: str,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        is_multipart: bool,
    ) -> GatewayResponse:
        if is_multipart:
            response = await self._call(method, url, headers=headers, files=_multipart_fields(payload))
        else:
            response = await self._call(method, url, headers=headers, json=payload)
        return GatewayResponse(status_code=response.status_code, data=_decode_body(response))

    async def _call(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        return await asyncio.to_thread(self._send, method, url, **kwargs)

    def _send(
        self, method: str, url: str, headers: dict[str, str] | None = None, **kwargs: Any
    ) -> requests.Response:
        merged = dict(headers or {})
        if self._token:
            merged["Authorization"] = f"Bearer {self._token}"
        LOG.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method, url, headers=merged, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise GatewayError(f"Network error calling {method} {url}: {e}") from e

        if response.status_code >= 400:
            api_message = _error_message(response)
            raise GatewayError(
                f"HTTP {response.status_code} from {method} {url}: {(api_message or response.text or '')[:300]}",
                status_code=response.status_code,
                api_message=api_message,
            )
        return response


def _multipart_fields(payload: dict[str, Any]) -> list[tuple[str, Any]]:
    """
    Encode a payload as multipart form fields.

    File values ((filename, bytes[, content_type]) tuples) pass through;
    scalars become text parts and None values are omitted.
    """
    parts: list[tuple[str, Any]] = []
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, tuple):
            parts.append((key, value))
        elif isinstance(value, bool):
            parts.append((key, (None, "true" if value else "false")))
        elif isinstance(value, (list, set)):
            parts.extend((key, (None, str(item))) for item in value)
        else:
            parts.append((key, (None, str(value))))
    return parts


def _decode_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_message(response: requests.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("Message")
        return str(message) if message else None
    return None
