"""
Demo implementation of CrudGateway using in-memory records.

This gateway is useful for:
- Local development without a running backend
- Testing listing and edit screens with realistic data
- Demonstrating the console without network dependencies

Requests are routed by the endpoint's first path segment
("/flat/Get-All-Flats" -> "flat"), so any endpoint name of a resource hits
the same record set. Paged endpoints read pageNumber/pageSize from the query
string exactly as the backend does. The bulk meter reading endpoints are
answered from the meter, flat and meter reading records.
"""

import asyncio
import copy
import math
import urllib.parse
from typing import Any, Mapping

from society_console.billing import billing_period
from society_console.data.demo_records import DEMO_LISTS, DEMO_RECORDS, RESOURCE_ID_KEYS
from society_console.errors import GatewayError
from society_console.lib import logs
from society_console.models.common import DEFAULT_PAGED_PAGE_SIZE, GatewayResponse, PagedResult
from society_console.services.crud_gateway import CrudGateway

LOG = logs.logger(__file__)

ENTRY_ROWS_PATH = "/meterreading/Get-MeterReading-Entry-Rows"
BULK_ADD_PATH = "/meterreading/Add-MeterReadings-Bulk"


class DemoCrudGateway(CrudGateway):
    """
    In-memory gateway backed by demo records.

    Every instance works on its own deep copy of the records, so writes never
    leak between gateways.

    Attributes:
        latency: Simulated round-trip time in seconds.
    """

    def __init__(
        self,
        records: Mapping[str, list[dict[str, Any]]] | None = None,
        lists: Mapping[str, list[dict[str, Any]]] | None = None,
        id_keys: Mapping[str, str] | None = None,
        latency: float = 0.0,
    ) -> None:
        """
        Initialize with record data.

        Args:
            records: Records per resource segment, or None for DEMO_RECORDS.
            lists: Auxiliary list endpoints, or None for DEMO_LISTS.
            id_keys: Id key per resource segment, or None for RESOURCE_ID_KEYS.
            latency: Seconds to sleep before answering each call.
        """
        self._records: dict[str, list[dict[str, Any]]] = copy.deepcopy(
            dict(DEMO_RECORDS if records is None else records)
        )
        self._lists = copy.deepcopy(dict(DEMO_LISTS if lists is None else lists))
        self._id_keys = dict(RESOURCE_ID_KEYS if id_keys is None else id_keys)
        self.latency = latency

    async def create(
        self,
        endpoint: str,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        await self._wait()
        if _split(endpoint)[0] == BULK_ADD_PATH:
            return self._add_bulk(payload, actor_id)
        resource, _ = _route(endpoint)
        records = self._resource(resource)
        id_key = self._id_key(resource)
        record = dict(payload)
        record[id_key] = max((r.get(id_key) or 0 for r in records), default=0) + 1
        records.append(record)
        LOG.info("create - resource:%s id:%s actor:%s", resource, record[id_key], actor_id)
        return GatewayResponse(status_code=201, data=dict(record))

    async def fetch_all(self, endpoint: str) -> list[Any]:
        await self._wait()
        path, _ = _split(endpoint)
        if path.startswith(ENTRY_ROWS_PATH + "/"):
            return self._entry_rows(path.rsplit("/", 1)[1])
        if path in self._lists:
            return copy.deepcopy(self._lists[path])
        resource, _ = _route(endpoint)
        return copy.deepcopy(self._resource(resource))

    async def fetch_by_id(self, endpoint: str, entity_id: Any) -> Any:
        await self._wait()
        resource, _ = _route(endpoint)
        return copy.deepcopy(self._find(resource, entity_id))

    async def fetch_paged(self, endpoint: str) -> PagedResult[Any]:
        await self._wait()
        resource, query = _route(endpoint)
        records = self._resource(resource)
        page_number = max(_query_int(query, "pageNumber", 1), 1)
        page_size = max(_query_int(query, "pageSize", DEFAULT_PAGED_PAGE_SIZE), 1)
        start = (page_number - 1) * page_size
        return PagedResult(
            items=copy.deepcopy(records[start : start + page_size]),
            page_number=page_number,
            page_size=page_size,
            total_count=len(records),
            total_pages=math.ceil(len(records) / page_size),
        )

    async def update(
        self,
        endpoint: str,
        entity_id: Any,
        payload: dict[str, Any],
        actor_id: str,
        is_multipart: bool = True,
    ) -> GatewayResponse:
        await self._wait()
        resource, _ = _route(endpoint)
        record = self._find(resource, entity_id)
        record.update(payload)
        record[self._id_key(resource)] = record.get(self._id_key(resource)) or _coerce_id(entity_id)
        LOG.info("update - resource:%s id:%s actor:%s", resource, entity_id, actor_id)
        return GatewayResponse(status_code=200, data=dict(record))

    async def remove(self, endpoint: str, entity_id: Any, actor_id: str) -> GatewayResponse:
        await self._wait()
        resource, _ = _route(endpoint)
        record = self._find(resource, entity_id)
        self._resource(resource).remove(record)
        LOG.info("remove - resource:%s id:%s actor:%s", resource, entity_id, actor_id)
        return GatewayResponse(status_code=200)

    def _entry_rows(self, apartment_id: str) -> list[dict[str, Any]]:
        """One bulk entry row per active meter of an apartment."""
        wanted = _coerce_id(apartment_id)
        flats = {f.get("flatId"): f for f in self._records.get("flat", [])}
        rows = []
        for meter in self._records.get("meter", []):
            if meter.get("apartmentId") != wanted or meter.get("isActive") is False:
                continue
            flat = flats.get(meter.get("flatId")) if meter.get("flatId") is not None else None
            rows.append(
                {
                    "meterId": meter.get("meterId"),
                    "flatId": meter.get("flatId"),
                    "flatNumber": flat.get("flatNumber") if flat else None,
                    "ownerRenterDisplay": None,
                    "readingTypeIdDefault": None,
                    "isApartmentCommonMeter": meter.get("flatId") is None,
                }
            )
        return rows

    def _add_bulk(self, payload: Mapping[str, Any], actor_id: str) -> GatewayResponse:
        """Store every entry of a bulk request as its own meter reading."""
        readings = self._resource("meterreading")
        id_key = self._id_key("meterreading")
        period = billing_period(payload.get("readingDate"))
        created = []
        for entry in payload.get("entries") or []:
            record = {
                id_key: max((r.get(id_key) or 0 for r in readings), default=0) + 1,
                "meterId": entry.get("meterId"),
                "readingDate": payload.get("readingDate"),
                "readingValue": entry.get("currentReading"),
                "readingTypeId": entry.get("readingTypeId"),
                "billingFromDate": period.from_date.isoformat() if period.from_date else None,
                "billingToDate": period.to_date.isoformat() if period.to_date else None,
                "isEstimated": False,
                "isActive": True,
            }
            readings.append(record)
            created.append(record[id_key])
        LOG.info("create - bulk readings:%s apartment:%s actor:%s", len(created), payload.get("apartmentId"), actor_id)
        return GatewayResponse(status_code=201, data={"created": len(created), "ids": created})

    async def _wait(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _resource(self, resource: str) -> list[dict[str, Any]]:
        try:
            return self._records[resource]
        except KeyError as exc:
            raise GatewayError(f"HTTP 404 - unknown resource: {resource}", status_code=404) from exc

    def _id_key(self, resource: str) -> str:
        return self._id_keys.get(resource, "id")

    def _find(self, resource: str, entity_id: Any) -> dict[str, Any]:
        id_key = self._id_key(resource)
        wanted = _coerce_id(entity_id)
        for record in self._resource(resource):
            if record.get(id_key) == wanted:
                return record
        raise GatewayError(
            f"HTTP 404 - {resource} {entity_id} not found",
            status_code=404,
            api_message="Record not found.",
        )


def _split(endpoint: str) -> tuple[str, str]:
    parsed = urllib.parse.urlsplit(endpoint)
    return "/" + parsed.path.strip("/"), parsed.query


def _route(endpoint: str) -> tuple[str, dict[str, list[str]]]:
    path, query = _split(endpoint)
    resource = path.strip("/").split("/", 1)[0].lower()
    return resource, urllib.parse.parse_qs(query)


def _query_int(query: dict[str, list[str]], name: str, fallback: int) -> int:
    values = query.get(name)
    if not values:
        return fallback
    try:
        return int(values[0])
    except ValueError:
        return fallback


def _coerce_id(entity_id: Any) -> Any:
    if isinstance(entity_id, str) and entity_id.strip().isdigit():
        return int(entity_id)
    return entity_id
