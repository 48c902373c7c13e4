"""
Pytest fixtures for the Society Console test suite.
"""
import pytest

from society_console.listing import ListingViewModel
from society_console.services import DemoCrudGateway, StaticActor


class FakeClock:
    """Controllable seconds clock for overlay timing."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingGateway(DemoCrudGateway):
    """
    Demo gateway that records every call.

    Fetches advance the attached clock by fetch_seconds, and failures can be
    injected per operation.
    """

    def __init__(self, *args, clock=None, fetch_seconds=0.0, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []
        self.clock = clock
        self.fetch_seconds = fetch_seconds
        self.fetch_error = None
        self.fetch_error_after_remove = None
        self.remove_error = None
        self.write_error = None

    def _fetched(self):
        if self.clock is not None:
            self.clock.advance(self.fetch_seconds)
        if self.fetch_error is not None:
            raise self.fetch_error

    async def fetch_all(self, endpoint):
        self.calls.append(("fetch_all", endpoint))
        self._fetched()
        return await super().fetch_all(endpoint)

    async def fetch_paged(self, endpoint):
        self.calls.append(("fetch_paged", endpoint))
        self._fetched()
        return await super().fetch_paged(endpoint)

    async def fetch_by_id(self, endpoint, entity_id):
        self.calls.append(("fetch_by_id", endpoint, entity_id))
        return await super().fetch_by_id(endpoint, entity_id)

    async def create(self, endpoint, payload, actor_id, is_multipart=True):
        self.calls.append(("create", endpoint, payload, actor_id, is_multipart))
        if self.write_error is not None:
            raise self.write_error
        return await super().create(endpoint, payload, actor_id, is_multipart)

    async def update(self, endpoint, entity_id, payload, actor_id, is_multipart=True):
        self.calls.append(("update", endpoint, entity_id, payload, actor_id, is_multipart))
        if self.write_error is not None:
            raise self.write_error
        return await super().update(endpoint, entity_id, payload, actor_id, is_multipart)

    async def remove(self, endpoint, entity_id, actor_id):
        self.calls.append(("remove", endpoint, entity_id, actor_id))
        if self.remove_error is not None:
            raise self.remove_error
        response = await super().remove(endpoint, entity_id, actor_id)
        if self.fetch_error_after_remove is not None:
            self.fetch_error = self.fetch_error_after_remove
        return response

    def operations(self):
        return [call[0] for call in self.calls]


FLAT_ROWS = [
    {"flatId": 1, "flatNumber": "b-2", "floorNumber": 10, "possessionDate": "2024-03-01", "area": None},
    {"flatId": 2, "flatNumber": "A-1", "floorNumber": 9, "possessionDate": "2023-12-31", "area": 900},
    {"flatId": 3, "flatNumber": "c-3", "floorNumber": 100, "possessionDate": None, "area": 1200},
    {"flatId": 4, "flatNumber": "B-1", "floorNumber": 2, "possessionDate": "02/15/2024", "area": 640},
]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def actor():
    return StaticActor("42")


@pytest.fixture
def flat_gateway(clock):
    """Gateway holding only FLAT_ROWS under the "flat" resource."""
    return RecordingGateway(
        records={"flat": [dict(r) for r in FLAT_ROWS]},
        lists={},
        id_keys={"flat": "flatId"},
        clock=clock,
    )


@pytest.fixture
def demo_gateway(clock):
    """Gateway over the full demo data set."""
    return RecordingGateway(clock=clock)


@pytest.fixture
def make_flat_listing(flat_gateway, clock, actor):
    """Factory for an unpaged listing over FLAT_ROWS with raw dict rows."""

    def make(**kwargs):
        options = {
            "list_endpoint": "/flat/Get-All-Flats",
            "delete_endpoint": "/flat/Delete-Flat",
            "id_field": "flatId",
            "actor": actor,
            "clock": clock,
            "min_loading_ms": 0,
        }
        options.update(kwargs)
        return ListingViewModel(flat_gateway, **options)

    return make
