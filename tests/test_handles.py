"""
Tests for per-client screen handles: leaving an edit screen for another
route, and the bounded registry that holds the handles.
"""
import asyncio

from society_console.handles import ScreenRegistry, edit_handle, listing_handle


def loaded_meter_handle(demo_gateway, actor, entity_id=None):
    handle = edit_handle("meter", demo_gateway, actor=actor)
    asyncio.run(handle.load_record(demo_gateway, entity_id))
    return handle


# ---------------------------------------------------------------------------
# Leaving edit screens
# ---------------------------------------------------------------------------

def test_dirty_leave_to_another_route_waits_for_confirmation(demo_gateway, actor):
    handle = loaded_meter_handle(demo_gateway, actor)
    handle.session.set_field("meter_number", "EM-NEW")

    assert asyncio.run(handle.leave("/flat")) is None
    assert handle.confirm_requested is True
    assert handle.redirect is None
    assert handle.session.is_closed is False

    assert asyncio.run(handle.confirm_leave("/flat")) == "/flat"
    assert handle.confirm_requested is False
    assert handle.session.is_closed is True


def test_dirty_header_link_goes_through_the_same_guard(demo_gateway, actor):
    handle = loaded_meter_handle(demo_gateway, actor, 2)
    handle.session.set_field("is_smart_meter", False)

    assert asyncio.run(handle.leave("/")) is None
    assert handle.confirm_requested is True

    # Staying and leaving again still asks
    assert asyncio.run(handle.leave("/society")) is None
    assert handle.confirm_requested is True


def test_clean_leave_goes_straight_to_target(demo_gateway, actor):
    handle = loaded_meter_handle(demo_gateway, actor)

    assert asyncio.run(handle.leave("/apartment")) == "/apartment"
    assert handle.confirm_requested is False


def test_leave_without_target_returns_to_listing(demo_gateway, actor):
    handle = loaded_meter_handle(demo_gateway, actor)
    assert asyncio.run(handle.leave()) == "/meter"


def test_save_leaves_for_listing(demo_gateway, actor):
    handle = loaded_meter_handle(demo_gateway, actor, 2)
    handle.session.set_field("serial_number", "SN-2")

    asyncio.run(handle.session.submit())

    assert handle.take_redirect() == "/meter"
    assert handle.redirect is None
    assert handle.confirm_requested is False


def test_listing_handle_records_edit_requests(demo_gateway, actor, clock):
    handle = listing_handle("flat", demo_gateway, actor=actor, clock=clock)
    asyncio.run(handle.listing.load())
    clock.advance(1)

    assert handle.listing.request_edit(4) is True
    assert handle.edit_request == 4


def test_flat_maintenance_edit_backfills_apartment_from_flat(demo_gateway, actor):
    handle = edit_handle("flat_maintenance", demo_gateway, actor=actor)
    record = asyncio.run(handle.load_record(demo_gateway, 3))

    assert record.flat_id == 6
    assert record.apartment_id == 3
    assert handle.session.is_dirty is False
    hierarchy, _ = handle.lookups["apartment_id"]
    assert hierarchy.selection(0) == 3


# ---------------------------------------------------------------------------
# Registry bounds
# ---------------------------------------------------------------------------

def test_many_clients_keep_the_registry_bounded(demo_gateway, actor, clock):
    evicted = []
    registry = ScreenRegistry(
        max_entries=3,
        idle_seconds=0,
        clock=clock,
        on_evict=lambda key, handle: evicted.append(key),
    )
    handles = []
    for n in range(10):
        handle = edit_handle("flat", demo_gateway, actor=actor)
        handles.append(handle)
        registry.put((f"client-{n}", "edit"), handle)
        clock.advance(1)

    assert len(registry) == 3
    assert [key for key, _ in evicted] == [f"client-{n}" for n in range(7)]
    assert all(h.session.is_closed for h in handles[:7])
    assert not any(h.session.is_closed for h in handles[7:])
    assert registry.get(("client-0", "edit")) is None
    assert registry.get(("client-9", "edit")) is handles[9]


def test_get_marks_handle_recently_used(demo_gateway, actor, clock):
    registry = ScreenRegistry(max_entries=2, idle_seconds=0, clock=clock)
    first = edit_handle("flat", demo_gateway, actor=actor)
    registry.put(("a", "edit"), first)
    registry.put(("b", "edit"), edit_handle("flat", demo_gateway, actor=actor))

    assert registry.get(("a", "edit")) is first
    registry.put(("c", "edit"), edit_handle("flat", demo_gateway, actor=actor))

    assert ("a", "edit") in registry
    assert ("b", "edit") not in registry


def test_idle_handles_expire(demo_gateway, actor, clock):
    evicted = []
    registry = ScreenRegistry(
        max_entries=10,
        idle_seconds=60,
        clock=clock,
        on_evict=lambda key, handle: evicted.append(handle),
    )
    stale = listing_handle("flat", demo_gateway, actor=actor, clock=clock)
    registry.put(("a", "listing"), stale)
    clock.advance(30)
    registry.put(("b", "listing"), listing_handle("flat", demo_gateway, actor=actor, clock=clock))

    clock.advance(45)
    assert registry.get(("a", "listing")) is None
    assert registry.get(("b", "listing")) is not None
    assert len(registry) == 1
    assert evicted == [stale]


def test_replacing_a_handle_closes_the_old_one(demo_gateway, actor, clock):
    registry = ScreenRegistry(max_entries=5, idle_seconds=0, clock=clock)
    old = edit_handle("flat", demo_gateway, actor=actor)
    registry.put(("a", "edit"), old)
    registry.put(("a", "edit"), edit_handle("meter", demo_gateway, actor=actor))

    assert len(registry) == 1
    assert old.session.is_closed is True
    assert registry.get(("a", "edit")).spec.kind == "meter"


def test_discard_closes_and_forgets(demo_gateway, actor, clock):
    registry = ScreenRegistry(max_entries=5, idle_seconds=0, clock=clock)
    handle = edit_handle("flat", demo_gateway, actor=actor)
    registry.put(("a", "edit"), handle)

    registry.discard(("a", "edit"))
    registry.discard(("a", "edit"))

    assert len(registry) == 0
    assert handle.session.is_closed is True
