"""
Tests for cascading lookups and rollup totals.
"""
import asyncio
from decimal import Decimal

import pytest

from society_console.errors import GatewayError
from society_console.lookups import (
    LookupHierarchy,
    LookupLevel,
    LookupNode,
    LookupSource,
    RollupHierarchy,
    cascade_derivation,
)
from society_console.screens import LOOKUP_SOURCES, lookup_hierarchies, get_screen, load_group_rollup, load_lookups


@pytest.fixture
def property_tree():
    """Society -> Apartment -> Flat with a few options per level."""
    return LookupHierarchy(
        [
            LookupLevel(
                "society",
                "Society",
                nodes=[LookupNode(1, None, "Green Meadows"), LookupNode(2, None, "Silver Oaks", is_active=False)],
            ),
            LookupLevel(
                "apartment",
                "Apartment",
                nodes=[
                    LookupNode(10, 1, "Tower A"),
                    LookupNode(11, 1, "Tower B"),
                    LookupNode(12, 2, "Oak Residency"),
                ],
            ),
            LookupLevel(
                "flat",
                "Flat",
                nodes=[
                    LookupNode(100, 10, "A-101"),
                    LookupNode(101, 10, "A-102", is_active=False),
                    LookupNode(102, 11, "B-101"),
                ],
            ),
        ]
    )


# ---------------------------------------------------------------------------
# LookupHierarchy
# ---------------------------------------------------------------------------

def test_parent_change_clears_every_deeper_level(property_tree):
    property_tree.on_parent_change(0, 1)
    property_tree.on_parent_change(1, 10)
    property_tree.on_parent_change(2, 100)

    cleared = property_tree.on_parent_change(0, 2)

    assert cleared == [1, 2]
    assert property_tree.selection(0) == 2
    assert property_tree.selection(1) is None
    assert property_tree.selection(2) is None


def test_clearing_a_parent_still_clears_children(property_tree):
    property_tree.on_parent_change(1, 10)
    property_tree.on_parent_change(2, 100)

    assert property_tree.on_parent_change(1, "") == [2]
    assert property_tree.selection(1) is None
    assert property_tree.selection(2) is None


def test_last_level_change_clears_nothing(property_tree):
    assert property_tree.on_parent_change(2, 102) == []


def test_options_filter_by_parent_and_active(property_tree):
    assert [n.label for n in property_tree.options_for(0)] == ["Green Meadows"]
    assert [n.label for n in property_tree.options_for(1, 1)] == ["Tower A", "Tower B"]
    assert [n.label for n in property_tree.options_for(2, "10")] == ["A-101"]
    assert property_tree.options_for(2, None) == []
    assert property_tree.options_for(2, 99) == []


def test_labels_fall_back_to_synthesized_id(property_tree):
    assert property_tree.label(2, 101) == "A-102"
    assert property_tree.label(2, 555) == "Flat #555"
    assert property_tree.label(2, 555, prefix="") == "#555"
    assert property_tree.label(1, None) == "-"


def test_level_lookup_errors(property_tree):
    assert property_tree.index_of("flat") == 2
    with pytest.raises(KeyError):
        property_tree.index_of("meter")
    with pytest.raises(IndexError):
        property_tree.level(3)
    with pytest.raises(ValueError):
        LookupHierarchy([])


def test_source_maps_records_to_nodes():
    source = LookupSource("/flat/Get-All-Flats", "flatId", "flatNumber", "apartmentId")
    node = source.to_node({"flatId": 3, "flatNumber": "A-201", "apartmentId": 1, "isActive": False})
    assert node == LookupNode(3, 1, "A-201", is_active=False)
    assert source.to_node({"flatNumber": "no id"}) is None


def test_cascade_derivation_maps_cleared_levels_to_fields(property_tree):
    derive = cascade_derivation(property_tree, {"society_id": 0, "apartment_id": 1, "flat_id": 2})
    assert derive("society_id", 1, None) == {"apartment_id": None, "flat_id": None}
    assert derive("flat_id", 100, None) == {}
    assert derive("notes", "x", None) == {}


def test_level_filters_by_previous_level_unless_told_otherwise(property_tree):
    assert property_tree.parent_level(0) is None
    assert property_tree.parent_level(2) == 1

    property_tree.level(2).filter_level = 0
    assert property_tree.parent_level(2) == 0

    # Only earlier levels can filter
    property_tree.level(1).filter_level = 2
    assert property_tree.parent_level(1) == 0


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def test_load_fills_levels_from_gateway(demo_gateway):
    lookups = lookup_hierarchies(get_screen("meter"))
    asyncio.run(load_lookups(lookups, demo_gateway))

    hierarchy, flat_level = lookups["flat_id"]
    assert lookups["apartment_id"][0] is hierarchy
    assert [n.label for n in hierarchy.options_for(0)] == ["Tower A", "Tower B", "Oak Residency"]
    assert [n.label for n in hierarchy.options_for(flat_level, 1)] == ["A-101", "A-102"]
    assert demo_gateway.operations().count("fetch_all") == 2


def test_failed_level_loads_empty_and_others_continue(demo_gateway):
    class FailingFirst:
        def __init__(self):
            self.calls = 0

        async def fetch_all(self, endpoint):
            self.calls += 1
            if self.calls == 1:
                raise GatewayError("HTTP 500", status_code=500)
            return await demo_gateway.fetch_all(endpoint)

    hierarchy = LookupHierarchy(
        [
            LookupLevel("apartment", "Apartment", LOOKUP_SOURCES["apartment"][0]),
            LookupLevel("flat", "Flat", LOOKUP_SOURCES["flat"][0]),
        ]
    )
    asyncio.run(hierarchy.load(FailingFirst()))

    assert hierarchy.level(0).nodes == []
    assert len(hierarchy.level(1).nodes) == 6
    assert hierarchy.label(0, 1) == "Apartment #1"


def test_flat_maintenance_flats_follow_apartment_not_group(demo_gateway):
    lookups = lookup_hierarchies(get_screen("flat_maintenance"))
    asyncio.run(load_lookups(lookups, demo_gateway))

    hierarchy, group_level = lookups["maintenance_group_id"]
    _, flat_level = lookups["flat_id"]
    assert (group_level, flat_level) == (1, 2)
    assert hierarchy.parent_level(group_level) == 0
    assert hierarchy.parent_level(flat_level) == 0
    assert [n.label for n in hierarchy.options_for(group_level, 1)] == ["Tower A 2024-25"]
    assert [n.label for n in hierarchy.options_for(flat_level, 1)] == ["A-101", "A-102"]
    assert hierarchy.options_for(flat_level, None) == []


def test_flat_maintenance_changes_clear_dependent_choices(demo_gateway):
    lookups = lookup_hierarchies(get_screen("flat_maintenance"))
    hierarchy, _ = lookups["apartment_id"]
    derive = cascade_derivation(hierarchy, {name: level for name, (_, level) in lookups.items()})

    assert derive("maintenance_group_id", 1, None) == {"flat_id": None}
    assert derive("apartment_id", 2, None) == {"maintenance_group_id": None, "flat_id": None}
    assert derive("flat_id", 4, None) == {}


# ---------------------------------------------------------------------------
# Rollup
# ---------------------------------------------------------------------------

def test_group_totals_sum_active_components(demo_gateway):
    rollup = asyncio.run(load_group_rollup(demo_gateway))

    assert rollup.total(1) == Decimal(3500)
    assert rollup.total("2") == Decimal(1400)
    assert rollup.total(99) == Decimal(0)
    assert [c.label for c in rollup.children(2)] == ["Security", "Diesel"]


def test_missing_amounts_count_as_zero():
    rollup = RollupHierarchy.from_records(
        [
            {"maintenanceGroupComponentId": 1, "maintenanceGroupId": 7, "amount": None},
            {"maintenanceGroupComponentId": 2, "maintenanceGroupId": 7, "amount": "250.50"},
        ]
    )
    assert rollup.total(7) == Decimal("250.50")
