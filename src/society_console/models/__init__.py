"""
Data models and serialization helpers for the Society Console.

This package provides:
- Entity models (Society, Apartment, Flat, Meter, ...) with a camelCase
  wire codec
- Listing and paging state shared by the view models and the Reflex screens
- Gateway result types (PagedResult, GatewayResponse)

All models use Python dataclasses.
"""

from society_console.models.common import (
    GatewayResponse,
    ListingState,
    PagedResult,
    PaginationState,
)
from society_console.models.entities import (
    Apartment,
    Entity,
    ExpenseCategory,
    ExtraExpense,
    Flat,
    FlatMaintenance,
    MaintenanceComponent,
    MaintenanceGroup,
    MaintenanceGroupComponent,
    Meter,
    MeterReading,
    Society,
    UnitCharge,
    wire_name,
)

__all__ = [
    "Apartment",
    "Entity",
    "ExpenseCategory",
    "ExtraExpense",
    "Flat",
    "FlatMaintenance",
    "GatewayResponse",
    "ListingState",
    "MaintenanceComponent",
    "MaintenanceGroup",
    "MaintenanceGroupComponent",
    "Meter",
    "MeterReading",
    "PagedResult",
    "PaginationState",
    "Society",
    "UnitCharge",
    "wire_name",
]
