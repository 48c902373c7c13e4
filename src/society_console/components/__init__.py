"""
Reusable Reflex UI components for the Society Console.

This package provides the two generic screen bodies every entity uses:
- listing_table: Sortable, expandable, optionally paged listing
- edit_form: Add/edit form with submit modes and the leave guard
- meter_entry_form: Bulk meter reading entry for one apartment and date

Both render from ListingScreenState / EditScreenState, so one component
serves every entity kind.
"""

from society_console.components.edit_form import edit_form
from society_console.components.listing_table import listing_table
from society_console.components.meter_entry_form import meter_entry_form

__all__ = ["edit_form", "listing_table", "meter_entry_form"]
