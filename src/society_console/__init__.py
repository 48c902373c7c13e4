"""
Society Console: the listing and edit engine behind a society-management
admin console.

This package implements, once, the behaviour every "list + add/edit" screen
of the console shares, on top of a generic CRUD gateway to the REST backend.

Subpackages:
- models: Entity models, listing state and gateway result types
- services: CRUD gateway (live and demo implementations) and actor providers
- components: Reflex UI components
- data: Static demo fixtures

Modules:
- listing: Listing view model (sort, expand, paging, delete, loading overlay)
- session: Edit session controller (dirty tracking, submit modes, leave guard)
- lookups: Cascading lookups and group totals
- billing: Billing period derivation
- screens: Per-entity screen catalogue
- app: The Reflex application (run with `reflex run`)
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
