"""
Static demo data for the Society Console.

This package contains fixture records used by DemoCrudGateway for
development, testing, and demonstrations without a running backend.

Modules:
- demo_records: Backend-shaped records for every console resource
"""
