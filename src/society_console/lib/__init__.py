"""
Local library modules shared across the Society Console.

Modules:
    logs: Logging utilities
    objects: Record access, copying and serialization
    clients: Shared HTTP session and backend settings
"""

from society_console.lib import clients, logs, objects

__all__ = ["clients", "logs", "objects"]
