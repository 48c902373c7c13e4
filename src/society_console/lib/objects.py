"""
Record utilities shared by the listing and session layers.

Screens work with either entity dataclasses or plain mappings decoded from
the backend. These helpers read, write, copy and serialize both shapes so
the view models stay entity-agnostic.
"""

import copy
import json
from collections.abc import Mapping, MutableMapping
from dataclasses import asdict, fields, is_dataclass
from datetime import date
from decimal import Decimal
from typing import Any


def field_names(record: Any) -> list[str]:
    """
    Return the comparable field names of a record.

    Args:
        record: Dataclass instance or mapping.

    Returns:
        Field names in declaration (or insertion) order.
    """
    if is_dataclass(record) and not isinstance(record, type):
        return [f.name for f in fields(record)]
    if isinstance(record, Mapping):
        return list(record.keys())
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def field_value(record: Any, name: str, default: Any = None) -> Any:
    """Read a single field from a dataclass or mapping."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def set_field_value(record: Any, name: str, value: Any) -> None:
    """
    Assign a field on a dataclass or mutable mapping.

    Raises:
        KeyError: If the record has no such field.
    """
    if name not in field_names(record):
        raise KeyError(f"{type(record).__name__} has no field '{name}'")
    if isinstance(record, MutableMapping):
        record[name] = value
    else:
        setattr(record, name, value)


def shallow_copy(record: Any) -> Any:
    """
    Return a shallow copy of a record.

    Nested values are shared with the source, which keeps identity-based
    dirty checks meaningful after a reset.
    """
    if isinstance(record, MutableMapping):
        return dict(record)
    return copy.copy(record)


def to_json(obj: Any, indent: int | None = None) -> str:
    """
    Serialize an object to a JSON string for logging.

    Dataclasses are converted to dictionaries first; dates and decimals
    render as strings.

    Args:
        obj: Object to serialize.
        indent: Optional indentation for pretty printing.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    return json.dumps(obj, default=_default_serializer, indent=indent)


def _default_serializer(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return str(obj)
