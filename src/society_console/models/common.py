"""
Common state models for the Society Console.

This module defines the shared state objects exchanged between the view
models, the gateway and the Reflex screens:

- Listing state (rows, sort, expansion, optional pagination)
- Paged results decoded from the backend's paged endpoints
- Gateway responses for write operations

State models include to_dict/from_dict methods so Reflex state vars can
mirror them as plain JSON-compatible values.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from benedict import benedict

T = TypeVar("T")

DEFAULT_PAGED_PAGE_SIZE = 15


@dataclass
class PaginationState:
    """
    Tracks pagination for a paged listing.

    Attributes:
        page_number: Current page number (1-indexed).
        page_size: Number of rows per page.
        total_count: Total number of rows available on the server.
        total_pages: Total number of pages reported by the server.
    """

    page_number: int = 1
    page_size: int = DEFAULT_PAGED_PAGE_SIZE
    total_count: int = 0
    total_pages: int = 0

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @property
    def has_next(self) -> bool:
        return self.total_pages > 0 and self.page_number < self.total_pages

    def range_text(self, row_count: int) -> str:
        """Return the "Showing 1-8 of 20" summary for the current page."""
        if self.total_count == 0:
            return "Showing 0 of 0"
        start = (self.page_number - 1) * self.page_size + 1
        end = min(start + row_count - 1, self.total_count)
        return f"Showing {start}-{end} of {self.total_count}"

    def to_dict(self) -> dict:
        return {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "PaginationState | None":
        if not data:
            return None
        return cls(
            page_number=data.get("page_number", 1),
            page_size=data.get("page_size", DEFAULT_PAGED_PAGE_SIZE),
            total_count=data.get("total_count", 0),
            total_pages=data.get("total_pages", 0),
        )


@dataclass
class ListingState(Generic[T]):
    """
    State of one listing screen.

    Attributes:
        rows: Rows of the current page (or the full set when unpaged).
        sort_field: Field the rows are ordered by.
        sort_ascending: Sort direction.
        expanded_row_id: Id of the expanded row, if any.
        pagination: Paging counters, None for unpaged listings.
        is_loading: True while a fetch is outstanding.
        overlay_visible: True while the loading overlay is shown.
    """

    rows: list[T] = field(default_factory=list)
    sort_field: str = ""
    sort_ascending: bool = True
    expanded_row_id: Any = None
    pagination: PaginationState | None = None
    is_loading: bool = False
    overlay_visible: bool = False

    @property
    def is_paged(self) -> bool:
        return self.pagination is not None

    @property
    def is_empty(self) -> bool:
        """Check if the empty state should be shown."""
        return not self.overlay_visible and len(self.rows) == 0

    @property
    def range_text(self) -> str:
        if self.pagination is None:
            return ""
        return self.pagination.range_text(len(self.rows))

    def to_dict(self, row_encoder: Callable[[T], dict] | None = None) -> dict:
        """Serialize state to a JSON-compatible dictionary."""
        return {
            "rows": [row_encoder(r) if row_encoder else r for r in self.rows],
            "sort_field": self.sort_field,
            "sort_ascending": self.sort_ascending,
            "expanded_row_id": self.expanded_row_id,
            "pagination": self.pagination.to_dict() if self.pagination else None,
            "is_loading": self.is_loading,
            "overlay_visible": self.overlay_visible,
        }

    @classmethod
    def from_dict(
        cls, data: dict | None, row_decoder: Callable[[dict], T] | None = None
    ) -> "ListingState[T]":
        """Deserialize a dictionary to ListingState."""
        if not data:
            return cls()
        rows = data.get("rows", [])
        return cls(
            rows=[row_decoder(r) for r in rows] if row_decoder else list(rows),
            sort_field=data.get("sort_field", ""),
            sort_ascending=data.get("sort_ascending", True),
            expanded_row_id=data.get("expanded_row_id"),
            pagination=PaginationState.from_dict(data.get("pagination")),
            is_loading=data.get("is_loading", False),
            overlay_visible=data.get("overlay_visible", False),
        )


@dataclass
class PagedResult(Generic[T]):
    """A single page of records returned by a paged endpoint."""

    items: list[T] = field(default_factory=list)
    page_number: int = 1
    page_size: int = DEFAULT_PAGED_PAGE_SIZE
    total_count: int = 0
    total_pages: int = 0

    @classmethod
    def from_response(cls, raw: Any) -> "PagedResult[Any]":
        """
        Decode a paged response body.

        The backend emits camelCase or PascalCase keys; numeric counters may
        arrive as strings. Anything that is not an object decodes to an
        empty first page.
        """
        if not isinstance(raw, dict):
            return cls()
        b = benedict(raw, keypath_separator=None)
        items = _first_present(b, "items", "Items")
        return cls(
            items=list(items) if isinstance(items, list) else [],
            page_number=_read_int(b, "pageNumber", 1),
            page_size=_read_int(b, "pageSize", DEFAULT_PAGED_PAGE_SIZE),
            total_count=_read_int(b, "totalCount", 0),
            total_pages=_read_int(b, "totalPages", 0),
        )

    def map(self, decode: Callable[[Any], T]) -> "PagedResult[T]":
        """Return a copy with every item passed through decode."""
        return PagedResult(
            items=[decode(item) for item in self.items],
            page_number=self.page_number,
            page_size=self.page_size,
            total_count=self.total_count,
            total_pages=self.total_pages,
        )


@dataclass(frozen=True)
class GatewayResponse:
    """Outcome of a write call: HTTP status and decoded body, if any."""

    status_code: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def pascal_case(name: str) -> str:
    return name[:1].upper() + name[1:]


def _first_present(b: benedict, *keys: str) -> Any:
    for key in keys:
        if key in b:
            return b[key]
    return None


def _read_int(b: benedict, camel: str, fallback: int) -> int:
    key = camel if camel in b else pascal_case(camel)
    value = b.get(key)
    if isinstance(value, bool) or value is None:
        return fallback
    if isinstance(value, (int, float)):
        return int(value)
    return b.get_int(key, fallback)
