"""Repository protocol - the narrow storage interface tables read rows through."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tableforge.core.types import SortDirection

if TYPE_CHECKING:
    from tableforge.query.types import FilterCondition

SortSpec = list[tuple[str, SortDirection]]


@dataclass
class Criteria:
    """Row selection criteria shared by every read.

    Attributes:
        filters: Conditions ANDed together
        search: Free-text term matched (case-insensitively) against search_fields
        search_fields: Fields ORed together for the search term
        only_ids: Restrict to these primary keys (None means no restriction)
        exclude_ids: Exclude these primary keys
        primary_key: Name of the primary key column
    """

    filters: list[FilterCondition] = field(default_factory=list)
    search: str | None = None
    search_fields: list[str] = field(default_factory=list)
    only_ids: list[Any] | None = None
    exclude_ids: list[Any] | None = None
    primary_key: str = "id"


@runtime_checkable
class Repository(Protocol):
    """Protocol for reading table rows.

    Rows are plain dicts. Field names reaching a repository have already
    been checked against the table definition.
    """

    def query(
        self,
        resource: str,
        criteria: Criteria,
        sort: SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """Return matching rows in sort order, optionally paginated."""
        ...

    def count(self, resource: str, criteria: Criteria) -> int:
        """Count matching rows."""
        ...

    def get(self, resource: str, id: Any, primary_key: str = "id") -> dict[str, Any] | None:
        """Get one row by primary key, or None."""
        ...

    def stream(
        self,
        resource: str,
        criteria: Criteria,
        sort: SortSpec | None = None,
        batch_size: int = 500,
    ) -> Iterator[dict[str, Any]]:
        """Yield matching rows without loading them all at once."""
        ...
