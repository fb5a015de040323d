"""Normalized query parameters and pagination metadata."""

from dataclasses import dataclass, field
from typing import Any

from tableforge.core.types import NamingConvention, Operator, SortDirection, operator_to_clause


@dataclass(frozen=True)
class FilterCondition:
    """A single ``field op value`` predicate.

    ``between`` carries a two-element ``[low, high]`` value; ``in`` and
    ``not_in`` carry lists; ``empty``/``not_empty`` ignore the value.
    """

    field: str
    op: Operator = Operator.EQ
    value: Any = None

    def to_params(self) -> dict[str, Any]:
        return {"field": self.field, "op": self.op.value, "value": self.value}

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        clause = operator_to_clause(self.op)
        return {
            "field": naming.key(self.field),
            "op": self.op.value,
            "clause": clause.value if clause else None,
            "value": self.value,
        }


@dataclass(frozen=True)
class QueryParams:
    """Canonical query parameters for one table request.

    Sorting is single-field: ``order_by`` and ``order_directions`` hold
    at most one entry each. ``page`` is None until the query engine fills
    in its default.
    """

    page: int | None = None
    page_size: int | None = None
    order_by: tuple[str, ...] = ()
    order_directions: tuple[SortDirection, ...] = ()
    filters: tuple[FilterCondition, ...] = ()
    search: str | None = None
    columns: tuple[str, ...] = ()

    @property
    def sort(self) -> tuple[str, SortDirection] | None:
        if not self.order_by:
            return None
        direction = self.order_directions[0] if self.order_directions else SortDirection.ASC
        return (self.order_by[0], direction)

    def to_params(self) -> dict[str, Any]:
        """Render back into raw request parameters that normalize to self."""
        params: dict[str, Any] = {}
        if self.page is not None:
            params["page"] = self.page
        if self.page_size is not None:
            params["page_size"] = self.page_size
        if self.sort:
            params["order_by"] = self.sort[0]
            params["order_direction"] = self.sort[1].value
        if self.filters:
            params["filters"] = [f.to_params() for f in self.filters]
        if self.search:
            params["search"] = self.search
        if self.columns:
            params["columns"] = list(self.columns)
        return params

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        """The executed query as echoed to the client (``meta.flop``)."""
        return naming.keys({
            "order_by": [naming.key(f) for f in self.order_by],
            "order_directions": [d.value for d in self.order_directions],
            "page": self.page,
            "page_size": self.page_size,
            "filters": [f.to_dict(naming) for f in self.filters],
        })


@dataclass
class PaginationMeta:
    """Pagination state of an executed query."""

    current_page: int = 1
    total_pages: int = 0
    total_count: int = 0
    page_size: int = 0
    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: str | None = None
    end_cursor: str | None = None
    params: QueryParams = field(default_factory=QueryParams)

    @classmethod
    def for_page(cls, params: QueryParams, total_count: int) -> "PaginationMeta":
        page = params.page or 1
        page_size = params.page_size or 0
        total_pages = -(-total_count // page_size) if page_size else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            page_size=page_size,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
            params=params,
        )

    @property
    def next_page(self) -> int | None:
        return self.current_page + 1 if self.has_next_page else None

    @property
    def previous_page(self) -> int | None:
        return self.current_page - 1 if self.has_previous_page else None

    def to_dict(
        self,
        naming: NamingConvention = NamingConvention.CAMEL,
        include_params: bool = True,
    ) -> dict[str, Any]:
        return naming.keys({
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "total_count": self.total_count,
            "page_size": self.page_size,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
            "next_page": self.next_page,
            "previous_page": self.previous_page,
            "start_cursor": self.start_cursor,
            "end_cursor": self.end_cursor,
            "flop": self.params.to_dict(naming) if include_params else None,
        })
