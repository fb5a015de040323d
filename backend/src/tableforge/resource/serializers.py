"""Serialization of the static and dynamic parts of a table resource."""

from typing import Any

from tableforge.core.types import NamingConvention
from tableforge.query.types import PaginationMeta, QueryParams
from tableforge.table.types import TableDefinition
from tableforge.views.types import SavedView


def serialize_definition(
    table: TableDefinition, naming: NamingConvention = NamingConvention.CAMEL
) -> dict[str, Any]:
    """Static metadata: everything that depends only on the definition."""
    config = table.config
    return naming.keys({
        "per_page_options": list(config.per_page_options),
        "sticky_header": config.sticky_header,
        "searchable": [naming.key(f) for f in table.searchable_fields()],
        "search_placeholder": config.search_placeholder,
        "columns": [c.to_dict(naming) for c in table.columns],
        "filters": [f.to_dict(naming) for f in table.filters],
        "actions": [a.to_dict(naming) for a in table.actions],
        "bulk_actions": [b.to_dict(naming) for b in table.bulk_actions],
        "exports": [e.to_dict(naming) for e in table.exports],
        "empty_state": table.empty_state.to_dict(naming) if table.empty_state else None,
    })


def serialize_state(
    params: QueryParams,
    table: TableDefinition,
    naming: NamingConvention = NamingConvention.CAMEL,
) -> dict[str, Any]:
    """Client-facing table state derived from the query that actually ran."""
    sort = params.sort
    return naming.keys({
        "sort": {"field": naming.key(sort[0]), "direction": sort[1].value} if sort else None,
        "filters": [f.to_dict(naming) for f in params.filters],
        "page": params.page or 1,
        "per_page": params.page_size or table.config.default_per_page,
        "search": params.search,
        "columns": list(params.columns),
    })


def empty_meta(
    table: TableDefinition, naming: NamingConvention = NamingConvention.CAMEL
) -> dict[str, Any]:
    """Pagination meta for a query that did not run."""
    meta = PaginationMeta(page_size=table.config.default_per_page)
    return meta.to_dict(naming, include_params=False)


def serialize_views(
    enabled: bool,
    views: list[SavedView] | None = None,
    current: SavedView | None = None,
    naming: NamingConvention = NamingConvention.CAMEL,
) -> dict[str, Any]:
    return {
        "enabled": enabled,
        "list": [v.to_config(naming) for v in views or []],
        "current": current.id if current else None,
    }
