"""Saved view types."""

from dataclasses import dataclass, field
from typing import Any

from tableforge.core.types import NamingConvention

NAME_MAX_LENGTH = 100
TABLE_NAME_MAX_LENGTH = 100
PER_PAGE_MAX = 1000

# Attributes a client may set when creating or updating a view
CREATE_FIELDS = (
    "name", "table_name", "owner_id", "is_default", "is_public",
    "filters", "sort", "columns", "per_page",
)
UPDATE_FIELDS = ("name", "is_default", "is_public", "filters", "sort", "columns", "per_page")


@dataclass
class SavedView:
    """A persisted table state (filters, sort, columns, page size) a user named.

    ``owner_id`` is None for views saved on tables that are not scoped
    per user; those views are shared by everyone using the table.
    """

    id: str
    name: str
    table_name: str
    owner_id: str | None = None
    is_default: bool = False
    is_public: bool = False
    filters: Any = field(default_factory=dict)
    sort: Any = field(default_factory=dict)
    columns: list[str] = field(default_factory=list)
    per_page: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def is_owned_by(self, owner_id: str | None) -> bool:
        return self.owner_id == owner_id

    def to_config(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        """The view as the table frontend consumes it."""
        return naming.keys({
            "id": self.id,
            "name": self.name,
            "is_default": self.is_default,
            "is_public": self.is_public,
            "filters": self.filters,
            "sort": self.sort,
            "columns": self.columns,
            "per_page": self.per_page,
        })

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        data = self.to_config(naming)
        data.update(naming.keys({
            "table_name": self.table_name,
            "owner_id": self.owner_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }))
        return data


def validate_view_attrs(attrs: dict[str, Any], creating: bool) -> dict[str, list[str]]:
    """Check view attributes, returning field errors (empty when valid)."""
    errors: dict[str, list[str]] = {}

    def add(key: str, message: str) -> None:
        errors.setdefault(key, []).append(message)

    required = ("name", "table_name") if creating else ()
    for key in required:
        if attrs.get(key) in (None, ""):
            add(key, "can't be blank")

    for key, limit in (("name", NAME_MAX_LENGTH), ("table_name", TABLE_NAME_MAX_LENGTH)):
        value = attrs.get(key)
        if key not in attrs or key in errors:
            continue
        if not isinstance(value, str):
            add(key, "must be a string")
        elif not 1 <= len(value) <= limit:
            add(key, f"should be between 1 and {limit} character(s)")

    per_page = attrs.get("per_page")
    if per_page is not None:
        if isinstance(per_page, bool) or not isinstance(per_page, int):
            add("per_page", "must be an integer")
        elif not 0 < per_page <= PER_PAGE_MAX:
            add("per_page", f"must be greater than 0 and less than or equal to {PER_PAGE_MAX}")

    columns = attrs.get("columns")
    if columns is not None and (
        not isinstance(columns, list) or not all(isinstance(c, str) for c in columns)
    ):
        add("columns", "must be a list of column keys")

    filters = attrs.get("filters")
    if filters is not None and not isinstance(filters, (dict, list)):
        add("filters", "must be an object or a list")

    sort = attrs.get("sort")
    if sort is not None and not isinstance(sort, dict):
        add("sort", "must be an object")

    for key in ("is_default", "is_public"):
        if key in attrs and not isinstance(attrs[key], bool):
            add(key, "must be a boolean")

    return errors
