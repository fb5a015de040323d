"""Table definition types.

A TableDefinition is built once at startup (see TableBuilder and
TableLoader) and then treated as an immutable descriptor looked up by
name. Every row-scoped callback on these types is normalized to the
``fn(row, context)`` shape when the object is constructed.
"""

import re
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from tableforge.core.types import (
    Alignment,
    Clause,
    ColumnType,
    ExportFormat,
    FilterType,
    NamingConvention,
    SortDirection,
    Variant,
    allowed_clauses,
    humanize,
)
from tableforge.errors import DefinitionError
from tableforge.table.callbacks import (
    normalize_context_callback,
    normalize_row_callback,
)

ACTION_COLUMN_KEY = "_actions"

_DEFAULT_ALIGNMENT: dict[ColumnType, Alignment] = {
    ColumnType.NUMERIC: Alignment.RIGHT,
    ColumnType.BOOLEAN: Alignment.CENTER,
    ColumnType.IMAGE: Alignment.CENTER,
    ColumnType.ACTION: Alignment.RIGHT,
}

_DEFAULT_FORMATS: dict[ColumnType, str] = {
    ColumnType.DATE: "MMM d, yyyy",
    ColumnType.DATETIME: "MMM d, yyyy h:mm a",
}


def _enum(enum_cls: type, value: Any, what: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise DefinitionError(f"Invalid {what} '{value}'. Allowed: {allowed}")


@dataclass
class Column:
    """A displayed column.

    ``compute`` derives the value from the row (falling back to
    ``row[key]`` when it returns None); ``map_as`` then maps the value.
    Type-specific display options (colors, prefix, format, width, ...)
    are plain attributes and are only serialized when set.
    """

    key: str
    type: ColumnType = ColumnType.TEXT
    label: str | None = None
    sortable: bool = False
    searchable: bool = False
    toggleable: bool = True
    visible: bool = True
    stickable: bool = False
    alignment: Alignment | None = None
    wrap: bool = False
    truncate: bool = False
    header_class: str | None = None
    cell_class: str | None = None
    compute: Callable[..., Any] | None = None
    map_as: Callable[[Any], Any] | None = None
    preload: Any = None
    meta: dict[str, Any] = field(default_factory=dict)
    # badge
    colors: dict[str, str] | None = None
    # numeric
    prefix: str | None = None
    suffix: str | None = None
    decimals: int | None = None
    thousands_separator: str | None = None
    # date / datetime
    format: str | None = None
    # image
    width: int | None = None
    height: int | None = None
    rounded: bool | None = None
    fallback: str | None = None

    def __post_init__(self) -> None:
        self.type = _enum(ColumnType, self.type, "column type")
        if self.label is None:
            self.label = "Actions" if self.is_action else humanize(self.key)
        if self.alignment is None:
            self.alignment = _DEFAULT_ALIGNMENT.get(self.type, Alignment.LEFT)
        else:
            self.alignment = _enum(Alignment, self.alignment, "alignment")

        if self.format is None:
            self.format = _DEFAULT_FORMATS.get(self.type)
        if self.type == ColumnType.NUMERIC and self.thousands_separator is None:
            self.thousands_separator = ","
        if self.type == ColumnType.IMAGE:
            self.width = 40 if self.width is None else self.width
            self.height = 40 if self.height is None else self.height
            self.rounded = False if self.rounded is None else self.rounded

        if self.is_action and (self.sortable or self.searchable or self.toggleable):
            raise DefinitionError(
                f"Action column '{self.key}' cannot be sortable, searchable or toggleable"
            )
        # Computed values have no storage column to ORDER BY or LIKE against
        if self.compute is not None and (self.sortable or self.searchable):
            raise DefinitionError(
                f"Computed column '{self.key}' cannot be sortable or searchable"
            )

        self.compute = normalize_row_callback(self.compute)

    @classmethod
    def action_column(cls, label: str = "Actions", **options: Any) -> "Column":
        """The per-row actions column. Never sortable/searchable/toggleable."""
        options.setdefault("stickable", True)
        return cls(
            key=ACTION_COLUMN_KEY,
            type=ColumnType.ACTION,
            label=label,
            sortable=False,
            searchable=False,
            toggleable=False,
            **options,
        )

    @property
    def is_action(self) -> bool:
        return self.type == ColumnType.ACTION

    def value_for(self, row: dict[str, Any], context: Any = None) -> Any:
        """Compute the display value of this column for a raw row."""
        value = self.compute(row, context) if self.compute else None
        if value is None:
            value = row.get(self.key)
        if self.type == ColumnType.BOOLEAN and isinstance(value, int):
            # SQLite hands booleans back as 0/1
            value = bool(value)
        if self.map_as is not None:
            value = self.map_as(value)
        return value

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": naming.key(self.key),
            "type": self.type.value,
            "label": self.label,
            "sortable": self.sortable,
            "searchable": self.searchable,
            "toggleable": self.toggleable,
            "visible": self.visible,
            "stickable": self.stickable,
            "alignment": self.alignment.value,
            "wrap": self.wrap,
            "truncate": self.truncate,
            "header_class": self.header_class,
            "cell_class": self.cell_class,
        }
        for option in (
            "colors", "prefix", "suffix", "decimals", "thousands_separator",
            "format", "width", "height", "rounded", "fallback",
        ):
            value = getattr(self, option)
            if value is not None:
                data[option] = value
        if self.meta:
            data["meta"] = self.meta
        return naming.keys(data)


@dataclass
class FilterOption:
    value: Any
    label: str

    @classmethod
    def coerce(cls, option: Any) -> "FilterOption":
        """Accept a FilterOption, a (value, label) pair, a dict or a bare value."""
        if isinstance(option, FilterOption):
            return option
        if isinstance(option, dict):
            value = option.get("value")
            return cls(value=value, label=str(option.get("label", value)))
        if isinstance(option, (list, tuple)) and len(option) == 2:
            return cls(value=option[0], label=str(option[1]))
        return cls(value=option, label=humanize(str(option)))

    def to_dict(self) -> dict[str, Any]:
        return {"value": str(self.value), "label": self.label}


@dataclass
class Filter:
    """A filter a client may apply to a field.

    ``clauses`` must be a non-empty subset of the clauses allowed for the
    filter type; ``default_clause`` defaults to the first one.
    """

    field: str
    type: FilterType = FilterType.TEXT
    label: str | None = None
    clauses: list[Clause] | None = None
    default_clause: Clause | None = None
    options: list[FilterOption] = field(default_factory=list)
    min: Any = None
    max: Any = None
    nullable: bool = False
    icon: str | None = None
    placeholder: str | None = None
    colors: dict[str, str] | None = None

    def __post_init__(self) -> None:
        self.type = _enum(FilterType, self.type, "filter type")
        if self.label is None:
            self.label = humanize(self.field)

        allowed = allowed_clauses(self.type)
        if self.clauses is None:
            self.clauses = list(allowed)
        else:
            self.clauses = [_enum(Clause, c, "filter clause") for c in self.clauses]
        if not self.clauses:
            raise DefinitionError(f"Filter '{self.field}' must allow at least one clause")
        invalid = [c.value for c in self.clauses if c not in allowed]
        if invalid:
            raise DefinitionError(
                f"Filter '{self.field}' of type '{self.type.value}' does not support "
                f"clauses: {', '.join(invalid)}"
            )

        if self.default_clause is None:
            self.default_clause = self.clauses[0]
        else:
            self.default_clause = _enum(Clause, self.default_clause, "filter clause")
            if self.default_clause not in self.clauses:
                raise DefinitionError(
                    f"Default clause '{self.default_clause.value}' of filter "
                    f"'{self.field}' is not one of its clauses"
                )

        self.options = [FilterOption.coerce(o) for o in self.options]

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return naming.keys({
            "field": naming.key(self.field),
            "type": self.type.value,
            "label": self.label,
            "clauses": [c.value for c in self.clauses],
            "default_clause": self.default_clause.value,
            "options": [o.to_dict() for o in self.options],
            "min": self.min,
            "max": self.max,
            "nullable": self.nullable,
            "icon": self.icon,
            "placeholder": self.placeholder,
            "colors": self.colors,
        })


@dataclass
class Confirmation:
    title: str = "Confirm Action"
    message: str = "Are you sure you want to perform this action?"
    confirm_button: str = "Confirm"
    cancel_button: str = "Cancel"
    icon: str | None = None
    variant: Variant = Variant.DANGER

    def __post_init__(self) -> None:
        self.variant = _enum(Variant, self.variant, "variant")

    @classmethod
    def coerce(cls, value: Any) -> "Confirmation | None":
        """Accept None, True (all defaults), a dict of options or a Confirmation."""
        if value is None or value is False:
            return None
        if value is True:
            return cls()
        if isinstance(value, dict):
            return cls(**value)
        if isinstance(value, Confirmation):
            return value
        raise DefinitionError(f"Invalid confirmation: {value!r}")

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return naming.keys({
            "title": self.title,
            "message": self.message,
            "confirm_button": self.confirm_button,
            "cancel_button": self.cancel_button,
            "variant": self.variant.value,
            "icon": self.icon,
        })


def _url_callback(url: Any) -> Callable[..., Any] | None:
    """A URL is a callback or a format template such as ``/users/{id}``."""
    if url is None or callable(url):
        return normalize_row_callback(url)
    if isinstance(url, str):
        template = url
        return normalize_row_callback(lambda row: template.format_map(row))
    raise DefinitionError(f"Invalid action url: {url!r}")


def template_fields(template: str) -> set[str]:
    """Row keys read by a URL template: ``/users/{id}/{owner.slug}`` -> {id, owner}."""
    try:
        parsed = list(string.Formatter().parse(template))
    except ValueError as e:
        raise DefinitionError(f"Invalid url template '{template}': {e}")

    fields: set[str] = set()
    for _, field_name, _, _ in parsed:
        if field_name is None:
            continue
        if not field_name or field_name.isdigit():
            raise DefinitionError(f"Url template '{template}' must name its row fields")
        fields.add(re.split(r"[.\[]", field_name, maxsplit=1)[0])
    return fields


@dataclass
class Action:
    """A row-scoped action.

    Executed server-side through ``handle(row)`` or, when there is no
    handler, returned to the client as a redirect to ``url(row)``.
    ``visible`` is a convenience inverse of ``hidden``; defining both is
    an error.
    """

    name: str
    label: str | None = None
    icon: str | None = None
    variant: Variant = Variant.DEFAULT
    url: Any = None
    handle: Callable[..., Any] | None = None
    disabled: Callable[..., Any] | None = None
    hidden: Callable[..., Any] | None = None
    visible: Callable[..., Any] | None = None
    confirmation: Any = None
    authorize: Callable[..., bool] | None = None
    success_message: str | None = None
    error_message: str | None = None
    frontend: bool = False
    url_fields: set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Action name is required")
        if isinstance(self.url, str):
            self.url_fields = template_fields(self.url)
        if self.hidden is not None and self.visible is not None:
            raise DefinitionError(
                f"Action '{self.name}' cannot define both 'hidden' and 'visible'"
            )
        if self.label is None:
            self.label = humanize(self.name)
        self.variant = _enum(Variant, self.variant, "variant")
        self.url = _url_callback(self.url)
        self.handle = normalize_row_callback(self.handle)
        self.disabled = normalize_row_callback(self.disabled)
        if self.visible is not None:
            visible = normalize_row_callback(self.visible)
            self.hidden = normalize_row_callback(
                lambda row, context: not visible(row, context)
            )
            self.visible = None
        else:
            self.hidden = normalize_row_callback(self.hidden)
        self.authorize = normalize_context_callback(self.authorize)
        self.confirmation = Confirmation.coerce(self.confirmation)

    def evaluate(self, row: dict[str, Any], context: Any = None) -> dict[str, Any]:
        """Per-row action state: ``{url, disabled, hidden}``."""
        return {
            "url": self.url(row, context) if self.url else None,
            "disabled": bool(self.disabled(row, context)) if self.disabled else False,
            "hidden": bool(self.hidden(row, context)) if self.hidden else False,
        }

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return naming.keys({
            "name": self.name,
            "label": self.label,
            "variant": self.variant.value,
            "icon": self.icon,
            "frontend": self.frontend,
            "confirmation": self.confirmation.to_dict(naming) if self.confirmation else None,
        })


@dataclass
class BulkAction:
    """An action over a selection of rows, executed in chunks.

    ``before`` runs once over the full row set and may abort the action;
    ``handle`` runs once per chunk of ``chunk_size`` rows; ``after`` runs
    once when every chunk succeeded.
    """

    name: str
    label: str | None = None
    icon: str | None = None
    variant: Variant = Variant.DEFAULT
    handle: Callable[..., Any] | None = None
    before: Callable[..., Any] | None = None
    after: Callable[..., Any] | None = None
    authorize: Callable[..., bool] | None = None
    confirmation: Any = None
    chunk_size: int = 100
    success_message: str | None = None
    error_message: str | None = None
    frontend: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Bulk action name is required")
        if not isinstance(self.chunk_size, int) or isinstance(self.chunk_size, bool) \
                or self.chunk_size <= 0:
            raise DefinitionError(
                f"Bulk action '{self.name}' chunk_size must be a positive integer"
            )
        if self.label is None:
            self.label = humanize(self.name)
        self.variant = _enum(Variant, self.variant, "variant")
        self.handle = normalize_row_callback(self.handle)
        self.before = normalize_row_callback(self.before)
        self.after = normalize_row_callback(self.after)
        self.authorize = normalize_context_callback(self.authorize)
        self.confirmation = Confirmation.coerce(self.confirmation)

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return naming.keys({
            "name": self.name,
            "label": self.label,
            "variant": self.variant.value,
            "icon": self.icon,
            "frontend": self.frontend,
            "confirmation": self.confirmation.to_dict(naming) if self.confirmation else None,
        })


_EXPORT_LABELS = {
    ExportFormat.CSV: "Export CSV",
    ExportFormat.EXCEL: "Export Excel",
    ExportFormat.PDF: "Export PDF",
}


def _infer_format(name: str) -> ExportFormat:
    lowered = name.lower()
    if "xls" in lowered or "excel" in lowered:
        return ExportFormat.EXCEL
    if "pdf" in lowered:
        return ExportFormat.PDF
    return ExportFormat.CSV


@dataclass
class Export:
    """A downloadable export of the full filtered row set.

    ``columns`` is an explicit ordered subset of column keys (default: the
    visible non-action columns). ``format_column`` maps a column key to a
    formatter applied before the default formatting. ``filename`` receives
    ``{"table_name", "export_name", "timestamp"}`` and returns a name.
    """

    name: str
    label: str | None = None
    format: ExportFormat | None = None
    columns: list[str] | None = None
    format_column: dict[str, Callable[[Any], Any]] = field(default_factory=dict)
    filename: Callable[[dict[str, Any]], str] | None = None
    authorize: Callable[..., bool] | None = None
    delimiter: str = ","

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Export name is required")
        if self.format is None:
            self.format = _infer_format(self.name)
        else:
            self.format = _enum(ExportFormat, self.format, "export format")
        if self.label is None:
            self.label = _EXPORT_LABELS[self.format]
        if len(self.delimiter) != 1:
            raise DefinitionError(f"Export '{self.name}' delimiter must be one character")
        self.authorize = normalize_context_callback(self.authorize)

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return {"name": self.name, "label": self.label, "format": self.format.value}


@dataclass
class EmptyState:
    title: str = "No data found"
    message: str | None = None
    icon: str | None = None
    action: dict[str, Any] | None = None

    def to_dict(self, naming: NamingConvention = NamingConvention.CAMEL) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "action": self.action,
        }


@dataclass
class ViewsConfig:
    """Saved views settings for a table.

    Attributes:
        enabled: Whether users may save views of this table
        scope_user: Scope views to the requesting user (vs. shared)
        user_resolver: context -> user id; defaults to ``context.user_id``
        scope_table_name: Table name views are stored under (default: the table's name)
    """

    enabled: bool = False
    scope_user: bool = False
    user_resolver: Callable[[Any], Any] | None = None
    scope_table_name: str | None = None

    def resolve_user(self, context: Any) -> str | None:
        if not self.scope_user:
            return None
        if self.user_resolver is not None:
            user_id = self.user_resolver(context)
        else:
            user_id = getattr(context, "user_id", None)
        return None if user_id is None else str(user_id)


@dataclass
class TableConfig:
    name: str
    default_sort: tuple[str, SortDirection] | None = None
    default_per_page: int = 25
    per_page_options: list[int] = field(default_factory=lambda: [10, 25, 50, 100])
    max_per_page: int = 1000
    sticky_header: bool = False
    searchable: list[str] = field(default_factory=list)
    search_placeholder: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise DefinitionError("Table name is required")
        if self.default_sort is not None:
            if isinstance(self.default_sort, str):
                sort_field, direction = self.default_sort, SortDirection.ASC
            else:
                sort_field, direction = self.default_sort
            self.default_sort = (sort_field, _enum(SortDirection, direction, "sort direction"))
        if self.default_per_page <= 0:
            raise DefinitionError("default_per_page must be positive")
        if self.searchable is True:
            raise DefinitionError("searchable must list the fields to search")
        self.searchable = list(self.searchable or [])


@dataclass
class TableDefinition:
    """Immutable descriptor of one table, identified by ``config.name``.

    ``resource`` names the storage table rows come from; ``repository``
    is the Repository that reads it.
    """

    config: TableConfig
    resource: str
    repository: Any = None
    columns: tuple[Column, ...] = ()
    filters: tuple[Filter, ...] = ()
    actions: tuple[Action, ...] = ()
    bulk_actions: tuple[BulkAction, ...] = ()
    exports: tuple[Export, ...] = ()
    empty_state: EmptyState | None = None
    views_config: ViewsConfig = field(default_factory=ViewsConfig)
    selectable: Callable[..., Any] | None = None
    transform_row: Callable[..., Any] | None = None
    primary_key: str = "id"

    def __post_init__(self) -> None:
        self.columns = tuple(self.columns)
        self.filters = tuple(self.filters)
        self.actions = tuple(self.actions)
        self.bulk_actions = tuple(self.bulk_actions)
        self.exports = tuple(self.exports)

        action_columns = [c for c in self.columns if c.is_action]
        if len(action_columns) > 1:
            raise DefinitionError(
                f"Table '{self.name}' defines more than one action column"
            )
        for label, items, attr in (
            ("column", self.columns, "key"),
            ("filter", self.filters, "field"),
            ("action", self.actions, "name"),
            ("bulk action", self.bulk_actions, "name"),
            ("export", self.exports, "name"),
        ):
            seen: set[str] = set()
            for item in items:
                key = getattr(item, attr)
                if key in seen:
                    raise DefinitionError(
                        f"Table '{self.name}' defines {label} '{key}' more than once"
                    )
                seen.add(key)

        computed = {c.key for c in self.columns if c.compute is not None}
        sort_field = self.config.default_sort[0] if self.config.default_sort else None
        for key in [sort_field, *self.config.searchable]:
            if key in computed:
                raise DefinitionError(
                    f"Table '{self.name}' cannot sort or search by computed column '{key}'"
                )

        # Url templates may only read fields the table declares
        known = {c.key for c in self.columns} | {f.field for f in self.filters}
        known.add(self.primary_key)
        for action in self.actions:
            unknown = sorted(action.url_fields - known)
            if unknown:
                raise DefinitionError(
                    f"Action '{action.name}' url references undeclared field(s): "
                    f"{', '.join(unknown)}"
                )

        self.selectable = normalize_row_callback(self.selectable)
        if self.transform_row is not None and not callable(self.transform_row):
            raise DefinitionError("transform_row must be callable")

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def views_table_name(self) -> str:
        return self.views_config.scope_table_name or self.name

    @property
    def has_bulk_actions(self) -> bool:
        return bool(self.bulk_actions)

    def get_column(self, key: str) -> Column | None:
        return next((c for c in self.columns if c.key == key), None)

    def get_filter(self, field_name: str) -> Filter | None:
        return next((f for f in self.filters if f.field == field_name), None)

    def get_action(self, name: str) -> Action | None:
        return next((a for a in self.actions if a.name == name), None)

    def get_bulk_action(self, name: str) -> BulkAction | None:
        return next((a for a in self.bulk_actions if a.name == name), None)

    def get_export(self, name: str) -> Export | None:
        return next((e for e in self.exports if e.name == name), None)

    def data_columns(self) -> list[Column]:
        """All non-action columns."""
        return [c for c in self.columns if not c.is_action]

    def default_export_columns(self) -> list[Column]:
        """Visible non-action columns, in definition order."""
        return [c for c in self.columns if c.visible and not c.is_action]

    def sortable_fields(self) -> set[str]:
        return {c.key for c in self.columns if c.sortable}

    def filterable_fields(self) -> set[str]:
        return {f.field for f in self.filters} | {self.primary_key}

    def resolve_field(self, name: str) -> str:
        """Map a client-supplied field name to its storage key.

        Clients echo keys back in the output naming convention, so both
        ``first_name`` and ``firstName`` resolve to ``first_name``.
        Unknown names are returned unchanged.
        """
        known = {c.key for c in self.data_columns()} | {f.field for f in self.filters}
        known.add(self.primary_key)
        if name in known:
            return name
        for key in known:
            if NamingConvention.CAMEL.key(key) == name:
                return key
        return name

    def searchable_fields(self) -> list[str]:
        """Fields matched by the free-text search box."""
        if self.config.searchable:
            return list(self.config.searchable)
        return [c.key for c in self.columns if c.searchable]
