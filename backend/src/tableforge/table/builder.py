"""Fluent builder for table definitions.

Usage:
    users = (
        TableBuilder("users")
        .resource("users", repository)
        .config(default_sort=("name", "asc"), default_per_page=25)
        .text_column("name", sortable=True)
        .badge_column("status", colors={"active": "green"})
        .action_column()
        .text_filter("name", clauses=["contains", "equals"])
        .action("delete", handle=delete_user, disabled=lambda row: row["is_admin"])
        .bulk_action("archive", handle=archive_users, chunk_size=50)
        .export("csv")
        .build()
    )
"""

from typing import Any

from tableforge.core.types import ColumnType, FilterType
from tableforge.errors import DefinitionError
from tableforge.table.types import (
    Action,
    BulkAction,
    Column,
    EmptyState,
    Export,
    Filter,
    TableConfig,
    TableDefinition,
    ViewsConfig,
)


class TableBuilder:
    """Accumulates columns, filters, actions and exports, then builds once.

    Each component is validated as it is added; table-wide invariants
    (single action column, unique names) are checked by ``build()``.
    """

    def __init__(self, name: str):
        self._config: dict[str, Any] = {"name": name}
        self._resource: str | None = None
        self._repository: Any = None
        self._primary_key = "id"
        self._columns: list[Column] = []
        self._filters: list[Filter] = []
        self._actions: list[Action] = []
        self._bulk_actions: list[BulkAction] = []
        self._exports: list[Export] = []
        self._empty_state: EmptyState | None = None
        self._views = ViewsConfig()
        self._selectable: Any = None
        self._transform_row: Any = None

    # ------------------------------------------------------------------
    # Source and config
    # ------------------------------------------------------------------

    def resource(
        self, resource: str, repository: Any = None, primary_key: str = "id"
    ) -> "TableBuilder":
        """Set the storage table rows come from and the repository that reads it."""
        self._resource = resource
        self._primary_key = primary_key
        if repository is not None:
            self._repository = repository
        return self

    def repository(self, repository: Any) -> "TableBuilder":
        self._repository = repository
        return self

    def config(self, **options: Any) -> "TableBuilder":
        """Set TableConfig options (default_sort, default_per_page, searchable, ...)."""
        if "name" in options:
            raise DefinitionError("The table name is set by TableBuilder(name)")
        self._config.update(options)
        return self

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def column(
        self, key: str, type: ColumnType | str = ColumnType.TEXT, **options: Any
    ) -> "TableBuilder":
        self._columns.append(Column(key=key, type=type, **options))
        return self

    def text_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.TEXT, **options)

    def badge_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.BADGE, **options)

    def numeric_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.NUMERIC, **options)

    def date_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.DATE, **options)

    def datetime_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.DATETIME, **options)

    def boolean_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.BOOLEAN, **options)

    def image_column(self, key: str, **options: Any) -> "TableBuilder":
        return self.column(key, ColumnType.IMAGE, **options)

    def action_column(self, label: str = "Actions", **options: Any) -> "TableBuilder":
        self._columns.append(Column.action_column(label=label, **options))
        return self

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def filter(
        self, field: str, type: FilterType | str = FilterType.TEXT, **options: Any
    ) -> "TableBuilder":
        self._filters.append(Filter(field=field, type=type, **options))
        return self

    def text_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.TEXT, **options)

    def numeric_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.NUMERIC, **options)

    def set_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.SET, **options)

    def date_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.DATE, **options)

    def datetime_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.DATETIME, **options)

    def boolean_filter(self, field: str, **options: Any) -> "TableBuilder":
        return self.filter(field, FilterType.BOOLEAN, **options)

    # ------------------------------------------------------------------
    # Actions, exports, misc
    # ------------------------------------------------------------------

    def action(self, name: str, **options: Any) -> "TableBuilder":
        self._actions.append(Action(name=name, **options))
        return self

    def bulk_action(self, name: str, **options: Any) -> "TableBuilder":
        self._bulk_actions.append(BulkAction(name=name, **options))
        return self

    def export(self, name: str, **options: Any) -> "TableBuilder":
        self._exports.append(Export(name=name, **options))
        return self

    def empty_state(self, title: str = "No data found", **options: Any) -> "TableBuilder":
        self._empty_state = EmptyState(title=title, **options)
        return self

    def views(self, enabled: bool = True, **options: Any) -> "TableBuilder":
        self._views = ViewsConfig(enabled=enabled, **options)
        return self

    def selectable(self, predicate: Any) -> "TableBuilder":
        """Predicate ``(row[, context]) -> bool`` deciding if a row can be bulk-selected."""
        self._selectable = predicate
        return self

    def transform_row(self, fn: Any) -> "TableBuilder":
        """Hook ``(raw_row, data, context) -> dict`` run last on every serialized row."""
        self._transform_row = fn
        return self

    def build(self) -> TableDefinition:
        """Validate and produce the TableDefinition.

        Raises:
            DefinitionError: If the definition is incomplete or inconsistent
        """
        if not self._resource:
            raise DefinitionError(f"Table '{self._config['name']}' has no resource")
        return TableDefinition(
            config=TableConfig(**self._config),
            resource=self._resource,
            repository=self._repository,
            columns=tuple(self._columns),
            filters=tuple(self._filters),
            actions=tuple(self._actions),
            bulk_actions=tuple(self._bulk_actions),
            exports=tuple(self._exports),
            empty_state=self._empty_state,
            views_config=self._views,
            selectable=self._selectable,
            transform_row=self._transform_row,
            primary_key=self._primary_key,
        )
