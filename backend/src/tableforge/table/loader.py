"""Load table definitions from YAML files.

Each ``tables/*.yaml`` file holds one ``table:`` document. Keys are
camelCase like the rest of the metadata; callbacks are referenced by the
name they were registered under with @callback:

    table:
      name: users
      resource: users
      config:
        defaultSort: [name, asc]
        searchable: [name, email]
      columns:
        - {key: name, sortable: true}
        - {key: status, type: badge, colors: {active: green}}
        - {type: action}
      filters:
        - {field: status, type: set, options: [active, archived]}
      actions:
        - {name: delete, handle: users.delete, disabled: users.is_admin}
      exports:
        - {name: csv, columns: [name, email]}
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from tableforge.core.types import ColumnType, snake_case
from tableforge.errors import DefinitionError
from tableforge.table.builder import TableBuilder
from tableforge.table.callbacks import CallbackRegistry
from tableforge.table.types import TableDefinition

logger = logging.getLogger(__name__)

_CALLBACK_OPTIONS = {
    "compute", "map_as", "handle", "disabled", "hidden", "visible",
    "authorize", "before", "after", "filename", "user_resolver",
}


def _resolve_callback(name: Any) -> Any:
    if name is None or callable(name):
        return name
    return CallbackRegistry.get(str(name))


def _options(data: dict[str, Any], *skip: str) -> dict[str, Any]:
    """Snake-case the keys of a YAML mapping and resolve callback references."""
    options: dict[str, Any] = {}
    for raw_key, value in data.items():
        key = snake_case(raw_key)
        if key in skip:
            continue
        if key in _CALLBACK_OPTIONS:
            value = _resolve_callback(value)
        elif key == "url" and isinstance(value, str) and CallbackRegistry.is_registered(value):
            value = CallbackRegistry.get(value)
        elif key == "format_column":
            value = {col: _resolve_callback(fn) for col, fn in (value or {}).items()}
        elif key == "confirmation" and isinstance(value, dict):
            value = {snake_case(k): v for k, v in value.items()}
        options[key] = value
    return options


def _parse_sort(value: Any) -> Any:
    """``name``, ``-name``, ``name:desc`` or ``[name, desc]``."""
    if value is None or isinstance(value, (list, tuple)):
        return tuple(value) if value else None
    text = str(value)
    if text.startswith("-"):
        return (text[1:], "desc")
    if ":" in text:
        field_name, direction = text.split(":", 1)
        return (field_name, direction)
    return (text, "asc")


class TableLoader:
    """Loads table definitions from tables/*.yaml files.

    All YAML tables read through the repository given here; tables that
    need their own repository should be defined in code with TableBuilder.
    """

    def __init__(self, tables_path: Path, repository: Any = None):
        self.tables_path = tables_path
        self.repository = repository
        self.tables: dict[str, TableDefinition] = {}

    def load_all(self) -> None:
        """Load every table YAML. A missing directory loads nothing."""
        if not self.tables_path.exists():
            return

        for yaml_file in sorted(self.tables_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if data and "table" in data:
                try:
                    table = self.parse_table(data["table"])
                except (DefinitionError, ValueError, TypeError, KeyError) as e:
                    raise DefinitionError(f"{yaml_file.name}: {e}") from e
                self.tables[table.name] = table
                logger.info("Loaded table %s from %s", table.name, yaml_file.name)

    def parse_table(self, data: dict[str, Any]) -> TableDefinition:
        """Build a TableDefinition from one parsed ``table:`` mapping."""
        builder = TableBuilder(data["name"])
        builder.resource(
            data.get("resource", data["name"]),
            self.repository,
            primary_key=data.get("primaryKey", "id"),
        )

        config = _options(data.get("config", {}))
        if "default_sort" in config:
            config["default_sort"] = _parse_sort(config["default_sort"])
        if config:
            builder.config(**config)

        for column in data.get("columns", []):
            options = _options(column, "type", "key")
            if column.get("type") == ColumnType.ACTION.value:
                builder.action_column(**options)
            else:
                builder.column(column["key"], column.get("type", "text"), **options)

        for flt in data.get("filters", []):
            builder.filter(flt["field"], flt.get("type", "text"), **_options(flt, "field", "type"))

        for action in data.get("actions", []):
            builder.action(action["name"], **_options(action, "name"))

        for bulk in data.get("bulkActions", []):
            builder.bulk_action(bulk["name"], **_options(bulk, "name"))

        for export in data.get("exports", []):
            builder.export(export["name"], **_options(export, "name"))

        if data.get("emptyState"):
            builder.empty_state(**_options(data["emptyState"]))

        if data.get("views"):
            builder.views(**_options(data["views"]))

        if data.get("selectable"):
            builder.selectable(_resolve_callback(data["selectable"]))

        if data.get("transformRow"):
            builder.transform_row(_resolve_callback(data["transformRow"]))

        return builder.build()

    def get_table(self, name: str) -> TableDefinition | None:
        return self.tables.get(name)

    def list_tables(self) -> list[TableDefinition]:
        return list(self.tables.values())
