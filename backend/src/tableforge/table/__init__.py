"""Table definitions: types, fluent builder, registry and YAML loader."""

from tableforge.table.types import (
    ACTION_COLUMN_KEY,
    Action,
    BulkAction,
    Column,
    Confirmation,
    EmptyState,
    Export,
    Filter,
    FilterOption,
    TableConfig,
    TableDefinition,
    ViewsConfig,
    template_fields,
)
from tableforge.table.builder import TableBuilder
from tableforge.table.callbacks import CallbackRegistry, callback, normalize_row_callback
from tableforge.table.registry import TableRegistry
from tableforge.table.loader import TableLoader

__all__ = [
    "ACTION_COLUMN_KEY",
    "Action",
    "BulkAction",
    "CallbackRegistry",
    "Column",
    "Confirmation",
    "EmptyState",
    "Export",
    "Filter",
    "FilterOption",
    "TableBuilder",
    "TableConfig",
    "TableDefinition",
    "TableLoader",
    "TableRegistry",
    "ViewsConfig",
    "callback",
    "normalize_row_callback",
    "template_fields",
]
