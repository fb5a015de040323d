"""Per-row computation: display values, action state and selectability.

Each raw row from the query engine goes through three passes:

1. Column transform - ``compute(row)`` (falling back to ``row[key]``),
   then ``map_as(value)``, written under the column's output key.
2. Action evaluation - ``{url, disabled, hidden}`` for every action,
   stored under ``_actions[name]``.
3. Selectability - ``_selectable``, only when the table has bulk actions.

Callbacks used here must be side-effect free, so rows are independent
and may be processed on an executor. Output order always matches input
order.
"""

from collections.abc import Iterable
from concurrent.futures import Executor
from typing import Any

from tableforge.core.types import NamingConvention
from tableforge.table.types import ACTION_COLUMN_KEY, TableDefinition

SELECTABLE_KEY = "_selectable"


class RowPipeline:
    """Turns raw rows into serialized table rows for one table."""

    def __init__(
        self,
        table: TableDefinition,
        naming: NamingConvention = NamingConvention.CAMEL,
        executor: Executor | None = None,
    ):
        """Initialize the pipeline.

        Args:
            table: The table definition rows belong to
            naming: Key convention for column output keys
            executor: Optional executor to process rows concurrently
        """
        self.table = table
        self.naming = naming
        self.executor = executor
        self._columns = [(naming.key(c.key), c) for c in table.data_columns()]

    def process(self, rows: Iterable[dict[str, Any]], context: Any = None) -> list[dict[str, Any]]:
        """Process rows, preserving their order."""
        if self.executor is None:
            return [self.process_row(row, context) for row in rows]
        return list(self.executor.map(lambda row: self.process_row(row, context), rows))

    def process_row(self, row: dict[str, Any], context: Any = None) -> dict[str, Any]:
        data: dict[str, Any] = {"id": row.get(self.table.primary_key)}

        for output_key, column in self._columns:
            data[output_key] = column.value_for(row, context)

        data[ACTION_COLUMN_KEY] = {
            action.name: action.evaluate(row, context) for action in self.table.actions
        }

        if self.table.has_bulk_actions:
            predicate = self.table.selectable
            data[SELECTABLE_KEY] = bool(predicate(row, context)) if predicate else True

        if self.table.transform_row is not None:
            transformed = self.table.transform_row(row, data, context)
            if transformed is not None:
                data = transformed

        return data
