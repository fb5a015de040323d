"""CSV rendering of table rows.

Rows are written with the standard library csv writer (CRLF line
endings). Values go through the column's compute/map_as first, then the
export's per-column formatter when one is set, and finally a type-aware
default conversion to text.
"""

import csv
import io
import json
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from tableforge.table.types import Column, Export, TableDefinition

LINE_TERMINATOR = "\r\n"


def value_to_string(value: Any) -> str:
    """Default conversion of an exported value to cell text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, tuple, set)):
        return ", ".join(value_to_string(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


class CsvExporter:
    """Renders rows of one table for one export definition."""

    def __init__(self, table: TableDefinition, export: Export | None = None, context: Any = None):
        self.table = table
        self.export = export
        self.context = context
        self.columns = self._columns()

    def _columns(self) -> list[Column]:
        if self.export is None or self.export.columns is None:
            return self.table.default_export_columns()
        # Explicit subset keeps its own order and skips unknown keys
        columns = []
        for key in self.export.columns:
            column = self.table.get_column(key)
            if column is not None and not column.is_action:
                columns.append(column)
        return columns

    @property
    def delimiter(self) -> str:
        return self.export.delimiter if self.export is not None else ","

    def header(self) -> list[str]:
        return [column.label for column in self.columns]

    def format_row(self, row: dict[str, Any]) -> list[str]:
        formatters = self.export.format_column if self.export is not None else {}
        cells = []
        for column in self.columns:
            value = column.value_for(row, self.context)
            formatter = formatters.get(column.key)
            if formatter is not None:
                value = formatter(value)
            cells.append(value_to_string(value))
        return cells

    def _encode(self, rows: Iterable[list[str]]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=self.delimiter, lineterminator=LINE_TERMINATOR)
        writer.writerows(rows)
        return buffer.getvalue()

    def stream(self, rows: Iterable[dict[str, Any]], batch_size: int = 100) -> Iterator[str]:
        """Yield CSV text incrementally: the header line, then batches of rows."""
        yield self._encode([self.header()])
        batch: list[list[str]] = []
        for row in rows:
            batch.append(self.format_row(row))
            if len(batch) >= batch_size:
                yield self._encode(batch)
                batch = []
        if batch:
            yield self._encode(batch)

    def generate(self, rows: Iterable[dict[str, Any]]) -> str:
        """Render the whole CSV document at once."""
        return "".join(self.stream(rows))
