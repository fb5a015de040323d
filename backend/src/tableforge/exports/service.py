"""Export execution: token -> export -> authorize -> stream filtered rows."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from tableforge.core.types import ExportFormat, RequestContext
from tableforge.errors import (
    ExportFormatNotSupported,
    ExportNotFound,
    InvalidParameters,
    Unauthorized,
)
from tableforge.exports.csv_exporter import CsvExporter
from tableforge.query.engine import DefaultQueryEngine
from tableforge.query.params import parse_filters
from tableforge.table.types import Export, TableDefinition
from tableforge.tokens.service import TokenService

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv; charset=utf-8"


@dataclass
class ExportFile:
    """A prepared export. ``chunks`` reads from storage lazily when iterated."""

    filename: str
    content_type: str
    chunks: Iterator[str]

    def read(self) -> str:
        return "".join(self.chunks)


def export_filename(table: TableDefinition, export: Export, now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    if export.filename is not None:
        return export.filename({
            "table_name": table.name,
            "export_name": export.name,
            "timestamp": now,
        })
    return f"{table.name}_{now.strftime('%Y%m%d_%H%M%S')}.csv"


class ExportService:
    """Builds downloadable exports of the full filtered row set."""

    def __init__(self, token_service: TokenService, engine: DefaultQueryEngine | None = None):
        self.token_service = token_service
        self.engine = engine or DefaultQueryEngine()

    def prepare(
        self,
        token: str,
        export_name: str,
        filters: Any = None,
        search: str | None = None,
        context: RequestContext | None = None,
    ) -> ExportFile:
        """Resolve and authorize an export and return its lazily rendered file.

        Raises:
            InvalidToken, ExpiredToken: Token problems (400/401)
            ExportNotFound: No export with that name (404)
            Unauthorized: authorize returned false (403)
            InvalidParameters: Filters are malformed or not allowed (400)
            ExportFormatNotSupported: Format other than CSV (501)
        """
        table, verified = self.token_service.resolve(token)
        context = context or RequestContext()
        context.token_context = verified.context

        export = table.get_export(export_name)
        if export is None:
            raise ExportNotFound()

        if export.authorize is not None and not export.authorize(context):
            raise Unauthorized("Not authorized to export")

        if export.format != ExportFormat.CSV:
            raise ExportFormatNotSupported(
                f"Export format '{export.format.value}' is not supported"
            )

        errors: dict[str, list[str]] = {}
        conditions = self.engine.validate_filters(table, parse_filters(filters), errors)
        if errors:
            raise InvalidParameters("; ".join(errors["filters"]))

        criteria = self.engine.criteria_for(table, conditions, search or None)
        sort = [table.config.default_sort] if table.config.default_sort else None
        rows = table.repository.stream(table.resource, criteria, sort=sort)

        logger.info("Exporting table %s as %s", table.name, export.name)
        exporter = CsvExporter(table, export, context)
        return ExportFile(
            filename=export_filename(table, export),
            content_type=CSV_CONTENT_TYPE,
            chunks=exporter.stream(rows),
        )
