"""Tests for CSV exports."""

from datetime import UTC, date, datetime

import pytest

from tableforge.core.types import Variant
from tableforge.errors import (
    ExportFormatNotSupported,
    ExportNotFound,
    InvalidParameters,
    Unauthorized,
)
from tableforge.exports import CsvExporter, ExportService, export_filename, value_to_string
from tableforge.table import TableRegistry
from tableforge.tokens import TokenService


def _service(table, secret):
    token_service = TokenService(secret, registry=TableRegistry([table]))
    return ExportService(token_service), token_service.sign(table.name)


class TestValueToString:
    """Tests for default cell formatting."""

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (1.5, "1.5"),
        (date(2024, 3, 1), "2024-03-01"),
        (datetime(2024, 3, 1, 9, 30), "2024-03-01T09:30:00"),
        (Variant.DANGER, "danger"),
        (["a", "b"], "a, b"),
        ({"k": 1}, '{"k":1}'),
        ("plain", "plain"),
    ])
    def test_values(self, value, expected):
        assert value_to_string(value) == expected


class TestCsvExporter:
    """Tests for CsvExporter."""

    def test_default_columns(self, users_table):
        exporter = CsvExporter(users_table, users_table.get_export("csv"))
        # Hidden and action columns are left out
        assert exporter.header() == ["Name", "Email", "Status", "Age", "Admin"]

    def test_rows(self, users_table):
        exporter = CsvExporter(users_table, users_table.get_export("csv"))
        rows = [
            {
                "id": 1, "name": "Alice", "email": None,
                "status": "active", "age": 34, "is_admin": True,
            },
        ]
        assert exporter.generate(rows) == (
            "Name,Email,Status,Age,Admin\r\n"
            "Alice,,active,34,true\r\n"
        )

    def test_no_rows_still_has_header(self, users_table):
        exporter = CsvExporter(users_table, users_table.get_export("csv"))
        assert exporter.generate([]) == "Name,Email,Status,Age,Admin\r\n"

    def test_explicit_columns_and_formatter(self, users_builder):
        table = users_builder.export(
            "csv",
            columns=["age", "name", "unknown", "_actions"],
            format_column={"age": lambda age: f"{age} years"},
        ).build()
        exporter = CsvExporter(table, table.get_export("csv"))
        assert exporter.header() == ["Age", "Name"]
        assert exporter.format_row({"name": "Bob", "age": 27}) == ["27 years", "Bob"]

    def test_quoting_and_delimiter(self, users_builder):
        table = users_builder.export("csv", columns=["name"], delimiter=";").build()
        exporter = CsvExporter(table, table.get_export("csv"))
        assert exporter.generate([{"name": 'Smith; "Jr"'}]) == 'Name\r\n"Smith; ""Jr"""\r\n'

    def test_stream_batches(self, users_table):
        exporter = CsvExporter(users_table, users_table.get_export("csv"))
        rows = [{"name": f"user{i}"} for i in range(5)]
        chunks = list(exporter.stream(rows, batch_size=2))
        assert len(chunks) == 4
        assert chunks[0].startswith("Name,")
        assert chunks[-1] == "user4,,,,\r\n"


class TestExportFilename:
    """Tests for export file names."""

    def test_default(self, users_table):
        now = datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)
        assert export_filename(users_table, users_table.get_export("csv"), now) == (
            "users_20240506_070809.csv"
        )

    def test_callback(self, users_builder):
        table = users_builder.export(
            "csv", filename=lambda info: f"{info['table_name']}-{info['export_name']}.csv"
        ).build()
        assert export_filename(table, table.get_export("csv")) == "users-csv.csv"


class TestExportService:
    """Tests for ExportService.prepare."""

    def test_full_filtered_row_set(self, users_table, token_service):
        service = ExportService(token_service)
        export_file = service.prepare(
            token_service.sign("users"),
            "csv",
            filters=[{"field": "status", "op": "in", "value": ["active"]}],
        )
        assert export_file.content_type == "text/csv; charset=utf-8"
        assert export_file.filename.startswith("users_")
        # Not paginated: all three active users, in default sort order
        assert export_file.read() == (
            "Name,Email,Status,Age,Admin\r\n"
            "Alice,alice@example.com,active,34,true\r\n"
            "Carol,carol@example.com,active,45,false\r\n"
            "Eve,eve@example.com,active,52,true\r\n"
        )

    def test_search(self, token_service):
        export_file = ExportService(token_service).prepare(
            token_service.sign("users"), "csv", search="bob"
        )
        assert export_file.read().splitlines()[1:] == ["Bob,bob@example.com,inactive,27,false"]

    def test_unknown_export(self, token_service):
        with pytest.raises(ExportNotFound):
            ExportService(token_service).prepare(token_service.sign("users"), "pdf")

    def test_unauthorized(self, users_builder, secret):
        table = users_builder.export("csv", authorize=lambda context: False).build()
        service, token = _service(table, secret)
        with pytest.raises(Unauthorized, match="Not authorized to export"):
            service.prepare(token, "csv")

    def test_unsupported_format(self, users_builder, secret):
        table = users_builder.export("excel").build()
        service, token = _service(table, secret)
        with pytest.raises(ExportFormatNotSupported):
            service.prepare(token, "excel")

    def test_invalid_filters(self, token_service):
        with pytest.raises(InvalidParameters, match="'email' is not filterable"):
            ExportService(token_service).prepare(
                token_service.sign("users"), "csv", filters={"email": "x"}
            )

    def test_export_values_go_through_columns(self, users_builder, secret):
        table = (
            users_builder
            .column("label", compute=lambda row: f"{row['name']} ({row['status']})")
            .export("csv", columns=["label"])
            .build()
        )
        service, token = _service(table, secret)
        lines = service.prepare(token, "csv", filters={"id": "4"}).read().splitlines()
        assert lines == ["Label", "Dave (pending)"]
