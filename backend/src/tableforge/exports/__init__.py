"""CSV exports of full filtered row sets."""

from tableforge.exports.csv_exporter import CsvExporter, value_to_string
from tableforge.exports.service import ExportFile, ExportService, export_filename

__all__ = [
    "CsvExporter",
    "ExportFile",
    "ExportService",
    "export_filename",
    "value_to_string",
]
