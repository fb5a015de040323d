"""Shared enums, operator vocabulary and request context."""

from tableforge.core.types import (
    Alignment,
    Clause,
    ColumnType,
    ExportFormat,
    FilterType,
    NamingConvention,
    Operator,
    RequestContext,
    SortDirection,
    Variant,
    allowed_clauses,
    clause_to_operator,
    humanize,
    operator_to_clause,
    parse_operator,
    snake_case,
)

__all__ = [
    "Alignment",
    "Clause",
    "ColumnType",
    "ExportFormat",
    "FilterType",
    "NamingConvention",
    "Operator",
    "RequestContext",
    "SortDirection",
    "Variant",
    "allowed_clauses",
    "clause_to_operator",
    "humanize",
    "operator_to_clause",
    "parse_operator",
    "snake_case",
]
