"""Query parameters: normalization, validation and execution."""

from tableforge.query.types import FilterCondition, PaginationMeta, QueryParams
from tableforge.query.params import decode_query_string, normalize_params, parse_filters
from tableforge.query.engine import (
    DefaultQueryEngine,
    QueryEngine,
    QueryResult,
    QueryValidationError,
    run_query,
)

__all__ = [
    "DefaultQueryEngine",
    "FilterCondition",
    "PaginationMeta",
    "QueryEngine",
    "QueryParams",
    "QueryResult",
    "QueryValidationError",
    "decode_query_string",
    "normalize_params",
    "parse_filters",
    "run_query",
]
