"""Query engine: validate normalized parameters and fetch one page of rows.

The engine is the pluggable pagination/filter/sort component. Its
contract is ``validate_and_run(table, params) -> QueryResult``, where a
QueryResult is either ok (rows + pagination meta) or a set of per-field
validation errors. It never raises for bad client input.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from tableforge.core.types import (
    FilterType,
    LIST_OPERATORS,
    Operator,
    VALUELESS_OPERATORS,
    operator_to_clause,
)
from tableforge.persistence.repository import Criteria
from tableforge.query.types import FilterCondition, PaginationMeta, QueryParams

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Outcome of running a query: rows + meta, or field errors."""

    ok: bool
    rows: list[dict[str, Any]] = field(default_factory=list)
    meta: PaginationMeta | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def success(cls, rows: list[dict[str, Any]], meta: PaginationMeta) -> "QueryResult":
        return cls(ok=True, rows=rows, meta=meta)

    @classmethod
    def failure(cls, errors: dict[str, list[str]]) -> "QueryResult":
        return cls(ok=False, errors=errors)


class QueryValidationError(Exception):
    """Raised by engines that prefer exceptions to QueryResult.failure()."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {', '.join(v)}" for k, v in errors.items()))


class QueryEngine(Protocol):
    """Pagination/filter/sort engine contract."""

    def validate_and_run(self, table: Any, params: QueryParams) -> QueryResult:
        """Validate params against the table and return one page.

        Args:
            table: The TableDefinition (resource, repository, allowed fields)
            params: Normalized query parameters

        Returns:
            QueryResult.success(rows, meta) or QueryResult.failure(errors)
        """
        ...


_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        raise ValueError("must be a number")


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError("must be a boolean")


def _coerce_value(filter_type: FilterType, op: Operator, value: Any) -> Any:
    """Convert string values from query strings to the filter's type."""
    if op in VALUELESS_OPERATORS:
        return None
    if filter_type == FilterType.NUMERIC:
        convert = _coerce_number
    elif filter_type == FilterType.BOOLEAN:
        convert = _coerce_bool
    else:
        return value
    if op in LIST_OPERATORS or op == Operator.BETWEEN:
        return [convert(v) for v in value]
    return convert(value)


def _add_error(errors: dict[str, list[str]], key: str, message: str) -> None:
    errors.setdefault(key, []).append(message)


class DefaultQueryEngine:
    """Query engine over a table's Repository.

    Validates sort fields against sortable columns, filter fields against
    declared filters (and the primary key), operators against each
    filter's clauses, and page bounds. Fills in page 1 when absent.
    """

    def validate_and_run(self, table: Any, params: QueryParams) -> QueryResult:
        errors: dict[str, list[str]] = {}
        executed = self._validate(table, params, errors)
        if errors:
            return QueryResult.failure(errors)

        criteria = self.criteria_for(table, executed.filters, executed.search)
        sort = [executed.sort] if executed.sort else []
        offset = (executed.page - 1) * executed.page_size

        total = table.repository.count(table.resource, criteria)
        rows = table.repository.query(
            table.resource,
            criteria,
            sort=sort,
            limit=executed.page_size,
            offset=offset,
        )
        return QueryResult.success(rows, PaginationMeta.for_page(executed, total))

    def criteria_for(
        self,
        table: Any,
        filters: tuple[FilterCondition, ...] | list[FilterCondition],
        search: str | None = None,
    ) -> Criteria:
        """Repository criteria for already-validated filters and search."""
        return Criteria(
            filters=list(filters),
            search=search,
            search_fields=table.searchable_fields() if search else [],
            primary_key=table.primary_key,
        )

    def validate_filters(
        self,
        table: Any,
        filters: tuple[FilterCondition, ...] | list[FilterCondition],
        errors: dict[str, list[str]],
    ) -> list[FilterCondition]:
        """Resolve, check and coerce filter conditions.

        Problems are appended to errors under the ``filters`` key; the
        returned list only holds the conditions that passed.
        """
        valid: list[FilterCondition] = []
        for cond in filters:
            field_name = table.resolve_field(cond.field)
            if field_name not in table.filterable_fields():
                _add_error(errors, "filters", f"'{cond.field}' is not filterable")
                continue

            definition = table.get_filter(field_name)
            if definition is not None:
                clause = operator_to_clause(cond.op)
                if clause is None or clause not in definition.clauses:
                    _add_error(
                        errors,
                        "filters",
                        f"Operator '{cond.op.value}' is not allowed for '{cond.field}'",
                    )
                    continue

            value = cond.value
            if cond.op in LIST_OPERATORS and not isinstance(value, (list, tuple)):
                _add_error(errors, "filters", f"'{cond.field}' expects a list of values")
                continue
            if cond.op == Operator.BETWEEN and (
                not isinstance(value, (list, tuple)) or len(value) != 2
            ):
                _add_error(errors, "filters", f"'{cond.field}' between expects two values")
                continue
            if definition is not None:
                try:
                    value = _coerce_value(definition.type, cond.op, value)
                except ValueError as e:
                    _add_error(errors, "filters", f"'{cond.field}' {e}")
                    continue

            valid.append(FilterCondition(field=field_name, op=cond.op, value=value))
        return valid

    def _validate(
        self, table: Any, params: QueryParams, errors: dict[str, list[str]]
    ) -> QueryParams:
        page = params.page if params.page is not None else 1
        if page < 1:
            _add_error(errors, "page", "must be greater than or equal to 1")

        page_size = (
            params.page_size if params.page_size is not None
            else table.config.default_per_page
        )
        if page_size < 1:
            _add_error(errors, "page_size", "must be greater than or equal to 1")
        elif page_size > table.config.max_per_page:
            _add_error(
                errors,
                "page_size",
                f"must be less than or equal to {table.config.max_per_page}",
            )

        order_by: list[str] = []
        for field_name in params.order_by:
            resolved = table.resolve_field(field_name)
            if resolved not in table.sortable_fields():
                _add_error(errors, "order_by", f"'{field_name}' is not sortable")
            else:
                order_by.append(resolved)

        filters = self.validate_filters(table, params.filters, errors)

        return QueryParams(
            page=page,
            page_size=page_size,
            order_by=tuple(order_by),
            order_directions=params.order_directions[: len(order_by)],
            filters=tuple(filters),
            search=params.search,
            columns=params.columns,
        )


def run_query(engine: QueryEngine, table: Any, params: QueryParams) -> QueryResult:
    """Run a query and classify the outcome.

    Engines that raise QueryValidationError are turned into a failure
    result, so callers only ever see a QueryResult.
    """
    try:
        return engine.validate_and_run(table, params)
    except QueryValidationError as e:
        logger.debug("Query for table %s failed validation: %s", table.name, e)
        return QueryResult.failure(e.errors)
