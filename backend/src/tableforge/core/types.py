"""Column, filter and operator vocabulary shared by every table component."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ColumnType(str, Enum):
    TEXT = "text"
    BADGE = "badge"
    NUMERIC = "numeric"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    IMAGE = "image"
    ACTION = "action"


class FilterType(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    SET = "set"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Variant(str, Enum):
    DEFAULT = "default"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    DANGER = "danger"
    WARNING = "warning"
    SUCCESS = "success"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


class Clause(str, Enum):
    """User-facing filter clause as offered by a filter widget."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    IN = "in"
    NOT_IN = "not_in"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"


class Operator(str, Enum):
    """Query operator. Values are the canonical wire tokens."""

    EQ = "=="
    NEQ = "!="
    ILIKE = "ilike"
    NOT_ILIKE = "not_ilike"
    LIKE = "like"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"


# Every token accepted on the wire, including aliases
OPERATOR_TOKENS: dict[str, Operator] = {
    **{op.value: op for op in Operator},
    "=~": Operator.ILIKE,
    "contains": Operator.ILIKE,
    "equals": Operator.EQ,
    "not_equals": Operator.NEQ,
    "gt": Operator.GT,
    "gte": Operator.GTE,
    "lt": Operator.LT,
    "lte": Operator.LTE,
}

# Operators whose value must be a list
LIST_OPERATORS = {Operator.IN, Operator.NOT_IN}

# Operators that ignore their value
VALUELESS_OPERATORS = {Operator.EMPTY, Operator.NOT_EMPTY}


_TEXT_CLAUSES = [
    Clause.EQUALS,
    Clause.NOT_EQUALS,
    Clause.CONTAINS,
    Clause.STARTS_WITH,
    Clause.ENDS_WITH,
    Clause.EMPTY,
    Clause.NOT_EMPTY,
]
_RANGE_CLAUSES = [
    Clause.EQUALS,
    Clause.NOT_EQUALS,
    Clause.GT,
    Clause.GTE,
    Clause.LT,
    Clause.LTE,
    Clause.BETWEEN,
    Clause.EMPTY,
    Clause.NOT_EMPTY,
]

CLAUSES_BY_FILTER_TYPE: dict[FilterType, list[Clause]] = {
    FilterType.TEXT: _TEXT_CLAUSES,
    FilterType.NUMERIC: _RANGE_CLAUSES,
    FilterType.SET: [Clause.IN, Clause.NOT_IN],
    FilterType.DATE: _RANGE_CLAUSES,
    FilterType.DATETIME: _RANGE_CLAUSES,
    FilterType.BOOLEAN: [Clause.EQUALS],
}

_CLAUSE_OPERATORS: dict[Clause, Operator] = {
    Clause.EQUALS: Operator.EQ,
    Clause.NOT_EQUALS: Operator.NEQ,
    Clause.CONTAINS: Operator.ILIKE,
    Clause.STARTS_WITH: Operator.STARTS_WITH,
    Clause.ENDS_WITH: Operator.ENDS_WITH,
    Clause.GT: Operator.GT,
    Clause.GTE: Operator.GTE,
    Clause.LT: Operator.LT,
    Clause.LTE: Operator.LTE,
    Clause.BETWEEN: Operator.BETWEEN,
    Clause.IN: Operator.IN,
    Clause.NOT_IN: Operator.NOT_IN,
    Clause.EMPTY: Operator.EMPTY,
    Clause.NOT_EMPTY: Operator.NOT_EMPTY,
}

_OPERATOR_CLAUSES: dict[Operator, Clause] = {
    op: clause for clause, op in _CLAUSE_OPERATORS.items()
}
_OPERATOR_CLAUSES[Operator.LIKE] = Clause.CONTAINS


class NamingConvention(str, Enum):
    """Key style for serialized output, chosen once when the app is composed."""

    CAMEL = "camel"
    SNAKE = "snake"

    def key(self, name: str) -> str:
        """Convert a snake_case key to this convention.

        A leading underscore (``_actions``) is kept as-is.
        """
        stripped = name.lstrip("_")
        if self is NamingConvention.SNAKE or "_" not in stripped:
            return name
        prefix = name[: len(name) - len(stripped)]
        head, *rest = stripped.split("_")
        return prefix + head + "".join(part[:1].upper() + part[1:] for part in rest)

    def keys(self, data: dict[str, Any]) -> dict[str, Any]:
        """Convert the top-level keys of data. Nested values are left alone."""
        if self is NamingConvention.SNAKE:
            return data
        return {self.key(k): v for k, v in data.items()}


def allowed_clauses(filter_type: FilterType) -> list[Clause]:
    """Return the clauses a filter of the given type may offer, in display order."""
    return list(CLAUSES_BY_FILTER_TYPE[FilterType(filter_type)])


def clause_to_operator(clause: Clause | str) -> Operator:
    return _CLAUSE_OPERATORS[Clause(clause)]


def operator_to_clause(op: Operator) -> Clause | None:
    """Map a query operator back to the clause a filter widget shows for it."""
    return _OPERATOR_CLAUSES.get(op)


def parse_operator(token: Any) -> Operator:
    """Resolve an operator token (or alias) to an Operator.

    A missing token means equality.

    Raises:
        ValueError: If the token is not a known operator
    """
    if token is None or token == "":
        return Operator.EQ
    if isinstance(token, Operator):
        return token
    op = OPERATOR_TOKENS.get(str(token))
    if op is None:
        raise ValueError(f"Unknown filter operator '{token}'")
    return op


def humanize(key: str) -> str:
    """Turn a field key into a display label: ``first_name`` -> ``First Name``."""
    return " ".join(part.capitalize() for part in str(key).replace("_", " ").split())


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(key: str) -> str:
    """Turn a camelCase client key into snake_case: ``perPage`` -> ``per_page``."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass
class RequestContext:
    """Context handed to every row-scoped callback and authorize predicate.

    Attributes:
        user: The authenticated user, or None for anonymous requests
        request: The underlying framework request, when one exists
        token_context: Context bound into the capability token at mint time
    """

    user: Any = None
    request: Any = None
    token_context: dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> str | None:
        return getattr(self.user, "user_id", None)
