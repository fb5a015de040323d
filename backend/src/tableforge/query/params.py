"""Parse raw request parameters into canonical QueryParams.

Several tables can share one request: when ``params[table_name]`` is a
non-empty mapping, parameters are read from it (namespaced mode);
otherwise they are read from the top level.

Accepted forms:
    page=2  page_size=25 | per_page=25
    sort=name | sort=name:desc | sort=-name
    order_by=name  order_direction=desc
    filters=[{field, op, value}, ...]
    filters={"0": {field, op, value}, "1": {...}}     (indexed list)
    filters={"status": "active"}                      (equality shorthand)
    search=term  columns=[name, email] | columns=name,email
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from tableforge.core.types import (
    LIST_OPERATORS,
    VALUELESS_OPERATORS,
    Operator,
    SortDirection,
    parse_operator,
)
from tableforge.errors import InvalidParameters
from tableforge.query.types import FilterCondition, QueryParams

_INDEX_KEY_RE = re.compile(r"^\d{1,4}$")
_BRACKET_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")


def normalize_params(raw: Any, table_name: str, config: Any = None) -> QueryParams:
    """Normalize raw request parameters for one table.

    Args:
        raw: Request parameters (a mapping, possibly nested), or QueryParams
        table_name: The table's name, used as the namespace key
        config: The table's TableConfig (default sort and page size)

    Returns:
        Canonical QueryParams. Already-normalized input is returned as-is.

    Raises:
        InvalidParameters: If a parameter cannot be parsed or a filter
            uses an unknown operator
    """
    if isinstance(raw, QueryParams):
        return raw

    source = _select_source(raw or {}, table_name)

    page = _parse_int(source.get("page"), "page")
    page_size = _parse_int(
        _first_present(source, "page_size", "per_page", "pageSize", "perPage"), "page_size"
    )
    if page_size is None and config is not None:
        page_size = config.default_per_page

    order_by, order_directions = _parse_sort(source, config)

    return QueryParams(
        page=page,
        page_size=page_size,
        order_by=order_by,
        order_directions=order_directions,
        filters=tuple(parse_filters(source.get("filters"))),
        search=_parse_search(source.get("search")),
        columns=tuple(_parse_list(source.get("columns"))),
    )


def _select_source(raw: Mapping[str, Any], table_name: str) -> Mapping[str, Any]:
    namespaced = raw.get(table_name) if isinstance(raw, Mapping) else None
    if isinstance(namespaced, Mapping) and namespaced:
        return namespaced
    return raw


def _first_present(source: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = source.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidParameters(f"Invalid value for '{name}': {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise InvalidParameters(f"Invalid value for '{name}': {value!r}")


def _parse_direction(value: Any) -> SortDirection:
    try:
        return SortDirection(str(value).lower())
    except ValueError:
        raise InvalidParameters(f"Invalid sort direction '{value}'")


def _single(value: Any) -> Any:
    """First element of a list-valued parameter (``order_by[]=name``)."""
    if isinstance(value, Mapping):
        value = [value[k] for k in sorted(value, key=str)]
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _parse_sort(
    source: Mapping[str, Any], config: Any
) -> tuple[tuple[str, ...], tuple[SortDirection, ...]]:
    raw_sort = _single(_first_present(source, "order_by", "sort"))
    explicit_direction = _single(
        _first_present(source, "order_direction", "order_directions")
    )

    if raw_sort:
        text = str(raw_sort).strip()
        direction = SortDirection.ASC
        if text.startswith("-"):
            text, direction = text[1:], SortDirection.DESC
        elif ":" in text:
            text, suffix = text.split(":", 1)
            direction = _parse_direction(suffix)
        if explicit_direction:
            direction = _parse_direction(explicit_direction)
        if not text:
            raise InvalidParameters("Sort field is empty")
        return (text,), (direction,)

    default_sort = getattr(config, "default_sort", None)
    if default_sort:
        field_name, direction = default_sort
        return (field_name,), (SortDirection(direction),)
    return (), ()


def _parse_search(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_list(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Mapping):
        value = [value[k] for k in sorted(value, key=str)]
    return [str(v) for v in value]


def _is_indexed_map(value: Mapping[str, Any]) -> bool:
    """An indexed list arrives as ``{"0": {"field": ...}, "1": ...}``."""
    if not value:
        return False
    first_key = next(iter(value))
    first_value = value[first_key]
    return (
        bool(_INDEX_KEY_RE.match(str(first_key)))
        and isinstance(first_value, Mapping)
        and "field" in first_value
    )


def _index_order(key: Any) -> tuple[int, Any]:
    text = str(key)
    return (0, int(text)) if text.isdigit() else (1, text)


def parse_filters(value: Any) -> list[FilterCondition]:
    """Parse the ``filters`` parameter in any accepted encoding.

    Conditions without a value are dropped, except ``empty`` and
    ``not_empty`` which need none.

    Raises:
        InvalidParameters: If an entry is malformed or uses an unknown operator
    """
    if value is None or value == "" or value == []:
        return []

    if isinstance(value, Mapping):
        if _is_indexed_map(value):
            entries = [value[k] for k in sorted(value, key=_index_order)]
        else:
            entries = [
                {"field": key, "op": "in" if isinstance(v, (list, tuple)) else "==", "value": v}
                for key, v in value.items()
            ]
    elif isinstance(value, (list, tuple)):
        entries = list(value)
    else:
        raise InvalidParameters("Filters must be a list or a mapping")

    conditions: list[FilterCondition] = []
    for entry in entries:
        condition = _parse_condition(entry)
        if condition is not None:
            conditions.append(condition)
    return conditions


def _parse_condition(entry: Any) -> FilterCondition | None:
    if isinstance(entry, FilterCondition):
        return entry
    if not isinstance(entry, Mapping):
        raise InvalidParameters(f"Invalid filter entry: {entry!r}")

    field_name = entry.get("field")
    if not field_name or not isinstance(field_name, str):
        raise InvalidParameters("Filter entry is missing 'field'")

    try:
        op = parse_operator(entry.get("op"))
    except ValueError as e:
        raise InvalidParameters(str(e))

    value = entry.get("value")
    if op in VALUELESS_OPERATORS:
        return FilterCondition(field=field_name, op=op, value=None)
    if value is None or value == "":
        return None

    if op in LIST_OPERATORS:
        value = _as_list(value)
    elif op == Operator.BETWEEN:
        value = _parse_range(field_name, value)
    return FilterCondition(field=field_name, op=op, value=value)


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (str, Mapping)):
        return _parse_list(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_range(field_name: str, value: Any) -> list[Any]:
    """A between value is ``[low, high]`` (or ``{"0": low, "1": high}``)."""
    if isinstance(value, Mapping):
        value = [value[k] for k in sorted(value, key=str)]
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InvalidParameters(
            f"Filter 'between' on '{field_name}' needs exactly two values"
        )
    return list(value)


def decode_query_string(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Decode flat bracketed query keys into nested mappings.

    ``users[page]=2`` becomes ``{"users": {"page": "2"}}``,
    ``filters[0][field]=name`` becomes ``{"filters": {"0": {"field": "name"}}}``
    and ``ids[]=1&ids[]=2`` becomes ``{"ids": ["1", "2"]}``.
    """
    result: dict[str, Any] = {}
    for key, value in items:
        match = _BRACKET_KEY_RE.match(key)
        if not match:
            result[key] = value
            continue
        parts = [match.group(1)]
        if match.group(2):
            parts.extend(match.group(2)[1:-1].split("]["))
        _assign(result, parts, value)
    return result


def _assign(container: dict[str, Any], parts: list[str], value: Any) -> None:
    head, rest = parts[0], parts[1:]
    if not rest:
        container[head] = value
        return
    if rest == [""]:
        existing = container.get(head)
        if not isinstance(existing, list):
            existing = [] if existing is None else [existing]
            container[head] = existing
        existing.append(value)
        return
    child = container.get(head)
    if not isinstance(child, dict):
        child = {}
        container[head] = child
    _assign(child, rest, value)
