"""Tests for the query engine over the SQLAlchemy repository."""

import pytest

from tableforge.core.types import Operator, SortDirection
from tableforge.persistence import Criteria, Repository, SQLAlchemyRepository, quote_identifier
from tableforge.query import (
    DefaultQueryEngine,
    FilterCondition,
    QueryParams,
    QueryResult,
    QueryValidationError,
    normalize_params,
    run_query,
)


@pytest.fixture
def engine():
    return DefaultQueryEngine()


def _run(engine, table, raw):
    return run_query(engine, table, normalize_params(raw, table.name, table.config))


def _names(result):
    return [row["name"] for row in result.rows]


class TestSQLAlchemyRepository:
    """Tests for the repository reads."""

    def test_implements_protocol(self, repository):
        assert isinstance(repository, Repository)

    def test_requires_url_or_engine(self):
        with pytest.raises(ValueError):
            SQLAlchemyRepository()

    def test_query_with_sort_and_limit(self, repository):
        rows = repository.query(
            "users", Criteria(), sort=[("age", SortDirection.DESC)], limit=2, offset=1
        )
        assert [r["name"] for r in rows] == ["Carol", "Alice"]

    def test_count(self, repository):
        criteria = Criteria(filters=[FilterCondition("status", Operator.EQ, "active")])
        assert repository.count("users", criteria) == 3

    def test_get(self, repository):
        assert repository.get("users", 2)["name"] == "Bob"
        assert repository.get("users", "2")["name"] == "Bob"
        assert repository.get("users", 99) is None

    def test_only_and_exclude_ids(self, repository):
        assert len(repository.query("users", Criteria(only_ids=[1, 2, 3], exclude_ids=[2]))) == 2
        assert repository.query("users", Criteria(only_ids=[])) == []

    def test_search(self, repository):
        criteria = Criteria(search="EXAMPLE.COM", search_fields=["email"])
        assert repository.count("users", criteria) == 5
        criteria = Criteria(search="car", search_fields=["name", "email"])
        assert [r["name"] for r in repository.query("users", criteria)] == ["Carol"]

    def test_empty_operator(self, repository):
        criteria = Criteria(filters=[FilterCondition("email", Operator.EMPTY)])
        assert repository.count("users", criteria) == 0

    def test_stream(self, repository):
        rows = list(repository.stream("users", Criteria(), sort=[("name", SortDirection.DESC)]))
        assert [r["name"] for r in rows] == ["Eve", "Dave", "Carol", "Bob", "Alice"]

    def test_rejects_unsafe_identifiers(self):
        assert quote_identifier("created_at") == '"created_at"'
        with pytest.raises(ValueError, match="Invalid identifier"):
            quote_identifier("name; DROP TABLE users")


class TestDefaultQueryEngine:
    """Tests for validate_and_run."""

    def test_default_sort_first_page(self, engine, users_table):
        result = _run(engine, users_table, {})
        assert result.ok
        assert _names(result) == ["Alice", "Bob"]
        assert result.meta.current_page == 1
        assert result.meta.total_count == 5
        assert result.meta.total_pages == 3
        assert result.meta.has_next_page
        assert not result.meta.has_previous_page

    def test_last_page(self, engine, users_table):
        result = _run(engine, users_table, {"page": "3"})
        assert _names(result) == ["Eve"]
        assert result.meta.next_page is None
        assert result.meta.previous_page == 2

    def test_sort_by_camel_key(self, engine, users_table):
        result = _run(engine, users_table, {"sort": "-createdAt", "per_page": 5})
        assert _names(result) == ["Eve", "Dave", "Carol", "Bob", "Alice"]
        assert result.meta.params.order_by == ("created_at",)

    def test_filters(self, engine, users_table):
        result = _run(engine, users_table, {
            "per_page": 10,
            "filters": [
                {"field": "status", "op": "in", "value": ["active"]},
                {"field": "age", "op": ">", "value": "40"},
            ],
        })
        assert _names(result) == ["Carol", "Eve"]

    def test_between(self, engine, users_table):
        result = _run(engine, users_table, {
            "per_page": 10,
            "filters": [{"field": "age", "op": "between", "value": ["20", "40"]}],
        })
        assert _names(result) == ["Alice", "Bob"]

    def test_boolean_filter_coerced(self, engine, users_table):
        result = _run(engine, users_table, {
            "per_page": 10,
            "filters": [{"field": "is_admin", "op": "==", "value": "true"}],
        })
        assert _names(result) == ["Alice", "Eve"]

    def test_search(self, engine, users_table):
        result = _run(engine, users_table, {"search": "da"})
        assert _names(result) == ["Dave"]

    def test_unsortable_field(self, engine, users_table):
        result = _run(engine, users_table, {"sort": "email"})
        assert not result.ok
        assert result.errors == {"order_by": ["'email' is not sortable"]}

    def test_unfilterable_field(self, engine, users_table):
        result = _run(engine, users_table, {"filters": {"email": "a@example.com"}})
        assert result.errors["filters"] == ["'email' is not filterable"]

    def test_operator_not_allowed(self, engine, users_table):
        result = _run(engine, users_table, {
            "filters": [{"field": "status", "op": "==", "value": "active"}],
        })
        assert result.errors["filters"] == ["Operator '==' is not allowed for 'status'"]

    def test_numeric_value_checked(self, engine, users_table):
        result = _run(engine, users_table, {
            "filters": [{"field": "age", "op": ">", "value": "old"}],
        })
        assert result.errors["filters"] == ["'age' must be a number"]

    def test_primary_key_filter(self, engine, users_table):
        result = _run(engine, users_table, {"filters": {"id": "3"}})
        assert _names(result) == ["Carol"]

    def test_page_bounds(self, engine, users_table):
        result = _run(engine, users_table, {"page": "0", "per_page": "5000"})
        assert result.errors["page"] == ["must be greater than or equal to 1"]
        assert result.errors["page_size"] == ["must be less than or equal to 1000"]

    def test_page_beyond_last_is_empty(self, engine, users_table):
        result = _run(engine, users_table, {"page": "9"})
        assert result.ok
        assert result.rows == []
        assert result.meta.total_count == 5


class TestRunQuery:
    """Tests for run_query outcome classification."""

    def test_raising_engine_becomes_failure(self, users_table):
        class StrictEngine:
            def validate_and_run(self, table, params):
                raise QueryValidationError({"search": ["not supported"]})

        result = run_query(StrictEngine(), users_table, QueryParams())
        assert isinstance(result, QueryResult)
        assert not result.ok
        assert result.errors == {"search": ["not supported"]}
