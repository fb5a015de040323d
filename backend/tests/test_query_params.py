"""Tests for request parameter normalization."""

import pytest

from tableforge.core.types import Operator, SortDirection
from tableforge.errors import InvalidParameters
from tableforge.query import FilterCondition, QueryParams, decode_query_string, normalize_params
from tableforge.query.params import parse_filters


class TestNormalizeParams:
    """Tests for normalize_params."""

    def test_empty_uses_table_defaults(self, users_table):
        params = normalize_params({}, "users", users_table.config)
        assert params.page is None
        assert params.page_size == 2
        assert params.sort == ("name", SortDirection.ASC)

    def test_page_and_size(self):
        params = normalize_params({"page": "3", "per_page": "50"}, "users")
        assert params.page == 3
        assert params.page_size == 50

    def test_page_size_aliases(self):
        assert normalize_params({"pageSize": "10"}, "users").page_size == 10
        assert normalize_params({"page_size": 20}, "users").page_size == 20

    def test_invalid_page(self):
        with pytest.raises(InvalidParameters, match="Invalid value for 'page'"):
            normalize_params({"page": "two"}, "users")

    @pytest.mark.parametrize("raw,expected", [
        ({"sort": "name"}, ("name", SortDirection.ASC)),
        ({"sort": "name:desc"}, ("name", SortDirection.DESC)),
        ({"sort": "-age"}, ("age", SortDirection.DESC)),
        ({"order_by": "age", "order_direction": "desc"}, ("age", SortDirection.DESC)),
        ({"order_by": ["age"], "order_directions": ["asc"]}, ("age", SortDirection.ASC)),
    ])
    def test_sort_forms(self, raw, expected):
        assert normalize_params(raw, "users").sort == expected

    def test_invalid_direction(self):
        with pytest.raises(InvalidParameters, match="Invalid sort direction"):
            normalize_params({"sort": "name:sideways"}, "users")

    def test_explicit_sort_overrides_default(self, users_table):
        params = normalize_params({"sort": "-age"}, "users", users_table.config)
        assert params.sort == ("age", SortDirection.DESC)

    def test_namespaced(self):
        raw = {"users": {"page": "2"}, "orders": {"page": "5"}, "page": "9"}
        assert normalize_params(raw, "users").page == 2
        assert normalize_params(raw, "orders").page == 5

    def test_empty_namespace_falls_back_to_top_level(self):
        assert normalize_params({"users": {}, "page": "4"}, "users").page == 4

    def test_search_and_columns(self):
        params = normalize_params({"search": "  ali ", "columns": "name, email"}, "users")
        assert params.search == "ali"
        assert params.columns == ("name", "email")

    def test_blank_search_is_none(self):
        assert normalize_params({"search": "   "}, "users").search is None

    def test_idempotent(self, users_table):
        """Normalizing already-normalized params returns them unchanged."""
        raw = {"page": "2", "sort": "-age", "filters": [{"field": "age", "op": ">", "value": 30}]}
        params = normalize_params(raw, "users", users_table.config)
        assert normalize_params(params, "users", users_table.config) is params
        again = normalize_params(params.to_params(), "users", users_table.config)
        assert again == params


class TestParseFilters:
    """Tests for the filters parameter encodings."""

    def test_list(self):
        conditions = parse_filters([{"field": "age", "op": ">=", "value": 30}])
        assert conditions == [FilterCondition("age", Operator.GTE, 30)]

    def test_indexed_map(self):
        value = {
            "1": {"field": "age", "op": "<", "value": "50"},
            "0": {"field": "name", "op": "=~", "value": "a"},
        }
        conditions = parse_filters(value)
        assert [c.field for c in conditions] == ["name", "age"]
        assert conditions[0].op == Operator.ILIKE

    def test_equality_shorthand(self):
        conditions = parse_filters({"status": "active", "age": ["19", "27"]})
        assert conditions == [
            FilterCondition("status", Operator.EQ, "active"),
            FilterCondition("age", Operator.IN, ["19", "27"]),
        ]

    def test_missing_op_means_equality(self):
        assert parse_filters([{"field": "name", "value": "Bob"}])[0].op == Operator.EQ

    def test_empty_value_dropped(self):
        assert parse_filters([{"field": "name", "op": "==", "value": ""}]) == []

    def test_valueless_operators_kept(self):
        conditions = parse_filters([{"field": "email", "op": "empty"}])
        assert conditions == [FilterCondition("email", Operator.EMPTY, None)]

    def test_in_from_comma_string(self):
        conditions = parse_filters([{"field": "status", "op": "in", "value": "active,pending"}])
        assert conditions[0].value == ["active", "pending"]

    def test_between_needs_two_values(self):
        with pytest.raises(InvalidParameters, match="exactly two values"):
            parse_filters([{"field": "age", "op": "between", "value": [1]}])

    def test_unknown_operator(self):
        with pytest.raises(InvalidParameters, match="Unknown filter operator"):
            parse_filters([{"field": "age", "op": "~~", "value": 1}])

    def test_missing_field(self):
        with pytest.raises(InvalidParameters, match="missing 'field'"):
            parse_filters([{"op": "==", "value": 1}])

    def test_scalar_rejected(self):
        with pytest.raises(InvalidParameters):
            parse_filters("status=active")


class TestDecodeQueryString:
    """Tests for bracketed query string decoding."""

    def test_nested_keys(self):
        decoded = decode_query_string([
            ("users[page]", "2"),
            ("users[filters][0][field]", "name"),
            ("users[filters][0][value]", "a"),
        ])
        assert decoded == {
            "users": {"page": "2", "filters": {"0": {"field": "name", "value": "a"}}},
        }

    def test_list_keys(self):
        decoded = decode_query_string([("columns[]", "name"), ("columns[]", "age")])
        assert decoded == {"columns": ["name", "age"]}

    def test_plain_keys(self):
        assert decode_query_string([("page", "1")]) == {"page": "1"}

    def test_decoded_params_normalize(self):
        decoded = decode_query_string([
            ("users[sort]", "-age"),
            ("users[filters][0][field]", "status"),
            ("users[filters][0][op]", "in"),
            ("users[filters][0][value][]", "active"),
        ])
        params = normalize_params(decoded, "users")
        assert params.sort == ("age", SortDirection.DESC)
        assert params.filters == (FilterCondition("status", Operator.IN, ["active"]),)


def test_query_params_to_dict():
    params = QueryParams(
        page=1,
        page_size=25,
        order_by=("created_at",),
        order_directions=(SortDirection.DESC,),
    )
    assert params.to_dict() == {
        "orderBy": ["createdAt"],
        "orderDirections": ["desc"],
        "page": 1,
        "pageSize": 25,
        "filters": [],
    }
