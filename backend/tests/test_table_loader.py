"""Tests for loading table definitions from YAML."""

import pytest

from tableforge.core.types import ColumnType, FilterType, SortDirection
from tableforge.errors import DefinitionError
from tableforge.table import CallbackRegistry, TableLoader, callback

USERS_YAML = """
table:
  name: users
  resource: users
  config:
    defaultSort: "-age"
    defaultPerPage: 10
    searchable: [name, email]
  columns:
    - {key: name, sortable: true}
    - {key: status, type: badge, colors: {active: green}}
    - {key: age, type: numeric, sortable: true}
    - {type: action}
  filters:
    - {field: status, type: set, options: [active, inactive]}
    - {field: age, type: numeric, defaultClause: gte}
  actions:
    - {name: delete, handle: users.delete, disabled: users.is_admin, confirmation: {confirmButton: Delete}}
  bulkActions:
    - {name: archive, handle: users.archive, chunkSize: 50}
  exports:
    - {name: csv, columns: [name, age]}
  views:
    enabled: true
    scopeUser: true
"""


@pytest.fixture(autouse=True)
def user_callbacks():
    """Register the callbacks the YAML refers to."""
    CallbackRegistry.clear()

    @callback("users.delete")
    def delete(row):
        return True

    @callback("users.is_admin")
    def is_admin(row):
        return row["is_admin"]

    @callback("users.archive")
    def archive(rows):
        return None

    yield
    CallbackRegistry.clear()


@pytest.fixture
def tables_dir(tmp_path):
    path = tmp_path / "tables"
    path.mkdir()
    (path / "users.yaml").write_text(USERS_YAML)
    return path


class TestTableLoader:
    """Tests for TableLoader."""

    def test_load_all(self, tables_dir):
        loader = TableLoader(tables_dir)
        loader.load_all()

        table = loader.get_table("users")
        assert table is not None
        assert [t.name for t in loader.list_tables()] == ["users"]
        assert table.resource == "users"

    def test_config(self, tables_dir):
        loader = TableLoader(tables_dir)
        loader.load_all()
        config = loader.get_table("users").config

        assert config.default_sort == ("age", SortDirection.DESC)
        assert config.default_per_page == 10
        assert config.searchable == ["name", "email"]

    def test_columns_and_filters(self, tables_dir):
        loader = TableLoader(tables_dir)
        loader.load_all()
        table = loader.get_table("users")

        assert table.get_column("status").type == ColumnType.BADGE
        assert table.get_column("status").colors == {"active": "green"}
        assert table.columns[-1].is_action
        assert table.get_filter("status").type == FilterType.SET
        assert [o.value for o in table.get_filter("status").options] == ["active", "inactive"]
        assert table.get_filter("age").default_clause.value == "gte"

    def test_callbacks_resolved(self, tables_dir):
        loader = TableLoader(tables_dir)
        loader.load_all()
        table = loader.get_table("users")

        delete = table.get_action("delete")
        assert delete.disabled({"is_admin": True}, None) is True
        assert delete.confirmation.confirm_button == "Delete"
        assert table.get_bulk_action("archive").chunk_size == 50
        assert table.get_export("csv").columns == ["name", "age"]

    def test_views_config(self, tables_dir):
        loader = TableLoader(tables_dir)
        loader.load_all()
        views = loader.get_table("users").views_config
        assert views.enabled is True
        assert views.scope_user is True

    def test_repository_is_shared(self, tables_dir, repository):
        loader = TableLoader(tables_dir, repository)
        loader.load_all()
        assert loader.get_table("users").repository is repository

    def test_missing_directory_loads_nothing(self, tmp_path):
        loader = TableLoader(tmp_path / "missing")
        loader.load_all()
        assert loader.list_tables() == []

    def test_unregistered_callback(self, tables_dir):
        CallbackRegistry.clear()
        loader = TableLoader(tables_dir)
        with pytest.raises(DefinitionError, match="users.yaml"):
            loader.load_all()

    def test_invalid_definition(self, tmp_path):
        (tmp_path / "bad.yaml").write_text(
            "table:\n  name: bad\n  columns:\n    - {key: x, type: sparkline}\n"
        )
        loader = TableLoader(tmp_path)
        with pytest.raises(DefinitionError, match="bad.yaml: Invalid column type"):
            loader.load_all()
