"""Tests for per-row processing."""

from concurrent.futures import ThreadPoolExecutor

from tableforge.core.types import NamingConvention, RequestContext
from tableforge.rows import SELECTABLE_KEY, RowPipeline
from tableforge.table import TableBuilder

ALICE = {"id": 1, "name": "Alice", "status": "active", "is_admin": True, "created_at": "2024-01-05"}
BOB = {"id": 2, "name": "Bob", "status": "inactive", "is_admin": False, "created_at": "2024-02-10"}


class TestRowPipeline:
    """Tests for RowPipeline."""

    def test_columns_and_id(self, users_table):
        row = RowPipeline(users_table).process_row(ALICE)
        assert row["id"] == 1
        assert row["name"] == "Alice"
        assert row["isAdmin"] is True
        assert row["createdAt"] == "2024-01-05"

    def test_snake_naming(self, users_table):
        row = RowPipeline(users_table, NamingConvention.SNAKE).process_row(ALICE)
        assert row["is_admin"] is True
        assert "isAdmin" not in row

    def test_action_state(self, users_table):
        pipeline = RowPipeline(users_table)
        alice, bob = pipeline.process([ALICE, BOB])

        assert alice["_actions"]["delete"] == {"url": None, "disabled": True, "hidden": False}
        assert bob["_actions"]["delete"]["disabled"] is False
        assert bob["_actions"]["edit"]["url"] == "/users/2/edit"

    def test_selectable_defaults_to_true(self, users_table):
        row = RowPipeline(users_table).process_row(BOB)
        assert row[SELECTABLE_KEY] is True

    def test_selectable_predicate(self, users_builder):
        table = (
            users_builder
            .bulk_action("archive", handle=lambda rows: None)
            .selectable(lambda row: not row["is_admin"])
            .build()
        )
        alice, bob = RowPipeline(table).process([ALICE, BOB])
        assert alice[SELECTABLE_KEY] is False
        assert bob[SELECTABLE_KEY] is True

    def test_no_selectable_without_bulk_actions(self, users_builder):
        table = users_builder.build()
        assert SELECTABLE_KEY not in RowPipeline(table).process_row(ALICE)

    def test_compute_and_map_as(self):
        table = (
            TableBuilder("users").resource("users")
            .text_column("display", compute=lambda row: f"{row['name']} <{row['email']}>")
            .text_column("status", map_as=lambda value: value.title())
            .build()
        )
        row = RowPipeline(table).process_row(
            {"id": 1, "name": "Ada", "email": "ada@example.com", "status": "active"}
        )
        assert row["display"] == "Ada <ada@example.com>"
        assert row["status"] == "Active"

    def test_callbacks_receive_context(self, users_builder):
        context = RequestContext(token_context={"tenant": "acme"})
        table = users_builder.action(
            "open", url=lambda row, context: f"/{context.token_context['tenant']}/{row['id']}"
        ).build()
        row = RowPipeline(table).process_row(ALICE, context)
        assert row["_actions"]["open"]["url"] == "/acme/1"

    def test_transform_row(self, users_builder):
        table = users_builder.transform_row(
            lambda raw, data, context: {**data, "initial": raw["name"][0]}
        ).build()
        assert RowPipeline(table).process_row(ALICE)["initial"] == "A"

    def test_executor_preserves_order(self, users_table):
        rows = [dict(ALICE, id=i, name=f"user{i}") for i in range(20)]
        with ThreadPoolExecutor(max_workers=4) as executor:
            processed = RowPipeline(users_table, executor=executor).process(rows)
        assert [r["id"] for r in processed] == list(range(20))
