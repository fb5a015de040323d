"""Token-scoped saved view operations.

Every call re-derives the table from the capability token, checks that
the table has views enabled, and resolves the owning user through the
table's ViewsConfig before touching the store.
"""

from typing import Any

from tableforge.core.types import RequestContext, snake_case
from tableforge.errors import ViewNotFound, ViewsDisabled
from tableforge.table.types import TableDefinition
from tableforge.tokens.service import TokenService
from tableforge.views.store import SavedViewStore
from tableforge.views.types import UPDATE_FIELDS, SavedView


def view_attrs(body: dict[str, Any]) -> dict[str, Any]:
    """Snake-case a client request body, keeping only view attributes."""
    attrs = {snake_case(k): v for k, v in (body or {}).items()}
    return {k: v for k, v in attrs.items() if k in UPDATE_FIELDS}


class ViewsService:
    """Saved view operations on behalf of a request."""

    def __init__(self, token_service: TokenService, store: SavedViewStore):
        self.token_service = token_service
        self.store = store

    def scope(
        self, token: str, context: RequestContext | None = None
    ) -> tuple[TableDefinition, str | None]:
        """Resolve the table and owning user for a token.

        Raises:
            InvalidToken, ExpiredToken: Token problems (400/401)
            ViewsDisabled: The table does not have saved views enabled
        """
        table, verified = self.token_service.resolve(token)
        if context is not None:
            context.token_context = verified.context
        if not table.views_config.enabled:
            raise ViewsDisabled()
        return table, table.views_config.resolve_user(context)

    def list_views(self, token: str, context: RequestContext | None = None) -> list[SavedView]:
        table, owner_id = self.scope(token, context)
        return self.store.list_views(table.views_table_name, owner_id)

    def create_view(
        self, token: str, body: dict[str, Any], context: RequestContext | None = None
    ) -> SavedView:
        table, owner_id = self.scope(token, context)
        attrs = view_attrs(body)
        attrs["table_name"] = table.views_table_name
        attrs["owner_id"] = owner_id
        return self.store.create_view(attrs)

    def _get(self, view_id: str, table: TableDefinition, owner_id: str | None) -> SavedView:
        view = self.store.get_view(view_id, owner_id)
        if view is None or view.table_name != table.views_table_name:
            raise ViewNotFound()
        return view

    def update_view(
        self,
        token: str,
        view_id: str,
        body: dict[str, Any],
        context: RequestContext | None = None,
    ) -> SavedView:
        table, owner_id = self.scope(token, context)
        view = self._get(view_id, table, owner_id)
        return self.store.update_view(view, view_attrs(body), owner_id)

    def delete_view(self, token: str, view_id: str, context: RequestContext | None = None) -> None:
        table, owner_id = self.scope(token, context)
        view = self._get(view_id, table, owner_id)
        self.store.delete_view(view, owner_id)

    def set_default(
        self, token: str, view_id: str, context: RequestContext | None = None
    ) -> SavedView:
        table, owner_id = self.scope(token, context)
        view = self._get(view_id, table, owner_id)
        return self.store.set_default(view, owner_id)

    def unset_default(
        self, token: str, view_id: str, context: RequestContext | None = None
    ) -> SavedView:
        table, owner_id = self.scope(token, context)
        view = self._get(view_id, table, owner_id)
        return self.store.unset_default(view, owner_id)
