"""Table resource assembly.

One call produces everything a table frontend needs to render a page:
static definition metadata, the processed rows, pagination meta, the
state of the query that actually ran, a freshly minted token and the
user's saved views.
"""

import logging
from concurrent.futures import Executor
from typing import Any

from tableforge.core.types import NamingConvention, RequestContext
from tableforge.errors import InvalidParameters
from tableforge.query.engine import DefaultQueryEngine, QueryEngine, run_query
from tableforge.query.params import normalize_params
from tableforge.query.types import QueryParams
from tableforge.resource.serializers import (
    empty_meta,
    serialize_definition,
    serialize_state,
    serialize_views,
)
from tableforge.rows.pipeline import RowPipeline
from tableforge.table.types import TableDefinition
from tableforge.tokens.service import TokenService

logger = logging.getLogger(__name__)


class ResourceAssembler:
    """Builds table resources."""

    def __init__(
        self,
        token_service: TokenService,
        engine: QueryEngine | None = None,
        naming: NamingConvention = NamingConvention.CAMEL,
        view_store: Any = None,
        executor: Executor | None = None,
    ):
        """Initialize the assembler.

        Args:
            token_service: Mints the token returned with every resource
            engine: Query engine (defaults to DefaultQueryEngine)
            naming: Key convention of the whole resource payload
            view_store: SavedViewStore for tables with views enabled
            executor: Optional executor for concurrent row processing
        """
        self.token_service = token_service
        self.engine = engine or DefaultQueryEngine()
        self.naming = NamingConvention(naming)
        self.view_store = view_store
        self.executor = executor

    def build(
        self,
        table: TableDefinition,
        raw_params: Any = None,
        context: RequestContext | None = None,
        token_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build the resource for one request.

        Validation problems never raise: the resource comes back with no
        rows, empty meta and ``error`` holding field errors. The token is
        minted either way so exports and views keep working.

        Args:
            table: The table definition
            raw_params: Request parameters (possibly namespaced by table name)
            context: Request context for row callbacks and views
            token_context: Context bound into the minted token
        """
        context = context or RequestContext()
        naming = self.naming
        token = self.token_service.sign(table.name, token_context)

        errors: dict[str, list[str]] | None = None
        try:
            params = normalize_params(raw_params, table.name, table.config)
        except InvalidParameters as e:
            logger.debug("Could not normalize params for table %s: %s", table.name, e.message)
            params = normalize_params({}, table.name, table.config)
            errors = {"params": [e.message]}

        data: list[dict[str, Any]] = []
        if errors is None:
            result = run_query(self.engine, table, params)
            if result.ok:
                pipeline = RowPipeline(table, naming, self.executor)
                data = pipeline.process(result.rows, context)
                meta = result.meta.to_dict(naming)
                state_params: QueryParams = result.meta.params
            else:
                errors = result.errors

        if errors is not None:
            meta = empty_meta(table, naming)
            state_params = params

        resource: dict[str, Any] = {
            "name": table.name,
            "token": token,
            "error": errors,
            "data": data,
            "meta": meta,
            "state": serialize_state(state_params, table, naming),
            "views": self._views(table, context),
        }
        resource.update(serialize_definition(table, naming))
        return naming.keys(resource)

    def _views(self, table: TableDefinition, context: RequestContext) -> dict[str, Any]:
        config = table.views_config
        if not config.enabled or self.view_store is None:
            return serialize_views(False, naming=self.naming)

        owner_id = config.resolve_user(context)
        views = self.view_store.list_views(table.views_table_name, owner_id)
        current = self.view_store.get_default_view(table.views_table_name, owner_id)
        return serialize_views(True, views, current, self.naming)
