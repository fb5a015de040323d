"""Bulk actions: resolve a selection to rows, then run chunked handlers.

Execution is sequential and non-transactional. ``before`` runs once over
all selected rows and can abort the whole action. ``handle`` then runs
once per chunk of ``chunk_size`` rows and stops at the first failing
chunk. Chunks that already ran are NOT rolled back, so the failure
response reports how many rows were processed before it. ``after`` runs
once, only when every chunk succeeded.

The ``all`` and ``all_except`` modes rebuild their row set from the
filters the client sends with the request, not from a server-side
snapshot of what the user was looking at.
"""

import logging
from collections.abc import Iterator
from typing import Any

from tableforge.actions.types import (
    DEFAULT_SUCCESS_MESSAGE,
    ActionResponse,
    Selection,
    SelectionMode,
    coerce_result,
    failure_for,
)
from tableforge.core.types import RequestContext
from tableforge.errors import (
    ActionNotFound,
    HandlerFailure,
    InvalidParameters,
    InvalidSelection,
    TableError,
    Unauthorized,
)
from tableforge.persistence.repository import Criteria
from tableforge.query.engine import DefaultQueryEngine
from tableforge.query.params import parse_filters
from tableforge.table.types import BulkAction, TableDefinition
from tableforge.tokens.service import TokenService

logger = logging.getLogger(__name__)


def chunked(rows: list[dict[str, Any]], size: int) -> Iterator[list[dict[str, Any]]]:
    """Split rows into consecutive chunks of at most size rows."""
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


class SelectionResolver:
    """Turns a Selection plus client filters into the concrete rows to act on."""

    def __init__(self, engine: DefaultQueryEngine | None = None):
        self.engine = engine or DefaultQueryEngine()

    def criteria(
        self, table: TableDefinition, selection: Selection, filters: Any = None
    ) -> Criteria:
        """Repository criteria for a selection.

        Raises:
            InvalidSelection: If the filters cannot be parsed or reference
                              fields/operators the table does not allow
        """
        if selection.mode == SelectionMode.EXPLICIT:
            return Criteria(only_ids=list(selection.ids), primary_key=table.primary_key)

        try:
            conditions = parse_filters(filters)
        except InvalidParameters as e:
            raise InvalidSelection(e.message)

        errors: dict[str, list[str]] = {}
        valid = self.engine.validate_filters(table, conditions, errors)
        if errors:
            raise InvalidSelection("; ".join(errors.get("filters", [])))

        criteria = self.engine.criteria_for(table, valid)
        if selection.mode == SelectionMode.ALL_EXCEPT:
            criteria.exclude_ids = list(selection.ids)
        return criteria

    def resolve(
        self, table: TableDefinition, selection: Selection, filters: Any = None
    ) -> list[dict[str, Any]]:
        """Fetch every selected row, unpaginated, in the table's default order."""
        criteria = self.criteria(table, selection, filters)
        sort = [table.config.default_sort] if table.config.default_sort else None
        return table.repository.query(table.resource, criteria, sort=sort)


class BulkExecutor:
    """Executes bulk actions identified by a capability token."""

    def __init__(self, token_service: TokenService, resolver: SelectionResolver | None = None):
        self.token_service = token_service
        self.resolver = resolver or SelectionResolver()

    def execute(
        self,
        token: str,
        action_name: str,
        selection: Selection | dict[str, Any],
        filters: Any = None,
        context: RequestContext | None = None,
    ) -> ActionResponse:
        """Resolve the selection and run the bulk action over it.

        Raises:
            InvalidToken, ExpiredToken: Token problems (400/401)
            ActionNotFound: No bulk action with that name (404)
            InvalidSelection: Bad selection or filters (400)
            Unauthorized: authorize returned false (403)
            HandlerFailure: before or a chunk failed; ``count`` holds the
                            rows processed before the failure (422)
        """
        table, verified = self.token_service.resolve(token)
        context = context or RequestContext()
        context.token_context = verified.context

        bulk = table.get_bulk_action(action_name)
        if bulk is None:
            raise ActionNotFound()

        if not isinstance(selection, Selection):
            selection = Selection.from_dict(selection)

        if bulk.authorize is not None and not bulk.authorize(context):
            raise Unauthorized()

        rows = self.resolver.resolve(table, selection, filters)
        return self.run(table, bulk, rows, context)

    def run(
        self,
        table: TableDefinition,
        bulk: BulkAction,
        rows: list[dict[str, Any]],
        context: RequestContext | None = None,
    ) -> ActionResponse:
        """Run before, the chunked handler and after over resolved rows."""
        if bulk.handle is None:
            raise HandlerFailure("Bulk action cannot be executed on the server")

        if bulk.before is not None:
            result = coerce_result(self._call(table, bulk, "before", rows, context, 0))
            if not result.ok:
                raise failure_for(result, bulk.error_message, count=0)

        processed = 0
        first_message: str | None = None
        for chunk in chunked(rows, bulk.chunk_size):
            result = coerce_result(self._call(table, bulk, "handle", chunk, context, processed))
            if not result.ok:
                logger.warning(
                    "Bulk action %s on table %s stopped after %d row(s)",
                    bulk.name, table.name, processed,
                )
                raise failure_for(result, bulk.error_message, count=processed)
            processed += len(chunk)
            if first_message is None and isinstance(result.message, str):
                first_message = result.message

        if bulk.after is not None:
            self._call(table, bulk, "after", rows, context, processed)

        return ActionResponse(
            success=True,
            message=first_message or bulk.success_message or DEFAULT_SUCCESS_MESSAGE,
            count=processed,
        )

    def _call(
        self,
        table: TableDefinition,
        bulk: BulkAction,
        hook: str,
        rows: list[dict[str, Any]],
        context: Any,
        processed: int,
    ) -> Any:
        try:
            return getattr(bulk, hook)(rows, context)
        except TableError:
            raise
        except Exception:
            logger.exception(
                "Bulk action %s (%s) on table %s raised", bulk.name, hook, table.name
            )
            raise HandlerFailure(bulk.error_message, count=processed)
