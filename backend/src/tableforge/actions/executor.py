"""Single-row action execution.

Pipeline, stopping at the first failure:
verify token -> find action -> authorize -> load row -> disabled check
-> run ``handle(row)``, or return ``url(row)`` as a redirect.
"""

import logging
from typing import Any

from tableforge.actions.types import (
    ActionResponse,
    coerce_result,
    failure_for,
    success_message,
)
from tableforge.core.types import RequestContext
from tableforge.errors import (
    ActionDisabled,
    ActionNotFound,
    HandlerFailure,
    RecordNotFound,
    TableError,
    Unauthorized,
)
from tableforge.tokens.service import TokenService

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Executes row actions identified by a capability token."""

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    def execute(
        self,
        token: str,
        action_name: str,
        row_id: Any,
        context: RequestContext | None = None,
    ) -> ActionResponse:
        """Execute one action on one row.

        Args:
            token: Capability token from the table resource
            action_name: Name of the action to run
            row_id: Primary key of the target row
            context: Request context passed to authorize/disabled/handle

        Returns:
            ActionResponse with a message or a redirect

        Raises:
            InvalidToken: Token is malformed or names an unknown table (400)
            ExpiredToken: Token has expired (401)
            ActionNotFound: No action with that name (404)
            Unauthorized: authorize returned false (403)
            RecordNotFound: No row with that id (404)
            ActionDisabled: The action is disabled for the row (422)
            HandlerFailure: The handler failed or raised (422)
        """
        table, verified = self.token_service.resolve(token)
        context = context or RequestContext()
        context.token_context = verified.context

        action = table.get_action(action_name)
        if action is None:
            raise ActionNotFound()

        if action.authorize is not None and not action.authorize(context):
            raise Unauthorized()

        row = table.repository.get(table.resource, row_id, table.primary_key)
        if row is None:
            raise RecordNotFound()

        if action.disabled is not None and action.disabled(row, context):
            raise ActionDisabled()

        if action.handle is not None:
            try:
                raw = action.handle(row, context)
            except TableError:
                raise
            except Exception:
                logger.exception(
                    "Action %s on table %s failed for row %s", action.name, table.name, row_id
                )
                raise HandlerFailure(action.error_message)

            result = coerce_result(raw)
            if not result.ok:
                raise failure_for(result, action.error_message)
            return ActionResponse(
                success=True,
                message=success_message(result, action.success_message),
            )

        if action.url is not None:
            return ActionResponse(success=True, redirect=action.url(row, context))

        raise HandlerFailure("Action cannot be executed on the server")
