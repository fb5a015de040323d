"""Row and bulk action execution."""

from tableforge.actions.types import (
    ActionResponse,
    ActionResult,
    Selection,
    SelectionMode,
)
from tableforge.actions.executor import ActionExecutor
from tableforge.actions.bulk import BulkExecutor, SelectionResolver, chunked

__all__ = [
    "ActionExecutor",
    "ActionResponse",
    "ActionResult",
    "BulkExecutor",
    "Selection",
    "SelectionMode",
    "SelectionResolver",
    "chunked",
]
