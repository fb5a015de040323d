"""Action handler results and the action response envelope."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tableforge.errors import HandlerFailure, InvalidSelection

DEFAULT_SUCCESS_MESSAGE = "Action completed successfully"
DEFAULT_ERROR_MESSAGE = "Action failed"


@dataclass(frozen=True)
class ActionResult:
    """What a handler returns to report success or failure with a message.

    Handlers may also return None or True (success), False (failure), or
    any other value (success with the default message).
    """

    ok: bool
    message: Any = None

    @classmethod
    def success(cls, message: Any = None) -> "ActionResult":
        return cls(ok=True, message=message)

    @classmethod
    def error(cls, reason: Any = None) -> "ActionResult":
        return cls(ok=False, message=reason)


@dataclass
class ActionResponse:
    """Envelope returned by the action and bulk action endpoints."""

    success: bool
    message: str | None = None
    redirect: str | None = None
    count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        if self.message is not None:
            data["message"] = self.message
        if self.redirect is not None:
            data["redirect"] = self.redirect
        if self.count is not None:
            data["count"] = self.count
        return data


def coerce_result(result: Any) -> ActionResult:
    """Normalize any handler return value to an ActionResult."""
    if isinstance(result, ActionResult):
        return result
    if result is False:
        return ActionResult.error()
    if result is None or result is True:
        return ActionResult.success()
    return ActionResult.success(result)


def success_message(result: ActionResult, configured: str | None) -> str:
    """A handler's message is surfaced only when it is a plain string."""
    if isinstance(result.message, str):
        return result.message
    return configured or DEFAULT_SUCCESS_MESSAGE


def failure_for(
    result: ActionResult, configured: str | None, count: int | None = None
) -> HandlerFailure:
    message = result.message if isinstance(result.message, str) else None
    return HandlerFailure(message or configured or DEFAULT_ERROR_MESSAGE, count=count)


class SelectionMode(str, Enum):
    EXPLICIT = "explicit"
    ALL = "all"
    ALL_EXCEPT = "all_except"


@dataclass
class Selection:
    """Bulk action target.

    ``explicit`` is exactly ``ids``; ``all`` is every row matching the
    current filters (ids ignored); ``all_except`` is that set minus ``ids``.
    """

    mode: SelectionMode
    ids: list[Any]

    @classmethod
    def from_dict(cls, data: Any) -> "Selection":
        """Parse a ``{"mode", "ids"}`` request body.

        Raises:
            InvalidSelection: If the mode is unknown or ids is not a list
        """
        if not isinstance(data, dict):
            raise InvalidSelection("Selection must be an object")
        try:
            mode = SelectionMode(data.get("mode"))
        except ValueError:
            raise InvalidSelection("Invalid selection mode")
        ids = data.get("ids") or []
        if not isinstance(ids, list):
            raise InvalidSelection("Selection ids must be a list")
        if mode == SelectionMode.EXPLICIT and not ids:
            raise InvalidSelection("No rows selected")
        return cls(mode=mode, ids=ids)
