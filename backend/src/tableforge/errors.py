"""Error hierarchy for table requests.

Every error a request can hit derives from TableError and carries the HTTP
status it maps to. Endpoints catch TableError and render the fixed
``{"success": false, "message": ...}`` envelope. DefinitionError is a
startup-time configuration problem and never reaches a client.
"""

from typing import Any


class DefinitionError(ValueError):
    """A table definition is invalid (raised while building it)."""

    pass


class TableError(Exception):
    """Base class for request-time table errors."""

    status_code = 500
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class InvalidParameters(TableError):
    """Request parameters could not be parsed."""

    status_code = 400
    code = "invalid_parameters"
    default_message = "Invalid parameters"


class InvalidToken(TableError):
    """The capability token is malformed, forged, or names an unknown table."""

    status_code = 400
    code = "invalid_token"
    default_message = "Invalid table token"

    def __init__(self, reason: str = "malformed", message: str | None = None):
        self.reason = reason
        super().__init__(message)


class ExpiredToken(TableError):
    """The capability token is older than the allowed max age."""

    status_code = 401
    code = "expired_token"
    default_message = "Table token has expired"


class TableNotFound(TableError):
    status_code = 404
    code = "table_not_found"
    default_message = "Table not found"


class ActionNotFound(TableError):
    status_code = 404
    code = "action_not_found"
    default_message = "Action not found"


class ExportNotFound(TableError):
    status_code = 404
    code = "export_not_found"
    default_message = "Export not found"


class Unauthorized(TableError):
    status_code = 403
    code = "unauthorized"
    default_message = "Unauthorized"


class RecordNotFound(TableError):
    status_code = 404
    code = "record_not_found"
    default_message = "Record not found"


class ActionDisabled(TableError):
    status_code = 422
    code = "action_disabled"
    default_message = "Action is disabled for this record"


class HandlerFailure(TableError):
    """An action handler reported failure or raised.

    ``count`` is set for bulk actions that failed part-way through.
    """

    status_code = 422
    code = "handler_failure"
    default_message = "Action failed"

    def __init__(self, message: str | None = None, count: int | None = None):
        self.count = count
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.count is not None:
            body["count"] = self.count
        return body


class InvalidSelection(TableError):
    status_code = 400
    code = "invalid_selection"
    default_message = "Invalid selection"


class ExportFormatNotSupported(TableError):
    status_code = 501
    code = "export_format_not_supported"
    default_message = "Export format is not supported"


class ViewsDisabled(TableError):
    status_code = 400
    code = "views_disabled"
    default_message = "Views are not enabled for this table"


class ViewNotFound(TableError):
    status_code = 404
    code = "view_not_found"
    default_message = "View not found"


class ViewForbidden(TableError):
    status_code = 403
    code = "view_forbidden"
    default_message = "You can only modify your own views"


class ViewValidationError(TableError):
    """A saved view failed validation. ``errors`` maps field -> messages."""

    status_code = 422
    code = "view_invalid"
    default_message = "Invalid view"

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body
