"""Table API endpoints."""

import json
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict

from tableforge.api.services import TableServices
from tableforge.auth.middleware import get_request_context
from tableforge.core.types import RequestContext
from tableforge.errors import InvalidParameters, TableError, TableNotFound, ViewsDisabled
from tableforge.query.params import decode_query_string
from tableforge.views import ViewsService


class ActionRequest(BaseModel):
    """Request body for single-row actions."""

    token: str
    action: str
    id: Any


class BulkActionRequest(BaseModel):
    """Request body for bulk actions."""

    token: str
    action: str
    selection: Any = None
    filters: Any = None


class ViewRequest(BaseModel):
    """Request body for saving a view. Attributes are validated by the store."""

    model_config = ConfigDict(extra="allow")

    token: str


def _view_body(request: ViewRequest) -> dict[str, Any]:
    return request.model_dump(exclude={"token"})


def _export_filters(request: Request) -> Any:
    """Filters from ``filters=<json>`` or bracketed ``filters[0][field]=...`` params."""
    raw = request.query_params.get("filters")
    if raw is not None:
        if raw == "":
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            raise InvalidParameters("filters must be valid JSON")
    return decode_query_string(request.query_params.multi_items()).get("filters")


def create_tables_router(get_services: Callable[[], TableServices | None]) -> APIRouter:
    """Create the table router with injected dependencies."""
    router = APIRouter(prefix="/api", tags=["tables"])

    def services() -> TableServices:
        current = get_services()
        if current is None:
            raise HTTPException(500, "Table services not initialized")
        return current

    def views() -> ViewsService:
        current = services().views_service
        if current is None:
            raise ViewsDisabled()
        return current

    # --- Resource ---

    @router.get("/tables")
    async def list_tables() -> dict[str, Any]:
        """List registered table names."""
        return {"tables": services().registry.list_tables()}

    @router.get("/tables/{name}")
    async def get_table_resource(
        name: str,
        request: Request,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        """Build the full resource of one table for the current query string."""
        current = services()
        table = current.registry.get(name)
        if table is None:
            raise TableNotFound(f"Table '{name}' not found")
        params = decode_query_string(request.query_params.multi_items())
        return current.assembler.build(table, params, context)

    # --- Actions ---

    @router.post("/table/action")
    async def execute_action(
        body: ActionRequest,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        response = services().action_executor.execute(body.token, body.action, body.id, context)
        return response.to_dict()

    @router.post("/table/bulk-action")
    async def execute_bulk_action(
        body: BulkActionRequest,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        response = services().bulk_executor.execute(
            body.token, body.action, body.selection, body.filters, context
        )
        return response.to_dict()

    # --- Export ---

    @router.get("/table/export")
    async def export_table(
        request: Request,
        token: str,
        export: str,
        search: str | None = None,
        context: RequestContext = Depends(get_request_context),
    ) -> StreamingResponse:
        """Download the full filtered row set as a file."""
        export_file = services().export_service.prepare(
            token, export, _export_filters(request), search, context
        )
        return StreamingResponse(
            export_file.chunks,
            media_type=export_file.content_type,
            headers={
                "Content-Disposition": f'attachment; filename="{export_file.filename}"',
            },
        )

    # --- Saved views ---

    @router.get("/table/views")
    async def list_views(
        token: str,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        naming = services().naming
        return {"views": [v.to_config(naming) for v in views().list_views(token, context)]}

    @router.post("/table/views", status_code=201)
    async def create_view(
        body: ViewRequest,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        view = views().create_view(body.token, _view_body(body), context)
        return {"view": view.to_config(services().naming)}

    @router.put("/table/views/{view_id}")
    async def update_view(
        view_id: str,
        body: ViewRequest,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        view = views().update_view(body.token, view_id, _view_body(body), context)
        return {"view": view.to_config(services().naming)}

    @router.delete("/table/views/{view_id}")
    async def delete_view(
        view_id: str,
        token: str,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        views().delete_view(token, view_id, context)
        return {"success": True}

    @router.post("/table/views/{view_id}/default")
    async def set_default_view(
        view_id: str,
        body: ViewRequest,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        view = views().set_default(body.token, view_id, context)
        return {"view": view.to_config(services().naming)}

    @router.delete("/table/views/{view_id}/default")
    async def unset_default_view(
        view_id: str,
        token: str,
        context: RequestContext = Depends(get_request_context),
    ) -> dict[str, Any]:
        view = views().unset_default(token, view_id, context)
        return {"view": view.to_config(services().naming)}

    return router


def table_error_response(exc: TableError) -> JSONResponse:
    """Render a TableError as the ``{success: false, message}`` envelope."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
