"""Saved table views: persisted filters, sort, columns and page size."""

from tableforge.views.service import ViewsService, view_attrs
from tableforge.views.store import SavedViewStore
from tableforge.views.types import SavedView, validate_view_attrs

__all__ = [
    "SavedView",
    "SavedViewStore",
    "ViewsService",
    "validate_view_attrs",
    "view_attrs",
]
