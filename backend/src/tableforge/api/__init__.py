"""HTTP surface of the table API."""

from tableforge.api.endpoints import create_tables_router
from tableforge.api.services import TableServices

__all__ = ["TableServices", "create_tables_router"]
