"""Registry of live table definitions, keyed by table name."""

import logging

from tableforge.errors import DefinitionError
from tableforge.table.types import TableDefinition

logger = logging.getLogger(__name__)


class TableRegistry:
    """Holds the table definitions an application serves.

    Capability tokens carry only a table name; the registry is how a
    token is resolved back to a definition, so a table that has been
    removed or renamed stops accepting old tokens.
    """

    def __init__(self, tables: list[TableDefinition] | None = None):
        self._tables: dict[str, TableDefinition] = {}
        for table in tables or []:
            self.register(table)

    def register(self, table: TableDefinition, replace: bool = False) -> None:
        """Register a table definition.

        Args:
            table: The definition to register
            replace: Allow replacing an existing table of the same name

        Raises:
            DefinitionError: If the name is taken and replace is False
        """
        if table.name in self._tables and not replace:
            raise DefinitionError(f"Table '{table.name}' is already registered")
        self._tables[table.name] = table
        logger.debug("Registered table %s (resource=%s)", table.name, table.resource)

    def unregister(self, name: str) -> bool:
        """Remove a table. Returns True if it was registered."""
        return self._tables.pop(name, None) is not None

    def get(self, name: str) -> TableDefinition | None:
        return self._tables.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def list_tables(self) -> list[str]:
        """List registered table names, sorted."""
        return sorted(self._tables.keys())
