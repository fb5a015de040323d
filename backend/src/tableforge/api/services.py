"""The services behind the HTTP surface, wired from settings."""

from dataclasses import dataclass
from pathlib import Path

from tableforge.actions import ActionExecutor, BulkExecutor, SelectionResolver
from tableforge.config import Settings
from tableforge.core.types import NamingConvention
from tableforge.exports import ExportService
from tableforge.persistence import create_repository
from tableforge.query.engine import DefaultQueryEngine
from tableforge.resource import ResourceAssembler
from tableforge.table.loader import TableLoader
from tableforge.table.registry import TableRegistry
from tableforge.tokens.service import TokenService
from tableforge.views import SavedViewStore, ViewsService


@dataclass
class TableServices:
    registry: TableRegistry
    token_service: TokenService
    assembler: ResourceAssembler
    action_executor: ActionExecutor
    bulk_executor: BulkExecutor
    export_service: ExportService
    views_service: ViewsService | None
    naming: NamingConvention

    @classmethod
    def create(
        cls,
        registry: TableRegistry,
        settings: Settings,
        view_store: SavedViewStore | None = None,
    ) -> "TableServices":
        """Wire every service around one registry and token service."""
        token_service = TokenService(
            settings.secret_key,
            registry=registry,
            salt=settings.token_salt,
            max_age=settings.token_max_age,
        )
        engine = DefaultQueryEngine()
        return cls(
            registry=registry,
            token_service=token_service,
            assembler=ResourceAssembler(
                token_service, engine, naming=settings.naming, view_store=view_store
            ),
            action_executor=ActionExecutor(token_service),
            bulk_executor=BulkExecutor(token_service, SelectionResolver(engine)),
            export_service=ExportService(token_service, engine),
            views_service=ViewsService(token_service, view_store) if view_store else None,
            naming=settings.naming,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "TableServices":
        """Load YAML tables and open the database named by settings."""
        repository = create_repository(settings.database)
        registry = TableRegistry()
        if settings.tables_path is not None and Path(settings.tables_path).is_dir():
            loader = TableLoader(settings.tables_path, repository)
            loader.load_all()
            for table in loader.list_tables():
                registry.register(table)
        view_store = SavedViewStore(engine=repository.engine)
        return cls.create(registry, settings, view_store)
