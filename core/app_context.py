import logging
from dataclasses import dataclass

from core.config_loader import AppConfig
from core.field_mapping import FieldMappingTable
from core.interfaces import ScoringCollaborator, StorageCollaborator
from core.orchestrator import PipelineSettings, RecommendationOrchestrator
from core.scoring_client import HttpScoringClient
from core.storage_adapter import ModuleStorageAdapter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Built once at process start. The field mapping table is validated while
    building, so a bad mapping stops startup instead of failing requests.
    Everything held here is shared read-only between requests; each request
    gets its own orchestrator from new_orchestrator().
    """
    config: AppConfig
    field_map: FieldMappingTable
    storage: StorageCollaborator
    scoring: ScoringCollaborator
    settings: PipelineSettings

    @classmethod
    def build(cls, config: AppConfig) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration

        Returns:
            Fully wired AppContext instance
        """
        field_map = FieldMappingTable.from_config(config.field_mappings)
        storage = cls._build_storage(config, field_map)
        scoring = cls._build_scoring_client(config, field_map)

        logger.info(
            f"AppContext built: storage={config.storage.backend}, "
            f"scoring={config.scoring.url}, environment={config.environment}"
        )
        return cls(
            config=config,
            field_map=field_map,
            storage=storage,
            scoring=scoring,
            settings=PipelineSettings.from_config(config),
        )

    @staticmethod
    def _build_storage(config: AppConfig, field_map: FieldMappingTable) -> StorageCollaborator:
        """Build the storage collaborator selected by storage.backend."""
        if config.storage.backend == "module":
            return ModuleStorageAdapter.from_module_path(config.storage.module, field_map)

        from database.database import build_engine
        from database.repository import SqlStorage

        storage = SqlStorage(build_engine(config.storage.url))
        storage.create_tables()
        return storage

    @staticmethod
    def _build_scoring_client(config: AppConfig, field_map: FieldMappingTable) -> HttpScoringClient:
        """Build the HTTP scoring client from configuration."""
        scoring_config = config.scoring
        return HttpScoringClient(
            url=scoring_config.url,
            field_map=field_map,
            request_timeout_ms=scoring_config.timeout_ms,
            health_url=scoring_config.resolved_health_url(),
            health_timeout_ms=scoring_config.health_timeout_ms,
        )

    @property
    def storage_backend(self) -> str:
        return self.config.storage.backend

    def new_orchestrator(self) -> RecommendationOrchestrator:
        return RecommendationOrchestrator(
            storage=self.storage,
            scoring=self.scoring,
            field_map=self.field_map,
            settings=self.settings,
        )

    def close(self) -> None:
        for collaborator in (self.storage, self.scoring):
            close = getattr(collaborator, "close", None)
            if callable(close):
                close()
