import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000


class StorageConfig(BaseModel):
    """
    Storage collaborator settings.

    backend "sql" uses the bundled SQLAlchemy storage; backend "module"
    imports a Python module (dotted path) exposing the mapped operations.
    """
    backend: Literal["sql", "module"] = "sql"
    url: str = "sqlite:///data/careers.db"
    module: Optional[str] = None
    timeout_ms: int = Field(default=5000, gt=0)


class ScoringConfig(BaseModel):
    url: str = "http://localhost:5001/recommend"
    health_url: Optional[str] = None  # Derived from url when unset
    timeout_ms: int = Field(default=20000, gt=0)
    max_attempts: int = Field(default=2, ge=1)
    retry_base_delay_ms: int = Field(default=2000, ge=0)
    health_timeout_ms: int = Field(default=3000, gt=0)

    def resolved_health_url(self) -> str:
        if self.health_url:
            return self.health_url
        return self.url.replace("/recommend", "/health")


class CandidateFieldsConfig(BaseModel):
    name: str = "name"
    sector: str = "sector"
    skills: str = "skills"
    experience: str = "experience"
    education: str = "education"
    preferences: str = "preferences"


class StorageOperationsConfig(BaseModel):
    get_dropdown_options: str = "getDropdowns"
    save_candidate: str = "saveCandidate"
    fetch_careers: str = "fetchCareers"
    update_recommendations: str = "updateCandidateRecommendations"


class CareerFilterConfig(BaseModel):
    sector: str = "sector"


class AiPayloadConfig(BaseModel):
    candidate: str = "candidate"
    careers: str = "careers"


class FieldMappingConfig(BaseModel):
    """
    External names agreed with the storage and AI teams.

    Change these if your teammates use different field names.
    """
    candidate: CandidateFieldsConfig = Field(default_factory=CandidateFieldsConfig)
    storage: StorageOperationsConfig = Field(default_factory=StorageOperationsConfig)
    career_filter: CareerFilterConfig = Field(default_factory=CareerFilterConfig)
    ai_payload: AiPayloadConfig = Field(default_factory=AiPayloadConfig)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    environment: str = "production"  # "development" exposes error details in responses
    server: ServerConfig = Field(default_factory=ServerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    field_mappings: FieldMappingConfig = Field(default_factory=FieldMappingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def expose_error_details(self) -> bool:
        return self.environment.lower() != "production"


# env var -> (section path, value type)
ENV_OVERRIDES = {
    "APP_ENV": (("environment",), str),
    "HOST": (("server", "host"), str),
    "PORT": (("server", "port"), int),
    "DATABASE_URL": (("storage", "url"), str),
    "STORAGE_BACKEND": (("storage", "backend"), str),
    "STORAGE_MODULE": (("storage", "module"), str),
    "DB_TIMEOUT": (("storage", "timeout_ms"), int),
    "AI_SERVICE_URL": (("scoring", "url"), str),
    "AI_HEALTH_URL": (("scoring", "health_url"), str),
    "AI_TIMEOUT": (("scoring", "timeout_ms"), int),
    "AI_MAX_ATTEMPTS": (("scoring", "max_attempts"), int),
    "AI_RETRY_BASE_DELAY": (("scoring", "retry_base_delay_ms"), int),
    "LOG_LEVEL": (("logging", "level"), str),
    "CANDIDATE_NAME_FIELD": (("field_mappings", "candidate", "name"), str),
    "CANDIDATE_SECTOR_FIELD": (("field_mappings", "candidate", "sector"), str),
    "CANDIDATE_SKILLS_FIELD": (("field_mappings", "candidate", "skills"), str),
    "CANDIDATE_EXPERIENCE_FIELD": (("field_mappings", "candidate", "experience"), str),
    "CANDIDATE_EDUCATION_FIELD": (("field_mappings", "candidate", "education"), str),
    "CANDIDATE_PREFERENCES_FIELD": (("field_mappings", "candidate", "preferences"), str),
    "DB_GET_DROPDOWNS_METHOD": (("field_mappings", "storage", "get_dropdown_options"), str),
    "DB_SAVE_CANDIDATE_METHOD": (("field_mappings", "storage", "save_candidate"), str),
    "DB_FETCH_CAREERS_METHOD": (("field_mappings", "storage", "fetch_careers"), str),
    "DB_UPDATE_RECS_METHOD": (("field_mappings", "storage", "update_recommendations"), str),
    "CAREER_FILTER_SECTOR_FIELD": (("field_mappings", "career_filter", "sector"), str),
    "AI_PAYLOAD_CANDIDATE_FIELD": (("field_mappings", "ai_payload", "candidate"), str),
    "AI_PAYLOAD_CAREERS_FIELD": (("field_mappings", "ai_payload", "careers"), str),
}


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path.exists():
        with open(config_path, "r") as f:
            return yaml.safe_load(f) or {}
    logger.warning(f"Config file {config_path} not found, using defaults")
    return {}


def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration."""
    for env_name, (path, cast) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError:
            logger.warning(f"Ignoring {env_name}={raw!r}: expected {cast.__name__}")
            continue

        section = config_dict
        for key in path[:-1]:
            if not isinstance(section.get(key), dict):
                section[key] = {}
            section = section[key]
        section[path[-1]] = value
    return config_dict


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from YAML, then apply environment overrides.

    Args:
        config_path: Path to the YAML file. Defaults to CONFIG_PATH or
            config.yaml at the project root.
    """
    load_dotenv()
    path = Path(config_path or os.environ.get("CONFIG_PATH") or PROJECT_ROOT / "config.yaml")
    raw_config = _load_yaml_config(path)
    raw_config = _apply_env_overrides(raw_config)
    return AppConfig(**raw_config)


@lru_cache()
def get_config() -> AppConfig:
    """
    Get application configuration with caching.

    Returns:
        AppConfig: The application configuration.
    """
    return load_config()
