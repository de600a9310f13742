"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Life System Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://lifesystem@localhost:5432/lifesystem"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "lifesystem"
    max_upload_bytes: int = 5 * 1024 * 1024
    analysis_preselect_confidence: float = 0.7
    analysis_max_chars: int = 30000
    draft_debounce_ms: int = 500
    guest_storage_path: str = ".lifesystem/guest-storage.json"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    maintenance_interval_minutes: int = 30
    stale_analysis_minutes: int = 15
    document_retention_days: int = 14
    jobs_run_on_startup: bool = False


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
