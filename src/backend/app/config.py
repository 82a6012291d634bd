from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


PROJECT_ROOT = Path(__file__).resolve().parents[3]
ROOT_ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    project_name: str = "Participants API"
    database_url: str = "sqlite:///./participants.db"
    api_host: str = "0.0.0.0"
    api_port: int = 3050
    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]

    # Connection pool
    db_pool_size: int = 5
    db_max_overflow: int = 15
    db_pool_timeout: float = 2.0
    db_pool_recycle: int = 30
    db_connect_timeout: int = 2

    # Startup connectivity probe
    db_startup_retries: int = 5
    db_startup_backoff_seconds: float = 1.0
    db_startup_backoff_factor: float = 2.0
    create_schema_on_startup: bool = True

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=(str(ROOT_ENV_FILE), ".env"),
        extra="ignore",
    )


settings = Settings()
