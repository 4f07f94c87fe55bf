"""
LR Desk Configuration Management
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache
from pathlib import Path

# Repo-relative absolute path for the SQLite DB so scripts run from any
# working directory resolve the same file.
_BASE_DIR = Path(__file__).resolve().parents[1]
_DEFAULT_DB_PATH = _BASE_DIR / "lrdesk.db"
_DEFAULT_DB_URI = f"sqlite+aiosqlite:///{_DEFAULT_DB_PATH.as_posix()}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_env: str = Field(default="development", alias="APP_ENV")
    app_name: str = Field(default="LR Desk", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    frontend_url: str = Field(default="http://localhost:5173", alias="FRONTEND_URL")

    # Database (SQLite for local development, PostgreSQL in production)
    database_url: str = Field(default=_DEFAULT_DB_URI, alias="DATABASE_URL")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # SMS notifications
    sms_enabled: bool = Field(default=True, alias="SMS_ENABLED")
    sms_sender_id: str = Field(default="LRDESK", alias="SMS_SENDER_ID")
    tracking_base_url: str = Field(
        default="http://localhost:5173/track",
        alias="TRACKING_BASE_URL"
    )

    # Listing defaults
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=200, alias="MAX_PAGE_SIZE")

    # LR numbering
    default_branch_code: str = Field(default="DC", alias="DEFAULT_BRANCH_CODE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
