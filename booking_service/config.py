"""Application configuration loaded from the environment."""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


DB_PART_FIELDS = frozenset({"db_driver", "db_host", "db_user", "db_password", "db_name", "db_port"})


class Settings(BaseSettings):
    """Environment-driven configuration for the booking service."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    host: str = Field(default="127.0.0.1", description="Interface the HTTP server binds to")
    port: int = Field(default=3000, description="Port the HTTP server listens on")

    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy database URL. When unset, it is built from the DB_* settings if any is given.",
    )
    sqlite_url: str = Field(
        default="sqlite:///./data/rooms_booking.db",
        description="Local database used when neither DATABASE_URL nor any DB_* setting is given",
    )
    db_driver: str = "mysql+pymysql"
    db_host: str = "localhost"
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "KD2"
    db_port: int = 3306

    db_pool_size: int = Field(default=5, description="Connections kept open in the pool")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed above pool size")
    db_pool_recycle: int = Field(default=3600, description="Seconds before a pooled connection is recycled")
    db_pool_pre_ping: bool = Field(default=True, description="Test connections before handing them out")

    cors_origin: str = Field(default="http://localhost:5173", description="The single allowed CORS origin")
    upload_dir: str = Field(default="uploads", description="Directory holding uploaded room images")

    log_level: str = "INFO"
    audit_log_file: Optional[str] = Field(default=None, description="Optional file receiving request audit lines")
    sweep_orphaned_uploads: bool = Field(
        default=False,
        description="Remove uploaded images no room refers to when the application starts.",
    )
    sweep_grace_seconds: int = Field(
        default=300,
        description="Uploads younger than this are never swept; other workers may not have committed their rows yet.",
    )

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        if not DB_PART_FIELDS & self.model_fields_set:
            return self.sqlite_url
        return URL.create(
            self.db_driver,
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return self.resolved_database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
