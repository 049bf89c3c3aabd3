"""Application settings and configuration.

This module defines all configuration options for the Round Intake service.
Settings are loaded from environment variables with sensible defaults.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Components take a ``Settings`` instance at construction time; the
    module-level ``settings`` object is only the default used by the web app.
    """

    # Application metadata
    app_name: str = Field(default="Round Intake", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./round_intake.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Snapshot lifecycle directories
    snapshot_root: Path = Field(default=Path("./snapshots"), alias="SNAPSHOT_ROOT")
    pending_dir_name: str = Field(default="unauthorized", alias="SNAPSHOT_PENDING_DIR")
    processed_dir_name: str = Field(default="processed", alias="SNAPSHOT_PROCESSED_DIR")
    failed_dir_name: str = Field(default="failed", alias="SNAPSHOT_FAILED_DIR")

    # Intake policy
    auto_register_servers: bool = Field(default=True, alias="AUTO_REGISTER_SERVERS")
    failure_reason_max_words: int = Field(default=128, alias="FAILURE_REASON_MAX_WORDS")
    failure_reason_max_length: int = Field(default=1024, alias="FAILURE_REASON_MAX_LENGTH")
    json_max_depth: int = Field(default=512, alias="JSON_MAX_DEPTH")
    display_timezone: str = Field(default="UTC", alias="DISPLAY_TIMEZONE")

    # CORS configuration for the admin frontend
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def snapshot_folders(self) -> dict[str, Path]:
        """Map each lifecycle folder name to its directory."""
        root = Path(self.snapshot_root)
        return {
            self.pending_dir_name: root / self.pending_dir_name,
            self.processed_dir_name: root / self.processed_dir_name,
            self.failed_dir_name: root / self.failed_dir_name,
        }


settings = Settings()
