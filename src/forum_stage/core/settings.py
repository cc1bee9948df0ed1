"""Application settings and configuration.

This module defines all configuration options for the forum stage application.
Settings are loaded from environment variables with sensible defaults.

Services never read the module-level ``settings`` instance directly; the
application wiring passes a ``Settings`` object into each service constructor.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Forum Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./forum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Presentation
    relative_path: str = Field(default="", alias="RELATIVE_PATH")
    default_lang: str = Field(default="en-GB", alias="DEFAULT_LANG")
    hide_fullname: bool = Field(default=False, alias="HIDE_FULLNAME")
    admin_badge_html: str = Field(
        default='<span class="badge bg-primary ms-1 instructor-tag">Instructor</span>',
        alias="ADMIN_BADGE_HTML",
    )

    # Anonymous posting
    anonymous_avatar_path: str = Field(
        default="/assets/images/anonymous-avatar.png",
        alias="ANONYMOUS_AVATAR_PATH",
    )
    # Path to a JSON file with "adjectives" and "animals" lists; None uses the packaged list.
    anonymous_words_file: str | None = Field(default=None, alias="ANONYMOUS_WORDS_FILE")

    # Paging
    recent_posts_per_page: int = Field(default=20, alias="RECENT_POSTS_PER_PAGE")
    topics_per_page: int = Field(default=20, alias="TOPICS_PER_PAGE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

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
    def anonymous_avatar_url(self) -> str:
        """Avatar path shown for masked authors, prefixed with the relative path."""
        return f"{self.relative_path}{self.anonymous_avatar_path}"


settings = Settings()
