from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "DevHub Pro"
    app_env: str = "development"
    cors_origins: str = "http://localhost:5173"

    # Database (snapshot store)
    database_url: str = "sqlite+aiosqlite:///./devhub.db"
    auto_create_tables: bool = False

    # Redis change channel (empty = single-process, in-memory notifications only)
    redis_url: str = ""
    snapshot_channel: str = "devhub:snapshot_changed"

    # JWT
    jwt_secret: str = "dev-only-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    # Comma-separated emails allowed to use /api/admin
    admin_emails: str = ""

    # Sentry (optional, only set in staging/production)
    sentry_dsn: str = ""

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def log_level(self) -> str:
        return "INFO" if self.is_production else "DEBUG"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def admin_email_list(self) -> list[str]:
        return [email.strip() for email in self.admin_emails.split(",") if email.strip()]


settings = Settings()

# ---------------------------------------------------------------------------
# Application constants (not env-configurable, change in code)
# ---------------------------------------------------------------------------

# User directory
DEFAULT_USER_ROLE = "Developer"
PASSWORD_MIN_LENGTH = 6
SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_RESULT_LIMIT = 10  # Privacy cap on invitation search results

# Synchronization layer
DATA_CHANGED_EVENT = "data_changed"
SNAPSHOT_KEYS = ("users", "teams", "invitations", "messages")

# Server-sent events
SSE_KEEPALIVE_SECONDS = 15.0
SSE_QUEUE_SIZE = 50

# Redis change channel
REDIS_RESUBSCRIBE_SECONDS = 2.0
