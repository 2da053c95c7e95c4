from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STATECRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite+aiosqlite:///./statecraft.db")
    secret_key: str = Field(default="change-me-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    admin_api_key: str = Field(default="admin-dev-key", description="Value expected in X-Admin-Key")

    # Game defaults, overridable per game at creation time
    default_phase_deadline_seconds: int = 120
    default_max_turns: int = 20
    default_min_players: int = 2
    default_fallback_action: str = "defend"

    # A phase submission may be replaced this many times before it is rejected
    max_submission_revisions: int = 5

    storage_retry_attempts: int = 4
    storage_retry_base_delay: float = 0.1

    push_queue_size: int = 256
    webhook_timeout_seconds: float = 5.0

    log_level: str = "INFO"


settings = Settings()
