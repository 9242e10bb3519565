"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache), single instance per process
    - turn_policy is a TurnPolicy value; unknown strings fail at startup

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Empty anthropic_api_key is allowed: the API boots and resolution reports
      ANALYSIS_UNAVAILABLE instead of the process refusing to start
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from parley.core.domain_types import TurnPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://parley:parley@db:5432/parley"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Analysis (Anthropic)
    anthropic_api_key: str = ""
    analysis_model: str = "claude-sonnet-4-5"
    analysis_max_tokens: int = 2000
    analysis_timeout_seconds: int = 60

    # Sessions
    session_ttl_hours: int = 24
    max_message_length: int = 2000
    max_name_length: int = 100
    turn_policy: TurnPolicy = TurnPolicy.UNRESTRICTED

    @field_validator("turn_policy", mode="before")
    @classmethod
    def parse_turn_policy(cls, v):
        """Accept strict-alternation and strict_alternation alike."""
        return TurnPolicy(v) if isinstance(v, str) else v

    poll_interval_seconds: int = 2

    # API
    app_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
