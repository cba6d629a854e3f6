"""Settings — environment-driven configuration for the zorgdossier API.

Invariants:
    - Secrets (API key, database password) only ever come from the environment or .env
    - get_settings() returns one cached Settings per process
    - ai_configured is True only with the feature flag on and a real (non-placeholder) key

Design Decisions:
    - pydantic-settings: typed env parsing with .env support for local runs
    - Hosted Postgres URLs (postgres://, postgresql://) rewritten to the asyncpg driver
    - The placeholder key lets the service boot without AI; criteria then fall
      back to heuristics
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_API_KEY = "sk-ant-placeholder"
_ASYNC_DRIVER_PREFIXES = ("postgresql://", "postgres://")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "postgresql+asyncpg://zorg:zorg@db:5432/zorgdossier"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic (criteria evaluation)
    anthropic_api_key: str = PLACEHOLDER_API_KEY
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000
    ai_evaluation_enabled: bool = True
    criteria_model: str = "claude-sonnet-4-5"
    criteria_max_tokens: int = 1024

    # HTTP
    cors_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_async_driver(cls, v):
        if isinstance(v, str):
            for prefix in _ASYNC_DRIVER_PREFIXES:
                if v.startswith(prefix):
                    return "postgresql+asyncpg://" + v[len(prefix):]
        return v

    @property
    def ai_configured(self) -> bool:
        return (
            self.ai_evaluation_enabled
            and bool(self.anthropic_api_key)
            and self.anthropic_api_key != PLACEHOLDER_API_KEY
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
