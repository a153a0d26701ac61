"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Precedence: environment (LEDGER_BACKEND_*) > .env file > defaults
    - get_settings() is cached (lru_cache): single instance per process
    - The repository receives resolved values; it has no defaults of its own

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - SQLite by default: the daemon works out-of-the-box on a single machine
"""

from functools import lru_cache

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="LEDGER_BACKEND_", case_sensitive=False,
    )

    # Server
    server_address: str = "127.0.0.1"
    server_port: int = 50059

    # Database
    database_url: str = "sqlite+aiosqlite:///data/personal_ledger.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Plain postgresql:// and sqlite:// URLs get their async driver."""
        if isinstance(v, str):
            if v.startswith("postgresql://"):
                return v.replace("postgresql://", "postgresql+asyncpg://", 1)
            if v.startswith("sqlite://"):
                return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_timeout_seconds: float = 30.0
    database_auto_create: bool = True

    # Pagination
    page_size_default: int = 50
    page_size_max: int = 1000

    # Privileged operations (hard delete). Unset = disabled.
    admin_token: SecretStr | None = None

    # Observability
    log_level: str = "WARNING"
    log_format: str = "json"

    @model_validator(mode="after")
    def check_values(self) -> "Settings":
        if self.server_port <= 0 or self.server_port > 65535:
            raise ValueError("server_port must be between 1 and 65535")
        if not self.database_url.strip():
            raise ValueError("database_url cannot be empty")
        if not 1 <= self.page_size_default <= self.page_size_max:
            raise ValueError("page_size_default must be between 1 and page_size_max")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
