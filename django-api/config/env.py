"""
Environment configuration loaded with pydantic-settings.

Values come from process environment variables or a local `.env` file and
are validated once at startup. Django settings read them through
`get_environment()`.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(BaseSettings):
    # Django
    debug: bool = False
    secret_key: str = "insecure-development-key"
    allowed_hosts: list[str] = ["localhost", "127.0.0.1"]
    log_level: str = "INFO"

    # PostgreSQL, used only when POSTGRES_DB is set
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "placements"
    postgres_password: str = ""
    postgres_db: str | None = None

    # Mail
    email_backend: str = "django.core.mail.backends.console.EmailBackend"
    default_from_email: str = "placements@localhost"

    # Placement workflow
    offer_validity_hours: int = Field(default=72, gt=0)
    notifications_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def uses_postgres(self) -> bool:
        return bool(self.postgres_db)


@lru_cache
def get_environment() -> Environment:
    """Get cached environment instance."""
    return Environment()
