"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "portal_user"
    postgres_password: str = "password"
    postgres_db: str = "jobportal_db"

    # Full URL override (e.g. sqlite:///./portal.db for local runs and tests)
    database_url: str = ""

    # JWT Auth (tokens live 7 days)
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 7 * 24 * 60

    # Membership numbers: JG-YY-NNNNNN
    membership_prefix: str = Field("JG", pattern=r"^[A-Z]{2}$")
    membership_max_attempts: int = Field(5, ge=1)

    # Approval gate
    restriction_notice_debounce_seconds: float = Field(1.0, gt=0)

    # Employer notification e-mails (not sent while smtp_user / smtp_password are empty)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_ssl: bool = False
    smtp_timeout_seconds: float = 10.0
    mail_from_name: str = "JobGenie Employer Support"
    mail_from: str = ""  # defaults to smtp_user
    portal_base_url: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # console | json

    # App
    debug: bool = False

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def sqlalchemy_url(self) -> str:
        """URL the engine connects to - DATABASE_URL wins over the postgres_* parts."""
        return self.database_url or self.postgres_url

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    @property
    def mail_from_address(self) -> str:
        return self.mail_from or self.smtp_user or "no-reply@jobgenie.local"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
