from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration
    DB_DIALECT: Literal["postgresql", "mysql"] = "postgresql"
    DB_DRIVER: str = "psycopg"
    DB_USERNAME: str = "chatapp"
    DB_PASSWORD: str = "chatapp"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "chatapp"

    # Test database configuration
    TEST_DB_NAME: str | None = None
    TESTING: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/chatapp")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the async database URL for the configured dialect and driver.

        When `TESTING=True` and `TEST_DB_NAME` is provided the URL points at the
        test database instead of `DB_NAME`, so a test run can never write into
        the regular database by accident.

        Returns:
            str: e.g. ``postgresql+psycopg://user:pw@localhost:5432/chatapp``
        """
        database = self.TEST_DB_NAME if (self.TESTING and self.TEST_DB_NAME) else self.DB_NAME
        return (
            f"{self.DB_DIALECT}+{self.DB_DRIVER}://"
            f"{self.DB_USERNAME}:{self.DB_PASSWORD}@"
            f"{self.DB_HOST}:{self.DB_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to upper case before the Literal check runs,
        so `LOG_LEVEL=debug` in the environment is accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", "DB_DIALECT", mode="before")
    @classmethod
    def normalize_lowercase(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    model_config = SettingsConfigDict(
        # .env lives next to the package root (src/chatapp/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings are read from the environment once per process.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
