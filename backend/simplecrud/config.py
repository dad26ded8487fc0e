"""
simple-crud — Application Configuration
========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the store client and the CLI entry point.
When:  Loaded once at module import time; validated before the app starts.

Environment variables keep the names the service has always used
(DB_URI, DB_NAME, DB_COLLECTION, DB_USERNAME, DB_PASSWORD, SERVER_HOST,
SERVER_PORT); field names map to them case-insensitively.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every setting has a development default. Attributes are grouped by concern.
    """

    # ── Document Store ────────────────────────────────────────────────────
    # SQLAlchemy async URL. When it names no database, db_name is used;
    # when it carries no credentials, db_username/db_password are used.
    db_uri: str = Field(
        default="postgresql+asyncpg://127.0.0.1:5432",
        description="Async SQLAlchemy URL of the document store",
    )
    db_name: str = Field(default="simple_crud")

    # One collection per process; stored as a table of the same name
    db_collection: str = Field(default="simple_crud", min_length=1, max_length=63)

    db_username: str = Field(default="admin")
    db_password: str = Field(default="admin")

    # Pool sizing, ignored for SQLite URLs
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)

    # Seconds allowed for a single store operation
    store_timeout: float = Field(default=2.0, gt=0, le=60)

    # Seconds allowed for the startup connectivity check
    startup_timeout: float = Field(default=5.0, gt=0, le=120)

    # ── Server ────────────────────────────────────────────────────────────
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8080, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("db_collection")
    @classmethod
    def validate_collection(cls, v: str) -> str:
        """Collection names become table names: letters, digits and underscores only."""
        if not v.replace("_", "").isalnum() or v[0].isdigit():
            raise ValueError(
                f"Invalid db_collection '{v}'. Use letters, digits and underscores, "
                "not starting with a digit."
            )
        return v

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # DB_URI and db_uri both work
    }


# Singleton instance, read by the app factory and the CLI
settings = Settings()
