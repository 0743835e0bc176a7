# storefront/settings.py
"""
Storefront API settings.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (logs, uploaded import sheets)
    # =========================================================================
    STOREFRONT_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "storefront-data"),
        validation_alias=AliasChoices("STOREFRONT_DATA_ROOT", "data_root"),
    )

    # =========================================================================
    # PostgreSQL Database
    # =========================================================================
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="storefront", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Full URL override (e.g. sqlite+aiosqlite:///:memory: for tests)
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "storefront_database_url"),
    )

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_POOL_TIMEOUT: float = Field(default=30.0, validation_alias="DB_POOL_TIMEOUT")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # =========================================================================
    # Write workflows
    # =========================================================================
    WRITE_TIMEOUT_SEC: float = Field(
        default=30.0,
        description="Upper bound for a single write transaction (connection held time)",
    )
    IMPORT_FAILURE_POLICY: Literal["per_entity", "whole_batch"] = Field(
        default="per_entity",
        description="per_entity: one transaction per handle; whole_batch: one transaction for the file",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_CONSOLE: bool = Field(default=False, validation_alias="LOG_TO_CONSOLE")

    # =========================================================================
    # HTTP
    # =========================================================================
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
