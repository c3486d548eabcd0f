"""
Configuration settings for typeprobe.

Uses Pydantic Settings to load environment variables for the database
connection, logging, and the probe policies (null coercion, raw binding,
failure handling).
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

NullPolicy = Literal["zero", "propagate"]
BindingMode = Literal["unchecked", "checked"]
FailurePolicy = Literal["tolerant", "strict"]


def validate_identifier(value: str) -> str:
    """Reject anything that is not a bare SQL identifier."""
    if not IDENTIFIER_RE.match(value):
        raise ValueError(f"'{value}' is not a valid column identifier")
    return value


class Settings(BaseSettings):
    # Database
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")
    db_driver: Literal["sqlite", "postgresql"] = Field("sqlite", alias="DB_DRIVER")
    sqlite_path: str = Field("typeprobe.db", alias="SQLITE_PATH")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("typeprobe", alias="DB_NAME")
    db_echo: bool = Field(False, alias="DB_ECHO")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Probe policies
    null_policy: NullPolicy = Field("zero", alias="NULL_POLICY")
    raw_binding: BindingMode = Field("unchecked", alias="RAW_BINDING")
    raw_wrong_column: str = Field("fav", alias="RAW_WRONG_COLUMN")
    addend: int = Field(99, alias="PROBE_ADDEND")
    failure_policy: FailurePolicy = Field("tolerant", alias="FAILURE_POLICY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("raw_wrong_column")
    @classmethod
    def _check_wrong_column(cls, value: str) -> str:
        return validate_identifier(value)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "BindingMode",
    "FailurePolicy",
    "NullPolicy",
    "Settings",
    "get_settings",
    "validate_identifier",
]
