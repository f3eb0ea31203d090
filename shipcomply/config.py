"""
Runtime configuration.

Settings are read from environment variables, optionally loaded from a
.env file first. Every key has a default suitable for local use with the
in-memory store and the classifier disabled.
"""

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

TRUE_VALUES = ("1", "true", "yes", "on")


class Settings(BaseModel):
    """
    shipcomply runtime settings.

    Environment variables:
        STORE_BACKEND: "memory" or "postgres"
        DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD: PostgreSQL connection
        DB_TIMEOUT_SECONDS: Connect, pool-acquire and statement timeout
        CLASSIFIER_ENABLED: Enable the HTTP semantic classifier
        CLASSIFIER_URL, CLASSIFIER_MODEL, CLASSIFIER_API_KEY: Classifier endpoint
        CLASSIFIER_TIMEOUT_SECONDS: Classifier request timeout
        EVALUATION_TIMEOUT_SECONDS: Per-shipment timeout in batch checks
        LOG_LEVEL, LOG_FORMAT: Logging configuration
    """

    store_backend: Literal["memory", "postgres"] = "memory"

    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "compliance"
    db_user: str = "compliance"
    db_password: str | None = None
    db_timeout_seconds: float = Field(10.0, gt=0)

    classifier_enabled: bool = False
    classifier_url: str = "https://generativelanguage.googleapis.com/v1beta"
    classifier_model: str = "gemini-2.0-flash"
    classifier_api_key: str | None = None
    classifier_timeout_seconds: float = Field(10.0, gt=0)

    evaluation_timeout_seconds: float = Field(30.0, gt=0)

    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("store_backend", "log_format", mode="before")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def uppercase_level(cls, v: str) -> str:
        return v.strip().upper()


# Settings field -> environment variable
ENV_KEYS = {name: name.upper() for name in Settings.model_fields}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def load_settings(env_file: str | Path | None = None, **overrides) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: .env file to load first; ".env" in the working directory
            is used when present and no file is given. Variables already set
            in the environment win.
        **overrides: Explicit values that win over the environment

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a value is invalid
    """
    if env_file is not None:
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(".env")

    values: dict[str, object] = {}
    for name, env_key in ENV_KEYS.items():
        raw = os.getenv(env_key)
        if raw is None or raw == "":
            continue
        values[name] = _parse_bool(raw) if name == "classifier_enabled" else raw

    values.update(overrides)
    return Settings.model_validate(values)
