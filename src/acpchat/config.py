"""Configuration for acpchat.

Settings come from environment variables (optionally a ``.env`` file) and
are validated by a pydantic model.

Environment variables:
    ACPCHAT_WSL_MODE: Convert paths for an agent running inside WSL (default: false)
    ACPCHAT_MAX_NOTE_LENGTH: Max characters of an attached note (default: 10000)
    ACPCHAT_MAX_SELECTION_LENGTH: Max characters of an attached selection (default: 10000)
    ACPCHAT_LOG_LEVEL: Log level (default: INFO)
    ACPCHAT_LOG_FORMAT: "console" or "json" (default: console)
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .messaging.models import SettingsContext

ENV_PREFIX = "ACPCHAT_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ChatSettings(BaseModel):
    """Effective acpchat settings."""

    windows_wsl_mode: bool = Field(default=False, description="Convert paths for WSL agents")
    max_note_length: int = Field(default=10000, ge=1, description="Max characters per note")
    max_selection_length: int = Field(default=10000, ge=1, description="Max characters per selection")
    log_level: str = Field(default="INFO", description="Log level name")
    log_format: Literal["console", "json"] = Field(default="console", description="Log renderer")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    def to_settings_context(self) -> SettingsContext:
        """Build the explicit settings context used by the send pipeline."""
        return SettingsContext(
            convert_to_wsl=self.windows_wsl_mode,
            max_note_length=self.max_note_length,
            max_selection_length=self.max_selection_length,
        )


def _env(name: str) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}")


def load_settings(dotenv: bool = True) -> ChatSettings:
    """Load settings from the environment.

    Args:
        dotenv: Also read a ``.env`` file from the working directory

    Returns:
        Validated ChatSettings

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    if dotenv:
        load_dotenv()

    values: dict[str, object] = {}

    wsl_mode = _env("WSL_MODE")
    if wsl_mode is not None:
        values["windows_wsl_mode"] = wsl_mode.strip().lower() in _TRUE_VALUES

    for field_name, env_name in (
        ("max_note_length", "MAX_NOTE_LENGTH"),
        ("max_selection_length", "MAX_SELECTION_LENGTH"),
        ("log_level", "LOG_LEVEL"),
        ("log_format", "LOG_FORMAT"),
    ):
        value = _env(env_name)
        if value is not None:
            values[field_name] = value.strip()

    return ChatSettings(**values)
