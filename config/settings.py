"""BridgeSettings model."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import DEFAULT_SETTINGS, LOG_LEVELS


class BridgeSettings(BaseModel):
    """Runtime settings for one bridge process."""

    model_config = ConfigDict(extra="ignore")

    workspace: Path = Field(
        default_factory=Path.cwd,
        description="Workspace root the language server indexes",
    )
    language_server: str = Field(
        default=DEFAULT_SETTINGS["language_server"],
        min_length=1,
        description="Language server executable",
    )
    language_server_args: list[str] = Field(
        default_factory=list,
        description="Arguments passed to the language server",
    )
    init_timeout: float = Field(
        default=DEFAULT_SETTINGS["init_timeout"],
        gt=0,
        description="Seconds to wait for the initialize response",
    )
    request_timeout: float = Field(
        default=DEFAULT_SETTINGS["request_timeout"],
        gt=0,
        description="Seconds to wait for each navigation request",
    )
    context_lines: int = Field(
        default=DEFAULT_SETTINGS["context_lines"],
        ge=0,
        description="Source lines shown on each side of a location",
    )
    log_level: str = Field(
        default=DEFAULT_SETTINGS["log_level"],
        description="Logging level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        level = {"WARN": "WARNING", "TRACE": "DEBUG"}.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
