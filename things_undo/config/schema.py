"""
Configuration Schema
~~~~~~~~~~~~~~~~~~~~

Pydantic models for validating things-undo configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "UndoConfig",
    "RateLimitConfig",
    "StorageConfig",
    "DispatchConfig",
    "SidecarConfig",
]


class RateLimitConfig(BaseModel):
    """Sliding-window budget for outbound URL commands."""

    max_calls: int = Field(default=250, ge=1)
    window_ms: int = Field(default=10_000, ge=1)


class StorageConfig(BaseModel):
    """Snapshot database settings."""

    db_path: str | None = None
    retention_days: int = Field(default=30, ge=0)


class DispatchConfig(BaseModel):
    """How URL commands reach Things."""

    open_command: list[str] = Field(default_factory=lambda: ["open", "-g"])
    timeout_seconds: float = Field(default=10.0, gt=0)
    dry_run: bool = False
    auth_token: str | None = None

    @field_validator("open_command")
    @classmethod
    def validate_open_command(cls, v: list[str]) -> list[str]:
        """The command needs at least a program name."""
        if not v or not v[0].strip():
            raise ValueError("open_command must name a program")
        return v


class SidecarConfig(BaseModel):
    """HTTP ledger API settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)


class UndoConfig(BaseModel):
    """
    Root configuration model for things-undo.

    Validated on load with clear error messages for invalid values.
    """

    version: str = "1.0"
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    sidecar: SidecarConfig = Field(default_factory=SidecarConfig)
