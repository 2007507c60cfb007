"""Cache settings loaded from the environment (and an optional ``.env`` file)."""

from __future__ import annotations

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.errors import InvalidArgumentError

ELAPSED_FRACTIONAL = "fractional"
ELAPSED_WHOLE_SECONDS = "whole_seconds"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"]

load_dotenv()

ENV_VARS = {
    "sweep_interval_seconds": "KVCACHE_SWEEP_INTERVAL_SECONDS",
    "sweep_workers": "KVCACHE_SWEEP_WORKERS",
    "parallel_scan_threshold": "KVCACHE_PARALLEL_SCAN_THRESHOLD",
    "elapsed_precision": "KVCACHE_ELAPSED_PRECISION",
    "log_level": "LOG_LEVEL",
}


class CacheSettings(BaseModel):
    """Tunables for a cache instance and its sweeper."""
    sweep_interval_seconds: float = Field(
        default=10.0, gt=0, description="Pause between two sweep cycles."
    )
    sweep_workers: int = Field(
        default=4, ge=1, description="Threads used to scan large snapshots."
    )
    parallel_scan_threshold: int = Field(
        default=256,
        ge=1,
        description="Snapshot size from which the scan is split across workers; smaller snapshots are scanned inline.",
    )
    elapsed_precision: Literal["fractional", "whole_seconds"] = Field(
        default=ELAPSED_FRACTIONAL,
        description="fractional compares exact elapsed time; whole_seconds floors it first.",
    )
    log_level: LogLevel = Field(default="INFO")

    @field_validator("elapsed_precision", mode="before")
    @classmethod
    def _normalize_precision(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def truncate_elapsed(self) -> bool:
        return self.elapsed_precision == ELAPSED_WHOLE_SECONDS

    @classmethod
    def from_env(cls) -> "CacheSettings":
        values = {}
        for field_name, env_var in ENV_VARS.items():
            raw = os.getenv(env_var)
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        try:
            return cls(**values)
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
            raise InvalidArgumentError(
                f"Invalid cache settings: {fields or exc}", argument=fields or None
            ) from exc
