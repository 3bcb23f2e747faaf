"""Runtime settings read from ``CLINICALC_*`` environment variables."""

from __future__ import annotations

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigError

ENV_PREFIX = "CLINICALC_"

_ENV_FIELDS = {
    "AUTHORITY": "authority",
    "AUTHORITY_URL": "authority_url",
    "AUTHORITY_ATTEMPTS": "authority_attempts",
    "DEFAULT_TIMEOUT_MS": "default_timeout_ms",
    "DEFAULT_TOLERANCE_PCT": "default_tolerance_pct",
    "DEFAULT_PRECISION": "default_precision",
    "POLICY_FILE": "policy_file",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    authority: Literal["reference", "remote", "chain", "none"] = "reference"
    authority_url: Optional[str] = None
    authority_attempts: int = Field(default=2, ge=1)
    default_timeout_ms: int = Field(default=2000, gt=0)
    default_tolerance_pct: float = Field(default=1.0, ge=0)
    default_precision: int = Field(default=2, ge=0, le=10)
    policy_file: Optional[str] = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @model_validator(mode="after")
    def _remote_needs_url(self) -> "Settings":
        if self.authority in ("remote", "chain") and not self.authority_url:
            raise ValueError(f"{ENV_PREFIX}AUTHORITY={self.authority} requires {ENV_PREFIX}AUTHORITY_URL")
        return self


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (``os.environ`` by default).

    Unset and empty variables fall back to the field defaults.
    """
    env = os.environ if environ is None else environ
    values = {}
    for suffix, field in _ENV_FIELDS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is None or not raw.strip():
            continue
        raw = raw.strip()
        values[field] = raw.upper() if field == "log_level" else (raw.lower() if field == "authority" else raw)
    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"invalid clinicalc settings: {e}") from e
