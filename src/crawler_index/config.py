"""Connection and session settings."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from crawler_index.domain import BackendName

_ENV_PREFIX = "CRAWLER_INDEX_"
DEFAULT_BACKEND_URL = "http://localhost:9200"


def env_bool(name: str, *, default_value: bool) -> bool:
    """Read a boolean value from environment variables.

    Args:
        name (str): Environment variable name.
        default_value (bool): Fallback value when missing or invalid.

    Returns:
        bool: Parsed boolean value.

    """
    raw = os.getenv(name)
    if raw is None:
        return default_value
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default_value


class EngineSettings(BaseModel):
    """Settings used to open an engine session."""

    backend: BackendName = BackendName.ELASTICSEARCH
    url: str = DEFAULT_BACKEND_URL
    timeout_s: float = Field(default=30.0, gt=0)
    verify_certs: bool = True
    health_timeout_s: float = Field(default=30.0, ge=0)
    health_poll_initial_s: float = Field(default=0.1, gt=0)
    health_poll_max_s: float = Field(default=2.0, gt=0)
    legacy_document_type: str = "doc"

    @classmethod
    def from_env(cls, prefix: str = _ENV_PREFIX) -> EngineSettings:
        """Build settings from `CRAWLER_INDEX_*` environment variables.

        Args:
            prefix (str): Environment variable prefix.

        Returns:
            EngineSettings: Settings with environment overrides applied.

        """
        defaults = cls()
        values: dict[str, object] = {
            "verify_certs": env_bool(f"{prefix}VERIFY_CERTS", default_value=defaults.verify_certs),
        }
        for field_name in (
            "backend",
            "url",
            "timeout_s",
            "health_timeout_s",
            "health_poll_initial_s",
            "health_poll_max_s",
            "legacy_document_type",
        ):
            raw = os.getenv(f"{prefix}{field_name.upper()}")
            if raw is not None and raw.strip():
                values[field_name] = raw.strip()
        return cls.model_validate(values)
