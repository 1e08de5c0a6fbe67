"""
Engine configuration.

Loaded from an optional YAML file (``VOICERULES_CONFIG``) and then
overridden by environment variables. Validated with pydantic so a bad
value fails at startup with the offending field named.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field

from voicerules.core.domain.errors import ConfigurationError

logger = structlog.get_logger(__name__)

ENV_OVERRIDES = {
    "VOICERULES_DATA_DIR": "data_dir",
    "REMOTE_EXECUTOR_PORT": "executor_port",
    "ADMIN_PORT": "admin_port",
    "VOICERULES_SETTLE_DELAY": "settle_delay_seconds",
    "LOGLEVEL": "log_level",
}


class EngineConfig(BaseModel):
    """Runtime configuration for the engine and its services."""

    model_config = ConfigDict(extra="forbid")

    data_dir: str = Field(".voicerules", description="Directory holding rules and settings")
    executor_host: str = Field("0.0.0.0", description="Execution service bind address")
    executor_port: int = Field(3001, ge=1, le=65535)
    admin_host: str = Field("127.0.0.1", description="Admin API bind address")
    admin_port: int = Field(3000, ge=1, le=65535)
    settle_delay_seconds: float = Field(
        2.0, ge=0, description="Pause between interrupting playback and new audio"
    )
    api_timeout_seconds: float = Field(30.0, gt=0)
    log_level: str = Field("INFO")


def load_config(
    path: Optional[str] = None, env: Optional[dict[str, str]] = None
) -> EngineConfig:
    """Load configuration from YAML and the environment.

    Args:
        path: YAML file path; defaults to ``VOICERULES_CONFIG`` if set.
        env: Environment mapping, ``os.environ`` by default.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: If the file is missing or a value is invalid.
    """
    env = dict(os.environ if env is None else env)
    path = path or env.get("VOICERULES_CONFIG")

    data: dict[str, Any] = {}
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Config file not found: {path}", details={"path": path}
            )
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Config file must contain a mapping", details={"path": path}
            )

    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            data[key] = env[var]

    try:
        config = EngineConfig(**data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.debug("config.loaded", source=path or "defaults", data_dir=config.data_dir)
    return config
