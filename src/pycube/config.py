"""
Process-wide configuration for pycube.

Uses Pydantic BaseSettings for environment variable integration and
validation.  The most important setting is ``typecheck``: the global
enforcement flag that decides whether call-time argument/return checks
are ever installed.  It is resolved once, at the first composition step,
and not changed afterwards.

Configuration sources (in order of precedence):
1. Explicit ``configure()`` arguments
2. Environment variables (PYCUBE_*)
3. .env file
4. Default values

Example:
    from pycube.config import configure, get_config

    # At startup, before any interface is attached
    configure(typecheck=True)

    get_config().typecheck  # True

    # Or from the environment
    export PYCUBE_TYPECHECK=1
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pycube.errors import ConfigurationError

logger = logging.getLogger(__name__)


class CubeConfig(BaseSettings):
    """
    Central configuration for pycube.

    All settings can be overridden via environment variables
    prefixed with PYCUBE_.

    Example:
        export PYCUBE_TYPECHECK=1
        export PYCUBE_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="PYCUBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    typecheck: bool = Field(
        default=False,
        description="Install call-time argument/return type checks on guarded methods",
    )
    emit_events: bool = Field(
        default=True,
        description="Emit OTel span events for attachments and violations",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Logging level used by the pycube CLI",
    )


_config: Optional[CubeConfig] = None


def configure(**overrides: Any) -> CubeConfig:
    """Initialize the process configuration explicitly.

    Must be called at most once, before the first composition step.

    Raises:
        ConfigurationError: If the configuration was already initialized
            (explicitly or lazily by ``get_config()``).
    """
    global _config
    if _config is not None:
        raise ConfigurationError(
            "pycube configuration is already initialized; "
            "configure() must run once, before any composition"
        )
    _config = CubeConfig(**overrides)
    logger.debug(
        "pycube configured: typecheck=%s emit_events=%s",
        _config.typecheck,
        _config.emit_events,
    )
    return _config


def get_config() -> CubeConfig:
    """Return the process configuration, reading the environment on first use."""
    global _config
    if _config is None:
        _config = CubeConfig()
    return _config


def reset_config() -> None:
    """Forget the current configuration (useful in tests)."""
    global _config
    _config = None
