"""Resolve upload configuration from a config file, environment, and overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from movie_uploader.config_manager.upload_config import UploadConfig
from movie_uploader.const import CONFIG_DIR, CONFIG_ENV_VAR, CONFIG_FILE
from movie_uploader.exceptions import ConfigError

logger = logging.getLogger(__name__)

_ENV_MAP: dict[str, str] = {
    "base_url": "MOVIE_UPLOAD_BASE_URL",
    "chunk_size": "MOVIE_UPLOAD_CHUNK_SIZE",
    "max_concurrent_chunks": "MOVIE_UPLOAD_MAX_CONCURRENT_CHUNKS",
    "chunk_retries": "MOVIE_UPLOAD_CHUNK_RETRIES",
    "retry_delay": "MOVIE_UPLOAD_RETRY_DELAY",
    "retry_max_delay": "MOVIE_UPLOAD_RETRY_MAX_DELAY",
    "request_timeout": "MOVIE_UPLOAD_REQUEST_TIMEOUT",
    "monitor_max_attempts": "MOVIE_UPLOAD_MONITOR_MAX_ATTEMPTS",
    "monitor_interval": "MOVIE_UPLOAD_MONITOR_INTERVAL",
    "monitor_error_delay": "MOVIE_UPLOAD_MONITOR_ERROR_DELAY",
}


class ConfigManager:
    """Build the effective upload configuration.

    Sources are applied in increasing priority: model defaults, the YAML
    config file, ``MOVIE_UPLOAD_*`` environment variables, then explicit
    overrides passed by the caller (typically CLI options).
    """

    def __init__(self, config_path: Path | str | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            config_path: YAML file to read. Defaults to ``$MOVIE_UPLOAD_CONFIG``
                or ``~/.movie_uploader/config.yaml``.
        """
        if config_path is None:
            env_path = os.getenv(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else CONFIG_DIR / CONFIG_FILE
        self.config_path = Path(config_path)

    def _read_file(self) -> dict[str, Any]:
        """Read configuration values from the YAML config file.

        Returns:
            Mapping of field names to values; empty when the file is missing.

        Raises:
            ConfigError: If the file exists but is not a YAML mapping.
        """
        if not self.config_path.exists():
            return {}

        try:
            with self.config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read {self.config_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must be a mapping")
        logger.debug("Loaded upload config from %s", self.config_path)
        return data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read configuration overrides from environment variables.

        Values stay strings; pydantic coerces them on validation.
        """
        overrides: dict[str, Any] = {}
        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None or env_value == "":
                continue
            overrides[field_name] = env_value
        return overrides

    def resolve_effective_config(
        self, overrides: dict[str, Any] | None = None
    ) -> UploadConfig:
        """Resolve the effective configuration for this run.

        Args:
            overrides: Explicit values; ``None`` entries are ignored.

        Returns:
            The validated ``UploadConfig``.

        Raises:
            ConfigError: If any source holds an invalid value.
        """
        merged: dict[str, Any] = {}
        merged.update(self._read_file())
        merged.update(self._read_env_overrides())
        if overrides:
            merged.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return UploadConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid upload configuration: {e}") from e


def load_config(
    config_path: Path | str | None = None, **overrides: Any
) -> UploadConfig:
    """Resolve configuration with the default sources.

    Args:
        config_path: Optional YAML config file path.
        **overrides: Explicit field values taking precedence over everything.

    Returns:
        The validated ``UploadConfig``.
    """
    return ConfigManager(config_path).resolve_effective_config(overrides)
