#!/usr/bin/env python3
"""
Configuration for the winget manager.

Every component works with the defaults; a JSON file or environment
variables can override them.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from .exceptions import ConfigError

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


@dataclass(slots=True)
class WinGetConfig:
    """Settings shared by the process runner and the manager facades."""

    executable: str = "winget"
    timeout: float | None = None
    encoding: str = "utf-8"
    env: dict[str, str] = field(default_factory=dict)
    accept_agreements: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.executable, str) or not self.executable.strip():
            raise ConfigError("'executable' must be a non-empty string")
        if self.timeout is not None:
            if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
                raise ConfigError("'timeout' must be a number of seconds or null")
            if self.timeout <= 0:
                raise ConfigError("'timeout' must be greater than zero")
        try:
            "".encode(self.encoding)
        except (LookupError, TypeError) as e:
            raise ConfigError(f"Unknown encoding: {self.encoding!r}", original_error=e) from e
        if not isinstance(self.env, dict):
            raise ConfigError("'env' must be a mapping of strings")
        self.env = {str(k): str(v) for k, v in self.env.items()}
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WinGetConfig:
        """
        Build a configuration from a mapping, ignoring unknown keys.

        Raises:
            ConfigError: If a known key has an invalid value.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}", original_error=e) from e

    @classmethod
    def load_from_file(cls, file_path: Path | str) -> WinGetConfig:
        """
        Load configuration from a JSON file.

        Args:
            file_path: Path to the configuration file.

        Returns:
            WinGetConfig: The loaded configuration.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid.
        """
        config_path = Path(file_path)

        if not config_path.is_file():
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                config_file=str(config_path),
            )

        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Invalid JSON in configuration file: {e}",
                config_file=str(config_path),
                original_error=e,
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(
                f"Failed to read configuration file: {e}",
                config_file=str(config_path),
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration file must contain a JSON object",
                config_file=str(config_path),
            )

        logger.debug(f"Loaded configuration from {config_path}")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, prefix: str = "WINGET_MANAGER_") -> WinGetConfig:
        """Build a configuration from environment variable overrides."""
        data: dict[str, Any] = {}
        if value := os.environ.get(f"{prefix}EXECUTABLE"):
            data["executable"] = value
        if value := os.environ.get(f"{prefix}TIMEOUT"):
            try:
                data["timeout"] = float(value)
            except ValueError as e:
                raise ConfigError(f"Invalid {prefix}TIMEOUT value: {value!r}", original_error=e) from e
        if value := os.environ.get(f"{prefix}ENCODING"):
            data["encoding"] = value
        if value := os.environ.get(f"{prefix}LOG_LEVEL"):
            data["log_level"] = value
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "executable": self.executable,
            "timeout": self.timeout,
            "encoding": self.encoding,
            "env": dict(self.env),
            "accept_agreements": self.accept_agreements,
            "log_level": self.log_level,
        }
