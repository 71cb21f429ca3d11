#!/usr/bin/env python3
"""
Exception types for the winget manager.

Only two errors ever reach the caller of a winget operation:
ToolNotFoundError when the executable cannot be launched, and
ActionFailedError for everything else, with the original cause attached.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from loguru import logger


class WinGetError(Exception):
    """Base exception for all winget-related errors with structured context."""

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        original_error: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.original_error = original_error
        self.context = context

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.original_error is not None:
            parts.append(f"Cause: {self.original_error!r}")
        return " | ".join(parts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.args[0]!r}, error_code={self.error_code!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self.args[0]) if self.args else "",
            "error_code": self.error_code,
            "original_error": repr(self.original_error) if self.original_error else None,
            "context": self.context,
        }


class ToolNotFoundError(WinGetError):
    """Raised when the winget executable is not installed or not on the PATH."""

    def __init__(
        self,
        executable: str = "winget",
        *,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.executable = executable
        super().__init__(
            f"'{executable}' is not installed or could not be found on the system",
            error_code="WINGET_NOT_INSTALLED",
            original_error=original_error,
            executable=executable,
        )


class ActionFailedError(WinGetError):
    """Raised when a winget action fails for an unexpected reason."""

    def __init__(
        self,
        action: str,
        *,
        original_error: Optional[BaseException] = None,
        **context: Any,
    ) -> None:
        self.action = action
        super().__init__(
            action,
            error_code="WINGET_ACTION_FAILED",
            original_error=original_error,
            **context,
        )


class ConfigError(WinGetError):
    """Raised when a configuration file is missing, unreadable or invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_file: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.config_file = config_file
        super().__init__(
            message,
            error_code="CONFIG_ERROR",
            original_error=original_error,
            config_file=config_file,
        )


@contextmanager
def action_guard(action: str) -> Generator[None, None, None]:
    """
    Wrap unexpected failures of a winget action into ActionFailedError.

    WinGetError subclasses pass through unchanged.

    Example:
        >>> with action_guard("Exporting settings"):
        ...     result = runner.execute("winget", ["settings", "export"])
    """
    try:
        yield
    except WinGetError:
        raise
    except Exception as e:
        logger.error(f"{action} failed: {e!r}")
        raise ActionFailedError(f"{action} failed.", original_error=e) from e


__all__ = [
    "action_guard",
    "WinGetError",
    "ToolNotFoundError",
    "ActionFailedError",
    "ConfigError",
]
