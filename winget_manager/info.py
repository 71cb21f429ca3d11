#!/usr/bin/env python3
"""
Information about the installed winget and its settings.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from .config import WinGetConfig
from .exceptions import ActionFailedError, WinGetError, action_guard
from .export import PathLike, export_text_to_file, export_text_to_file_async
from .models import ProcessResult
from .parser import OutputParser
from .runner import ProcessRunner
from .versioning import Version, find_version_line, parse_version

_VERSION_CMD = ["--version"]
_EXPORT_SETTINGS_CMD = ["settings", "export"]


class WinGetInfo:
    """
    Offers information about the installed winget version.

    Also the base of the package and source managers, which share its
    runner, parser and version checks.
    """

    def __init__(
        self,
        config: Optional[WinGetConfig] = None,
        runner: Optional[ProcessRunner] = None,
        parser: Optional[OutputParser] = None,
    ) -> None:
        self.config = config or WinGetConfig()
        self._runner = runner or ProcessRunner(self.config)
        self._parser = parser or OutputParser()
        logger.debug(f"{self.__class__.__name__} initialized with executable {self.config.executable}")

    def _execute(self, arguments: Sequence[str]) -> ProcessResult:
        return self._runner.execute(self.config.executable, list(arguments))

    async def _execute_async(self, arguments: Sequence[str]) -> ProcessResult:
        return await self._runner.execute_async(self.config.executable, list(arguments))

    def _source_agreement(self) -> List[str]:
        return ["--accept-source-agreements"] if self.config.accept_agreements else []

    @staticmethod
    def _succeeded(action: str, result: ProcessResult) -> bool:
        """Log the outcome of a changing command and return whether it exited with 0."""
        if result.success:
            logger.info(f"{action} succeeded")
        else:
            logger.warning(f"{action} failed with exit code {result.exit_code}")
            if result.error_lines:
                logger.debug(f"Error output: {result.error_text}")
        return result.success

    @property
    def winget_installed(self) -> bool:
        """Return True if winget can be run and reports a version."""
        return self._check_winget_version() != ""

    @property
    def winget_version(self) -> str:
        """The version line reported by winget, e.g. ``v1.6.2771``, or ``""``."""
        return self._check_winget_version()

    @property
    def winget_version_object(self) -> Version:
        """The installed version; 0.0.0 when winget is missing or unparsable."""
        return parse_version(self._check_winget_version())

    def _check_winget_version(self) -> str:
        try:
            result = self._execute(_VERSION_CMD)
        except WinGetError as e:
            logger.debug(f"winget version could not be determined: {e}")
            return ""
        return find_version_line(result.output_lines)

    async def get_winget_version_async(self) -> Version:
        """Asynchronously determine the installed version; 0.0.0 when unknown."""
        try:
            result = await self._execute_async(_VERSION_CMD)
        except WinGetError as e:
            logger.debug(f"winget version could not be determined: {e}")
            return Version.zero()
        return parse_version(find_version_line(result.output_lines))

    def version_is_match_or_above(self, major: int, minor: int = 0, patch: int = 0) -> bool:
        """
        Check if the installed winget version is the same or higher as the given version.

        Args:
            major: The major version.
            minor: The minor version.
            patch: The patch version.
        """
        return self.winget_version_object >= Version(major, minor, patch)

    # A missing winget surfaces as ToolNotFoundError here, not as a too old version
    def _require_version(self, feature: str, major: int, minor: int = 0) -> None:
        result = self._execute(_VERSION_CMD)
        installed = parse_version(find_version_line(result.output_lines))
        _check_required(feature, installed, Version(major, minor))

    async def _require_version_async(self, feature: str, major: int, minor: int = 0) -> None:
        result = await self._execute_async(_VERSION_CMD)
        installed = parse_version(find_version_line(result.output_lines))
        _check_required(feature, installed, Version(major, minor))

    def export_settings(self) -> str:
        """
        Exports the winget settings to a JSON string.

        Raises:
            ToolNotFoundError: winget is not installed or not found on the system.
            ActionFailedError: The action failed for an unexpected reason.
        """
        with action_guard("Exporting settings"):
            result = self._execute(_EXPORT_SETTINGS_CMD)
            return self._parser.parse_string(result)

    async def export_settings_async(self) -> str:
        """Asynchronous version of `export_settings`."""
        with action_guard("Exporting settings"):
            result = await self._execute_async(_EXPORT_SETTINGS_CMD)
            return self._parser.parse_string(result)

    def export_settings_to_file(self, file_path: PathLike | None) -> bool:
        """
        Exports the winget settings to a JSON file.

        Returns:
            True if the file was written, False if no file was given.
        """
        if file_path is None or not str(file_path).strip():
            return False
        with action_guard("Exporting settings"):
            result = self._execute(_EXPORT_SETTINGS_CMD)
            return export_text_to_file(self._parser.parse_string(result), file_path)

    async def export_settings_to_file_async(self, file_path: PathLike | None) -> bool:
        """Asynchronous version of `export_settings_to_file`."""
        if file_path is None or not str(file_path).strip():
            return False
        with action_guard("Exporting settings"):
            result = await self._execute_async(_EXPORT_SETTINGS_CMD)
            return await export_text_to_file_async(self._parser.parse_string(result), file_path)


def _check_required(feature: str, installed: Version, required: Version) -> None:
    if installed < required:
        raise ActionFailedError(
            f"{feature} requires winget {required.major}.{required.minor} or newer "
            f"(installed: {installed})",
            required_version=str(required),
            installed_version=str(installed),
        )
