#!/usr/bin/env python3
"""
Process execution for the winget command line.

`ProcessRunner.execute` blocks until winget exits, `execute_async` awaits
it without blocking the event loop. Both capture the complete stdout and
stderr as line sequences plus the exit code and share the same argument
handling, decoding and error mapping.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import shlex
import shutil
import subprocess
from typing import Optional, Sequence, Union

from loguru import logger

from .config import WinGetConfig
from .exceptions import ActionFailedError, ToolNotFoundError, WinGetError
from .models import ProcessResult

Arguments = Union[str, Sequence[str], None]

# Errors raised by the OS when the executable cannot be started at all
_LAUNCH_ERRORS = (FileNotFoundError, PermissionError, NotADirectoryError)

# How long a killed child may take to release its pipes
_KILL_WAIT_SECONDS = 5.0


class ProcessRunner:
    """
    Spawns winget once per call and captures its output.

    A non-zero exit code is returned as data in `ProcessResult.exit_code`;
    winget uses it for "no results" as well as for real failures, so only
    the caller can interpret it. No call is ever retried.
    """

    def __init__(self, config: Optional[WinGetConfig] = None) -> None:
        self.config = config or WinGetConfig()

    def is_available(self, command: Optional[str] = None) -> bool:
        """Check if the executable can be found on the PATH."""
        return shutil.which(command or self.config.executable) is not None

    def execute(self, command: Optional[str], arguments: Arguments = None) -> ProcessResult:
        """
        Run the command and wait for it to finish.

        Args:
            command: Executable name or path; the configured executable if None.
            arguments: Argument list, or a single string split shell-style.

        Returns:
            ProcessResult with stdout/stderr lines and the exit code.

        Raises:
            ToolNotFoundError: If the executable cannot be located or launched.
            ActionFailedError: For any other failure while spawning or capturing.
        """
        argv = self._build_command(command, arguments)
        logger.debug(f"Executing command: {shlex.join(argv)}")

        try:
            process = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                env=self._build_environment(),
                timeout=self.config.timeout,
                creationflags=_creation_flags(),
            )
            return self._build_result(argv, process.stdout, process.stderr, process.returncode)
        except Exception as e:
            raise self._translate_error(argv, e) from e

    async def execute_async(self, command: Optional[str], arguments: Arguments = None) -> ProcessResult:
        """
        Run the command without blocking the event loop.

        The result is delivered once the process has exited. Cancelling the
        awaiting task kills the child process before the cancellation
        propagates.

        Raises:
            ToolNotFoundError: If the executable cannot be located or launched.
            ActionFailedError: For any other failure while spawning or capturing.
        """
        argv = self._build_command(command, arguments)
        logger.debug(f"Executing command asynchronously: {shlex.join(argv)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._build_environment(),
                creationflags=_creation_flags(),
            )
        except Exception as e:
            raise self._translate_error(argv, e) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.config.timeout
            )
        except asyncio.CancelledError:
            logger.debug(f"Cancelled, terminating: {shlex.join(argv)}")
            await _terminate(process)
            raise
        except asyncio.TimeoutError as e:
            await _terminate(process)
            raise self._translate_error(
                argv, subprocess.TimeoutExpired(argv, self.config.timeout)
            ) from e
        except Exception as e:
            await _terminate(process)
            raise self._translate_error(argv, e) from e

        return_code = process.returncode if process.returncode is not None else -1
        try:
            return self._build_result(argv, stdout, stderr, return_code)
        except Exception as e:
            raise self._translate_error(argv, e) from e

    def _build_command(self, command: Optional[str], arguments: Arguments) -> list[str]:
        executable = command or self.config.executable
        if arguments is None:
            args: list[str] = []
        elif isinstance(arguments, str):
            args = shlex.split(arguments)
        else:
            args = [str(arg) for arg in arguments]
        return [executable, *args]

    def _build_environment(self) -> Optional[dict[str, str]]:
        if not self.config.env:
            return None
        env = os.environ.copy()
        env.update(self.config.env)
        return env

    def _decode(self, data: Optional[bytes]) -> list[str]:
        if not data:
            return []
        return data.decode(self.config.encoding, errors="replace").splitlines()

    def _build_result(
        self,
        argv: list[str],
        stdout: Optional[bytes],
        stderr: Optional[bytes],
        return_code: int,
    ) -> ProcessResult:
        result = ProcessResult(
            output_lines=self._decode(stdout),
            error_lines=self._decode(stderr),
            exit_code=return_code,
            command=argv,
        )
        if result.success:
            logger.debug(f"Command {shlex.join(argv)} finished with {len(result.output_lines)} output lines")
        else:
            # winget reports HRESULT style codes
            logger.debug(
                f"Command {shlex.join(argv)} exited with code {return_code} "
                f"(0x{return_code & 0xFFFFFFFF:08X})"
            )
        return result

    def _translate_error(self, argv: list[str], error: BaseException) -> WinGetError:
        if isinstance(error, _LAUNCH_ERRORS):
            logger.error(f"Executable not found: {argv[0]} ({error})")
            return ToolNotFoundError(argv[0], original_error=error)
        logger.error(f"Exception executing command {shlex.join(argv)}: {error!r}")
        return ActionFailedError(
            f"Failed to execute command: {shlex.join(argv)}",
            original_error=error,
            command=argv,
        )


def _creation_flags() -> int:
    # Keeps a console window from flashing up on Windows; 0 elsewhere
    return getattr(subprocess, "CREATE_NO_WINDOW", 0)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    try:
        await asyncio.wait_for(process.wait(), timeout=_KILL_WAIT_SECONDS)
    except asyncio.TimeoutError:
        # A grandchild can keep the pipes open after winget itself is gone
        logger.warning(f"Killed process did not finish within {_KILL_WAIT_SECONDS}s, leaving it behind")


__all__ = ["ProcessRunner", "Arguments"]
