"""
Windows Package Manager (winget) adapter

Runs the winget command line, captures its output and decodes the human
formatted tables it prints into Package, PinnedPackage and Source records.
Every operation is available as a blocking call and as a coroutine.

This module can be used both as a command-line tool and as an API through
Python import.
"""

import platform

from .config import WinGetConfig
from .exceptions import ActionFailedError, ConfigError, ToolNotFoundError, WinGetError
from .export import (
    export_output_to_file,
    export_output_to_file_async,
    export_output_to_string,
    export_records_to_file,
    export_text_to_file,
    export_text_to_file_async,
)
from .info import WinGetInfo
from .logging_config import setup_logging
from .models import (
    Package,
    PinnedPackage,
    PinType,
    ProcessResult,
    RecordKind,
    Source,
    records_to_dicts,
)
from .package_manager import WinGetPackageManager
from .parser import ColumnLayout, OutputParser, parse_output, parse_string
from .runner import ProcessRunner
from .source_manager import WinGetSourceManager
from .versioning import Version, parse_version

__version__ = "1.0.0"
__author__ = "Max Qian"
__license__ = "GPL-3.0-or-later"


def _check_platform_support() -> bool:
    """Check if winget can run on the current platform (Windows only)."""
    return platform.system() == "Windows"


def get_tool_info() -> dict:
    """
    Get metadata information about the winget_manager module.

    Returns:
        dict: Module name, version, platform support, functions and classes.
    """
    return {
        "name": "winget_manager",
        "version": __version__,
        "description": "winget adapter that turns table output into typed records",
        "author": __author__,
        "license": __license__,
        "supported": _check_platform_support(),
        "platform": ["windows"],
        "functions": [
            "parse_output",
            "parse_string",
            "parse_version",
            "export_output_to_file",
            "export_output_to_file_async",
            "export_records_to_file",
            "export_text_to_file",
            "setup_logging",
            "get_tool_info",
        ],
        "requirements": ["loguru", "aiofiles", "winget"],
        "capabilities": [
            "Run winget with blocking or asynchronous calls",
            "Decode package, pin and source tables of any winget version",
            "Detect truncated package ids",
            "Gate pin and download commands on the installed winget version",
            "Export settings, sources and raw output to files",
        ],
        "classes": {
            "ProcessRunner": "Spawns winget and captures its output",
            "OutputParser": "Decodes winget tables into records",
            "WinGetPackageManager": "Search, install, upgrade, uninstall and pin packages",
            "WinGetSourceManager": "List, add, remove and export sources",
            "WinGetConfig": "Runner and manager settings",
        },
    }


__all__ = [
    "WinGetConfig",
    "WinGetError",
    "ToolNotFoundError",
    "ActionFailedError",
    "ConfigError",
    "ProcessRunner",
    "ProcessResult",
    "OutputParser",
    "ColumnLayout",
    "RecordKind",
    "Package",
    "PinnedPackage",
    "PinType",
    "Source",
    "Version",
    "WinGetInfo",
    "WinGetPackageManager",
    "WinGetSourceManager",
    "export_output_to_file",
    "export_output_to_file_async",
    "export_output_to_string",
    "export_records_to_file",
    "export_text_to_file",
    "export_text_to_file_async",
    "parse_output",
    "parse_string",
    "parse_version",
    "records_to_dicts",
    "setup_logging",
    "get_tool_info",
    "__version__",
]
