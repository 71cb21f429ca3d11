#!/usr/bin/env python3
"""
Source operations on top of the winget runner and parser.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, cast

from loguru import logger

from .exceptions import action_guard
from .export import PathLike, export_text_to_file, export_text_to_file_async
from .info import WinGetInfo
from .models import ProcessResult, RecordKind, Source
from .parser import clean_line


class WinGetSourceManager(WinGetInfo):
    """
    List, add, remove, update, reset and export winget sources.

    Adding, removing and resetting sources usually needs an elevated process.
    """

    @staticmethod
    def _export_args(name: Optional[str]) -> List[str]:
        args = ["source", "export"]
        if name:
            args += ["--name", name]
        return args

    def _add_args(self, name: str, arg: str, source_type: Optional[str]) -> List[str]:
        args = ["source", "add", "--name", name, "--arg", arg]
        if source_type:
            args += ["--type", source_type]
        return args + self._source_agreement()

    def _sources(self, result: ProcessResult, name: Optional[str]) -> List[Source]:
        sources = cast(List[Source], self._parser.parse(result, RecordKind.SOURCE))
        if name:
            sources = [s for s in sources if s.name.casefold() == name.casefold()]
        return sources

    def get_installed_sources(self, name: Optional[str] = None) -> List[Source]:
        """
        List the configured sources.

        Args:
            name: Only return the source with this name.
        """
        with action_guard("Listing sources"):
            return self._sources(self._execute(["source", "list"]), name)

    async def get_installed_sources_async(self, name: Optional[str] = None) -> List[Source]:
        with action_guard("Listing sources"):
            return self._sources(await self._execute_async(["source", "list"]), name)

    def add_source(self, name: str, arg: str, source_type: Optional[str] = None) -> bool:
        """
        Add a new source.

        Args:
            name: Name of the new source.
            arg: URL or UNC path of the source.
            source_type: Source type, e.g. ``Microsoft.PreIndexed.Package``.
        """
        with action_guard("Adding source"):
            return self._succeeded(f"Adding source {name}", self._execute(self._add_args(name, arg, source_type)))

    async def add_source_async(self, name: str, arg: str, source_type: Optional[str] = None) -> bool:
        with action_guard("Adding source"):
            result = await self._execute_async(self._add_args(name, arg, source_type))
            return self._succeeded(f"Adding source {name}", result)

    def remove_source(self, name: str) -> bool:
        """Remove a source by name."""
        with action_guard("Removing source"):
            result = self._execute(["source", "remove", "--name", name])
            return self._succeeded(f"Removing source {name}", result)

    async def remove_source_async(self, name: str) -> bool:
        with action_guard("Removing source"):
            result = await self._execute_async(["source", "remove", "--name", name])
            return self._succeeded(f"Removing source {name}", result)

    def update_sources(self) -> bool:
        """Update all sources."""
        with action_guard("Updating sources"):
            return self._succeeded("Updating sources", self._execute(["source", "update"]))

    async def update_sources_async(self) -> bool:
        with action_guard("Updating sources"):
            return self._succeeded("Updating sources", await self._execute_async(["source", "update"]))

    def reset_sources(self) -> bool:
        """Reset the sources to winget's defaults."""
        with action_guard("Resetting sources"):
            return self._succeeded("Resetting sources", self._execute(["source", "reset", "--force"]))

    async def reset_sources_async(self) -> bool:
        with action_guard("Resetting sources"):
            result = await self._execute_async(["source", "reset", "--force"])
            return self._succeeded("Resetting sources", result)

    def export_sources(self, name: Optional[str] = None) -> str:
        """Export sources as the JSON text winget prints."""
        with action_guard("Exporting sources"):
            return self._parser.parse_string(self._execute(self._export_args(name)))

    async def export_sources_async(self, name: Optional[str] = None) -> str:
        with action_guard("Exporting sources"):
            return self._parser.parse_string(await self._execute_async(self._export_args(name)))

    def export_sources_to_file(self, file_path: PathLike | None, name: Optional[str] = None) -> bool:
        """
        Export sources into a file.

        Returns:
            True if the file was written, False if no file was given.
        """
        if file_path is None or not str(file_path).strip():
            return False
        with action_guard("Exporting sources"):
            result = self._execute(self._export_args(name))
            return export_text_to_file(self._parser.parse_string(result), file_path)

    async def export_sources_to_file_async(
        self, file_path: PathLike | None, name: Optional[str] = None
    ) -> bool:
        if file_path is None or not str(file_path).strip():
            return False
        with action_guard("Exporting sources"):
            result = await self._execute_async(self._export_args(name))
            return await export_text_to_file_async(self._parser.parse_string(result), file_path)

    def export_sources_to_object(self, name: Optional[str] = None) -> List[Source]:
        """Export sources and decode winget's JSON into Source records."""
        with action_guard("Exporting sources"):
            return sources_from_export(self._execute(self._export_args(name)))

    async def export_sources_to_object_async(self, name: Optional[str] = None) -> List[Source]:
        with action_guard("Exporting sources"):
            return sources_from_export(await self._execute_async(self._export_args(name)))


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value)


def sources_from_export(result: ProcessResult) -> List[Source]:
    """
    Decode the output of ``winget source export``.

    winget prints one JSON object per source and line; lines that are not
    valid JSON objects are skipped.
    """
    sources: List[Source] = []
    for raw in result.output_lines:
        line = clean_line(raw).strip()
        if not line.startswith("{"):
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping undecodable source export line {line!r}: {e}")
            continue
        if not isinstance(data, dict):
            continue
        sources.append(
            Source(
                name=_as_text(data.get("Name")),
                arg=_as_text(data.get("Arg")),
                type=_as_text(data.get("Type")),
                identifier=_as_text(data.get("Identifier")),
                trust_level=_as_text(data.get("TrustLevel")),
                explicit=_as_text(data.get("Explicit")),
            )
        )
    return sources
