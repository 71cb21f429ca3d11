#!/usr/bin/env python3
"""
Writing captured winget output to files.

The output sink performs no parsing of its own and writes the captured
stdout as it was received. Callers that want progress noise removed pass
already filtered text to `export_text_to_file`. File system errors
propagate to the caller.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Union

import aiofiles
from loguru import logger

from .models import ProcessResult

PathLike = Union[str, Path]


def export_output_to_string(result: ProcessResult) -> str:
    """Return the captured stdout unchanged, lines joined with newlines."""
    return result.output_text


def _target(file_path: PathLike | None) -> Path | None:
    if file_path is None or not str(file_path).strip():
        return None
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def export_text_to_file(text: str, file_path: PathLike | None) -> bool:
    """
    Write text to a file as UTF-8.

    Args:
        text: The text to write.
        file_path: Destination file; parent directories are created.

    Returns:
        False if no destination was given, True once the file is written.

    Raises:
        OSError: If the file cannot be written.
    """
    path = _target(file_path)
    if path is None:
        return False

    with open(path, "w", encoding="utf-8") as f:
        f.write(text)

    logger.debug(f"Wrote {len(text)} characters to {path}")
    return True


async def export_text_to_file_async(text: str, file_path: PathLike | None) -> bool:
    """Asynchronously write text to a file as UTF-8."""
    path = _target(file_path)
    if path is None:
        return False

    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(text)

    logger.debug(f"Wrote {len(text)} characters to {path}")
    return True


def export_output_to_file(result: ProcessResult, file_path: PathLike | None) -> bool:
    """
    Write the raw captured output to a file.

    Returns:
        False if no destination was given, True once the file is written.

    Raises:
        OSError: If the file cannot be written.
    """
    logger.debug(f"Exporting output of {' '.join(result.command)}")
    return export_text_to_file(export_output_to_string(result), file_path)


async def export_output_to_file_async(result: ProcessResult, file_path: PathLike | None) -> bool:
    """Asynchronously write the raw captured output to a file."""
    logger.debug(f"Exporting output of {' '.join(result.command)}")
    return await export_text_to_file_async(export_output_to_string(result), file_path)


def export_records_to_file(records: Iterable, file_path: PathLike | None) -> bool:
    """Write parsed records to a file as a JSON list."""
    path = _target(file_path)
    if path is None:
        return False

    with open(path, "w", encoding="utf-8") as f:
        json.dump([record.to_dict() for record in records], f, indent=2, ensure_ascii=False)

    logger.debug(f"Exported records to {path}")
    return True
