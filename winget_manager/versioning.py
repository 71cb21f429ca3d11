#!/usr/bin/env python3
"""
Version handling for the winget self-reported version string.

`winget --version` prints something like ``v1.6.2771-preview``. The
version is used for feature gating, so an unknown or unparsable version
is treated as the oldest possible one instead of an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

_TRIPLE_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class Version:
    """A (major, minor, patch) version triple."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def zero(cls) -> Version:
        return cls(0, 0, 0)

    @property
    def is_zero(self) -> bool:
        return self == Version.zero()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_dict(self) -> dict[str, int]:
        return {"major": self.major, "minor": self.minor, "patch": self.patch}


def parse_version(raw_version_line: Optional[str]) -> Version:
    """
    Parse a winget version line into a Version.

    A leading non-digit prefix marker (``v``) is removed and everything
    from the first ``-`` on (pre-release or build tag) is dropped. The
    remainder has to be a dotted numeric triple.

    Args:
        raw_version_line: The version line as printed by winget.

    Returns:
        Version: The parsed version, or 0.0.0 if the line is not recognized.

    Example:
        >>> parse_version("v1.6.2771-preview")
        Version(major=1, minor=6, patch=2771)
    """
    if not raw_version_line:
        return Version.zero()

    version_string = raw_version_line.strip()
    if version_string and not version_string[0].isdigit():
        version_string = version_string[1:].strip()

    version_string = version_string.split("-", 1)[0]

    match = _TRIPLE_PATTERN.match(version_string)
    if not match:
        return Version.zero()
    return Version(*(int(part) for part in match.groups()))


def find_version_line(lines: Iterable[str]) -> str:
    """Return the first output line that starts with ``v``, trimmed, or ``""``."""
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("v"):
            return stripped
    return ""
