#!/usr/bin/env python3
"""
Data models for the winget manager.

Record fields are never None: a missing value is always stored as an
empty string, whether it arrives through the constructor or a later
assignment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Tuple

from .compat import DeprecatedAlias


class RecordKind(Enum):
    """Selects the table schema the output parser applies."""

    PACKAGE = "package"
    SOURCE = "source"
    PINNED_PACKAGE = "pinned_package"


class PinType(Enum):
    """How a pinned package's upgrades are restricted."""

    NONE = "None"
    BLOCKING = "Blocking"  # No upgrades at all
    PINNING = "Pinning"  # Upgrades limited to a version range

    @classmethod
    def from_string(cls, value: str | None) -> PinType:
        """Decode the pin type column as printed by winget."""
        match (value or "").strip().lower():
            case "blocking":
                return cls.BLOCKING
            case "pinning" | "gating":
                return cls.PINNING
            case _:
                return cls.NONE


@dataclass(frozen=True)
class ProcessResult:
    """Output of one winget invocation, captured after the process exited."""

    output_lines: Tuple[str, ...] = ()
    error_lines: Tuple[str, ...] = ()
    exit_code: int = 0
    command: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "output_lines", tuple(self.output_lines))
        object.__setattr__(self, "error_lines", tuple(self.error_lines))
        object.__setattr__(self, "command", tuple(self.command))

    @property
    def success(self) -> bool:
        """Return whether winget reported exit code 0."""
        return self.exit_code == 0

    @property
    def output_text(self) -> str:
        return "\n".join(self.output_lines)

    @property
    def error_text(self) -> str:
        return "\n".join(self.error_lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "command": list(self.command),
            "exit_code": self.exit_code,
            "success": self.success,
            "output_lines": list(self.output_lines),
            "error_lines": list(self.error_lines),
        }


class _Record:
    """Shared never-None string handling for parsed records."""

    _string_fields: ClassVar[Tuple[str, ...]] = ()

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._string_fields:
            value = "" if value is None else str(value)
        super().__setattr__(name, value)

    @property
    def is_empty(self) -> bool:
        """Return True if every string field is empty."""
        return all(not getattr(self, name) for name in self._string_fields)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self._string_fields}


@dataclass
class Package(_Record):
    """A winget package as listed by search, list or upgrade."""

    _string_fields: ClassVar[Tuple[str, ...]] = (
        "name",
        "id",
        "version",
        "available_version",
        "source_name",
    )

    name: str = ""
    id: str = ""
    version: str = ""
    available_version: str = ""
    source_name: str = ""
    has_shortened_id: bool = False

    package_name = DeprecatedAlias("name")
    package_id = DeprecatedAlias("id")
    package_version = DeprecatedAlias("version")
    package_available_version = DeprecatedAlias("available_version")
    package_source_name = DeprecatedAlias("source_name")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "has_shortened_id":
            if "has_shortened_id" in self.__dict__:
                raise AttributeError("has_shortened_id is read-only")
            value = bool(value)
        super().__setattr__(name, value)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["has_shortened_id"] = self.has_shortened_id
        return data


@dataclass
class PinnedPackage(Package):
    """A package entry of `winget pin list`."""

    _string_fields: ClassVar[Tuple[str, ...]] = Package._string_fields + ("pinned_version",)

    pin_type: PinType = PinType.NONE
    pinned_version: str = ""

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "pin_type" and not isinstance(value, PinType):
            value = PinType.from_string(value)
        super().__setattr__(name, value)

    @property
    def pin_type_string(self) -> str:
        return self.pin_type.value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["pin_type"] = self.pin_type_string
        return data


@dataclass
class Source(_Record):
    """A configured winget source."""

    _string_fields: ClassVar[Tuple[str, ...]] = (
        "name",
        "arg",
        "type",
        "identifier",
        "trust_level",
        "explicit",
    )

    name: str = ""
    arg: str = ""
    type: str = ""
    identifier: str = ""
    trust_level: str = ""
    explicit: str = ""

    source_name = DeprecatedAlias("name")
    source_url = DeprecatedAlias("arg")
    source_arg = DeprecatedAlias("arg")
    source_type = DeprecatedAlias("type")


def records_to_dicts(records: Iterable[_Record]) -> list[Dict[str, Any]]:
    """Convert parsed records for JSON output."""
    return [record.to_dict() for record in records]


__all__ = [
    "RecordKind",
    "PinType",
    "ProcessResult",
    "Package",
    "PinnedPackage",
    "Source",
    "records_to_dicts",
]
