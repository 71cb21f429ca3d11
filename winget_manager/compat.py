#!/usr/bin/env python3
"""
Deprecated property names kept for callers written against older releases.

Each alias forwards to the current field; nothing is stored twice.
"""

from __future__ import annotations

import warnings
from typing import Any


class DeprecatedAlias:
    """Descriptor that forwards an old attribute name to its replacement."""

    def __init__(self, target: str) -> None:
        self.target = target
        self.name = target

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _warn(self) -> None:
        warnings.warn(
            f'The property "{self.name}" is deprecated, please use "{self.target}" instead.',
            DeprecationWarning,
            stacklevel=3,
        )

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        self._warn()
        return getattr(instance, self.target)

    def __set__(self, instance: Any, value: Any) -> None:
        self._warn()
        setattr(instance, self.target, value)


__all__ = ["DeprecatedAlias"]
