"""Error hierarchy for :mod:`modscope`."""

from __future__ import annotations


class ModscopeError(Exception):
    """Base class for modscope-specific exceptions."""


class ArgumentError(ModscopeError, ValueError):
    """Raised when a required input is missing or empty."""


class NotFoundError(ModscopeError, LookupError):
    """Raised when a resource, module, class or member cannot be found."""


class VisibilityError(ModscopeError):
    """Raised when a member exists but is not both public and static."""


class AccessError(ModscopeError):
    """Raised when reading a resolved member fails at runtime."""


class ArchiveIOError(ModscopeError, OSError):
    """Raised for filesystem or archive failures (staging, packaging, enumeration)."""


__all__ = [
    "AccessError",
    "ArchiveIOError",
    "ArgumentError",
    "ModscopeError",
    "NotFoundError",
    "VisibilityError",
]
