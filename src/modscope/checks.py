"""Eager precondition checks shared by the public entrypoints."""

from __future__ import annotations

from typing import Any, TypeVar

from modscope.exceptions import ArgumentError

T = TypeVar("T")


def not_none(value: T | None, name: str) -> T:
    if value is None:
        raise ArgumentError(f"argument cannot be None [{name}]")
    return value


def not_empty(value: str | None, name: str) -> str:
    not_none(value, name)
    if not isinstance(value, str):
        raise ArgumentError(f"argument must be a string [{name}]")
    if not value.strip():
        raise ArgumentError(f"argument cannot be empty [{name}]")
    return value


def is_identifier_path(value: Any) -> bool:
    """Return ``True`` when ``value`` is a dotted path of Python identifiers."""

    if not isinstance(value, str) or not value:
        return False
    return all(part.isidentifier() for part in value.split("."))


__all__ = ["is_identifier_path", "not_empty", "not_none"]
