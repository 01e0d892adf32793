"""Explicit name → handle registry consulted before introspection."""
from __future__ import annotations

from typing import Any, Callable, Dict, List

from modscope.checks import is_identifier_path, not_empty
from modscope.members import MemberEntry, MemberKind


class ExportRegistry:
    """Holds methods and constants registered under a target name.

    Several methods may share a name (overloads); they are kept in
    registration order and the resolver returns the first one.
    """

    def __init__(self) -> None:
        self._members: Dict[str, List[MemberEntry]] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def targets(self) -> tuple[str, ...]:
        return tuple(self._members)

    def members(self, target: str) -> tuple[MemberEntry, ...]:
        return tuple(self._members.get(target, ()))

    def __contains__(self, target: object) -> bool:
        return isinstance(target, str) and target in self._members

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def _add(self, target: str, entry: MemberEntry) -> MemberEntry:
        self._members.setdefault(target, []).append(entry)
        return entry

    def _check_names(self, target: str, name: str) -> None:
        not_empty(target, "target")
        not_empty(name, "name")
        if not is_identifier_path(target.replace(":", ".")):
            raise ValueError(f"Target '{target}' is not a dotted name")
        if not name.isidentifier():
            raise ValueError(f"Member name '{name}' is not an identifier")

    def register_method(
        self,
        target: str,
        name: str,
        fn: Callable[..., Any],
        *,
        public: bool = True,
        static: bool = True,
    ) -> MemberEntry:
        self._check_names(target, name)
        if not callable(fn):
            raise ValueError(f"Method '{target}#{name}' must be callable")
        return self._add(
            target,
            MemberEntry(
                name=name,
                kind=MemberKind.METHOD,
                public=public,
                static=static,
                owner=getattr(fn, "__module__", None) or target,
                read=lambda: fn,
            ),
        )

    def register_constant(
        self,
        target: str,
        name: str,
        value: Any,
        *,
        public: bool = True,
        static: bool = True,
    ) -> MemberEntry:
        self._check_names(target, name)
        existing = [m for m in self._members.get(target, ()) if m.kind is MemberKind.CONSTANT and m.name == name]
        if existing:
            raise ValueError(f"Constant '{target}#{name}' already registered")
        return self._add(
            target,
            MemberEntry(
                name=name,
                kind=MemberKind.CONSTANT,
                public=public,
                static=static,
                owner=target,
                read=lambda: value,
            ),
        )

    def method(
        self,
        target: str,
        name: str | None = None,
        *,
        public: bool = True,
        static: bool = True,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`register_method`."""

        def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
            self.register_method(target, name or fn.__name__, fn, public=public, static=static)
            return fn

        return decorator


__all__ = ["ExportRegistry"]
