"""Resolve public static methods and constants by target name.

Targets are looked up in an :class:`~modscope.registry.ExportRegistry` first;
anything not registered is imported (with the search scope active on
``sys.path``) and its members enumerated:

- modules: ``vars(module)`` order; every attribute is static, and public
  means no leading underscore and, when ``__all__`` exists, listed there;
- classes: MRO order, then ``__dict__`` order, the most derived definition of
  a name winning; annotation-only fields are instance (non-static) members
  and come after every real attribute, so ``x: int`` on a subclass does not
  hide ``x = 1`` on its base.

The first member whose name matches is used. Python has no overloads, but a
registry may hold several methods under one name; which of them is returned
follows registration order and is otherwise unspecified, so callers must not
depend on a particular signature being picked.
"""

from __future__ import annotations

import functools
import importlib
import inspect
import logging
import types
from types import ModuleType
from typing import Any, Iterable

from modscope.checks import not_empty
from modscope.exceptions import AccessError, NotFoundError, VisibilityError
from modscope.logging import EventLogger, get_logger
from modscope.members import ConstantRef, MemberEntry, MemberKind, MethodRef
from modscope.registry import ExportRegistry
from modscope.scope import SearchScope

_STATIC_METHOD_TYPES = (
    staticmethod,
    classmethod,
    types.ClassMethodDescriptorType,
    types.BuiltinFunctionType,
)
_INSTANCE_METHOD_TYPES = (
    types.FunctionType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
    types.MethodWrapperType,
    functools.partialmethod,
)
_INSTANCE_FIELD_TYPES = (
    property,
    functools.cached_property,
    types.MemberDescriptorType,
    types.GetSetDescriptorType,
)


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _reader(target: Any, name: str):
    return lambda: getattr(target, name)


def _module_members(module: ModuleType) -> list[MemberEntry]:
    exported = getattr(module, "__all__", None)
    entries: list[MemberEntry] = []
    for name, raw in list(vars(module).items()):
        public = _is_public(name) and (exported is None or name in exported)
        is_method = callable(raw) and not isinstance(raw, type)
        entries.append(
            MemberEntry(
                name=name,
                kind=MemberKind.METHOD if is_method else MemberKind.CONSTANT,
                public=public,
                static=True,
                owner=module.__name__,
                read=_reader(module, name),
            )
        )
    return entries


def _class_entry(cls: type, owner: type, name: str, raw: Any) -> MemberEntry:
    if isinstance(raw, _STATIC_METHOD_TYPES):
        kind, static = MemberKind.METHOD, True
    elif isinstance(raw, _INSTANCE_METHOD_TYPES):
        kind, static = MemberKind.METHOD, False
    elif isinstance(raw, _INSTANCE_FIELD_TYPES):
        kind, static = MemberKind.CONSTANT, False
    elif isinstance(raw, type) or hasattr(type(raw), "__get__"):
        kind, static = MemberKind.CONSTANT, True
    elif callable(raw):
        kind, static = MemberKind.METHOD, True
    else:
        kind, static = MemberKind.CONSTANT, True
    return MemberEntry(
        name=name,
        kind=kind,
        public=_is_public(name),
        static=static,
        owner=owner.__qualname__,
        read=_reader(cls, name),
    )


def _class_members(cls: type) -> list[MemberEntry]:
    seen: set[str] = set()
    entries: list[MemberEntry] = []
    mro = inspect.getmro(cls)
    for owner in mro:
        for name, raw in list(owner.__dict__.items()):
            if name in seen:
                continue
            seen.add(name)
            entries.append(_class_entry(cls, owner, name, raw))
    # A bare annotation never hides a real attribute defined further up the MRO.
    for owner in mro:
        for name in inspect.get_annotations(owner):
            if name in seen:
                continue
            seen.add(name)
            entries.append(
                MemberEntry(
                    name=name,
                    kind=MemberKind.CONSTANT,
                    public=_is_public(name),
                    static=False,
                    owner=owner.__qualname__,
                    read=_reader(cls, name),
                )
            )
    return entries


def introspect_members(target: ModuleType | type) -> list[MemberEntry]:
    """Enumerate members of a module or class in resolution order."""

    if isinstance(target, ModuleType):
        return _module_members(target)
    return _class_members(target)


def _first(entries: Iterable[MemberEntry], kind: MemberKind, name: str) -> MemberEntry | None:
    return next((e for e in entries if e.kind is kind and e.name == name), None)


def _covers(missing: str, module_name: str) -> bool:
    return module_name == missing or module_name.startswith(f"{missing}.")


class ReflectiveResolver:
    """Stateless lookups of public static members by target name."""

    def __init__(
        self,
        scope: SearchScope | None = None,
        *,
        registry: ExportRegistry | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self._scope = scope
        self._registry = registry
        self._logger = logger or get_logger("resolver")

    # ------------------------------------------------------------------
    # Target loading
    # ------------------------------------------------------------------
    def load_target(self, class_name: str, scope: SearchScope | None = None) -> ModuleType | type:
        """Import ``module``, ``module.Class`` or ``module:Class`` and return it."""

        not_empty(class_name, "className")
        effective = scope if scope is not None else self._scope
        try:
            if effective is None:
                target = self._import_target(class_name)
            else:
                with effective.activated():
                    target = self._import_target(class_name)
        except Exception as exc:
            raise NotFoundError(f"class not found [{class_name}]") from exc

        if not isinstance(target, (ModuleType, type)):
            raise NotFoundError(f"class not found [{class_name}]: not a class or module")
        return target

    @staticmethod
    def _import_target(class_name: str) -> Any:
        module_name, sep, attr_path = class_name.partition(":")
        if sep:
            target: Any = importlib.import_module(module_name)
            remainder = [part for part in attr_path.split(".") if part]
        else:
            parts = class_name.split(".")
            for index in range(len(parts), 0, -1):
                candidate = ".".join(parts[:index])
                try:
                    target = importlib.import_module(candidate)
                except ModuleNotFoundError as exc:
                    if exc.name is None or not _covers(exc.name, candidate):
                        raise
                    continue
                remainder = parts[index:]
                break
            else:
                raise ModuleNotFoundError(f"No module found for {class_name!r}", name=class_name)

        for attr in remainder:
            target = getattr(target, attr)
        return target

    def members(self, class_name: str, scope: SearchScope | None = None) -> tuple[list[MemberEntry], str]:
        """Return the target's members and where they came from (``registry`` or ``introspection``)."""

        if self._registry is not None and class_name in self._registry:
            return list(self._registry.members(class_name)), "registry"
        return introspect_members(self.load_target(class_name, scope)), "introspection"

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve_method(self, class_name: str, method_name: str, scope: SearchScope | None = None) -> MethodRef:
        """Return the first public static callable named ``method_name``.

        Raises NotFoundError when the target or name is unknown and
        VisibilityError when the name exists but is private or bound to
        instances.
        """

        not_empty(class_name, "className")
        not_empty(method_name, "methodName")
        entries, source = self.members(class_name, scope)
        entry = _first(entries, MemberKind.METHOD, method_name)
        if entry is None:
            raise NotFoundError(f"class#method not found [{class_name}#{method_name}]")
        if not (entry.public and entry.static):
            raise VisibilityError(
                f"class#method does not have PUBLIC or STATIC modifier [{class_name}#{method_name}]"
            )
        handle = self._read(entry, class_name, "method")
        self._log(class_name, entry, source)
        return MethodRef(target=class_name, name=method_name, handle=handle, owner=entry.owner)

    def resolve_constant(self, class_name: str, constant_name: str, scope: SearchScope | None = None) -> ConstantRef:
        """Return the value of the public static constant ``constant_name``."""

        not_empty(class_name, "className")
        not_empty(constant_name, "constantName")
        entries, source = self.members(class_name, scope)
        entry = _first(entries, MemberKind.CONSTANT, constant_name)
        if entry is None:
            raise NotFoundError(f"class#constant not found [{class_name}#{constant_name}]")
        if not (entry.public and entry.static):
            raise VisibilityError(
                f"class#constant does not have PUBLIC or STATIC modifier [{class_name}#{constant_name}]"
            )
        value = self._read(entry, class_name, "constant")
        self._log(class_name, entry, source)
        return ConstantRef(target=class_name, name=constant_name, value=value, owner=entry.owner)

    @staticmethod
    def _read(entry: MemberEntry, class_name: str, label: str) -> Any:
        try:
            return entry.read()
        except Exception as exc:
            raise AccessError(f"class#{label} could not be read [{class_name}#{entry.name}]: {exc}") from exc

    def _log(self, class_name: str, entry: MemberEntry, source: str) -> None:
        self._logger.event(
            "member.resolved",
            level=logging.DEBUG,
            target=class_name,
            member=entry.name,
            kind=entry.kind.value,
            source=source,
        )


def resolve_method(class_name: str, method_name: str, scope: SearchScope | None = None) -> MethodRef:
    return ReflectiveResolver().resolve_method(class_name, method_name, scope)


def resolve_constant(class_name: str, constant_name: str, scope: SearchScope | None = None) -> ConstantRef:
    return ReflectiveResolver().resolve_constant(class_name, constant_name, scope)


__all__ = [
    "ReflectiveResolver",
    "introspect_members",
    "resolve_constant",
    "resolve_method",
]
