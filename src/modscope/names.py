"""Qualified module names and the resource paths derived from them."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import PurePosixPath
from types import ModuleType
from typing import Any

from modscope.checks import not_empty, not_none
from modscope.exceptions import ArgumentError

SOURCE_SUFFIX = ".py"
PACKAGE_INIT = "__init__"


@dataclass(frozen=True)
class QualifiedName:
    """A dotted module name, e.g. ``pkg.sub.mod``.

    The resource path is a pure function of the name: ``pkg/sub/mod.py`` for a
    plain module, ``pkg/sub/mod/__init__.py`` when ``is_package`` is set.
    """

    dotted: str
    is_package: bool = False

    def __post_init__(self) -> None:
        not_empty(self.dotted, "name")
        if any(not part for part in self.dotted.split(".")):
            raise ArgumentError(f"invalid qualified name [{self.dotted}]")

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(self.dotted.split("."))

    @property
    def package(self) -> str:
        """Dotted name of the enclosing package (empty for top-level modules)."""

        if self.is_package:
            return self.dotted
        return self.dotted.rpartition(".")[0]

    @property
    def resource_path(self) -> str:
        parts = list(self.parts)
        if self.is_package:
            parts.append(PACKAGE_INIT)
        return "/".join(parts) + SOURCE_SUFFIX

    @property
    def package_path(self) -> str:
        """Directory part of :attr:`resource_path` (``""`` for the default package)."""

        parent = PurePosixPath(self.resource_path).parent
        return "" if str(parent) == "." else parent.as_posix()

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.resource_path).name

    @classmethod
    def of(cls, value: Any) -> "QualifiedName":
        """Normalise a string, module or class into a :class:`QualifiedName`."""

        not_none(value, "name")
        if isinstance(value, QualifiedName):
            return value
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, ModuleType):
            spec = getattr(value, "__spec__", None)
            name = spec.name if spec is not None else value.__name__
            return cls(name, is_package=hasattr(value, "__path__"))
        if isinstance(value, type):
            module_name = getattr(value, "__module__", None)
            if not module_name:
                raise ArgumentError(f"class has no defining module [{value!r}]")
            module = sys.modules.get(module_name)
            if module is not None:
                return cls.of(module)
            return cls(module_name)
        raise ArgumentError(f"unsupported identifier type [{type(value).__name__}]")

    def __str__(self) -> str:
        return self.dotted


__all__ = ["PACKAGE_INIT", "QualifiedName", "SOURCE_SUFFIX"]
