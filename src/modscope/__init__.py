"""Public API for :mod:`modscope`."""

import importlib
import tomllib
from importlib import metadata
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from modscope.builder import ArchiveBuilder, BuildResult, build_archive
    from modscope.exceptions import (
        AccessError,
        ArchiveIOError,
        ArgumentError,
        ModscopeError,
        NotFoundError,
        VisibilityError,
    )
    from modscope.locate import ArchiveFinder
    from modscope.members import ConstantRef, MethodRef
    from modscope.names import QualifiedName
    from modscope.registry import ExportRegistry
    from modscope.resolver import ReflectiveResolver, resolve_constant, resolve_method
    from modscope.resources import ResourceLocator
    from modscope.scope import ResourceHandle, SearchScope
    from modscope.settings import Settings


def _read_version() -> str:
    """Version from the checkout's pyproject.toml, else from installed metadata."""

    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if pyproject.is_file():
        try:
            project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
        except (OSError, tomllib.TOMLDecodeError):
            project = {}
        if project.get("name") == "modscope" and project.get("version"):
            return str(project["version"])
    try:
        return metadata.version("modscope")
    except metadata.PackageNotFoundError:  # pragma: no cover
        return "unknown"


__version__ = _read_version()

_EXPORTS = {
    "AccessError": ("modscope.exceptions", "AccessError"),
    "ArchiveBuilder": ("modscope.builder", "ArchiveBuilder"),
    "ArchiveFinder": ("modscope.locate", "ArchiveFinder"),
    "ArchiveIOError": ("modscope.exceptions", "ArchiveIOError"),
    "ArgumentError": ("modscope.exceptions", "ArgumentError"),
    "BuildResult": ("modscope.builder", "BuildResult"),
    "ConstantRef": ("modscope.members", "ConstantRef"),
    "ExportRegistry": ("modscope.registry", "ExportRegistry"),
    "MethodRef": ("modscope.members", "MethodRef"),
    "ModscopeError": ("modscope.exceptions", "ModscopeError"),
    "NotFoundError": ("modscope.exceptions", "NotFoundError"),
    "QualifiedName": ("modscope.names", "QualifiedName"),
    "ReflectiveResolver": ("modscope.resolver", "ReflectiveResolver"),
    "ResourceHandle": ("modscope.scope", "ResourceHandle"),
    "ResourceLocator": ("modscope.resources", "ResourceLocator"),
    "SearchScope": ("modscope.scope", "SearchScope"),
    "Settings": ("modscope.settings", "Settings"),
    "VisibilityError": ("modscope.exceptions", "VisibilityError"),
    "build_archive": ("modscope.builder", "build_archive"),
    "get_resource": ("modscope.api", "get_resource"),
    "locate_archive": ("modscope.api", "locate_archive"),
    "resolve_constant": ("modscope.resolver", "resolve_constant"),
    "resolve_method": ("modscope.resolver", "resolve_method"),
}


def __getattr__(name: str) -> Any:
    try:
        module_name, attr_name = _EXPORTS[name]
    except KeyError:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from None
    value = getattr(importlib.import_module(module_name), attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted({*globals(), *_EXPORTS})


__all__ = [*sorted(_EXPORTS), "__version__"]
