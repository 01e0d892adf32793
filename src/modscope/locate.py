"""Find the archive that supplied a loaded module or class."""

from __future__ import annotations

import logging
import sys
import zipimport
from pathlib import Path
from types import ModuleType
from typing import Any
from urllib.parse import urlsplit
from urllib.request import url2pathname

from modscope.checks import not_none
from modscope.logging import EventLogger, get_logger
from modscope.names import QualifiedName
from modscope.scope import ZIP_SCHEME, ResourceLocation, SearchScope

# Module origins that do not come from any search-scope entry.
_BOOTSTRAP_ORIGINS = frozenset({"built-in", "frozen"})


def archive_path_from_url(url: str) -> Path:
    """Turn ``zip:file:///a%20b/x.zip!/pkg/mod.py`` into ``/a b/x.zip``.

    The entry fragment is cut before decoding so an escaped ``!`` in the
    archive path survives.
    """

    text = url[len(ZIP_SCHEME) + 1 :] if url.startswith(f"{ZIP_SCHEME}:") else url
    text = text.split("!", 1)[0]
    parts = urlsplit(text)
    if parts.scheme not in ("", "file"):
        raise ValueError(f"unsupported archive url [{url}]")
    return Path(url2pathname(parts.path))


def _module_of(target: Any) -> ModuleType | None:
    if isinstance(target, ModuleType):
        return target
    if isinstance(target, type):
        return sys.modules.get(getattr(target, "__module__", "") or "")
    if isinstance(target, str):
        return sys.modules.get(target)
    return None


def _label(target: Any) -> str:
    if isinstance(target, (ModuleType, type)):
        module = getattr(target, "__module__", None)
        name = target.__name__
        return f"{module}.{name}" if isinstance(target, type) and module else name
    return str(target)


def _has_loading_scope(module: ModuleType) -> bool:
    spec = getattr(module, "__spec__", None)
    origin = getattr(spec, "origin", None) if spec is not None else None
    if origin in _BOOTSTRAP_ORIGINS:
        return False
    if origin is None and getattr(module, "__file__", None) is None:
        return False
    return True


class ArchiveFinder:
    """Locate the zip archive backing a module, class or module name."""

    def __init__(self, scope: SearchScope | None = None, *, logger: EventLogger | None = None) -> None:
        self._scope = scope
        self._logger = logger or get_logger("locate")

    def _scope_for(self, module: ModuleType | None, scope: SearchScope | None) -> SearchScope:
        if scope is not None:
            return scope
        if self._scope is not None:
            return self._scope
        effective = SearchScope.from_sys_path()
        loader = getattr(module, "__loader__", None) if module is not None else None
        if isinstance(loader, zipimport.zipimporter):
            # prefix is the in-archive directory ("lib/") for entries like bundle.zip/lib
            origin = Path(loader.archive, loader.prefix) if loader.prefix else Path(loader.archive)
            effective = effective.extended([origin])
        return effective

    def candidates(self, target: Any, scope: SearchScope | None = None) -> list[ResourceLocation]:
        """All scope locations exposing the target's resource path, in scope order."""

        not_none(target, "target")
        module = _module_of(target)
        if module is not None and not _has_loading_scope(module):
            return []
        effective = self._scope_for(module, scope)
        if module is None and isinstance(target, str):
            # Not imported yet: a plain module first, then a package.
            for name in (QualifiedName(target), QualifiedName(target, is_package=True)):
                found = list(effective.locations(name.resource_path))
                if found:
                    return found
            return []
        name = QualifiedName.of(module if module is not None else target)
        return list(effective.locations(name.resource_path))

    def locate_archive(self, target: Any, scope: SearchScope | None = None) -> Path | None:
        """Return the first archive-backed location of ``target`` or ``None``.

        ``None`` covers built-in/frozen modules and targets that are only
        available from loose directories.
        """

        archive: Path | None = None
        for location in self.candidates(target, scope):
            if location.is_archive:
                archive = archive_path_from_url(location.url)
                break

        self._logger.event(
            "archive.located",
            level=logging.DEBUG,
            target=_label(target),
            archive=str(archive) if archive is not None else None,
        )
        return archive


__all__ = ["ArchiveFinder", "archive_path_from_url"]
