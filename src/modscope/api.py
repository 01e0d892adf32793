"""Function-style entrypoints over the default components."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from modscope.locate import ArchiveFinder
from modscope.resources import ResourceLocator
from modscope.scope import ResourceHandle, SearchScope


def get_resource(name: str, scope: SearchScope | None = None) -> ResourceHandle | None:
    """Open ``name`` from ``scope`` (default: ``sys.path``); ``None`` when absent."""

    return ResourceLocator().get_resource(name, scope)


def locate_archive(target: Any, scope: SearchScope | None = None) -> Path | None:
    """Return the zip archive that backs ``target``, if any."""

    return ArchiveFinder().locate_archive(target, scope)


__all__ = ["get_resource", "locate_archive"]
