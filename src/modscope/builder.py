"""Assemble ad hoc zip archives from modules found on a search scope.

Each build stages the requested module sources into a private directory tree
that mirrors their package layout, zips that tree (manifest entry first) into
the output, and removes the tree again on every exit path.
"""

from __future__ import annotations

import itertools
import logging
import os
import secrets
import shutil
import tempfile
import threading
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Iterator

from modscope.checks import not_none
from modscope.exceptions import ArchiveIOError, NotFoundError
from modscope.logging import EventLogger, get_logger
from modscope.names import QualifiedName
from modscope.resources import ResourceLocator
from modscope.scope import SearchScope
from modscope.settings import Settings

MANIFEST_CONTENT = "Manifest-Version: 1.0\r\n\r\n"
STAGING_PREFIX = "modscope"

_COMPRESSION = {
    "stored": zipfile.ZIP_STORED,
    "deflated": zipfile.ZIP_DEFLATED,
}

_staging_counter = itertools.count()
_staging_lock = threading.Lock()


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful build."""

    output: Path | None
    entries: tuple[str, ...]
    modules: tuple[str, ...]
    staging_dir: Path


def next_staging_path(root: Path) -> Path:
    """Return a staging path unique to this process and call.

    The name combines the pid, a process-wide counter and a random suffix;
    the directory is still created with an exclusive ``mkdir`` so a clash
    fails loudly instead of being shared.
    """

    with _staging_lock:
        sequence = next(_staging_counter)
    return root / f"{STAGING_PREFIX}-{os.getpid()}-{sequence}-{secrets.token_hex(4)}"


@contextmanager
def staging_directory(root: Path | None = None, *, logger: EventLogger | None = None) -> Iterator[Path]:
    """Create a fresh staging directory and remove it when the block exits.

    If the block raised, a failure to remove the directory is logged and the
    original error propagates. If the block succeeded, the removal failure is
    raised as :class:`ArchiveIOError`.
    """

    log = logger or get_logger("staging")
    parent = Path(root) if root is not None else Path(tempfile.gettempdir())
    path = next_staging_path(parent)
    try:
        parent.mkdir(parents=True, exist_ok=True)
        path.mkdir()
    except FileExistsError as exc:
        raise ArchiveIOError(f"staging dir already exists [{path}]") from exc
    except OSError as exc:
        raise ArchiveIOError(f"could not create staging dir [{path}]") from exc
    log.event("staging.created", level=logging.DEBUG, staging_dir=str(path))

    failed = False
    try:
        yield path
    except BaseException:
        failed = True
        raise
    finally:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            if not failed:
                raise ArchiveIOError(f"could not delete staging dir [{path}]") from exc
            log.event(
                "staging.cleanup_failed",
                level=logging.WARNING,
                staging_dir=str(path),
                error=str(exc),
            )
        else:
            log.event("staging.removed", level=logging.DEBUG, staging_dir=str(path))


def _ensure_dir(path: Path) -> None:
    if path.exists():
        return
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArchiveIOError(f"could not create dir [{path}]") from exc


class ArchiveBuilder:
    """Bundle modules into a zip archive.

    ``build`` accepts dotted module names, module objects or classes (the
    module defining the class is bundled). The archive holds a manifest entry
    plus every staged file and package directory, byte-identical to the
    source found on the scope.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        locator: ResourceLocator | None = None,
        logger: EventLogger | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._locator = locator or ResourceLocator()
        self._logger = logger or get_logger("builder")

    @property
    def settings(self) -> Settings:
        return self._settings

    def build(
        self,
        output: str | os.PathLike[str] | IO[bytes],
        *identifiers: Any,
        scope: SearchScope | None = None,
    ) -> BuildResult:
        not_none(output, "output")
        names = [QualifiedName.of(identifier) for identifier in identifiers]
        effective = scope if scope is not None else SearchScope.from_settings(self._settings)

        output_path: Path | None = None
        if isinstance(output, (str, os.PathLike)):
            output_path = Path(output)
            _ensure_dir(output_path.parent)

        with staging_directory(self._settings.staging_root, logger=self._logger) as staging:
            for name in names:
                self._stage(staging, name, effective)
            try:
                entries = self._package(staging, output_path if output_path is not None else output)
            except BaseException:
                if output_path is not None:
                    output_path.unlink(missing_ok=True)
                raise

        result = BuildResult(
            output=output_path,
            entries=tuple(entries),
            modules=tuple(dict.fromkeys(str(name) for name in names)),
            staging_dir=staging,
        )
        self._logger.event(
            "archive.built",
            output=str(output_path) if output_path is not None else repr(output),
            entry_count=len(result.entries),
            module_count=len(result.modules),
        )
        return result

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------
    def _stage(self, staging: Path, name: QualifiedName, scope: SearchScope) -> Path:
        package_dir = staging.joinpath(*name.package_path.split("/")) if name.package_path else staging
        if not package_dir.exists():
            _ensure_dir(package_dir)
            self._logger.event(
                "staging.directory_created",
                level=logging.DEBUG,
                path=name.package_path,
            )

        handle = self._locator.get_resource(name.resource_path, scope)
        if handle is None:
            raise NotFoundError(f"resource not found [{name.resource_path}] for module [{name}]")

        target = package_dir / name.file_name
        try:
            with handle, target.open("wb") as sink:
                shutil.copyfileobj(handle, sink)
        except OSError as exc:
            raise ArchiveIOError(f"could not stage [{name.resource_path}] into [{target}]") from exc

        self._logger.event(
            "module.staged",
            level=logging.DEBUG,
            module=str(name),
            resource=handle.location.url,
            bytes=target.stat().st_size,
        )
        return target

    # ------------------------------------------------------------------
    # Packaging
    # ------------------------------------------------------------------
    def _package(self, staging: Path, sink: Path | IO[bytes]) -> list[str]:
        manifest_entry = self._settings.manifest_entry
        compression = _COMPRESSION[self._settings.compression]
        entries: list[str] = []
        try:
            with zipfile.ZipFile(sink, mode="w", compression=compression) as archive:
                archive.writestr(manifest_entry, MANIFEST_CONTENT)
                entries.append(manifest_entry)
                for path in sorted(staging.rglob("*"), key=lambda p: p.relative_to(staging).as_posix()):
                    arcname = path.relative_to(staging).as_posix()
                    if path.is_dir():
                        arcname += "/"
                    archive.write(path, arcname)
                    entries.append(arcname)
        except OSError as exc:
            raise ArchiveIOError(f"could not write archive [{sink}]") from exc
        return entries


def build_archive(
    output: str | os.PathLike[str] | IO[bytes],
    *identifiers: Any,
    scope: SearchScope | None = None,
    settings: Settings | None = None,
) -> BuildResult:
    """Convenience wrapper around :meth:`ArchiveBuilder.build`."""

    return ArchiveBuilder(settings).build(output, *identifiers, scope=scope)


__all__ = [
    "ArchiveBuilder",
    "BuildResult",
    "MANIFEST_CONTENT",
    "build_archive",
    "next_staging_path",
    "staging_directory",
]
