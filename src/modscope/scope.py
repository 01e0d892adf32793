"""Search scopes: ordered import-path entries consulted to resolve names.

A scope is an explicit stand-in for ``sys.path``. Entries are directories or
zip archives; an entry that does not exist (or is a plain file that is not a
zip archive) is skipped, matching how the import system treats ``sys.path``.
"""

from __future__ import annotations

import importlib
import logging
import sys
import threading
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, TYPE_CHECKING, Iterable, Iterator

from modscope.checks import not_empty
from modscope.exceptions import ArchiveIOError, ArgumentError
from modscope.logging import get_logger

if TYPE_CHECKING:
    from modscope.settings import Settings

FILE_SCHEME = "file"
ZIP_SCHEME = "zip"
ENTRY_DELIMITER = "!/"
# Files with these suffixes are archives; one that cannot be read is an error,
# not a skipped entry.
ARCHIVE_SUFFIXES = frozenset({".zip", ".whl", ".egg", ".pyz", ".jar"})

# sys.path is process-wide; activations are serialised.
_SYS_PATH_LOCK = threading.RLock()


@dataclass(frozen=True)
class ResourceLocation:
    """Where a resource was found.

    ``url`` is ``file:///dir/pkg/mod.py`` for loose files and
    ``zip:file:///dir/bundle.zip!/pkg/mod.py`` for archive entries.
    ``source`` is the directory or archive file holding the bytes and
    ``member`` the path below it; for an entry such as ``bundle.zip/lib``
    the member carries the ``lib/`` prefix while ``name`` does not.
    """

    scheme: str
    url: str
    entry: Path
    name: str
    source: Path
    member: str

    @property
    def is_archive(self) -> bool:
        return self.scheme == ZIP_SCHEME


class ResourceHandle:
    """Readable byte stream bound to the resource it was resolved from."""

    def __init__(self, name: str, location: ResourceLocation, stream: IO[bytes]) -> None:
        self.name = name
        self.location = location
        self._stream = stream

    def read(self, size: int = -1) -> bytes:
        return self._stream.read(size)

    def close(self) -> None:
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __enter__(self) -> "ResourceHandle":
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ResourceHandle(name={self.name!r}, url={self.location.url!r})"


def normalize_resource_name(name: str) -> str:
    """Validate a resource name and return it in POSIX form without a leading slash."""

    not_empty(name, "name")
    candidate = PurePosixPath(name.replace("\\", "/").lstrip("/"))
    parts = [part for part in candidate.parts if part not in (".", "")]
    if not parts or any(part == ".." for part in parts):
        raise ArgumentError(f"invalid resource name [{name}]")
    return "/".join(parts)


def _zip_url(archive: Path, name: str) -> str:
    return f"{ZIP_SCHEME}:{archive.as_uri()}{ENTRY_DELIMITER}{name}"


@dataclass(frozen=True)
class SearchScope:
    """An ordered, immutable set of directories and zip archives."""

    entries: tuple[Path, ...]
    label: str = "custom"

    @classmethod
    def of(cls, *entries: str | Path, label: str = "custom") -> "SearchScope":
        return cls(tuple(Path(entry).expanduser().resolve() for entry in entries), label=label)

    @classmethod
    def from_sys_path(cls) -> "SearchScope":
        # "" on sys.path means the current working directory.
        entries = [Path(entry or ".").resolve() for entry in sys.path if isinstance(entry, str)]
        return cls(tuple(dict.fromkeys(entries)), label="sys.path")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SearchScope":
        entries = [Path(entry).expanduser().resolve() for entry in settings.search_path]
        if settings.include_sys_path:
            entries.extend(cls.from_sys_path().entries)
        return cls(tuple(dict.fromkeys(entries)), label="settings")

    def extended(self, entries: Iterable[str | Path]) -> "SearchScope":
        """Return a new scope with ``entries`` appended (duplicates dropped)."""

        extra = [Path(entry).expanduser().resolve() for entry in entries]
        return SearchScope(tuple(dict.fromkeys([*self.entries, *extra])), label=self.label)

    # ------------------------------------------------------------------
    # Resource lookup
    # ------------------------------------------------------------------
    def locations(self, name: str) -> Iterator[ResourceLocation]:
        """Yield every location exposing ``name``, in scope order.

        An entry may point inside an archive (``bundle.zip/lib``), as
        ``zipimport`` allows; such entries are searched below that prefix.
        Unreadable or corrupt archives raise :class:`ArchiveIOError`.
        """

        resource = normalize_resource_name(name)
        for entry in self.entries:
            root = _entry_root(entry)
            if root is None:
                continue
            source, prefix = root
            if prefix is None:
                candidate = source.joinpath(*resource.split("/"))
                if candidate.is_file():
                    yield ResourceLocation(
                        scheme=FILE_SCHEME,
                        url=candidate.as_uri(),
                        entry=entry,
                        name=resource,
                        source=source,
                        member=resource,
                    )
                continue
            member = f"{prefix}{resource}"
            if _archive_contains(source, member):
                yield ResourceLocation(
                    scheme=ZIP_SCHEME,
                    url=_zip_url(source, member),
                    entry=entry,
                    name=resource,
                    source=source,
                    member=member,
                )

    def find(self, name: str) -> ResourceLocation | None:
        return next(self.locations(name), None)

    def open(self, name: str) -> ResourceHandle | None:
        """Open the first location of ``name``; ``None`` when nothing matches."""

        location = self.find(name)
        if location is None:
            return None
        try:
            if location.is_archive:
                # The entry stream keeps the archive file open after the
                # ZipFile itself is closed.
                with zipfile.ZipFile(location.source) as archive:
                    stream: IO[bytes] = archive.open(location.member, "r")
            else:
                stream = location.source.joinpath(*location.member.split("/")).open("rb")
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveIOError(f"could not open resource [{location.url}]") from exc
        return ResourceHandle(location.name, location, stream)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------
    @contextmanager
    def activated(self) -> Iterator["SearchScope"]:
        """Put the scope entries at the front of ``sys.path`` for the duration.

        Modules already present in ``sys.modules`` are not reloaded, so an
        import inside the block may still return a module found elsewhere.
        """

        with _SYS_PATH_LOCK:
            original = list(sys.path)
            try:
                front = [str(entry) for entry in self.entries]
                sys.path[:] = [*front, *(p for p in original if p not in front)]
                importlib.invalidate_caches()
                get_logger("scope").event("scope.activated", level=logging.DEBUG, entries=front)
                yield self
            finally:
                sys.path[:] = original

    def __iter__(self) -> Iterator[Path]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _is_archive(path: Path) -> bool:
    """``True`` for zip files; damaged files with an archive suffix raise."""

    if zipfile.is_zipfile(path):
        return True
    if path.suffix.lower() not in ARCHIVE_SUFFIXES:
        return False
    try:
        with zipfile.ZipFile(path):
            pass
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveIOError(f"could not read archive [{path}]") from exc
    return True


def _entry_root(entry: Path) -> tuple[Path, str | None] | None:
    """Split a scope entry into ``(source, prefix)``.

    Directories give ``(entry, None)``, archive files ``(entry, "")`` and a
    path below an archive file ``(archive, "inner/dir/")``. Anything else,
    including a missing path under a real directory, is ``None``.
    """

    if entry.is_dir():
        return entry, None
    if entry.is_file():
        return (entry, "") if _is_archive(entry) else None
    for parent in entry.parents:
        if parent.is_file():
            if not _is_archive(parent):
                return None
            return parent, entry.relative_to(parent).as_posix().strip("/") + "/"
        if parent.exists():
            return None
    return None


def _archive_contains(archive: Path, name: str) -> bool:
    try:
        with zipfile.ZipFile(archive) as zf:
            zf.getinfo(name)
    except KeyError:
        return False
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveIOError(f"could not read archive [{archive}]") from exc
    return True


__all__ = [
    "ENTRY_DELIMITER",
    "FILE_SCHEME",
    "ResourceHandle",
    "ResourceLocation",
    "SearchScope",
    "ZIP_SCHEME",
    "normalize_resource_name",
]
