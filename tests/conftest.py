"""Shared pytest fixtures: throwaway packages on disk and inside zip archives."""

from __future__ import annotations

import importlib
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from uuid import uuid4

import pytest

from helpers import write_tree, write_zip

FIXTURE_PREFIX = "msfix_"


@pytest.fixture
def unique_name() -> Callable[[str], str]:
    """Return a factory of importable names that cannot clash across tests."""

    def _make(stem: str = "pkg") -> str:
        return f"{FIXTURE_PREFIX}{stem}_{uuid4().hex[:8]}"

    return _make


@pytest.fixture(autouse=True)
def _forget_fixture_modules() -> Iterator[None]:
    yield
    for name in [n for n in sys.modules if n.startswith(FIXTURE_PREFIX)]:
        sys.modules.pop(name, None)
    importlib.invalidate_caches()


@pytest.fixture
def zipped_package(tmp_path: Path, unique_name, monkeypatch: pytest.MonkeyPatch):
    """A package ``<name>`` with module ``<name>.tools`` importable from ``lib dir/bundle.zip``."""

    name = unique_name("zipped")
    archive = write_zip(
        tmp_path / "lib dir" / "bundle.zip",
        {
            f"{name}/__init__.py": "",
            f"{name}/tools.py": "class Tool:\n    LIMIT = 3\n",
        },
    )
    monkeypatch.syspath_prepend(str(archive))
    importlib.invalidate_caches()
    return name, archive


@pytest.fixture
def loose_package(tmp_path: Path, unique_name, monkeypatch: pytest.MonkeyPatch):
    """A package ``<name>`` with module ``<name>.tools`` importable from a plain directory."""

    name = unique_name("loose")
    root = write_tree(
        tmp_path / "src",
        {
            f"{name}/__init__.py": "",
            f"{name}/tools.py": "class Tool:\n    LIMIT = 4\n",
        },
    )
    monkeypatch.syspath_prepend(str(root))
    importlib.invalidate_caches()
    return name, root
