from __future__ import annotations

from pathlib import Path

import pytest

from helpers import write_tree, write_zip
from modscope import get_resource
from modscope.exceptions import ArgumentError
from modscope.resources import ResourceLocator
from modscope.scope import SearchScope


def test_explicit_scope_wins_over_default(tmp_path: Path):
    first = write_tree(tmp_path / "first", {"conf/app.txt": "first"})
    second = write_tree(tmp_path / "second", {"conf/app.txt": "second"})
    locator = ResourceLocator(SearchScope.of(first))

    assert locator.read_bytes("conf/app.txt") == b"first"
    assert locator.read_bytes("conf/app.txt", SearchScope.of(second)) == b"second"


def test_missing_resource_returns_none(tmp_path: Path):
    locator = ResourceLocator(SearchScope.of(tmp_path))
    assert locator.get_resource("nope.txt") is None
    assert locator.read_bytes("nope.txt") is None


@pytest.mark.parametrize("name", [None, "", "  "])
def test_invalid_names_raise(tmp_path: Path, name):
    with pytest.raises(ArgumentError):
        ResourceLocator(SearchScope.of(tmp_path)).get_resource(name)


def test_default_scope_tracks_sys_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    root = write_tree(tmp_path / "extra", {"msfix_resource.txt": "on sys.path"})
    locator = ResourceLocator()
    assert locator.get_resource("msfix_resource.txt") is None

    monkeypatch.syspath_prepend(str(root))

    handle = get_resource("msfix_resource.txt")
    assert handle is not None
    with handle:
        assert handle.read() == b"on sys.path"


def test_entry_pointing_inside_an_archive(tmp_path: Path):
    archive = write_zip(tmp_path / "bundle.zip", {"lib/conf/app.txt": "packed"})
    locator = ResourceLocator(SearchScope.of(archive / "lib"))

    assert locator.read_bytes("conf/app.txt") == b"packed"
    assert locator.get_resource("lib/conf/app.txt") is None
