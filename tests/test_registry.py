from __future__ import annotations

import pytest

from modscope.exceptions import ArgumentError
from modscope.members import MemberKind
from modscope.registry import ExportRegistry


def test_members_keep_registration_order():
    reg = ExportRegistry()

    @reg.method("app.Tools")
    def alpha():
        return "a"

    @reg.method("app.Tools", name="alpha")
    def alpha_overload(x):
        return x

    reg.register_constant("app.Tools", "LIMIT", 5)

    assert "app.Tools" in reg
    assert "app.Other" not in reg
    assert reg.targets() == ("app.Tools",)
    assert [(m.name, m.kind) for m in reg.members("app.Tools")] == [
        ("alpha", MemberKind.METHOD),
        ("alpha", MemberKind.METHOD),
        ("LIMIT", MemberKind.CONSTANT),
    ]
    assert reg.members("app.Tools")[1].read() is alpha_overload
    assert alpha() == "a"


def test_duplicate_constant_raises():
    reg = ExportRegistry()
    reg.register_constant("app.mod:Cls", "X", 1)
    with pytest.raises(ValueError):
        reg.register_constant("app.mod:Cls", "X", 2)


def test_invalid_registrations_raise():
    reg = ExportRegistry()
    with pytest.raises(ValueError):
        reg.register_method("not a name", "run", lambda: None)
    with pytest.raises(ValueError):
        reg.register_method("app.mod", "not-valid", lambda: None)
    with pytest.raises(ValueError):
        reg.register_method("app.mod", "run", 42)  # type: ignore[arg-type]
    with pytest.raises(ArgumentError):
        reg.register_constant("", "X", 1)
