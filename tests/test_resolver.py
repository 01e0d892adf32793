from __future__ import annotations

import logging
import math
import sys
from pathlib import Path

import pytest

from helpers import write_tree, write_zip
from modscope import resolve_constant, resolve_method
from modscope.exceptions import AccessError, ArgumentError, NotFoundError, VisibilityError
from modscope.members import MemberKind
from modscope.registry import ExportRegistry
from modscope.resolver import ReflectiveResolver, introspect_members
from modscope.scope import SearchScope

WIDGETS = '''
__all__ = ["Widget", "shown", "LIMIT"]

LIMIT = 10
HIDDEN = 11


def shown():
    return "shown"


def hidden():
    return "hidden"


class Boom:
    def __get__(self, obj, owner):
        raise RuntimeError("boom")


class Base:
    INHERITED = "base"
    OVERRIDDEN = "base"


class Widget(Base):
    OVERRIDDEN = "widget"
    LIMIT = 7
    _SECRET = 1
    EXPLODE = Boom()
    size: int

    class Inner:
        pass

    def render(self):
        return "render"

    @staticmethod
    def make():
        return "made"

    @classmethod
    def build(cls):
        return cls.__name__

    @staticmethod
    def _private():
        return "private"

    @property
    def area(self):
        return 1
'''


@pytest.fixture
def widgets(tmp_path: Path, unique_name) -> tuple[str, SearchScope]:
    name = unique_name("widgets")
    root = write_tree(tmp_path / "src", {f"{name}/__init__.py": "", f"{name}/widgets.py": WIDGETS})
    return f"{name}.widgets", SearchScope.of(root)


def test_module_function_and_constant():
    assert resolve_method("math", "fabs")(-2.0) == 2.0
    assert resolve_constant("math", "pi").value == math.pi


def test_names_are_validated():
    with pytest.raises(ArgumentError, match=r"\[className\]"):
        resolve_method("", "fabs")
    with pytest.raises(ArgumentError, match=r"\[methodName\]"):
        resolve_method("math", None)
    with pytest.raises(ArgumentError, match=r"\[constantName\]"):
        resolve_constant("math", " ")


def test_unknown_class_and_member():
    with pytest.raises(NotFoundError, match=r"class not found \[msfix_missing\.thing\]"):
        resolve_method("msfix_missing.thing", "run")
    with pytest.raises(NotFoundError, match=r"class#method not found \[math#nope\]"):
        resolve_method("math", "nope")
    with pytest.raises(NotFoundError, match=r"class#constant not found \[math#fabs\]"):
        resolve_constant("math", "fabs")


def test_class_static_members_resolve_through_scope(widgets):
    module, scope = widgets
    resolver = ReflectiveResolver(scope)
    target = f"{module}:Widget"

    assert resolver.resolve_method(target, "make")() == "made"
    assert resolver.resolve_method(f"{module}.Widget", "build")() == "Widget"
    assert resolver.resolve_constant(target, "LIMIT").value == 7
    assert resolver.resolve_constant(target, "OVERRIDDEN").value == "widget"
    assert resolver.resolve_constant(target, "INHERITED").value == "base"
    assert resolver.resolve_constant(target, "Inner").value.__name__ == "Inner"


@pytest.mark.parametrize(
    ("member", "kind"),
    [
        ("render", "method"),
        ("_private", "method"),
        ("_SECRET", "constant"),
        ("area", "constant"),
        ("size", "constant"),
    ],
)
def test_non_public_or_instance_members_are_rejected(widgets, member, kind):
    module, scope = widgets
    resolver = ReflectiveResolver(scope)
    resolve = resolver.resolve_method if kind == "method" else resolver.resolve_constant

    with pytest.raises(VisibilityError, match="does not have PUBLIC or STATIC modifier"):
        resolve(f"{module}:Widget", member)


def test_module_all_limits_public_names(widgets):
    module, scope = widgets
    resolver = ReflectiveResolver(scope)

    assert resolver.resolve_method(module, "shown")() == "shown"
    assert resolver.resolve_constant(module, "LIMIT").value == 10
    with pytest.raises(VisibilityError):
        resolver.resolve_method(module, "hidden")
    with pytest.raises(VisibilityError):
        resolver.resolve_constant(module, "HIDDEN")


def test_failing_read_is_an_access_error(widgets):
    module, scope = widgets
    with pytest.raises(AccessError, match="boom"):
        ReflectiveResolver(scope).resolve_constant(f"{module}:Widget", "EXPLODE")


def test_target_that_is_not_a_class_or_module(widgets):
    module, scope = widgets
    with pytest.raises(NotFoundError, match="not a class or module"):
        ReflectiveResolver(scope).load_target(f"{module}:LIMIT")


def test_modules_inside_archives_are_importable_through_scope(tmp_path: Path, unique_name):
    name = unique_name("zipped")
    archive = write_zip(tmp_path / "plugins.zip", {f"{name}.py": "def ping():\n    return 'pong'\n"})

    ref = resolve_method(name, "ping", SearchScope.of(archive))
    assert ref() == "pong"
    assert ref.owner == name
    assert str(archive.resolve()) not in sys.path


def test_registry_is_consulted_before_import():
    registry = ExportRegistry()

    def first(value):
        return ("first", value)

    def second(value, extra):
        return ("second", value, extra)

    registry.register_method("virtual.Target", "pick", first)
    registry.register_method("virtual.Target", "pick", second)
    registry.register_constant("virtual.Target", "VERSION", "1.0")
    registry.register_constant("virtual.Target", "internal", 3, public=False)
    registry.register_method("virtual.Target", "bound", first, static=False)

    resolver = ReflectiveResolver(registry=registry)
    assert resolver.resolve_method("virtual.Target", "pick")(1) == ("first", 1)
    assert resolver.resolve_constant("virtual.Target", "VERSION").value == "1.0"
    with pytest.raises(VisibilityError):
        resolver.resolve_constant("virtual.Target", "internal")
    with pytest.raises(VisibilityError):
        resolver.resolve_method("virtual.Target", "bound")
    with pytest.raises(NotFoundError):
        resolver.resolve_method("virtual.Target", "missing")

    # Unregistered targets still go through introspection.
    assert resolver.resolve_constant("math", "e").value == math.e


def test_introspection_order_and_kinds(widgets):
    module, scope = widgets
    cls = ReflectiveResolver(scope).load_target(f"{module}:Widget")
    entries = {e.name: e for e in introspect_members(cls)}

    assert entries["make"].kind is MemberKind.METHOD and entries["make"].static
    assert entries["render"].kind is MemberKind.METHOD and not entries["render"].static
    assert entries["OVERRIDDEN"].owner == "Widget"
    assert entries["INHERITED"].owner == "Base"
    assert not entries["size"].static


def test_resolved_member_is_logged(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.DEBUG, logger="modscope"):
        resolve_constant("math", "tau")

    records = [r for r in caplog.records if getattr(r, "event", None) == "modscope.member.resolved"]
    assert records[-1].data == {
        "target": "math",
        "member": "tau",
        "kind": "constant",
        "source": "introspection",
    }


def test_bare_annotation_on_subclass_does_not_hide_base_value(tmp_path: Path, unique_name):
    name = unique_name("annotated")
    root = write_tree(
        tmp_path / "src",
        {f"{name}.py": "class Base:\n    x = 1\n\n\nclass Sub(Base):\n    x: int\n    y: int\n"},
    )
    resolver = ReflectiveResolver(SearchScope.of(root))

    assert resolver.resolve_constant(f"{name}:Sub", "x").value == 1
    with pytest.raises(VisibilityError):
        resolver.resolve_constant(f"{name}:Sub", "y")
