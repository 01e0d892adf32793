"""Member models shared by the export registry and the resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Union


class MemberKind(str, Enum):
    METHOD = "method"
    CONSTANT = "constant"


@dataclass(frozen=True)
class MemberEntry:
    """A named member of a target, with its modifiers.

    ``read`` produces the member's value without an instance. It may raise;
    the resolver reports that as an access failure.
    """

    name: str
    kind: MemberKind
    public: bool
    static: bool
    owner: str
    read: Callable[[], Any] = field(repr=False, compare=False)


@dataclass(frozen=True)
class MethodRef:
    target: str
    name: str
    handle: Callable[..., Any] = field(repr=False)
    owner: str = ""

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.handle(*args, **kwargs)


@dataclass(frozen=True)
class ConstantRef:
    target: str
    name: str
    value: Any
    owner: str = ""


ResolvedMember = Union[MethodRef, ConstantRef]


__all__ = [
    "ConstantRef",
    "MemberEntry",
    "MemberKind",
    "MethodRef",
    "ResolvedMember",
]
