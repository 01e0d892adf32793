"""Resource lookup against an explicit or default search scope."""

from __future__ import annotations

from modscope.checks import not_empty
from modscope.scope import ResourceHandle, SearchScope


class ResourceLocator:
    """Resolve resource names to byte streams.

    A scope passed to :meth:`get_resource` wins; otherwise the locator's own
    default scope is used. Without a configured default, the scope is rebuilt
    from ``sys.path`` on every call, so two calls may see different results
    if ``sys.path`` changes in between.
    """

    def __init__(self, default_scope: SearchScope | None = None) -> None:
        self._default_scope = default_scope

    @property
    def default_scope(self) -> SearchScope:
        return self._default_scope if self._default_scope is not None else SearchScope.from_sys_path()

    def effective_scope(self, scope: SearchScope | None = None) -> SearchScope:
        return scope if scope is not None else self.default_scope

    def get_resource(self, name: str, scope: SearchScope | None = None) -> ResourceHandle | None:
        """Return a handle for ``name`` or ``None`` when no scope entry provides it."""

        not_empty(name, "name")
        return self.effective_scope(scope).open(name)

    def read_bytes(self, name: str, scope: SearchScope | None = None) -> bytes | None:
        handle = self.get_resource(name, scope)
        if handle is None:
            return None
        with handle:
            return handle.read()


__all__ = ["ResourceLocator"]
