from __future__ import annotations

import threading
from typing import Any

from commandkit.errors import ScopeUnavailableError

MISSING: Any = object()


class VariableScope:
    """Named variable storage owned by a caller (session, script block, job)."""

    def __init__(self, name: str = "session", *, parent: "VariableScope | None" = None):
        self.name = name
        self.parent = parent
        self._variables: dict[str, Any] = {}
        self._active = True
        self._lock = threading.RLock()

    @property
    def is_active(self) -> bool:
        return self._active

    def _ensure_active(self, action: str, name: str) -> None:
        if not self._active:
            raise ScopeUnavailableError(
                f"Cannot {action} variable {name!r}: scope {self.name!r} has been torn down"
            )

    def read_variable(self, name: str) -> Any:
        with self._lock:
            self._ensure_active("read", name)
            if name in self._variables:
                return self._variables[name]
        if self.parent is not None:
            return self.parent.read_variable(name)
        return MISSING

    def has_variable(self, name: str) -> bool:
        return self.read_variable(name) is not MISSING

    def write_variable(self, name: str, value: Any) -> None:
        with self._lock:
            self._ensure_active("write", name)
            self._variables[name] = value

    def variables(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._variables)

    def tear_down(self) -> None:
        with self._lock:
            self._active = False
            self._variables.clear()
