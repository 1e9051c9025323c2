"""Strict configuration namespace helper with consumed-keys enforcement."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable

_MISSING = object()


def _join_path(parent: str, key: str) -> str:
    if not parent:
        return key
    return f"{parent}.{key}"


@dataclass
class ConfigNamespace:
    """Reads typed values from a mapping and reports keys nobody asked for."""

    data: Mapping[str, Any]
    path: str
    _consumed: set[str] = field(default_factory=set, init=False, repr=False)
    _children: dict[str, "ConfigNamespace"] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def empty(cls, *, path: str) -> "ConfigNamespace":
        return cls({}, path=path)

    def consumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._consumed))

    def unconsumed_keys(self) -> tuple[str, ...]:
        return tuple(sorted(str(k) for k in self.data.keys() if k not in self._consumed))

    def assert_consumed(self) -> None:
        unknown = list(self.unconsumed_keys())
        if unknown:
            path = self.path or "<root>"
            consumed = ", ".join(self.consumed_keys()) or "<none>"
            raise ValueError(
                f"Unknown config keys under {path}: {', '.join(unknown)} (consumed: {consumed})"
            )
        for child in self._children.values():
            child.assert_consumed()

    def _get_raw(self, key: str, *, default: Any) -> Any:
        if not isinstance(key, str) or not key.strip():
            raise TypeError("ConfigNamespace key must be a non-empty string")
        normalized = key.strip()
        if normalized in self._children:
            raise ValueError(
                f"{_join_path(self.path, normalized)} already accessed as a nested namespace"
            )

        self._consumed.add(normalized)
        if normalized not in self.data:
            if default is _MISSING:
                raise ValueError(f"Missing required config key: {_join_path(self.path, normalized)}")
            return default
        return self.data.get(normalized)

    def namespace(self, key: str) -> "ConfigNamespace":
        """Child namespace for `key`; a missing or null section reads as empty."""

        normalized = (key or "").strip()
        if not normalized:
            raise TypeError("ConfigNamespace key must be a non-empty string")
        if normalized in self._children:
            return self._children[normalized]

        child_path = _join_path(self.path, normalized)
        raw = self.data.get(normalized)
        self._consumed.add(normalized)
        if raw is None:
            child = ConfigNamespace.empty(path=child_path)
        elif not isinstance(raw, Mapping):
            raise TypeError(f"{child_path} must be a mapping (type={type(raw).__name__})")
        else:
            child = ConfigNamespace(dict(raw), path=child_path)
        self._children[normalized] = child
        return child

    def get_str(
        self,
        key: str,
        *,
        default: str | None | object = _MISSING,
        choices: Iterable[str] | None = None,
        case_insensitive: bool = False,
    ) -> str | None:
        raw = self._get_raw(key, default=default)
        if raw is None:
            return None
        if not isinstance(raw, str):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a string (type={type(raw).__name__})"
            )
        value = raw.strip()
        if not value:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")
        if choices is not None:
            options = [str(item).strip() for item in choices if str(item).strip()]
            if case_insensitive:
                matched = next((item for item in options if item.lower() == value.lower()), None)
            else:
                matched = value if value in options else None
            if matched is None:
                allowed = ", ".join(sorted(options)) or "<none>"
                raise ValueError(
                    f"{_join_path(self.path, key.strip())} must be one of: {allowed} (got {value!r})"
                )
            value = matched
        return value

    def get_list_str(
        self,
        key: str,
        *,
        default: list[str] | tuple[str, ...] | object = _MISSING,
        allow_empty: bool = False,
    ) -> list[str]:
        raw = self._get_raw(key, default=default)
        if not isinstance(raw, (list, tuple)):
            raise TypeError(
                f"{_join_path(self.path, key.strip())} must be a list[str] (type={type(raw).__name__})"
            )

        items: list[str] = []
        for idx, item in enumerate(raw):
            if not isinstance(item, str):
                raise TypeError(
                    f"{_join_path(self.path, key.strip())}[{idx}] must be a string (type={type(item).__name__})"
                )
            trimmed = item.strip()
            if not trimmed:
                raise ValueError(f"{_join_path(self.path, key.strip())}[{idx}] cannot be empty")
            items.append(trimmed)

        if not items and not allow_empty:
            raise ValueError(f"{_join_path(self.path, key.strip())} cannot be empty")

        return items
