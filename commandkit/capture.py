"""Variable capture for the error/warning/information/output/pipeline channels.

Binding resolves and validates the target variable eagerly, at argument
binding time. Committing captured values into the caller's scope happens
later, when the invocation completes (or, for the pipeline channel, live as
each item is forwarded downstream).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from commandkit.errors import ScopeUnavailableError
from commandkit.scope import MISSING
from commandkit.variable_names import APPEND_PREFIX, validate_variable_name

logger = logging.getLogger(__name__)

CAPTURE_CHANNELS: tuple[str, ...] = ("error", "warning", "information", "output", "pipeline")

CAPTURE_PARAMETER_NAMES: dict[str, str] = {
    "error": "ErrorVariable",
    "warning": "WarningVariable",
    "information": "InformationVariable",
    "output": "OutVariable",
    "pipeline": "PipelineVariable",
}


def _check_channel(channel: str) -> str:
    if channel not in CAPTURE_CHANNELS:
        raise ValueError(
            f"Unknown capture channel: {channel!r} (expected one of: {', '.join(CAPTURE_CHANNELS)})"
        )
    return channel


class VariableStore(Protocol):
    @property
    def is_active(self) -> bool:
        ...

    def read_variable(self, name: str) -> Any:
        ...

    def write_variable(self, name: str, value: Any) -> None:
        ...


@dataclass(frozen=True)
class VariableReference:
    target_name: str
    append_mode: bool = False

    @classmethod
    def parse(cls, parameter_name: str, raw: Any) -> "VariableReference":
        name, append = validate_variable_name(parameter_name, raw)
        return cls(target_name=name, append_mode=append)

    @property
    def raw(self) -> str:
        if self.append_mode:
            return f"{APPEND_PREFIX}{self.target_name}"
        return self.target_name


class VariableCaptureBinding:
    """Per-invocation map of capture channel -> target variable reference."""

    def __init__(self) -> None:
        self._references: dict[str, VariableReference] = {}

    def get(self, channel: str) -> str | None:
        reference = self._references.get(_check_channel(channel))
        return reference.raw if reference is not None else None

    def reference(self, channel: str) -> VariableReference | None:
        return self._references.get(_check_channel(channel))

    def check(self, channel: str, raw: Any) -> VariableReference | None:
        _check_channel(channel)
        if raw is None:
            return None
        return VariableReference.parse(CAPTURE_PARAMETER_NAMES[channel], raw)

    def set(self, channel: str, raw: Any) -> None:
        # Validation happens before the store is touched; a failure leaves
        # any earlier binding for the channel in place.
        reference = self.check(channel, raw)
        if reference is None:
            self._references.pop(channel, None)
            return
        self._references[channel] = reference

    def bound_channels(self) -> tuple[str, ...]:
        return tuple(channel for channel in CAPTURE_CHANNELS if channel in self._references)


def _initial_content(existing: Any) -> list[Any]:
    if existing is MISSING or existing is None:
        return []
    if isinstance(existing, list):
        return list(existing)
    if isinstance(existing, tuple):
        return list(existing)
    return [existing]


@dataclass
class CaptureSession:
    """Accumulates captured items for one invocation and commits them to the caller."""

    binding: VariableCaptureBinding
    store: VariableStore
    # (channel, reference, item) in emission order
    _captured: list[tuple[str, VariableReference, Any]] = field(
        default_factory=list, init=False, repr=False
    )

    def capture(self, channel: str, item: Any) -> bool:
        reference = self.binding.reference(channel)
        if reference is None:
            return False

        if channel == "pipeline":
            self._ensure_store(reference.target_name)
            self.store.write_variable(reference.target_name, item)
            return True

        self._captured.append((channel, reference, item))
        return True

    def pending(self, channel: str) -> list[Any] | None:
        _check_channel(channel)
        items = [item for captured, _reference, item in self._captured if captured == channel]
        return items or None

    def commit(self) -> dict[str, list[Any]]:
        """Write captured items into the scope, one write per target variable.

        Channels sharing a target merge in emission order. Append-mode targets
        extend whatever the variable holds at commit time, so earlier commits
        into the same variable are kept. A replace-mode channel among them
        discards the earlier content.
        """

        targets: dict[str, tuple[bool, list[Any]]] = {}
        for _channel, reference, item in self._captured:
            append, items = targets.get(reference.target_name, (True, []))
            items.append(item)
            targets[reference.target_name] = (append and reference.append_mode, items)

        committed: dict[str, list[Any]] = {}
        for name, (append, items) in targets.items():
            self._ensure_store(name)
            content = _initial_content(self.store.read_variable(name)) if append else []
            content.extend(items)
            self.store.write_variable(name, content)
            committed[name] = list(content)
            logger.debug("Committed %d item(s) to $%s (append=%s)", len(items), name, append)
        self._captured.clear()
        return committed

    def _ensure_store(self, name: str) -> None:
        if not self.store.is_active:
            raise ScopeUnavailableError(
                f"Cannot capture into ${name}: the caller's scope is no longer available"
            )
