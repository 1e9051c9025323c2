"""Action preferences and the per-invocation preference channel."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from commandkit.errors import ParameterValidationError

PREFERENCE_CHANNELS: tuple[str, ...] = ("error", "warning", "information", "verbose", "debug")
EVENT_CHANNELS: tuple[str, ...] = ("error", "warning", "information")
SWITCH_CHANNELS: tuple[str, ...] = ("verbose", "debug")


class ActionPreference(enum.Enum):
    SilentlyContinue = 0
    Stop = 1
    Continue = 2
    Inquire = 3
    Ignore = 4
    Suspend = 5

    @classmethod
    def parse(cls, value: Any) -> "ActionPreference":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.name.lower() == key:
                    return member
        raise ValueError(f"Invalid action preference: {value!r}")


# Values that can never be an ambient default, only an explicit per-invocation choice.
NON_AMBIENT: frozenset[ActionPreference] = frozenset(
    {ActionPreference.Ignore, ActionPreference.Suspend}
)

_QUIET: frozenset[ActionPreference] = frozenset(
    {ActionPreference.SilentlyContinue, ActionPreference.Ignore}
)


def _check_channel(channel: str, allowed: tuple[str, ...]) -> str:
    if channel not in allowed:
        raise ValueError(f"Unknown preference channel: {channel!r} (expected one of: {', '.join(allowed)})")
    return channel


@dataclass(frozen=True)
class AmbientPreferences:
    """Defaults inherited from the enclosing session when no parameter overrides them."""

    error: ActionPreference = ActionPreference.Continue
    warning: ActionPreference = ActionPreference.Continue
    information: ActionPreference = ActionPreference.SilentlyContinue
    verbose: ActionPreference = ActionPreference.SilentlyContinue
    debug: ActionPreference = ActionPreference.SilentlyContinue

    def __post_init__(self) -> None:
        for channel in PREFERENCE_CHANNELS:
            value = ActionPreference.parse(getattr(self, channel))
            if value in NON_AMBIENT:
                raise ValueError(f"Ambient {channel} preference cannot be {value.name}")
            object.__setattr__(self, channel, value)

    def get(self, channel: str) -> ActionPreference:
        return getattr(self, _check_channel(channel, PREFERENCE_CHANNELS))


def _default_legal() -> dict[str, frozenset[ActionPreference]]:
    everything = frozenset(ActionPreference) - {ActionPreference.Suspend}
    return {channel: everything for channel in EVENT_CHANNELS}


@dataclass(frozen=True)
class LegalActions:
    """Per-channel set of action preferences an invocation may request."""

    allowed: Mapping[str, frozenset[ActionPreference]] = field(default_factory=_default_legal)

    @classmethod
    def from_names(cls, mapping: Mapping[str, Iterable[Any]]) -> "LegalActions":
        allowed = _default_legal()
        for channel, names in mapping.items():
            _check_channel(channel, EVENT_CHANNELS)
            values = frozenset(ActionPreference.parse(name) for name in names)
            if not values:
                raise ValueError(f"Legal action set for {channel} cannot be empty")
            allowed[channel] = values
        return cls(allowed=allowed)

    def for_channel(self, channel: str) -> frozenset[ActionPreference]:
        return self.allowed.get(_check_channel(channel, EVENT_CHANNELS), frozenset())

    def permits(self, channel: str, value: ActionPreference) -> bool:
        return value in self.for_channel(channel)


_PARAMETER_NAMES: dict[str, str] = {
    "error": "ErrorAction",
    "warning": "WarningAction",
    "information": "InformationAction",
    "verbose": "Verbose",
    "debug": "Debug",
}


class ActionPreferenceChannel:
    """Effective action policy for one invocation.

    Explicit values override the ambient defaults. Nothing is latched: each
    emission reads the current value, so a later change inside the same
    invocation is seen by subsequent events.
    """

    def __init__(self, ambient: AmbientPreferences, legal: LegalActions | None = None):
        self._ambient = ambient
        self._legal = legal or LegalActions()
        self._actions: dict[str, ActionPreference] = {}
        self._switches: dict[str, bool] = {}

    @property
    def ambient(self) -> AmbientPreferences:
        return self._ambient

    def is_explicit(self, channel: str) -> bool:
        _check_channel(channel, PREFERENCE_CHANNELS)
        return channel in self._actions or channel in self._switches

    def effective(self, channel: str) -> ActionPreference:
        _check_channel(channel, PREFERENCE_CHANNELS)
        if channel in self._actions:
            return self._actions[channel]
        if channel in self._switches:
            return ActionPreference.Continue if self._switches[channel] else ActionPreference.SilentlyContinue
        return self._ambient.get(channel)

    def get_switch(self, channel: str) -> bool:
        _check_channel(channel, SWITCH_CHANNELS)
        if channel in self._switches:
            return self._switches[channel]
        return self._ambient.get(channel) not in _QUIET

    def set_switch(self, channel: str, value: bool) -> None:
        _check_channel(channel, SWITCH_CHANNELS)
        if not isinstance(value, bool):
            raise ParameterValidationError(
                _PARAMETER_NAMES[channel],
                value,
                error_id="ArgumentNotSwitch",
                detail="expected a boolean switch value",
            )
        self._switches[channel] = value

    def get_action(self, channel: str) -> ActionPreference:
        _check_channel(channel, EVENT_CHANNELS)
        return self._actions.get(channel, self._ambient.get(channel))

    def set_action(self, channel: str, value: Any) -> None:
        self._actions[channel] = self.check_action(channel, value)

    def check_action(self, channel: str, value: Any) -> ActionPreference:
        """Validate an action value for `channel` without storing it."""

        _check_channel(channel, EVENT_CHANNELS)
        parameter_name = _PARAMETER_NAMES[channel]
        try:
            parsed = ActionPreference.parse(value)
        except ValueError as exc:
            raise ParameterValidationError(
                parameter_name, value, error_id="ArgumentNotActionPreference", detail=str(exc)
            ) from exc
        if not self._legal.permits(channel, parsed):
            allowed = ", ".join(sorted(item.name for item in self._legal.for_channel(channel)))
            raise ParameterValidationError(
                parameter_name,
                value,
                error_id="ActionPreferenceNotAllowed",
                detail=f"{parsed.name} is not supported here (allowed: {allowed or '<none>'})",
            )
        return parsed

    # Named accessors mirror the parameter table.

    @property
    def verbose(self) -> bool:
        return self.get_switch("verbose")

    @verbose.setter
    def verbose(self, value: bool) -> None:
        self.set_switch("verbose", value)

    @property
    def debug(self) -> bool:
        return self.get_switch("debug")

    @debug.setter
    def debug(self, value: bool) -> None:
        self.set_switch("debug", value)

    @property
    def error_action(self) -> ActionPreference:
        return self.get_action("error")

    @error_action.setter
    def error_action(self, value: Any) -> None:
        self.set_action("error", value)

    @property
    def warning_action(self) -> ActionPreference:
        return self.get_action("warning")

    @warning_action.setter
    def warning_action(self, value: Any) -> None:
        self.set_action("warning", value)

    @property
    def information_action(self) -> ActionPreference:
        return self.get_action("information")

    @information_action.setter
    def information_action(self, value: Any) -> None:
        self.set_action("information", value)
