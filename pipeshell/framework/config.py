from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from commandkit.config_namespace import ConfigNamespace
from commandkit.preferences import (
    EVENT_CHANNELS,
    NON_AMBIENT,
    PREFERENCE_CHANNELS,
    ActionPreference,
    AmbientPreferences,
    LegalActions,
)

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_AMBIENT_CHOICES: tuple[str, ...] = tuple(
    member.name for member in ActionPreference if member not in NON_AMBIENT
)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    log_dir: str | None = None


@dataclass(frozen=True)
class SessionConfig:
    ambient: AmbientPreferences = field(default_factory=AmbientPreferences)
    legal_actions: LegalActions = field(default_factory=LegalActions)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> tuple["SessionConfig", list[str]]:
        """
        Parse and validate a session config mapping.

        Unknown keys anywhere in the tree are rejected. Returns the parsed
        config plus non-fatal warnings (e.g. an ambient default that explicit
        parameters could never select).
        """

        warnings: list[str] = []
        root = ConfigNamespace(cfg, path="")

        prefs = root.namespace("preferences")
        defaults = AmbientPreferences()
        ambient_values: dict[str, ActionPreference] = {}
        for channel in PREFERENCE_CHANNELS:
            raw = prefs.get_str(
                channel,
                default=defaults.get(channel).name,
                choices=_AMBIENT_CHOICES,
                case_insensitive=True,
            )
            ambient_values[channel] = ActionPreference.parse(raw)
        ambient = AmbientPreferences(**ambient_values)

        legal_ns = prefs.namespace("legal_actions")
        legal_names: dict[str, list[str]] = {}
        for channel in EVENT_CHANNELS:
            if channel not in legal_ns.data:
                continue
            names = legal_ns.get_list_str(channel)
            for idx, name in enumerate(names):
                try:
                    ActionPreference.parse(name)
                except ValueError as exc:
                    raise ValueError(
                        f"Invalid action preference at preferences.legal_actions.{channel}[{idx}]: {name!r}"
                    ) from exc
            legal_names[channel] = names
        legal_actions = LegalActions.from_names(legal_names)

        for channel in EVENT_CHANNELS:
            value = ambient.get(channel)
            if not legal_actions.permits(channel, value):
                warnings.append(
                    f"preferences.{channel}={value.name} is not in preferences.legal_actions.{channel}; "
                    "explicit parameters cannot restore the ambient default"
                )

        log_ns = root.namespace("logging")
        level = log_ns.get_str("level", default="INFO", choices=LOG_LEVELS, case_insensitive=True)
        log_dir = log_ns.get_str("log_dir", default=None)

        root.assert_consumed()

        return (
            cls(
                ambient=ambient,
                legal_actions=legal_actions,
                logging=LoggingConfig(level=str(level), log_dir=log_dir),
            ),
            warnings,
        )
