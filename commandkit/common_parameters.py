"""Parameters present on every command invocation.

The declaration table is fixed. Each entry carries its short alias, its value
kind and an explicit validator; `CommonParameters.bind` runs the validators for
every supplied value before applying any of them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol, TypeAlias

from commandkit.capture import VariableCaptureBinding, VariableReference
from commandkit.errors import ContractViolation, ParameterBindingError, ParameterValidationError
from commandkit.preferences import ActionPreference, ActionPreferenceChannel

ParameterKind: TypeAlias = Literal[
    "switch", "action_preference", "variable_reference", "non_negative_int"
]

OUT_BUFFER_MAX = 2**31 - 1


class ParameterTarget(Protocol):
    preferences: ActionPreferenceChannel
    captures: VariableCaptureBinding
    out_buffer: int


def validate_switch(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ParameterValidationError(
            name, value, error_id="ArgumentNotSwitch", detail="expected a boolean switch value"
        )
    return value


def validate_out_buffer(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParameterValidationError(
            name, value, error_id="ArgumentNotInteger", detail="expected an integer"
        )
    if value < 0 or value > OUT_BUFFER_MAX:
        raise ParameterValidationError(
            name,
            value,
            error_id="ValidateRangeFailure",
            detail=f"must be between 0 and {OUT_BUFFER_MAX}",
        )
    return value


def validate_action_preference(name: str, value: Any) -> ActionPreference:
    try:
        return ActionPreference.parse(value)
    except ValueError as exc:
        raise ParameterValidationError(
            name, value, error_id="ArgumentNotActionPreference", detail=str(exc)
        ) from exc


def validate_variable_reference(name: str, value: Any) -> VariableReference | None:
    if value is None:
        return None
    return VariableReference.parse(name, value)


_VALIDATORS: dict[str, Callable[[str, Any], Any]] = {
    "switch": validate_switch,
    "action_preference": validate_action_preference,
    "variable_reference": validate_variable_reference,
    "non_negative_int": validate_out_buffer,
}


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    alias: str
    kind: ParameterKind
    channel: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in _VALIDATORS:
            raise ValueError(f"Invalid parameter kind: {self.kind}")

    @property
    def validator(self) -> Callable[[str, Any], Any]:
        return _VALIDATORS[self.kind]

    def validate(self, value: Any) -> Any:
        return self.validator(self.name, value)


COMMON_PARAMETERS: tuple[ParameterSpec, ...] = (
    ParameterSpec("Verbose", "vb", "switch", channel="verbose"),
    ParameterSpec("Debug", "db", "switch", channel="debug"),
    ParameterSpec("ErrorAction", "ea", "action_preference", channel="error"),
    ParameterSpec("WarningAction", "wa", "action_preference", channel="warning"),
    ParameterSpec(
        "InformationAction", "infa", "action_preference", channel="information"
    ),
    ParameterSpec("ErrorVariable", "ev", "variable_reference", channel="error"),
    ParameterSpec("WarningVariable", "wv", "variable_reference", channel="warning"),
    ParameterSpec(
        "InformationVariable", "iv", "variable_reference", channel="information"
    ),
    ParameterSpec("OutVariable", "ov", "variable_reference", channel="output"),
    ParameterSpec("OutBuffer", "ob", "non_negative_int"),
    ParameterSpec("PipelineVariable", "pv", "variable_reference", channel="pipeline"),
)


def _build_lookup(specs: Iterable[ParameterSpec]) -> dict[str, ParameterSpec]:
    lookup: dict[str, ParameterSpec] = {}
    for spec in specs:
        for key in (spec.name, spec.alias):
            normalized = key.lower()
            if normalized in lookup:
                raise ValueError(f"Duplicate common parameter name or alias: {key}")
            lookup[normalized] = spec
    return lookup


_LOOKUP: dict[str, ParameterSpec] = _build_lookup(COMMON_PARAMETERS)


def _normalize(name: str) -> str:
    return name.strip().lstrip("-").lower()


def get_parameter_spec(name: str) -> ParameterSpec | None:
    if not isinstance(name, str):
        return None
    return _LOOKUP.get(_normalize(name))


def resolve_common_parameter(name: str) -> str | None:
    spec = get_parameter_spec(name)
    return spec.name if spec is not None else None


def is_common_parameter(name: str) -> bool:
    return get_parameter_spec(name) is not None


def common_parameter_names() -> tuple[str, ...]:
    return tuple(spec.name for spec in COMMON_PARAMETERS)


def describe_common_parameters() -> tuple[dict[str, Any], ...]:
    return tuple(
        {"name": spec.name, "alias": spec.alias, "kind": spec.kind, "channel": spec.channel}
        for spec in COMMON_PARAMETERS
    )


def assert_no_collision(command_name: str, parameter_names: Iterable[str]) -> None:
    clashes = sorted({name for name in parameter_names if is_common_parameter(name)})
    if clashes:
        raise ContractViolation(
            f"Command {command_name} declares parameter(s) that collide with common parameters: "
            f"{', '.join(clashes)}"
        )


def split_arguments(arguments: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate common-parameter arguments (keyed by canonical name) from the rest."""

    common: dict[str, Any] = {}
    specific: dict[str, Any] = {}
    for key, value in arguments.items():
        spec = get_parameter_spec(key)
        if spec is None:
            specific[key] = value
            continue
        if spec.name in common:
            raise ParameterBindingError(f"Parameter {spec.name} was specified more than once")
        common[spec.name] = value
    return common, specific


class CommonParameters:
    """Common-parameter view over one invocation's runtime state."""

    def __init__(self, runtime: ParameterTarget | None):
        if runtime is None:
            raise ContractViolation("CommonParameters requires a command runtime")
        self._runtime = runtime

    def bind(self, arguments: Mapping[str, Any]) -> None:
        staged: list[tuple[ParameterSpec, Any]] = []
        for key, value in arguments.items():
            spec = get_parameter_spec(key)
            if spec is None:
                raise ParameterBindingError(f"Unknown common parameter: {key}")
            staged.append((spec, self._check(spec, value)))

        for spec, checked in staged:
            self._apply(spec, checked)

    def _check(self, spec: ParameterSpec, value: Any) -> Any:
        checked = spec.validate(value)
        if spec.kind == "action_preference":
            # Per-channel legality depends on the session's configuration.
            return self._runtime.preferences.check_action(spec.channel or "", checked)
        return checked

    def _apply(self, spec: ParameterSpec, checked: Any) -> None:
        if spec.kind == "switch":
            self._runtime.preferences.set_switch(spec.channel or "", checked)
        elif spec.kind == "action_preference":
            self._runtime.preferences.set_action(spec.channel or "", checked)
        elif spec.kind == "variable_reference":
            self._runtime.captures.set(spec.channel or "", checked.raw if checked else None)
        else:
            self._runtime.out_buffer = checked

    @property
    def verbose(self) -> bool:
        return self._runtime.preferences.verbose

    @verbose.setter
    def verbose(self, value: bool) -> None:
        self._runtime.preferences.verbose = value

    @property
    def debug(self) -> bool:
        return self._runtime.preferences.debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self._runtime.preferences.debug = value

    @property
    def error_action(self) -> ActionPreference:
        return self._runtime.preferences.error_action

    @error_action.setter
    def error_action(self, value: Any) -> None:
        self._runtime.preferences.error_action = value

    @property
    def warning_action(self) -> ActionPreference:
        return self._runtime.preferences.warning_action

    @warning_action.setter
    def warning_action(self, value: Any) -> None:
        self._runtime.preferences.warning_action = value

    @property
    def information_action(self) -> ActionPreference:
        return self._runtime.preferences.information_action

    @information_action.setter
    def information_action(self, value: Any) -> None:
        self._runtime.preferences.information_action = value

    @property
    def error_variable(self) -> str | None:
        return self._runtime.captures.get("error")

    @error_variable.setter
    def error_variable(self, value: str | None) -> None:
        self._runtime.captures.set("error", value)

    @property
    def warning_variable(self) -> str | None:
        return self._runtime.captures.get("warning")

    @warning_variable.setter
    def warning_variable(self, value: str | None) -> None:
        self._runtime.captures.set("warning", value)

    @property
    def information_variable(self) -> str | None:
        return self._runtime.captures.get("information")

    @information_variable.setter
    def information_variable(self, value: str | None) -> None:
        self._runtime.captures.set("information", value)

    @property
    def out_variable(self) -> str | None:
        return self._runtime.captures.get("output")

    @out_variable.setter
    def out_variable(self, value: str | None) -> None:
        self._runtime.captures.set("output", value)

    @property
    def out_buffer(self) -> int:
        return self._runtime.out_buffer

    @out_buffer.setter
    def out_buffer(self, value: int) -> None:
        self._runtime.out_buffer = validate_out_buffer("OutBuffer", value)

    @property
    def pipeline_variable(self) -> str | None:
        return self._runtime.captures.get("pipeline")

    @pipeline_variable.setter
    def pipeline_variable(self, value: str | None) -> None:
        self._runtime.captures.set("pipeline", value)
