"""Exception types shared by the common-parameter kernel."""

from __future__ import annotations

from typing import Any


class ContractViolation(RuntimeError):
    """Programming error in how the kernel is wired (never user-facing)."""


class ParameterValidationError(ValueError):
    def __init__(
        self,
        parameter_name: str,
        raw_value: Any,
        *,
        error_id: str,
        detail: str | None = None,
    ) -> None:
        self.parameter_name = parameter_name
        self.raw_value = raw_value
        self.error_id = error_id
        message = f"Cannot validate argument on parameter '{parameter_name}' (value={raw_value!r})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ParameterBindingError(ValueError):
    """Raised when an argument name does not resolve to a known parameter."""


class ScopeUnavailableError(RuntimeError):
    """The caller's variable scope was torn down before a capture could be committed."""


class ActionPreferenceStopError(RuntimeError):
    def __init__(self, channel: str, record: Any, preference: Any) -> None:
        self.channel = channel
        self.record = record
        self.preference = preference
        super().__init__(
            f"Command execution stopped because the {channel} action preference is "
            f"{getattr(preference, 'name', preference)}: {record}"
        )
