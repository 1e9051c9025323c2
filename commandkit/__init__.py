"""Common parameters for pipeline command invocations (kernel).

This package is intentionally independent of `pipeshell.*`. Session wiring,
config files and presentation live in the consuming application.
"""

from commandkit.capture import (
    CAPTURE_CHANNELS,
    CaptureSession,
    VariableCaptureBinding,
    VariableReference,
)
from commandkit.common_parameters import (
    COMMON_PARAMETERS,
    CommonParameters,
    ParameterSpec,
    assert_no_collision,
    is_common_parameter,
    resolve_common_parameter,
    split_arguments,
)
from commandkit.config_namespace import ConfigNamespace
from commandkit.errors import (
    ActionPreferenceStopError,
    ContractViolation,
    ParameterBindingError,
    ParameterValidationError,
    ScopeUnavailableError,
)
from commandkit.preferences import (
    ActionPreference,
    ActionPreferenceChannel,
    AmbientPreferences,
    LegalActions,
)
from commandkit.scope import MISSING, VariableScope
from commandkit.variable_names import is_valid_variable_name
from commandkit.workflow_parameters import WORKFLOW_PARAMETERS

__all__ = [
    "CAPTURE_CHANNELS",
    "COMMON_PARAMETERS",
    "MISSING",
    "WORKFLOW_PARAMETERS",
    "ActionPreference",
    "ActionPreferenceChannel",
    "ActionPreferenceStopError",
    "AmbientPreferences",
    "CaptureSession",
    "CommonParameters",
    "ConfigNamespace",
    "ContractViolation",
    "LegalActions",
    "ParameterBindingError",
    "ParameterSpec",
    "ParameterValidationError",
    "ScopeUnavailableError",
    "VariableCaptureBinding",
    "VariableReference",
    "VariableScope",
    "assert_no_collision",
    "is_common_parameter",
    "is_valid_variable_name",
    "resolve_common_parameter",
    "split_arguments",
]
