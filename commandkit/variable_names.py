from __future__ import annotations

import re
from typing import Any

from commandkit.errors import ParameterValidationError

APPEND_PREFIX = "+"

_SIMPLE_NAME = re.compile(r"[\w?]+")


def split_append_prefix(raw: str) -> tuple[str, bool]:
    """Strip one leading '+' and report whether it was present."""

    if raw.startswith(APPEND_PREFIX):
        return raw[len(APPEND_PREFIX) :], True
    return raw, False


def is_valid_variable_name(candidate: Any) -> bool:
    """True iff `candidate` is a single, unqualified variable name.

    The append prefix must already be stripped. Scope or drive qualifiers
    (`global:x`, `env:PATH`), path segments (`a.b`, `a/b`) and expressions
    (`$x`, `${x}`, `x + 1`) are rejected.
    """

    if not isinstance(candidate, str) or not candidate:
        return False
    return _SIMPLE_NAME.fullmatch(candidate) is not None


def validate_variable_name(parameter_name: str, raw: Any) -> tuple[str, bool]:
    if not isinstance(raw, str):
        raise ParameterValidationError(
            parameter_name,
            raw,
            error_id="ArgumentNotValidVariableName",
            detail=f"expected a variable name string (type={type(raw).__name__})",
        )
    name, append = split_append_prefix(raw)
    if not is_valid_variable_name(name):
        raise ParameterValidationError(
            parameter_name,
            raw,
            error_id="ArgumentNotValidVariableName",
            detail=f"{name!r} is not a valid variable name",
        )
    return name, append
