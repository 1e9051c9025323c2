"""Per-invocation runtime: event emission, output buffering and capture.

This module is intentionally app-agnostic and must not import `pipeshell.*`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from commandkit.capture import CaptureSession, VariableCaptureBinding
from commandkit.errors import ActionPreferenceStopError, ContractViolation
from commandkit.preferences import (
    ActionPreference,
    ActionPreferenceChannel,
    AmbientPreferences,
    LegalActions,
)
from commandkit.scope import VariableScope


class InvocationContext(Protocol):
    logger: logging.Logger
    scope: VariableScope
    ambient: AmbientPreferences
    legal_actions: LegalActions

    def inquire(self, channel: str, record: Any) -> bool:
        ...


class EventSink(Protocol):
    def on_error(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ...

    def on_warning(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ...

    def on_information(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ...

    def on_verbose(self, ctx: InvocationContext, command: str, message: str) -> None:
        ...

    def on_debug(self, ctx: InvocationContext, command: str, message: str) -> None:
        ...


class DefaultEventSink:
    def on_error(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ctx.logger.error("%s: %s", command, record)

    def on_warning(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ctx.logger.warning("%s: %s", command, record)

    def on_information(self, ctx: InvocationContext, command: str, record: Any) -> None:
        ctx.logger.info("%s: %s", command, record)

    def on_verbose(self, ctx: InvocationContext, command: str, message: str) -> None:
        ctx.logger.info("VERBOSE: %s: %s", command, message)

    def on_debug(self, ctx: InvocationContext, command: str, message: str) -> None:
        ctx.logger.debug("DEBUG: %s: %s", command, message)


class NullEventSink:
    def on_error(self, ctx: InvocationContext, command: str, record: Any) -> None:
        return

    def on_warning(self, ctx: InvocationContext, command: str, record: Any) -> None:
        return

    def on_information(self, ctx: InvocationContext, command: str, record: Any) -> None:
        return

    def on_verbose(self, ctx: InvocationContext, command: str, message: str) -> None:
        return

    def on_debug(self, ctx: InvocationContext, command: str, message: str) -> None:
        return


def _validate_sink(sink: EventSink) -> None:
    required = ("on_error", "on_warning", "on_information", "on_verbose", "on_debug")
    for name in required:
        method = getattr(sink, name, None)
        if method is None or not callable(method):
            raise TypeError(f"Event sink missing required method: {name}")


_HALTING: frozenset[ActionPreference] = frozenset({ActionPreference.Stop, ActionPreference.Suspend})


class CommandRuntime:
    def __init__(
        self,
        ctx: InvocationContext | None,
        *,
        command_name: str = "<command>",
        sink: EventSink | None = None,
        downstream: Callable[[Any], None] | None = None,
    ):
        if ctx is None:
            raise ContractViolation("CommandRuntime requires an invocation context")
        self._ctx = ctx
        self.command_name = command_name
        self.preferences = ActionPreferenceChannel(ctx.ambient, ctx.legal_actions)
        self.captures = VariableCaptureBinding()
        self.out_buffer = 0
        self._sink = sink or DefaultEventSink()
        _validate_sink(self._sink)
        self._downstream = downstream
        self._pending: list[Any] = []
        self._session: CaptureSession | None = None
        self.results: list[Any] = []

    @property
    def context(self) -> InvocationContext:
        return self._ctx

    @property
    def session(self) -> CaptureSession:
        if self._session is None:
            self._session = CaptureSession(self.captures, self._ctx.scope)
        return self._session

    def connect(self, downstream: Callable[[Any], None] | None) -> None:
        self._downstream = downstream

    def write_error(self, record: Any) -> None:
        self._emit("error", record, self._sink.on_error)

    def write_warning(self, record: Any) -> None:
        self._emit("warning", record, self._sink.on_warning)

    def write_information(self, record: Any) -> None:
        self._emit("information", record, self._sink.on_information)

    def write_verbose(self, message: str) -> None:
        if self.preferences.verbose:
            self._sink.on_verbose(self._ctx, self.command_name, message)

    def write_debug(self, message: str) -> None:
        if self.preferences.debug:
            self._sink.on_debug(self._ctx, self.command_name, message)

    def _emit(
        self,
        channel: str,
        record: Any,
        forward: Callable[[InvocationContext, str, Any], None],
    ) -> None:
        # Read live so a change made earlier in this invocation applies here.
        preference = self.preferences.effective(channel)
        if preference is ActionPreference.Ignore:
            return

        self.session.capture(channel, record)

        if preference in _HALTING:
            raise ActionPreferenceStopError(channel, record, preference)
        if preference is ActionPreference.Inquire:
            if not self._ctx.inquire(channel, record):
                raise ActionPreferenceStopError(channel, record, preference)
            forward(self._ctx, self.command_name, record)
            return
        if preference is ActionPreference.Continue:
            forward(self._ctx, self.command_name, record)

    def write_output(self, item: Any) -> None:
        self.session.capture("output", item)
        self._pending.append(item)
        if len(self._pending) > self.out_buffer:
            self.flush()

    def flush(self) -> None:
        batch, self._pending = self._pending, []
        for item in batch:
            self.session.capture("pipeline", item)
            if self._downstream is None:
                self.results.append(item)
            else:
                self._downstream(item)

    def commit(self) -> dict[str, list[Any]]:
        return self.session.commit()
