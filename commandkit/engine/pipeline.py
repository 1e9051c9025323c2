"""Streaming pipeline runner for commands that carry common parameters.

This module is intentionally app-agnostic and must not import `pipeshell.*`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Callable, TypeAlias

from commandkit.common_parameters import CommonParameters, assert_no_collision, split_arguments
from commandkit.engine.runtime import CommandRuntime, EventSink, InvocationContext
from commandkit.errors import ContractViolation, ParameterBindingError, ScopeUnavailableError

ProcessFn: TypeAlias = Callable[[CommandRuntime, Any, dict[str, Any]], None]
PhaseFn: TypeAlias = Callable[[CommandRuntime, dict[str, Any]], None]


@dataclass(frozen=True)
class Command:
    name: str
    process: ProcessFn
    begin: PhaseFn | None = None
    end: PhaseFn | None = None
    parameters: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError(f"Command name must be a string (type={type(self.name).__name__})")
        name = self.name.strip()
        if not name:
            raise ValueError("Command name cannot be empty")
        object.__setattr__(self, "name", name)

        if not callable(self.process):
            raise TypeError(f"Command process must be callable (type={type(self.process).__name__})")
        for label in ("begin", "end"):
            fn = getattr(self, label)
            if fn is not None and not callable(fn):
                raise TypeError(f"Command {label} must be callable or None (type={type(fn).__name__})")

        normalized: list[str] = []
        for raw in self.parameters:
            if not isinstance(raw, str) or not raw.strip():
                raise TypeError(f"Command {name} parameter names must be non-empty strings")
            normalized.append(raw.strip())
        lowered = [item.lower() for item in normalized]
        if len(set(lowered)) != len(lowered):
            raise ValueError(f"Command {name} declares duplicate parameter names")
        assert_no_collision(name, normalized)
        object.__setattr__(self, "parameters", tuple(normalized))

    def resolve_arguments(self, arguments: Mapping[str, Any]) -> dict[str, Any]:
        declared = {item.lower(): item for item in self.parameters}
        resolved: dict[str, Any] = {}
        for key, value in arguments.items():
            canonical = declared.get(str(key).strip().lstrip("-").lower())
            if canonical is None:
                raise ParameterBindingError(
                    f"Command {self.name} has no parameter named {key!r}"
                )
            resolved[canonical] = value
        return resolved


Stage: TypeAlias = tuple[Command, Mapping[str, Any]]


@dataclass
class Invocation:
    index: int
    command: Command
    runtime: CommandRuntime
    common: CommonParameters
    arguments: dict[str, Any] = field(default_factory=dict)


class PipelineRunner:
    def __init__(self, ctx: InvocationContext | None, *, sink: EventSink | None = None):
        if ctx is None:
            raise ContractViolation("PipelineRunner requires an invocation context")
        self._ctx = ctx
        self._sink = sink

    def prepare(self, command: Command, arguments: Mapping[str, Any], *, index: int = 0) -> Invocation:
        """Bind all arguments for one invocation; raises before anything runs."""

        common_args, specific_args = split_arguments(arguments)
        resolved = command.resolve_arguments(specific_args)
        runtime = CommandRuntime(self._ctx, command_name=command.name, sink=self._sink)
        common = CommonParameters(runtime)
        common.bind(common_args)
        return Invocation(index=index, command=command, runtime=runtime, common=common, arguments=resolved)

    def run(
        self,
        stages: Sequence[Stage],
        input_items: Iterable[Any] | None = None,
    ) -> list[Any]:
        if not stages:
            raise ValueError("Pipeline requires at least one command")

        invocations: list[Invocation] = []
        for index, (command, arguments) in enumerate(stages):
            try:
                invocations.append(self.prepare(command, arguments or {}, index=index))
            except Exception as exc:
                self._attach_pipeline_error(exc, command=command.name, index=index)
                raise

        for upstream, downstream in zip(invocations, invocations[1:]):
            upstream.runtime.connect(self._feeder(downstream))

        failure: Exception | None = None
        try:
            for invocation in invocations:
                self._run_phase(invocation, invocation.command.begin)

            head = invocations[0]
            if input_items is None:
                self._process(head, None)
            else:
                for item in input_items:
                    self._process(head, item)

            for invocation in invocations:
                self._run_phase(invocation, invocation.command.end)
                invocation.runtime.flush()

            return list(invocations[-1].runtime.results)
        except Exception as exc:
            failure = exc
            raise
        finally:
            self._commit_all(invocations, failure=failure)

    def _feeder(self, invocation: Invocation) -> Callable[[Any], None]:
        def _feed(item: Any) -> None:
            self._process(invocation, item)

        return _feed

    def _process(self, invocation: Invocation, item: Any) -> None:
        try:
            invocation.command.process(invocation.runtime, item, invocation.arguments)
        except Exception as exc:
            self._attach_pipeline_error(exc, command=invocation.command.name, index=invocation.index)
            raise

    def _run_phase(self, invocation: Invocation, fn: PhaseFn | None) -> None:
        if fn is None:
            return
        try:
            fn(invocation.runtime, invocation.arguments)
        except Exception as exc:
            self._attach_pipeline_error(exc, command=invocation.command.name, index=invocation.index)
            raise

    def _commit_all(self, invocations: list[Invocation], *, failure: Exception | None) -> None:
        # Captures made before a failure stay committed; nothing is rolled back.
        errors: list[ScopeUnavailableError] = []
        for invocation in invocations:
            try:
                invocation.runtime.commit()
            except ScopeUnavailableError as exc:
                if failure is not None:
                    self._ctx.logger.error(
                        "Capture commit failed for %s after pipeline error: %s",
                        invocation.command.name,
                        exc,
                    )
                    continue
                errors.append(exc)
        if errors:
            raise errors[0]

    def _attach_pipeline_error(self, exc: Exception, *, command: str, index: int) -> None:
        if not hasattr(exc, "pipeline_command"):
            try:
                setattr(exc, "pipeline_command", command)
            except Exception:
                pass
        if not hasattr(exc, "pipeline_index"):
            try:
                setattr(exc, "pipeline_index", index)
            except Exception:
                pass
