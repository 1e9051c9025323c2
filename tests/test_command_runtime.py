import logging

import pytest

from commandkit.engine.runtime import CommandRuntime, DefaultEventSink, NullEventSink
from commandkit.errors import ActionPreferenceStopError, ContractViolation, ScopeUnavailableError
from commandkit.preferences import ActionPreference, AmbientPreferences
from commandkit.scope import MISSING
from pipeshell.framework.session import SessionContext


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def on_error(self, ctx, command, record) -> None:
        self.events.append(("error", record))

    def on_warning(self, ctx, command, record) -> None:
        self.events.append(("warning", record))

    def on_information(self, ctx, command, record) -> None:
        self.events.append(("information", record))

    def on_verbose(self, ctx, command, message) -> None:
        self.events.append(("verbose", message))

    def on_debug(self, ctx, command, message) -> None:
        self.events.append(("debug", message))


def _make_ctx(*, inquire_handler=None, **ambient) -> SessionContext:
    logger = logging.getLogger("test.command_runtime")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return SessionContext(
        session_id="test",
        logger=logger,
        ambient=AmbientPreferences(**ambient),
        inquire_handler=inquire_handler,
    )


def _make_runtime(ctx=None, **kwargs) -> tuple[CommandRuntime, RecordingSink]:
    sink = RecordingSink()
    runtime = CommandRuntime(ctx or _make_ctx(), command_name="Test-Command", sink=sink, **kwargs)
    return runtime, sink


def test_runtime_requires_context():
    with pytest.raises(ContractViolation):
        CommandRuntime(None)


def test_runtime_rejects_incomplete_sink():
    class HalfSink:
        def on_error(self, ctx, command, record) -> None:
            return

    with pytest.raises(TypeError, match=r"on_warning"):
        CommandRuntime(_make_ctx(), sink=HalfSink())


def test_continue_forwards_and_captures():
    runtime, sink = _make_runtime()
    runtime.captures.set("error", "errs")

    runtime.write_error("E1")
    runtime.write_error("E2")
    runtime.commit()

    assert sink.events == [("error", "E1"), ("error", "E2")]
    assert runtime.context.scope.read_variable("errs") == ["E1", "E2"]


def test_silently_continue_captures_without_forwarding():
    runtime, sink = _make_runtime()
    runtime.captures.set("information", "info")

    runtime.write_information("I1")
    runtime.commit()

    assert sink.events == []
    assert runtime.context.scope.read_variable("info") == ["I1"]


def test_ignore_neither_forwards_nor_captures():
    runtime, sink = _make_runtime()
    runtime.captures.set("warning", "warns")
    runtime.preferences.warning_action = "Ignore"

    runtime.write_warning("W1")
    runtime.commit()

    assert sink.events == []
    assert runtime.context.scope.read_variable("warns") is MISSING


def test_stop_captures_then_raises():
    runtime, sink = _make_runtime()
    runtime.captures.set("error", "errs")
    runtime.preferences.error_action = "Stop"

    with pytest.raises(ActionPreferenceStopError) as excinfo:
        runtime.write_error("boom")

    assert excinfo.value.channel == "error"
    assert excinfo.value.record == "boom"
    assert excinfo.value.preference is ActionPreference.Stop
    assert sink.events == []
    assert runtime.session.pending("error") == ["boom"]


def test_inquire_consults_context():
    answers = iter([True, False])
    ctx = _make_ctx(inquire_handler=lambda channel, record: next(answers))
    runtime, sink = _make_runtime(ctx)
    runtime.preferences.warning_action = "Inquire"

    runtime.write_warning("first")
    with pytest.raises(ActionPreferenceStopError):
        runtime.write_warning("second")

    assert sink.events == [("warning", "first")]


def test_inquire_without_handler_continues():
    runtime, sink = _make_runtime()
    runtime.preferences.error_action = "Inquire"

    runtime.write_error("E")

    assert sink.events == [("error", "E")]


def test_preference_change_mid_invocation_applies_to_later_events():
    runtime, sink = _make_runtime()
    runtime.captures.set("warning", "warns")

    runtime.write_warning("W1")
    runtime.preferences.warning_action = "SilentlyContinue"
    runtime.write_warning("W2")
    runtime.commit()

    assert sink.events == [("warning", "W1")]
    assert runtime.context.scope.read_variable("warns") == ["W1", "W2"]


def test_verbose_and_debug_follow_switch_then_ambient():
    runtime, sink = _make_runtime(_make_ctx(verbose="Continue"))

    runtime.write_verbose("v1")
    runtime.write_debug("d1")
    runtime.preferences.debug = True
    runtime.write_debug("d2")
    runtime.preferences.verbose = False
    runtime.write_verbose("v2")

    assert sink.events == [("verbose", "v1"), ("debug", "d2")]


def test_out_buffer_batches_downstream_delivery():
    received: list[int] = []
    runtime, _sink = _make_runtime(downstream=received.append)
    runtime.out_buffer = 2

    runtime.write_output(1)
    runtime.write_output(2)
    assert received == []

    runtime.write_output(3)
    assert received == [1, 2, 3]

    runtime.write_output(4)
    assert received == [1, 2, 3]

    runtime.flush()
    assert received == [1, 2, 3, 4]


def test_zero_out_buffer_forwards_each_item():
    received: list[int] = []
    runtime, _sink = _make_runtime(downstream=received.append)

    runtime.write_output("a")
    assert received == ["a"]


def test_output_without_downstream_collects_results_and_out_variable():
    runtime, _sink = _make_runtime()
    runtime.captures.set("output", "out")

    runtime.write_output(1)
    runtime.write_output(2)
    runtime.commit()

    assert runtime.results == [1, 2]
    assert runtime.context.scope.read_variable("out") == [1, 2]


def test_commit_after_scope_teardown_raises():
    runtime, _sink = _make_runtime()
    runtime.captures.set("output", "out")
    runtime.write_output(1)

    runtime.context.scope.tear_down()

    with pytest.raises(ScopeUnavailableError):
        runtime.commit()


def test_default_sink_logs_through_context_logger(caplog):
    ctx = _make_ctx(verbose="Continue")
    ctx.logger.propagate = True
    runtime = CommandRuntime(ctx, command_name="Get-Thing", sink=DefaultEventSink())

    with caplog.at_level(logging.INFO, logger=ctx.logger.name):
        runtime.write_warning("careful")
        runtime.write_verbose("details")

    messages = [record.getMessage() for record in caplog.records]
    assert "Get-Thing: careful" in messages
    assert "VERBOSE: Get-Thing: details" in messages


def test_null_sink_accepts_every_channel():
    runtime = CommandRuntime(_make_ctx(information="Continue"), sink=NullEventSink())
    runtime.preferences.debug = True
    runtime.write_information("I")
    runtime.write_debug("D")
