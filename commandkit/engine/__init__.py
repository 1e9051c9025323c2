"""Invocation runtime and the streaming pipeline runner."""

from commandkit.engine.pipeline import Command, Invocation, PipelineRunner, Stage
from commandkit.engine.runtime import (
    CommandRuntime,
    DefaultEventSink,
    EventSink,
    InvocationContext,
    NullEventSink,
)

__all__ = [
    "Command",
    "CommandRuntime",
    "DefaultEventSink",
    "EventSink",
    "Invocation",
    "InvocationContext",
    "NullEventSink",
    "PipelineRunner",
    "Stage",
]
