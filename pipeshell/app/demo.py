"""Sample pipeline that exercises the common parameters end to end."""

from __future__ import annotations

import uuid
from typing import Any, Mapping

from commandkit.engine.pipeline import Command, PipelineRunner
from commandkit.engine.runtime import CommandRuntime
from commandkit.errors import ActionPreferenceStopError
from pipeshell.foundation.config_io import load_config
from pipeshell.foundation.logging_utils import setup_session_logger
from pipeshell.framework.config import SessionConfig
from pipeshell.framework.session import SessionContext


def _emit_range(runtime: CommandRuntime, _item: Any, params: dict[str, Any]) -> None:
    count = int(params.get("Count", 5))
    runtime.write_verbose(f"emitting {count} item(s)")
    for value in range(1, count + 1):
        runtime.write_output(value)


def _check_item(runtime: CommandRuntime, item: Any, _params: dict[str, Any]) -> None:
    if item % 3 == 0:
        runtime.write_error(f"{item} is divisible by 3")
        return
    if item % 2 == 0:
        runtime.write_warning(f"{item} is even")
    runtime.write_information(f"checked {item}")
    runtime.write_output(item)


RANGE_COMMAND = Command(name="Get-Range", process=_emit_range, parameters=("Count",))
CHECK_COMMAND = Command(name="Test-Item", process=_check_item)


def run_demo(
    *,
    count: int,
    range_arguments: Mapping[str, Any],
    check_arguments: Mapping[str, Any],
    config_path: str | None = None,
    ctx: SessionContext | None = None,
) -> dict[str, Any]:
    if ctx is None:
        raw, _meta = load_config(config_path=config_path)
        cfg, warnings = SessionConfig.from_dict(raw)
        session_id = f"demo_{uuid.uuid4().hex[:8]}"
        logger, _log_file = setup_session_logger(
            cfg.logging.log_dir, session_id, level=cfg.logging.level
        )
        for warning in warnings:
            logger.warning("Config warning: %s", warning)
        ctx = SessionContext.from_config(cfg, session_id=session_id, logger=logger)

    runner = PipelineRunner(ctx)
    stopped: str | None = None
    results: list[Any] = []
    try:
        results = runner.run(
            [
                (RANGE_COMMAND, {"Count": count, **dict(range_arguments)}),
                (CHECK_COMMAND, dict(check_arguments)),
            ]
        )
    except ActionPreferenceStopError as exc:
        ctx.logger.error("Pipeline stopped by %s preference: %s", exc.channel, exc.record)
        stopped = str(exc)

    return {
        "results": results,
        "stopped": stopped,
        "variables": ctx.scope.variables(),
    }
