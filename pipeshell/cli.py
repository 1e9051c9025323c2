from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any

from commandkit.common_parameters import COMMON_PARAMETERS, describe_common_parameters
from commandkit.errors import ParameterBindingError, ParameterValidationError
from commandkit.preferences import PREFERENCE_CHANNELS, ActionPreference
from commandkit.variable_names import validate_variable_name
from commandkit.workflow_parameters import WORKFLOW_PARAMETERS

_VARIABLE_PARAMETERS = tuple(
    spec.name for spec in COMMON_PARAMETERS if spec.kind == "variable_reference"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pipeshell", add_help=True)
    sub = parser.add_subparsers(dest="command", required=True)

    list_params = sub.add_parser("list-parameters", help="List the common parameters")
    list_params.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    sub.add_parser("list-workflow-parameters", help="List job-mode parameter metadata")

    check = sub.add_parser("check-variable", help="Validate a capture variable name")
    check.add_argument("name")
    check.add_argument("--parameter", default="ErrorVariable", choices=_VARIABLE_PARAMETERS)

    show = sub.add_parser("show-preferences", help="Show ambient preferences from config")
    show.add_argument("--config", default=None, help="Config file to load instead of the repo default")

    demo = sub.add_parser("demo", help="Run a sample two-command pipeline")
    demo.add_argument("--config", default=None)
    demo.add_argument("--count", type=int, default=6)
    demo.add_argument("--verbose", action="store_true")
    actions = [member.name for member in ActionPreference]
    demo.add_argument("--error-action", choices=actions)
    demo.add_argument("--warning-action", choices=actions)
    demo.add_argument("--information-action", choices=actions)
    demo.add_argument("--error-variable")
    demo.add_argument("--warning-variable")
    demo.add_argument("--information-variable")
    demo.add_argument("--out-variable")
    demo.add_argument("--out-buffer", type=int)
    demo.add_argument(
        "--pipeline-variable", help="Bound on the first command; its value is visible downstream"
    )

    return parser


def _list_parameters(as_json: bool) -> int:
    rows = describe_common_parameters()
    if as_json:
        print(json.dumps(list(rows), indent=2))
        return 0
    for row in rows:
        print(f"{row['name']:<20} -{row['alias']:<6} {row['kind']}")
    return 0


def _check_variable(name: str, parameter: str) -> int:
    try:
        target, append = validate_variable_name(parameter, name)
    except ParameterValidationError as exc:
        print(f"{exc.error_id}: {exc}", file=sys.stderr)
        return 1
    mode = "append" if append else "replace"
    print(f"{parameter}: ${target} ({mode})")
    return 0


def _show_preferences(config_path: str | None) -> int:
    from .foundation.config_io import load_config
    from .framework.config import SessionConfig

    raw, meta = load_config(config_path=config_path)
    cfg, warnings = SessionConfig.from_dict(raw)
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    print(f"# loaded: {', '.join(meta['paths'])}")
    for channel in PREFERENCE_CHANNELS:
        print(f"{channel:<12} {cfg.ambient.get(channel).name}")
    return 0


def _demo_arguments(args: argparse.Namespace) -> tuple[dict[str, Any], dict[str, Any]]:
    check: dict[str, Any] = {}
    if args.verbose:
        check["Verbose"] = True
    mapping = {
        "ErrorAction": args.error_action,
        "WarningAction": args.warning_action,
        "InformationAction": args.information_action,
        "ErrorVariable": args.error_variable,
        "WarningVariable": args.warning_variable,
        "InformationVariable": args.information_variable,
        "OutVariable": args.out_variable,
        "OutBuffer": args.out_buffer,
    }
    check.update({key: value for key, value in mapping.items() if value is not None})

    upstream: dict[str, Any] = {}
    if args.pipeline_variable is not None:
        upstream["PipelineVariable"] = args.pipeline_variable
    return upstream, check


def _run_demo(args: argparse.Namespace) -> int:
    from .app.demo import run_demo

    upstream, check = _demo_arguments(args)
    try:
        outcome = run_demo(
            count=args.count,
            range_arguments=upstream,
            check_arguments=check,
            config_path=args.config,
        )
    except (ParameterValidationError, ParameterBindingError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    print(json.dumps(outcome, indent=2, default=str))
    return 1 if outcome["stopped"] else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    if args.command == "list-parameters":
        return _list_parameters(args.json)

    if args.command == "list-workflow-parameters":
        for name, type_name in WORKFLOW_PARAMETERS:
            print(f"{name:<30} {type_name}")
        return 0

    if args.command == "check-variable":
        return _check_variable(args.name, args.parameter)

    if args.command == "show-preferences":
        return _show_preferences(args.config)

    if args.command == "demo":
        return _run_demo(args)

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
