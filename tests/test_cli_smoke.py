import json

from pipeshell import cli


def _write_config(tmp_path, *lines: str):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("\n".join([*lines, "logging:", "  log_dir: null", ""]), encoding="utf-8")
    return config_path


def test_cli_list_parameters_smoke(capsys):
    rc = cli.main(["list-parameters"])
    assert rc == 0

    out = capsys.readouterr().out
    assert "ErrorVariable" in out
    assert "-infa" in out


def test_cli_list_parameters_json(capsys):
    rc = cli.main(["list-parameters", "--json"])
    assert rc == 0

    rows = json.loads(capsys.readouterr().out)
    assert [row["alias"] for row in rows][:3] == ["vb", "db", "ea"]


def test_cli_list_workflow_parameters(capsys):
    rc = cli.main(["list-workflow-parameters"])
    assert rc == 0
    assert "PSConnectionRetryIntervalSec" in capsys.readouterr().out


def test_cli_check_variable(capsys):
    assert cli.main(["check-variable", "+errs"]) == 0
    assert "ErrorVariable: $errs (append)" in capsys.readouterr().out

    assert cli.main(["check-variable", "env:PATH", "--parameter", "OutVariable"]) == 1
    err = capsys.readouterr().err
    assert "ArgumentNotValidVariableName" in err
    assert "OutVariable" in err


def test_cli_show_preferences(tmp_path, capsys):
    config_path = _write_config(tmp_path, "preferences:", "  error: Stop")

    rc = cli.main(["show-preferences", "--config", str(config_path)])
    assert rc == 0

    out = capsys.readouterr().out
    assert "error        Stop" in out
    assert "warning      Continue" in out


def test_cli_demo_captures_into_session_scope(tmp_path, capsys):
    config_path = _write_config(tmp_path, "preferences:", "  error: SilentlyContinue")

    rc = cli.main(
        [
            "demo",
            "--config",
            str(config_path),
            "--count",
            "6",
            "--error-variable",
            "errs",
            "--out-variable",
            "out",
            "--pipeline-variable",
            "p",
            "--out-buffer",
            "2",
        ]
    )
    assert rc == 0

    outcome = json.loads(capsys.readouterr().out)
    assert outcome["stopped"] is None
    assert outcome["results"] == [1, 2, 4, 5]
    assert outcome["variables"]["errs"] == ["3 is divisible by 3", "6 is divisible by 3"]
    assert outcome["variables"]["out"] == [1, 2, 4, 5]
    assert outcome["variables"]["p"] == 6


def test_cli_demo_stop_returns_nonzero(tmp_path, capsys):
    config_path = _write_config(tmp_path, "preferences:", "  error: SilentlyContinue")

    rc = cli.main(
        ["demo", "--config", str(config_path), "--error-action", "Stop", "--error-variable", "errs"]
    )
    assert rc == 1

    outcome = json.loads(capsys.readouterr().out)
    assert outcome["stopped"]
    assert outcome["variables"]["errs"] == ["3 is divisible by 3"]


def test_cli_demo_invalid_variable_is_usage_error(tmp_path, capsys):
    config_path = _write_config(tmp_path, "preferences:", "  error: SilentlyContinue")

    rc = cli.main(["demo", "--config", str(config_path), "--out-variable", "a.b"])
    assert rc == 2
    assert "OutVariable" in capsys.readouterr().err
