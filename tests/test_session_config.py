import logging
from pathlib import Path

import pytest

from commandkit.preferences import ActionPreference, AmbientPreferences
from commandkit.scope import VariableScope
from pipeshell.foundation.config_io import load_config
from pipeshell.foundation.logging_utils import setup_session_logger
from pipeshell.framework.config import SessionConfig
from pipeshell.framework.session import SessionContext


def test_empty_config_uses_built_in_defaults():
    cfg, warnings = SessionConfig.from_dict({})

    assert cfg.ambient == AmbientPreferences()
    assert cfg.logging.level == "INFO"
    assert cfg.logging.log_dir is None
    assert warnings == []


def test_repo_config_file_parses_cleanly():
    repo_root = Path(__file__).resolve().parents[1]
    raw, _meta = load_config(config_path=str(repo_root / "config" / "config.yaml"))

    cfg, warnings = SessionConfig.from_dict(raw)

    assert warnings == []
    assert cfg.ambient.error is ActionPreference.Continue
    assert not cfg.legal_actions.permits("error", ActionPreference.Suspend)
    assert cfg.legal_actions.permits("error", ActionPreference.Ignore)


def test_preference_names_are_case_insensitive():
    cfg, _warnings = SessionConfig.from_dict({"preferences": {"error": "stop", "verbose": "CONTINUE"}})

    assert cfg.ambient.error is ActionPreference.Stop
    assert cfg.ambient.verbose is ActionPreference.Continue


def test_unknown_keys_are_rejected():
    with pytest.raises(ValueError, match=r"Unknown config keys under preferences: eror"):
        SessionConfig.from_dict({"preferences": {"eror": "Stop"}})

    with pytest.raises(ValueError, match=r"Unknown config keys under <root>: extras"):
        SessionConfig.from_dict({"extras": {}})


@pytest.mark.parametrize("value", ["Ignore", "Suspend", "Sometimes"])
def test_ambient_preference_outside_choices_is_rejected(value):
    with pytest.raises(ValueError, match=r"preferences\.warning must be one of"):
        SessionConfig.from_dict({"preferences": {"warning": value}})


def test_invalid_legal_action_name_reports_path():
    with pytest.raises(ValueError, match=r"preferences\.legal_actions\.error\[1\]"):
        SessionConfig.from_dict({"preferences": {"legal_actions": {"error": ["Stop", "Nope"]}}})


def test_ambient_outside_legal_set_is_a_warning():
    cfg, warnings = SessionConfig.from_dict(
        {"preferences": {"error": "Stop", "legal_actions": {"error": ["Continue"]}}}
    )

    assert cfg.ambient.error is ActionPreference.Stop
    assert len(warnings) == 1
    assert "preferences.error=Stop" in warnings[0]


def test_logging_level_must_be_known():
    with pytest.raises(ValueError, match=r"logging\.level must be one of"):
        SessionConfig.from_dict({"logging": {"level": "LOUD"}})


def test_session_context_from_config_and_inquire():
    cfg, _warnings = SessionConfig.from_dict({"preferences": {"error": "Inquire"}})
    logger = logging.getLogger("test.session_config")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False

    ctx = SessionContext.from_config(cfg, session_id="s1", logger=logger)
    assert ctx.scope.name == "s1"
    assert ctx.ambient.error is ActionPreference.Inquire
    assert ctx.inquire("error", "E") is True

    answered: list[tuple[str, object]] = []

    def _deny(channel, record) -> bool:
        answered.append((channel, record))
        return False

    denying = SessionContext.from_config(cfg, session_id="s2", logger=logger, inquire_handler=_deny)
    assert denying.inquire("warning", "W") is False
    assert answered == [("warning", "W")]


def test_child_scope_reads_parent_and_keeps_writes_local():
    logger = logging.getLogger("test.session_config")
    parent = SessionContext(session_id="s", logger=logger, scope=VariableScope("session"))
    parent.scope.write_variable("shared", 1)

    child = parent.with_child_scope("job")
    child.scope.write_variable("local", 2)

    assert child.scope.read_variable("shared") == 1
    assert parent.scope.has_variable("local") is False
    assert child.ambient is parent.ambient


def test_session_logger_writes_utf8_file(tmp_path):
    logger, log_file = setup_session_logger(str(tmp_path / "logs"), "unit", level="WARNING")
    try:
        logger.info("Log entry with arrow \u2192")
        assert logger.propagate is False
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    assert log_file is not None
    content = Path(log_file).read_text(encoding="utf-8")
    assert "Log entry with arrow \u2192" in content
    assert " | INFO | " in content


def test_null_or_missing_sections_read_as_defaults():
    cfg, warnings = SessionConfig.from_dict({"preferences": None, "logging": None})

    assert cfg.ambient == AmbientPreferences()
    assert cfg.logging.level == "INFO"
    assert warnings == []


def test_section_that_is_not_a_mapping_is_rejected():
    with pytest.raises(TypeError, match=r"preferences must be a mapping"):
        SessionConfig.from_dict({"preferences": ["error"]})
