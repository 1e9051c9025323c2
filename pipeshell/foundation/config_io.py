"""Locate and read the session's YAML settings."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_ENV_VAR = "PIPESHELL_CONFIG"
BASE_CONFIG = "config.yaml"
LOCAL_OVERLAY = "config.local.yaml"


def find_repo_root(start: str | os.PathLike[str] | None = None) -> Path:
    """Nearest directory at or above `start` holding `pyproject.toml` or `.git`."""

    here = Path(start or Path.cwd()).resolve()
    if here.is_file():
        here = here.parent
    for candidate in (here, *here.parents):
        if (candidate / "pyproject.toml").is_file() or (candidate / ".git").exists():
            return candidate
    raise FileNotFoundError(f"No pyproject.toml or .git found at or above {here}")


def read_yaml_file(path: Path) -> dict[str, Any]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValueError(
            f"Config file must contain a YAML mapping: {path} (got {type(payload).__name__})"
        )
    return dict(payload)


def merge_overlay(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    *,
    prefix: str = "",
) -> dict[str, Any]:
    """Apply a local overlay section by section.

    Nested sections merge key by key; any other overlay value replaces the base
    value outright. A section can be blanked with null but not turned into a
    scalar or list.
    """

    merged = dict(base)
    for key, value in overlay.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overlay(current, value, prefix=dotted)
        elif isinstance(current, Mapping) and value is not None:
            raise ValueError(
                f"Config overlay cannot replace section {dotted} with a {type(value).__name__}"
            )
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    config_path: str | os.PathLike[str] | None = None,
    env_var: str | None = CONFIG_ENV_VAR,
    config_dir: str | os.PathLike[str] = "config",
    start_dir: str | os.PathLike[str] | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return `(cfg, meta)` for a session.

    Sources, first match wins: `config_path`; the file named by `env_var`;
    `config_dir/config.yaml` with `config.local.yaml` merged over it. A relative
    `config_dir` is taken from the repo root. `meta` records the mode, the files
    read and the repo root used.
    """

    if config_path is not None:
        single, mode = str(config_path).strip(), "explicit"
    else:
        single, mode = (os.environ.get(env_var, "").strip() if env_var else ""), "env"

    if single:
        path = Path(os.path.abspath(os.path.expanduser(os.path.expandvars(single))))
        meta = {"mode": mode, "paths": [str(path)], "env_var": env_var, "repo_root": None}
        return read_yaml_file(path), meta

    directory = Path(config_dir)
    repo_root: Path | None = None
    if not directory.is_absolute():
        repo_root = find_repo_root(start_dir)
        directory = repo_root / directory

    base = directory / BASE_CONFIG
    if not base.is_file():
        raise FileNotFoundError(f"Missing base config file: {base}")
    cfg = read_yaml_file(base)
    paths = [str(base.absolute())]

    overlay = directory / LOCAL_OVERLAY
    if overlay.is_file():
        cfg = merge_overlay(cfg, read_yaml_file(overlay))
        paths.append(str(overlay.absolute()))

    meta = {
        "mode": "base+local" if len(paths) > 1 else "base",
        "paths": paths,
        "env_var": env_var,
        "repo_root": str(repo_root) if repo_root is not None else None,
    }
    return cfg, meta
