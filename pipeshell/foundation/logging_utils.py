"""Session logger setup."""

from __future__ import annotations

import logging
import os


def setup_session_logger(
    log_dir: str | None,
    session_id: str,
    *,
    level: str = "INFO",
) -> tuple[logging.Logger, str | None]:
    """
    Configure the logger a session hands to every invocation context.
    Logs go to stderr and, when `log_dir` is set, to a UTF-8 file in it.
    """

    logger = logging.getLogger(f"pipeshell.{session_id}")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{session_id}.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Session logging initialized for %s (file=%s)", session_id, log_file)
    return logger, log_file
