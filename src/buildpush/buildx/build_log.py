"""Logging for buildpush: console output (GitHub workflow commands in Actions) and an optional log file."""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

LOGGER_NAME = "buildpush"

_WORKFLOW_COMMANDS = {
    logging.DEBUG: "debug",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "error",
}


def get_logger() -> logging.Logger:
    """Return the package root logger; module loggers propagate to it."""
    return logging.getLogger(LOGGER_NAME)


def running_in_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"


def _escape_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsFormatter(logging.Formatter):
    """Format records as GitHub workflow commands (``::warning::msg``) so they show as annotations."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        command = _WORKFLOW_COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape_data(message)}"


@contextmanager
def log_context(
    log_file: Path | None = None,
    verbose: bool = False,
    actions: bool | None = None,
) -> Generator[logging.Logger, None, None]:
    """
    Attach a console handler (and a file handler if ``log_file`` is given) to
    the buildpush logger for the duration of the context.
    Console output uses workflow commands when running in GitHub Actions.
    Log file is UTF-8; format: timestamp [LEVEL] message.
    """
    logger = get_logger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    if actions is None:
        actions = running_in_actions()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(ActionsFormatter("%(message)s") if actions else logging.Formatter("%(levelname)s: %(message)s"))
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    for handler in handlers:
        logger.addHandler(handler)
    try:
        yield logger
    finally:
        for handler in handlers:
            logger.removeHandler(handler)
            handler.close()
