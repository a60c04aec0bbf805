"""Loguru setup for the review action.

Workflow logs are read in the Actions console, so stdout is the only sink by
default. Set ``APP_LOG_DIR`` to also keep a rotating file of DEBUG output when
running the reviewer locally.
"""

from __future__ import annotations

import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from loguru import logger as _logger

if TYPE_CHECKING:
    from pr_reviewer.models.review import ReviewStats

LOG_DIR_ENV = "APP_LOG_DIR"
LOG_LEVEL_ENV = "APP_LOG_LEVEL"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"

_configured = False


def configure_logger(*, log_dir: str | Path | None = None, level: str | None = None) -> None:
    """Install the console sink, plus a file sink when a log directory is known.

    Only the first call has an effect.
    """

    global _configured
    if _configured:
        return

    _logger.remove()
    _logger.add(
        sys.stdout,
        level=(level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper(),
        format=CONSOLE_FORMAT,
        colorize=sys.stdout.isatty(),
    )

    directory = log_dir or os.getenv(LOG_DIR_ENV)
    if directory:
        path = Path(directory).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        _logger.add(
            path / "pr-reviewer-{time:YYYY-MM-DD}.log",
            rotation="10 MB",
            retention=5,
            level="DEBUG",
            format=FILE_FORMAT,
            backtrace=True,
        )

    _configured = True


def get_logger():
    configure_logger()
    return _logger


def log_with_context(logger_instance, **context: str | int | None):
    """Bind pull request fields (repository, pull_number, model...) to a logger.

    ``None`` values are left out so optional fields do not clutter the record.
    """
    return logger_instance.bind(**{key: value for key, value in context.items() if value is not None})


@contextmanager
def log_timing(logger_instance, stage: str, **context: str | int | None) -> Iterator:
    """Time one network stage of the run (diff fetch, chat completion, ...).

    Yields the bound logger. A failing stage is logged with its duration and
    the exception is re-raised.
    """
    stage_logger = log_with_context(logger_instance, **context)
    started = time.perf_counter()
    stage_logger.debug(f"{stage}: started")
    try:
        yield stage_logger
    except Exception as exc:
        stage_logger.warning(f"{stage}: failed after {time.perf_counter() - started:.2f}s ({exc})")
        raise
    stage_logger.debug(f"{stage}: done in {time.perf_counter() - started:.2f}s")


def log_run_summary(logger_instance, stats: "ReviewStats", **context: str | int | None) -> None:
    """Emit the closing line of a review run with its counters."""
    log_with_context(logger_instance, **context).info(
        f"Review finished: files={stats.files} chunks={stats.chunks} generated={stats.generated} "
        f"duplicates={stats.duplicates} posted={stats.posted}"
    )


def log_failure(logger_instance, message: str, error: Exception | None = None, **context: str | int | None) -> None:
    """Log why the run is about to exit non-zero, with the traceback when there is one."""
    failure_logger = log_with_context(logger_instance, **context)
    if error is None:
        failure_logger.error(message)
    else:
        failure_logger.opt(exception=error).error(f"{message}: {error}")
