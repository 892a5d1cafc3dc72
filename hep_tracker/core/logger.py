"""Logging setup for the home exercise program tracker.

Context bound with ``logger.bind(...)`` (client, day, operation, ...) is
appended to every line as key=value pairs so that a failed save can be
traced across the reconciler and the gateway.
"""

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_LINE = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_LINE = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def _escape(text: str) -> str:
    return text.replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _with_context(line: str):
    def formatter(record) -> str:
        extra = record["extra"]
        context = " ".join(f"{key}={value}" for key, value in extra.items())
        suffix = f" | {_escape(context)}" if context else ""
        return f"{line}{suffix}\n{{exception}}"

    return formatter


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> None:
    """Replace loguru's default sink with a console sink and an optional file sink.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Path of a rotating log file; console only when None
        rotation: When to rotate the file (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept (e.g. "7 days")
        serialize: Write the file sink as JSON lines instead of text
    """
    logger.remove()
    logger.add(sys.stderr, format=_with_context(_CONSOLE_LINE), level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=_FILE_LINE if serialize else _with_context(_FILE_LINE),
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            serialize=serialize,
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logger initialized with level={level}" + (f", file={log_file}" if log_file else ""))
