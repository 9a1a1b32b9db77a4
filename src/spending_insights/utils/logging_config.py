"""Logging setup for import and detector runs.

Every module logs under the ``spending_insights`` namespace. Statement data
is personal, so run context passed to LogContext is masked before it is
written: owner and account identifiers are hidden outright, and long digit
runs (card numbers, IBAN bodies) inside free-text values keep only their
last four digits.
"""

import logging
import re
import sys
import time
from pathlib import Path

LOGGER_NAMESPACE = "spending_insights"

# Context keys whose values never reach a log line
SENSITIVE_FIELDS = {
    "user_id",
    "email",
    "iban",
    "card_number",
    "account_number",
    "reference",
    "description",
    "token",
}

# Ten or more digits, optionally grouped by spaces or dashes
_ACCOUNT_DIGITS = re.compile(r"\d(?:[ -]?\d){9,}")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def mask_account_digits(text: str) -> str:
    """Replace card/IBAN-like digit runs with ``****`` plus their last four digits."""

    def _mask(match: re.Match[str]) -> str:
        digits = re.sub(r"\D", "", match.group())
        return f"****{digits[-4:]}"

    return _ACCOUNT_DIGITS.sub(_mask, text)


def _sanitize_context(context: dict[str, object]) -> dict[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in context.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = "***"
        elif isinstance(value, str):
            sanitized[key] = mask_account_digits(value)
        else:
            sanitized[key] = value
    return sanitized


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
) -> logging.Logger:
    """Configure the package logger for a CLI run.

    Called once with the verbosity level, then again after settings.yaml is
    read so ``logging.file`` can add a file handler. Each call replaces the
    previous handlers.

    Args:
        level: Log level name; unknown names fall back to INFO.
        log_file: Optional log file path from settings.
        console_output: Whether to also write to stderr (report output goes to stdout).

    Returns:
        The ``spending_insights`` logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_file:
        file_handler = logging.FileHandler(Path(log_file), encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # Quiet runs still need a handler so records stop at the package logger
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package namespace (pass ``__name__``)."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


class LogContext:
    """Times one import or insight run and logs how it ended.

    Example:
        with LogContext(logger, "insights", user_id=user_id, month=3, year=2024):
            ...

    The elapsed time stays on ``elapsed`` after the block. Exceptions are
    logged with their traceback and re-raised.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context: object):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.started: float | None = None
        self.elapsed = 0.0

    def __enter__(self) -> "LogContext":
        sanitized = _sanitize_context(self.context)
        context_str = ", ".join(f"{k}={v}" for k, v in sanitized.items())
        self.logger.debug(f"Starting {self.operation}: {context_str}")
        self.started = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> bool:
        if self.started is not None:
            self.elapsed = time.perf_counter() - self.started
        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed after {self.elapsed:.3f}s: {exc_type.__name__}: {exc_val}",
                exc_info=True,
            )
        else:
            self.logger.debug(f"Completed {self.operation} in {self.elapsed:.3f}s")
        return False
