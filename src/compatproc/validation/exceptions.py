"""
Exception types and error handling helpers.

Every component reports failures through `handle_error`, so a failed spawn,
an unreadable config file and a rejected CPU list all produce one log line
of the same shape: "Error in <context>: <error>".
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity of a handled error, valued with the matching logging level."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class ValidationError(Exception):
    """
    Raised for a malformed configuration value or affinity input.

    Attributes:
        field_name: Dotted name of the offending setting or input, if known
        value: The rejected value as it was received
        severity: How loudly callers should report it
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


def _resolve_level(severity: Union[ErrorSeverity, str]) -> int:
    if isinstance(severity, ErrorSeverity):
        return severity.value
    try:
        return ErrorSeverity[severity.upper()].value
    except KeyError:
        raise ValueError(f"Unknown error severity: {severity!r}") from None


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log an error with its context and optionally re-raise it.

    Tracebacks are attached at DEBUG (for diagnosis) and CRITICAL.

    Args:
        error: The exception that occurred
        context: What was being done, e.g. "executing command ['wine']"
        severity: ErrorSeverity member or its name in any case
        reraise: Re-raise `error` after logging
        logger: Logger to write to, defaults to this module's logger
    """
    level = _resolve_level(severity)
    (logger or globals()["logger"]).log(
        level,
        f"Error in {context}: {error}",
        exc_info=level in (logging.DEBUG, logging.CRITICAL),
    )
    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    """Handle errors from running a helper command."""
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, exit_code: int = 1, **kwargs) -> None:
    """Log a CLI error and exit with `exit_code`."""
    kwargs.setdefault("severity", ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", reraise=False, **kwargs)
    sys.exit(exit_code)
