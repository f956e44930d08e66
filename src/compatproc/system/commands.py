"""
Command line tokenizing and command execution utilities.

This module splits shell-like command strings into argument vectors and runs
short-lived helper commands (identity queries, process listings) capturing
their output.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..validation import handle_subprocess_error, ErrorSeverity

logger = logging.getLogger(__name__)

QUOTE_CHARS = ('"', "'")


def tokenize_command(command: str) -> List[str]:
    """Split a shell-like command string into argument tokens.

    Spaces separate tokens, `"` and `'` group a span that is closed by the same
    character, and a backslash followed by a space yields a literal space. When
    a quoted span closes on a non-empty token the closing quote character is
    kept at the end of the token.

    Args:
        command: The command string to split.

    Returns:
        List of tokens; empty for empty input. An unterminated quoted span is
        dropped together with the token it was building.

    Examples:
        >>> tokenize_command('"a b" c\\\\ d')
        ['a b"', 'c d']
        >>> tokenize_command("wine  explorer /desktop")
        ['wine', 'explorer', '/desktop']
    """
    tokens: List[str] = []
    buffer = ""
    open_quote: Optional[str] = None
    index = 0
    length = len(command)

    while index < length:
        char = command[index]
        if open_quote is not None:
            if char == open_quote:
                open_quote = None
                if buffer:
                    tokens.append(buffer + char)
                    buffer = ""
            else:
                buffer += char
        elif char in QUOTE_CHARS:
            open_quote = char
        elif char == "\\" and index + 1 < length and command[index + 1] == " ":
            buffer += " "
            index += 1
        elif char == " ":
            if buffer:
                tokens.append(buffer)
                buffer = ""
        else:
            buffer += char
        index += 1

    if buffer and open_quote is None:
        tokens.append(buffer)
    return tokens


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    String commands are split with `tokenize_command`; no shell is involved.

    Args:
        command: The command string (or argument list) to execute.
        cwd: Working directory for the command, None for the current one.
        timeout: Seconds to wait before giving up on the command.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors.
    """
    args = tokenize_command(command) if isinstance(command, str) else list(command)
    if not args:
        logger.error(f"Refusing to run empty command: {command!r}")
        return -1, "", "Error: empty command"

    logger.debug(f"Executing command: {args} in '{cwd or '.'}'")
    try:
        process = subprocess.run(
            args,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        logger.error(f"Command not found: {args[0]}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{args[0]}'"
    except subprocess.TimeoutExpired:
        logger.error(f"Command '{args[0]}' timed out after {timeout} seconds")
        return -1, "", f"Error: Command timed out after {timeout} seconds"
    except Exception as e:
        handle_subprocess_error(
            error=e,
            command=" ".join(args)[:50],
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger,
        )
        return -1, "", f"An unexpected error occurred: {e}"
