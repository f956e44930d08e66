"""
Configuration file loading utilities.

Reads `config.toml` into plain dictionaries; turning them into typed
settings is left to `validators`.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict

from ..validation import handle_config_error, ErrorSeverity

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ("process", "launcher", "affinity", "logging")


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse one TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the file is malformed
        OSError: If the file exists but cannot be read
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.debug(f"Reading {description} {file_path}")
    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        handle_config_error(
            error=e,
            context=f"reading {description} {file_path}",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Load config.toml; top-level tables other than the known sections are
    reported and dropped.
    """
    data = load_toml_file(config_path, "main configuration file")
    for section in [name for name in data if name not in KNOWN_SECTIONS]:
        logger.warning(f"Ignoring unknown section [{section}] in {config_path}")
        del data[section]
    return data
