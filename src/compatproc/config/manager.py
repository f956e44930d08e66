"""
Configuration management and singleton pattern.

This module provides the main configuration loading and management interface,
implementing a singleton pattern to ensure configuration is loaded only once.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import AppConfig
from ..validation import handle_config_error, ErrorSeverity
from .loader import load_main_config
from .validators import validate_app_config

logger = logging.getLogger(__name__)

# --- Global Singleton for Configuration ---

_CONFIG: Optional[AppConfig] = None

# Default location of the configuration file, relative to the repository root.
_DEFAULT_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"

_CONFIG_FILE_PATH: Path = _DEFAULT_CONFIG_FILE_PATH
_CONFIG_PATH_EXPLICIT = False


def set_config_path(config_path: Path) -> None:
    """
    Set a custom configuration file path.

    Unlike the default location, an explicitly set file must exist when the
    configuration is next loaded.

    Args:
        config_path: Path to the config.toml file
    """
    global _CONFIG_FILE_PATH, _CONFIG, _CONFIG_PATH_EXPLICIT
    _CONFIG_FILE_PATH = Path(config_path)
    _CONFIG_PATH_EXPLICIT = True
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    """
    Clear the cached configuration and restore the default path.
    """
    global _CONFIG, _CONFIG_FILE_PATH, _CONFIG_PATH_EXPLICIT
    _CONFIG = None
    _CONFIG_FILE_PATH = _DEFAULT_CONFIG_FILE_PATH
    _CONFIG_PATH_EXPLICIT = False
    logger.debug("Configuration cache cleared")


def _load_config(config_path: Path, explicit: bool) -> AppConfig:
    """
    Load and validate the configuration file.

    Raises:
        FileNotFoundError: If an explicitly configured file is missing
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    if not config_path.exists() and not explicit:
        logger.info(f"No configuration file at {config_path}, using built-in defaults")
        return AppConfig()

    try:
        data = load_main_config(config_path)
    except FileNotFoundError as e:
        handle_config_error(
            error=e,
            context="loading configuration file",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger
        )
        raise

    app_config = validate_app_config(data)
    logger.info(f"Successfully loaded configuration from {config_path}")
    return app_config


def get_config() -> AppConfig:
    """
    Get the application configuration, loading it on first access.

    Returns:
        The cached AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = _load_config(_CONFIG_FILE_PATH, _CONFIG_PATH_EXPLICIT)
    return _CONFIG


def is_config_loaded() -> bool:
    """Check whether a configuration is currently cached."""
    return _CONFIG is not None


def get_config_info() -> Dict[str, Any]:
    """Describe the configuration source, for diagnostics."""
    return {
        "config_path": str(_CONFIG_FILE_PATH),
        "explicit_path": _CONFIG_PATH_EXPLICIT,
        "is_loaded": is_config_loaded(),
        "config_exists": _CONFIG_FILE_PATH.exists(),
    }
