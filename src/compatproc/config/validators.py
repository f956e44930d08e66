"""
Configuration validators.

Each validator takes one raw TOML section, checks every known key, and
returns the matching dataclass. Missing keys fall back to the dataclass
defaults; unknown keys are logged and ignored.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config import (
    AffinityConfig,
    AppConfig,
    LauncherConfig,
    LoggingConfig,
    ProcessConfig,
)
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_non_empty_string,
    validate_positive_float,
    validate_positive_integer,
    validate_string_list,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a boolean, got {value!r}",
            field_name=field_name,
            value=value
        )
    return value


def _check_section(data: Any, section: str, known_keys) -> Dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(
            f"[{section}] must be a table, got {type(data).__name__}",
            field_name=section,
            value=data
        )
    for key in data:
        if key not in known_keys:
            logger.warning(f"Ignoring unknown key '{key}' in [{section}]")
    return data


def validate_process_config(data: Optional[Dict[str, Any]]) -> ProcessConfig:
    """Validate the `[process]` section."""
    defaults = ProcessConfig()
    data = _check_section(data, "process", defaults.__dataclass_fields__)

    return ProcessConfig(
        identity_command=validate_non_empty_string(
            data.get("identity_command", defaults.identity_command),
            field_name="process.identity_command",
        ),
        listing_command=validate_non_empty_string(
            data.get("listing_command", defaults.listing_command),
            field_name="process.listing_command",
        ),
        command_timeout=validate_positive_float(
            data.get("command_timeout", defaults.command_timeout),
            min_value=0.1,
            field_name="process.command_timeout",
        ),
        proc_root=Path(validate_non_empty_string(
            str(data.get("proc_root", defaults.proc_root)),
            field_name="process.proc_root",
        )),
        compat_layer_filters=validate_string_list(
            data.get("compat_layer_filters", defaults.compat_layer_filters),
            field_name="process.compat_layer_filters",
        ),
    )


def validate_launcher_config(data: Optional[Dict[str, Any]]) -> LauncherConfig:
    """Validate the `[launcher]` section."""
    defaults = LauncherConfig()
    data = _check_section(data, "launcher", defaults.__dataclass_fields__)

    return LauncherConfig(
        max_workers=validate_positive_integer(
            data.get("max_workers", defaults.max_workers),
            min_value=3,
            max_value=1024,
            field_name="launcher.max_workers",
        ),
        thread_name_prefix=validate_non_empty_string(
            data.get("thread_name_prefix", defaults.thread_name_prefix),
            field_name="launcher.thread_name_prefix",
        ),
        echo_output=_validate_bool(
            data.get("echo_output", defaults.echo_output),
            "launcher.echo_output",
        ),
        inherit_environment=_validate_bool(
            data.get("inherit_environment", defaults.inherit_environment),
            "launcher.inherit_environment",
        ),
        wait_poll_interval=validate_positive_float(
            data.get("wait_poll_interval", defaults.wait_poll_interval),
            min_value=0.01,
            max_value=60.0,
            field_name="launcher.wait_poll_interval",
        ),
        shutdown_timeout=validate_positive_float(
            data.get("shutdown_timeout", defaults.shutdown_timeout),
            field_name="launcher.shutdown_timeout",
        ),
    )


def validate_affinity_config(data: Optional[Dict[str, Any]]) -> AffinityConfig:
    """Validate the `[affinity]` section."""
    defaults = AffinityConfig()
    data = _check_section(data, "affinity", defaults.__dataclass_fields__)

    return AffinityConfig(
        mask_bits=validate_positive_integer(
            data.get("mask_bits", defaults.mask_bits),
            min_value=1,
            max_value=64,
            field_name="affinity.mask_bits",
        ),
    )


def validate_logging_config(data: Optional[Dict[str, Any]]) -> LoggingConfig:
    """Validate the `[logging]` section."""
    defaults = LoggingConfig()
    data = _check_section(data, "logging", defaults.__dataclass_fields__)

    return LoggingConfig(
        level=validate_enum_choice(
            data.get("level", defaults.level),
            LOG_LEVELS,
            field_name="logging.level",
            case_sensitive=False,
        ),
    )


def validate_app_config(data: Dict[str, Any]) -> AppConfig:
    """
    Validate a whole parsed configuration file.

    Raises:
        ValidationError: If any section holds an invalid value
    """
    return AppConfig(
        process=validate_process_config(data.get("process")),
        launcher=validate_launcher_config(data.get("launcher")),
        affinity=validate_affinity_config(data.get("affinity")),
        logging=validate_logging_config(data.get("logging")),
    )
