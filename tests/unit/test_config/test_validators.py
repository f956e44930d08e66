"""
Unit tests for configuration validation functionality.

Tests the validation of each configuration section, the shared value
validators, and the error raised for invalid values.
"""

from pathlib import Path

import pytest

from compatproc.config.validators import (
    validate_affinity_config,
    validate_app_config,
    validate_launcher_config,
    validate_logging_config,
    validate_process_config,
)
from compatproc.models import DEFAULT_LISTING_COMMAND
from compatproc.validation import (
    ValidationError,
    validate_cpu_index,
    validate_enum_choice,
    validate_positive_integer,
    validate_string_list,
)


@pytest.mark.unit
class TestProcessConfigValidation:
    def test_defaults_for_missing_section(self):
        config = validate_process_config(None)

        assert config.identity_command == "id"
        assert config.listing_command == DEFAULT_LISTING_COMMAND
        assert config.proc_root == Path("/proc")
        assert config.compat_layer_filters == ["wine", "exe"]

    def test_custom_values(self):
        config = validate_process_config({
            "listing_command": "ps -A -o user,pid,ppid,vsz,rss,wchan,addr,s,comm",
            "proc_root": "/tmp/proc",
            "compat_layer_filters": ["box64"],
            "command_timeout": 3,
        })

        assert config.listing_command.startswith("ps -A")
        assert config.proc_root == Path("/tmp/proc")
        assert config.compat_layer_filters == ["box64"]
        assert config.command_timeout == 3.0

    @pytest.mark.parametrize(
        "key,value",
        [
            ("identity_command", ""),
            ("listing_command", "   "),
            ("command_timeout", 0),
            ("compat_layer_filters", []),
            ("compat_layer_filters", ["wine", ""]),
            ("compat_layer_filters", "wine"),
        ],
    )
    def test_invalid_values(self, key, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_process_config({key: value})
        assert key in str(exc_info.value)

    def test_section_must_be_table(self):
        with pytest.raises(ValidationError):
            validate_process_config(["not", "a", "table"])

    def test_unknown_keys_are_ignored(self, caplog):
        config = validate_process_config({"unknown_key": 1})
        assert config.identity_command == "id"
        assert "unknown_key" in caplog.text


@pytest.mark.unit
class TestLauncherConfigValidation:
    def test_defaults(self):
        config = validate_launcher_config({})

        assert config.max_workers == 48
        assert config.echo_output is True
        assert config.inherit_environment is True
        assert config.wait_poll_interval == 0.2

    @pytest.mark.parametrize("workers", [0, 2, 1025, "many", True])
    def test_invalid_max_workers(self, workers):
        with pytest.raises(ValidationError):
            validate_launcher_config({"max_workers": workers})

    def test_minimum_max_workers_fits_one_launch(self):
        assert validate_launcher_config({"max_workers": 3}).max_workers == 3

    def test_boolean_fields_must_be_booleans(self):
        with pytest.raises(ValidationError):
            validate_launcher_config({"echo_output": "yes"})

    @pytest.mark.parametrize("interval", [0.001, 61])
    def test_poll_interval_bounds(self, interval):
        with pytest.raises(ValidationError):
            validate_launcher_config({"wait_poll_interval": interval})


@pytest.mark.unit
class TestAffinityAndLoggingValidation:
    def test_mask_bits(self):
        assert validate_affinity_config({"mask_bits": 64}).mask_bits == 64

    @pytest.mark.parametrize("bits", [0, 65])
    def test_mask_bits_out_of_range(self, bits):
        with pytest.raises(ValidationError):
            validate_affinity_config({"mask_bits": bits})

    def test_log_level_is_case_insensitive(self):
        assert validate_logging_config({"level": "debug"}).level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            validate_logging_config({"level": "VERBOSE"})

    def test_whole_config(self):
        config = validate_app_config({"affinity": {"mask_bits": 16}})
        assert config.affinity.mask_bits == 16
        assert config.launcher.max_workers == 48
        assert config.logging.level == "INFO"


@pytest.mark.unit
class TestValueValidators:
    def test_positive_integer_rejects_bool(self):
        with pytest.raises(ValidationError):
            validate_positive_integer(True)

    @pytest.mark.parametrize("value,expected", [(0, 0), ("7", 7), (" 3 ", 3), ("+2", 2)])
    def test_cpu_index_accepts(self, value, expected):
        assert validate_cpu_index(value, mask_bits=32) == expected

    @pytest.mark.parametrize("value", ["", "x", "1.0", "-1", 32, -1, 2.0, False, None])
    def test_cpu_index_rejects(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_cpu_index(value, mask_bits=32)
        assert exc_info.value.value == value

    def test_enum_choice_case_sensitive(self):
        with pytest.raises(ValidationError):
            validate_enum_choice("info", ["INFO"])

    def test_string_list_returns_list(self):
        assert validate_string_list(("a", "b")) == ["a", "b"]
