"""
Unit tests for configuration loading and caching.
"""

import tomllib
from pathlib import Path

import pytest

from compatproc.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_main_config,
    load_toml_file,
    set_config_path,
)
from compatproc.config import manager
from compatproc.validation import ValidationError


@pytest.fixture
def write_config(tmp_path):
    def _write(text: str) -> Path:
        path = tmp_path / "config.toml"
        path.write_text(text)
        return path

    return _write


@pytest.mark.unit
class TestConfigLoading:
    def test_bundled_config_loads(self):
        config = get_config()

        assert config.process.identity_command == "id"
        assert config.launcher.max_workers == 48
        assert config.affinity.mask_bits == 32

    def test_missing_default_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(manager, "_CONFIG_FILE_PATH", tmp_path / "absent.toml")

        config = get_config()

        assert config.launcher.wait_poll_interval == 0.2
        assert config.process.compat_layer_filters == ["wine", "exe"]

    def test_explicit_missing_file_raises(self, tmp_path):
        set_config_path(tmp_path / "absent.toml")
        with pytest.raises(FileNotFoundError):
            get_config()

    def test_custom_file(self, write_config):
        set_config_path(write_config(
            '[process]\ncompat_layer_filters = ["box64"]\n'
            '[launcher]\nmax_workers = 6\n'
            '[logging]\nlevel = "debug"\n'
        ))

        config = get_config()

        assert config.process.compat_layer_filters == ["box64"]
        assert config.launcher.max_workers == 6
        assert config.logging.level == "DEBUG"
        assert config.affinity.mask_bits == 32

    def test_invalid_value_raises(self, write_config):
        set_config_path(write_config("[affinity]\nmask_bits = 128\n"))
        with pytest.raises(ValidationError, match="affinity.mask_bits"):
            get_config()

    def test_malformed_toml_raises(self, write_config):
        set_config_path(write_config("[process\nbroken"))
        with pytest.raises(tomllib.TOMLDecodeError):
            get_config()

    def test_load_toml_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_toml_file(tmp_path / "nope.toml")

    def test_unknown_section_is_dropped(self, write_config, caplog):
        data = load_main_config(write_config("[plots]\nenabled = true\n[affinity]\nmask_bits = 4\n"))

        assert data == {"affinity": {"mask_bits": 4}}
        assert "[plots]" in caplog.text


@pytest.mark.unit
class TestConfigCache:
    def test_config_is_cached(self):
        assert is_config_loaded() is False
        first = get_config()
        assert is_config_loaded() is True
        assert get_config() is first

    def test_set_path_invalidates_cache(self, write_config):
        first = get_config()
        set_config_path(write_config("[affinity]\nmask_bits = 8\n"))

        assert is_config_loaded() is False
        assert get_config() is not first
        assert get_config().affinity.mask_bits == 8

    def test_clear_restores_default_path(self, write_config):
        set_config_path(write_config(""))
        clear_config_cache()

        info = get_config_info()
        assert info["explicit_path"] is False
        assert info["config_path"].endswith(str(Path("conf") / "config.toml"))
        assert info["is_loaded"] is False
