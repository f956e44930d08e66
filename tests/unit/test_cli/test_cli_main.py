"""
Unit tests for the command-line interface.

Tests argument parsing and every sub-command with the OS-facing parts
(Popen, os.kill, helper commands, /proc) replaced by fixtures.
"""

import signal
from unittest.mock import patch

import pytest

from compatproc.cli import build_parser, main_cli


@pytest.fixture
def proc_config_file(tmp_path, fake_proc):
    path = tmp_path / "config.toml"
    path.write_text(f'[process]\nproc_root = "{fake_proc.as_posix()}"\n')
    return path


@pytest.mark.unit
class TestArgumentParsing:
    def test_signal_requires_target(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["signal", "terminate"])

    def test_signal_pid_and_all_conflict(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["signal", "kill", "12", "--all"])

    def test_signal_kind_choices(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["signal", "hangup", "12"])

    def test_launch_env_is_repeatable(self):
        args = build_parser().parse_args(
            ["launch", "wine explorer", "--env", "A=1", "--env", "B=2"]
        )
        assert args.cmdline == "wine explorer"
        assert args.env == ["A=1", "B=2"]

    def test_mask_range(self):
        args = build_parser().parse_args(["mask", "--range", "0", "4"])
        assert args.range == [0, 4]
        assert args.cpus is None


@pytest.mark.unit
class TestMaskCommand:
    def test_decimal_mask(self, capsys):
        assert main_cli(["mask", "0,2,3"]) == 0
        assert capsys.readouterr().out.strip() == "13"

    def test_hex_mask(self, capsys):
        assert main_cli(["mask", "0,2,3", "--hex"]) == 0
        assert capsys.readouterr().out.strip() == "d"

    def test_range_mask(self, capsys):
        assert main_cli(["mask", "--range", "0", "4"]) == 0
        assert capsys.readouterr().out.strip() == "15"

    def test_invalid_list_exits_with_usage_error(self):
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["mask", "0,x"])
        assert exc_info.value.code == 2

    def test_apply(self, capsys):
        with patch("compatproc.cli.main.apply_affinity_mask", return_value=True) as apply:
            assert main_cli(["mask", "1", "--apply", "4242"]) == 0
        apply.assert_called_once_with(4242, 2)


@pytest.mark.unit
class TestSignalCommand:
    def test_single_pid(self):
        with patch("compatproc.system.signals.os.kill") as kill:
            assert main_cli(["signal", "terminate", "1234"]) == 0
        kill.assert_called_once_with(1234, signal.SIGTERM)

    def test_single_pid_failure(self):
        with patch("compatproc.system.signals.os.kill", side_effect=ProcessLookupError()):
            assert main_cli(["signal", "kill", "1234"]) == 1

    def test_all(self, proc_config_file, capsys):
        with patch("compatproc.system.signals.os.kill") as kill:
            assert main_cli(["--config", str(proc_config_file), "signal", "suspend", "--all"]) == 0

        assert kill.call_count == 3
        assert capsys.readouterr().out.split("\n")[:3] == ["7 ok", "100 ok", "101 ok"]


@pytest.mark.unit
class TestListingCommands:
    def test_compat_pids(self, proc_config_file, capsys):
        assert main_cli(["--config", str(proc_config_file), "compat-pids"]) == 0
        assert capsys.readouterr().out.split() == ["7", "100", "101"]

    def test_owned_processes(self, mock_run_command, capsys):
        assert main_cli(["ps"]) == 0
        out = capsys.readouterr().out
        assert "wineserver" in out
        assert "servicemanager" not in out

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main_cli(["--config", str(tmp_path / "absent.toml"), "ps"])
        assert exc_info.value.code == 1

    def test_malformed_config_exits_cleanly(self, tmp_path, caplog):
        broken = tmp_path / "config.toml"
        broken.write_text("[process\nproc_root = ")

        with pytest.raises(SystemExit) as exc_info:
            main_cli(["--config", str(broken), "ps"])

        assert exc_info.value.code == 1
        assert "Error in CLI configuration loading" in caplog.text


@pytest.mark.unit
class TestLaunchCommand:
    def test_launch_prints_pid(self, mock_popen, capsys):
        assert main_cli(["launch", "wine explorer"]) == 0
        assert capsys.readouterr().out.strip() == "4242"
        mock_popen["process"].kill.assert_not_called()

    def test_launch_wait_returns_exit_status(self, mock_popen):
        mock_popen["process"].wait.return_value = 3
        assert main_cli(["launch", "wine explorer", "--wait"]) == 3

    def test_launch_signal_death_is_failure(self, mock_popen):
        mock_popen["process"].wait.return_value = -9
        assert main_cli(["launch", "wine explorer", "--wait"]) == 1

    def test_launch_failure(self, mock_popen, capsys):
        mock_popen["Popen"].side_effect = FileNotFoundError("wine")
        assert main_cli(["launch", "wine explorer", "--wait"]) == 1
        assert capsys.readouterr().out == ""

    def test_launch_passes_env_and_cwd(self, mock_popen, tmp_path):
        main_cli(["launch", "wine game.exe", "--env", "WINEDEBUG=-all", "--cwd", str(tmp_path)])

        kwargs = mock_popen["Popen"].call_args.kwargs
        assert kwargs["env"]["WINEDEBUG"] == "-all"
        assert kwargs["cwd"] == tmp_path
