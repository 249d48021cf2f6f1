"""Tests for running external commands."""

import pytest
from conftest import make_executable

from soundness_installer.installation.commands import CommandRunner
from soundness_installer.installation.exceptions import CommandError


@pytest.fixture
def command_runner():
    return CommandRunner()


class TestCommandRunner:
    """Real subprocesses against a snapshot environment."""

    def test_which_uses_snapshot_path(self, command_runner, make_env, tmp_path):
        tool = make_executable(tmp_path / "tools" / "soundnessup")

        assert command_runner.which("soundnessup", make_env(path=str(tool.parent))) == tool
        assert command_runner.which("soundnessup", make_env(path="/nonexistent")) is None

    def test_run_passes_snapshot_environment(self, command_runner, make_env, home):
        env = make_env(path="/usr/bin:/bin:/opt/extra")

        result = command_runner.run(
            ["/bin/sh", "-c", 'echo "$HOME|$PATH"'], env, capture=True
        )

        assert result.returncode == 0
        assert result.stdout.strip() == f"{home}|/usr/bin:/bin:/opt/extra"

    def test_run_feeds_input(self, command_runner, make_env):
        result = command_runner.run(["/bin/sh", "-s"], make_env(), capture=True, input_text="echo piped\n")

        assert result.stdout == "piped\n"

    def test_missing_program(self, command_runner, make_env, tmp_path):
        with pytest.raises(CommandError) as exc_info:
            command_runner.run([tmp_path / "absent"], make_env())

        assert exc_info.value.message.startswith("Command not found")

    def test_timeout(self, command_runner, make_env):
        with pytest.raises(CommandError) as exc_info:
            command_runner.run(["/bin/sh", "-c", "sleep 5"], make_env(), timeout=0.1)

        assert exc_info.value.details == {"timeout": 0.1}

    def test_check_raises_on_non_zero_exit(self, command_runner, make_env):
        with pytest.raises(CommandError) as exc_info:
            command_runner.check(["/bin/sh", "-c", "exit 3"], make_env())

        assert exc_info.value.message == "sh exited with status 3"
        assert exc_info.value.details["returncode"] == 3

    def test_check_accepts_success(self, command_runner, make_env):
        command_runner.check(["/bin/sh", "-c", "exit 0"], make_env())
