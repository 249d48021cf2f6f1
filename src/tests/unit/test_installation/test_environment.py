"""Tests for the environment snapshot and install paths."""

from pathlib import Path

from soundness_installer.installation.environment import (
    Environment,
    InstallPaths,
    key_locations,
)


class TestEnvironment:
    """Environment snapshot behaviour."""

    def test_from_os_reads_variables(self, tmp_path):
        environ = {
            "HOME": str(tmp_path),
            "SHELL": "/bin/zsh",
            "PATH": "/usr/bin:/bin",
            "ZDOTDIR": str(tmp_path / "zsh"),
            "SOUNDNESS_DIR": str(tmp_path / "custom"),
        }

        env = Environment.from_os(environ)

        assert env.home == tmp_path
        assert env.shell == "/bin/zsh"
        assert env.path == "/usr/bin:/bin"
        assert env.zdotdir == str(tmp_path / "zsh")
        assert env.tool_dir_override == str(tmp_path / "custom")

    def test_has_path_entry_matches_whole_entries(self, make_env):
        env = make_env(path="/usr/bin:/opt/tool/bin:/bin")

        assert env.has_path_entry(Path("/opt/tool/bin"))
        assert env.has_path_entry(Path("/usr/bin"))
        assert not env.has_path_entry(Path("/opt/tool"))

    def test_with_path_entry_returns_new_snapshot(self, make_env):
        env = make_env(path="/usr/bin")

        updated = env.with_path_entry(Path("/opt/tool/bin"))

        assert updated is not env
        assert env.path == "/usr/bin"
        assert updated.path == "/usr/bin:/opt/tool/bin"
        assert updated.path_entries == ("/usr/bin", "/opt/tool/bin")

    def test_with_path_entry_is_idempotent(self, make_env):
        env = make_env(path="/usr/bin").with_path_entry(Path("/opt/bin"))

        assert env.with_path_entry(Path("/opt/bin")) is env

    def test_with_path_entry_on_empty_path(self, make_env):
        assert make_env(path="").with_path_entry(Path("/opt/bin")).path == "/opt/bin"

    def test_process_env_carries_snapshot(self, make_env, home):
        env = make_env(path="/only/here")

        process_env = env.as_process_env({"LANG": "C"})

        assert process_env == {"LANG": "C", "HOME": str(home), "PATH": "/only/here"}


class TestInstallPaths:
    """Derived install locations."""

    def test_defaults_under_home(self, make_env, home):
        paths = InstallPaths.from_environment(make_env())

        assert paths.tool_dir == home / ".soundness"
        assert paths.tool_bin_dir == home / ".soundness" / "bin"
        assert paths.tool_binary_path == home / ".soundness" / "bin" / "soundnessup"
        assert paths.cargo_bin_dir == home / ".cargo" / "bin"

    def test_tool_dir_override(self, make_env, tmp_path):
        custom = tmp_path / "opt" / "soundness"

        paths = InstallPaths.from_environment(make_env(tool_dir_override=str(custom)))

        assert paths.tool_bin_dir == custom / "bin"

    def test_key_locations_order(self, home):
        assert key_locations(home) == (
            home / ".soundness" / "keys",
            home / ".config" / "soundness" / "keys",
            home / ".local" / "share" / "soundness" / "keys",
        )
