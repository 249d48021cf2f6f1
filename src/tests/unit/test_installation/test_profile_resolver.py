"""Tests for shell profile resolution."""

from pathlib import Path

import pytest

from soundness_installer.installation.exceptions import ShellDetectionError
from soundness_installer.installation.profile import (
    ShellKind,
    resolve_profile,
    resolve_shell_kind,
)


class TestResolveShellKind:
    """Matching of login shell names."""

    @pytest.mark.parametrize(
        "shell,kind",
        [
            ("/bin/zsh", ShellKind.ZSH),
            ("/usr/local/bin/bash", ShellKind.BASH),
            ("/usr/bin/fish", ShellKind.FISH),
            ("/bin/ash", ShellKind.ASH),
            ("/bin/dash", ShellKind.UNKNOWN),
            ("zsh", ShellKind.ZSH),
            ("/bin/tcsh", ShellKind.UNKNOWN),
            ("/bin/sh", ShellKind.UNKNOWN),
            ("", ShellKind.UNKNOWN),
        ],
    )
    def test_shell_names(self, shell, kind):
        assert resolve_shell_kind(shell) is kind

    def test_bash_is_not_ash(self):
        assert resolve_shell_kind("/bin/bash") is ShellKind.BASH


class TestResolveProfile:
    """Profile path per shell kind."""

    def test_zsh_uses_home(self, make_env, home):
        resolution = resolve_profile(make_env(shell="/bin/zsh"))
        assert resolution.path == home / ".zshenv"
        assert resolution.shell_kind is ShellKind.ZSH
        assert not resolution.degraded

    def test_zsh_honours_zdotdir(self, make_env, tmp_path):
        zdotdir = tmp_path / "zdot"
        resolution = resolve_profile(make_env(shell="/bin/zsh", zdotdir=str(zdotdir)))
        assert resolution.path == zdotdir / ".zshenv"

    def test_bash(self, make_env, home):
        assert resolve_profile(make_env(shell="/bin/bash")).path == home / ".bashrc"

    def test_fish(self, make_env, home):
        resolution = resolve_profile(make_env(shell="/usr/bin/fish"))
        assert resolution.path == home / ".config" / "fish" / "config.fish"

    def test_ash(self, make_env, home):
        assert resolve_profile(make_env(shell="/sbin/ash")).path == home / ".profile"

    def test_unknown_shell_is_fatal_when_strict(self, make_env):
        with pytest.raises(ShellDetectionError) as exc_info:
            resolve_profile(make_env(shell="/bin/tcsh"), strict=True)
        assert exc_info.value.details["shell"] == "/bin/tcsh"

    def test_unknown_shell_falls_back_when_not_strict(self, make_env, home):
        resolution = resolve_profile(make_env(shell="/bin/tcsh"), strict=False)
        assert resolution.path == home / ".bashrc"
        assert resolution.shell_kind is ShellKind.UNKNOWN
        assert resolution.degraded

    def test_resolution_does_not_touch_filesystem(self, make_env, home):
        resolve_profile(make_env(shell="/bin/zsh"))
        assert list(Path(home).iterdir()) == []
