"""Pytest configuration and shared fixtures."""

import os
import stat
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from soundness_installer.config.settings import InstallerSettings
from soundness_installer.installation.commands import CommandRunner
from soundness_installer.installation.downloader import Downloader
from soundness_installer.installation.environment import Environment
from soundness_installer.installation.exceptions import DownloadError


def make_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class FakeRunner(CommandRunner):
    """CommandRunner that records calls instead of spawning processes."""

    def __init__(self, commands: Optional[Dict[str, Path]] = None):
        self.commands = dict(commands or {})
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.handlers: Dict[str, Callable[[List[str]], int]] = {}
        self.which_calls: List[str] = []

    def on(self, name: str, handler: Callable[[List[str]], int]) -> None:
        """Register a handler for commands whose basename or subcommand matches."""
        self.handlers[name] = handler

    def which(self, name, env):
        self.which_calls.append(name)
        return self.commands.get(name)

    def run(self, args, env, capture=False, input_text=None, timeout=None):
        argv = [str(a) for a in args]
        self.calls.append(argv)
        self.inputs.append(input_text)

        name = Path(argv[0]).name
        handler = self.handlers.get(name)
        if handler is None and len(argv) > 1:
            handler = self.handlers.get(f"{name} {argv[1]}")
        returncode = handler(argv) if handler else 0
        return subprocess.CompletedProcess(argv, returncode, stdout="", stderr="")

    def ran(self, name: str) -> bool:
        return any(Path(call[0]).name == name for call in self.calls)


class FakeDownloader(Downloader):
    """Downloader serving canned content."""

    def __init__(self, fail: bool = False):
        super().__init__(timeout=1)
        self.fail = fail
        self.downloaded: List[str] = []
        self.fetched: List[str] = []

    async def download_file(self, url, destination, executable=False):
        if self.fail:
            raise DownloadError("Download failed: connection refused", {"url": url})
        self.downloaded.append(url)
        if executable:
            make_executable(destination)
        else:
            destination.write_text("data")
        return destination.stat().st_size

    async def fetch_text(self, url):
        if self.fail:
            raise DownloadError("Download failed: connection refused", {"url": url})
        self.fetched.append(url)
        return "echo installer\n"


@pytest.fixture
def home(tmp_path) -> Path:
    """Temporary home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def make_env(home) -> Callable[..., Environment]:
    """Factory for Environment snapshots rooted at the temporary home."""

    def factory(**overrides) -> Environment:
        values = {
            "home": home,
            "shell": "/bin/bash",
            "path": "/usr/bin:/bin",
            "zdotdir": None,
            "tool_dir_override": None,
            "is_root": True,
        }
        values.update(overrides)
        return Environment(**values)

    return factory


@pytest.fixture
def settings() -> InstallerSettings:
    """Settings with no waiting and short searches."""
    return InstallerSettings(
        settle_seconds=0,
        process_grace_seconds=0,
        prompt_timeout_seconds=0.1,
        search_max_depth=4,
        search_timeout_seconds=5,
        show_logo=False,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the real home directory and settings."""
    for name in list(os.environ):
        if name.startswith("SOUNDNESS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
