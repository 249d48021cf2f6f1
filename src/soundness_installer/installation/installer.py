"""Install sequence: helper binary, PATH, toolchain, CLI and a fresh key."""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Tuple

import structlog

from ..config.settings import InstallerSettings
from .commands import CommandRunner
from .downloader import Downloader
from .environment import Environment, InstallPaths, key_locations
from .exceptions import (
    CommandError,
    DownloadError,
    ShellDetectionError,
)
from .outcome import Outcome, RunReport
from .profile import ProfileResolution, append_path_export, resolve_profile
from .search import find_all, find_executable, is_file_named

logger = structlog.get_logger(__name__)


class InstallationError(Exception):
    """Fatal installation error with context information."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def suggestion(self) -> Optional[str]:
        return self.details.get("suggestion")

    @property
    def step(self) -> Optional[str]:
        return self.details.get("step")


def is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class SoundnessInstaller:
    """Runs the install sequence against one Environment snapshot."""

    SYSTEM_BIN_DIR = Path("/usr/local/bin")

    def __init__(
        self,
        settings: Optional[InstallerSettings] = None,
        env: Optional[Environment] = None,
        runner: Optional[CommandRunner] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.settings = settings or InstallerSettings()
        self.env = env or Environment.from_os()
        self.paths = InstallPaths.from_environment(self.env, self.settings.helper_name)
        self.runner = runner or CommandRunner()
        self.downloader = downloader or Downloader(self.settings.download_timeout)
        self.profile: Optional[ProfileResolution] = None
        self.cli_path: Optional[Path] = None
        self.final_env: Optional[Environment] = None

    async def perform_install(self) -> RunReport:
        """Run every install step in order.

        Raises:
            InstallationError: a step that the rest of the run depends on
                failed; details carry the step, a suggestion and the report
        """
        report = RunReport(mode="install")
        env = self.env

        self.profile = self.resolve_profile(report)
        self.ensure_dirs(report)
        await self.fetch_tool_binary(report)
        env = self.mutate_path(env, report)
        self.ensure_build_tools(env, report)
        env = await self.ensure_toolchain(env, report)
        await self.install_cli(env, report)
        env, self.cli_path = self.locate_cli(env, report)
        self.purge_old_keys(report)
        self.generate_key(env, self.cli_path, report)

        self.final_env = env
        logger.info("Installation finished", steps=report.steps)
        return report

    def _fail(
        self, report: RunReport, step: str, message: str, suggestion: Optional[str] = None, **details: Any
    ) -> NoReturn:
        report.record(Outcome.failed(step, message, **details))
        logger.error("Install step failed", step=step, reason=message, **details)
        raise InstallationError(
            message,
            {"step": step, "suggestion": suggestion, "report": report.to_dict(), **details},
        )

    def resolve_profile(self, report: RunReport) -> ProfileResolution:
        try:
            profile = resolve_profile(self.env, strict=True)
        except ShellDetectionError as e:
            self._fail(
                report,
                "resolve_profile",
                f"{self.settings.helper_name}: could not detect shell",
                f"Manually add {self.paths.tool_bin_dir} to your PATH.",
                **e.details,
            )

        report.record(
            Outcome.succeeded(
                "resolve_profile",
                f"detected {profile.shell_kind.value}",
                profile=str(profile.path),
            )
        )
        return profile

    def ensure_dirs(self, report: RunReport) -> None:
        try:
            self.paths.tool_bin_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._fail(
                report,
                "ensure_dirs",
                f"Cannot create {self.paths.tool_bin_dir}: {e}",
                "Check permissions on your home directory or set SOUNDNESS_DIR.",
            )
        report.record(Outcome.succeeded("ensure_dirs", str(self.paths.tool_bin_dir)))

    async def fetch_tool_binary(self, report: RunReport) -> None:
        url = self.settings.helper_url
        try:
            await self.downloader.download_file(url, self.paths.tool_binary_path, executable=True)
        except DownloadError as e:
            self._fail(
                report,
                "fetch_tool_binary",
                e.message,
                "Check your network connection and run the installer again.",
                url=url,
            )
        report.record(Outcome.succeeded("fetch_tool_binary", str(self.paths.tool_binary_path)))

    def mutate_path(self, env: Environment, report: RunReport) -> Environment:
        bin_dir = self.paths.tool_bin_dir
        try:
            written = append_path_export(self.profile.path, self.profile.shell_kind, bin_dir, env)
        except OSError as e:
            self._fail(
                report,
                "mutate_path",
                f"Cannot update {self.profile.path}: {e}",
                f"Manually add {bin_dir} to your PATH.",
            )

        if written:
            report.record(Outcome.succeeded("mutate_path", f"added {bin_dir} to {self.profile.path}"))
        else:
            report.record(Outcome.skipped("mutate_path", f"{bin_dir} already on PATH"))

        return env.with_path_entry(bin_dir)

    def ensure_build_tools(self, env: Environment, report: RunReport) -> None:
        suggestion = f"Run: {self.settings.build_tools_command}\nThen run this installer again."

        if not env.is_root:
            self._fail(
                report,
                "ensure_build_tools",
                "You need root privileges to install build tools.",
                suggestion,
            )

        try:
            self.runner.check(["apt-get", "update"], env)
            self.runner.check(["apt-get", "install", "-y", *self.settings.build_packages], env)
        except CommandError as e:
            self._fail(report, "ensure_build_tools", e.message, suggestion, **e.details)

        report.record(
            Outcome.succeeded("ensure_build_tools", ", ".join(self.settings.build_packages))
        )

    async def ensure_toolchain(self, env: Environment, report: RunReport) -> Environment:
        compiler = self.settings.toolchain_compiler
        existing = self.runner.which(compiler, env)
        if existing:
            report.record(Outcome.skipped("ensure_toolchain", f"{compiler} already installed at {existing}"))
            return env

        url = self.settings.toolchain_installer_url
        suggestion = f"Install the toolchain manually from {url} and run the installer again."
        try:
            script = await self.downloader.fetch_text(url)
            self.runner.check(["sh", "-s", "--", "-y"], env, input_text=script)
        except (DownloadError, CommandError) as e:
            self._fail(report, "ensure_toolchain", e.message, suggestion, **e.details)

        report.record(Outcome.succeeded("ensure_toolchain", f"installed via {url}"))
        return env.with_path_entry(self.paths.cargo_bin_dir)

    def resolve_helper_binary(self, env: Environment) -> Tuple[Optional[Path], str]:
        """Find the helper binary: known path, then PATH, then a bounded search."""
        if is_executable_file(self.paths.tool_binary_path):
            return self.paths.tool_binary_path, "known path"

        logger.warning(
            "Helper binary missing at known path, trying alternatives",
            path=str(self.paths.tool_binary_path),
        )
        on_path = self.runner.which(self.settings.helper_name, env)
        if on_path:
            return on_path, "PATH"

        found = find_executable(
            [self.paths.home_dir],
            self.settings.helper_name,
            self.settings.search_max_depth,
            self.settings.search_timeout_seconds,
        )
        if found:
            return found, "search"
        return None, "not found"

    async def install_cli(self, env: Environment, report: RunReport) -> None:
        helper, source = self.resolve_helper_binary(env)
        if helper is None:
            self._fail(
                report,
                "install_cli",
                f"Could not find {self.settings.helper_name}. Installation failed.",
                "Run the installer again to re-download the helper binary.",
            )

        try:
            self.runner.check([helper, "install"], env)
        except CommandError as e:
            self._fail(
                report,
                "install_cli",
                e.message,
                f"Try running '{helper} install' manually.",
                **e.details,
            )

        report.record(Outcome.succeeded("install_cli", f"{helper} ({source})"))

        if self.settings.settle_seconds > 0:
            await asyncio.sleep(self.settings.settle_seconds)

    def cli_candidates(self) -> List[Path]:
        name = self.settings.cli_name
        return [
            self.paths.cargo_bin_dir / name,
            self.SYSTEM_BIN_DIR / name,
            self.paths.tool_bin_dir / name,
        ]

    def locate_cli(self, env: Environment, report: RunReport) -> Tuple[Environment, Path]:
        env = env.with_path_entry(self.paths.cargo_bin_dir)

        for candidate in self.cli_candidates():
            if is_executable_file(candidate):
                report.record(Outcome.succeeded("locate_cli", str(candidate)))
                return env, candidate

        logger.warning("CLI not in usual locations, searching filesystem", name=self.settings.cli_name)
        found = find_executable(
            [self.paths.cargo_bin_dir, self.paths.home_dir, self.SYSTEM_BIN_DIR],
            self.settings.cli_name,
            self.settings.search_max_depth,
            self.settings.search_timeout_seconds,
        )
        if found is None:
            self._fail(
                report,
                "locate_cli",
                f"Could not find {self.settings.cli_name}. Key generation will be skipped.",
                f"Check the output of '{self.settings.helper_name} install' and run the installer again.",
            )

        report.record(Outcome.succeeded("locate_cli", f"{found} (search)"))
        return env, found

    def purge_old_keys(self, report: RunReport) -> None:
        key = self.settings.key_name
        names = (f"{key}.pub", f"{key}.key")
        removed: List[str] = []
        errors: List[str] = []

        def remove(path: Path) -> None:
            try:
                path.unlink()
                removed.append(str(path))
            except FileNotFoundError:
                pass
            except OSError as e:
                errors.append(f"{path}: {e}")

        for location in key_locations(self.paths.home_dir):
            if location.is_dir():
                for name in names:
                    remove(location / name)

        for stray in find_all(
            [self.paths.home_dir],
            is_file_named(*names),
            self.settings.search_max_depth,
            self.settings.search_timeout_seconds,
        ):
            remove(stray)

        report.removed_items.extend(removed)
        if errors:
            report.record(Outcome.failed("purge_old_keys", "; ".join(errors), removed=removed))
        elif removed:
            report.record(Outcome.succeeded("purge_old_keys", f"removed {len(removed)} key files"))
        else:
            report.record(Outcome.skipped("purge_old_keys", "no existing keys"))

    def generate_key(self, env: Environment, cli_path: Path, report: RunReport) -> None:
        key = self.settings.key_name
        try:
            self.runner.check([cli_path, "generate-key", "--name", key], env)
        except CommandError as e:
            self._fail(
                report,
                "generate_key",
                e.message,
                f"Run '{cli_path} generate-key --name {key}' manually.",
                **e.details,
            )
        report.record(Outcome.succeeded("generate_key", key))
