"""Uninstallation and cleanup management."""

import os
import shutil
from pathlib import Path
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

import structlog

from ..config.settings import InstallerSettings
from ..management.processes import find_matching_processes, terminate_processes
from .commands import CommandRunner
from .environment import Environment, InstallPaths, key_locations
from .exceptions import CommandError, ProfileEditError
from .outcome import Outcome, RunReport
from .profile import ProfileResolution, resolve_profile, strip_profile_entries
from .prompt import Answer, ConfirmFn, confirm_with_timeout
from .search import find_all

logger = structlog.get_logger(__name__)

KEY_SUFFIXES = (".pub", ".key")
TOOLCHAIN_DIRS = (".cargo", ".rustup")


class SoundnessUninstaller:
    """Best-effort removal of everything the installer put in place.

    Every step produces an Outcome; a failing step never stops the ones
    after it.
    """

    SYSTEM_BINARIES: Tuple[Path, ...] = (
        Path("/usr/local/bin/soundness-cli"),
        Path("/usr/local/bin/soundness"),
        Path("/usr/bin/soundness-cli"),
        Path("/usr/bin/soundness"),
    )

    def __init__(
        self,
        settings: Optional[InstallerSettings] = None,
        env: Optional[Environment] = None,
        runner: Optional[CommandRunner] = None,
        confirm: Optional[ConfirmFn] = None,
        deep: bool = False,
    ):
        self.settings = settings or InstallerSettings()
        self.env = env or Environment.from_os()
        self.paths = InstallPaths.from_environment(self.env, self.settings.helper_name)
        self.runner = runner or CommandRunner()
        self.confirm = confirm or confirm_with_timeout
        self.deep = deep
        self.profile: Optional[ProfileResolution] = None

    async def perform_uninstallation(self) -> RunReport:
        """Run every cleanup step and return the report."""
        report = RunReport(mode="uninstall")

        steps: List[Tuple[str, Callable[[RunReport], Awaitable[Outcome]]]] = [
            ("resolve_profile", self._resolve_profile),
            ("remove_keys", self._remove_keys),
            ("stop_processes", self._stop_processes),
            ("remove_dirs", self._remove_dirs),
            ("remove_binaries", self._remove_binaries),
            ("remove_via_package_manager", self._remove_via_package_manager),
            ("sweep_strays", self._sweep_strays),
            ("strip_path_entry", self._strip_path_entry),
            ("remove_toolchain", self._remove_toolchain),
        ]

        for name, step in steps:
            try:
                outcome = await step(report)
            except Exception as e:
                logger.warning("Uninstall step raised", step=name, error=str(e))
                outcome = Outcome.failed(name, str(e))
            report.record(outcome)
            logger.debug("Uninstall step finished", step=name, status=outcome.status.value)

        return report

    async def _resolve_profile(self, report: RunReport) -> Outcome:
        self.profile = resolve_profile(self.env, strict=False)

        if self.profile.degraded:
            report.warnings.append(
                f"Could not detect shell profile, using {self.profile.path}"
            )
            return Outcome.skipped(
                "resolve_profile",
                "shell not detected, falling back to default profile",
                profile=str(self.profile.path),
            )

        return Outcome.succeeded(
            "resolve_profile",
            f"detected {self.profile.shell_kind.value}",
            profile=str(self.profile.path),
        )

    def _remove_files(self, paths: Iterable[Path], report: RunReport) -> Tuple[List[str], List[str]]:
        removed: List[str] = []
        errors: List[str] = []

        for path in paths:
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
                else:
                    continue
                removed.append(str(path))
            except FileNotFoundError:
                continue
            except OSError as e:
                errors.append(f"{path}: {e}")

        report.removed_items.extend(removed)
        return removed, errors

    def _relative(self, path: str) -> str:
        """Path below home, so the home directory name never matches."""
        return os.path.relpath(path, self.paths.home_dir)

    @staticmethod
    def _summarize(step: str, removed: List[str], errors: List[str], nothing: str) -> Outcome:
        if errors:
            return Outcome.failed(step, "; ".join(errors), removed=removed)
        if removed:
            return Outcome.succeeded(step, f"removed {len(removed)} items", removed=removed)
        return Outcome.skipped(step, nothing)

    async def _remove_keys(self, report: RunReport) -> Outcome:
        key = self.settings.key_name
        product = self.settings.product_name.lower()
        targets: List[Path] = []
        errors: List[str] = []

        for location in key_locations(self.paths.home_dir):
            if not location.is_dir():
                continue
            logger.info("Removing keys", location=str(location))
            for name in (f"{key}.pub", f"{key}.key"):
                targets.append(location / name)
            try:
                targets.extend(
                    entry
                    for entry in location.iterdir()
                    if entry.is_file() and entry.suffix in KEY_SUFFIXES
                )
            except OSError as e:
                errors.append(f"{location}: {e}")

        def is_product_key(entry: os.DirEntry) -> bool:
            return (
                entry.name.endswith(KEY_SUFFIXES)
                and product in self._relative(entry.path).lower()
                and entry.is_file(follow_symlinks=False)
            )

        targets.extend(
            find_all(
                [self.paths.home_dir],
                is_product_key,
                self.settings.search_max_depth,
                self.settings.search_timeout_seconds,
            )
        )

        unique = list(dict.fromkeys(targets))
        removed, remove_errors = self._remove_files(unique, report)
        errors.extend(remove_errors)
        return self._summarize("remove_keys", removed, errors, "no key files found")

    async def _stop_processes(self, report: RunReport) -> Outcome:
        processes = find_matching_processes(self.settings.product_name)
        if not processes:
            return Outcome.skipped("stop_processes", "no running processes")

        result = terminate_processes(processes, self.settings.process_grace_seconds)
        if result.still_running or result.errors:
            reasons = list(result.errors)
            if result.still_running:
                reasons.append(f"still running after SIGTERM: {result.still_running}")
            return Outcome.failed("stop_processes", "; ".join(reasons), signalled=result.signalled)

        return Outcome.succeeded(
            "stop_processes",
            f"stopped {len(result.signalled)} processes",
            signalled=result.signalled,
        )

    def product_dirs(self) -> List[Path]:
        home = self.paths.home_dir
        product = self.settings.product_name
        dirs = [
            self.paths.tool_dir,
            home / f".{product}",
            home / ".config" / product,
            home / ".local" / "share" / product,
        ]
        return list(dict.fromkeys(dirs))

    async def _remove_dirs(self, report: RunReport) -> Outcome:
        removed, errors = self._remove_files(self.product_dirs(), report)
        return self._summarize("remove_dirs", removed, errors, "no directories present")

    async def _remove_binaries(self, report: RunReport) -> Outcome:
        targets = list(self.SYSTEM_BINARIES) + [self.paths.home_dir / "key_store.json"]
        removed, errors = self._remove_files(targets, report)
        return self._summarize("remove_binaries", removed, errors, "no binaries present")

    async def _remove_via_package_manager(self, report: RunReport) -> Outcome:
        manager = self.runner.which(self.settings.package_manager, self.env)
        if manager is None:
            return Outcome.skipped(
                "remove_via_package_manager", f"{self.settings.package_manager} not available"
            )

        package = self.settings.cli_package
        try:
            result = self.runner.run([manager, "uninstall", package], self.env, capture=True)
        except CommandError as e:
            return Outcome.failed("remove_via_package_manager", e.message)

        if result.returncode != 0:
            message = (result.stderr or "").strip().splitlines()
            return Outcome.skipped(
                "remove_via_package_manager",
                message[-1] if message else f"{package} not installed via {manager.name}",
            )

        report.removed_items.append(f"{manager.name} package: {package}")
        return Outcome.succeeded("remove_via_package_manager", f"uninstalled {package}")

    def stray_paths(self) -> List[Path]:
        """Entries under home whose name mentions the product.

        Toolchain directories and anything whose path mentions rust or cargo
        are left alone.
        """
        product = self.settings.product_name.lower()

        def is_protected(path: str) -> bool:
            lowered = self._relative(path).lower()
            return "rust" in lowered or "cargo" in lowered

        def prune(entry: os.DirEntry) -> bool:
            return entry.name in TOOLCHAIN_DIRS or product in entry.name.lower()

        def matches(entry: os.DirEntry) -> bool:
            return product in entry.name.lower() and not is_protected(entry.path)

        return find_all(
            [self.paths.home_dir],
            matches,
            self.settings.search_max_depth,
            self.settings.search_timeout_seconds,
            prune=prune,
        )

    async def _sweep_strays(self, report: RunReport) -> Outcome:
        if not self.deep:
            return Outcome.skipped("sweep_strays", "deep clean not requested")

        removed, errors = self._remove_files(self.stray_paths(), report)
        return self._summarize("sweep_strays", removed, errors, "no stray files found")

    async def _strip_path_entry(self, report: RunReport) -> Outcome:
        profile = self.profile.path
        if not profile.exists():
            return Outcome.skipped("strip_path_entry", f"{profile} does not exist")

        try:
            count = strip_profile_entries(profile, self.settings.product_name)
        except ProfileEditError as e:
            return Outcome.failed("strip_path_entry", e.message, **e.details)

        if count == 0:
            return Outcome.skipped("strip_path_entry", f"no {self.settings.product_name} lines in {profile}")
        return Outcome.succeeded("strip_path_entry", f"removed {count} lines from {profile}")

    async def _remove_toolchain(self, report: RunReport) -> Outcome:
        answer = self.confirm(
            "Do you want to remove Rust and Cargo as well?",
            self.settings.prompt_timeout_seconds,
        )

        if answer is Answer.TIMED_OUT:
            return Outcome.skipped("remove_toolchain", "no answer before timeout, keeping toolchain")
        if not answer.confirmed:
            return Outcome.skipped("remove_toolchain", "keeping toolchain")

        manager = self.runner.which(self.settings.toolchain_manager, self.env)
        if manager is not None:
            try:
                result = self.runner.run([manager, "self", "uninstall", "-y"], self.env)
            except CommandError as e:
                return Outcome.failed("remove_toolchain", e.message)
            if result.returncode != 0:
                return Outcome.failed(
                    "remove_toolchain", f"{manager.name} exited with status {result.returncode}"
                )
            report.removed_items.append("rust toolchain")
            return Outcome.succeeded("remove_toolchain", f"removed via {manager.name}")

        targets = [self.paths.home_dir / name for name in TOOLCHAIN_DIRS]
        removed, errors = self._remove_files(targets, report)
        return self._summarize("remove_toolchain", removed, errors, "toolchain not present")
