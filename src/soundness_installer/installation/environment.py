"""Immutable view of the process environment used by installer steps."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

TOOL_DIR_NAME = ".soundness"
KEY_SUBDIRS = (
    (".soundness", "keys"),
    (".config", "soundness", "keys"),
    (".local", "share", "soundness", "keys"),
)


@dataclass(frozen=True)
class Environment:
    """Snapshot of the environment variables the installer depends on.

    Taken once at start-up. Steps that change PATH return a new instance
    instead of touching ``os.environ``.
    """

    home: Path
    shell: str = ""
    path: str = ""
    zdotdir: Optional[str] = None
    tool_dir_override: Optional[str] = None
    is_root: bool = False

    @classmethod
    def from_os(cls, environ: Optional[Mapping[str, str]] = None) -> "Environment":
        """Capture the current process environment."""
        environ = os.environ if environ is None else environ
        home = environ.get("HOME") or str(Path.home())
        geteuid = getattr(os, "geteuid", None)

        return cls(
            home=Path(home),
            shell=environ.get("SHELL", ""),
            path=environ.get("PATH", ""),
            zdotdir=environ.get("ZDOTDIR"),
            tool_dir_override=environ.get("SOUNDNESS_DIR"),
            is_root=geteuid() == 0 if geteuid else False,
        )

    @property
    def path_entries(self) -> Tuple[str, ...]:
        return tuple(entry for entry in self.path.split(os.pathsep) if entry)

    def has_path_entry(self, directory: Path) -> bool:
        """Return True if directory is a whole colon-delimited PATH entry."""
        return str(directory) in self.path_entries

    def with_path_entry(self, directory: Path) -> "Environment":
        """Return a copy with directory appended to PATH, if not present."""
        if self.has_path_entry(directory):
            return self
        new_path = f"{self.path}{os.pathsep}{directory}" if self.path else str(directory)
        return replace(self, path=new_path)

    def as_process_env(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Build an environment mapping for child processes."""
        env = dict(os.environ if base is None else base)
        env["HOME"] = str(self.home)
        env["PATH"] = self.path
        return env


@dataclass(frozen=True)
class InstallPaths:
    """Filesystem locations owned by the installer."""

    home_dir: Path
    tool_dir: Path
    tool_bin_dir: Path
    tool_binary_path: Path

    @classmethod
    def from_environment(
        cls, env: Environment, helper_name: str = "soundnessup"
    ) -> "InstallPaths":
        if env.tool_dir_override:
            tool_dir = Path(env.tool_dir_override)
        else:
            tool_dir = env.home / TOOL_DIR_NAME
        tool_bin_dir = tool_dir / "bin"

        return cls(
            home_dir=env.home,
            tool_dir=tool_dir,
            tool_bin_dir=tool_bin_dir,
            tool_binary_path=tool_bin_dir / helper_name,
        )

    @property
    def cargo_bin_dir(self) -> Path:
        return self.home_dir / ".cargo" / "bin"


def key_locations(home: Path) -> Tuple[Path, ...]:
    """Well-known key directories, in search order."""
    return tuple(home.joinpath(*parts) for parts in KEY_SUBDIRS)
