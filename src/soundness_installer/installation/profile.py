"""Shell profile resolution and PATH line editing."""

import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

import structlog

from .environment import Environment
from .exceptions import ProfileEditError, ShellDetectionError

logger = structlog.get_logger(__name__)

DEFAULT_PROFILE_NAME = ".bashrc"


class ShellKind(Enum):
    """Login shells with a known profile file."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"
    ASH = "ash"
    UNKNOWN = "unknown"


_KNOWN_SHELLS = (ShellKind.ZSH, ShellKind.BASH, ShellKind.FISH, ShellKind.ASH)


@dataclass(frozen=True)
class ProfileResolution:
    """Profile file chosen for a run."""

    path: Path
    shell_kind: ShellKind
    degraded: bool = False


def resolve_shell_kind(shell_path: str) -> ShellKind:
    """Map a login shell path such as ``/usr/bin/zsh`` to a ShellKind.

    The final path component must be the shell name, so ``/bin/dash`` is
    not mistaken for ash.
    """
    name = (shell_path or "").strip().rsplit("/", 1)[-1]
    for kind in _KNOWN_SHELLS:
        if name == kind.value:
            return kind
    return ShellKind.UNKNOWN


def resolve_profile(env: Environment, strict: bool = True) -> ProfileResolution:
    """Return the profile file governing PATH for the user's shell.

    Args:
        env: Environment snapshot
        strict: Raise on an unknown shell instead of falling back to
            ``~/.bashrc``

    Raises:
        ShellDetectionError: shell is unknown and strict is set
    """
    kind = resolve_shell_kind(env.shell)

    if kind is ShellKind.ZSH:
        base = Path(env.zdotdir) if env.zdotdir else env.home
        return ProfileResolution(base / ".zshenv", kind)
    if kind is ShellKind.BASH:
        return ProfileResolution(env.home / ".bashrc", kind)
    if kind is ShellKind.FISH:
        return ProfileResolution(env.home / ".config" / "fish" / "config.fish", kind)
    if kind is ShellKind.ASH:
        return ProfileResolution(env.home / ".profile", kind)

    if strict:
        raise ShellDetectionError(
            "Could not detect shell",
            {"shell": env.shell or "<unset>"},
        )

    return ProfileResolution(env.home / DEFAULT_PROFILE_NAME, kind, degraded=True)


def path_export_line(kind: ShellKind, bin_dir: Path) -> str:
    """Profile line that appends bin_dir to PATH for the given shell."""
    if kind is ShellKind.FISH:
        return f"set -gx PATH $PATH {bin_dir}"
    return f'export PATH="$PATH:{bin_dir}"'


def append_path_export(
    profile: Path, kind: ShellKind, bin_dir: Path, env: Environment
) -> bool:
    """Append a PATH export for bin_dir to the profile unless already present.

    Returns:
        True if the profile was written
    """
    line = path_export_line(kind, bin_dir)

    if env.has_path_entry(bin_dir):
        logger.debug("Bin directory already on PATH", bin_dir=str(bin_dir))
        return False

    if profile.exists():
        existing = profile.read_text(encoding="utf-8", errors="replace")
        if line in existing.split("\n"):
            logger.debug("Profile already exports bin directory", profile=str(profile))
            return False

    profile.parent.mkdir(parents=True, exist_ok=True)
    with open(profile, "a", encoding="utf-8") as f:
        f.write(f"\n{line}\n")

    logger.info("Added bin directory to profile", profile=str(profile), bin_dir=str(bin_dir))
    return True


def split_lines(content: str) -> List[str]:
    """Split content on newlines only, keeping the endings."""
    lines = [line + "\n" for line in content.split("\n")]
    last = lines.pop()[:-1]
    if last:
        lines.append(last)
    return lines


def filter_lines(content: str, needle: str) -> List[str]:
    """Return the lines of content that do not mention needle, with endings."""
    return [line for line in split_lines(content) if needle not in line]


def strip_profile_entries(profile: Path, needle: str) -> int:
    """Remove every profile line containing needle.

    The file is first replaced atomically through a sibling temp file; if that
    is not possible it is rewritten in place.

    Returns:
        Number of removed lines (0 when the profile does not exist)

    Raises:
        ProfileEditError: neither strategy could rewrite the file
    """
    if not profile.exists():
        return 0

    content = profile.read_text(encoding="utf-8", errors="surrogateescape")
    kept = filter_lines(content, needle)
    removed = len(split_lines(content)) - len(kept)
    if removed == 0:
        return 0

    new_content = "".join(kept)

    try:
        _replace_atomically(profile, new_content)
        return removed
    except OSError as e:
        logger.warning(
            "Atomic profile rewrite failed, editing in place",
            profile=str(profile),
            error=str(e),
        )

    try:
        with open(profile, "r+", encoding="utf-8", errors="surrogateescape") as f:
            f.seek(0)
            f.write(new_content)
            f.truncate()
    except OSError as e:
        raise ProfileEditError(
            f"Could not rewrite profile {profile}", {"error": str(e)}
        )

    return removed


def _replace_atomically(profile: Path, content: str) -> None:
    target = profile.resolve()
    mode = target.stat().st_mode & 0o7777

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as f:
            f.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
