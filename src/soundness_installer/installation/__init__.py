"""Install and uninstall orchestration package."""

from .environment import Environment, InstallPaths, key_locations
from .exceptions import (
    CommandError,
    DownloadError,
    InstallerStepError,
    ProfileEditError,
    ShellDetectionError,
)
from .installer import InstallationError, SoundnessInstaller
from .outcome import Outcome, OutcomeStatus, RunReport
from .profile import ProfileResolution, ShellKind, resolve_profile, resolve_shell_kind
from .prompt import Answer, confirm_with_timeout
from .uninstaller import SoundnessUninstaller

__all__ = [
    "Answer",
    "CommandError",
    "DownloadError",
    "Environment",
    "InstallPaths",
    "InstallationError",
    "InstallerStepError",
    "Outcome",
    "OutcomeStatus",
    "ProfileEditError",
    "ProfileResolution",
    "RunReport",
    "ShellDetectionError",
    "ShellKind",
    "SoundnessInstaller",
    "SoundnessUninstaller",
    "confirm_with_timeout",
    "key_locations",
    "resolve_profile",
    "resolve_shell_kind",
]
