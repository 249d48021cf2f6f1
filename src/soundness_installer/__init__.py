"""Installer and uninstaller for the Soundness CLI toolchain."""

from .__version__ import __version__

__all__ = ["__version__"]
