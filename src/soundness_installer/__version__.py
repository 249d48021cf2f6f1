"""Version information for soundness-installer."""

__version__ = "0.1.0"
