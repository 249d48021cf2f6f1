"""Installer settings."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError


class LoggingConfig(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="WARNING", description="Log level")
    file_path: Optional[str] = Field(default=None, description="Log file path")
    json_format: bool = Field(default=False, description="Use JSON log format")

    class Config:
        env_prefix = "SOUNDNESS_INSTALLER_LOG_"


class InstallerSettings(BaseSettings):
    """Names, URLs and limits used by the install and uninstall runs."""

    # Product naming
    product_name: str = Field(default="soundness", description="Name matched during cleanup")
    helper_name: str = Field(default="soundnessup", description="Helper binary name")
    cli_name: str = Field(default="soundness-cli", description="CLI binary name")
    cli_package: str = Field(default="soundness-cli", description="Cargo package name")
    key_name: str = Field(default="my-key", description="Name of the generated key")

    # Remote resources
    helper_url: str = Field(
        default="https://raw.githubusercontent.com/soundnesslabs/soundness-layer/main/soundnessup/soundnessup",
        description="Helper binary download URL",
    )
    toolchain_installer_url: str = Field(
        default="https://sh.rustup.rs", description="Rust toolchain installer script"
    )
    logo_url: str = Field(
        default="https://raw.githubusercontent.com/bangpateng/logo/refs/heads/main/logo.sh",
        description="Startup logo script",
    )
    show_logo: bool = Field(default=True, description="Run the logo script at start-up")

    # Toolchain and build tools
    toolchain_compiler: str = Field(default="rustc", description="Command proving the toolchain exists")
    toolchain_manager: str = Field(default="rustup", description="Toolchain self-uninstaller")
    package_manager: str = Field(default="cargo", description="Package manager used for the CLI")
    build_packages: List[str] = Field(
        default_factory=lambda: ["build-essential", "pkg-config", "libssl-dev"],
        description="apt packages needed to build the CLI",
    )

    # Limits
    download_timeout: float = Field(default=300.0, description="Download timeout in seconds")
    settle_seconds: float = Field(default=5.0, description="Wait after the CLI install")
    process_grace_seconds: float = Field(default=3.0, description="Wait after SIGTERM")
    prompt_timeout_seconds: float = Field(default=30.0, description="Toolchain removal prompt timeout")
    search_max_depth: int = Field(default=6, ge=1, description="Filesystem search depth")
    search_timeout_seconds: float = Field(default=10.0, gt=0, description="Filesystem search timeout")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_prefix = "SOUNDNESS_INSTALLER_"

    @property
    def build_tools_command(self) -> str:
        """Remediation command shown to users without root."""
        packages = " ".join(self.build_packages)
        return f"sudo apt-get update && sudo apt-get install -y {packages}"


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load settings overrides from a YAML file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file: {config_path}", {"error": str(e)})
    except yaml.YAMLError as e:
        raise ConfigurationError("Invalid YAML in configuration file", {"error": str(e)})

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping",
            {"type": type(data).__name__},
        )
    return data


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> InstallerSettings:
    """Build settings from defaults, environment, an optional file and overrides."""
    values: Dict[str, Any] = {}
    if config_file:
        values.update(load_config_file(config_file))
    values.update(overrides)

    try:
        return InstallerSettings(**values)
    except ValidationError as e:
        source = str(Path(config_file)) if config_file else "overrides"
        raise ConfigurationError(
            f"Invalid installer settings in {source}",
            {"errors": [err["msg"] for err in e.errors()]},
        )
