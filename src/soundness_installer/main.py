"""Main CLI entry point for the Soundness installer.

Installs the soundnessup helper, the Rust toolchain and the Soundness CLI and
generates a fresh key, or removes all of it again.
"""

import asyncio
import sys
import traceback
from typing import Optional

import click
import structlog

from .__version__ import __version__
from .cli.banner import show_logo
from .cli.help import menu_text, usage_text
from .config import ConfigurationError, InstallerSettings, configure_logging, load_settings
from .config.logging import sanitize_log_data
from .installation import (
    Environment,
    InstallationError,
    RunReport,
    SoundnessInstaller,
    SoundnessUninstaller,
)
from .installation.commands import CommandRunner
from .installation.downloader import Downloader

logger = structlog.get_logger()

MODE_ALIASES = {
    "1": "install",
    "install": "install",
    "2": "uninstall",
    "uninstall": "uninstall",
    "h": "help",
    "help": "help",
}

MENU_CHOICES = {"1": "install", "2": "uninstall"}


class CLIError(Exception):
    """Base CLI error with user-friendly messages."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)


def handle_cli_error(error: Exception, ctx: Optional[click.Context] = None):
    """Print an error for the user and exit with status 1."""
    if isinstance(error, (CLIError, ConfigurationError)):
        click.secho(f"Error: {error.message}", fg="red", err=True)
        if error.suggestion:
            click.echo(f"Suggestion: {error.suggestion}", err=True)
    else:
        verbose = bool(ctx and ctx.obj and ctx.obj.get("verbose"))
        click.secho(f"Unexpected error: {error}", fg="red", err=True)
        if verbose:
            click.echo(traceback.format_exc(), err=True)
        else:
            click.echo("Run with --verbose for detailed error information", err=True)

    sys.exit(1)


@click.command(context_settings={"help_option_names": ["--help"]})
@click.version_option(version=__version__, prog_name="soundness-installer")
@click.argument("mode", required=False)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Installer settings file (YAML format)",
)
@click.option("--deep", is_flag=True, help="Uninstall: also remove stray files named after the product")
@click.option("--no-logo", is_flag=True, help="Do not fetch and show the startup logo")
@click.pass_context
def cli(
    ctx: click.Context,
    mode: Optional[str],
    verbose: bool,
    quiet: bool,
    config: Optional[str],
    deep: bool,
    no_logo: bool,
):
    """Install or uninstall Soundness.

    \b
    MODE is one of:
      1, install     Install Soundness with CLI and generate keys
      2, uninstall   Uninstall Soundness completely
      h, help        Show usage

    Without MODE an interactive menu is shown.
    """
    if verbose and quiet:
        raise click.BadParameter("Cannot use both --verbose and --quiet options")

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if mode is None:
        click.echo(menu_text())
        choice = click.prompt("Enter your choice (1 or 2)", default="", show_default=False)
        action = MENU_CHOICES.get(choice.strip())
        if action is None:
            handle_cli_error(
                CLIError(
                    "Invalid choice. Please select 1 or 2.",
                    "Pass install or uninstall as MODE to skip the menu.",
                ),
                ctx,
            )
    else:
        action = MODE_ALIASES.get(mode.strip().lower())
        if action is None:
            click.secho(f"Invalid option: {mode}", fg="red", err=True)
            click.echo(usage_text(ctx.info_name or "soundness-installer"), err=True)
            ctx.exit(1)
        if action == "help":
            click.echo(usage_text(ctx.info_name or "soundness-installer"))
            ctx.exit(0)

    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        handle_cli_error(e, ctx)

    level = "DEBUG" if verbose else "ERROR" if quiet else settings.logging.level
    configure_logging(level=level, log_file=settings.logging.file_path, json_logs=settings.logging.json_format)
    logger.debug("Loaded settings", settings=sanitize_log_data(settings.model_dump()))

    env = Environment.from_os()
    runner = CommandRunner()
    downloader = Downloader(settings.download_timeout)

    if settings.show_logo and not no_logo:
        click.secho("Loading logo...", fg="blue")
        asyncio.run(show_logo(settings, env, downloader, runner))

    try:
        if action == "install":
            _run_install(settings, env, runner, downloader, quiet)
        else:
            _run_uninstall(settings, env, runner, deep, quiet)
    except InstallationError as e:
        _handle_installation_error(e, ctx)
    except (click.exceptions.Exit, click.Abort):
        raise
    except Exception as e:
        handle_cli_error(e, ctx)


def _run_install(
    settings: InstallerSettings,
    env: Environment,
    runner: CommandRunner,
    downloader: Downloader,
    quiet: bool,
) -> None:
    installer = SoundnessInstaller(settings=settings, env=env, runner=runner, downloader=downloader)

    click.secho(f"🚀 Installing {settings.helper_name}...", fg="green")
    report = asyncio.run(installer.perform_install())

    profile = installer.profile
    if not quiet:
        _display_report(report)
        click.secho(f"\n🔍 Detected shell: {profile.shell_kind.value}", fg="blue")
        click.secho(f"To start using {settings.helper_name} in new shells, run:", fg="yellow")
        click.secho(f"▶ source {profile.path}", fg="yellow")

    click.secho("\n🔐 IMPORTANT: Make sure to save your mnemonic phrase from above!", fg="red")
    click.secho("It's your only way to recover your key if lost.", fg="red")
    click.secho(
        "\n🌟 Done! Use your public key to register for testnet with: !access <your-public-key>",
        fg="green",
    )


def _run_uninstall(
    settings: InstallerSettings,
    env: Environment,
    runner: CommandRunner,
    deep: bool,
    quiet: bool,
) -> None:
    uninstaller = SoundnessUninstaller(settings=settings, env=env, runner=runner, deep=deep)

    click.secho("🧹 Uninstalling Soundness...", fg="blue")
    report = asyncio.run(uninstaller.perform_uninstallation())

    if not quiet:
        _display_report(report)

    if report.failed:
        click.secho("⚠️  Soundness was uninstalled with warnings.", fg="yellow")
    else:
        click.secho("✅ Soundness has been completely uninstalled.", fg="green")
    click.secho(
        f"To complete the uninstallation, restart your terminal or run: source {uninstaller.profile.path}",
        fg="yellow",
    )


def _display_report(report: RunReport) -> None:
    """Show completed, skipped and failed steps."""
    if report.succeeded:
        click.echo("\nCompleted steps:")
        for outcome in report.succeeded:
            click.echo(f"   ✓ {outcome.step}: {outcome.reason}")

    if report.skipped:
        click.echo("\nSkipped steps:")
        for outcome in report.skipped:
            click.echo(f"   - {outcome.step}: {outcome.reason}")

    if report.removed_items:
        click.echo("\nRemoved items:")
        for item in report.removed_items:
            click.echo(f"   ✓ {item}")

    if report.warnings:
        click.echo("\n⚠️  Warnings:")
        for warning in report.warnings:
            click.echo(f"   • {warning}")


def _handle_installation_error(error: InstallationError, ctx: Optional[click.Context]):
    """Show a fatal install error with its remediation and exit."""
    verbose = bool(ctx and ctx.obj and ctx.obj.get("verbose"))

    click.secho(f"❌ {error.message}", fg="red", err=True)
    if error.suggestion:
        click.secho(error.suggestion, fg="yellow", err=True)

    if verbose:
        click.echo("\n📋 Error details:", err=True)
        for key, value in error.details.items():
            if key in ("suggestion", "report"):
                continue
            click.echo(f"   {key}: {value}", err=True)
        report = error.details.get("report") or {}
        for outcome in report.get("outcomes", []):
            click.echo(f"   {outcome['step']}: {outcome['status']}", err=True)

    sys.exit(1)


if __name__ == "__main__":
    cli()
