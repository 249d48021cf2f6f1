"""Usage text for the installer command."""

import click

MODE_OPTIONS = (
    ("1, install", "Install Soundness with CLI and generate keys", "green"),
    ("2, uninstall", "Uninstall Soundness completely", "red"),
    ("h, help", "Show this help message", "blue"),
)


def usage_text(prog_name: str = "soundness-installer", color: bool = True) -> str:
    """Build the usage message shown for ``help`` and invalid modes."""

    def style(text: str, fg: str) -> str:
        return click.style(text, fg=fg) if color else text

    lines = [
        style("Soundness Installation/Uninstallation Tool", "blue"),
        style(f"Usage: {prog_name} [OPTIONS] [MODE]", "yellow"),
        style("Modes:", "yellow"),
    ]
    for names, description, fg in MODE_OPTIONS:
        lines.append(style(f"  {names:<15}{description}", fg))

    lines.extend(
        [
            style("Options:", "yellow"),
            "  -v, --verbose    Show debug logging",
            "  -q, --quiet      Only log errors",
            "  -c, --config     YAML file with installer settings",
            "  --deep           Uninstall: also remove stray files named after the product",
            "  --no-logo        Do not fetch and show the startup logo",
            "  --version        Show the version and exit",
        ]
    )
    return "\n".join(lines)


def menu_text() -> str:
    return "\n".join(
        [
            click.style("Soundness Manager:", fg="blue"),
            click.style("1. Install Soundness", fg="green"),
            click.style("2. Uninstall Soundness", fg="red"),
        ]
    )
