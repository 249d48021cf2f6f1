"""Allow running with ``python -m soundness_installer``."""

from .main import cli

if __name__ == "__main__":
    cli()
