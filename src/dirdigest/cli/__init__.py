"""CLI package: Typer-based command-line interface.

Usage:
    dirdigest --help
    dirdigest scan -d ./data -p "*.log" -o digests.xlsx
"""

from dirdigest.cli._app import app

# Register command modules (side-effect imports)
import dirdigest.cli.cmd_scan  # noqa: F401


def main() -> None:
    """Console-script entry point."""
    app()


__all__ = ["app", "main"]
