"""CLI utility functions for fsaudit.

Provides helper functions for:
- Config wiring: Extracting Typer CLI options and passing to load_config
- Error formatting: Consistent user-friendly error messages with exit codes
- Shared Typer option factories
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import typer

from fsaudit.config import AuditConfig, load_config

# Exit code conventions
EXIT_SUCCESS = 0
EXIT_FAILURE = 1  # Error-severity violations, bad input, or a fatal audit error


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def error(msg: str, *, exit_code: int = EXIT_FAILURE) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    styled_prefix = typer.style("Error:", fg=typer.colors.RED, bold=True)
    typer.echo(f"{styled_prefix} {msg}", err=True)
    raise typer.Exit(code=exit_code)


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    schema: str | None = None,
    output: str | None = None,
    credentials: str | None = None,
    limit: int | None = None,
    parent_limit: int | None = None,
    start_dir: Path | None = None,
) -> AuditConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Options left as None fall through to the environment, config files and
    defaults.

    Returns:
        Fully resolved AuditConfig instance.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {
        "schema": schema,
        "output": output,
        "credentials": credentials,
        "limit": limit,
        "parent_limit": parent_limit,
    }

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ValueError as e:
        error(f"Invalid configuration: {e}")


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs its own instance.


def schema_option() -> Any:
    """Create a Typer Option for --schema / -s."""
    return typer.Option(
        None,
        "--schema",
        "-s",
        help="Schema file (default: schema.json).",
    )
