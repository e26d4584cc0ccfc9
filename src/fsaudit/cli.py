"""fsaudit CLI - Main entry point."""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from fsaudit import __version__
from fsaudit.cli_utils import EXIT_FAILURE, EXIT_SUCCESS, schema_option, wire_config
from fsaudit.errors import AuditError, SchemaError
from fsaudit.report import print_summary
from fsaudit.runner import AuditRunner
from fsaudit.schema import FIELD_TYPES, AuditSchema, FieldSchema, load_schema
from fsaudit.store import open_firestore
from fsaudit.validators.custom_rules import get_default_registry
from fsaudit.walker import parse_collection_path

app = typer.Typer(
    name="fsaudit",
    help="Firestore auditor - validate stored documents against a declarative schema.",
    add_completion=False,
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _output_success(message: str, quiet: bool = False) -> None:
    """Print a success message."""
    if not quiet:
        console.print(f"[green]Success:[/green] {message}")


def _output_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {message}")


def _output_warning(message: str, quiet: bool = False) -> None:
    """Print a warning message."""
    if not quiet:
        err_console.print(f"[yellow]Warning:[/yellow] {message}")


def _exit_error(message: str, exit_code: int = EXIT_FAILURE) -> None:
    """Print error and exit."""
    _output_error(message)
    raise typer.Exit(code=exit_code)


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"fsaudit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Firestore auditor - validate stored documents against a declarative schema."""
    pass


# -----------------------------------------------------------------------------
# Audit Command
# -----------------------------------------------------------------------------


@app.command()
def audit(
    fix: bool = typer.Option(
        False,
        "--fix",
        "-f",
        help="Apply schema defaults to missing required fields.",
    ),
    report_only: bool = typer.Option(
        False,
        "--report-only",
        "-r",
        help="Only write the report; never modify documents (overrides --fix).",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Report file (default: audit-report.json).",
    ),
    credentials: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Firebase service-account credentials file. Defaults to application default credentials.",
    ),
    schema: str | None = schema_option(),
    limit: int | None = typer.Option(
        None,
        "--limit",
        help="Maximum documents per top-level collection, 0 for unlimited (default: 1000).",
    ),
    parent_limit: int | None = typer.Option(
        None,
        "--parent-limit",
        help="Maximum parent documents scanned for subcollections, 0 for unlimited (default: 0).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the report summary as JSON.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    ),
) -> None:
    """Audit Firestore documents against the schema.

    Walks every collection declared in the schema, records violations and
    writes a JSON report. Subcollections (paths like bars/{barId}/events) are
    audited under every parent document.

    With --fix, missing required fields that declare a default are set to it.
    With --report-only, nothing is written to the database.

    Exit codes:
      0 - No error-severity violations
      1 - Error-severity violations found, or the audit could not run
    """
    config = wire_config(
        schema=schema,
        output=output,
        credentials=credentials,
        limit=limit,
        parent_limit=parent_limit,
    )

    runner = AuditRunner(
        config,
        fix=fix,
        report_only=report_only,
        store_factory=open_firestore,
        console=Console(stderr=True, quiet=quiet or json_output),
    )

    try:
        run = runner.run()
    except AuditError as e:
        if json_output:
            console.print_json(json.dumps({"success": False, "error": str(e)}))
        _exit_error(f"Audit failed: {e}")
        return  # unreachable, but helps mypy

    if json_output:
        result: dict[str, Any] = {
            "success": run.exit_code == EXIT_SUCCESS,
            "output": str(run.output_path),
            "statistics": run.report["statistics"],
            "summary": run.report["summary"],
        }
        console.print_json(json.dumps(result))
    elif not quiet:
        print_summary(run.report, console, fix=runner.fix_enabled)

    raise typer.Exit(code=run.exit_code)


# -----------------------------------------------------------------------------
# Check-Schema Command
# -----------------------------------------------------------------------------


def _unknown_types(field_schema: FieldSchema, name: str) -> list[str]:
    """List dotted names of fields whose declared type is not recognized."""
    found: list[str] = []
    if field_schema.type is not None and field_schema.type not in FIELD_TYPES:
        found.append(f"{name} ({field_schema.type})")
    for nested_name, nested_schema in field_schema.properties.items():
        found.extend(_unknown_types(nested_schema, f"{name}.{nested_name}"))
    return found


def _schema_warnings(schema: AuditSchema) -> list[str]:
    """Collect non-fatal problems: unsupported paths, unknown rules and types."""
    registry = get_default_registry()
    warnings: list[str] = []

    for name, collection in schema.collections.items():
        if parse_collection_path(collection.path) is None:
            warnings.append(f"{name}: unsupported collection path '{collection.path}' will be skipped")
        for rule_name in collection.custom_validations:
            if not registry.has_rule(rule_name):
                warnings.append(f"{name}: custom validation '{rule_name}' has no implementation")
        for field_name, field_schema in collection.properties.items():
            for unknown in _unknown_types(field_schema, field_name):
                warnings.append(f"{name}: field {unknown} has an unknown type and always passes")
        for required in collection.required:
            if required not in collection.properties:
                warnings.append(
                    f"{name}: required field '{required}' is not declared in properties "
                    "and will be reported as unknown when present"
                )

    return warnings


@app.command("check-schema")
def check_schema(
    schema: str | None = schema_option(),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    ),
) -> None:
    """Validate the schema file and list its collections.

    Exits with code 1 if the schema cannot be loaded. Warnings (unsupported
    paths, custom validations without an implementation, unknown field types)
    do not fail the check.
    """
    config = wire_config(schema=schema)
    schema_path = config.get_schema_path()

    try:
        parsed = load_schema(schema_path)
    except SchemaError as e:
        if json_output:
            console.print_json(json.dumps({"valid": False, "error": str(e)}))
        _exit_error(str(e))
        return  # unreachable, but helps mypy

    warnings = _schema_warnings(parsed)
    collections: list[dict[str, Any]] = []
    for name, collection in parsed.collections.items():
        target = parse_collection_path(collection.path)
        if target is None:
            mode = "unsupported"
        elif target.is_subcollection:
            mode = "subcollection"
        else:
            mode = "collection"
        collections.append({
            "name": name,
            "path": collection.path,
            "mode": mode,
            "required": list(collection.required),
            "properties": len(collection.properties),
            "customValidations": list(collection.custom_validations),
        })

    if json_output:
        console.print_json(json.dumps({
            "valid": True,
            "schema": {"version": parsed.version, "title": parsed.title},
            "collections": collections,
            "warnings": warnings,
        }))
        return

    _output_success(f"Schema is valid: {schema_path}", quiet)
    for message in warnings:
        _output_warning(message, quiet)

    if quiet:
        return

    table = Table(title=parsed.title or "Collections")
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    table.add_column("Mode")
    table.add_column("Required", justify="right")
    table.add_column("Properties", justify="right")
    table.add_column("Rules")

    for entry in collections:
        mode_style = {
            "collection": "green",
            "subcollection": "blue",
            "unsupported": "red",
        }.get(entry["mode"], "white")
        table.add_row(
            entry["name"],
            entry["path"],
            f"[{mode_style}]{entry['mode']}[/{mode_style}]",
            str(len(entry["required"])),
            str(entry["properties"]),
            ", ".join(entry["customValidations"]) or "-",
        )

    console.print(table)


if __name__ == "__main__":
    app()
