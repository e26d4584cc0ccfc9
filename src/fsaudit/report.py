"""Audit report assembly, persistence and console summary."""

from __future__ import annotations

import base64
import json
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from fsaudit.errors import ReportError
from fsaudit.schema import AuditSchema
from fsaudit.stats import AuditStatistics
from fsaudit.validators.base import AuditedDocument
from fsaudit.validators.type_checker import to_datetime

REDACTED = "[REDACTED]"
DEFAULT_REDACT_FIELDS = ("password", "token", "secret", "key")


# -----------------------------------------------------------------------------
# Redaction
# -----------------------------------------------------------------------------


def sanitize_data(
    data: Mapping[str, Any], redact_fields: Iterable[str] = DEFAULT_REDACT_FIELDS
) -> dict[str, Any]:
    """Copy document data with sensitive fields replaced by a marker.

    Matching is by exact field name and applies at every nesting level,
    including mappings inside arrays. The input is not modified.

    Args:
        data: Document data.
        redact_fields: Field names to redact.

    Returns:
        A sanitized copy of the data.
    """
    names = frozenset(redact_fields)
    return _sanitize_mapping(data, names)


def _sanitize_mapping(data: Mapping[str, Any], names: frozenset[str]) -> dict[str, Any]:
    return {
        key: REDACTED if key in names else _sanitize_value(value, names)
        for key, value in data.items()
    }


def _sanitize_value(value: Any, names: frozenset[str]) -> Any:
    if isinstance(value, Mapping):
        return _sanitize_mapping(value, names)
    if isinstance(value, (list, tuple)):
        return [_sanitize_value(item, names) for item in value]
    return value


# -----------------------------------------------------------------------------
# Report assembly
# -----------------------------------------------------------------------------


def summarize(audited: Sequence[AuditedDocument]) -> dict[str, int]:
    """Compute the report summary.

    ``totalIssues`` counts documents with issues; ``errorCount`` and
    ``warningCount`` count individual violations by severity.
    """
    return {
        "totalIssues": len(audited),
        "errorCount": sum(doc.error_count for doc in audited),
        "warningCount": sum(doc.warning_count for doc in audited),
    }


def build_report(
    schema: AuditSchema,
    stats: AuditStatistics,
    audited: Sequence[AuditedDocument],
    *,
    fix: bool,
    report_only: bool,
    limit: int,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """Assemble the audit report.

    Args:
        schema: The schema the documents were audited against.
        stats: Final run statistics.
        audited: Documents with violations, in audit order.
        fix: Whether fix mode was requested.
        report_only: Whether report-only mode was requested.
        limit: Per-collection fetch limit (0 = unlimited).
        timestamp: Report time. Defaults to now (UTC).

    Returns:
        The report as a JSON-ready dictionary (apart from document values,
        which are converted when written).
    """
    moment = timestamp or datetime.now(timezone.utc)
    return {
        "timestamp": moment.isoformat(),
        "schema": {"version": schema.version, "title": schema.title},
        "options": {"fix": fix, "reportOnly": report_only, "limit": limit},
        "statistics": stats.to_dict(),
        "issues": [doc.to_dict() for doc in audited],
        "summary": summarize(audited),
    }


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    converted = to_datetime(value)
    if converted is not None:
        return converted.isoformat()
    return str(value)


def _replace_non_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, Mapping):
        return {key: _replace_non_finite(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_replace_non_finite(item) for item in value]
    return value


def dump_report(report: Mapping[str, Any]) -> str:
    """Serialize a report to JSON text (2-space indentation).

    NaN and infinite numbers are written as the strings "nan", "inf" and
    "-inf" so the output stays valid JSON.
    """
    return json.dumps(
        _replace_non_finite(report),
        indent=2,
        ensure_ascii=False,
        allow_nan=False,
        default=_json_default,
    )


def write_report(report: Mapping[str, Any], path: str | Path) -> Path:
    """Write a report to disk, creating parent directories as needed.

    Returns:
        The resolved output path.

    Raises:
        ReportError: If the file or its directory cannot be written.
    """
    output = Path(path).resolve()
    text = dump_report(report) + "\n"
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ReportError(f"Cannot write report to {output}: {e}") from e
    return output


def exit_code_for(report: Mapping[str, Any]) -> int:
    """0 when the report holds no error-severity violations, otherwise 1."""
    return 1 if report["summary"]["errorCount"] > 0 else 0


# -----------------------------------------------------------------------------
# Console summary
# -----------------------------------------------------------------------------


def print_summary(report: Mapping[str, Any], console: Console, *, fix: bool) -> None:
    """Print the human-readable audit summary.

    Args:
        report: Report produced by build_report.
        console: Console to print to.
        fix: Whether fix counts should be shown.
    """
    stats = report["statistics"]
    summary = report["summary"]

    console.print("\n[bold]Audit Summary[/bold]")
    console.print(f"Documents audited: [cyan]{stats['totalDocuments']}[/cyan]")
    console.print(f"Valid documents:   [green]{stats['validDocuments']}[/green]")
    console.print(f"Invalid documents: [red]{stats['invalidDocuments']}[/red]")
    if fix:
        console.print(f"Fixed documents:   [yellow]{stats['fixedDocuments']}[/yellow]")

    console.print(
        f"\nDocuments with issues: [red]{summary['totalIssues']}[/red] "
        f"({summary['errorCount']} errors, {summary['warningCount']} warnings)"
    )

    if stats["collections"]:
        table = Table(title="By Collection")
        table.add_column("Collection", style="cyan")
        table.add_column("Total", justify="right")
        table.add_column("Valid", justify="right", style="green")
        table.add_column("Invalid", justify="right", style="red")
        if fix:
            table.add_column("Fixed", justify="right", style="yellow")

        for name, counts in stats["collections"].items():
            row = [name, str(counts["total"]), str(counts["valid"]), str(counts["invalid"])]
            if fix:
                row.append(str(counts["fixed"]))
            table.add_row(*row)

        console.print(table)

    if summary["totalIssues"] > 0:
        if not fix:
            console.print("[yellow]Run with --fix to apply automatic fixes[/yellow]")
    else:
        console.print("[green]No problems found.[/green]")
