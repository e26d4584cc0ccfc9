"""Audit orchestration.

Loads the schema, opens the store, walks every declared collection in schema
order and produces the report. Collections are audited strictly one after
another; any fatal error aborts the run before a report is written.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console

from fsaudit.auditor import DocumentAuditor
from fsaudit.config import AuditConfig
from fsaudit.fixers import DefaultValueFixer, FixResult
from fsaudit.report import build_report, exit_code_for, write_report
from fsaudit.schema import AuditSchema, load_schema
from fsaudit.stats import AuditStatistics
from fsaudit.store import DocumentStore, StoreDocument, open_firestore
from fsaudit.walker import CollectionWalker, WalkResult

StoreFactory = Callable[[Path | None], DocumentStore]


@dataclass
class AuditRun:
    """Outcome of a completed audit.

    Attributes:
        report: The report written to disk.
        output_path: Where the report was written.
        exit_code: 0 when no error-severity violations were found, otherwise 1.
        walks: Per-collection traversal results, in schema order.
    """

    report: dict[str, Any]
    output_path: Path
    exit_code: int
    walks: list[WalkResult]


class AuditRunner:
    """Runs a complete audit for one configuration.

    Each call to run() uses fresh statistics, so a runner can be reused.
    """

    def __init__(
        self,
        config: AuditConfig,
        *,
        fix: bool = False,
        report_only: bool = False,
        store_factory: StoreFactory = open_firestore,
        console: Console | None = None,
        base_path: Path | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Resolved configuration.
            fix: Apply schema defaults to invalid documents.
            report_only: Never write to the store, even if fix is set.
            store_factory: Opens the store given the credentials path.
            console: Console for progress output. Defaults to stderr.
            base_path: Directory relative paths are resolved against.
        """
        self.config = config
        self.fix = fix
        self.report_only = report_only
        self.store_factory = store_factory
        self.console = console or Console(stderr=True)
        self.base_path = base_path

    @property
    def fix_enabled(self) -> bool:
        return self.fix and not self.report_only

    def load_schema(self) -> AuditSchema:
        """Load the configured schema.

        Raises:
            SchemaError: If the schema cannot be loaded.
        """
        return load_schema(self.config.get_schema_path(self.base_path))

    def run(self) -> AuditRun:
        """Run the audit and write the report.

        Returns:
            AuditRun with the report and the exit code.

        Raises:
            AuditError: On schema, credential, store or report failures.
        """
        schema = self.load_schema()
        self.console.print(
            f"[green]✓[/green] Schema loaded: {schema.title or 'untitled'} "
            f"({len(schema.collections)} collections)"
        )

        store = self.store_factory(self.config.get_credentials_path(self.base_path))

        stats = AuditStatistics()
        auditor = DocumentAuditor(
            stats,
            fixer=DefaultValueFixer(store) if self.fix_enabled else None,
            redact_fields=self.config.redact_fields,
            on_fix=self._print_fix,
        )
        walker = CollectionWalker(
            store,
            auditor,
            limit=self.config.limit,
            parent_limit=self.config.parent_limit,
        )

        walks: list[WalkResult] = []
        for name, collection_schema in schema.collections.items():
            with self.console.status(f"Auditing {collection_schema.path}..."):
                result = walker.walk(name, collection_schema)
            walks.append(result)
            self._print_walk(result)

        report = build_report(
            schema,
            stats,
            auditor.audited,
            fix=self.fix,
            report_only=self.report_only,
            limit=self.config.limit,
        )
        output_path = write_report(report, self.config.get_output_path(self.base_path))
        self.console.print(f"Report saved to: [blue]{output_path}[/blue]")

        return AuditRun(
            report=report,
            output_path=output_path,
            exit_code=exit_code_for(report),
            walks=walks,
        )

    def _print_walk(self, result: WalkResult) -> None:
        if result.skipped:
            self.console.print(
                f"[yellow]Warning:[/yellow] Skipping {result.name}: "
                f"unsupported collection path '{result.path}'"
            )
            return

        line = f"[green]✓[/green] {result.path}: {result.documents} documents"
        if result.parents:
            line += f" under {result.parents} parents"
        valid = result.documents - result.invalid
        self.console.print(f"{line} ({valid} valid, {result.invalid} invalid)")

    def _print_fix(self, document: StoreDocument, result: FixResult) -> None:
        if result.success:
            self.console.print(f"  [green]FIXED[/green] {document.path}")
        else:
            self.console.print(f"  [red]FAILED[/red] {document.path}: {result.message}")
