"""Tests for audit orchestration."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from fsaudit.config import AuditConfig
from fsaudit.errors import CredentialsError, ReportError, SchemaError, StoreError
from fsaudit.runner import AuditRunner

T1 = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=3)


def _runner(store: Any, base_path: Path, **kwargs: Any) -> AuditRunner:
    config = kwargs.pop("config", AuditConfig())
    return AuditRunner(
        config,
        store_factory=lambda credentials: store,
        console=Console(quiet=True),
        base_path=base_path,
        **kwargs,
    )


@pytest.fixture
def populated(store: Any) -> Any:
    store.add("bars", "b1", {"name": "Boteco", "status": "open"})
    store.add("bars", "b2", {"name": "Bar do Zé", "token": "secret-token"})
    store.add("bars/b1/events", "e1", {"title": "Samba", "startAt": T2, "endAt": T1})
    store.add("bars/b1/events", "e2", {"startAt": T1, "endAt": T2})
    return store


class TestAuditRunner:
    """Tests for AuditRunner.run."""

    def test_report_written(self, populated: Any, schema_file: Path, tmp_path: Path) -> None:
        run = _runner(populated, tmp_path).run()

        assert run.output_path == (tmp_path / "audit-report.json").resolve()
        on_disk = json.loads(run.output_path.read_text(encoding="utf-8"))
        assert on_disk["statistics"] == {
            "totalDocuments": 4,
            "validDocuments": 1,
            "invalidDocuments": 3,
            "fixedDocuments": 0,
            "collections": {"bars": {"total": 4, "valid": 1, "invalid": 3, "fixed": 0}},
        }
        assert on_disk["summary"] == {"totalIssues": 3, "errorCount": 3, "warningCount": 0}
        assert on_disk["options"] == {"fix": False, "reportOnly": False, "limit": 1000}
        assert [issue["document"] for issue in on_disk["issues"]] == [
            "bars/b2",
            "bars/b1/events/e1",
            "bars/b1/events/e2",
        ]
        assert on_disk["issues"][0]["data"]["token"] == "[REDACTED]"
        assert on_disk["issues"][1]["context"] == {"parentId": "b1"}
        assert run.exit_code == 1

    def test_walks_in_schema_order(self, populated: Any, schema_file: Path, tmp_path: Path) -> None:
        run = _runner(populated, tmp_path).run()
        assert [(w.name, w.documents, w.parents) for w in run.walks] == [
            ("bars", 2, 0),
            ("events", 2, 2),
        ]

    def test_clean_run_exits_zero(self, store: Any, schema_file: Path, tmp_path: Path) -> None:
        store.add("bars", "b1", {"name": "Boteco", "status": "open", "extra": True})
        run = _runner(store, tmp_path).run()

        assert run.report["summary"] == {"totalIssues": 1, "errorCount": 0, "warningCount": 1}
        assert run.exit_code == 0

    def test_fix_mode(self, populated: Any, schema_file: Path, tmp_path: Path) -> None:
        runner = _runner(populated, tmp_path, fix=True)
        run = runner.run()

        assert runner.fix_enabled is True
        assert populated.get("bars/b2")["status"] == "closed"
        assert populated.get("bars/b1/events/e2")["title"] == "Untitled"
        assert run.report["statistics"]["fixedDocuments"] == 2
        # The report describes documents as they were before fixing.
        assert run.report["summary"]["errorCount"] == 3

    def test_report_only_overrides_fix(self, populated: Any, schema_file: Path, tmp_path: Path) -> None:
        runner = _runner(populated, tmp_path, fix=True, report_only=True)
        run = runner.run()

        assert runner.fix_enabled is False
        assert populated.updates == []
        assert run.report["options"] == {"fix": True, "reportOnly": True, "limit": 1000}

    def test_limit_from_config(self, store: Any, schema_file: Path, tmp_path: Path) -> None:
        for i in range(5):
            store.add("bars", f"b{i}", {"name": f"Bar {i}", "status": "open"})
        run = _runner(store, tmp_path, config=AuditConfig(limit=2)).run()

        assert run.report["statistics"]["totalDocuments"] == 2
        assert run.report["options"]["limit"] == 2

    def test_credentials_path_passed_to_factory(self, store: Any, schema_file: Path, tmp_path: Path) -> None:
        seen: list[Path | None] = []

        def factory(credentials: Path | None) -> Any:
            seen.append(credentials)
            return store

        AuditRunner(
            AuditConfig(credentials="sa.json"),
            store_factory=factory,
            console=Console(quiet=True),
            base_path=tmp_path,
        ).run()
        assert seen == [tmp_path / "sa.json"]

    def test_unsupported_path_is_skipped(self, store: Any, tmp_path: Path) -> None:
        (tmp_path / "schema.json").write_text(
            json.dumps({"collections": {"deep": {"path": "a/{b}/c/{d}/e"}, "bars": {}}})
        )
        store.add("bars", "b1", {})
        run = _runner(store, tmp_path).run()

        assert run.walks[0].skipped is True
        assert run.report["statistics"]["collections"] == {
            "bars": {"total": 1, "valid": 1, "invalid": 0, "fixed": 0}
        }


class TestAuditRunnerFailures:
    """Tests for fatal errors during a run."""

    def test_missing_schema(self, store: Any, tmp_path: Path) -> None:
        with pytest.raises(SchemaError):
            _runner(store, tmp_path).run()
        assert not (tmp_path / "audit-report.json").exists()

    def test_store_failure_aborts_without_report(
        self, populated: Any, schema_file: Path, tmp_path: Path
    ) -> None:
        populated.fail_fetch.add("bars/b1/events")
        with pytest.raises(StoreError):
            _runner(populated, tmp_path).run()
        assert not (tmp_path / "audit-report.json").exists()

    def test_credentials_failure(self, schema_file: Path, tmp_path: Path) -> None:
        def factory(credentials: Path | None) -> Any:
            raise CredentialsError("no credentials")

        runner = AuditRunner(
            AuditConfig(), store_factory=factory, console=Console(quiet=True), base_path=tmp_path
        )
        with pytest.raises(CredentialsError):
            runner.run()

    def test_unwritable_output(self, populated: Any, schema_file: Path, tmp_path: Path) -> None:
        (tmp_path / "taken").mkdir()
        config = AuditConfig(output="taken")
        with pytest.raises(ReportError, match="Cannot write report"):
            _runner(populated, tmp_path, config=config).run()
