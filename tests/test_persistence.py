from datetime import date, datetime, timezone
from pathlib import Path

from src.app.persistence.audit import AuditLog


def test_audit_log_creates_directory(tmp_path: Path) -> None:
    audit = AuditLog(root=tmp_path / "nested" / "audit")

    assert audit.root.exists()
    assert audit.root.is_dir()


def test_audit_log_appends_json_lines(tmp_path: Path) -> None:
    audit = AuditLog(root=tmp_path)

    first = audit.record("dispatch_committed", correlation_id="c1", path=["A", "B"])
    audit.record("dispatch_released", correlation_id="c1", reason="duplicate call")

    today = datetime.now(timezone.utc).date()
    log_path = audit.path_for(today)
    lines = log_path.read_text(encoding="utf-8").splitlines()

    assert len(lines) == 2
    assert first["event"] == "dispatch_committed"
    assert "timestamp" in first
    assert [entry["event"] for entry in audit.read()] == ["dispatch_committed", "dispatch_released"]
    assert audit.read()[0]["path"] == ["A", "B"]


def test_audit_log_read_missing_day_is_empty(tmp_path: Path) -> None:
    audit = AuditLog(root=tmp_path)

    assert audit.read(date(2000, 1, 1)) == []
    assert audit.path_for(date(2024, 3, 9)).name == "dispatch_20240309.jsonl"
