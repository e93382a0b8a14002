"""Append-only audit trail for inventory changes."""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings


class AuditLog:
    """JSON-lines files under the audit directory, one file per UTC day."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.audit_dir).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def path_for(self, day: date) -> Path:
        return self.root / f"dispatch_{day.strftime('%Y%m%d')}.jsonl"

    def record(self, event: str, **fields: Any) -> dict:
        now = datetime.now(timezone.utc)
        entry = {"event": event, "timestamp": now.isoformat(), **fields}
        line = json.dumps(entry, ensure_ascii=False, default=str)
        with self._lock:
            with self.path_for(now.date()).open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        return entry

    def read(self, day: date | None = None) -> list[dict]:
        path = self.path_for(day or datetime.now(timezone.utc).date())
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
