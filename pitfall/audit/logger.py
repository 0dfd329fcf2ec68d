"""
Audit Logger — Structured JSON-lines audit trail.

Records every scan with: timestamp, scan_id, units requested, analyzed and
failed, findings by severity, rule errors, cancellation and duration.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path

from pitfall.config import settings
from pitfall.models.report_models import BatchReport
from pitfall.models.scan_models import AuditEntry

logger = logging.getLogger("pitfall.audit")


class AuditLogger:
    """Writes structured audit entries to a JSON-lines file."""

    def __init__(self, log_path: str | None = None) -> None:
        self.log_path = Path(log_path or settings.audit_log_path)

    @staticmethod
    def entry_for(scan_id: str, requested: int, report: BatchReport) -> AuditEntry:
        failed = sum(1 for u in report.units if u.status == "failed")
        return AuditEntry(
            scan_id=scan_id,
            units_requested=requested,
            units_analyzed=len(report.units) - failed,
            units_failed=failed,
            findings_by_severity=report.severity_counts(),
            rule_errors=sum(len(u.diagnostics) for u in report.units),
            cancelled=report.cancelled,
            duration_ms=report.duration_ms,
        )

    def log(self, entry: AuditEntry) -> None:
        """Append one scan record; a write failure never fails the scan."""
        try:
            with self.log_path.open("a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"[{entry.scan_id}] audit record not written to {self.log_path}: {e}")

    def read_recent(self, count: int = 50) -> list[dict]:
        """Return the last `count` scan records, oldest first."""
        recent: deque[dict] = deque(maxlen=count)
        try:
            with self.log_path.open(encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    try:
                        recent.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping corrupt audit record at {self.log_path}:{lineno}")
        except FileNotFoundError:
            return []
        return list(recent)
