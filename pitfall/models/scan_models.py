"""
Scan Request/Response Models — HTTP API contract schemas.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from pitfall.models.report_models import BatchReport


class ScanRequest(BaseModel):
    """Request body for /scan: parser output for one or more units."""

    units: list[Any] = Field(
        default_factory=list, description="Contract unit objects as emitted by the parser"
    )


class ScanResponse(BaseModel):
    """Top-level response for the scan endpoint."""

    message: Literal["scan_complete"] = "scan_complete"
    scan_id: str = ""
    report: BatchReport | None = None
    exit_code: int = Field(
        default=0, description="Same meaning as the CLI exit code (0 clean, 1 critical, 2 failed unit)"
    )


class AuditEntry(BaseModel):
    """Audit metadata for a scan."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )
    scan_id: str
    units_requested: int
    units_analyzed: int
    units_failed: int
    findings_by_severity: dict[str, int] = Field(default_factory=dict)
    rule_errors: int = 0
    cancelled: bool = False
    duration_ms: float = 0.0
