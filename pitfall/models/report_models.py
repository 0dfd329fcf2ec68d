"""
Report Models — The input contract for report emitters (console, JSON, HTTP).

A unit that could not be analyzed is always distinguishable from a unit
that analyzed cleanly: the former has status "failed" and an error.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from pitfall.models.finding_models import FindingRecord, RuleDiagnostic, Severity


class UnitError(BaseModel):
    """Why a unit could not be analyzed."""

    kind: Literal["malformed-source-model", "resource-exceeded"]
    message: str


class UnitReport(BaseModel):
    """Analysis outcome for a single contract unit."""

    model_config = ConfigDict(populate_by_name=True)

    unit: str = Field(..., description="Contract name, or the source path if unreadable")
    source: str = Field(default="", description="Where the unit was read from")
    status: Literal["analyzed", "failed"]
    findings: list[FindingRecord] = Field(default_factory=list)
    diagnostics: list[RuleDiagnostic] = Field(
        default_factory=list, description="Rules that raised; their results are absent"
    )
    error: UnitError | None = None
    rules_executed: list[str] = Field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def has_critical(self) -> bool:
        return any(f.severity == Severity.CRITICAL for f in self.findings)


class BatchReport(BaseModel):
    """Outcome of analyzing a batch of units."""

    units: list[UnitReport] = Field(default_factory=list)
    cancelled: bool = False
    duration_ms: float = 0.0

    @property
    def has_critical(self) -> bool:
        return any(u.has_critical for u in self.units)

    @property
    def has_failures(self) -> bool:
        return any(u.status == "failed" for u in self.units)

    def severity_counts(self) -> dict[str, int]:
        counts = {s.value: 0 for s in Severity}
        for unit in self.units:
            for finding in unit.findings:
                counts[finding.severity.value] += 1
        return counts

    def exit_code(self) -> int:
        """0 clean, 1 critical findings, 2 some unit failed to analyze."""
        if self.has_failures:
            return 2
        if self.has_critical:
            return 1
        return 0
