"""
Finding Data Models — Severities, locations, findings, and rule metadata.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return SEVERITY_RANKS[self]


SEVERITY_RANKS: dict[Severity, int] = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.CRITICAL: 2,
}


class Location(BaseModel):
    """Where a finding points: a function plus optional ordinals, or an event."""

    model_config = ConfigDict(frozen=True)

    function: str | None = None
    statement: int | None = Field(default=None, description="Body statement ordinal")
    call: int | None = Field(default=None, description="Call-site ordinal within the function")
    loop: int | None = Field(default=None, description="Loop ordinal within the function")
    modifier: str | None = Field(default=None, description="Applied modifier holding the statement")
    event: str | None = None

    def render(self) -> str:
        """Stable textual form used in identity keys and suppression patterns."""
        if self.function is None:
            return f"event:{self.event}" if self.event else "<unit>"
        text = self.function
        if self.modifier is not None:
            text += f"#{self.modifier}"
        if self.loop is not None:
            text += f"#loop{self.loop}"
        if self.call is not None:
            text += f"#call{self.call}"
        if self.statement is not None:
            text += f"#stmt{self.statement}"
        if self.event is not None:
            text += f"#event:{self.event}"
        return text

    def ordinals(self) -> tuple[int, int, int]:
        return (
            -1 if self.statement is None else self.statement,
            -1 if self.call is None else self.call,
            -1 if self.loop is None else self.loop,
        )


@dataclass(frozen=True)
class Finding:
    """
    One reported hazard instance.

    `subject` is the Source Model object the finding concerns (a Function,
    CallSite, LoopConstruct, Statement or Event), held by reference.
    """

    rule_id: str
    severity: Severity
    location: Location
    message: str
    subject: Any = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> str:
        """Identity key used for deduplication and suppression."""
        return f"{self.rule_id}:{self.location.render()}"

    def to_record(self) -> "FindingRecord":
        return FindingRecord(
            rule_id=self.rule_id,
            severity=self.severity,
            location=self.location,
            message=self.message,
            key=self.key,
        )


class FindingRecord(BaseModel):
    """Serializable form of a finding, as handed to report emitters."""

    model_config = ConfigDict(populate_by_name=True)

    rule_id: str = Field(..., alias="ruleId", description="Stable rule identifier")
    severity: Severity
    location: Location
    message: str = Field(..., description="Single human-readable sentence")
    key: str = Field(default="", description="Identity key: ruleId + rendered location")


# Type for a rule evaluator: (facts, unit) -> lazily produced findings
RuleCheckFn = Callable[..., Iterable[Finding]]


@dataclass(frozen=True)
class RuleDescriptor:
    """Registry entry for one rule."""

    id: str
    severity: Severity
    title: str
    check: RuleCheckFn


class RuleDiagnostic(BaseModel):
    """A rule that raised while evaluating a unit. Distinct from a finding."""

    rule_id: str = Field(..., alias="ruleId")
    error_type: str
    message: str

    model_config = ConfigDict(populate_by_name=True)


@dataclass
class RuleResult:
    """Result of running the rule engine on one unit."""

    findings: list[Finding] = field(default_factory=list)
    diagnostics: list[RuleDiagnostic] = field(default_factory=list)
    rules_executed: list[str] = field(default_factory=list)
    duration_ms: float = 0.0
