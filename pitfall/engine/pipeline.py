"""
Analysis Pipeline — Runs one unit or a batch through the full analysis.

Per unit:
1. Validate the parser output into a ContractUnit
2. Extract facts (completes before any rule runs)
3. Run the rule engine over the facts snapshot
4. Aggregate: suppress, deduplicate, sort
5. Assemble the UnitReport

Units are independent, so a batch may run on a thread pool. A failed unit
(malformed input, budget overrun) is reported as failed and never stops the
batch.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

from pitfall.core.aggregator import aggregate
from pitfall.core.errors import MalformedSourceModel, PitfallError, ResourceExceeded
from pitfall.core.fact_extractor import DEFAULT_EVENT_PREFIXES, extract_facts
from pitfall.core.rule_engine import RuleEngine
from pitfall.core.source_loader import SourceInput, parse_unit
from pitfall.core.suppression import SuppressionList
from pitfall.models.report_models import BatchReport, UnitError, UnitReport
from pitfall.models.source_models import ContractUnit

logger = logging.getLogger("pitfall.pipeline")


class Deadline:
    """Cooperative wall-clock budget, checked between pipeline stages and rules."""

    def __init__(self, seconds: float | None, unit_name: str) -> None:
        self.seconds = seconds
        self.unit_name = unit_name
        self.expires_at = time.monotonic() + seconds if seconds is not None else None

    def __call__(self, stage: str) -> None:
        if self.expires_at is not None and time.monotonic() > self.expires_at:
            raise ResourceExceeded(
                f"Unit '{self.unit_name}' exceeded its {self.seconds}s budget during {stage}"
            )


class Analyzer:
    """Pipeline orchestrator: source model → facts → rules → aggregated report."""

    def __init__(
        self,
        engine: RuleEngine | None = None,
        suppressions: SuppressionList | None = None,
        event_prefixes: Iterable[str] = DEFAULT_EVENT_PREFIXES,
        unit_budget_seconds: float | None = None,
        batch_workers: int = 1,
    ) -> None:
        self.engine = engine or RuleEngine()
        self.suppressions = suppressions or SuppressionList()
        self.event_prefixes = tuple(event_prefixes)
        self.unit_budget_seconds = unit_budget_seconds
        self.batch_workers = max(1, batch_workers)

    @classmethod
    def from_settings(cls, settings) -> "Analyzer":
        return cls(
            engine=RuleEngine(
                disabled=settings.disabled_rules, max_workers=settings.rule_workers
            ),
            suppressions=SuppressionList.from_settings(settings),
            event_prefixes=settings.event_prefixes,
            unit_budget_seconds=settings.unit_budget_seconds,
            batch_workers=settings.batch_workers,
        )

    def analyze_unit(self, unit: ContractUnit, source: str = "") -> UnitReport:
        """Analyze an already-built ContractUnit."""
        start = time.monotonic()
        deadline = Deadline(self.unit_budget_seconds, unit.name)
        try:
            return self._analyze(unit, source, deadline, start)
        except PitfallError as e:
            return self._failed(unit.name, source, e, start)

    def analyze_input(self, item: SourceInput) -> UnitReport:
        """Validate raw parser output, then analyze it."""
        start = time.monotonic()
        deadline = Deadline(self.unit_budget_seconds, item.display_name)
        try:
            if item.error is not None:
                raise MalformedSourceModel(item.error)
            unit = parse_unit(item.payload)
            deadline("validation")
            return self._analyze(unit, item.source, deadline, start)
        except PitfallError as e:
            return self._failed(item.display_name, item.source, e, start)

    def analyze_batch(
        self,
        items: Iterable[SourceInput],
        cancel_event: threading.Event | None = None,
    ) -> BatchReport:
        """
        Analyze a batch of independent units.

        Cancellation is coarse-grained: once `cancel_event` is set, no new unit
        starts and any unit still in flight is discarded, never partially
        reported. Reports keep input order regardless of worker count.
        """
        inputs = list(items)
        start = time.monotonic()
        logger.info(f"Analyzing {len(inputs)} units with {self.batch_workers} worker(s)")

        if self.batch_workers > 1 and len(inputs) > 1:
            with ThreadPoolExecutor(max_workers=self.batch_workers) as pool:
                results = list(pool.map(lambda i: self._guarded(i, cancel_event), inputs))
        else:
            results = []
            for item in inputs:
                if cancel_event is not None and cancel_event.is_set():
                    break
                results.append(self._guarded(item, cancel_event))

        reports = [r for r in results if r is not None]
        cancelled = len(reports) < len(inputs)
        if cancelled:
            logger.warning(
                f"Batch cancelled: {len(reports)}/{len(inputs)} units completed"
            )

        return BatchReport(
            units=reports,
            cancelled=cancelled,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )

    def _guarded(
        self, item: SourceInput, cancel_event: threading.Event | None
    ) -> UnitReport | None:
        if cancel_event is not None and cancel_event.is_set():
            return None
        report = self.analyze_input(item)
        if cancel_event is not None and cancel_event.is_set():
            # Finished after cancellation: treat as in-flight and drop it
            return None
        return report

    def _analyze(
        self, unit: ContractUnit, source: str, deadline: Deadline, start: float
    ) -> UnitReport:
        facts = extract_facts(unit, self.event_prefixes)
        deadline("fact extraction")

        rule_result = self.engine.run(facts, unit, checkpoint=deadline)
        findings = aggregate(rule_result.findings, facts, self.suppressions)

        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            f"[{unit.name}] {len(findings)} findings, "
            f"{len(rule_result.diagnostics)} rule errors ({elapsed:.1f}ms)"
        )

        return UnitReport(
            unit=unit.name,
            source=source,
            status="analyzed",
            findings=[f.to_record() for f in findings],
            diagnostics=rule_result.diagnostics,
            rules_executed=rule_result.rules_executed,
            duration_ms=round(elapsed, 2),
        )

    @staticmethod
    def _failed(name: str, source: str, error: PitfallError, start: float) -> UnitReport:
        logger.error(f"[{name}] analysis failed ({error.kind}): {error}")
        return UnitReport(
            unit=name,
            source=source,
            status="failed",
            error=UnitError(kind=error.kind, message=str(error)),
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
