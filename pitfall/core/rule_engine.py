"""
Rule Engine — Orchestrates all registered rules.

Runs every registered rule over the same Facts snapshot. Rules are pure,
independent functions: adding, removing, or reordering rules never changes
another rule's findings, so they may also be evaluated on a thread pool.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import (
    Finding,
    RuleDescriptor,
    RuleDiagnostic,
    RuleResult,
)
from pitfall.models.source_models import ContractUnit

# Import all rule modules
from pitfall.core.rules import (
    event_naming_collision,
    external_call_not_last,
    external_call_unchecked,
    raw_call_without_gas,
    shared_state_reentrant_risk,
    timestamp_dependence,
    unbounded_loop_external_call,
    visibility_unspecified,
)

logger = logging.getLogger("pitfall.rules")


def _describe(module) -> RuleDescriptor:
    return RuleDescriptor(
        id=module.RULE_ID,
        severity=module.SEVERITY,
        title=module.TITLE,
        check=module.check,
    )


# Registry of all rules, in evaluation order
RULE_REGISTRY: dict[str, RuleDescriptor] = {
    d.id: d
    for d in map(
        _describe,
        (
            external_call_unchecked,
            external_call_not_last,
            unbounded_loop_external_call,
            shared_state_reentrant_risk,
            visibility_unspecified,
            event_naming_collision,
            timestamp_dependence,
            raw_call_without_gas,
        ),
    )
}

# Called between rules; raises to abort the unit (e.g. ResourceExceeded)
Checkpoint = Callable[[str], None]


class RuleEngine:
    """
    Deterministic rule engine.

    A rule that raises is isolated: it is recorded as a RuleDiagnostic, its
    partial output is discarded, and the remaining rules still report.
    """

    def __init__(
        self,
        rules: dict[str, RuleDescriptor] | None = None,
        disabled: Iterable[str] = (),
        max_workers: int = 1,
    ) -> None:
        selected = dict(rules if rules is not None else RULE_REGISTRY)
        for rule_id in disabled:
            if rule_id not in selected:
                raise ValueError(f"Unknown rule: {rule_id}")
            del selected[rule_id]
        self.rules = selected
        self.max_workers = max(1, max_workers)

    @classmethod
    def select(cls, rule_ids: Iterable[str], **kwargs) -> "RuleEngine":
        """Engine running only the given rules."""
        rules: dict[str, RuleDescriptor] = {}
        for rule_id in rule_ids:
            if rule_id not in RULE_REGISTRY:
                raise ValueError(f"Unknown rule: {rule_id}")
            rules[rule_id] = RULE_REGISTRY[rule_id]
        return cls(rules=rules, **kwargs)

    def run(
        self,
        facts: Facts,
        unit: ContractUnit,
        checkpoint: Checkpoint | None = None,
    ) -> RuleResult:
        """
        Run all rules against one unit's facts.

        Args:
            facts: Complete Facts bundle for the unit.
            unit: The unit the facts were extracted from.
            checkpoint: Optional hook called before each rule and after all rules.

        Returns:
            RuleResult with findings concatenated in registry order.
        """
        start = time.monotonic()
        descriptors = list(self.rules.values())

        if self.max_workers > 1 and len(descriptors) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(
                    pool.map(lambda d: self._evaluate(d, facts, unit, checkpoint), descriptors)
                )
        else:
            outcomes = [self._evaluate(d, facts, unit, checkpoint) for d in descriptors]

        if checkpoint is not None:
            checkpoint("rules")

        result = RuleResult(rules_executed=[d.id for d in descriptors])
        for findings, diagnostic in outcomes:
            if diagnostic is not None:
                result.diagnostics.append(diagnostic)
            else:
                result.findings.extend(findings)

        result.duration_ms = round((time.monotonic() - start) * 1000, 2)
        return result

    def run_single_rule(self, rule_id: str, facts: Facts, unit: ContractUnit) -> list[Finding]:
        """Run a single rule against a single unit. Errors propagate."""
        if rule_id not in self.rules:
            raise ValueError(f"Unknown rule: {rule_id}")
        return list(self.rules[rule_id].check(facts, unit))

    @staticmethod
    def _evaluate(
        descriptor: RuleDescriptor,
        facts: Facts,
        unit: ContractUnit,
        checkpoint: Checkpoint | None,
    ) -> tuple[list[Finding], RuleDiagnostic | None]:
        if checkpoint is not None:
            checkpoint(f"rule '{descriptor.id}'")
        try:
            return list(descriptor.check(facts, unit)), None
        except Exception as e:
            # Rule failures must not hide other rules' findings
            logger.warning(
                f"Rule '{descriptor.id}' failed on unit '{unit.name}': {e}", exc_info=True
            )
            return [], RuleDiagnostic(
                rule_id=descriptor.id,
                error_type=type(e).__name__,
                message=str(e),
            )
