"""
Timestamp Dependence Rule — Detects branch conditions driven by the block timestamp.

Block producers can shift the timestamp within a tolerance, so logic that
branches on it can be nudged in their favour.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit


RULE_ID = "timestamp-dependence"
SEVERITY = Severity.WARNING
TITLE = "Branch depends on the block timestamp"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    for func in unit.functions:
        for use in facts.timestamp_uses[func.name]:
            where = f"modifier '{use.modifier}' applied to '{func.name}'" if use.modifier else f"'{func.name}'"
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(
                    function=func.name, modifier=use.modifier, statement=use.position
                ),
                message=(
                    f"Statement {use.position} of {where} branches on the block "
                    f"timestamp, which block producers can influence."
                ),
                subject=use.statement,
            )
