"""
Visibility Unspecified Rule — Detects functions with no declared visibility.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit, Visibility


RULE_ID = "visibility-unspecified"
SEVERITY = Severity.WARNING
TITLE = "Function visibility not declared"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    for func in unit.functions:
        if func.visibility != Visibility.UNSPECIFIED:
            continue
        yield Finding(
            rule_id=RULE_ID,
            severity=SEVERITY,
            location=Location(function=func.name),
            message=(
                f"Function '{func.name}' does not declare its visibility; state it "
                f"explicitly as external, public, internal or private."
            ),
            subject=func,
        )
