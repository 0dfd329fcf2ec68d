"""
Unchecked External Call Rule — Detects value transfers and raw calls whose result is ignored.

A failed send or low-level call does not revert the caller; if its boolean
result is not checked, execution continues as if the transfer succeeded.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import TRANSFER_KINDS, Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit


RULE_ID = "external-call-unchecked"
SEVERITY = Severity.CRITICAL
TITLE = "External call result not checked"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    """Flag value-transfer and raw-call sites with result_checked false."""
    for func in unit.functions:
        for ordinal, call in enumerate(facts.call_sites[func.name]):
            if call.kind not in TRANSFER_KINDS or call.result_checked:
                continue
            target = f" to '{call.target}'" if call.target else ""
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(function=func.name, call=ordinal, statement=call.position),
                message=(
                    f"The {call.kind.value} call{target} in '{func.name}' at statement "
                    f"{call.position} ignores its result, so a failed call goes unnoticed."
                ),
                subject=call,
            )
