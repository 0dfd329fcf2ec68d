"""
Raw Call Without Gas Rule — Detects low-level calls that forward all remaining gas.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import CallKind, ContractUnit, GasSpec


RULE_ID = "raw-call-without-gas"
SEVERITY = Severity.INFO
TITLE = "Raw call without explicit gas"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    for func in unit.functions:
        for ordinal, call in enumerate(facts.call_sites[func.name]):
            if call.kind != CallKind.RAW_CALL or call.gas != GasSpec.UNSPECIFIED:
                continue
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(function=func.name, call=ordinal, statement=call.position),
                message=(
                    f"The raw call at statement {call.position} of '{func.name}' forwards "
                    f"all remaining gas to the callee; pass an explicit gas amount."
                ),
                subject=call,
            )
