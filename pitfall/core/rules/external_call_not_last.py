"""
External Call Not Last Rule — Encodes the reentrancy-ordering hazard.

An external call that is followed by a state write lets the callee re-enter
while the contract still holds stale state. The check is purely positional:
any write strictly after the call counts, with no attempt to prove it
unreachable.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import CallKind, ContractUnit


RULE_ID = "external-call-not-last"
SEVERITY = Severity.CRITICAL
TITLE = "External call followed by a state write"

_CHECKED_KINDS = frozenset(
    {CallKind.VALUE_TRANSFER, CallKind.RAW_CALL, CallKind.TYPED_EXTERNAL_CALL}
)


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    """Flag external calls that precede a state write in the same function."""
    for func in unit.functions:
        for ordinal, call in enumerate(facts.call_sites[func.name]):
            if call.kind not in _CHECKED_KINDS or call.position == func.last_position:
                continue
            later_writes = facts.writes_after(func.name, call.position)
            if not later_writes:
                continue
            first = later_writes[0]
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(function=func.name, call=ordinal, statement=call.position),
                message=(
                    f"The {call.kind.value} call at statement {call.position} of "
                    f"'{func.name}' precedes a write to '{first.variable}' at statement "
                    f"{first.position}, allowing reentrancy against stale state."
                ),
                subject=call,
            )
