"""
Unbounded Loop External Call Rule — Detects calls inside loops with data-dependent bounds.

A loop whose trip count grows with storage can exceed the block gas limit,
and a single failing callee inside it blocks every later iteration.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit


RULE_ID = "unbounded-loop-external-call"
SEVERITY = Severity.CRITICAL
TITLE = "External call inside an unbounded loop"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    """Flag storage-length-dependent or unbounded loops whose body makes a call."""
    for func in unit.functions:
        for loop_fact in facts.loops[func.name]:
            if not loop_fact.is_unbounded or not loop_fact.calls:
                continue
            kinds = sorted({c.kind.value for c in loop_fact.calls})
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(
                    function=func.name,
                    loop=loop_fact.ordinal,
                    statement=loop_fact.loop.position,
                ),
                message=(
                    f"The {loop_fact.loop.bound.value} loop at statement "
                    f"{loop_fact.loop.position} of '{func.name}' makes "
                    f"{len(loop_fact.calls)} external call(s) ({', '.join(kinds)}) "
                    f"and can run out of gas or be blocked by one failing callee."
                ),
                subject=loop_fact.loop,
            )
