"""
Shared State Reentrant Risk Rule — Detects cross-function reentrancy exposure.

When two functions write the same state variable and one of them makes an
external call before its last statement, the callee can re-enter through the
other function and observe or corrupt the shared state. Deliberately
over-inclusive: false positives are accepted, false negatives are not.
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit


RULE_ID = "shared-state-reentrant-risk"
SEVERITY = Severity.WARNING
TITLE = "Shared mutable state across functions with external calls"


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    """One finding per function that shares written state and calls out early."""
    shared = {var: fns for var, fns in facts.write_sets.items() if len(fns) > 1}
    if not shared:
        return

    for func in unit.functions:
        if not facts.has_non_last_call(func.name):
            continue
        variables = [var for var, fns in shared.items() if func.name in fns]
        if not variables:
            continue
        others = sorted(
            {fn for var in variables for fn in shared[var] if fn != func.name},
            key=lambda name: facts.function_order[name],
        )
        yield Finding(
            rule_id=RULE_ID,
            severity=SEVERITY,
            location=Location(function=func.name),
            message=(
                f"'{func.name}' makes an external call before its last statement and "
                f"writes {', '.join(repr(v) for v in variables)}, which "
                f"{', '.join(repr(o) for o in others)} also write(s), so a reentrant "
                f"call can manipulate the shared state."
            ),
            subject=func,
        )
