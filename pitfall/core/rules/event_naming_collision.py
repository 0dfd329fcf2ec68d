"""
Event Naming Collision Rule — Detects events that can be confused with functions.

An event `Transfer` next to a function `transfer` invites calling one when
the other was meant. Events are expected to carry a distinguishing prefix
(e.g. `LogTransfer`).
"""

from __future__ import annotations

from typing import Iterator

from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding, Location, Severity
from pitfall.models.source_models import ContractUnit


RULE_ID = "event-naming-collision"
SEVERITY = Severity.INFO
TITLE = "Event name collides with or resembles a function name"


def differs_only_by_leading_case(a: str, b: str) -> bool:
    return (
        a != b
        and len(a) == len(b)
        and a[:1].lower() == b[:1].lower()
        and a[1:] == b[1:]
    )


def check(facts: Facts, unit: ContractUnit) -> Iterator[Finding]:
    """Flag leading-case collisions and events lacking a recognised prefix."""
    events = {e.name: e for e in unit.events}
    functions = facts.names("function")

    for entry in facts.names("event"):
        event = events[entry.name]
        for fn in functions:
            if differs_only_by_leading_case(entry.name, fn.name):
                yield Finding(
                    rule_id=RULE_ID,
                    severity=SEVERITY,
                    location=Location(function=fn.name, event=entry.name),
                    message=(
                        f"Event '{entry.name}' differs from function '{fn.name}' only by "
                        f"the case of its first letter."
                    ),
                    subject=event,
                )
        if not entry.has_event_prefix:
            yield Finding(
                rule_id=RULE_ID,
                severity=SEVERITY,
                location=Location(event=entry.name),
                message=(
                    f"Event '{entry.name}' lacks a distinguishing prefix that sets it "
                    f"apart from function names."
                ),
                subject=event,
            )
