"""
Finding Aggregator — Suppresses, deduplicates, and orders findings.

Order: severity descending, then source order of the referenced function
(event-only findings after all functions, in event order), then rule id,
then the location's ordinals and rendered text. The last key is unique
after deduplication, so the order is total and the output reproducible.
"""

from __future__ import annotations

from typing import Iterable

from pitfall.core.suppression import SuppressionList
from pitfall.models.fact_models import Facts
from pitfall.models.finding_models import Finding


def aggregate(
    findings: Iterable[Finding],
    facts: Facts,
    suppressions: SuppressionList | None = None,
) -> list[Finding]:
    """
    Turn the unordered rule output into the final finding sequence.

    Pure: the input is not modified. Running it again on its own output
    returns the same list.
    """
    kept: dict[str, Finding] = {}
    for finding in findings:
        if suppressions is not None and suppressions.is_suppressed(finding):
            continue
        current = kept.get(finding.key)
        # Duplicates keep the highest severity; ties keep the first seen
        if current is None or finding.severity.rank > current.severity.rank:
            kept[finding.key] = finding

    return sorted(kept.values(), key=lambda f: sort_key(f, facts))


def sort_key(finding: Finding, facts: Facts) -> tuple:
    return (
        -finding.severity.rank,
        source_order(finding, facts),
        finding.rule_id,
        finding.location.ordinals(),
        finding.location.render(),
    )


def source_order(finding: Finding, facts: Facts) -> int:
    location = finding.location
    n_functions = len(facts.function_order)
    if location.function is not None:
        return facts.function_order.get(location.function, n_functions)
    if location.event is not None and location.event in facts.event_order:
        return n_functions + facts.event_order[location.event]
    return n_functions + len(facts.event_order)
