"""
Fact Extractor — Walks a ContractUnit once and produces the Facts bundle.

Runs in phases like the call graph builder: index functions, attach call
sites and loops to their owners, derive state-write sets, collect timestamp
usages, and classify names. Any dangling reference raises
MalformedSourceModel; nothing is silently dropped.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable

from pitfall.core.errors import MalformedSourceModel
from pitfall.models.fact_models import (
    Facts,
    LeadingCase,
    LoopFact,
    NameEntry,
    StateWrite,
    TimestampUse,
)
from pitfall.models.source_models import CallSite, ContractUnit, Function, Modifier

logger = logging.getLogger("pitfall.facts")

DEFAULT_EVENT_PREFIXES: tuple[str, ...] = ("Log",)


def extract_facts(
    unit: ContractUnit,
    event_prefixes: Iterable[str] = DEFAULT_EVENT_PREFIXES,
) -> Facts:
    """
    Build the Facts bundle for one unit.

    Args:
        unit: The contract unit to analyze (read-only).
        event_prefixes: Prefixes that mark an identifier as an event name.

    Returns:
        Immutable Facts.

    Raises:
        MalformedSourceModel: on dangling references or out-of-range positions.
    """
    prefixes = tuple(event_prefixes)

    # --- Phase 1: Index functions ---
    functions: dict[str, Function] = {}
    for func in unit.functions:
        if func.name in functions:
            raise MalformedSourceModel(
                f"Unit '{unit.name}' declares function '{func.name}' more than once"
            )
        functions[func.name] = func
    state_names = {sv.name for sv in unit.state_variables}

    # --- Phase 2: Call sites, grouped and stably ordered by position ---
    grouped_calls: dict[str, list[CallSite]] = {name: [] for name in functions}
    for call in unit.call_sites:
        owner = _owner(unit, functions, call.function, "Call site")
        if call.position > owner.last_position:
            raise MalformedSourceModel(
                f"Call site at position {call.position} is outside the body of "
                f"'{owner.name}' ({len(owner.statements)} statements)"
            )
        grouped_calls[owner.name].append(call)
    call_sites = {
        name: tuple(sorted(calls, key=lambda c: c.position))
        for name, calls in grouped_calls.items()
    }

    last_call: dict[str, CallSite | None] = {}
    for name, calls in call_sites.items():
        at_end = [c for c in calls if c.position == functions[name].last_position]
        last_call[name] = at_end[-1] if at_end else None

    # --- Phase 3: Loops, referencing the grouped call sites ---
    grouped_loops: dict[str, list[LoopFact]] = {name: [] for name in functions}
    for loop in unit.loops:
        owner = _owner(unit, functions, loop.function, "Loop")
        if loop.end_position < loop.position or loop.end_position > owner.last_position:
            raise MalformedSourceModel(
                f"Loop spanning {loop.position}..{loop.end_position} does not fit the "
                f"body of '{owner.name}' ({len(owner.statements)} statements)"
            )
        inside = tuple(
            c for c in call_sites[owner.name]
            if loop.position <= c.position <= loop.end_position
        )
        ordinal = len(grouped_loops[owner.name])
        grouped_loops[owner.name].append(LoopFact(loop=loop, ordinal=ordinal, calls=inside))

    # --- Phase 4: State writes and write sets ---
    state_writes: dict[str, tuple[StateWrite, ...]] = {}
    writers: dict[str, list[str]] = {sv.name: [] for sv in unit.state_variables}
    for func in unit.functions:
        writes: list[StateWrite] = []
        for position, stmt in enumerate(func.statements):
            for var in stmt.writes:
                if var not in state_names:
                    raise MalformedSourceModel(
                        f"Function '{func.name}' writes undeclared state variable '{var}'"
                    )
                writes.append(StateWrite(variable=var, position=position, statement=stmt))
                if func.name not in writers[var]:
                    writers[var].append(func.name)
        state_writes[func.name] = tuple(writes)

    # --- Phase 5: Modifiers and timestamp usages ---
    resolved: dict[str, tuple[Modifier, ...]] = {}
    timestamp_uses: dict[str, tuple[TimestampUse, ...]] = {}
    for func in unit.functions:
        mods: list[Modifier] = []
        for mod_name in func.modifiers:
            mod = unit.get_modifier(mod_name)
            if mod is None:
                raise MalformedSourceModel(
                    f"Function '{func.name}' applies unknown modifier '{mod_name}'"
                )
            mods.append(mod)
        resolved[func.name] = tuple(mods)

        uses: list[TimestampUse] = []
        # Modifiers run before the body
        for mod in mods:
            for position, stmt in enumerate(mod.statements):
                if stmt.reads_block_timestamp and stmt.feeds_branch:
                    uses.append(TimestampUse(statement=stmt, position=position, modifier=mod.name))
        for position, stmt in enumerate(func.statements):
            if stmt.reads_block_timestamp and stmt.feeds_branch:
                uses.append(TimestampUse(statement=stmt, position=position))
        timestamp_uses[func.name] = tuple(uses)

    # --- Phase 6: Naming table ---
    naming: list[NameEntry] = [
        NameEntry(name=f.name, kind="function", leading_case=classify_leading_case(f.name))
        for f in unit.functions
    ]
    naming.extend(
        NameEntry(
            name=e.name,
            kind="event",
            leading_case=classify_leading_case(e.name),
            has_event_prefix=has_event_prefix(e.name, prefixes),
        )
        for e in unit.events
    )

    event_order: dict[str, int] = {}
    for i, event in enumerate(unit.events):
        event_order.setdefault(event.name, i)

    logger.debug(
        f"Extracted facts for '{unit.name}': {len(functions)} functions, "
        f"{len(unit.call_sites)} call sites, {len(unit.loops)} loops"
    )

    return Facts(
        unit=unit,
        function_order=MappingProxyType({f.name: i for i, f in enumerate(unit.functions)}),
        event_order=MappingProxyType(event_order),
        call_sites=MappingProxyType(call_sites),
        loops=MappingProxyType({k: tuple(v) for k, v in grouped_loops.items()}),
        last_call=MappingProxyType(last_call),
        state_writes=MappingProxyType(state_writes),
        write_sets=MappingProxyType({k: tuple(v) for k, v in writers.items()}),
        timestamp_uses=MappingProxyType(timestamp_uses),
        modifiers=MappingProxyType(resolved),
        naming=tuple(naming),
    )


def classify_leading_case(name: str) -> LeadingCase:
    """Classify an identifier by the case of its first character."""
    head = name[:1]
    if head.isupper():
        return "upper"
    if head.islower():
        return "lower"
    return "other"


def has_event_prefix(name: str, prefixes: Iterable[str]) -> bool:
    """True if the name starts with a prefix followed by an uppercase letter (LogTransfer)."""
    for prefix in prefixes:
        rest = name[len(prefix):]
        if prefix and name.startswith(prefix) and rest[:1].isupper():
            return True
    return False


def _owner(unit: ContractUnit, functions: dict[str, Function], name: str, what: str) -> Function:
    owner = functions.get(name)
    if owner is None:
        raise MalformedSourceModel(
            f"{what} references function '{name}' which is not in unit '{unit.name}'"
        )
    return owner
