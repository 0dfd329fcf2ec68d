"""
Fact Data Models — The immutable bundle produced once per run by the fact extractor.

Every per-function mapping has an entry for every function, possibly empty.
Loop facts hold references to the same CallSite objects found in
`Facts.call_sites`, never copies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping

from pitfall.models.source_models import (
    CallKind,
    CallSite,
    ContractUnit,
    LoopBound,
    LoopConstruct,
    Modifier,
    Statement,
)

TRANSFER_KINDS = frozenset({CallKind.VALUE_TRANSFER, CallKind.RAW_CALL})
UNBOUNDED_BOUNDS = frozenset({LoopBound.STORAGE_LENGTH_DEPENDENT, LoopBound.UNBOUNDED})

LeadingCase = Literal["upper", "lower", "other"]


@dataclass(frozen=True)
class LoopFact:
    """A loop plus the call sites inside its body."""

    loop: LoopConstruct
    ordinal: int
    calls: tuple[CallSite, ...]

    @property
    def is_unbounded(self) -> bool:
        return self.loop.bound in UNBOUNDED_BOUNDS

    @property
    def has_transfer(self) -> bool:
        """True if the body holds a value-transfer or raw-call site."""
        return any(c.kind in TRANSFER_KINDS for c in self.calls)


@dataclass(frozen=True)
class StateWrite:
    variable: str
    position: int
    statement: Statement


@dataclass(frozen=True)
class TimestampUse:
    """A block-timestamp read feeding a branch, in the body or an applied modifier."""

    statement: Statement
    position: int
    modifier: str | None = None


@dataclass(frozen=True)
class NameEntry:
    name: str
    kind: Literal["function", "event"]
    leading_case: LeadingCase
    has_event_prefix: bool = False


@dataclass(frozen=True)
class Facts:
    """Structured facts about one contract unit."""

    unit: ContractUnit
    function_order: Mapping[str, int]
    event_order: Mapping[str, int]
    call_sites: Mapping[str, tuple[CallSite, ...]]
    loops: Mapping[str, tuple[LoopFact, ...]]
    last_call: Mapping[str, CallSite | None]
    state_writes: Mapping[str, tuple[StateWrite, ...]]
    write_sets: Mapping[str, tuple[str, ...]]
    timestamp_uses: Mapping[str, tuple[TimestampUse, ...]]
    modifiers: Mapping[str, tuple[Modifier, ...]]
    naming: tuple[NameEntry, ...]

    def call_ordinal(self, call: CallSite) -> int:
        """Ordinal of a call site within its function, matched by identity."""
        for i, candidate in enumerate(self.call_sites[call.function]):
            if candidate is call:
                return i
        raise KeyError(f"Call site not registered for function '{call.function}'")

    def writes_after(self, function: str, position: int) -> tuple[StateWrite, ...]:
        """State writes strictly after a statement ordinal."""
        return tuple(w for w in self.state_writes[function] if w.position > position)

    def has_non_last_call(self, function: str) -> bool:
        func = self.unit.get_function(function)
        if func is None:
            return False
        return any(c.position != func.last_position for c in self.call_sites[function])

    def names(self, kind: Literal["function", "event"]) -> tuple[NameEntry, ...]:
        return tuple(e for e in self.naming if e.kind == kind)
