"""
Source Model — Normalized representation of one contract unit.

These models are the output of the external contract parser and the input to
the fact extractor. They are frozen: nothing downstream may mutate them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Visibility(str, Enum):
    EXTERNAL = "external"
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"
    # Absent declaration, kept as a fact so the visibility rule can fire
    UNSPECIFIED = "unspecified"


class Mutability(str, Enum):
    PURE = "pure"
    VIEW = "view"
    PAYABLE = "payable"
    NONE = "none"


class CallKind(str, Enum):
    VALUE_TRANSFER = "value-transfer"
    RAW_CALL = "raw-call"
    TYPED_EXTERNAL_CALL = "typed-external-call"
    DELEGATE_CALL = "delegate-call"


class GasSpec(str, Enum):
    UNSPECIFIED = "unspecified"
    LITERAL = "literal"
    VARIABLE = "variable"


class LoopBound(str, Enum):
    STATIC_CONSTANT = "static-constant"
    STORAGE_LENGTH_DEPENDENT = "storage-length-dependent"
    UNBOUNDED = "unbounded"


class _Frozen(BaseModel):
    # Unknown keys are malformed input; camelCase spellings of known fields are accepted
    model_config = ConfigDict(
        frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True
    )


class Statement(_Frozen):
    """An opaque body statement; only the tagged facets below are analyzed."""

    kind: str = Field(default="other", description="Informational node kind")
    writes: tuple[str, ...] = Field(
        default=(), description="State variables assigned by this statement"
    )
    reads_block_timestamp: bool = False
    feeds_branch: bool = Field(
        default=False, description="True if the statement's value drives a branch condition"
    )
    reverts_unconditionally: bool = False


class Modifier(_Frozen):
    """A named check applied before a function body."""

    name: str
    statements: tuple[Statement, ...] = ()


class Event(_Frozen):
    name: str


class StateVariable(_Frozen):
    name: str
    visibility: Visibility = Visibility.UNSPECIFIED


class Function(_Frozen):
    """A contract function. Modifiers are weak references resolved by name."""

    name: str
    visibility: Visibility = Field(
        default=Visibility.UNSPECIFIED,
        description="Declared visibility; missing means no declaration was written",
    )
    mutability: Mutability = Mutability.NONE
    statements: tuple[Statement, ...] = ()
    modifiers: tuple[str, ...] = Field(
        default=(), description="Applied modifier names, in application order"
    )

    @field_validator("visibility", mode="before")
    @classmethod
    def _null_visibility(cls, value: object) -> object:
        # Parsers emit null for an undeclared visibility
        return Visibility.UNSPECIFIED if value is None else value

    @property
    def last_position(self) -> int:
        """Ordinal of the final body statement, -1 for an empty body."""
        return len(self.statements) - 1


class CallSite(_Frozen):
    """An external call reachable from a function body."""

    function: str = Field(..., description="Name of the owning function")
    kind: CallKind
    position: int = Field(..., ge=0, description="Statement ordinal in the owning body")
    gas: GasSpec = GasSpec.UNSPECIFIED
    result_checked: bool = False
    target: str = Field(default="", description="Callee expression, for messages only")


class LoopConstruct(_Frozen):
    """A loop whose body covers statement ordinals position..end_position."""

    function: str = Field(..., description="Name of the owning function")
    bound: LoopBound
    position: int = Field(..., ge=0, description="Ordinal of the loop header")
    end_position: int = Field(..., ge=0, description="Ordinal of the last body statement")


class ContractUnit(_Frozen):
    """One logical contract, owned by a single analysis run."""

    name: str
    functions: tuple[Function, ...] = ()
    state_variables: tuple[StateVariable, ...] = ()
    modifiers: tuple[Modifier, ...] = ()
    events: tuple[Event, ...] = ()
    call_sites: tuple[CallSite, ...] = ()
    loops: tuple[LoopConstruct, ...] = ()

    def get_function(self, name: str) -> Function | None:
        return next((f for f in self.functions if f.name == name), None)

    def get_modifier(self, name: str) -> Modifier | None:
        return next((m for m in self.modifiers if m.name == name), None)
