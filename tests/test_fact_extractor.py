"""
Tests for Fact Extractor — grouping, shared references, write sets, naming, and failures.
"""

import pytest

from pitfall.core.errors import MalformedSourceModel
from pitfall.core.fact_extractor import classify_leading_case, extract_facts, has_event_prefix


def test_every_function_has_a_call_group(bank_unit):
    facts = extract_facts(bank_unit)
    assert set(facts.call_sites) == {"withdraw", "deposit", "payout", "transfer"}
    assert facts.call_sites["deposit"] == ()
    assert facts.loops["withdraw"] == ()
    assert facts.last_call["deposit"] is None


def test_loop_references_same_call_objects(bank_unit):
    facts = extract_facts(bank_unit)
    (loop_fact,) = facts.loops["payout"]
    (call,) = facts.call_sites["payout"]
    assert loop_fact.calls[0] is call
    assert loop_fact.calls[0] is bank_unit.call_sites[1]
    assert loop_fact.is_unbounded
    assert loop_fact.has_transfer


def test_last_call_detected(make_unit, make_function):
    unit = make_unit(
        functions=[make_function("pay", count=3)],
        call_sites=[
            {"function": "pay", "kind": "typed-external-call", "position": 0},
            {"function": "pay", "kind": "value-transfer", "position": 2},
        ],
    )
    facts = extract_facts(unit)
    assert facts.last_call["pay"] is unit.call_sites[1]


def test_call_sites_ordered_by_position(make_unit, make_function):
    unit = make_unit(
        functions=[make_function("pay", count=4)],
        call_sites=[
            {"function": "pay", "kind": "raw-call", "position": 3},
            {"function": "pay", "kind": "raw-call", "position": 1},
        ],
    )
    facts = extract_facts(unit)
    assert [c.position for c in facts.call_sites["pay"]] == [1, 3]
    assert facts.call_ordinal(unit.call_sites[0]) == 1


def test_write_sets_in_source_order(bank_unit):
    facts = extract_facts(bank_unit)
    assert facts.write_sets["balances"] == ("withdraw", "deposit", "transfer")
    assert facts.write_sets["totalDeposits"] == ("deposit",)
    assert [w.position for w in facts.writes_after("withdraw", 1)] == [2]
    assert facts.writes_after("withdraw", 2) == ()


def test_timestamp_uses_include_modifiers(bank_unit):
    facts = extract_facts(bank_unit)
    uses = facts.timestamp_uses["transfer"]
    assert [(u.modifier, u.position) for u in uses] == [("onlyAfter", 0), (None, 0)]
    assert [m.name for m in facts.modifiers["transfer"]] == ["onlyAfter"]


def test_naming_table(bank_unit):
    facts = extract_facts(bank_unit)
    events = {e.name: e for e in facts.names("event")}
    assert events["Transfer"].leading_case == "upper"
    assert not events["Transfer"].has_event_prefix
    assert events["LogDeposit"].has_event_prefix
    assert all(e.leading_case == "lower" for e in facts.names("function"))


def test_custom_event_prefix(bank_unit):
    facts = extract_facts(bank_unit, event_prefixes=["Ev"])
    events = {e.name: e for e in facts.names("event")}
    assert not events["LogDeposit"].has_event_prefix


def test_leading_case_helpers():
    assert classify_leading_case("Transfer") == "upper"
    assert classify_leading_case("transfer") == "lower"
    assert classify_leading_case("_transfer") == "other"
    assert has_event_prefix("LogTransfer", ["Log"])
    assert not has_event_prefix("Logistics", ["Log"])


def test_call_site_with_unknown_function_fails(make_unit, make_function):
    unit = make_unit(
        functions=[make_function("pay")],
        call_sites=[{"function": "ghost", "kind": "raw-call", "position": 0}],
    )
    with pytest.raises(MalformedSourceModel, match="ghost"):
        extract_facts(unit)


def test_loop_with_unknown_function_fails(make_unit, make_function):
    unit = make_unit(
        functions=[make_function("pay")],
        loops=[{"function": "ghost", "bound": "unbounded", "position": 0, "end_position": 0}],
    )
    with pytest.raises(MalformedSourceModel, match="ghost"):
        extract_facts(unit)


def test_call_position_outside_body_fails(make_unit, make_function):
    unit = make_unit(
        functions=[make_function("pay", count=2)],
        call_sites=[{"function": "pay", "kind": "raw-call", "position": 5}],
    )
    with pytest.raises(MalformedSourceModel):
        extract_facts(unit)


def test_undeclared_state_write_fails(make_unit, make_function):
    unit = make_unit(functions=[make_function("pay", writes={0: ["ghostVar"]})])
    with pytest.raises(MalformedSourceModel, match="ghostVar"):
        extract_facts(unit)


def test_unknown_modifier_fails(make_unit, make_function):
    unit = make_unit(functions=[make_function("pay", modifiers=["onlyOwner"])])
    with pytest.raises(MalformedSourceModel, match="onlyOwner"):
        extract_facts(unit)


def test_duplicate_function_fails(make_unit, make_function):
    unit = make_unit(functions=[make_function("pay"), make_function("pay")])
    with pytest.raises(MalformedSourceModel):
        extract_facts(unit)


def test_extraction_does_not_mutate_unit(bank_unit):
    before = bank_unit.model_dump()
    extract_facts(bank_unit)
    assert bank_unit.model_dump() == before
