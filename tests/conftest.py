"""
Test fixtures shared across all Pitfall tests.
"""

import copy

import pytest

from pitfall.models.source_models import ContractUnit


def _statements(count, writes=None, timestamp=()):
    """Build `count` statements; `writes` maps ordinal -> state variable names."""
    writes = writes or {}
    body = []
    for i in range(count):
        stmt = {"kind": "assignment" if i in writes else "other", "writes": list(writes.get(i, []))}
        if i in timestamp:
            stmt.update(kind="branch", reads_block_timestamp=True, feeds_branch=True)
        body.append(stmt)
    return body


def _function(name, count=1, writes=None, visibility="external", timestamp=(), modifiers=()):
    func = {
        "name": name,
        "statements": _statements(count, writes, timestamp),
        "modifiers": list(modifiers),
    }
    if visibility is not None:
        func["visibility"] = visibility
    return func


def _unit(name="Unit", functions=(), state_variables=(), events=(), modifiers=(), call_sites=(), loops=()):
    return ContractUnit.model_validate(
        {
            "name": name,
            "functions": list(functions),
            "state_variables": [{"name": v, "visibility": "private"} for v in state_variables],
            "events": [{"name": e} for e in events],
            "modifiers": list(modifiers),
            "call_sites": list(call_sites),
            "loops": list(loops),
        }
    )


@pytest.fixture
def make_function():
    return _function


@pytest.fixture
def make_unit():
    return _unit


BANK = {
    "name": "Bank",
    "state_variables": [
        {"name": "balances", "visibility": "private"},
        {"name": "totalDeposits", "visibility": "public"},
        {"name": "lastPayout", "visibility": "internal"},
    ],
    "events": [{"name": "Transfer"}, {"name": "LogDeposit"}],
    "modifiers": [
        {
            "name": "onlyAfter",
            "statements": [
                {"kind": "require", "reads_block_timestamp": True, "feeds_branch": True},
            ],
        }
    ],
    "functions": [
        {
            "name": "withdraw",
            "visibility": "external",
            "statements": [
                {"kind": "require"},
                {"kind": "call"},
                {"kind": "assignment", "writes": ["balances"]},
            ],
        },
        {
            "name": "deposit",
            "visibility": "public",
            "mutability": "payable",
            "statements": [
                {"kind": "assignment", "writes": ["balances"]},
                {"kind": "assignment", "writes": ["totalDeposits"]},
                {"kind": "emit"},
            ],
        },
        {
            "name": "payout",
            "statements": [
                {"kind": "loop"},
                {"kind": "call"},
                {"kind": "assignment", "writes": ["lastPayout"]},
            ],
        },
        {
            "name": "transfer",
            "visibility": "public",
            "modifiers": ["onlyAfter"],
            "statements": [
                {"kind": "branch", "reads_block_timestamp": True, "feeds_branch": True},
                {"kind": "assignment", "writes": ["balances"]},
            ],
        },
    ],
    "call_sites": [
        {"function": "withdraw", "kind": "raw-call", "position": 1, "target": "msg.sender"},
        {
            "function": "payout",
            "kind": "value-transfer",
            "position": 1,
            "result_checked": True,
            "target": "investors[i]",
        },
    ],
    "loops": [
        {"function": "payout", "bound": "storage-length-dependent", "position": 0, "end_position": 1},
    ],
}

# (ruleId, rendered location) in the expected report order
BANK_EXPECTED = [
    ("external-call-not-last", "withdraw#call0#stmt1"),
    ("external-call-unchecked", "withdraw#call0#stmt1"),
    ("external-call-not-last", "payout#call0#stmt1"),
    ("unbounded-loop-external-call", "payout#loop0#stmt0"),
    ("shared-state-reentrant-risk", "withdraw"),
    ("visibility-unspecified", "payout"),
    ("timestamp-dependence", "transfer#onlyAfter#stmt0"),
    ("timestamp-dependence", "transfer#stmt0"),
    ("raw-call-without-gas", "withdraw#call0#stmt1"),
    ("event-naming-collision", "transfer#event:Transfer"),
    ("event-naming-collision", "event:Transfer"),
]

VAULT = {
    "name": "Vault",
    "state_variables": [{"name": "credit", "visibility": "private"}],
    "events": [{"name": "LogWithdrawal"}],
    "functions": [
        {
            "name": "withdraw",
            "visibility": "external",
            "statements": [
                {"kind": "require"},
                {"kind": "assignment", "writes": ["credit"]},
                {"kind": "call"},
            ],
        },
        {"name": "balanceOf", "visibility": "public", "mutability": "view", "statements": [{"kind": "return"}]},
    ],
    "call_sites": [
        {"function": "withdraw", "kind": "raw-call", "position": 2, "gas": "literal", "result_checked": True},
    ],
}


@pytest.fixture
def bank_payload():
    """Contract with one instance of every hazard class."""
    return copy.deepcopy(BANK)


@pytest.fixture
def bank_unit(bank_payload):
    return ContractUnit.model_validate(bank_payload)


@pytest.fixture
def bank_expected():
    return list(BANK_EXPECTED)


@pytest.fixture
def vault_payload():
    """Contract following checks-effects-interactions; no findings."""
    return copy.deepcopy(VAULT)


@pytest.fixture
def vault_unit(vault_payload):
    return ContractUnit.model_validate(vault_payload)
