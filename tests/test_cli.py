"""
Tests for the command-line interface — output formats and exit codes.
"""

import json

import pytest

from pitfall.cli import main


@pytest.fixture
def bank_file(tmp_path, bank_payload):
    path = tmp_path / "bank.json"
    path.write_text(json.dumps(bank_payload))
    return path


@pytest.fixture
def vault_file(tmp_path, vault_payload):
    path = tmp_path / "vault.json"
    path.write_text(json.dumps(vault_payload))
    return path


def test_clean_exit_zero(vault_file, capsys):
    assert main([str(vault_file)]) == 0
    out = capsys.readouterr().out
    assert "Vault" in out
    assert "0 findings" in out


def test_critical_exit_one(bank_file, capsys):
    assert main([str(bank_file)]) == 1
    out = capsys.readouterr().out
    assert "external-call-unchecked" in out
    assert "4 critical" in out


def test_failed_unit_exit_two(tmp_path, vault_file, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("[]]")
    assert main([str(vault_file), str(bad)]) == 2
    out = capsys.readouterr().out
    assert "NOT ANALYZED" in out


def test_undecodable_file_does_not_stop_batch(tmp_path, vault_file, capsys):
    bad = tmp_path / "bad.json"
    bad.write_bytes(b'{"name": "\xff\xfe"}')
    assert main([str(vault_file), str(bad), "--format", "json"]) == 2
    data = json.loads(capsys.readouterr().out)
    assert [u["status"] for u in data["units"]] == ["analyzed", "failed"]
    assert data["units"][0]["unit"] == "Vault"
    assert data["units"][1]["error"]["message"].startswith("Invalid encoding")


def test_json_output(bank_file, capsys, bank_expected):
    assert main([str(bank_file), "--format", "json"]) == 1
    data = json.loads(capsys.readouterr().out)
    (unit,) = data["units"]
    assert unit["status"] == "analyzed"
    assert [(f["ruleId"], f["key"].split(":", 1)[1]) for f in unit["findings"]] == bank_expected
    first = unit["findings"][0]
    assert set(first) >= {"ruleId", "severity", "location", "message"}
    assert first["location"]["function"] == "withdraw"


def test_json_output_is_byte_identical(bank_file, capsys):
    main([str(bank_file), "--format", "json"])
    first = capsys.readouterr().out
    main([str(bank_file), "--format", "json"])
    assert capsys.readouterr().out == first


def test_disable_critical_rules(bank_file, capsys):
    args = [
        str(bank_file),
        "--disable", "external-call-unchecked",
        "--disable", "external-call-not-last",
        "--disable", "unbounded-loop-external-call",
    ]
    assert main(args) == 0
    assert "0 critical" in capsys.readouterr().out


def test_suppression_file(bank_file, tmp_path, capsys):
    suppress = tmp_path / "suppress.txt"
    suppress.write_text("external-* *\nunbounded-loop-external-call payout#*\n")
    assert main([str(bank_file), "--suppressions", str(suppress)]) == 0
    capsys.readouterr()


def test_unknown_rule_is_usage_error(bank_file, capsys):
    assert main([str(bank_file), "--disable", "no-such-rule"]) == 2
    assert "Unknown rule" in capsys.readouterr().out


def test_no_paths(capsys):
    assert main([]) == 2


def test_list_rules(capsys):
    assert main(["--list-rules"]) == 0
    out = capsys.readouterr().out
    assert "shared-state-reentrant-risk" in out
