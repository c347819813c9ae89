"""
Test the command line runner's pytest argument building
"""

import sys

import pytest

import run_tests


@pytest.fixture
def captured(monkeypatch):
    calls = []
    monkeypatch.setattr(run_tests, "run_pytest", lambda args: calls.append(args) or 0)
    return calls


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["run_tests.py", *argv])
    with pytest.raises(SystemExit) as excinfo:
        run_tests.main()
    assert excinfo.value.code == 0


def test_default_run_uses_memory_ledger(monkeypatch, captured):
    _run(monkeypatch)
    assert "--ledger" not in captured[0]


def test_network_implies_live(monkeypatch, captured):
    _run(monkeypatch, "--network", "previewnet")
    assert captured[0] == ["--ledger", "live", "--network", "previewnet"]


def test_selection_and_coverage(monkeypatch, captured):
    _run(monkeypatch, "--topic", "--live", "--cov", "-n", "2")
    assert captured[0] == [
        "bdd/test_create_simple_topic.py",
        "--ledger", "live",
        "--cov=hedera_bdd", "--cov-report=html", "--cov-report=term",
        "-n", "2",
    ]
