"""
pytest configuration for Hedera BDD tests

This file contains pytest fixtures and configuration that are shared
across the scenario and unit test modules.
"""

import pytest

from hedera_bdd.accounts import load_account_records
from hedera_bdd.config import TestConfig
from hedera_bdd.context import ScenarioContext, ordinal_index
from hedera_bdd.memory_ledger import MemoryLedger
from hedera_bdd.mirror_client import MirrorNodeClient, MirrorTopicMessageSource


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (long timeouts)",
    )
    parser.addoption(
        "--ledger",
        action="store",
        choices=["memory", "live"],
        default=None,
        help="Run scenarios against the in-memory ledger or the live network",
    )
    parser.addoption(
        "--network",
        action="store",
        default=None,
        help="Override Hedera network (mainnet, testnet, previewnet)",
    )


def pytest_configure(config):
    """Configure pytest"""
    # Register custom markers
    config.addinivalue_line("markers", "live: Scenarios running against a Hedera network")
    config.addinivalue_line("markers", "slow: Slow tests (long timeouts)")
    config.addinivalue_line("markers", "unit: Unit tests of the test library")
    config.addinivalue_line("markers", "bdd: Feature file scenarios")

    # Override ledger and network if specified
    ledger = config.getoption("--ledger")
    if ledger:
        TestConfig.LEDGER = ledger
    network = config.getoption("--network")
    if network:
        TestConfig.use_network(network)


def pytest_collection_modifyitems(config, items):
    """Modify test collection"""
    skip_slow = pytest.mark.skip(reason="Need --run-slow option to run")
    for item in items:
        if "bdd" in item.path.parts:
            item.add_marker(pytest.mark.bdd)
            if TestConfig.LEDGER == "live":
                item.add_marker(pytest.mark.live)
        elif "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)

        # Skip slow tests by default
        if "slow" in item.keywords and not config.getoption("--run-slow"):
            item.add_marker(skip_slow)


@pytest.fixture(scope="session", autouse=True)
def print_test_config(request):
    """Print test configuration at session start"""
    if request.config.option.verbose > 0 or TestConfig.VERBOSE:
        print("\n")
        TestConfig.print_config()
        print()


@pytest.fixture
def ledger():
    """
    Ledger gateway for one scenario

    In memory mode every scenario gets a fresh MemoryLedger. In live mode the
    scenario is skipped when the mirror node is unreachable, and the SDK
    client is closed after the scenario.
    """
    if TestConfig.LEDGER == "memory":
        yield MemoryLedger()
        return

    from hedera_bdd.ledger_client import LedgerClient

    mirror = MirrorNodeClient()
    if not mirror.ping():
        pytest.skip(f"Mirror node not available at {mirror.url}")

    client = LedgerClient()
    yield client
    client.close()


@pytest.fixture
def account_records(ledger):
    """Positional test accounts (account 0 is the operator)"""
    if isinstance(ledger, MemoryLedger):
        return [
            ledger.create_funded_account(TestConfig.MEMORY_STARTING_HBARS)
            for _ in range(TestConfig.MEMORY_ACCOUNT_COUNT)
        ]

    records = load_account_records()
    if not records:
        pytest.skip("No test accounts configured (HEDERA_ACCOUNTS or HEDERA_ACCOUNTS_FILE)")
    return records


@pytest.fixture
def context():
    """Scenario context, discarded when the scenario ends"""
    scenario_context = ScenarioContext()
    yield scenario_context
    scenario_context.close()


@pytest.fixture
def use_account(ledger, account_records, context):
    """Factory fixture: load an account by ordinal into the scenario context"""
    def _use(ordinal: str, operator: bool = False):
        index = ordinal_index(ordinal)
        if index >= len(account_records):
            pytest.skip(f"Scenario needs a {ordinal} test account, {len(account_records)} configured")
        account = context.add_account(ordinal, ledger.load_account(account_records[index]))
        if operator:
            ledger.set_operator(account)
        return account
    return _use


@pytest.fixture
def topic_message_source(ledger):
    """Factory fixture: message stream for a topic"""
    def _source(topic_id: str):
        if TestConfig.LEDGER == "live" and TestConfig.MESSAGE_SOURCE == "mirror":
            return MirrorTopicMessageSource(MirrorNodeClient(), topic_id)
        return ledger.topic_messages(topic_id)
    return _source
