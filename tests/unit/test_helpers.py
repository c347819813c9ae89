"""
Test step helpers and assertion helpers
"""

import pytest

from hedera_bdd.assertions import (
    assert_hbar_above,
    assert_success,
    assert_token_balance,
    assert_valid_entity_id,
)
from hedera_bdd.errors import TransactionFailed
from hedera_bdd.helpers import (
    ensure_associated,
    ensure_hbar_balance,
    ensure_token_balance,
    hbar_to_tinybars,
    tolerate_status,
)
from hedera_bdd.memory_ledger import MemoryLedger
from hedera_bdd.models import Receipt


@pytest.fixture
def ledger():
    return MemoryLedger(transaction_fee=0)


@pytest.fixture
def treasury(ledger):
    account = ledger.load_account(ledger.create_funded_account(100))
    ledger.set_operator(account)
    return account


@pytest.fixture
def holder(ledger):
    return ledger.load_account(ledger.create_funded_account(0))


@pytest.fixture
def token_id(ledger, treasury):
    return ledger.create_token("Test Token", "HTT", 2, 500, treasury, supply_key=treasury.public_key)


def test_tolerate_listed_status():
    with tolerate_status("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT"):
        raise TransactionFailed("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT")


def test_tolerate_reraises_other_status():
    with pytest.raises(TransactionFailed) as excinfo:
        with tolerate_status("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT"):
            raise TransactionFailed("INVALID_SIGNATURE")
    assert excinfo.value.status == "INVALID_SIGNATURE"


def test_tolerate_leaves_other_exceptions_alone():
    with pytest.raises(KeyError):
        with tolerate_status("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT"):
            raise KeyError("token")


def test_ensure_associated_is_idempotent(ledger, treasury, holder, token_id):
    ensure_associated(ledger, holder, token_id)
    ensure_associated(ledger, holder, token_id)
    assert ledger.is_associated(holder.account_id, token_id)


def test_top_up_preserves_treasury(ledger, treasury, holder, token_id):
    previous = ensure_token_balance(ledger, token_id, holder, 120, treasury)

    assert previous == 0
    assert ledger.get_token_balance(holder.account_id, token_id) == 120
    assert ledger.get_token_balance(treasury.account_id, token_id) == 500
    assert ledger.get_token_info(token_id).total_supply == 620


def test_drain_preserves_treasury(ledger, treasury, holder, token_id):
    ensure_token_balance(ledger, token_id, holder, 120, treasury)
    ensure_token_balance(ledger, token_id, holder, 20, treasury)

    assert ledger.get_token_balance(holder.account_id, token_id) == 20
    assert ledger.get_token_balance(treasury.account_id, token_id) == 500
    assert ledger.get_token_info(token_id).total_supply == 520


def test_treasury_adjusted_by_mint_and_burn(ledger, treasury, token_id):
    ensure_token_balance(ledger, token_id, treasury, 100, treasury)
    assert ledger.get_token_balance(treasury.account_id, token_id) == 100

    ensure_token_balance(ledger, token_id, treasury, 150, treasury)
    assert ledger.get_token_info(token_id).total_supply == 150


def test_unchanged_balance_submits_nothing(ledger, treasury, holder, token_id):
    ensure_token_balance(ledger, token_id, holder, 0, treasury)
    assert ledger.get_token_info(token_id).total_supply == 500


def test_hbar_top_up(ledger, treasury, holder):
    ensure_hbar_balance(ledger, holder, 3, funder=treasury)
    assert ledger.get_hbar_balance(holder.account_id) == hbar_to_tinybars(3)


def test_hbar_never_drains(ledger, treasury, holder):
    ensure_hbar_balance(ledger, treasury, 1, funder=holder)
    assert ledger.get_hbar_balance(treasury.account_id) == hbar_to_tinybars(100)


def test_assert_valid_entity_id():
    assert_valid_entity_id("0.0.1234")
    with pytest.raises(AssertionError):
        assert_valid_entity_id("0.0")


def test_assert_success():
    assert_success(Receipt(status="SUCCESS"))
    with pytest.raises(AssertionError, match="INVALID_SIGNATURE"):
        assert_success(Receipt(status="INVALID_SIGNATURE"))


def test_assert_hbar_above_is_strict():
    assert_hbar_above(hbar_to_tinybars(10) + 1, 10)
    with pytest.raises(AssertionError):
        assert_hbar_above(hbar_to_tinybars(10), 10)


def test_assert_token_balance():
    with pytest.raises(AssertionError, match="holds 5 tokens, expected 6"):
        assert_token_balance(5, 6, "0.0.1001")
