"""
Custom assertion helpers for Hedera BDD tests
"""

import re

from .helpers import hbar_to_tinybars
from .models import Receipt


ENTITY_ID_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def assert_valid_entity_id(value: str, message: str = "Invalid entity id"):
    """Assert value is a shard.realm.num entity id"""
    assert isinstance(value, str), f"{message}: not a string"
    assert ENTITY_ID_PATTERN.match(value), f"{message}: {value!r}"


def assert_success(receipt: Receipt, message: str = "Transaction did not succeed"):
    """Assert receipt status is SUCCESS"""
    assert receipt.status == "SUCCESS", f"{message}: status {receipt.status}"


def assert_hbar_above(balance_tinybars: int, hbars: int, account_id: str = "account"):
    """Assert balance (tinybars) is strictly more than `hbars`"""
    assert balance_tinybars > hbar_to_tinybars(hbars), (
        f"{account_id} holds {balance_tinybars / hbar_to_tinybars(1):.8f} hbar, "
        f"expected more than {hbars}"
    )


def assert_token_balance(actual: int, expected: int, account_id: str = "account"):
    """Assert token balance equals expected"""
    assert actual == expected, f"{account_id} holds {actual} tokens, expected {expected}"
