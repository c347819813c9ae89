"""
Helper functions for Hedera BDD steps
"""

from contextlib import contextmanager
from typing import Iterator

from .errors import TransactionFailed
from .models import LedgerAccount


TINYBARS_PER_HBAR = 100_000_000


def hbar_to_tinybars(hbars: int) -> int:
    return int(hbars) * TINYBARS_PER_HBAR


@contextmanager
def tolerate_status(*statuses: str) -> Iterator[None]:
    """
    Ignore TransactionFailed with one of the given statuses

    Args:
        statuses: Benign status names (e.g. TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT)

    Raises:
        TransactionFailed: For any other status
    """
    try:
        yield
    except TransactionFailed as e:
        if e.status not in statuses:
            raise


def ensure_associated(ledger, account: LedgerAccount, token_id: str) -> None:
    """Associate `token_id` with `account` unless it already is"""
    with tolerate_status("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT"):
        ledger.associate_token(account, token_id)


def ensure_token_balance(
    ledger,
    token_id: str,
    account: LedgerAccount,
    target: int,
    treasury: LedgerAccount,
) -> int:
    """
    Bring `account` to exactly `target` units of `token_id`

    The treasury balance is left untouched when funding other accounts:
    top-ups are minted to the treasury first and drains are burned after
    returning to the treasury. The treasury itself is adjusted by mint/burn.

    Args:
        ledger: LedgerClient or MemoryLedger
        token_id: Token to arrange
        account: Account to adjust
        target: Wanted balance
        treasury: Token treasury (the ledger operator)

    Returns:
        Balance before adjustment
    """
    is_treasury = account.account_id == treasury.account_id
    if not is_treasury:
        ensure_associated(ledger, account, token_id)

    current = ledger.get_token_balance(account.account_id, token_id)
    delta = target - current

    if delta > 0:
        ledger.mint_token(token_id, delta)
        if not is_treasury:
            transfer = ledger.build_token_transfer(
                token_id, {treasury.account_id: -delta, account.account_id: delta}
            )
            ledger.submit_transaction(transfer)
    elif delta < 0:
        if not is_treasury:
            transfer = ledger.build_token_transfer(
                token_id, {account.account_id: delta, treasury.account_id: -delta}, signers=[account]
            )
            ledger.submit_transaction(transfer)
        ledger.burn_token(token_id, -delta)

    return current


def ensure_hbar_balance(ledger, account: LedgerAccount, minimum_hbars: int, funder: LedgerAccount) -> int:
    """
    Top `account` up from `funder` until it holds at least `minimum_hbars`

    Never drains an account that holds more.

    Returns:
        Balance in tinybars before the top-up
    """
    current = ledger.get_hbar_balance(account.account_id)
    shortfall = hbar_to_tinybars(minimum_hbars) - current
    if shortfall > 0 and account.account_id != funder.account_id:
        ledger.transfer_hbar(funder, account.account_id, shortfall)
    return current
