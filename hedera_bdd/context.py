"""
Per-scenario state shared between step definitions

A ScenarioContext is created by the `context` fixture for each scenario,
passed explicitly to every step that needs it and closed afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ScenarioStateError
from .models import LedgerAccount, Receipt


ORDINALS = ("first", "second", "third", "fourth")


def ordinal_index(ordinal: str) -> int:
    """Map "first".."fourth" to the positional account index"""
    try:
        return ORDINALS.index(ordinal.lower())
    except ValueError:
        raise ValueError(f"Unknown account ordinal: {ordinal}")


@dataclass
class ScenarioContext:
    """Accounts, entities and pending transactions of one scenario"""

    accounts: Dict[str, LedgerAccount] = field(default_factory=dict)
    token_id: Optional[str] = None
    topic_id: Optional[str] = None
    threshold_key: Any = None
    threshold_signers: List[LedgerAccount] = field(default_factory=list)
    pending_transaction: Any = None
    hbar_snapshot: Dict[str, int] = field(default_factory=dict)
    last_receipt: Optional[Receipt] = None
    message: Optional[str] = None
    closed: bool = False

    def add_account(self, ordinal: str, account: LedgerAccount) -> LedgerAccount:
        ordinal_index(ordinal)
        self.accounts[ordinal.lower()] = account
        return account

    def account(self, ordinal: str) -> LedgerAccount:
        """Get an account registered by an earlier step"""
        try:
            return self.accounts[ordinal.lower()]
        except KeyError:
            raise ScenarioStateError(f"No {ordinal} account has been set up in this scenario")

    def has_account(self, ordinal: str) -> bool:
        return ordinal.lower() in self.accounts

    def require(self, name: str) -> Any:
        """Get a context attribute, failing if no step has set it"""
        if self.closed:
            raise ScenarioStateError("Scenario context is closed")
        value = getattr(self, name)
        if value is None or (isinstance(value, (list, dict)) and not value):
            raise ScenarioStateError(f"'{name}' has not been set by an earlier step")
        return value

    def take_pending_transaction(self) -> Any:
        """Hand over the pending transaction; it can be submitted once"""
        transaction = self.require("pending_transaction")
        self.pending_transaction = None
        return transaction

    def snapshot_hbar(self, ledger) -> Dict[str, int]:
        """Record the hbar balance (tinybars) of every known account"""
        self.hbar_snapshot = {
            ordinal: ledger.get_hbar_balance(account.account_id)
            for ordinal, account in self.accounts.items()
        }
        return self.hbar_snapshot

    def close(self) -> None:
        """Discard all scenario state"""
        self.accounts.clear()
        self.token_id = None
        self.topic_id = None
        self.threshold_key = None
        self.threshold_signers = []
        self.pending_transaction = None
        self.hbar_snapshot = {}
        self.last_receipt = None
        self.message = None
        self.closed = True
