"""
Plain data types shared by the ledger gateways and the step definitions
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class AccountRecord:
    """Configured test account (positional, account 0 is the operator)"""
    id: str
    private_key: str


@dataclass
class LedgerAccount:
    """Account record resolved into key objects of a ledger backend"""
    account_id: str
    private_key: Any
    public_key: Any


@dataclass(frozen=True)
class TokenSummary:
    token_id: str
    name: str
    symbol: str
    decimals: int
    total_supply: int
    treasury: Optional[str]


@dataclass(frozen=True)
class Receipt:
    """Normalized transaction receipt"""
    status: str
    token_id: Optional[str] = None
    topic_id: Optional[str] = None
    payer: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "SUCCESS"
