"""Hedera BDD Test Library"""

from .accounts import load_account_records
from .context import ScenarioContext
from .errors import (
    HederaTestError,
    TransactionFailed,
    MirrorNodeError,
    ScenarioStateError,
    MessageTimeoutError,
)
from .helpers import tolerate_status, ensure_token_balance, ensure_hbar_balance
from .memory_ledger import MemoryLedger
from .mirror_client import MirrorNodeClient, MirrorTopicMessageSource
from .subscription import (
    await_matching_message,
    expect_message,
    Matched,
    TimedOut,
    SubscriptionError,
)

__all__ = [
    "load_account_records",
    "ScenarioContext",
    "HederaTestError",
    "TransactionFailed",
    "MirrorNodeError",
    "ScenarioStateError",
    "MessageTimeoutError",
    "tolerate_status",
    "ensure_token_balance",
    "ensure_hbar_balance",
    "MemoryLedger",
    "MirrorNodeClient",
    "MirrorTopicMessageSource",
    "await_matching_message",
    "expect_message",
    "Matched",
    "TimedOut",
    "SubscriptionError",
]
