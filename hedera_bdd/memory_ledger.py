"""
In-memory ledger for offline scenario runs

MemoryLedger exposes the same operations as LedgerClient and mimics the
ledger rules the scenarios depend on: payer fees, token association,
supply keys, signature requirements on debits and submit keys, and status
names matching the network's response codes.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from .config import TestConfig
from .errors import TransactionFailed
from .fixtures import generate_entity_id, generate_test_private_key
from .helpers import hbar_to_tinybars
from .models import AccountRecord, LedgerAccount, Receipt, TokenSummary


@dataclass(frozen=True)
class ThresholdKey:
    """m-of-n key list"""
    keys: Tuple[str, ...]
    threshold: int


@dataclass
class _Token:
    token_id: str
    name: str
    symbol: str
    decimals: int
    total_supply: int
    treasury: str
    supply_key: Optional[str]


@dataclass
class _Topic:
    topic_id: str
    memo: str
    submit_key: Any
    messages: List[str] = field(default_factory=list)
    listeners: List["_TopicSubscription"] = field(default_factory=list)


@dataclass
class PendingTransfer:
    """Built but not yet submitted transfer"""
    payer: str
    token_id: Optional[str]
    token_transfers: Dict[str, int]
    hbar_transfers: Dict[str, int]
    signed_by: Set[str]
    description: str = "transfer"


def public_key_of(private_key: str) -> str:
    return f"pub:{private_key}"


def _key_satisfied(key: Any, signed_by: Set[str]) -> bool:
    if key is None:
        return True
    if isinstance(key, ThresholdKey):
        return len(signed_by.intersection(key.keys)) >= key.threshold
    return key in signed_by


class _TopicSubscription:
    """Handle returned by MemoryTopicSource.subscribe()"""

    def __init__(self, topic: _Topic, lock: threading.RLock, on_message: Callable[[str], None]):
        self._topic = topic
        self._lock = lock
        self.on_message = on_message
        self.cancelled = False

    def cancel(self) -> None:
        with self._lock:
            if self.cancelled:
                return
            self.cancelled = True
            self._topic.listeners.remove(self)


class MemoryTopicSource:
    """Replays a topic's existing messages, then delivers new ones"""

    def __init__(self, ledger: "MemoryLedger", topic_id: str):
        self.ledger = ledger
        self.topic_id = topic_id

    def subscribe(self, on_message: Callable[[str], None], on_error: Callable[[Exception], None]):
        with self.ledger.lock:
            topic = self.ledger.topics.get(self.topic_id)
            if topic is None:
                raise TransactionFailed("INVALID_TOPIC_ID", f"subscribe to {self.topic_id}")
            subscription = _TopicSubscription(topic, self.ledger.lock, on_message)
            topic.listeners.append(subscription)
            backlog = list(topic.messages)
        for message in backlog:
            on_message(message)
        return subscription


class MemoryLedger:
    """In-memory stand-in for LedgerClient"""

    def __init__(self, transaction_fee: Optional[int] = None, debug: bool = False):
        self.transaction_fee = transaction_fee if transaction_fee is not None else TestConfig.MEMORY_TRANSACTION_FEE
        self.debug = debug or TestConfig.DEBUG
        self.lock = threading.RLock()
        self.operator: Optional[LedgerAccount] = None

        self.hbars: Dict[str, int] = {}
        self.account_keys: Dict[str, str] = {}
        self.tokens: Dict[str, _Token] = {}
        self.token_balances: Dict[Tuple[str, str], int] = {}
        self.topics: Dict[str, _Topic] = {}
        self._next_num = 1001

    # Accounts and keys

    def create_funded_account(self, hbars: int = 0) -> AccountRecord:
        """Open an account holding `hbars` and return its record"""
        with self.lock:
            account_id = self._next_entity_id()
            private_key = generate_test_private_key()
            self.hbars[account_id] = hbar_to_tinybars(hbars)
            self.account_keys[account_id] = public_key_of(private_key)
        return AccountRecord(id=account_id, private_key=private_key)

    def load_account(self, record: AccountRecord) -> LedgerAccount:
        if self.account_keys.get(record.id) != public_key_of(record.private_key):
            raise TransactionFailed("INVALID_ACCOUNT_ID", f"load account {record.id}")
        return LedgerAccount(
            account_id=record.id,
            private_key=record.private_key,
            public_key=public_key_of(record.private_key),
        )

    def set_operator(self, account: LedgerAccount) -> None:
        self.operator = account

    def threshold_key(self, public_keys: List[Any], threshold: int) -> ThresholdKey:
        if not 0 < threshold <= len(public_keys):
            raise ValueError(f"Invalid threshold {threshold} for {len(public_keys)} keys")
        return ThresholdKey(keys=tuple(public_keys), threshold=threshold)

    # Queries

    def get_hbar_balance(self, account_id: str) -> int:
        with self.lock:
            if account_id not in self.hbars:
                raise TransactionFailed("INVALID_ACCOUNT_ID", f"balance of {account_id}")
            return self.hbars[account_id]

    def get_token_balance(self, account_id: str, token_id: str) -> int:
        with self.lock:
            return self.token_balances.get((token_id, account_id), 0)

    def is_associated(self, account_id: str, token_id: str) -> bool:
        with self.lock:
            return (token_id, account_id) in self.token_balances

    def get_token_info(self, token_id: str) -> TokenSummary:
        token = self._token(token_id, "token info")
        return TokenSummary(
            token_id=token.token_id,
            name=token.name,
            symbol=token.symbol,
            decimals=token.decimals,
            total_supply=token.total_supply,
            treasury=token.treasury,
        )

    # Token service

    def create_token(
        self,
        name: str,
        symbol: str,
        decimals: int,
        initial_supply: int,
        treasury: LedgerAccount,
        supply_key: Any = None,
    ) -> str:
        description = f"create token {symbol}"
        with self.lock:
            self._charge_fee(description)
            if self.account_keys.get(treasury.account_id) != treasury.public_key:
                raise TransactionFailed("INVALID_TREASURY_ACCOUNT_FOR_TOKEN", description)
            if initial_supply < 0:
                raise TransactionFailed("INVALID_TOKEN_INITIAL_SUPPLY", description)
            token_id = self._next_entity_id()
            self.tokens[token_id] = _Token(
                token_id=token_id,
                name=name,
                symbol=symbol,
                decimals=decimals,
                total_supply=initial_supply,
                treasury=treasury.account_id,
                supply_key=supply_key,
            )
            self.token_balances[(token_id, treasury.account_id)] = initial_supply
        self._log(description, "SUCCESS")
        return token_id

    def mint_token(self, token_id: str, amount: int) -> Receipt:
        description = f"mint {amount} of {token_id}"
        with self.lock:
            payer = self._charge_fee(description)
            token = self._token(token_id, description)
            self._check_supply_key(token, payer, description)
            if amount <= 0:
                raise TransactionFailed("INVALID_TOKEN_MINT_AMOUNT", description)
            token.total_supply += amount
            self.token_balances[(token_id, token.treasury)] += amount
        return self._receipt(description, payer)

    def burn_token(self, token_id: str, amount: int) -> Receipt:
        description = f"burn {amount} of {token_id}"
        with self.lock:
            payer = self._charge_fee(description)
            token = self._token(token_id, description)
            self._check_supply_key(token, payer, description)
            if amount <= 0 or amount > self.token_balances[(token_id, token.treasury)]:
                raise TransactionFailed("INVALID_TOKEN_BURN_AMOUNT", description)
            token.total_supply -= amount
            self.token_balances[(token_id, token.treasury)] -= amount
        return self._receipt(description, payer)

    def associate_token(self, account: LedgerAccount, token_id: str) -> Receipt:
        description = f"associate {token_id} with {account.account_id}"
        with self.lock:
            payer = self._charge_fee(description)
            self._token(token_id, description)
            if not _key_satisfied(self.account_keys[account.account_id], self._signatures(payer, [account])):
                raise TransactionFailed("INVALID_SIGNATURE", description)
            if (token_id, account.account_id) in self.token_balances:
                raise TransactionFailed("TOKEN_ALREADY_ASSOCIATED_TO_ACCOUNT", description)
            self.token_balances[(token_id, account.account_id)] = 0
        return self._receipt(description, payer)

    def build_token_transfer(
        self,
        token_id: str,
        transfers: Dict[str, int],
        signers: Iterable[LedgerAccount] = (),
    ) -> PendingTransfer:
        payer = self._require_operator("build transfer")
        return PendingTransfer(
            payer=payer.account_id,
            token_id=token_id,
            token_transfers=dict(transfers),
            hbar_transfers={},
            signed_by=self._signatures(payer, signers),
            description=f"transfer {token_id}",
        )

    def submit_transaction(self, transaction: PendingTransfer, description: Optional[str] = None) -> Receipt:
        description = description or transaction.description
        with self.lock:
            self._debit_fee(transaction.payer, description)
            self._apply_transfer(transaction, description)
        return self._receipt(description, transaction.payer)

    def transfer_hbar(self, sender: LedgerAccount, recipient_id: str, tinybars: int) -> Receipt:
        payer = self._require_operator("transfer hbar")
        transaction = PendingTransfer(
            payer=payer.account_id,
            token_id=None,
            token_transfers={},
            hbar_transfers={sender.account_id: -tinybars, recipient_id: tinybars},
            signed_by=self._signatures(payer, [sender]),
            description=f"transfer {tinybars} tinybars to {recipient_id}",
        )
        return self.submit_transaction(transaction)

    # Consensus service

    def create_topic(self, memo: str, submit_key: Any = None, signers: Iterable[LedgerAccount] = ()) -> str:
        description = f"create topic '{memo}'"
        with self.lock:
            self._charge_fee(description)
            if len(memo.encode("utf-8")) > 100:
                raise TransactionFailed("MEMO_TOO_LONG", description)
            for account in signers:
                if self.account_keys.get(account.account_id) != account.public_key:
                    raise TransactionFailed("INVALID_SIGNATURE", description)
            topic_id = self._next_entity_id()
            self.topics[topic_id] = _Topic(topic_id=topic_id, memo=memo, submit_key=submit_key)
        self._log(description, "SUCCESS")
        return topic_id

    def submit_topic_message(self, topic_id: str, message: str) -> Receipt:
        description = f"submit message to {topic_id}"
        with self.lock:
            payer = self._charge_fee(description)
            topic = self.topics.get(topic_id)
            if topic is None:
                raise TransactionFailed("INVALID_TOPIC_ID", description)
            if not _key_satisfied(topic.submit_key, self._signatures(payer)):
                raise TransactionFailed("INVALID_SIGNATURE", description)
            topic.messages.append(message)
            listeners = [listener for listener in topic.listeners if not listener.cancelled]
        for listener in listeners:
            listener.on_message(message)
        return self._receipt(description, payer)

    def get_topic_memo(self, topic_id: str) -> str:
        with self.lock:
            topic = self.topics.get(topic_id)
            if topic is None:
                raise TransactionFailed("INVALID_TOPIC_ID", f"topic info of {topic_id}")
            return topic.memo

    def topic_messages(self, topic_id: str) -> MemoryTopicSource:
        return MemoryTopicSource(self, topic_id)

    # Internals

    def _next_entity_id(self) -> str:
        entity_id = generate_entity_id(self._next_num)
        self._next_num += 1
        return entity_id

    def _require_operator(self, description: str) -> LedgerAccount:
        if self.operator is None:
            raise TransactionFailed("PAYER_ACCOUNT_NOT_FOUND", description)
        return self.operator

    def _signatures(self, payer: LedgerAccount, signers: Iterable[LedgerAccount] = ()) -> Set[str]:
        return {payer.public_key} | {account.public_key for account in signers}

    def _charge_fee(self, description: str) -> LedgerAccount:
        payer = self._require_operator(description)
        self._debit_fee(payer.account_id, description)
        return payer

    def _debit_fee(self, payer_id: str, description: str) -> None:
        if self.hbars.get(payer_id, 0) < self.transaction_fee:
            raise TransactionFailed("INSUFFICIENT_PAYER_BALANCE", description)
        self.hbars[payer_id] -= self.transaction_fee

    def _token(self, token_id: str, description: str) -> _Token:
        token = self.tokens.get(token_id)
        if token is None:
            raise TransactionFailed("INVALID_TOKEN_ID", description)
        return token

    def _check_supply_key(self, token: _Token, payer: LedgerAccount, description: str) -> None:
        if token.supply_key is None:
            raise TransactionFailed("TOKEN_HAS_NO_SUPPLY_KEY", description)
        if not _key_satisfied(token.supply_key, self._signatures(payer)):
            raise TransactionFailed("INVALID_SIGNATURE", description)

    def _apply_transfer(self, transaction: PendingTransfer, description: str) -> None:
        debited = [
            account_id
            for account_id, amount in list(transaction.token_transfers.items()) + list(transaction.hbar_transfers.items())
            if amount < 0
        ]
        for account_id in debited:
            if not _key_satisfied(self.account_keys.get(account_id), transaction.signed_by):
                raise TransactionFailed("INVALID_SIGNATURE", description)

        if transaction.hbar_transfers:
            if sum(transaction.hbar_transfers.values()) != 0:
                raise TransactionFailed("INVALID_ACCOUNT_AMOUNTS", description)
            for account_id, amount in transaction.hbar_transfers.items():
                if account_id not in self.hbars:
                    raise TransactionFailed("INVALID_ACCOUNT_ID", description)
                if self.hbars[account_id] + amount < 0:
                    raise TransactionFailed("INSUFFICIENT_ACCOUNT_BALANCE", description)

        if transaction.token_transfers:
            token_id = transaction.token_id
            self._token(token_id, description)
            if sum(transaction.token_transfers.values()) != 0:
                raise TransactionFailed("TRANSFERS_NOT_ZERO_SUM_FOR_TOKEN", description)
            for account_id, amount in transaction.token_transfers.items():
                if (token_id, account_id) not in self.token_balances:
                    raise TransactionFailed("TOKEN_NOT_ASSOCIATED_TO_ACCOUNT", description)
                if self.token_balances[(token_id, account_id)] + amount < 0:
                    raise TransactionFailed("INSUFFICIENT_TOKEN_BALANCE", description)

        for account_id, amount in transaction.hbar_transfers.items():
            self.hbars[account_id] += amount
        for account_id, amount in transaction.token_transfers.items():
            self.token_balances[(transaction.token_id, account_id)] += amount

    def _receipt(self, description: str, payer: Any) -> Receipt:
        payer_id = payer.account_id if isinstance(payer, LedgerAccount) else payer
        self._log(description, "SUCCESS")
        return Receipt(status="SUCCESS", payer=payer_id)

    def _log(self, description: str, status: str) -> None:
        if self.debug:
            print(f"[Memory Ledger] {description}: {status}")
