"""
Hedera ledger client for testing

Thin gateway over the Hedera Python SDK: every step that touches the live
network goes through LedgerClient, which freezes, signs and executes SDK
transactions and normalizes their receipts and failure statuses.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from hiero_sdk_python import (
    AccountId,
    Client,
    CryptoGetAccountBalanceQuery,
    Network,
    PrivateKey,
    ResponseCode,
    TokenAssociateTransaction,
    TokenBurnTransaction,
    TokenCreateTransaction,
    TokenId,
    TokenInfoQuery,
    TokenMintTransaction,
    TopicCreateTransaction,
    TopicId,
    TopicMessageQuery,
    TopicMessageSubmitTransaction,
    TransferTransaction,
)

from .config import TestConfig
from .errors import TransactionFailed
from .models import AccountRecord, LedgerAccount, Receipt, TokenSummary


CONSENSUS_START = datetime(1970, 1, 1, tzinfo=timezone.utc)


def status_name(status: Any) -> str:
    """Convert an SDK status code to its name (e.g. 22 -> "SUCCESS")"""
    if isinstance(status, str):
        return status
    try:
        return ResponseCode(status).name
    except ValueError:
        return str(status)


def _entity_str(entity: Any) -> Optional[str]:
    return str(entity) if entity is not None else None


class TopicMessageSource:
    """
    Topic message stream backed by the SDK's mirror node subscription

    Delivers message contents decoded as UTF-8 text.
    """

    def __init__(self, client: Client, topic_id: str, start_time: datetime = CONSENSUS_START):
        self.client = client
        self.topic_id = topic_id
        self.start_time = start_time

    def subscribe(self, on_message: Callable[[str], None], on_error: Callable[[Exception], None]):
        query = TopicMessageQuery(
            topic_id=TopicId.from_string(self.topic_id),
            start_time=self.start_time,
            chunking_enabled=True,
        )
        return query.subscribe(
            self.client,
            on_message=lambda message: on_message(bytes(message.contents).decode("utf-8")),
            on_error=on_error,
        )


class LedgerClient:
    """Hedera network client used by the step definitions"""

    def __init__(self, network: Optional[str] = None, debug: bool = False):
        """
        Initialize ledger client

        Args:
            network: Network name (default: from config)
            debug: Enable debug logging
        """
        self.network = network or TestConfig.NETWORK
        self.debug = debug or TestConfig.DEBUG
        self.client = Client(Network(self.network))
        self.operator: Optional[LedgerAccount] = None

    def close(self) -> None:
        """Close the SDK client's node channels"""
        self.client.close()

    # Accounts and keys

    def load_account(self, record: AccountRecord) -> LedgerAccount:
        """Resolve a configured account record into SDK key objects"""
        private_key = PrivateKey.from_string(record.private_key)
        return LedgerAccount(
            account_id=record.id,
            private_key=private_key,
            public_key=private_key.public_key(),
        )

    def set_operator(self, account: LedgerAccount) -> None:
        """Make `account` the payer and default signer of transactions"""
        self.client.set_operator(AccountId.from_string(account.account_id), account.private_key)
        self.operator = account

    def threshold_key(self, public_keys: List[Any], threshold: int):
        """Build an m-of-n key list"""
        from hiero_sdk_python.crypto.key_list import KeyList

        if not 0 < threshold <= len(public_keys):
            raise ValueError(f"Invalid threshold {threshold} for {len(public_keys)} keys")
        return KeyList(keys=list(public_keys), threshold=threshold)

    # Queries

    def get_hbar_balance(self, account_id: str) -> int:
        """Get hbar balance in tinybars"""
        balance = self._query(
            CryptoGetAccountBalanceQuery().set_account_id(AccountId.from_string(account_id)),
            f"balance of {account_id}",
        )
        return balance.hbars.to_tinybars()

    def get_token_balance(self, account_id: str, token_id: str) -> int:
        """Get token balance in the token's smallest unit (0 when not associated)"""
        balance = self._query(
            CryptoGetAccountBalanceQuery().set_account_id(AccountId.from_string(account_id)),
            f"token balance of {account_id}",
        )
        for held_token, amount in (balance.token_balances or {}).items():
            if str(held_token) == token_id:
                return int(amount)
        return 0

    def get_token_info(self, token_id: str) -> TokenSummary:
        info = self._query(
            TokenInfoQuery().set_token_id(TokenId.from_string(token_id)),
            f"token info of {token_id}",
        )
        return TokenSummary(
            token_id=token_id,
            name=info.name,
            symbol=info.symbol,
            decimals=int(info.decimals),
            total_supply=int(info.total_supply),
            treasury=_entity_str(info.treasury),
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
        """
        Create a fungible token

        Args:
            name: Token name
            symbol: Token symbol
            decimals: Decimal places
            initial_supply: Supply credited to the treasury
            treasury: Treasury account (signs the creation)
            supply_key: Public key allowed to mint/burn, None for fixed supply

        Returns:
            Created token id
        """
        transaction = (
            TokenCreateTransaction()
            .set_token_name(name)
            .set_token_symbol(symbol)
            .set_decimals(decimals)
            .set_initial_supply(initial_supply)
            .set_treasury_account_id(AccountId.from_string(treasury.account_id))
        )
        if supply_key is not None:
            transaction.set_supply_key(supply_key)

        receipt = self._submit(transaction, f"create token {symbol}", signers=[treasury])
        return receipt.token_id

    def mint_token(self, token_id: str, amount: int) -> Receipt:
        transaction = (
            TokenMintTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_amount(amount)
        )
        return self._submit(transaction, f"mint {amount} of {token_id}")

    def burn_token(self, token_id: str, amount: int) -> Receipt:
        transaction = (
            TokenBurnTransaction()
            .set_token_id(TokenId.from_string(token_id))
            .set_amount(amount)
        )
        return self._submit(transaction, f"burn {amount} of {token_id}")

    def associate_token(self, account: LedgerAccount, token_id: str) -> Receipt:
        transaction = (
            TokenAssociateTransaction()
            .set_account_id(AccountId.from_string(account.account_id))
            .add_token_id(TokenId.from_string(token_id))
        )
        return self._submit(
            transaction, f"associate {token_id} with {account.account_id}", signers=[account]
        )

    def build_token_transfer(
        self,
        token_id: str,
        transfers: Dict[str, int],
        signers: Iterable[LedgerAccount] = (),
    ) -> TransferTransaction:
        """
        Build a frozen token transfer, paid by the current operator

        Args:
            token_id: Token to move
            transfers: Account id -> signed amount (debits negative)
            signers: Debited accounts other than the operator

        Returns:
            Transaction ready for submit_transaction()
        """
        transaction = TransferTransaction()
        token = TokenId.from_string(token_id)
        for account_id, amount in transfers.items():
            transaction.add_token_transfer(token, AccountId.from_string(account_id), amount)
        return self._prepare(transaction, signers)

    def submit_transaction(self, transaction: Any, description: str = "transfer") -> Receipt:
        """Execute a transaction prepared by one of the build_* methods"""
        return self._execute(transaction, description)

    def transfer_hbar(self, sender: LedgerAccount, recipient_id: str, tinybars: int) -> Receipt:
        transaction = (
            TransferTransaction()
            .add_hbar_transfer(AccountId.from_string(sender.account_id), -tinybars)
            .add_hbar_transfer(AccountId.from_string(recipient_id), tinybars)
        )
        return self._submit(
            transaction, f"transfer {tinybars} tinybars to {recipient_id}", signers=[sender]
        )

    # Consensus service

    def create_topic(self, memo: str, submit_key: Any = None, signers: Iterable[LedgerAccount] = ()) -> str:
        """Create a topic and return its id"""
        transaction = TopicCreateTransaction().set_memo(memo)
        if submit_key is not None:
            transaction.set_submit_key(submit_key)
        receipt = self._submit(transaction, f"create topic '{memo}'", signers=signers)
        return receipt.topic_id

    def submit_topic_message(self, topic_id: str, message: str) -> Receipt:
        transaction = (
            TopicMessageSubmitTransaction()
            .set_topic_id(TopicId.from_string(topic_id))
            .set_message(message)
        )
        return self._submit(transaction, f"submit message to {topic_id}")

    def topic_messages(self, topic_id: str) -> TopicMessageSource:
        """Message stream of a topic, from the start of consensus"""
        return TopicMessageSource(self.client, topic_id)

    # Internals

    def _prepare(self, transaction: Any, signers: Iterable[LedgerAccount] = ()) -> Any:
        transaction.freeze_with(self.client)
        for account in signers:
            if self.operator is not None and account.account_id == self.operator.account_id:
                continue
            transaction.sign(account.private_key)
        return transaction

    def _submit(self, transaction: Any, description: str, signers: Iterable[LedgerAccount] = ()) -> Receipt:
        return self._execute(self._prepare(transaction, signers), description)

    def _execute(self, transaction: Any, description: str) -> Receipt:
        """
        Execute a transaction and wait for its receipt

        Raises:
            TransactionFailed: If precheck or receipt status is not SUCCESS
        """
        if self.debug:
            print(f"[Ledger Request] {description}")

        start_time = time.time()

        try:
            receipt = transaction.execute(self.client)
        except Exception as e:
            status = getattr(e, "status", None)
            if status is None:
                raise
            if self.debug:
                print(f"[Ledger Error] {description}: {status_name(status)}")
            raise TransactionFailed(status_name(status), description) from e

        elapsed_ms = (time.time() - start_time) * 1000
        status = status_name(receipt.status)

        if self.debug:
            print(f"[Ledger Response] {description} took {elapsed_ms:.2f}ms: {status}")

        if status != "SUCCESS":
            raise TransactionFailed(status, description)

        transaction_id = getattr(transaction, "transaction_id", None)
        return Receipt(
            status=status,
            token_id=_entity_str(getattr(receipt, "token_id", None)),
            topic_id=_entity_str(getattr(receipt, "topic_id", None)),
            payer=_entity_str(getattr(transaction_id, "account_id", None)),
        )

    def _query(self, query: Any, description: str) -> Any:
        if self.debug:
            print(f"[Ledger Query] {description}")
        try:
            return query.execute(self.client)
        except Exception as e:
            status = getattr(e, "status", None)
            if status is None:
                raise
            raise TransactionFailed(status_name(status), description) from e
