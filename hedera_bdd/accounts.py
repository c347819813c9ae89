"""
Test account records

Accounts are positional: account 0 is the operator and token treasury in
most scenarios. Records are read, in order of precedence, from:

1. HEDERA_ACCOUNTS: inline JSON list of {"id": ..., "privateKey": ...}
2. HEDERA_ACCOUNTS_FILE: JSON file with the same list (default: accounts.json)
3. HEDERA_OPERATOR_ID / HEDERA_OPERATOR_KEY: a single operator account
"""

import json
import re
from pathlib import Path
from typing import Any, List, Optional

from .config import TestConfig
from .errors import AccountConfigError
from .models import AccountRecord


ACCOUNT_ID_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def parse_account_records(data: Any) -> List[AccountRecord]:
    """
    Convert decoded JSON into account records

    Accepts "privateKey" (as in the JS tooling) or "private_key".
    """
    if not isinstance(data, list):
        raise AccountConfigError("Account records must be a JSON list")

    records = []
    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise AccountConfigError(f"Account record {position} is not an object")
        account_id = entry.get("id")
        private_key = entry.get("privateKey", entry.get("private_key"))
        if not account_id or not private_key:
            raise AccountConfigError(f"Account record {position} needs 'id' and 'privateKey'")
        if not ACCOUNT_ID_PATTERN.match(str(account_id)):
            raise AccountConfigError(f"Account record {position} has invalid id: {account_id}")
        records.append(AccountRecord(id=str(account_id), private_key=str(private_key)))
    return records


def load_account_records(
    accounts_json: Optional[str] = None,
    accounts_file: Optional[Path] = None,
) -> List[AccountRecord]:
    """
    Load configured test accounts

    Args:
        accounts_json: Inline JSON (default: HEDERA_ACCOUNTS)
        accounts_file: Path to JSON file (default: HEDERA_ACCOUNTS_FILE)

    Returns:
        Account records, possibly empty when nothing is configured
    """
    accounts_json = accounts_json if accounts_json is not None else TestConfig.ACCOUNTS_JSON
    accounts_file = accounts_file if accounts_file is not None else TestConfig.ACCOUNTS_FILE

    if accounts_json:
        try:
            return parse_account_records(json.loads(accounts_json))
        except json.JSONDecodeError as e:
            raise AccountConfigError(f"HEDERA_ACCOUNTS is not valid JSON: {e}")

    if accounts_file and Path(accounts_file).exists():
        try:
            data = json.loads(Path(accounts_file).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise AccountConfigError(f"{accounts_file} is not valid JSON: {e}")
        return parse_account_records(data)

    if TestConfig.OPERATOR_ID and TestConfig.OPERATOR_KEY:
        return parse_account_records([
            {"id": TestConfig.OPERATOR_ID, "privateKey": TestConfig.OPERATOR_KEY}
        ])

    return []
