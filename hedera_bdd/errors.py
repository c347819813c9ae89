"""
Exceptions raised by the Hedera BDD test library
"""

from typing import Optional


class HederaTestError(Exception):
    """Base class for test library errors"""


class TransactionFailed(HederaTestError):
    """Transaction finished (precheck or receipt) with a non-SUCCESS status"""

    def __init__(self, status: str, description: Optional[str] = None):
        self.status = status
        self.description = description
        if description:
            super().__init__(f"{description} failed with status {status}")
        else:
            super().__init__(f"Transaction failed with status {status}")


class MirrorNodeError(HederaTestError):
    """Mirror node REST call error"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"Mirror node error {status_code}: {message}")


class AccountConfigError(HederaTestError):
    """Test account records are missing or malformed"""


class ScenarioStateError(HederaTestError):
    """A step needs state that no earlier step has produced"""


class MessageTimeoutError(HederaTestError, TimeoutError):
    """Expected topic message did not arrive in time"""
