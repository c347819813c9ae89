"""
Hedera BDD Test Configuration

Environment variables:
    HEDERA_LEDGER: Ledger backend, "memory" or "live" (default: memory)
    HEDERA_NETWORK: Network type (default: testnet)
    HEDERA_MIRROR_NODE_URL: Mirror node REST endpoint (default: per network)
    HEDERA_MESSAGE_SOURCE: Topic message source, "sdk" or "mirror" (default: sdk)
    HEDERA_MESSAGE_TIMEOUT: Topic message wait in milliseconds (default: 10000)
    HEDERA_REQUEST_TIMEOUT: Mirror node request timeout in milliseconds (default: 30000)
    HEDERA_MIRROR_POLL_INTERVAL: Mirror node polling interval in milliseconds (default: 1000)
    HEDERA_ACCOUNTS: Inline JSON list of {"id", "privateKey"} account records
    HEDERA_ACCOUNTS_FILE: JSON file with account records (default: accounts.json)
    HEDERA_OPERATOR_ID / HEDERA_OPERATOR_KEY: Single operator account fallback
    HEDERA_DEBUG: Enable debug logging (default: false)
"""

import os
from typing import Optional
from pathlib import Path


class NetworkConfig:
    """Network-specific parameters"""

    MAINNET = {
        "mirror_node_url": "https://mainnet-public.mirrornode.hedera.com",
    }

    TESTNET = {
        "mirror_node_url": "https://testnet.mirrornode.hedera.com",
    }

    PREVIEWNET = {
        "mirror_node_url": "https://previewnet.mirrornode.hedera.com",
    }

    @classmethod
    def get_config(cls, network: Optional[str] = None) -> dict:
        """Get configuration for specific network"""
        network = network or TestConfig.NETWORK
        return getattr(cls, network.upper(), cls.TESTNET)


class TestConfig:
    """Test configuration with environment variable overrides"""

    # Ledger backend
    LEDGER: str = os.getenv("HEDERA_LEDGER", "memory")

    # Network Configuration
    NETWORK: str = os.getenv("HEDERA_NETWORK", "testnet")
    MIRROR_NODE_URL: str = os.getenv(
        "HEDERA_MIRROR_NODE_URL",
        NetworkConfig.get_config(NETWORK)["mirror_node_url"]
    )

    # Topic message delivery
    MESSAGE_SOURCE: str = os.getenv("HEDERA_MESSAGE_SOURCE", "sdk")

    # Timeout Settings (milliseconds)
    MESSAGE_TIMEOUT: int = int(os.getenv("HEDERA_MESSAGE_TIMEOUT", "10000"))
    REQUEST_TIMEOUT: int = int(os.getenv("HEDERA_REQUEST_TIMEOUT", "30000"))
    MIRROR_POLL_INTERVAL: int = int(os.getenv("HEDERA_MIRROR_POLL_INTERVAL", "1000"))

    # Test Accounts
    ACCOUNTS_JSON: Optional[str] = os.getenv("HEDERA_ACCOUNTS")
    ACCOUNTS_FILE: Path = Path(
        os.getenv("HEDERA_ACCOUNTS_FILE", str(Path(__file__).parent.parent / "accounts.json"))
    )
    OPERATOR_ID: Optional[str] = os.getenv("HEDERA_OPERATOR_ID")
    OPERATOR_KEY: Optional[str] = os.getenv("HEDERA_OPERATOR_KEY")

    # Debugging
    DEBUG: bool = os.getenv("HEDERA_DEBUG", "").lower() in ("1", "true", "yes")
    VERBOSE: bool = os.getenv("HEDERA_VERBOSE", "").lower() in ("1", "true", "yes")

    # In-memory ledger parameters
    MEMORY_ACCOUNT_COUNT: int = 4
    MEMORY_STARTING_HBARS: int = 100
    MEMORY_TRANSACTION_FEE: int = 100_000  # tinybars

    # Token used by the scenarios
    TOKEN_NAME: str = "Test Token"
    TOKEN_SYMBOL: str = "HTT"
    TOKEN_DECIMALS: int = 2

    @classmethod
    def validate(cls) -> None:
        """Validate configuration"""
        if cls.LEDGER not in ["memory", "live"]:
            raise ValueError(f"Invalid ledger: {cls.LEDGER}")

        if cls.NETWORK not in ["mainnet", "testnet", "previewnet"]:
            raise ValueError(f"Invalid network: {cls.NETWORK}")

        if cls.MESSAGE_SOURCE not in ["sdk", "mirror"]:
            raise ValueError(f"Invalid message source: {cls.MESSAGE_SOURCE}")

        if cls.MESSAGE_TIMEOUT <= 0:
            raise ValueError("HEDERA_MESSAGE_TIMEOUT must be positive")

        if not cls.MIRROR_NODE_URL:
            raise ValueError("HEDERA_MIRROR_NODE_URL must be set")

    @classmethod
    def use_network(cls, network: str) -> None:
        """Switch network and its default mirror node"""
        cls.NETWORK = network
        if not os.getenv("HEDERA_MIRROR_NODE_URL"):
            cls.MIRROR_NODE_URL = NetworkConfig.get_config(network)["mirror_node_url"]
        cls.validate()

    @classmethod
    def print_config(cls) -> None:
        """Print current configuration"""
        print("=" * 60)
        print("Hedera BDD Test Configuration")
        print("=" * 60)
        print(f"Ledger:             {cls.LEDGER}")
        print(f"Network:            {cls.NETWORK}")
        print(f"Mirror Node URL:    {cls.MIRROR_NODE_URL}")
        print(f"Message Source:     {cls.MESSAGE_SOURCE}")
        print(f"Message Timeout:    {cls.MESSAGE_TIMEOUT}ms")
        print(f"Accounts File:      {cls.ACCOUNTS_FILE}")
        print(f"Debug Mode:         {cls.DEBUG}")
        print("=" * 60)


# Validate configuration on import
TestConfig.validate()


if __name__ == "__main__":
    # Print configuration when run as script
    TestConfig.print_config()
    print("\nNetwork Parameters:")
    config = NetworkConfig.get_config()
    for key, value in config.items():
        print(f"  {key}: {value}")
