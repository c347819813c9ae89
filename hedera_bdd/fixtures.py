"""
Test data generators for the in-memory ledger and unit tests
"""

import random
import string


def generate_entity_id(num: int, shard: int = 0, realm: int = 0) -> str:
    """
    Format a shard.realm.num entity id

    Args:
        num: Entity number
        shard: Shard number
        realm: Realm number

    Returns:
        Entity id string like "0.0.1001"
    """
    return f"{shard}.{realm}.{num}"


def generate_test_private_key() -> str:
    """
    Generate random private key material

    Returns:
        64-character hex string (not a usable ledger key)
    """
    return ''.join(random.choices(string.hexdigits.lower(), k=64))


def generate_topic_message(length: int = 24) -> str:
    """Generate a random printable topic message"""
    chars = string.ascii_letters + string.digits + " "
    return ''.join(random.choices(chars, k=length)).strip() or "message"
