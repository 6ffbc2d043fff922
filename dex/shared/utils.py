"""
Shared utility functions for amount handling and identifiers
"""
import decimal
import secrets
from decimal import Decimal
from typing import Any

from eth_utils import is_address


def to_raw_token_amount(amount: Any, decimals: int) -> int:
    """
    Convert decimal token amount to raw integer representation

    Args:
        amount: Human-readable token amount (str, int or Decimal)
        decimals: Token decimal places

    Returns:
        Raw token amount as integer

    Raises:
        ValueError: negative amount or digits below the smallest token unit
    """
    value = Decimal(str(amount))
    if value < 0:
        raise ValueError(f"Negative token amount: {amount}")

    # Raw on-chain amounts exceed the default 28 digit precision
    with decimal.localcontext() as ctx:
        ctx.prec = 80
        raw = value.scaleb(decimals)
        if raw != raw.to_integral_value():
            raise ValueError(f"Token amount {amount} has more than {decimals} decimal places")
        return int(raw)


def safe_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """
    Safely convert value to Decimal with fallback

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Decimal representation of value or default
    """
    try:
        if value is None:
            return default
        return Decimal(str(value))
    except (ValueError, TypeError, decimal.InvalidOperation):
        return default


def generate_tx_hash() -> str:
    """Random 32-byte hex identifier in transaction hash format"""
    return "0x" + secrets.token_hex(32)


def short_hash(tx_hash: str, length: int = 10) -> str:
    return f"{tx_hash[:length]}..."


def validate_address(address: str) -> bool:
    """
    Validate a 0x-prefixed hex address (mixed case must be a valid checksum)

    Args:
        address: Address to validate

    Returns:
        True if address format is valid
    """
    if not address or not isinstance(address, str):
        return False
    return address.startswith("0x") and is_address(address)
