"""Parsing utilities for common data transformations."""

from datetime import UTC, datetime
import re


_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def parse_hex_optional(hex_value: str | None) -> int | None:
    """Parse hex string to integer, keeping None.

    Example:
        >>> parse_hex_optional("0x2")
        2
        >>> parse_hex_optional(None) is None
        True
    """
    if hex_value is None or hex_value == "":
        return None
    return int(hex_value, 16)


def hex_to_decimal(hex_value: str | None) -> str | None:
    """Convert a hex quantity to a decimal string without precision loss.

    Args:
        hex_value: Hex-encoded quantity or None

    Returns:
        str | None: Decimal string, or None if input was None

    Example:
        >>> hex_to_decimal("0x20000000000001")
        '9007199254740993'
        >>> hex_to_decimal(None) is None
        True
    """
    value = parse_hex_optional(hex_value)
    return str(value) if value is not None else None


def parse_hex_timestamp(hex_timestamp: str) -> datetime:
    """Parse Unix timestamp from hex string to datetime.

    Args:
        hex_timestamp: Hex-encoded Unix timestamp string

    Returns:
        datetime: UTC datetime from the Unix timestamp

    Example:
        >>> parse_hex_timestamp("0x63a1b2c3")
        datetime.datetime(2022, 12, 20, ...)
    """
    return datetime.fromtimestamp(int(hex_timestamp, 16), tz=UTC)


def is_hex(value: str, length: int | None = None) -> bool:
    """Check that a string is 0x-prefixed hex, optionally of a given digit count.

    Example:
        >>> is_hex("0xabc")
        True
        >>> is_hex("0xabc", length=4)
        False
    """
    if not value.startswith("0x"):
        return False
    digits = value[2:]
    if length is not None and len(digits) != length:
        return False
    return bool(_HEX_DIGITS.fullmatch(digits))


def is_bare_hex(value: str) -> bool:
    """Check that a non-empty string consists of hex digits only."""
    return bool(value) and bool(_HEX_DIGITS.fullmatch(value))


def to_block_tag(block_number: int | str) -> str:
    """Encode a block number for JSON-RPC, passing named tags through.

    Example:
        >>> to_block_tag(16)
        '0x10'
        >>> to_block_tag("latest")
        'latest'
    """
    return hex(block_number) if isinstance(block_number, int) else block_number


__all__ = [
    "hex_to_decimal",
    "is_bare_hex",
    "is_hex",
    "parse_hex_int",
    "parse_hex_optional",
    "parse_hex_timestamp",
    "to_block_tag",
]
