"""
Field Codec
File: address.py

Purpose: Bidirectional mapping between Aleo addresses and field elements.

Address format:
- bech32m with human-readable part "aleo"
- 32-byte payload, read as a little-endian integer
- the integer must be a canonical field element (< FIELD_MODULUS)

All functions are pure. address_to_field(field_to_address(x)) == x for
every valid field element x.
"""

from __future__ import annotations

import re
from typing import Union

from bech32m.codecs import DecodeError, Encoding, bech32_decode, bech32_encode, convertbits

from policy_engine.schemas.errors import (
    DecodeException,
    InvalidAddressException,
    InvalidFieldException,
)


# BLS12-377 scalar field
FIELD_MODULUS = 8444461749428370424248824938781546531375899335154063827935233455917409239041

ADDRESS_PREFIX = "aleo"
ADDRESS_LENGTH = 63
ADDRESS_BYTES = 32

# bech32m encoding of field 0, used as the empty-slot sentinel
ZERO_ADDRESS = "aleo1qqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqqq3ljyzc"

FIELD_SUFFIX = "field"

_INTEGER_LITERAL = re.compile(r"^(-?[0-9]+)(u8|u16|u32|u64|u128|i8|i16|i32|i64|i128)?$")


def address_to_field(address: str) -> int:
    """
    Decode an Aleo address to its field element.

    Args:
        address: bech32m string starting with "aleo1"

    Returns:
        Field element as an int

    Raises:
        InvalidAddressException: bad checksum, wrong prefix, wrong payload
            length, or a payload outside the field
    """
    if not isinstance(address, str):
        raise InvalidAddressException(f"Address must be a string, got {type(address).__name__}")

    try:
        hrp, data, encoding = bech32_decode(address)
    except DecodeError:
        raise InvalidAddressException("Invalid bech32 address", value=address)
    if encoding != Encoding.BECH32M:
        raise InvalidAddressException("Address must use the bech32m checksum", value=address)
    if hrp != ADDRESS_PREFIX:
        raise InvalidAddressException(
            f"Address prefix must be {ADDRESS_PREFIX!r}, got {hrp!r}",
            value=address,
        )

    try:
        payload = convertbits(data, 5, 8, False)
    except DecodeError:
        raise InvalidAddressException("Address payload has invalid padding", value=address)
    if len(payload) != ADDRESS_BYTES:
        raise InvalidAddressException(
            f"Address payload must be {ADDRESS_BYTES} bytes",
            value=address,
        )

    value = int.from_bytes(bytes(payload), "little")
    if value >= FIELD_MODULUS:
        raise InvalidAddressException("Address payload is not a valid field element", value=address)
    return value


def field_to_address(field: Union[int, str]) -> str:
    """
    Encode a field element as an Aleo address.

    Args:
        field: int or "<decimal>field" literal

    Returns:
        bech32m address string

    Raises:
        InvalidFieldException: malformed literal or value outside [0, p)
    """
    value = parse_field(field) if isinstance(field, str) else field
    _check_field(value)

    data = convertbits(value.to_bytes(ADDRESS_BYTES, "little"), 8, 5, True)
    return bech32_encode(ADDRESS_PREFIX, bytes(data), Encoding.BECH32M)


def parse_field(text: str) -> int:
    """
    Parse a "<decimal>field" literal.

    The input must be the exact decimal digits followed by a lowercase
    "field" suffix, with no surrounding whitespace.
    """
    if not isinstance(text, str):
        raise InvalidFieldException(f"Field literal must be a string, got {type(text).__name__}")

    if not text.endswith(FIELD_SUFFIX):
        raise InvalidFieldException("Field literal must end with 'field'", value=text)

    digits = text[: -len(FIELD_SUFFIX)]
    if not digits:
        raise InvalidFieldException("Field literal has no numeric part", value=text)
    if not digits.isdigit() or not digits.isascii():
        raise InvalidFieldException("Field literal must be a non-negative decimal", value=text)

    value = int(digits)
    if value >= FIELD_MODULUS:
        raise InvalidFieldException("Field literal exceeds the field modulus", value=text)
    return value


def format_field(value: int) -> str:
    """Render a field element as a "<decimal>field" literal."""
    _check_field(value)
    return f"{value}{FIELD_SUFFIX}"


def to_field(value: Union[int, str]) -> int:
    """Accept either an int or a field literal and return a checked int."""
    if isinstance(value, str):
        return parse_field(value)
    _check_field(value)
    return value


def parse_integer_literal(text: str) -> int:
    """Parse an integer literal such as "2u32", "1u8" or a bare "42"."""
    if not isinstance(text, str):
        raise DecodeException(f"Integer literal must be a string, got {type(text).__name__}")
    match = _INTEGER_LITERAL.match(text.strip())
    if not match:
        raise DecodeException("Invalid integer literal", value=text)
    return int(match.group(1))


def string_to_field(text: str) -> int:
    """Interpret an ASCII string as a big-endian integer (token ids, names)."""
    value = int.from_bytes(text.encode("ascii"), "big")
    _check_field(value)
    return value


def _check_field(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldException(f"Field element must be an int, got {type(value).__name__}")
    if value < 0 or value >= FIELD_MODULUS:
        raise InvalidFieldException("Field element out of range", value=str(value))


__all__ = [
    "FIELD_MODULUS",
    "ADDRESS_PREFIX",
    "ADDRESS_LENGTH",
    "ZERO_ADDRESS",
    "FIELD_SUFFIX",
    "address_to_field",
    "field_to_address",
    "parse_field",
    "format_field",
    "to_field",
    "parse_integer_literal",
    "string_to_field",
]
