"""
Field Codec

Conversions between Aleo addresses, field elements and their on-chain
literal forms.
"""
from .address import (
    FIELD_MODULUS,
    ADDRESS_PREFIX,
    ADDRESS_LENGTH,
    ZERO_ADDRESS,
    address_to_field,
    field_to_address,
    parse_field,
    format_field,
    to_field,
    parse_integer_literal,
    string_to_field,
)

__all__ = [
    "FIELD_MODULUS",
    "ADDRESS_PREFIX",
    "ADDRESS_LENGTH",
    "ZERO_ADDRESS",
    "address_to_field",
    "field_to_address",
    "parse_field",
    "format_field",
    "to_field",
    "parse_integer_literal",
    "string_to_field",
]
