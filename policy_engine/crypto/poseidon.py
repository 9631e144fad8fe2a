"""
Poseidon4 over the BLS12-377 scalar field
File: poseidon.py

Native implementation of the chain's Poseidon hash with rate 4, so that
Merkle roots computed off-chain match the ones the token programs store.

Parameters:
- alpha = 17
- 8 full rounds, 31 partial rounds
- capacity 1 (state index 0), rate 4
- round constants and MDS matrix from the Grain LFSR
- domain separator "AleoPoseidon4"

Hash layout:
    preimage = [domain, len(input), 0, 0, *input]
    absorb(preimage); squeeze one element

Round constants are generated on first use and cached for the life of the
process.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from policy_engine.codec.address import FIELD_MODULUS


MODULUS_BITS = 253
DATA_BITS = MODULUS_BITS - 1

RATE = 4
CAPACITY = 1
STATE_WIDTH = RATE + CAPACITY
ALPHA = 17
FULL_ROUNDS = 8
PARTIAL_ROUNDS = 31
DOMAIN = "AleoPoseidon4"

# Plaintext encoding tags
_LITERAL_FIELD_VARIANT = 2
_ARRAY_LENGTH_BITS = 32
_ELEMENT_LENGTH_BITS = 16


@dataclass(frozen=True)
class PoseidonParameters:
    """Round constants, MDS matrix and domain for one Poseidon instance."""
    ark: tuple[tuple[int, ...], ...]
    mds: tuple[tuple[int, ...], ...]
    domain: int


class GrainLFSR:
    """
    80-bit Grain LFSR used to derive Poseidon constants.

    Seeded with the field size, state width and round counts, then
    clocked 160 times before producing output.
    """

    def __init__(
        self,
        field_bits: int,
        state_len: int,
        full_rounds: int,
        partial_rounds: int,
        is_sbox_inverse: bool = False,
    ) -> None:
        state = [False] * 80
        # b0, b1: prime field
        state[1] = True
        # b2..b5: S-box
        state[5] = is_sbox_inverse
        self._write(state, 6, 17, field_bits)
        self._write(state, 18, 29, state_len)
        self._write(state, 30, 39, full_rounds)
        self._write(state, 40, 49, partial_rounds)
        for i in range(50, 80):
            state[i] = True

        self._state = state
        self._head = 0
        for _ in range(160):
            self._update()

    @staticmethod
    def _write(state: list[bool], start: int, end: int, value: int) -> None:
        # MSB at `start`, LSB at `end`
        for i in range(end, start - 1, -1):
            state[i] = bool(value & 1)
            value >>= 1

    def _update(self) -> bool:
        s = self._state
        h = self._head
        new_bit = (
            s[(h + 62) % 80]
            ^ s[(h + 51) % 80]
            ^ s[(h + 38) % 80]
            ^ s[(h + 23) % 80]
            ^ s[(h + 13) % 80]
            ^ s[h]
        )
        s[h] = new_bit
        self._head = (h + 1) % 80
        return new_bit

    def get_bits(self, num_bits: int) -> list[bool]:
        bits = []
        for _ in range(num_bits):
            new_bit = self._update()
            while not new_bit:
                self._update()
                new_bit = self._update()
            bits.append(self._update())
        return bits

    def _next_integer(self) -> int:
        # First generated bit is the most significant.
        value = 0
        for bit in self.get_bits(MODULUS_BITS):
            value = (value << 1) | int(bit)
        return value

    def field_elements_rejection_sampling(self, count: int) -> list[int]:
        elements = []
        for _ in range(count):
            while True:
                value = self._next_integer()
                if value < FIELD_MODULUS:
                    elements.append(value)
                    break
        return elements

    def field_elements_mod_p(self, count: int) -> list[int]:
        return [self._next_integer() % FIELD_MODULUS for _ in range(count)]


@lru_cache(maxsize=None)
def poseidon_parameters(
    rate: int = RATE,
    full_rounds: int = FULL_ROUNDS,
    partial_rounds: int = PARTIAL_ROUNDS,
    domain: str = DOMAIN,
) -> PoseidonParameters:
    """Derive (and cache) the round constants and Cauchy MDS matrix."""
    width = rate + 1
    lfsr = GrainLFSR(MODULUS_BITS, width, full_rounds, partial_rounds)

    ark = tuple(
        tuple(lfsr.field_elements_rejection_sampling(width))
        for _ in range(full_rounds + partial_rounds)
    )

    xs = lfsr.field_elements_mod_p(width)
    ys = lfsr.field_elements_mod_p(width)
    mds = tuple(
        tuple(pow((xs[i] + ys[j]) % FIELD_MODULUS, -1, FIELD_MODULUS) for j in range(width))
        for i in range(width)
    )

    domain_value = int.from_bytes(domain.encode("utf-8"), "little") % FIELD_MODULUS
    return PoseidonParameters(ark=ark, mds=mds, domain=domain_value)


def permute(state: list[int], params: PoseidonParameters) -> list[int]:
    """Apply the full Poseidon permutation to a width-5 state."""
    p = FIELD_MODULUS
    half_full = FULL_ROUNDS // 2
    partial_end = half_full + PARTIAL_ROUNDS
    width = len(state)

    for r in range(FULL_ROUNDS + PARTIAL_ROUNDS):
        constants = params.ark[r]
        state = [(state[i] + constants[i]) % p for i in range(width)]

        if half_full <= r < partial_end:
            state[0] = pow(state[0], ALPHA, p)
        else:
            state = [pow(x, ALPHA, p) for x in state]

        state = [
            sum(state[j] * row[j] for j in range(width)) % p
            for row in params.mds
        ]
    return state


def poseidon_hash(inputs: Sequence[int]) -> int:
    """
    Hash a sequence of field elements to one field element.

    The sponge absorbs [domain, len(inputs), 0, 0, *inputs] and squeezes
    once.
    """
    params = poseidon_parameters()
    preimage = [params.domain, len(inputs)] + [0] * (RATE - 2) + list(inputs)

    state = [0] * STATE_WIDTH
    index = 0
    for element in preimage:
        if index == RATE:
            state = permute(state, params)
            index = 0
        state[CAPACITY + index] = (state[CAPACITY + index] + element) % FIELD_MODULUS
        index += 1

    state = permute(state, params)
    return state[CAPACITY]


def encode_field_array(values: Sequence[int]) -> list[int]:
    """
    Pack a `[field; N]` plaintext array into field elements.

    Bit layout (little-endian throughout):
        array tag [1, 0] | N as u32
        per element: bit length as u16 | literal tag [0, 0] | variant u8
                     | size u16 | value (253 bits)
        terminus bit 1

    The bit string is split into 252-bit chunks, one field element each.
    """
    acc = 0
    offset = 0

    def push(value: int, width: int) -> None:
        nonlocal acc, offset
        acc |= value << offset
        offset += width

    # array variant: bits [1, 0]
    push(0b01, 2)
    push(len(values), _ARRAY_LENGTH_BITS)

    element_bits = 2 + 8 + 16 + MODULUS_BITS
    for value in values:
        push(element_bits, _ELEMENT_LENGTH_BITS)
        # literal variant: bits [0, 0]
        push(0, 2)
        push(_LITERAL_FIELD_VARIANT, 8)
        push(MODULUS_BITS, 16)
        push(value, MODULUS_BITS)

    push(1, 1)

    mask = (1 << DATA_BITS) - 1
    return [(acc >> start) & mask for start in range(0, offset, DATA_BITS)]


def hash_to_field(values: Sequence[int]) -> int:
    """Hash a `[field; N]` array the way the on-chain Poseidon4 does."""
    return poseidon_hash(encode_field_array(values))


__all__ = [
    "MODULUS_BITS",
    "DATA_BITS",
    "RATE",
    "ALPHA",
    "FULL_ROUNDS",
    "PARTIAL_ROUNDS",
    "PoseidonParameters",
    "GrainLFSR",
    "poseidon_parameters",
    "permute",
    "poseidon_hash",
    "encode_field_array",
    "hash_to_field",
]
