"""Seeded determinism for shard reproducibility.

Every value in a generated scene comes from one ShardRNG instance, created
fresh per call from the identifier's first four bytes. The draw sequence is a
contract: adding, removing or reordering a draw anywhere changes every shape
after it.
"""

import math

MASK_32 = 0xFFFFFFFF
DIVISOR = 4294967295
IDENTIFIER_BYTES = 20
IDENTIFIER_HEX_LEN = IDENTIFIER_BYTES * 2


class ShardRNG:
    """xorshift32 stream of floats in [0, 1]."""

    def __init__(self, seed: int):
        seed = int(seed) & MASK_32
        # Zero is a fixed point of xorshift and would never advance.
        self.state = seed or 1
        self.draws = 0

    def next(self) -> float:
        s = self.state
        s ^= (s << 13) & MASK_32
        s ^= s >> 17
        s ^= (s << 5) & MASK_32
        self.state = s
        self.draws += 1
        return s / DIVISOR

    def range(self, lo: float, hi: float) -> float:
        return lo + self.next() * (hi - lo)

    def int_range(self, lo: int, hi: int) -> int:
        """Inclusive integer draw: floor(range(lo, hi + 1))."""
        return min(hi, math.floor(self.range(lo, hi + 1)))

    def chance(self, threshold: float) -> bool:
        """One draw; True when it lands strictly above threshold."""
        return self.next() > threshold


def normalize_identifier(identifier: str) -> str:
    """Canonical 40-char lowercase form: truncated, then right-padded with '0'."""
    return identifier.lower()[:IDENTIFIER_HEX_LEN].ljust(IDENTIFIER_HEX_LEN, "0")


def identifier_bytes(identifier: str) -> bytes:
    """Decode the significant 20 bytes of a hex identifier."""
    return bytes.fromhex(normalize_identifier(identifier))


def seed_from_bytes(data: bytes) -> int:
    """Big-endian u32 from the first four bytes."""
    return int.from_bytes(data[:4], "big")


def make_rng(data: bytes) -> ShardRNG:
    """Create the per-generation RNG from identifier bytes."""
    return ShardRNG(seed_from_bytes(data))
