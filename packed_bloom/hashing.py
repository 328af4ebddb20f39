import random
import zlib
from typing import List, Union

from .base import as_positive_int


Value = Union[bytes, bytearray, memoryview, str]


def to_bytes(value: Value) -> bytes:
    """Normalise a filter value to raw bytes; text is UTF-8 encoded."""
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"value must be bytes or str, not {type(value).__name__}")


def seed_for(value: Value) -> int:
    """Unsigned CRC32 of the raw value bytes."""
    return zlib.crc32(to_bytes(value)) & 0xFFFFFFFF


def positions(value: Value, k: int, m: int) -> List[int]:
    """
    Derive k bit positions in [1, m] for a value.

    A private MT19937 generator (random.Random) is seeded with the CRC32 of
    the value and k successive randint(1, m) draws are taken. The sequence is
    identical across runs and processes, and repeats are allowed.
    Changing either the checksum or the generator invalidates every filter
    serialized before the change.
    """
    k = as_positive_int("k", k)
    m = as_positive_int("m", m)
    rng = random.Random(seed_for(value))
    return [rng.randint(1, m) for _ in range(k)]


class PositionHasher:
    """Binds (m, k) so a filter can hash values without repeating its config."""

    def __init__(self, m: int, k: int):
        self.m = m
        self.k = k

    def __call__(self, value: Value) -> List[int]:
        return positions(value, self.k, self.m)

    def __repr__(self) -> str:
        return f"PositionHasher(m={self.m}, k={self.k})"
