from typing import Optional, Union

from .base import (
    BloomFilterError,
    FilterParams,
    InvalidConfigError,
    InvalidFormatError,
    OutOfRangeError,
    false_positive_rate,
    optimal_k,
)
from .engine import BloomFilter
from .hashing import PositionHasher, positions
from .storage import FilterCodec
from .utils import BitField, position_to_address


__all__ = [
    "BloomFilter",
    "BitField",
    "PositionHasher",
    "FilterCodec",
    "FilterParams",
    "BloomFilterError",
    "InvalidConfigError",
    "InvalidFormatError",
    "OutOfRangeError",
    "false_positive_rate",
    "optimal_k",
    "positions",
    "position_to_address",
    "create_filter",
    "load_filter"
]

__version__ = "1.0.0"


def create_filter(m: int, k: Optional[int] = None, expected_items: Optional[int] = None) -> BloomFilter:
    """
    Factory function for a new filter.

    Args:
        m: Bit-field length
        k: Number of positions per value. If not provided, it is derived
           from expected_items with the optimal-k formula.
    """
    if k is not None:
        return BloomFilter(m, k)
    if expected_items is None:
        raise InvalidConfigError("either k or expected_items is required")
    return BloomFilter.for_expected_cardinality(m, expected_items)


def load_filter(payload: Union[bytes, bytearray, memoryview, str]) -> BloomFilter:
    """Decode a filter from either its binary (bytes) or textual (str) form."""
    if isinstance(payload, str):
        return BloomFilter.from_text(payload)
    return BloomFilter.from_binary(payload)
