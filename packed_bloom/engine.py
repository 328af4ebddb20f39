import logging
from typing import Optional, Union

from .base import FilterParams, optimal_k
from .hashing import PositionHasher, Value
from .storage import FilterCodec
from .utils import BitField


logger = logging.getLogger(__name__)


class BloomFilter:
    """
    Insert-only set membership with false positives but no false negatives.

    Not safe for concurrent add() calls; concurrent lookups are fine while no
    add() is running.
    """

    def __init__(self, m: int, k: int):
        """
        Args:
            m: Size of the bit field in bits
            k: Number of positions set per value
        """
        self._params = FilterParams(m, k)
        self._bits = BitField(self._params.m)
        self._hasher = PositionHasher(self._params.m, self._params.k)
        self.count = 0  # add() calls since construction or decoding
        logger.debug(
            f"Created filter m={self._params.m} k={self._params.k} "
            f"({self._params.byte_length} bytes)"
        )

    @staticmethod
    def optimal_k(m: int, n: int) -> int:
        """Optimal k for n typical insertions into an m-bit field."""
        return optimal_k(m, n)

    @classmethod
    def for_expected_cardinality(cls, m: int, n: int) -> "BloomFilter":
        return cls(m, optimal_k(m, n))

    @classmethod
    def _from_state(cls, params: FilterParams, bits: bytes) -> "BloomFilter":
        bf = cls(params.m, params.k)
        bf._bits = BitField(params.m, bits)
        return bf

    @property
    def params(self) -> FilterParams:
        return self._params

    @property
    def m(self) -> int:
        return self._params.m

    @property
    def k(self) -> int:
        return self._params.k

    @property
    def bits(self) -> bytes:
        return self._bits.to_bytes()

    def positions(self, value: Value):
        return self._hasher(value)

    def add(self, value: Value) -> None:
        """Add a value to the set."""
        self._bits.set_all(self._hasher(value))
        self.count += 1

    def maybe_contains(self, value: Value) -> bool:
        """True if the value may have been added; False means it never was."""
        for pos in self._hasher(value):
            if not self._bits.get(pos):
                return False
        return True

    def __contains__(self, value: Value) -> bool:
        return self.maybe_contains(value)

    def popcount(self) -> int:
        return self._bits.count()

    def estimated_false_positive_rate(self, n: Optional[int] = None) -> float:
        """False-positive rate after n insertions, defaulting to the add() count."""
        return self._params.false_positive_rate(self.count if n is None else n)

    def render_bits(self) -> str:
        """The whole byte-padded bit field as '0'/'1' characters."""
        return self._bits.to_bitstring()

    def to_binary(self, compress: bool = False) -> bytes:
        return FilterCodec.encode_binary(self._params, self._bits.to_bytes(), compress=compress)

    @classmethod
    def from_binary(cls, data: Union[bytes, bytearray, memoryview]) -> "BloomFilter":
        params, bits = FilterCodec.decode_binary(data)
        return cls._from_state(params, bits)

    def to_text(self) -> str:
        return FilterCodec.encode_text(self._params, self._bits.to_bytes())

    @classmethod
    def from_text(cls, text: str) -> "BloomFilter":
        params, bits = FilterCodec.decode_text(text)
        return cls._from_state(params, bits)

    def copy(self) -> "BloomFilter":
        bf = self.__class__(self.m, self.k)
        bf._bits = self._bits.copy()
        bf.count = self.count
        return bf

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"BloomFilter(m={self.m}, k={self.k}, set_bits={self.popcount()})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return self._params == other._params and self._bits == other._bits

    def __reduce__(self):
        return (self.__class__.from_binary, (self.to_binary(),))
