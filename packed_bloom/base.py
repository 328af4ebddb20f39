import math
from dataclasses import dataclass
from numbers import Integral
from typing import Any


class BloomFilterError(Exception):
    """Base class for all filter errors."""


class InvalidConfigError(BloomFilterError, ValueError):
    """Non-positive or non-integral m, k or n."""


class OutOfRangeError(BloomFilterError, IndexError):
    """Bit position outside [1, m]."""


class InvalidFormatError(BloomFilterError, ValueError):
    """Malformed binary or textual payload."""


# Widths of the m and k fields in the binary frame.
MAX_M = 2 ** 64 - 1
MAX_K = 2 ** 32 - 1


def as_positive_int(name: str, value: Any) -> int:
    """Normalise a whole, positive number to int or raise InvalidConfigError."""
    if isinstance(value, bool):
        raise InvalidConfigError(f"{name} must be a whole number, got {value!r}")
    if isinstance(value, Integral):
        number = int(value)
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        raise InvalidConfigError(f"{name} must be a whole number, got {value!r}")
    if number <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {number}")
    return number


def optimal_k(m: int, n: int) -> int:
    """
    Number of hash positions minimising the false-positive rate.

    k = ceil((m / n) * ln 2) for n expected insertions into an m-bit field.
    """
    m = as_positive_int("m", m)
    n = as_positive_int("n", n)
    return int(math.ceil((m / n) * math.log(2)))


def false_positive_rate(m: int, k: int, n: int) -> float:
    """(1 - e^(-kn/m))^k"""
    if n <= 0:
        return 0.0
    return (1.0 - math.exp(-k * n / m)) ** k


@dataclass(frozen=True)
class FilterParams:
    """Immutable filter configuration."""
    m: int  # bit-field length
    k: int  # positions per value

    def __post_init__(self):
        object.__setattr__(self, "m", as_positive_int("m", self.m))
        object.__setattr__(self, "k", as_positive_int("k", self.k))
        if self.m > MAX_M:
            raise InvalidConfigError(f"m must not exceed {MAX_M}, got {self.m}")
        if self.k > MAX_K:
            raise InvalidConfigError(f"k must not exceed {MAX_K}, got {self.k}")

    @classmethod
    def for_expected_cardinality(cls, m: int, n: int) -> "FilterParams":
        return cls(m, optimal_k(m, n))

    @property
    def byte_length(self) -> int:
        return (self.m + 7) // 8

    def false_positive_rate(self, n: int) -> float:
        return false_positive_rate(self.m, self.k, n)
