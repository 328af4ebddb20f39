from typing import Iterable, Optional, Tuple, Union

from .base import InvalidFormatError, OutOfRangeError


# Position 1 is the most significant bit of byte 0.
BIT_MASKS = (0x80, 0x40, 0x20, 0x10, 0x08, 0x04, 0x02, 0x01)


def position_to_address(pos: int, m: int) -> Tuple[int, int]:
    """
    Translate a 1-indexed bit position into (byte_index, bit_mask).

    Position 9 -> (1, 0b10000000), the first bit of the second byte.
    """
    if pos < 1 or pos > m:
        raise OutOfRangeError(f"position {pos} outside bit field of length {m}")
    offset = pos - 1
    return offset // 8, BIT_MASKS[offset % 8]


def bytes_to_bitstring(data: Union[bytes, bytearray]) -> str:
    """Render each byte most-significant-bit-first as eight '0'/'1' characters."""
    return "".join(format(byte, "08b") for byte in data)


def bitstring_to_bytes(bitstring: str) -> bytes:
    """Pack a '0'/'1' string back into bytes, eight characters per byte."""
    if len(bitstring) % 8:
        raise InvalidFormatError(f"bit string length {len(bitstring)} is not a multiple of 8")
    if bitstring.strip("01"):
        raise InvalidFormatError("bit string may only contain '0' and '1'")
    return bytes(int(bitstring[i:i + 8], 2) for i in range(0, len(bitstring), 8))


class BitField:
    """Densely packed, 1-indexed array of m bits."""

    def __init__(self, m: int, data: Optional[Union[bytes, bytearray]] = None):
        self.m = m
        self.byte_length = (m + 7) // 8
        if data is None:
            self.data = bytearray(self.byte_length)
        else:
            if len(data) != self.byte_length:
                raise InvalidFormatError(
                    f"bit field of {m} bits needs {self.byte_length} bytes, got {len(data)}"
                )
            self.data = bytearray(data)

    def set(self, pos: int):
        byte_idx, mask = position_to_address(pos, self.m)
        self.data[byte_idx] |= mask

    def get(self, pos: int) -> bool:
        byte_idx, mask = position_to_address(pos, self.m)
        return (self.data[byte_idx] & mask) == mask

    def set_all(self, positions: Iterable[int]):
        # Resolve every address first so a bad position leaves the field untouched.
        addresses = [position_to_address(pos, self.m) for pos in positions]
        for byte_idx, mask in addresses:
            self.data[byte_idx] |= mask

    def count(self) -> int:
        count = 0
        for byte in self.data:
            n = byte
            while n:
                n &= n - 1
                count += 1
        return count

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def to_bitstring(self) -> str:
        return bytes_to_bitstring(self.data)

    def copy(self) -> "BitField":
        return BitField(self.m, self.data)

    def __len__(self) -> int:
        return self.m

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitField):
            return NotImplemented
        return self.m == other.m and self.data == other.data
