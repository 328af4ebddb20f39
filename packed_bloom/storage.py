import logging
import re
import struct
import sys
import zlib
from typing import Tuple

from .base import FilterParams, InvalidConfigError, InvalidFormatError
from .utils import bitstring_to_bytes, bytes_to_bitstring


logger = logging.getLogger(__name__)

TEXT_PATTERN = re.compile(r"k:(?P<k>\d+)/m:(?P<m>\d+)\((?P<bits>[01]+)\)", re.ASCII)


class FilterCodec:
    """Converts filter state to and from its binary and ASCII-safe forms."""
    MAGIC = b"PBLM"
    VERSION = 1
    FLAG_COMPRESSED = 1

    # magic, version, flags, m, k, payload length (little endian)
    HEADER = struct.Struct("<4sBBQIQ")
    TRAILER = struct.Struct("<I")  # crc32 of the payload

    @classmethod
    def encode_binary(cls, params: FilterParams, bits: bytes, compress: bool = False) -> bytes:
        """Frame the raw bit field with its m and k."""
        payload = bytes(bits)
        flags = 0
        if compress:
            payload = zlib.compress(payload)
            flags |= cls.FLAG_COMPRESSED

        checksum = zlib.crc32(payload) & 0xFFFFFFFF
        header = cls.HEADER.pack(cls.MAGIC, cls.VERSION, flags, params.m, params.k, len(payload))
        data = header + payload + cls.TRAILER.pack(checksum)
        logger.debug(f"Encoded filter m={params.m} k={params.k} into {len(data)} bytes")
        return data

    @classmethod
    def decode_binary(cls, data: bytes) -> Tuple[FilterParams, bytes]:
        """Parse a frame produced by encode_binary, validating every field."""
        try:
            if not isinstance(data, (bytes, bytearray, memoryview)):
                raise InvalidFormatError(f"binary form must be bytes, not {type(data).__name__}")
            return cls._decode_binary(bytes(data))
        except InvalidFormatError as e:
            logger.error(f"Failed to decode binary filter: {e}")
            raise

    @classmethod
    def _decode_binary(cls, data: bytes) -> Tuple[FilterParams, bytes]:
        if len(data) < cls.HEADER.size + cls.TRAILER.size:
            raise InvalidFormatError(f"payload of {len(data)} bytes is too short")

        magic, version, flags, m, k, payload_len = cls.HEADER.unpack_from(data)
        if magic != cls.MAGIC:
            raise InvalidFormatError("invalid magic bytes")
        if version != cls.VERSION:
            raise InvalidFormatError(f"unsupported format version {version}")
        if flags & ~cls.FLAG_COMPRESSED:
            raise InvalidFormatError(f"unknown flags 0x{flags:02x}")

        expected = cls.HEADER.size + payload_len + cls.TRAILER.size
        if len(data) != expected:
            raise InvalidFormatError(f"expected {expected} bytes, got {len(data)}")

        payload = data[cls.HEADER.size:cls.HEADER.size + payload_len]
        (checksum,) = cls.TRAILER.unpack_from(data, cls.HEADER.size + payload_len)
        if zlib.crc32(payload) & 0xFFFFFFFF != checksum:
            raise InvalidFormatError("checksum mismatch")

        try:
            params = FilterParams(m, k)
        except InvalidConfigError as e:
            raise InvalidFormatError(str(e)) from e

        if flags & cls.FLAG_COMPRESSED:
            try:
                # Inflate at most one byte past the expected size.
                payload = zlib.decompressobj().decompress(payload, min(params.byte_length + 1, sys.maxsize))
            except zlib.error as e:
                raise InvalidFormatError(f"corrupt compressed payload: {e}") from e

        if len(payload) != params.byte_length:
            raise InvalidFormatError(
                f"bit field of {m} bits needs {params.byte_length} bytes, got {len(payload)}"
            )

        logger.debug(f"Decoded filter m={m} k={k} from {len(data)} bytes")
        return params, payload

    @staticmethod
    def encode_text(params: FilterParams, bits: bytes) -> str:
        """k:<k>/m:<m>(<bits>) with the full byte-padded bit string."""
        return f"k:{params.k}/m:{params.m}({bytes_to_bitstring(bits)})"

    @staticmethod
    def decode_text(text: str) -> Tuple[FilterParams, bytes]:
        if not isinstance(text, str):
            raise InvalidFormatError(f"textual form must be str, not {type(text).__name__}")

        match = TEXT_PATTERN.fullmatch(text)
        if not match:
            raise InvalidFormatError("invalid string representation")

        try:
            params = FilterParams(int(match.group("m")), int(match.group("k")))
        except InvalidConfigError as e:
            raise InvalidFormatError(str(e)) from e

        bitstring = match.group("bits")
        if len(bitstring) != params.byte_length * 8:
            raise InvalidFormatError(
                f"bit string of length {len(bitstring)} does not match m={params.m}"
            )
        return params, bitstring_to_bytes(bitstring)
