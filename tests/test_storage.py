import struct
import unittest
import zlib

from packed_bloom import BloomFilter, FilterCodec, FilterParams, InvalidFormatError


def frame(m, k, payload, flags=0, version=FilterCodec.VERSION, magic=FilterCodec.MAGIC):
    header = FilterCodec.HEADER.pack(magic, version, flags, m, k, len(payload))
    return header + payload + struct.pack("<I", zlib.crc32(payload) & 0xFFFFFFFF)


class TestBinaryForm(unittest.TestCase):
    def setUp(self):
        self.params = FilterParams(20, 3)
        self.bits = bytes([0x81, 0x00, 0x10])

    def test_round_trip(self):
        data = FilterCodec.encode_binary(self.params, self.bits)
        self.assertEqual(FilterCodec.decode_binary(data), (self.params, self.bits))

    def test_size_is_compact(self):
        data = FilterCodec.encode_binary(FilterParams(40000, 14), bytes(5000))
        self.assertEqual(len(data), 5000 + FilterCodec.HEADER.size + FilterCodec.TRAILER.size)

    def test_compressed_round_trip(self):
        bits = bytes(5000)
        data = FilterCodec.encode_binary(FilterParams(40000, 14), bits, compress=True)
        self.assertLess(len(data), 200)
        self.assertEqual(FilterCodec.decode_binary(data), (FilterParams(40000, 14), bits))

    def test_padding_bits_preserved(self):
        params = FilterParams(3, 1)
        data = FilterCodec.encode_binary(params, b"\xff")
        self.assertEqual(FilterCodec.decode_binary(data)[1], b"\xff")

    def test_bytearray_input(self):
        data = bytearray(FilterCodec.encode_binary(self.params, self.bits))
        self.assertEqual(FilterCodec.decode_binary(data), (self.params, self.bits))

    def test_rejects_bad_magic(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 3, self.bits, magic=b"XXXX"))

    def test_rejects_unknown_version(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 3, self.bits, version=9))

    def test_rejects_unknown_flags(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 3, self.bits, flags=0x80))

    def test_rejects_truncation(self):
        data = FilterCodec.encode_binary(self.params, self.bits)
        for size in (0, 5, len(data) - 1):
            with self.assertRaises(InvalidFormatError):
                FilterCodec.decode_binary(data[:size])

    def test_rejects_trailing_data(self):
        data = FilterCodec.encode_binary(self.params, self.bits)
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(data + b"\x00")

    def test_rejects_checksum_mismatch(self):
        data = bytearray(FilterCodec.encode_binary(self.params, self.bits))
        data[FilterCodec.HEADER.size] ^= 0x01
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(bytes(data))

    def test_rejects_zero_config(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(0, 3, b""))
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 0, self.bits))

    def test_rejects_wrong_bit_field_length(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 3, b"\x00\x00"))

    def test_rejects_corrupt_compression(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(frame(20, 3, b"not zlib", flags=FilterCodec.FLAG_COMPRESSED))

    def test_rejects_non_bytes_input(self):
        for data in ("PBLM", 12, None):
            with self.assertRaises(InvalidFormatError):
                FilterCodec.decode_binary(data)

    def test_rejects_oversized_decompression(self):
        payload = zlib.compress(bytes(10 * 1024 * 1024))
        data = frame(8, 1, payload, flags=FilterCodec.FLAG_COMPRESSED)
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_binary(data)

    def test_widest_k_round_trip(self):
        params = FilterParams(8, 2 ** 32 - 1)
        data = FilterCodec.encode_binary(params, b"\x00")
        self.assertEqual(FilterCodec.decode_binary(data), (params, b"\x00"))

    def test_failures_are_logged(self):
        with self.assertLogs("packed_bloom.storage", level="ERROR"):
            with self.assertRaises(InvalidFormatError):
                FilterCodec.decode_binary(b"PBLM")


class TestTextForm(unittest.TestCase):
    def test_encode(self):
        self.assertEqual(FilterCodec.encode_text(FilterParams(8, 1), b"\x80"), "k:1/m:8(10000000)")

    def test_encode_includes_padding(self):
        self.assertEqual(
            FilterCodec.encode_text(FilterParams(10, 2), b"\x01\xc0"),
            "k:2/m:10(0000000111000000)"
        )

    def test_decode(self):
        self.assertEqual(
            FilterCodec.decode_text("k:2/m:10(0000000111000001)"),
            (FilterParams(10, 2), b"\x01\xc1")
        )

    def test_encode_is_ascii_only(self):
        self.assertEqual(FilterCodec.encode_text(FilterParams(8, 1), b"\xff").encode("ascii"),
                         b"k:1/m:8(11111111)")

    def test_rejects_grammar_mismatch(self):
        bad = [
            "",
            "k:1/m:8",
            "k:1/m:8()",
            "k:1 /m:8(10000000)",
            "m:8/k:1(10000000)",
            "k:-1/m:8(10000000)",
            "k:1/m:8(10000002)",
            "xk:1/m:8(10000000)",
            "k:1/m:8(10000000)x",
            "k:\u0661/m:8(10000000)",
        ]
        for text in bad:
            with self.assertRaises(InvalidFormatError, msg=text):
                FilterCodec.decode_text(text)

    def test_rejects_length_mismatch(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_text("k:1/m:8(1000000010000000)")
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_text("k:1/m:9(10000000)")

    def test_rejects_zero_config(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_text("k:0/m:8(10000000)")
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_text("k:1/m:0(00000000)")

    def test_rejects_non_string(self):
        with self.assertRaises(InvalidFormatError):
            FilterCodec.decode_text(b"k:1/m:8(10000000)")


class TestFilterRoundTrips(unittest.TestCase):
    def test_binary(self):
        bf = BloomFilter(1000, 5)
        bf.add("foo")
        restored = BloomFilter.from_binary(bf.to_binary())
        self.assertEqual(restored, bf)
        self.assertTrue(restored.maybe_contains("foo"))

    def test_text(self):
        bf = BloomFilter(1001, 5)
        bf.add("foo")
        restored = BloomFilter.from_text(bf.to_text())
        self.assertEqual(restored.to_text(), bf.to_text())
        self.assertEqual(restored.bits, bf.bits)


if __name__ == "__main__":
    unittest.main()
