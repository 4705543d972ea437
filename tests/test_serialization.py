"""
Tests for the Bloom filter binary format
"""
import logging
import struct

import pytest

from bloombox import BloomFilter
from bloombox.core.sketches.bloom_filter import HEADER, MAGIC
from bloombox.core.sketches.sizing import MAX_U64
from bloombox.errors import CorruptData


def _header(bit_length=959, hash_count=7, expected_items=100, fp_rate=0.01, inserted=0, magic=MAGIC):
    return struct.pack("<IQIQdQ", magic, bit_length, hash_count, expected_items, fp_rate, inserted)


class TestSerializationFormat:
    """Test the byte layout"""

    def test_header_size(self):
        assert HEADER.size == 40

    def test_layout(self):
        """Test header fields and payload length"""
        bf = BloomFilter(100, 0.01)
        bf.insert("item")
        data = bf.serialize()

        assert len(data) == 40 + 120
        assert data[:4] == b"BOX1"
        assert struct.unpack_from("<IQIQdQ", data) == (MAGIC, 959, 7, 100, 0.01, 1)
        assert data[40:] == bf.bit_array.to_bytes()

    def test_empty_filter_payload(self):
        data = BloomFilter(100, 0.01).serialize()
        assert data[40:] == bytes(120)

    def test_hand_built_buffer(self):
        """Test a buffer assembled field by field"""
        payload = bytearray(2)
        payload[0] = 0b00000101  # bits 0 and 2
        bf = BloomFilter.deserialize(_header(bit_length=10, hash_count=1, inserted=2) + bytes(payload))

        assert bf.bit_length == 10
        assert bf.hash_count == 1
        assert bf.inserted_count == 2
        assert bf.bit_array.get(0) and bf.bit_array.get(2)
        assert bf.bit_array.count() == 2


class TestRoundTrip:
    """Test serialize/deserialize"""

    def test_round_trip(self):
        """Test restored filter answers every query the same way"""
        bf = BloomFilter(1000, 0.01)
        for i in range(500):
            bf.insert(f"user_{i}")

        restored = BloomFilter.deserialize(bf.serialize())

        assert restored == bf
        assert restored.bit_length == bf.bit_length
        assert restored.hash_count == bf.hash_count
        assert restored.expected_items == 1000
        assert restored.target_fp_rate == 0.01
        assert restored.inserted_count == 500
        for i in range(2000):
            assert restored.contains(f"user_{i}") == bf.contains(f"user_{i}")

    def test_round_trip_bytes_like(self):
        bf = BloomFilter(10, 0.1)
        bf.insert("a")
        data = bf.serialize()

        assert BloomFilter.deserialize(bytearray(data)) == bf
        assert BloomFilter.from_bytes(memoryview(data)) == bf

    def test_to_bytes_alias(self):
        bf = BloomFilter(100, 0.01)
        bf.insert("item")

        assert bf.to_bytes() == bf.serialize()
        assert BloomFilter.from_bytes(bf.to_bytes()) == bf

    def test_counter_saturates_at_u64(self):
        """Test a filter whose counter is at the u64 limit still serializes"""
        bf = BloomFilter.deserialize(_header(inserted=MAX_U64) + bytes(120))
        bf.insert("x")
        bf.insert("y")

        assert bf.inserted_count == MAX_U64
        restored = BloomFilter.deserialize(bf.serialize())
        assert restored.inserted_count == MAX_U64
        assert "x" in restored and "y" in restored

    def test_restored_filter_is_writable(self):
        restored = BloomFilter.deserialize(BloomFilter(10, 0.1).serialize())
        restored.insert("later")

        assert "later" in restored
        assert restored.inserted_count == 1


class TestCorruptData:
    """Test rejection of malformed buffers"""

    def test_empty_buffer(self):
        with pytest.raises(CorruptData):
            BloomFilter.deserialize(b"")

    def test_truncated_header(self):
        data = BloomFilter(100, 0.01).serialize()

        with pytest.raises(CorruptData):
            BloomFilter.deserialize(data[:10])

    def test_truncated_payload(self):
        data = BloomFilter(100, 0.01).serialize()

        with pytest.raises(CorruptData):
            BloomFilter.deserialize(data[:-1])

    def test_trailing_bytes(self):
        data = BloomFilter(100, 0.01).serialize()

        with pytest.raises(CorruptData):
            BloomFilter.deserialize(data + b"\x00")

    def test_bad_magic(self):
        with pytest.raises(CorruptData):
            BloomFilter.deserialize(_header(magic=0xDEADBEEF) + bytes(120))

    def test_zero_hash_count(self):
        with pytest.raises(CorruptData):
            BloomFilter.deserialize(_header(hash_count=0) + bytes(120))

    def test_zero_bit_length(self):
        with pytest.raises(CorruptData):
            BloomFilter.deserialize(_header(bit_length=0))

    @pytest.mark.parametrize("fp_rate", [0.0, 1.0, float("nan")])
    def test_bad_fp_rate(self, fp_rate):
        with pytest.raises(CorruptData):
            BloomFilter.deserialize(_header(fp_rate=fp_rate) + bytes(120))

    def test_padding_bits_set(self):
        payload = bytes(119) + b"\x80"  # bit 959 is past the end

        with pytest.raises(CorruptData):
            BloomFilter.deserialize(_header() + payload)

    def test_rejection_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="bloombox.core.sketches.bloom_filter"):
            with pytest.raises(CorruptData):
                BloomFilter.deserialize(b"\x00" * 8)

        assert "shorter than" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
