"""
Bloom Filter implementation for set membership queries
Fast probabilistic "has this been seen before?" checks
"""
import logging
import math
import struct
import sys
import threading
from typing import Iterable, Optional

from pydantic import ValidationError

from bloombox.config import settings
from bloombox.core.hashing import Element, positions
from bloombox.core.sketches.bit_array import BitArray, BytesLike
from bloombox.core.sketches.sizing import (
    LN2,
    MAX_U64,
    compute_parameters,
    estimate_false_positive_rate,
)
from bloombox.errors import CorruptData, InvalidParameter
from bloombox.models.filters import FilterHeader, FilterStats

logger = logging.getLogger(__name__)

# magic "BOX" + format version 1, stored as a little-endian u32
MAGIC = int.from_bytes(b"BOX1", "little")

# magic, bit_length, hash_count, expected_items, target_fp_rate, inserted_count
HEADER = struct.Struct("<IQIQdQ")


def _reject(message: str) -> CorruptData:
    logger.warning(f"Rejected serialized Bloom filter: {message}")
    return CorruptData(message)


class BloomFilter:
    """
    Bloom Filter probabilistic data structure for membership testing.

    Space: m = -n*ln(p) / ln(2)^2 bits for n expected items at rate p
    False Positive Rate: (1 - e^(-kn/m))^k
    False Negative Rate: 0 (never happens)

    Bit positions come from two 64-bit hashes per element (double hashing),
    so every operation costs two hash evaluations regardless of k.
    The filter cannot grow: to change capacity, build a new filter and
    re-insert the elements.

    Not thread-safe; wrap in LockedBloomFilter to share between threads.
    """

    def __init__(self, expected_items: Optional[int] = None, target_fp_rate: Optional[float] = None):
        """
        Initialize Bloom Filter

        Args:
            expected_items: Expected number of items (default: settings.DEFAULT_EXPECTED_ITEMS)
            target_fp_rate: Desired false positive rate (0.001 = 0.1%)
                            (default: settings.DEFAULT_FP_RATE)

        Raises:
            InvalidParameter: If the parameters are out of range
        """
        if expected_items is None:
            expected_items = settings.DEFAULT_EXPECTED_ITEMS
        if target_fp_rate is None:
            target_fp_rate = settings.DEFAULT_FP_RATE

        bit_length, hash_count = compute_parameters(expected_items, target_fp_rate)

        self.expected_items = expected_items
        self.target_fp_rate = float(target_fp_rate)
        self.hash_count = hash_count
        self.bit_array = BitArray(bit_length)
        self.inserted_count = 0

        logger.debug(
            f"Created Bloom filter: n={expected_items}, p={target_fp_rate}, "
            f"m={bit_length}, k={hash_count}"
        )

    @classmethod
    def _assemble(
        cls,
        bit_array: BitArray,
        hash_count: int,
        expected_items: int,
        target_fp_rate: float,
        inserted_count: int = 0,
    ) -> 'BloomFilter':
        """Build a filter around an existing bit array without re-sizing"""
        bf = cls.__new__(cls)
        bf.expected_items = expected_items
        bf.target_fp_rate = target_fp_rate
        bf.hash_count = hash_count
        bf.bit_array = bit_array
        bf.inserted_count = inserted_count
        return bf

    @classmethod
    def from_parameters(
        cls,
        bit_length: int,
        hash_count: int,
        expected_items: Optional[int] = None,
        target_fp_rate: Optional[float] = None,
    ) -> 'BloomFilter':
        """
        Create a filter with an explicit bit length and hash count

        Args:
            bit_length: Number of bits
            hash_count: Number of bit positions per element
            expected_items: Informational capacity (default: m*ln(2)/k, where k is optimal)
            target_fp_rate: Informational rate (default: expected rate at that capacity)

        Returns:
            Empty Bloom filter

        Raises:
            InvalidParameter: If bit_length or hash_count is zero or the metadata is invalid
        """
        if isinstance(hash_count, bool) or not isinstance(hash_count, int) or hash_count < 1:
            raise InvalidParameter(f"hash_count must be a positive integer, got {hash_count!r}")
        if isinstance(bit_length, bool) or not isinstance(bit_length, int) or bit_length < 1:
            raise InvalidParameter(f"bit_length must be a positive integer, got {bit_length!r}")
        if bit_length > settings.MAX_BIT_LENGTH:
            raise InvalidParameter(
                f"bit array of {bit_length} bits exceeds maximum of {settings.MAX_BIT_LENGTH}"
            )

        if expected_items is None:
            expected_items = max(1, int(bit_length * LN2 / hash_count))
        if target_fp_rate is None:
            rate = estimate_false_positive_rate(bit_length, hash_count, expected_items)
            target_fp_rate = min(max(rate, sys.float_info.min), 1.0 - sys.float_info.epsilon)

        try:
            header = FilterHeader(
                bit_length=bit_length,
                hash_count=hash_count,
                expected_items=expected_items,
                target_fp_rate=target_fp_rate,
            )
        except ValidationError as e:
            raise InvalidParameter(str(e)) from e

        bit_array = BitArray(header.bit_length)
        return cls._assemble(bit_array, header.hash_count, header.expected_items, header.target_fp_rate)

    @property
    def bit_length(self) -> int:
        return self.bit_array.length

    def _get_positions(self, item: Element) -> Iterable[int]:
        return positions(item, self.hash_count, self.bit_array.length)

    def insert(self, item: Element) -> None:
        """
        Add an item to the Bloom filter

        Args:
            item: String or bytes to add (empty values are fine)
        """
        for position in self._get_positions(item):
            self.bit_array.set(position)
        self.inserted_count = min(self.inserted_count + 1, MAX_U64)

    add = insert

    def update(self, items: Iterable[Element]) -> None:
        """Add every item of an iterable"""
        for item in items:
            self.insert(item)

    def contains(self, item: Element) -> bool:
        """
        Check if item might be in the set

        Args:
            item: String or bytes to check

        Returns:
            True: Item might be in set (or false positive)
            False: Item definitely NOT in set
        """
        return all(self.bit_array.get(position) for position in self._get_positions(item))

    def __contains__(self, item: Element) -> bool:
        """Support 'in' operator"""
        return self.contains(item)

    def fill_ratio(self) -> float:
        """Fraction of bits that are set"""
        return self.bit_array.fill_ratio()

    def estimated_count(self) -> int:
        """
        Estimate number of distinct items added

        n ≈ -m/k * ln(1 - X/m)
        where X is number of set bits
        """
        set_bits = self.bit_array.count()
        if set_bits == 0:
            return 0

        fill_ratio = set_bits / self.bit_length
        if fill_ratio >= 1.0:
            return self.inserted_count

        return int(-self.bit_length / self.hash_count * math.log(1 - fill_ratio))

    def estimated_false_positive_rate(self) -> float:
        """
        Expected false positive rate given the number of inserts so far

        FPR = (1 - e^(-kn/m))^k
        """
        return estimate_false_positive_rate(self.bit_length, self.hash_count, self.inserted_count)

    def stats(self) -> FilterStats:
        """Diagnostics snapshot"""
        set_bits = self.bit_array.count()
        return FilterStats(
            bit_length=self.bit_length,
            hash_count=self.hash_count,
            expected_items=self.expected_items,
            target_fp_rate=self.target_fp_rate,
            inserted_count=self.inserted_count,
            set_bits=set_bits,
            fill_ratio=set_bits / self.bit_length,
            estimated_false_positive_rate=self.estimated_false_positive_rate(),
            size_bytes=HEADER.size + (self.bit_length + 7) // 8,
        )

    def _check_compatible(self, other: 'BloomFilter', operation: str) -> None:
        if self.bit_length != other.bit_length or self.hash_count != other.hash_count:
            raise InvalidParameter(f"Bloom filters must have same parameters for {operation}")

    def union(self, other: 'BloomFilter') -> 'BloomFilter':
        """
        Union of two Bloom filters (OR operation)

        Args:
            other: Another Bloom filter with the same bit length and hash count

        Returns:
            New Bloom filter containing union
        """
        self._check_compatible(other, "union")
        return self._assemble(
            self.bit_array.union(other.bit_array),
            self.hash_count,
            self.expected_items,
            self.target_fp_rate,
            min(self.inserted_count + other.inserted_count, MAX_U64),
        )

    def intersection(self, other: 'BloomFilter') -> 'BloomFilter':
        """
        Intersection of two Bloom filters (AND operation)

        Note: the result can report elements present in only one operand
        when their bits were set by other elements of the second.

        Args:
            other: Another Bloom filter with the same bit length and hash count

        Returns:
            New Bloom filter containing intersection
        """
        self._check_compatible(other, "intersection")
        return self._assemble(
            self.bit_array.intersection(other.bit_array),
            self.hash_count,
            self.expected_items,
            self.target_fp_rate,
            min(self.inserted_count, other.inserted_count),
        )

    def __or__(self, other: 'BloomFilter') -> 'BloomFilter':
        return self.union(other)

    def __and__(self, other: 'BloomFilter') -> 'BloomFilter':
        return self.intersection(other)

    def copy(self) -> 'BloomFilter':
        return self._assemble(
            self.bit_array.copy(),
            self.hash_count,
            self.expected_items,
            self.target_fp_rate,
            self.inserted_count,
        )

    def serialize(self) -> bytes:
        """
        Serialize to bytes for storage

        Layout (little-endian): u32 magic, u64 bit_length, u32 hash_count,
        u64 expected_items, f64 target_fp_rate, u64 inserted_count,
        then ceil(bit_length/8) bytes of packed bits.
        """
        header = HEADER.pack(
            MAGIC,
            self.bit_length,
            self.hash_count,
            self.expected_items,
            self.target_fp_rate,
            self.inserted_count,
        )
        return header + self.bit_array.to_bytes()

    to_bytes = serialize

    @classmethod
    def deserialize(cls, data: BytesLike) -> 'BloomFilter':
        """
        Deserialize from bytes produced by serialize

        Raises:
            CorruptData: If the buffer is truncated, has a bad header or
                         the bit array does not match the declared length
        """
        data = bytes(data)
        if len(data) < HEADER.size:
            raise _reject(f"buffer of {len(data)} bytes is shorter than the {HEADER.size} byte header")

        magic, bit_length, hash_count, expected_items, target_fp_rate, inserted_count = (
            HEADER.unpack_from(data)
        )
        if magic != MAGIC:
            raise _reject(f"unknown magic/version 0x{magic:08x}")

        try:
            header = FilterHeader(
                bit_length=bit_length,
                hash_count=hash_count,
                expected_items=expected_items,
                target_fp_rate=target_fp_rate,
                inserted_count=inserted_count,
            )
        except ValidationError as e:
            raise _reject(f"invalid header: {e}") from e

        payload = data[HEADER.size:]
        if len(payload) != header.payload_length:
            raise _reject(
                f"expected {header.payload_length} bytes of bit array, got {len(payload)}"
            )

        try:
            bit_array = BitArray.from_bytes(payload, header.bit_length)
        except CorruptData as e:
            raise _reject(str(e)) from e

        logger.debug(f"Loaded Bloom filter: m={header.bit_length}, k={header.hash_count}")
        return cls._assemble(
            bit_array,
            header.hash_count,
            header.expected_items,
            header.target_fp_rate,
            header.inserted_count,
        )

    from_bytes = deserialize

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            self.hash_count == other.hash_count
            and self.inserted_count == other.inserted_count
            and self.bit_array == other.bit_array
        )

    def __len__(self) -> int:
        """Return number of insert calls"""
        return self.inserted_count

    def __repr__(self) -> str:
        return (
            f"BloomFilter(bit_length={self.bit_length}, hash_count={self.hash_count}, "
            f"inserted_count={self.inserted_count})"
        )


class LockedBloomFilter:
    """
    Lock-guarded handle for sharing a BloomFilter between threads

    Every operation holds a single mutex; the wrapped filter must not be
    used directly while shared.
    """

    def __init__(self, bloom_filter: Optional[BloomFilter] = None):
        self.filter = bloom_filter if bloom_filter is not None else BloomFilter()
        self.lock = threading.Lock()

    def insert(self, item: Element) -> None:
        with self.lock:
            self.filter.insert(item)

    add = insert

    def update(self, items: Iterable[Element]) -> None:
        # drain the iterable first; it may query this wrapper or block
        items = list(items)
        with self.lock:
            self.filter.update(items)

    def contains(self, item: Element) -> bool:
        with self.lock:
            return self.filter.contains(item)

    def __contains__(self, item: Element) -> bool:
        return self.contains(item)

    def serialize(self) -> bytes:
        with self.lock:
            return self.filter.serialize()

    def stats(self) -> FilterStats:
        with self.lock:
            return self.filter.stats()

    def snapshot(self) -> BloomFilter:
        """Independent copy of the wrapped filter"""
        with self.lock:
            return self.filter.copy()

    def __len__(self) -> int:
        with self.lock:
            return len(self.filter)
