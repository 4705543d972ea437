"""
Packed bit array with a fixed byte layout

Bit i lives in byte i // 8 at position i % 8 (least significant bit first),
so logical index 0 is bit 0 of byte 0. Unused bits of the last byte are zero.
"""
from typing import Union

from bloombox.errors import CorruptData, IndexOutOfRange, InvalidParameter

BytesLike = Union[bytes, bytearray, memoryview]


def byte_length(length: int) -> int:
    """Number of bytes needed to store `length` bits"""
    return (length + 7) // 8


def _check_length(length: int) -> None:
    if isinstance(length, bool) or not isinstance(length, int):
        raise InvalidParameter(f"bit array length must be an integer, got {length!r}")
    if length < 1:
        raise InvalidParameter(f"bit array length must be at least 1, got {length}")


class BitArray:
    """
    Fixed-length sequence of bits, 8 per byte

    The length is set at construction and never changes.
    """

    __slots__ = ("_length", "_bytes")

    def __init__(self, length: int):
        """
        Allocate a cleared bit array

        Args:
            length: Number of logical bits (>= 1)
        """
        _check_length(length)
        self._length = length
        self._bytes = bytearray(byte_length(length))

    @property
    def length(self) -> int:
        return self._length

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._length:
            raise IndexOutOfRange(f"bit index {index} out of range for length {self._length}")

    def set(self, index: int) -> None:
        """Set bit at index to 1"""
        self._check_index(index)
        self._bytes[index >> 3] |= 1 << (index & 7)

    def get(self, index: int) -> bool:
        """Return bit at index"""
        self._check_index(index)
        return bool(self._bytes[index >> 3] & (1 << (index & 7)))

    def count(self) -> int:
        """Number of set bits"""
        return sum(bin(byte).count('1') for byte in self._bytes)

    def fill_ratio(self) -> float:
        """Fraction of bits that are set"""
        return self.count() / self._length

    def to_bytes(self) -> bytes:
        """Serialize to ceil(length/8) bytes"""
        return bytes(self._bytes)

    @classmethod
    def from_bytes(cls, data: BytesLike, length: int) -> 'BitArray':
        """
        Deserialize from bytes produced by to_bytes

        Args:
            data: Packed bits
            length: Logical bit count

        Raises:
            CorruptData: If the byte count does not match the length or padding bits are set
        """
        _check_length(length)
        expected = byte_length(length)
        if len(data) != expected:
            raise CorruptData(
                f"bit array of {length} bits needs {expected} bytes, got {len(data)}"
            )

        raw = bytearray(data)
        spare = expected * 8 - length
        if spare and raw[-1] >> (8 - spare):
            raise CorruptData("padding bits in final byte are not zero")

        bits = cls.__new__(cls)
        bits._length = length
        bits._bytes = raw
        return bits

    def _check_compatible(self, other: 'BitArray') -> None:
        if self._length != other._length:
            raise InvalidParameter(
                f"bit arrays differ in length ({self._length} vs {other._length})"
            )

    def union(self, other: 'BitArray') -> 'BitArray':
        """Bitwise OR of two arrays of equal length"""
        self._check_compatible(other)
        result = BitArray(self._length)
        result._bytes = bytearray(a | b for a, b in zip(self._bytes, other._bytes))
        return result

    def intersection(self, other: 'BitArray') -> 'BitArray':
        """Bitwise AND of two arrays of equal length"""
        self._check_compatible(other)
        result = BitArray(self._length)
        result._bytes = bytearray(a & b for a, b in zip(self._bytes, other._bytes))
        return result

    def copy(self) -> 'BitArray':
        result = BitArray(self._length)
        result._bytes = bytearray(self._bytes)
        return result

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index: int) -> bool:
        return self.get(index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitArray):
            return NotImplemented
        return self._length == other._length and self._bytes == other._bytes

    def __repr__(self) -> str:
        return f"BitArray(length={self._length}, set_bits={self.count()})"
