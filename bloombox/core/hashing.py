"""
Element hashing for Bloom filters

Two MurmurHash3 digests per element, combined by double hashing
(Kirsch-Mitzenmacher): index_i = (h1 + i*h2) mod m.
"""
from typing import Iterator, Tuple, Union

import mmh3

Element = Union[str, bytes, bytearray, memoryview]

# Fixed seeds for h1 and h2. Filters built with other seeds are not interchangeable.
SEED_PRIMARY = 0
SEED_SECONDARY = 1

MASK64 = (1 << 64) - 1


def to_bytes(element: Element) -> bytes:
    """
    Encode an element for hashing

    Strings are UTF-8 encoded; bytes-like values are used as-is.
    """
    if isinstance(element, str):
        return element.encode('utf-8')
    if isinstance(element, (bytes, bytearray, memoryview)):
        return bytes(element)
    raise TypeError(f"unsupported element type: {type(element).__name__}")


def hash64(data: bytes, seed: int) -> int:
    """Unsigned 64-bit digest (low half of MurmurHash3 x64 128)"""
    return mmh3.hash64(data, seed=seed, signed=False)[0]


def base_hashes(element: Element) -> Tuple[int, int]:
    """Return (h1, h2) for an element"""
    data = to_bytes(element)
    return hash64(data, SEED_PRIMARY), hash64(data, SEED_SECONDARY)


def positions(element: Element, hash_count: int, bit_length: int) -> Iterator[int]:
    """
    Yield hash_count bit positions for an element

    h1 + i*h2 wraps at 64 bits before the modulo so that positions match
    fixed-width implementations.
    """
    h1, h2 = base_hashes(element)
    for i in range(hash_count):
        yield ((h1 + i * h2) & MASK64) % bit_length
