"""
Exceptions raised by BloomBox
"""


class BloomBoxError(Exception):
    """Base class for all BloomBox errors"""


class InvalidParameter(BloomBoxError, ValueError):
    """
    Sizing or construction parameter out of range

    Raised for a non-positive expected item count, a false positive rate
    outside (0, 1), a zero-length bit array, an array larger than the
    configured maximum, or set operations between incompatible filters.
    """


class IndexOutOfRange(BloomBoxError, IndexError):
    """Bit index outside the bit array"""


class CorruptData(BloomBoxError, ValueError):
    """Serialized filter or bit array data is malformed"""
