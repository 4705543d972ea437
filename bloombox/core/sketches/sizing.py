"""
Bloom filter sizing math
Optimal bit array length and hash count for a target false positive rate
"""
import math
from typing import Optional, Tuple

from bloombox.config import settings
from bloombox.errors import InvalidParameter

LN2 = math.log(2)
LN2_SQUARED = LN2 ** 2

MAX_U32 = (1 << 32) - 1
MAX_U64 = (1 << 64) - 1


def _round_half_up(value: float) -> int:
    """Nearest integer, halves away from zero (Python's round() is banker's)"""
    return int(math.floor(value + 0.5))


def check_expected_items(expected_items: int) -> None:
    if isinstance(expected_items, bool) or not isinstance(expected_items, int):
        raise InvalidParameter(f"expected_items must be an integer, got {expected_items!r}")
    if not 1 <= expected_items <= MAX_U64:
        raise InvalidParameter(f"expected_items must be between 1 and 2^64-1, got {expected_items}")


def check_fp_rate(target_fp_rate: float) -> None:
    if isinstance(target_fp_rate, bool) or not isinstance(target_fp_rate, (int, float)):
        raise InvalidParameter(f"target_fp_rate must be a number, got {target_fp_rate!r}")
    # NaN fails both comparisons
    if not 0.0 < target_fp_rate < 1.0:
        raise InvalidParameter(f"target_fp_rate must be in (0, 1), got {target_fp_rate}")


def optimal_bit_length(expected_items: int, target_fp_rate: float) -> int:
    """
    Calculate optimal bit array size

    m = ceil(-n*ln(p) / (ln(2)^2))
    """
    raw = -(expected_items * math.log(target_fp_rate)) / LN2_SQUARED
    if not math.isfinite(raw):
        raise InvalidParameter(
            f"bit array size overflows for n={expected_items}, p={target_fp_rate}"
        )
    return max(1, math.ceil(raw))


def optimal_hash_count(bit_length: int, expected_items: int) -> int:
    """
    Calculate optimal number of hash functions

    k = round((m/n) * ln(2))
    """
    return max(1, _round_half_up((bit_length / expected_items) * LN2))


def compute_parameters(
    expected_items: int,
    target_fp_rate: float,
    max_bit_length: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Size a Bloom filter

    Args:
        expected_items: Number of items the filter should hold (>= 1)
        target_fp_rate: Desired false positive rate, strictly between 0 and 1
        max_bit_length: Largest bit array accepted (default: settings.MAX_BIT_LENGTH)

    Returns:
        (bit_length, hash_count)

    Raises:
        InvalidParameter: If inputs are out of range or the array would be too large
    """
    check_expected_items(expected_items)
    check_fp_rate(target_fp_rate)

    if max_bit_length is None:
        max_bit_length = settings.MAX_BIT_LENGTH

    bit_length = optimal_bit_length(expected_items, target_fp_rate)
    if bit_length > max_bit_length:
        raise InvalidParameter(
            f"bit array of {bit_length} bits exceeds maximum of {max_bit_length}"
        )

    hash_count = optimal_hash_count(bit_length, expected_items)
    if hash_count > MAX_U32:
        raise InvalidParameter(f"hash count {hash_count} does not fit in 32 bits")

    return bit_length, hash_count


def estimate_false_positive_rate(bit_length: int, hash_count: int, items: int) -> float:
    """
    Expected false positive rate after inserting `items` elements

    FPR = (1 - e^(-kn/m))^k
    """
    if items <= 0:
        return 0.0
    return (1 - math.exp(-hash_count * items / bit_length)) ** hash_count
