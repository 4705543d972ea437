"""
BloomBox: space-efficient probabilistic set membership
"""
import logging

from bloombox.config import settings
from bloombox.core.hashing import SEED_PRIMARY, SEED_SECONDARY
from bloombox.core.sketches.bit_array import BitArray
from bloombox.core.sketches.bloom_filter import BloomFilter, LockedBloomFilter
from bloombox.core.sketches.sizing import compute_parameters, estimate_false_positive_rate
from bloombox.errors import BloomBoxError, CorruptData, IndexOutOfRange, InvalidParameter
from bloombox.models.filters import FilterHeader, FilterStats

__version__ = "1.0.0"

__all__ = [
    'BitArray',
    'BloomFilter',
    'LockedBloomFilter',
    'compute_parameters',
    'estimate_false_positive_rate',
    'BloomBoxError',
    'CorruptData',
    'IndexOutOfRange',
    'InvalidParameter',
    'FilterHeader',
    'FilterStats',
    'SEED_PRIMARY',
    'SEED_SECONDARY',
    'configure_logging',
]


def configure_logging(level=None) -> None:
    """
    Configure root logging for applications embedding BloomBox

    Args:
        level: Logging level (default: from settings)
    """
    logging.basicConfig(
        level=level or settings.get_log_level(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
