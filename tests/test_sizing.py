"""
Tests for Bloom filter sizing math
"""
import math

import pytest

from bloombox.core.sketches.sizing import (
    _round_half_up,
    compute_parameters,
    estimate_false_positive_rate,
)
from bloombox.errors import InvalidParameter


class TestComputeParameters:
    """Test bit length and hash count calculation"""

    def test_known_values(self):
        """Test sizes for common inputs"""
        assert compute_parameters(100, 0.01) == (959, 7)
        assert compute_parameters(1000, 0.001) == (14378, 10)

    def test_single_item(self):
        """Test smallest valid filter"""
        bit_length, hash_count = compute_parameters(1, 0.5)

        assert bit_length == 2
        assert hash_count == 1

    def test_deterministic(self):
        """Test identical inputs give identical sizes"""
        assert compute_parameters(12345, 0.0042) == compute_parameters(12345, 0.0042)

    def test_matches_formula(self):
        """Test against the closed-form expressions"""
        n, p = 5000, 0.02
        m = math.ceil(-(n * math.log(p)) / (math.log(2) ** 2))
        k = math.floor((m / n) * math.log(2) + 0.5)

        assert compute_parameters(n, p) == (m, k)

    def test_hash_count_at_least_one(self):
        """Test high false positive rates still use one hash"""
        _, hash_count = compute_parameters(1000, 0.9)
        assert hash_count == 1

    @pytest.mark.parametrize("n", [0, -1, 2 ** 64])
    def test_invalid_expected_items(self, n):
        """Test expected_items range check"""
        with pytest.raises(InvalidParameter):
            compute_parameters(n, 0.01)

    @pytest.mark.parametrize("p", [0.0, 1.0, -0.1, 1.5, float("nan"), float("inf")])
    def test_invalid_fp_rate(self, p):
        """Test false positive rate range check"""
        with pytest.raises(InvalidParameter):
            compute_parameters(100, p)

    @pytest.mark.parametrize("n, p", [(1.5, 0.01), ("100", 0.01), (True, 0.01), (100, "0.01")])
    def test_invalid_types(self, n, p):
        """Test non-numeric inputs are rejected"""
        with pytest.raises(InvalidParameter):
            compute_parameters(n, p)

    def test_too_large(self):
        """Test oversized arrays are refused instead of allocated"""
        with pytest.raises(InvalidParameter):
            compute_parameters(10 ** 12, 1e-10)

    def test_explicit_maximum(self):
        """Test caller-supplied maximum bit length"""
        assert compute_parameters(100, 0.01, max_bit_length=959) == (959, 7)

        with pytest.raises(InvalidParameter):
            compute_parameters(100, 0.01, max_bit_length=958)

    def test_invalid_parameter_is_value_error(self):
        """Test errors can be caught as ValueError"""
        with pytest.raises(ValueError):
            compute_parameters(0, 0.01)


class TestRounding:
    """Test nearest-integer rounding"""

    def test_halves_round_up(self):
        assert _round_half_up(0.5) == 1
        assert _round_half_up(2.5) == 3
        assert _round_half_up(3.5) == 4

    def test_nearest(self):
        assert _round_half_up(6.49) == 6
        assert _round_half_up(6.51) == 7


class TestFalsePositiveEstimate:
    """Test expected false positive rate formula"""

    def test_empty(self):
        assert estimate_false_positive_rate(959, 7, 0) == 0.0

    def test_at_capacity(self):
        """Test rate at expected capacity is close to the target"""
        rate = estimate_false_positive_rate(959, 7, 100)
        assert 0.008 < rate < 0.012

    def test_grows_with_items(self):
        rates = [estimate_false_positive_rate(959, 7, n) for n in (10, 100, 1000)]
        assert rates == sorted(rates)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
