"""
Unit Tests -- Running Statistics
=================================
Welford accumulation, Student-t half-widths, sample-size estimation and
rejection of non-finite observations.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import math
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import numpy as np
import pytest
from scipy.stats import norm, t as t_dist

from mcintegration.exceptions import ConfigurationError, NonFiniteObservationError
from mcintegration.statistics import (LARGE_SAMPLE_DF, RunningStatistics, _quantile,
                                     critical_value)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def data():
    return [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]


@pytest.fixture
def stats(data):
    s = RunningStatistics("test")
    s.collect_all(data)
    return s


# ---------------------------------------------------------------------------
# Moments
# ---------------------------------------------------------------------------
class TestMoments:
    """Running moments agree with numpy on the same data."""

    def test_empty_state(self):
        """A fresh aggregate has no count and undefined moments."""
        s = RunningStatistics()
        assert s.count == 0
        assert math.isnan(s.mean)
        assert math.isnan(s.sample_std)
        assert s.half_width(0.95) == math.inf

    def test_single_observation_variance_undefined(self):
        """Variance is NaN and the half-width infinite with one point."""
        s = RunningStatistics()
        s.collect(3.0)
        assert s.mean == 3.0
        assert math.isnan(s.variance)
        assert s.half_width(0.99) == math.inf

    def test_mean_and_variance(self, stats, data):
        """Running moments match numpy on the same data."""
        assert stats.count == len(data)
        assert stats.mean == pytest.approx(np.mean(data))
        assert stats.variance == pytest.approx(np.var(data, ddof=1))
        assert stats.sample_std == pytest.approx(np.std(data, ddof=1))
        assert stats.standard_error == pytest.approx(
            np.std(data, ddof=1) / np.sqrt(len(data)))

    def test_min_max_sum(self, stats, data):
        """Extremes and sum track every observation."""
        assert stats.min == 2.0
        assert stats.max == 9.0
        assert stats.sum == pytest.approx(sum(data))

    def test_large_offset_stability(self):
        """Welford keeps precision where the naive sum of squares would not."""
        base = 1e9
        s = RunningStatistics()
        s.collect_all([base + 4, base + 7, base + 13, base + 16])
        assert s.variance == pytest.approx(30.0)

    def test_reset(self, stats):
        """reset() returns the aggregate to its empty state."""
        stats.reset()
        assert stats.count == 0
        assert math.isnan(stats.mean)
        assert stats.sum == 0.0


# ---------------------------------------------------------------------------
# Half-width
# ---------------------------------------------------------------------------
class TestHalfWidth:
    """Confidence-interval half-widths."""

    def test_student_t_half_width(self, stats, data):
        """Half-width uses the Student-t quantile with n-1 df."""
        n = len(data)
        expected = t_dist.ppf(0.975, n - 1) * np.std(data, ddof=1) / np.sqrt(n)
        assert stats.half_width(0.95) == pytest.approx(expected)

    def test_normal_quantile_for_large_samples(self):
        """Above the large-sample threshold the normal quantile is used."""
        assert critical_value(0.95, LARGE_SAMPLE_DF + 5) == pytest.approx(norm.ppf(0.975))

    def test_large_df_shares_one_quantile(self):
        """Every df past the threshold maps to the same critical value."""
        assert critical_value(0.95, 50_000) == critical_value(0.95, LARGE_SAMPLE_DF)

    def test_quantile_cache_bounded_over_long_sequence(self):
        """Quantile lookups stay cached as the count grows past the threshold."""
        _quantile.cache_clear()
        rng = np.random.default_rng(11)
        s = RunningStatistics()
        for x in rng.normal(0.0, 1.0, 5_000):
            s.collect(x)
            s.half_width(0.99)
        assert _quantile.cache_info().misses <= LARGE_SAMPLE_DF

    def test_critical_value_non_increasing_in_df(self):
        """Critical values never grow with more degrees of freedom."""
        values = [critical_value(0.99, df) for df in range(1, 1500)]
        assert all(a >= b for a, b in zip(values, values[1:]))

    def test_higher_confidence_wider_interval(self, stats):
        """A higher confidence level gives a wider interval."""
        assert stats.half_width(0.99) > stats.half_width(0.95) > stats.half_width(0.80)

    def test_half_width_shrinks_with_more_data(self):
        """Half-width shrinks as observations accumulate."""
        rng = np.random.default_rng(7)
        s = RunningStatistics()
        widths = []
        for n in (10, 100, 1_000, 10_000):
            s.collect_all(rng.normal(0.0, 1.0, n - s.count))
            widths.append(s.half_width(0.95))
        assert all(a > b for a, b in zip(widths, widths[1:]))

    def test_confidence_interval_symmetric(self, stats):
        """The interval is centred on the mean."""
        lo, hi = stats.confidence_interval(0.95)
        assert stats.mean - lo == pytest.approx(hi - stats.mean)

    def test_invalid_confidence_level(self, stats):
        """Confidence outside (0, 1) is a configuration error."""
        with pytest.raises(ConfigurationError):
            stats.half_width(1.0)

    def test_zero_variance_zero_width(self):
        """Identical observations give a zero half-width."""
        s = RunningStatistics()
        s.collect_all([2.5] * 10)
        assert s.half_width(0.99) == 0.0


# ---------------------------------------------------------------------------
# Validation and sample size
# ---------------------------------------------------------------------------
class TestValidation:

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, stats, bad):
        """Non-finite values raise and leave the aggregate untouched."""
        before = (stats.count, stats.mean, stats.variance)
        with pytest.raises(NonFiniteObservationError):
            stats.collect(bad)
        assert (stats.count, stats.mean, stats.variance) == before

    def test_estimate_sample_size(self):
        """Normal-theory sample size matches (z*s/E)^2."""
        s = RunningStatistics()
        s.collect_all(np.random.default_rng(3).normal(0.0, 2.0, 500))
        z = norm.ppf(0.975)
        target = z * s.sample_std / 10.0
        assert s.estimate_sample_size(target, 0.95) in (100, 101)

    def test_estimate_sample_size_needs_two_points(self):
        """Sample-size estimate requires a sample variance."""
        s = RunningStatistics()
        s.collect(1.0)
        with pytest.raises(ValueError):
            s.estimate_sample_size(0.1)

    def test_estimate_sample_size_positive_target(self, stats):
        """Sample-size estimate rejects a non-positive target."""
        with pytest.raises(ConfigurationError):
            stats.estimate_sample_size(0.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
