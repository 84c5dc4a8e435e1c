"""
Running Statistics
===================

Single-pass accumulation of count, mean and sample variance using Welford's
update, with Student-t confidence-interval half-widths.

    mean_n = mean_{n-1} + (x_n - mean_{n-1}) / n
    M2_n   = M2_{n-1} + (x_n - mean_{n-1}) * (x_n - mean_n)
    s^2    = M2_n / (n - 1)
    hw     = t_{n-1, 1-alpha/2} * s / sqrt(n)

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

import math
from functools import lru_cache
from typing import Iterable, Tuple

import numpy as np
from scipy.stats import norm, t as t_dist

from mcintegration.exceptions import ConfigurationError, NonFiniteObservationError

# Degrees of freedom beyond which the normal quantile replaces Student-t.
LARGE_SAMPLE_DF = 1000


@lru_cache(maxsize=4096)
def _quantile(confidence_level: float, df: int) -> float:
    q = 1.0 - (1.0 - confidence_level) / 2.0
    if df >= LARGE_SAMPLE_DF:
        return float(norm.ppf(q))
    return float(t_dist.ppf(q, df))


def critical_value(confidence_level: float, df: int) -> float:
    """Two-sided critical value t_{df, 1-alpha/2} (normal when df is large)."""
    if not 0.0 < confidence_level < 1.0:
        raise ConfigurationError(
            f"Confidence level must be in (0, 1), got {confidence_level}")
    # every df past the threshold shares one cache entry
    return _quantile(confidence_level, min(int(df), LARGE_SAMPLE_DF))


class RunningStatistics:
    """
    Numerically stable running mean / variance of a stream of observations.

    Usage:
        >>> stats = RunningStatistics()
        >>> stats.collect_all([1.0, 2.0, 3.0])
        >>> stats.mean, stats.sample_std
        (2.0, 1.0)
    """

    def __init__(self, name: str = "statistics"):
        self.name = name
        self.reset()

    def reset(self) -> None:
        """Clear all accumulators to the empty state."""
        self._n = 0
        self._mean = 0.0
        self._m2 = 0.0
        self._sum = 0.0
        self._min = math.inf
        self._max = -math.inf

    def collect(self, value: float) -> None:
        """Fold one observation into the running moments."""
        x = float(value)
        if not math.isfinite(x):
            raise NonFiniteObservationError(
                f"{self.name}: cannot collect non-finite observation {value!r}")
        self._n += 1
        delta = x - self._mean
        self._mean += delta / self._n
        self._m2 += delta * (x - self._mean)
        self._sum += x
        if x < self._min:
            self._min = x
        if x > self._max:
            self._max = x

    def collect_all(self, values: Iterable[float]) -> None:
        """Fold every value of an iterable or array, in order."""
        for v in np.asarray(values, dtype=np.float64).ravel():
            self.collect(v)

    @property
    def count(self) -> int:
        return self._n

    @property
    def mean(self) -> float:
        """Sample mean; NaN before the first observation."""
        return self._mean if self._n > 0 else math.nan

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def min(self) -> float:
        return self._min if self._n > 0 else math.nan

    @property
    def max(self) -> float:
        return self._max if self._n > 0 else math.nan

    @property
    def variance(self) -> float:
        """Unbiased sample variance; NaN when count < 2."""
        if self._n < 2:
            return math.nan
        return max(self._m2 / (self._n - 1), 0.0)

    @property
    def sample_std(self) -> float:
        return math.sqrt(self.variance) if self._n >= 2 else math.nan

    @property
    def standard_error(self) -> float:
        return self.sample_std / math.sqrt(self._n) if self._n >= 2 else math.nan

    def half_width(self, confidence_level: float = 0.95) -> float:
        """Confidence-interval half-width; +inf when count < 2."""
        if self._n < 2:
            return math.inf
        return critical_value(confidence_level, self._n - 1) * self.standard_error

    def confidence_interval(self, confidence_level: float = 0.95) -> Tuple[float, float]:
        hw = self.half_width(confidence_level)
        return self.mean - hw, self.mean + hw

    def estimate_sample_size(self, desired_half_width: float,
                             confidence_level: float = 0.95) -> int:
        """
        Normal-theory sample size n = ceil((z * s / E)^2) for a target
        half-width E, using the current sample standard deviation as s.
        """
        if desired_half_width <= 0:
            raise ConfigurationError(
                f"Desired half-width must be positive, got {desired_half_width}")
        if self._n < 2:
            raise ValueError("Need at least 2 observations to estimate a sample size")
        z = critical_value(confidence_level, LARGE_SAMPLE_DF)
        return int(math.ceil((z * self.sample_std / desired_half_width) ** 2))

    def __repr__(self) -> str:
        return (f"RunningStatistics(name={self.name!r}, count={self._n}, "
                f"mean={self.mean:.6g}, std={self.sample_std:.6g})")
