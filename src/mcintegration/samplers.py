"""
Inverse-Transform Samplers
===========================

Every sampler maps a U(0,1) stream through an inverse CDF, X = F^{-1}(U).
The antithetic counterpart reads the same stream reflected, X' = F^{-1}(1-U),
so (X, X') are negatively correlated for any monotone F^{-1}.

The integration engine only relies on the three methods of the Sampler
protocol; any object providing them can be integrated against.

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

import math
from abc import ABC, abstractmethod
from typing import Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from mcintegration.exceptions import ConfigurationError
from mcintegration.streams import RandomStream


@runtime_checkable
class Sampler(Protocol):
    """Capabilities the engine consumes from a random variate generator."""

    def sample(self) -> float:
        ...

    def new_antithetic_instance(self) -> Optional["Sampler"]:
        ...

    def reset_start_stream(self) -> None:
        ...


class _StreamSampler(ABC):
    """Shared stream handling for the concrete samplers."""

    def __init__(self, stream: Optional[RandomStream] = None):
        self.stream = stream if stream is not None else RandomStream()

    def reset_start_stream(self) -> None:
        self.stream.reset_start_stream()

    def sample_array(self, n: int) -> np.ndarray:
        return np.array([self.sample() for _ in range(n)])

    @abstractmethod
    def sample(self) -> float:
        pass

    @abstractmethod
    def _with_stream(self, stream: RandomStream):
        pass

    def new_instance(self, stream: Optional[RandomStream] = None):
        """Same parameters, new (or given) stream."""
        return self._with_stream(stream if stream is not None else RandomStream())

    def new_antithetic_instance(self):
        return self._with_stream(self.stream.new_antithetic_stream())


class UniformSampler(_StreamSampler):
    """
    U(low, high) sampler.

    Usage:
        >>> x = UniformSampler(0.0, math.pi, RandomStream(seed=1)).sample()
    """

    def __init__(self, low: float = 0.0, high: float = 1.0,
                 stream: Optional[RandomStream] = None):
        if not (math.isfinite(low) and math.isfinite(high)):
            raise ConfigurationError(f"Uniform bounds must be finite, got ({low}, {high})")
        if low >= high:
            raise ConfigurationError(
                f"Lower bound must be < upper bound, got ({low}, {high})")
        super().__init__(stream)
        self.low = float(low)
        self.high = float(high)

    def sample(self) -> float:
        return self.low + (self.high - self.low) * self.stream.random()

    def _with_stream(self, stream):
        return UniformSampler(self.low, self.high, stream)

    @property
    def mean(self) -> float:
        return 0.5 * (self.low + self.high)

    def __repr__(self) -> str:
        return f"UniformSampler(low={self.low}, high={self.high})"


class InverseTransformSampler(_StreamSampler):
    """
    Sampler over any frozen scipy.stats distribution via its ppf.

    Covers Weibull, Chi-squared, Poisson, Normal, Exponential, ...

    Usage:
        >>> from scipy import stats
        >>> w = InverseTransformSampler(stats.weibull_min(c=2.0, scale=3.0))
        >>> chi = InverseTransformSampler(stats.chi2(df=4), RandomStream(7))
    """

    def __init__(self, distribution, stream: Optional[RandomStream] = None):
        if distribution is None or not hasattr(distribution, "ppf"):
            raise ConfigurationError(
                "distribution must be a frozen scipy.stats distribution with a ppf")
        super().__init__(stream)
        self.distribution = distribution

    def sample(self) -> float:
        return float(self.distribution.ppf(self.stream.random()))

    def sample_array(self, n: int) -> np.ndarray:
        return np.asarray(self.distribution.ppf(self.stream.randoms(n)), dtype=np.float64)

    def _with_stream(self, stream):
        return InverseTransformSampler(self.distribution, stream)

    @property
    def mean(self) -> float:
        return float(self.distribution.mean())

    def __repr__(self) -> str:
        dist = getattr(self.distribution, "dist", None)
        label = getattr(dist, "name", type(self.distribution).__name__)
        return f"InverseTransformSampler({label}, args={getattr(self.distribution, 'args', ())})"


class EmpiricalSampler(_StreamSampler):
    """
    Resamples uniformly from observed data, X = data[floor(U * n)].

    The data is sorted once, so the index map is monotone and the
    antithetic instance picks from the opposite end of the sample.
    """

    def __init__(self, data: Sequence[float], stream: Optional[RandomStream] = None):
        arr = np.sort(np.asarray(data, dtype=np.float64).ravel())
        if arr.size == 0:
            raise ConfigurationError("Empirical data must contain at least one value")
        if not np.all(np.isfinite(arr)):
            raise ConfigurationError("Empirical data must be finite")
        super().__init__(stream)
        self.data = arr

    def sample(self) -> float:
        n = self.data.size
        i = min(int(self.stream.random() * n), n - 1)
        return float(self.data[i])

    def _with_stream(self, stream):
        return EmpiricalSampler(self.data, stream)

    @property
    def mean(self) -> float:
        return float(np.mean(self.data))

    def __repr__(self) -> str:
        return f"EmpiricalSampler(n={self.data.size})"
