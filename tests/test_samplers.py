"""
Unit Tests -- Random Streams and Samplers
==========================================
Stream reproducibility, antithetic reflection, stream provider
independence, and inverse-transform samplers.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

import math
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import numpy as np
import pytest
from scipy import stats

from mcintegration.exceptions import ConfigurationError
from mcintegration.samplers import (EmpiricalSampler, InverseTransformSampler,
                                    _StreamSampler, Sampler, UniformSampler)
from mcintegration.streams import RandomStream, StreamProvider


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def stream():
    return RandomStream(seed=42)


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------
class TestRandomStream:

    def test_values_in_unit_interval(self, stream):
        """Draws lie in [0, 1)."""
        u = stream.randoms(10_000)
        assert np.all((u >= 0.0) & (u < 1.0))

    def test_reset_reproduces_sequence(self, stream):
        """Rewinding replays the same draws."""
        first = [stream.random() for _ in range(20)]
        stream.reset_start_stream()
        assert [stream.random() for _ in range(20)] == first

    def test_same_seed_same_sequence(self):
        """Two streams with one seed agree."""
        a, b = RandomStream(seed=9), RandomStream(seed=9)
        assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]

    def test_vector_matches_scalar_draws(self):
        """randoms(n) equals n calls to random()."""
        a, b = RandomStream(seed=11), RandomStream(seed=11)
        np.testing.assert_array_equal(a.randoms(50), [b.random() for _ in range(50)])

    def test_antithetic_stream_reflects(self, stream):
        """The antithetic stream yields 1 - u for each u."""
        anti = stream.new_antithetic_stream()
        assert anti.antithetic
        for _ in range(100):
            assert stream.random() + anti.random() == pytest.approx(1.0)

    def test_antithetic_of_antithetic_is_plain(self, stream):
        """Reflecting twice gives back the plain stream."""
        twice = stream.new_antithetic_stream().new_antithetic_stream()
        assert not twice.antithetic
        assert twice.random() == stream.random()


class TestStreamProvider:

    def test_streams_are_distinct(self):
        """Spawned streams do not repeat each other."""
        provider = StreamProvider(seed=2024)
        s1, s2 = provider.next_stream(), provider.next_stream()
        assert [s1.random() for _ in range(5)] != [s2.random() for _ in range(5)]
        assert len(provider) == 2

    def test_provider_reproducible(self):
        """Providers with one seed hand out the same streams."""
        a, b = StreamProvider(seed=5), StreamProvider(seed=5)
        assert a.stream(3).random() == b.stream(3).random()
        assert len(a) == 3

    def test_reset_all(self):
        """reset_all() rewinds every stream handed out."""
        provider = StreamProvider(seed=1)
        s = provider.stream(1)
        first = s.random()
        s.random()
        provider.reset_all()
        assert s.random() == first

    def test_stream_numbers_start_at_one(self):
        """Streams are numbered from 1."""
        with pytest.raises(IndexError):
            StreamProvider(seed=1).stream(0)


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------
class TestSamplerBase:

    def test_base_cannot_be_instantiated(self, stream):
        """The shared sampler base is abstract."""
        with pytest.raises(TypeError):
            _StreamSampler(stream)

    def test_subclass_must_provide_with_stream(self, stream):
        """A subclass without _with_stream cannot be built."""
        class HalfDone(_StreamSampler):
            def sample(self):
                return self.stream.random()

        with pytest.raises(TypeError):
            HalfDone(stream)

    def test_complete_subclass_gets_antithetic_instance(self, stream):
        """A complete subclass inherits antithetic pairing."""
        class Identity(_StreamSampler):
            def sample(self):
                return self.stream.random()

            def _with_stream(self, s):
                return Identity(s)

        s = Identity(stream)
        a = s.new_antithetic_instance()
        assert s.sample() + a.sample() == pytest.approx(1.0)


class TestUniformSampler:

    def test_support(self, stream):
        """Uniform draws stay within the bounds."""
        s = UniformSampler(0.0, math.pi, stream)
        x = s.sample_array(5_000)
        assert np.all((x >= 0.0) & (x < math.pi))
        assert abs(x.mean() - math.pi / 2) < 0.05

    @pytest.mark.parametrize("low,high", [(1.0, 1.0), (2.0, 1.0), (0.0, math.inf)])
    def test_invalid_bounds(self, low, high):
        """Degenerate or infinite bounds are rejected."""
        with pytest.raises(ConfigurationError):
            UniformSampler(low, high)

    def test_antithetic_pairs_sum_to_bounds(self, stream):
        """Primary and antithetic draws mirror around the midpoint."""
        s = UniformSampler(-1.0, 3.0, stream)
        a = s.new_antithetic_instance()
        for _ in range(50):
            assert s.sample() + a.sample() == pytest.approx(2.0)

    def test_reset_start_stream(self, stream):
        """Resetting the sampler replays its first draw."""
        s = UniformSampler(0.0, 1.0, stream)
        x = s.sample()
        s.reset_start_stream()
        assert s.sample() == x

    def test_satisfies_protocol(self, stream):
        """Concrete samplers satisfy the Sampler protocol."""
        assert isinstance(UniformSampler(0.0, 1.0, stream), Sampler)


class TestInverseTransformSampler:

    def test_exponential_mean(self, stream):
        """Exponential draws have the expected mean."""
        s = InverseTransformSampler(stats.expon(scale=2.0), stream)
        assert abs(s.sample_array(20_000).mean() - 2.0) < 0.1
        assert s.mean == pytest.approx(2.0)

    def test_weibull_antithetic_negatively_correlated(self, stream):
        """Weibull antithetic pairs are negatively correlated."""
        s = InverseTransformSampler(stats.weibull_min(c=1.5, scale=1.0), stream)
        a = s.new_antithetic_instance()
        x = np.array([s.sample() for _ in range(2_000)])
        y = np.array([a.sample() for _ in range(2_000)])
        assert np.corrcoef(x, y)[0, 1] < -0.5

    def test_discrete_distribution(self, stream):
        """Discrete scipy distributions sample integers."""
        s = InverseTransformSampler(stats.poisson(mu=3.0), stream)
        x = s.sample_array(1_000)
        assert np.all(x == np.floor(x))
        assert np.all(x >= 0)

    def test_rejects_non_distribution(self):
        """Objects without ppf are rejected."""
        with pytest.raises(ConfigurationError):
            InverseTransformSampler(None)
        with pytest.raises(ConfigurationError):
            InverseTransformSampler(object())

    def test_new_instance_keeps_parameters(self, stream):
        """new_instance() keeps the distribution on a new stream."""
        s = InverseTransformSampler(stats.chi2(df=4), stream)
        other = s.new_instance(RandomStream(seed=3))
        assert other.distribution is s.distribution
        assert other.stream is not s.stream


class TestEmpiricalSampler:

    def test_samples_come_from_data(self, stream):
        """Empirical draws come from the data set."""
        data = [3.0, 1.0, 2.0, 5.0]
        s = EmpiricalSampler(data, stream)
        assert set(s.sample_array(500)) <= set(data)

    def test_antithetic_picks_opposite_end(self, stream):
        """Antithetic empirical draws come from the opposite end."""
        s = EmpiricalSampler(np.arange(100.0), stream)
        a = s.new_antithetic_instance()
        for _ in range(50):
            assert 98.0 <= s.sample() + a.sample() <= 100.0

    def test_invalid_data(self):
        """Empty or non-finite data is rejected."""
        with pytest.raises(ConfigurationError):
            EmpiricalSampler([])
        with pytest.raises(ConfigurationError):
            EmpiricalSampler([1.0, math.nan])


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
