"""
One-Dimensional Monte Carlo Integration
=========================================

Estimates theta = E[h(X)] where X is drawn by the supplied sampler.

The caller chooses the factorization. For the integral of g over [a, b]
with a U(a, b) sampler, h(x) = (b - a) * g(x). For a sampler with density
w(x) on [a, b], h(x) = g(x) / w(x), which lets the sampler act as an
importance-sampling density.

Antithetic variates (on by default):

    Y_i = [h(X_i) + h(X_i')] / 2,   X_i = F^{-1}(U_i),  X_i' = F^{-1}(1 - U_i)

    Var(Y_i) = [Var(h(X)) + Cov(h(X), h(X'))] / 2

Each observation is one antithetic pair, so the reported sample size counts
pairs and costs two function evaluations per observation.

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

import math
from typing import Callable, Optional

import pandas as pd

from mcintegration.config import ErrorMode, StoppingCriterion
from mcintegration.engine import EngineState, MCResult, SequentialMCEngine
from mcintegration.exceptions import MissingCollaboratorError, NonFiniteObservationError
from mcintegration.samplers import Sampler
from mcintegration.statistics import RunningStatistics
from mcintegration.utils import get_logger

log = get_logger(__name__)


class OneDimensionalMCIntegrator:
    """
    Sequential MC integrator of a 1-D function against a sampler.

    Usage:
        >>> h = lambda x: math.pi * math.sin(x)
        >>> mc = OneDimensionalMCIntegrator(h, UniformSampler(0.0, math.pi),
        ...                                 desired_error=0.01)
        >>> result = mc.evaluate()
        >>> round(result.estimate, 1)
        2.0
    """

    def __init__(self, function: Callable[[float], float], sampler: Sampler,
                 desired_error: float = 0.001,
                 confidence_level: float = 0.99,
                 initial_sample_size: int = 100,
                 max_sample_size: int = 100_000,
                 error_mode: ErrorMode = ErrorMode.ABSOLUTE,
                 antithetic: bool = True,
                 reset_stream_on_evaluate: bool = False,
                 trace_interval: int = 1000,
                 name: str = "mc1d"):
        if function is None:
            raise MissingCollaboratorError("The function was None")
        if not callable(function):
            raise MissingCollaboratorError(
                f"The function must be callable, got {type(function).__name__}")
        if sampler is None:
            raise MissingCollaboratorError("The sampler was None")
        if not isinstance(sampler, Sampler):
            raise MissingCollaboratorError(
                f"{type(sampler).__name__} does not provide sample(), "
                "new_antithetic_instance() and reset_start_stream()")

        self._function = function
        self._sampler = sampler
        self._antithetic_sampler = None
        if antithetic:
            self._antithetic_sampler = sampler.new_antithetic_instance()
            if self._antithetic_sampler is None:
                log.warning("%s: %r has no antithetic instance, sampling independently",
                            name, sampler)

        criterion = StoppingCriterion(
            desired_error=desired_error, confidence_level=confidence_level,
            initial_sample_size=initial_sample_size,
            max_sample_size=max_sample_size, error_mode=error_mode)
        self.engine = SequentialMCEngine(
            self, criterion, reset_stream_on_evaluate=reset_stream_on_evaluate,
            trace_interval=trace_interval, name=name)

    # ------------------------------------------------------------------
    # Observation source
    # ------------------------------------------------------------------
    @property
    def function(self) -> Callable[[float], float]:
        return self._function

    @property
    def sampler(self) -> Sampler:
        return self._sampler

    @property
    def antithetic_sampler(self) -> Optional[Sampler]:
        return self._antithetic_sampler

    @property
    def antithetic(self) -> bool:
        return self._antithetic_sampler is not None

    @property
    def evaluations_per_observation(self) -> int:
        return 2 if self.antithetic else 1

    def _fx(self, x: float) -> float:
        y = float(self._function(x))
        if not math.isfinite(y):
            raise NonFiniteObservationError(f"h({x!r}) returned {y}")
        return y

    def next_observation(self) -> float:
        if self._antithetic_sampler is None:
            return self._fx(self._sampler.sample())
        y1 = self._fx(self._sampler.sample())
        y2 = self._fx(self._antithetic_sampler.sample())
        return (y1 + y2) / 2.0

    def reset_streams(self) -> None:
        """Rewind the primary stream and, with it, the antithetic stream."""
        self._sampler.reset_start_stream()
        if self._antithetic_sampler is not None:
            self._antithetic_sampler.reset_start_stream()

    # ------------------------------------------------------------------
    # Engine delegation
    # ------------------------------------------------------------------
    @property
    def state(self) -> EngineState:
        return self.engine.state

    @property
    def statistics(self) -> RunningStatistics:
        return self.engine.statistics

    @property
    def criterion(self) -> StoppingCriterion:
        return self.engine.criterion

    @criterion.setter
    def criterion(self, value: StoppingCriterion) -> None:
        self.engine.criterion = value

    @property
    def reset_stream_on_evaluate(self) -> bool:
        return self.engine.reset_stream_on_evaluate

    @reset_stream_on_evaluate.setter
    def reset_stream_on_evaluate(self, flag: bool) -> None:
        self.engine.reset_stream_on_evaluate = bool(flag)

    def run_pilot(self) -> EngineState:
        return self.engine.run_pilot()

    def run_main(self) -> EngineState:
        return self.engine.run_main()

    def evaluate(self) -> MCResult:
        return self.engine.evaluate()

    def resume(self, max_sample_size: Optional[int] = None,
               desired_error: Optional[float] = None) -> MCResult:
        return self.engine.resume(max_sample_size, desired_error)

    def result(self) -> MCResult:
        return self.engine.result()

    def trace_frame(self) -> pd.DataFrame:
        return self.engine.trace_frame()

    def __str__(self) -> str:
        mode = "antithetic" if self.antithetic else "independent"
        return (f"OneDimensionalMCIntegrator({self._sampler!r}, {mode})\n"
                f"{self.result().summary()}")


def integrate(function: Callable[[float], float], sampler: Sampler,
              **kwargs) -> MCResult:
    """One-shot evaluation; keyword arguments go to OneDimensionalMCIntegrator."""
    return OneDimensionalMCIntegrator(function, sampler, **kwargs).evaluate()
