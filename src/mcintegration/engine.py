"""
Sequential Monte Carlo Stopping-Rule Engine
=============================================

Two-phase sampling schedule driven by the confidence-interval half-width:

    1. Pilot:  draw n0 observations, then test the criterion once.
    2. Refill: project the total sample size from hw ~ 1/sqrt(n),

           m = ceil(n * (hw / hw_target)^2),

       draw up to min(m, max_sample_size) observations, testing the
       criterion after each one, and re-project if the projection ran out
       before convergence.

    absolute mode:  hw            <= desired_error
    relative mode:  hw / |mean|   <= desired_error   (never met when mean == 0)

The projection is an approximation (it ignores the shrinking t quantile and
the change of variance estimate between refills); the refill loop corrects
it, and max_sample_size is a hard ceiling on observations.

The engine is written against an ObservationSource: any object that can
produce one observation and rewind its random streams.

References:
    Chow, Y. S., & Robbins, H. (1965). On the Asymptotic Theory of Fixed-Width
    Sequential Confidence Intervals for the Mean. Ann. Math. Statist.

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import pandas as pd

from mcintegration.config import ErrorMode, StoppingCriterion
from mcintegration.exceptions import (ConfigurationError, EngineStateError,
                                      MissingCollaboratorError)
from mcintegration.statistics import RunningStatistics
from mcintegration.utils import get_logger, timeit

log = get_logger(__name__)


class EngineState(Enum):
    NOT_STARTED = "not_started"
    PILOT_RUNNING = "pilot_running"
    PILOT_COMPLETE = "pilot_complete"
    MAIN_RUNNING = "main_running"
    CONVERGED = "converged"
    MAX_SAMPLES_EXCEEDED = "max_samples_exceeded"


RUNNING_STATES = (EngineState.PILOT_RUNNING, EngineState.MAIN_RUNNING)


@runtime_checkable
class ObservationSource(Protocol):
    """Produces the observations the engine aggregates."""

    evaluations_per_observation: int

    def next_observation(self) -> float:
        ...

    def reset_streams(self) -> None:
        ...


@dataclass
class MCResult:
    """Statistics and status of an evaluation."""
    estimate: float
    std_error: float
    std_dev: float
    half_width: float
    ci_lower: float
    ci_upper: float
    confidence_level: float
    n_observations: int
    n_function_evaluations: int
    desired_error: float
    error_mode: ErrorMode
    achieved_error: float
    state: EngineState
    antithetic: bool = False

    @property
    def converged(self) -> bool:
        return self.state is EngineState.CONVERGED

    def summary(self, indent: str = "    ") -> str:
        unit = "pairs" if self.antithetic else "observations"
        return "\n".join([
            f"{indent}Estimate:       {self.estimate:.6f}",
            f"{indent}SE:             {self.std_error:.6f}",
            f"{indent}{self.confidence_level:.0%} CI:         "
            f"[{self.ci_lower:.6f}, {self.ci_upper:.6f}]",
            f"{indent}Half-width:     {self.half_width:.6f}",
            f"{indent}Error ({self.error_mode.value}): {self.achieved_error:.3g} "
            f"(desired {self.desired_error:.3g})",
            f"{indent}Sample size:    {self.n_observations:,} {unit}",
            f"{indent}Function evals: {self.n_function_evaluations:,}",
            f"{indent}Status:         {self.state.value}"
            f"{' (converged)' if self.converged else ''}",
        ])

    def to_dict(self) -> dict:
        d = asdict(self)
        d["error_mode"] = self.error_mode.value
        d["state"] = self.state.value
        d["converged"] = self.converged
        return d


class SequentialMCEngine:
    """
    Stopping-rule state machine over an ObservationSource.

    Lifecycle:
        NOT_STARTED -> PILOT_RUNNING -> PILOT_COMPLETE -> MAIN_RUNNING
        -> CONVERGED | MAX_SAMPLES_EXCEEDED

    evaluate() always starts fresh (statistics cleared); resume() continues
    from the current statistics with an extended budget.

    Usage:
        >>> engine = SequentialMCEngine(source, StoppingCriterion(0.01))
        >>> result = engine.evaluate()
        >>> result.converged
        True
    """

    def __init__(self, source: ObservationSource,
                 criterion: Optional[StoppingCriterion] = None,
                 reset_stream_on_evaluate: bool = False,
                 trace_interval: int = 1000,
                 name: str = "mc"):
        if source is None:
            raise MissingCollaboratorError("The observation source was None")
        if not callable(getattr(source, "next_observation", None)):
            raise MissingCollaboratorError(
                f"{source!r} does not provide next_observation()")
        if trace_interval < 1:
            raise ConfigurationError(f"trace_interval must be >= 1, got {trace_interval}")
        self.source = source
        self.name = name
        self.reset_stream_on_evaluate = reset_stream_on_evaluate
        self.trace_interval = int(trace_interval)
        self.statistics = RunningStatistics(name)
        self._criterion = criterion if criterion is not None else StoppingCriterion()
        self._state = EngineState.NOT_STARTED
        self._trace = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def criterion(self) -> StoppingCriterion:
        return self._criterion

    @criterion.setter
    def criterion(self, value: StoppingCriterion) -> None:
        if not isinstance(value, StoppingCriterion):
            raise TypeError(f"Expected a StoppingCriterion, got {type(value).__name__}")
        self._require_idle("change the stopping criterion")
        self._criterion = value

    def _require_idle(self, action: str) -> None:
        if self._state in RUNNING_STATES:
            raise EngineStateError(f"Cannot {action} while {self._state.value}")

    # ------------------------------------------------------------------
    # Stopping criterion
    # ------------------------------------------------------------------
    def achieved_error(self) -> float:
        """Half-width (absolute) or half-width / |mean| (relative)."""
        c = self._criterion
        hw = self.statistics.half_width(c.confidence_level)
        if not c.is_relative:
            return hw
        mean = self.statistics.mean
        if math.isnan(mean) or mean == 0.0:
            return math.inf
        return hw / abs(mean)

    def check_stopping_criterion(self) -> bool:
        if self.statistics.count < 2:
            return False
        if self._criterion.is_relative and self.statistics.mean == 0.0:
            log.debug("%s: relative error undefined at zero mean (n=%d)",
                      self.name, self.statistics.count)
            return False
        return self.achieved_error() <= self._criterion.desired_error

    def _target_half_width(self) -> float:
        c = self._criterion
        if c.is_relative:
            mean = self.statistics.mean
            return 0.0 if math.isnan(mean) else c.desired_error * abs(mean)
        return c.desired_error

    def projected_sample_size(self) -> int:
        """
        Total observations expected to reach the target half-width, capped
        at max_sample_size.
        """
        c = self._criterion
        n = self.statistics.count
        if n < 2:
            return c.initial_sample_size
        hw = self.statistics.half_width(c.confidence_level)
        target = self._target_half_width()
        if target <= 0.0:
            return c.max_sample_size
        if hw <= target:
            return n
        m = n * (hw / target) ** 2
        if not math.isfinite(m) or m >= c.max_sample_size:
            return c.max_sample_size
        return int(math.ceil(m))

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------
    def _record(self, phase: str) -> None:
        s = self.statistics
        if self._trace and self._trace[-1]["count"] == s.count:
            return
        self._trace.append({
            "count": s.count,
            "mean": s.mean,
            "half_width": s.half_width(self._criterion.confidence_level),
            "phase": phase,
        })

    def _draw(self, n: int, phase: str, check_each: bool) -> bool:
        stats = self.statistics
        for _ in range(n):
            stats.collect(self.source.next_observation())
            if stats.count % self.trace_interval == 0:
                self._record(phase)
            if check_each and self.check_stopping_criterion():
                return True
        return False

    def _guarded(self, fn, *args):
        try:
            return fn(*args)
        except BaseException:
            log.error("%s: evaluation aborted after %d observations",
                      self.name, self.statistics.count)
            self._state = EngineState.NOT_STARTED
            raise

    def run_pilot(self) -> EngineState:
        """Fresh start: clear statistics and draw the pilot sample."""
        self._require_idle("start a pilot run")
        c = self._criterion
        self.statistics.reset()
        self._trace = []
        if self.reset_stream_on_evaluate:
            self.source.reset_streams()

        self._state = EngineState.PILOT_RUNNING
        log.info("%s: pilot run of %d observations", self.name, c.initial_sample_size)
        self._guarded(self._draw, c.initial_sample_size, "pilot", False)
        self._record("pilot")

        if self.check_stopping_criterion():
            self._state = EngineState.CONVERGED
        elif self.statistics.count >= c.max_sample_size:
            self._state = EngineState.MAX_SAMPLES_EXCEEDED
        else:
            self._state = EngineState.PILOT_COMPLETE
        log.info("%s: pilot %s, mean=%.6g, error=%.3g",
                 self.name, self._state.value, self.statistics.mean,
                 self.achieved_error())
        return self._state

    def run_main(self) -> EngineState:
        """Refill phase after a non-converged pilot."""
        if self._state is not EngineState.PILOT_COMPLETE:
            raise EngineStateError(
                f"run_main() requires a completed pilot, state is {self._state.value}")
        self._state = EngineState.MAIN_RUNNING
        self._guarded(self._refill)
        return self._state

    def _refill(self) -> None:
        c = self._criterion
        stats = self.statistics
        while True:
            if self.check_stopping_criterion():
                self._state = EngineState.CONVERGED
                break
            n = stats.count
            if n >= c.max_sample_size:
                self._state = EngineState.MAX_SAMPLES_EXCEEDED
                break
            m = min(max(self.projected_sample_size(), n + 1), c.max_sample_size)
            log.debug("%s: n=%d, hw=%.4g, projected total %d",
                      self.name, n, stats.half_width(c.confidence_level), m)
            if self._draw(m - n, "main", True):
                self._state = EngineState.CONVERGED
                break

        self._record("main")
        if c.is_relative and stats.mean == 0.0:
            log.warning("%s: mean is zero, relative error is undefined", self.name)
        log.info("%s: %s after %d observations, mean=%.6g, error=%.3g",
                 self.name, self._state.value, stats.count, stats.mean,
                 self.achieved_error())

    @timeit
    def evaluate(self) -> MCResult:
        """Fresh evaluation: pilot, then refill until a terminal state."""
        if self.run_pilot() is EngineState.PILOT_COMPLETE:
            self.run_main()
        return self.result()

    @timeit
    def resume(self, max_sample_size: Optional[int] = None,
               desired_error: Optional[float] = None) -> MCResult:
        """
        Continue sampling from the current statistics without resetting.

        Parameters:
            max_sample_size: New observation ceiling (>= observations so far).
            desired_error: New precision target.
        """
        self._require_idle("resume")
        if self._state is EngineState.NOT_STARTED:
            raise EngineStateError("Nothing to resume, call evaluate() first")
        changes = {}
        if max_sample_size is not None:
            changes["max_sample_size"] = max_sample_size
        if desired_error is not None:
            changes["desired_error"] = desired_error
        criterion = self._criterion.with_changes(**changes) if changes else self._criterion
        if criterion.max_sample_size < self.statistics.count:
            raise EngineStateError(
                f"max_sample_size={criterion.max_sample_size} is below the "
                f"{self.statistics.count} observations already collected")
        self._criterion = criterion
        log.info("%s: resuming at n=%d with max_sample_size=%d",
                 self.name, self.statistics.count, criterion.max_sample_size)
        self._state = EngineState.MAIN_RUNNING
        self._guarded(self._refill)
        return self.result()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------
    def result(self) -> MCResult:
        s = self.statistics
        c = self._criterion
        hw = s.half_width(c.confidence_level)
        per_obs = getattr(self.source, "evaluations_per_observation", 1)
        return MCResult(
            estimate=s.mean, std_error=s.standard_error, std_dev=s.sample_std,
            half_width=hw, ci_lower=s.mean - hw, ci_upper=s.mean + hw,
            confidence_level=c.confidence_level,
            n_observations=s.count,
            n_function_evaluations=s.count * per_obs,
            desired_error=c.desired_error, error_mode=c.error_mode,
            achieved_error=self.achieved_error(), state=self._state,
            antithetic=bool(getattr(self.source, "antithetic", False)))

    def trace_frame(self) -> pd.DataFrame:
        """Convergence trace: count, mean, half_width, phase."""
        return pd.DataFrame(self._trace, columns=["count", "mean", "half_width", "phase"])

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.name})\n{self.result().summary()}"
