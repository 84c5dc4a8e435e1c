"""
Sequential Monte Carlo Integration Engine
==========================================

Estimates E[h(X)] for a one-dimensional function h and a sampler X to a
requested absolute or relative precision, drawing only as many samples as
the confidence-interval half-width requires.

Modules:
    statistics   - Running (Welford) statistics with t-based half-widths
    config       - Stopping criterion and run configuration
    streams      - Reproducible random streams with antithetic reflection
    samplers     - Inverse-transform samplers over U(0,1) streams
    engine       - Pilot / refill stopping-rule state machine
    integrator   - One-dimensional integrator with antithetic variates

Author: Jose Orlando Bobadilla Fuentes | CQF
"""

from mcintegration.config import ErrorMode, StoppingCriterion
from mcintegration.engine import EngineState, MCResult, SequentialMCEngine
from mcintegration.exceptions import (ConfigurationError, EngineStateError,
                                      MCIntegrationError,
                                      MissingCollaboratorError,
                                      NonFiniteObservationError)
from mcintegration.integrator import OneDimensionalMCIntegrator, integrate
from mcintegration.samplers import (EmpiricalSampler, InverseTransformSampler,
                                    UniformSampler)
from mcintegration.statistics import RunningStatistics
from mcintegration.streams import RandomStream, StreamProvider

__version__ = "1.0.0"
__author__ = "Jose Orlando Bobadilla Fuentes"

__all__ = [
    "ErrorMode", "StoppingCriterion",
    "EngineState", "MCResult", "SequentialMCEngine",
    "ConfigurationError", "EngineStateError", "MCIntegrationError",
    "MissingCollaboratorError", "NonFiniteObservationError",
    "OneDimensionalMCIntegrator", "integrate",
    "EmpiricalSampler", "InverseTransformSampler", "UniformSampler",
    "RunningStatistics",
    "RandomStream", "StreamProvider",
]
