"""
config.py
---------
Stopping-criterion and run configuration.

StoppingCriterion is validated on construction, so a bad desired error or
sample size fails here and never half-way through an evaluation. RunConfig
reads its defaults from environment variables, which makes the command-line
driver portable across shells and CI jobs.
"""

import math
import numbers
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from mcintegration.exceptions import ConfigurationError


def _as_float(label: str, value) -> float:
    """Finite real number, rejecting strings and booleans."""
    if isinstance(value, (bool, str)) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigurationError(f"{label} must be finite, got {value}")
    return float(value)


def _as_size(label: str, value) -> int:
    """Finite integral number (2 or 2.0), returned as int."""
    x = _as_float(label, value)
    if not x.is_integer():
        raise ConfigurationError(f"{label} must be an integer, got {value!r}")
    return int(x)


class ErrorMode(Enum):
    """How the half-width is compared with the desired error."""
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class StoppingCriterion:
    """
    Precision target and sample budget for one evaluation.

    Attributes:
        desired_error: Target half-width (absolute) or half-width / |mean|
            (relative). Must be positive.
        confidence_level: Confidence level of the half-width, in (0, 1).
        initial_sample_size: Pilot sample size, at least 2.
        max_sample_size: Hard ceiling on observations, >= initial_sample_size.
        error_mode: ErrorMode.ABSOLUTE or ErrorMode.RELATIVE.

    Example:
        >>> c = StoppingCriterion(desired_error=0.01, confidence_level=0.99)
    """
    desired_error: float = 0.001
    confidence_level: float = 0.95
    initial_sample_size: int = 100
    max_sample_size: int = 100_000
    error_mode: ErrorMode = ErrorMode.ABSOLUTE

    def __post_init__(self):
        if isinstance(self.error_mode, str):
            try:
                object.__setattr__(self, "error_mode",
                                   ErrorMode(self.error_mode.lower()))
            except ValueError:
                raise ConfigurationError(
                    f"Unknown error mode {self.error_mode!r}") from None
        if not isinstance(self.error_mode, ErrorMode):
            raise ConfigurationError(
                f"error_mode must be an ErrorMode, got {self.error_mode!r}")
        object.__setattr__(self, "desired_error",
                           _as_float("Desired error", self.desired_error))
        object.__setattr__(self, "confidence_level",
                           _as_float("Confidence level", self.confidence_level))
        object.__setattr__(self, "initial_sample_size",
                           _as_size("Initial sample size", self.initial_sample_size))
        object.__setattr__(self, "max_sample_size",
                           _as_size("Maximum sample size", self.max_sample_size))

        if self.desired_error <= 0:
            raise ConfigurationError(
                f"Desired error must be positive, got {self.desired_error}")
        if not 0.0 < self.confidence_level < 1.0:
            raise ConfigurationError(
                f"Confidence level must be in (0, 1), got {self.confidence_level}")
        if self.initial_sample_size < 2:
            raise ConfigurationError(
                f"Initial sample size must be >= 2, got {self.initial_sample_size}")
        if self.max_sample_size < self.initial_sample_size:
            raise ConfigurationError(
                f"Maximum sample size ({self.max_sample_size}) must be >= "
                f"initial sample size ({self.initial_sample_size})")

    @property
    def is_relative(self) -> bool:
        return self.error_mode is ErrorMode.RELATIVE

    def with_changes(self, **changes) -> "StoppingCriterion":
        """Validated copy with the given fields replaced."""
        return replace(self, **changes)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class RunConfig:
    """Driver-level settings (seed, logging, outputs)."""
    seed: Optional[int] = field(default_factory=lambda: _env_int("MCI_SEED", None))
    log_level: str = field(default_factory=lambda: os.getenv("MCI_LOG_LEVEL", "INFO"))
    log_dir: Optional[str] = field(default_factory=lambda: os.getenv("MCI_LOG_DIR") or None)
    output_dir: str = field(default_factory=lambda: os.getenv("MCI_OUTPUT_DIR", "outputs/figures"))
    trace_interval: int = field(default_factory=lambda: _env_int("MCI_TRACE_INTERVAL", 1000))

    def __post_init__(self):
        if self.trace_interval < 1:
            raise ConfigurationError(
                f"Trace interval must be >= 1, got {self.trace_interval}")
