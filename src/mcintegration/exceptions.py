"""
exceptions.py
-------------
Error taxonomy for the integration engine.

Non-convergence is not an error: it is reported through
EngineState.MAX_SAMPLES_EXCEEDED on the result.
"""


class MCIntegrationError(Exception):
    """Base class for all integration engine errors."""


class ConfigurationError(MCIntegrationError, ValueError):
    """Invalid stopping criterion, sampler or run parameter."""


class MissingCollaboratorError(MCIntegrationError, TypeError):
    """A required function or sampler was not supplied."""


class NonFiniteObservationError(MCIntegrationError, ValueError):
    """An observation was NaN or infinite; the evaluation is aborted."""


class EngineStateError(MCIntegrationError, RuntimeError):
    """An operation was requested from a state that does not allow it."""
