"""
Exception hierarchy of the acquisition core.

Fatal errors (configuration, acquisition, transform) stop a run.
PersistenceFailure is reported but processing continues.
"""


class GateScopeError(Exception):
    """Base class for all gatescope errors."""


class ConfigurationError(GateScopeError):
    """Invalid acquisition configuration or threshold value."""


class StreamStateError(GateScopeError):
    """Lifecycle operation not allowed in the current run state."""


class AcquisitionFailure(GateScopeError):
    """Fault reported by the acquisition source (device error, overflow)."""


class TransformFailure(GateScopeError):
    """Spectral gating could not be applied to a block."""


class InvalidBlockSize(TransformFailure):
    """Block is empty or does not match the block size of the run."""

    def __init__(self, actual: int, expected: int | None = None):
        self.actual = actual
        self.expected = expected
        if expected is None:
            message = f"Block must not be empty (got {actual} samples)"
        else:
            message = f"Expected block of {expected} samples, got {actual}"
        super().__init__(message)


class PersistenceFailure(GateScopeError):
    """Writing the latest scalar to its fixed location failed."""
