"""
Error kinds for the quantum simulator and hybrid pipeline.

Construction and call-boundary errors are fatal and always propagate.
Numerical problems in monitoring signals (entropy, kernel values) are
handled locally and never surface as these exceptions.
"""


class QuantumMLError(Exception):
    """Base class for all errors raised by this package."""


class ArgumentError(QuantumMLError, ValueError):
    """Invalid qubit/layer count, wrong parameter length or empty input."""


class DimensionMismatch(QuantumMLError, ValueError):
    """Shape mismatch between the classical and quantum stages."""


class InvalidGateError(QuantumMLError, IndexError):
    """Gate addresses a qubit outside the register."""


class BackendUnavailable(QuantumMLError, RuntimeError):
    """An acceleration backend could not be acquired for this call."""
