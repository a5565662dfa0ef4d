"""
Quantum Utilities for Validation and State Normalization.

This module provides utility functions for:
- Qubit/layer count validation
- Input dimension checks between classical and quantum stages
- Normalization of raw amplitude buffers into valid quantum states

Design Decisions:
- Validation raises ArgumentError / DimensionMismatch at the call boundary
- Normalization is out-of-place and differentiable (torch autograd)
- Zero-norm buffers fall back to the uniform superposition

Zero-norm rows:
  A classical layer can output an all-zero vector (e.g. after ReLU). Such a
  row is mapped to the uniform superposition 1/sqrt(2^n) instead of being
  divided by zero.
"""

import math
from typing import Union

import numpy as np
import torch

from .exceptions import ArgumentError, DimensionMismatch


MAX_QUBITS = 20
NORM_EPS = 1e-10
COMPLEX_DTYPE = torch.complex128
REAL_DTYPE = torch.float64


def validate_qubit_count(n_qubits: int) -> None:
    """
    Validate that the number of qubits is within simulation bounds.

    Args:
        n_qubits: Number of qubits

    Raises:
        ArgumentError: If n_qubits is not an integer in [1, MAX_QUBITS]
    """
    if isinstance(n_qubits, bool) or not isinstance(n_qubits, (int, np.integer)):
        raise ArgumentError(f"Number of qubits must be an integer, got {n_qubits!r}")
    if n_qubits < 1:
        raise ArgumentError(f"Number of qubits must be at least 1, got {n_qubits}")
    if n_qubits > MAX_QUBITS:
        raise ArgumentError(
            f"Number of qubits exceeds practical limit of {MAX_QUBITS}, got {n_qubits}"
        )


def validate_layer_count(n_layers: int) -> None:
    """Validate that a circuit has at least one layer."""
    if isinstance(n_layers, bool) or not isinstance(n_layers, (int, np.integer)):
        raise ArgumentError(f"Number of layers must be an integer, got {n_layers!r}")
    if n_layers < 1:
        raise ArgumentError(f"Number of layers must be at least 1, got {n_layers}")


def validate_input_dimension(inputs: Union[torch.Tensor, np.ndarray], expected: int) -> None:
    """
    Validate that the feature (last) dimension matches the expected size.

    Args:
        inputs: Tensor or array [..., features]
        expected: Expected feature dimension

    Raises:
        DimensionMismatch: If the last dimension differs
    """
    actual = inputs.shape[-1] if inputs.ndim > 0 else 0
    if actual != expected:
        raise DimensionMismatch(
            f"Input dimension mismatch: expected {expected}, got {actual}"
        )


def qubits_for_dimension(dim: int) -> int:
    """
    Return n such that dim == 2^n.

    Raises:
        ArgumentError: If dim is not a power of two or n is out of range
    """
    if dim < 2 or dim & (dim - 1):
        raise ArgumentError(f"State length must be a power of 2 (>= 2), got {dim}")
    n_qubits = int(dim).bit_length() - 1
    validate_qubit_count(n_qubits)
    return n_qubits


def as_complex_tensor(values) -> torch.Tensor:
    """Convert amplitudes to a complex128 tensor, keeping the autograd graph."""
    if isinstance(values, torch.Tensor):
        if values.is_complex():
            return values.to(COMPLEX_DTYPE)
        return values.to(REAL_DTYPE).to(COMPLEX_DTYPE)
    array = np.asarray(values)
    return torch.as_tensor(array.astype(np.complex128))


def normalize_state(amplitudes: torch.Tensor) -> torch.Tensor:
    """
    Normalize amplitudes along the last axis.

    Rows whose norm is below NORM_EPS are replaced by the uniform
    superposition. Always returns a new tensor.

    Args:
        amplitudes: Complex tensor [..., 2^n]

    Returns:
        Normalized complex tensor of the same shape
    """
    amplitudes = as_complex_tensor(amplitudes)
    dim = amplitudes.shape[-1]

    norm = torch.linalg.vector_norm(amplitudes, dim=-1, keepdim=True)
    degenerate = norm < NORM_EPS
    safe_norm = torch.where(degenerate, torch.ones_like(norm), norm)

    uniform = torch.full_like(amplitudes, 1.0 / math.sqrt(dim))
    return torch.where(degenerate, uniform, amplitudes / safe_norm)

