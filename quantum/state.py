"""
Dense State-Vector Representation.

A StateVector holds the 2^n complex amplitudes of an n-qubit pure state,
optionally with leading batch dimensions (one state per row). It is a value
type: the constructor copies and normalizes its input, and every gate or
circuit application returns a *new* StateVector.

Conventions:
- Qubits are numbered 1..n; qubit 1 is the most significant bit of the
  basis index (same wire order as PennyLane's ``qml.state()``).
- Amplitudes are complex128 torch tensors, so gradients flow from any
  downstream loss back into rotation angles and classical layers.
"""

import math
from typing import Sequence, Tuple, Union

import numpy as np
import torch

from .exceptions import ArgumentError
from .utils import (
    COMPLEX_DTYPE,
    as_complex_tensor,
    normalize_state,
    qubits_for_dimension,
    validate_qubit_count,
)


class StateVector:
    """
    Normalized n-qubit pure state (or batch of states).

    The only way to obtain an updated state is through the return value of
    a transformation; there are no in-place operations.

    Attributes:
        n_qubits: Number of qubits n
        dim: Hilbert-space dimension 2^n
        batch_shape: Leading batch dimensions (empty for a single state)
    """

    __slots__ = ("_amplitudes", "n_qubits")

    def __init__(self, amplitudes: Union[torch.Tensor, np.ndarray, Sequence[complex]]):
        """
        Build a state from raw amplitudes.

        Args:
            amplitudes: Complex or real values [..., 2^n]. Zero-norm rows
                fall back to the uniform superposition.

        Raises:
            ArgumentError: If the last dimension is not 2^n with 1 <= n <= 20
        """
        tensor = as_complex_tensor(amplitudes)
        if tensor.ndim == 0:
            raise ArgumentError("State amplitudes must have at least one dimension")

        self.n_qubits = qubits_for_dimension(tensor.shape[-1])
        # normalize_state always allocates, so the caller's buffer is never aliased
        self._amplitudes = normalize_state(tensor)

    @classmethod
    def zero(cls, n_qubits: int, batch_shape: Tuple[int, ...] = ()) -> "StateVector":
        """The computational basis state |0...0>."""
        validate_qubit_count(n_qubits)
        amps = torch.zeros(*batch_shape, 2 ** n_qubits, dtype=COMPLEX_DTYPE)
        amps[..., 0] = 1.0
        return cls(amps)

    @classmethod
    def uniform(cls, n_qubits: int) -> "StateVector":
        """The uniform superposition 1/sqrt(2^n) on every amplitude."""
        validate_qubit_count(n_qubits)
        dim = 2 ** n_qubits
        return cls(torch.full((dim,), 1.0 / math.sqrt(dim), dtype=COMPLEX_DTYPE))

    @classmethod
    def stack(cls, states: Sequence["StateVector"]) -> "StateVector":
        """Stack single states into a batch [len(states), 2^n]."""
        if not states:
            raise ArgumentError("Cannot stack an empty sequence of states")
        return cls(torch.stack([s.tensor for s in states], dim=0))

    @property
    def tensor(self) -> torch.Tensor:
        """Underlying amplitude tensor. Treat as read-only."""
        return self._amplitudes

    @property
    def amplitudes(self) -> torch.Tensor:
        """Copy of the amplitudes (safe to modify)."""
        return self._amplitudes.clone()

    @property
    def dim(self) -> int:
        return self._amplitudes.shape[-1]

    @property
    def batch_shape(self) -> Tuple[int, ...]:
        return tuple(self._amplitudes.shape[:-1])

    @property
    def is_batched(self) -> bool:
        return len(self.batch_shape) > 0

    def __len__(self) -> int:
        if not self.is_batched:
            raise TypeError("len() of an unbatched StateVector")
        return self.batch_shape[0]

    def __getitem__(self, index) -> "StateVector":
        if not self.is_batched:
            raise TypeError("Only batched StateVectors can be indexed")
        return StateVector(self._amplitudes[index])

    def norm(self) -> torch.Tensor:
        """Euclidean norm per state (1.0 up to rounding)."""
        return torch.linalg.vector_norm(self._amplitudes, dim=-1)

    def is_normalized(self, atol: float = 1e-9) -> bool:
        squared = torch.sum(self._amplitudes.detach().abs() ** 2, dim=-1)
        return bool(torch.all(torch.abs(squared - 1.0) <= atol))

    def probabilities(self) -> torch.Tensor:
        """Born-rule probabilities |a_k|^2."""
        return self._amplitudes.abs() ** 2

    def real(self) -> torch.Tensor:
        """Real part of the amplitudes (float64)."""
        return self._amplitudes.real

    def overlap(self, other: "StateVector") -> torch.Tensor:
        """Fidelity |<self|other>|^2 (batched along leading dimensions)."""
        if other.dim != self.dim:
            raise ArgumentError(
                f"Cannot compare states of dimension {self.dim} and {other.dim}"
            )
        inner = torch.sum(self._amplitudes.conj() * other.tensor, dim=-1)
        return inner.abs() ** 2

    def detach(self) -> "StateVector":
        return StateVector(self._amplitudes.detach())

    def to(self, device) -> "StateVector":
        return StateVector(self._amplitudes.to(device))

    def numpy(self) -> np.ndarray:
        """Detached complex128 numpy copy of the amplitudes."""
        return self._amplitudes.detach().cpu().numpy().copy()

    def __repr__(self) -> str:
        batch = f", batch_shape={self.batch_shape}" if self.is_batched else ""
        return f"StateVector(n_qubits={self.n_qubits}{batch})"
