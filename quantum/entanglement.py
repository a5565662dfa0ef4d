"""
Entanglement Analysis via Reduced Density Matrices.

Computes the von Neumann entropy of a bipartition of a pure state:

    rho_A = Tr_B |psi><psi|,   S(A) = -sum_k p_k log2(p_k + 1e-10)

where p_k are the eigenvalues of rho_A above 1e-10, renormalized to sum 1.
The default bipartition is A = first floor(n/2) qubits, B = the rest, so a
Bell pair on qubits (1, 2) has S = 1 bit.

Note: the density matrix of the *whole* register of a pure state has a
single non-zero eigenvalue and therefore zero entropy; only a proper
subsystem gives a meaningful entanglement measure.

Entropy is a monitoring signal: any numerical failure returns 0.0 with a
warning instead of raising.
"""

import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import numpy as np

from .exceptions import ArgumentError
from .state import StateVector


EIGENVALUE_EPS = 1e-10
LOG_EPS = 1e-10


def default_subsystem(n_qubits: int) -> Sequence[int]:
    """First floor(n/2) qubits (1-based)."""
    return tuple(range(1, n_qubits // 2 + 1))


def resolve_subsystem(n_qubits: int, subsystem: Optional[Sequence[int]]) -> Sequence[int]:
    """Validate a 1-based subsystem (None = default bipartition)."""
    if subsystem is None:
        return default_subsystem(n_qubits)
    qubits = tuple(int(q) for q in subsystem)
    if len(set(qubits)) != len(qubits):
        raise ArgumentError(f"Subsystem qubits must be distinct, got {qubits}")
    for q in qubits:
        if not 1 <= q <= n_qubits:
            raise ArgumentError(f"Subsystem qubit {q} out of range [1, {n_qubits}]")
    return qubits


def reduced_density_matrix(
    state: StateVector,
    subsystem: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """
    Partial trace of |psi><psi| over the complement of ``subsystem``.

    Args:
        state: Single (unbatched) state
        subsystem: 1-based qubits kept in A (default: first floor(n/2))

    Returns:
        Complex array [2^|A|, 2^|A|]
    """
    if state.is_batched:
        raise ArgumentError("reduced_density_matrix expects a single state")

    n_qubits = state.n_qubits
    kept = resolve_subsystem(n_qubits, subsystem)
    traced = [q for q in range(1, n_qubits + 1) if q not in kept]

    psi = state.numpy().reshape([2] * n_qubits)
    order = [q - 1 for q in kept] + [q - 1 for q in traced]
    psi = np.transpose(psi, order).reshape(2 ** len(kept), 2 ** len(traced))

    return psi @ psi.conj().T


def density_eigenvalues(rho: np.ndarray) -> np.ndarray:
    """Eigenvalues above EIGENVALUE_EPS, renormalized to sum to 1."""
    eigenvalues = np.linalg.eigvalsh(rho)
    eigenvalues = eigenvalues[eigenvalues > EIGENVALUE_EPS]
    if eigenvalues.size == 0:
        raise FloatingPointError("density matrix has no non-negligible eigenvalues")
    return eigenvalues / eigenvalues.sum()


def von_neumann_entropy(rho: np.ndarray) -> float:
    """Entropy in bits of a density matrix."""
    p = density_eigenvalues(rho)
    entropy = float(-np.sum(p * np.log2(p + LOG_EPS)))
    if not np.isfinite(entropy):
        raise FloatingPointError(f"non-finite entropy {entropy}")
    # log2(1 + 1e-10) > 0 makes pure states come out at about -1e-10
    return max(entropy, 0.0)


def entanglement_entropy(
    state: StateVector,
    subsystem: Optional[Sequence[int]] = None,
) -> float:
    """
    Von Neumann entropy (bits) of a single state's bipartition.

    Returns 0.0 with a warning on any numerical failure.
    """
    try:
        return von_neumann_entropy(reduced_density_matrix(state, subsystem))
    except ArgumentError:
        raise
    except Exception as exc:
        warnings.warn(f"Entanglement entropy failed, using 0.0: {exc}", RuntimeWarning)
        return 0.0


class EntanglementAnalyzer:
    """
    Entropy monitor for single or batched states.

    Attributes:
        subsystem: 1-based qubits of partition A (None = first floor(n/2))
        num_workers: Threads used for batched entropies
    """

    def __init__(self, subsystem: Optional[Sequence[int]] = None, num_workers: int = 1):
        self.subsystem = tuple(subsystem) if subsystem is not None else None
        self.num_workers = max(1, int(num_workers))

    def reduced_density_matrix(self, state: StateVector) -> np.ndarray:
        return reduced_density_matrix(state, self.subsystem)

    def eigenvalues(self, state: StateVector) -> np.ndarray:
        return density_eigenvalues(self.reduced_density_matrix(state))

    def entropy(self, state: StateVector) -> float:
        return entanglement_entropy(state, self.subsystem)

    def batch_entropy(self, states: StateVector) -> np.ndarray:
        """Entropy of every state in a batch [batch] (or a single state)."""
        if not states.is_batched:
            return np.array([self.entropy(states)])

        flat = StateVector(states.tensor.detach().reshape(-1, states.dim))
        samples = [flat[i] for i in range(len(flat))]
        if self.num_workers == 1 or len(samples) == 1:
            values = [self.entropy(s) for s in samples]
        else:
            with ThreadPoolExecutor(max_workers=self.num_workers) as pool:
                values = list(pool.map(self.entropy, samples))
        return np.asarray(values, dtype=np.float64).reshape(states.batch_shape)

    def mean_entropy(self, states: StateVector) -> float:
        """Mean entropy over a batch; 0.0 for an empty batch."""
        values = self.batch_entropy(states)
        if values.size == 0:
            return 0.0
        return float(np.mean(values))
