"""
Quantum Kernels with a Coherence Penalty.

k(x1, x2) = |<psi(x1)|psi(x2)>|^2 * exp(-w * (|S1 - T| + |S2 - T|) / 2)

where psi is the fractal feature map, S the entanglement entropy of each
encoded state, T the target entropy (1 bit) and w the coherence weight
(0.1). Averaging the two entropy deviations keeps k(x1, x2) == k(x2, x1).

Gram matrices encode every sample once, compute only the upper triangle and
mirror it; the diagonal is set to exactly 1.0. Both steps fan out over a
thread pool since samples and pairs are independent. A sample or pair that
fails numerically contributes 0.0 (with a warning) instead of aborting.

Data layout: rows are samples, columns are features.
"""

import itertools
import math
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np
import torch

from .encoding import fractal_feature_map
from .entanglement import EntanglementAnalyzer
from .exceptions import ArgumentError
from .state import StateVector
from .utils import validate_layer_count, validate_qubit_count


FeatureState = Optional[Tuple[StateVector, float]]


class QuantumKernel:
    """
    Fractal feature-map kernel.

    Attributes:
        n_qubits: Register size of the feature map
        n_layers: Feature-map depth
        coherence_weight: Penalty weight w
        target_entropy: Target entanglement entropy T (bits)
        num_workers: Thread-pool size for Gram matrices
    """

    def __init__(
        self,
        n_qubits: int,
        n_layers: int = 1,
        coherence_weight: float = 0.1,
        target_entropy: float = 1.0,
        num_workers: int = 1,
        subsystem: Optional[Sequence[int]] = None,
    ):
        validate_qubit_count(n_qubits)
        validate_layer_count(n_layers)
        if coherence_weight < 0:
            raise ArgumentError(f"coherence_weight must be >= 0, got {coherence_weight}")

        self.n_qubits = n_qubits
        self.n_layers = n_layers
        self.coherence_weight = coherence_weight
        self.target_entropy = target_entropy
        self.num_workers = max(1, int(num_workers))
        self.analyzer = EntanglementAnalyzer(subsystem=subsystem)

    def feature_state(self, x) -> Tuple[StateVector, float]:
        """Encoded state of one sample and its entanglement entropy."""
        with torch.no_grad():
            state = fractal_feature_map(x, self.n_qubits, self.n_layers)
        return state, self.analyzer.entropy(state)

    def _safe_feature_state(self, x) -> FeatureState:
        try:
            return self.feature_state(x)
        except Exception as exc:
            warnings.warn(f"Failed to encode sample for quantum kernel: {exc}", RuntimeWarning)
            return None

    def _pair_value(self, first: FeatureState, second: FeatureState) -> float:
        if first is None or second is None:
            return 0.0
        try:
            (state1, entropy1), (state2, entropy2) = first, second
            overlap = float(state1.overlap(state2))
            deviation = 0.5 * (abs(entropy1 - self.target_entropy) + abs(entropy2 - self.target_entropy))
            value = overlap * math.exp(-self.coherence_weight * deviation)
            if not math.isfinite(value):
                raise FloatingPointError(f"non-finite kernel value {value}")
            return min(max(value, 0.0), 1.0)
        except Exception as exc:
            warnings.warn(f"Error computing quantum kernel: {exc}", RuntimeWarning)
            return 0.0

    def __call__(self, x1, x2) -> float:
        """Kernel value of two samples; 0.0 on failure."""
        return self._pair_value(self._safe_feature_state(x1), self._safe_feature_state(x2))

    def _encode_all(self, X: np.ndarray) -> List[FeatureState]:
        rows = [X[i] for i in range(X.shape[0])]
        if self.num_workers == 1 or len(rows) <= 1:
            return [self._safe_feature_state(r) for r in rows]
        with ThreadPoolExecutor(max_workers=self.num_workers) as pool:
            return list(pool.map(self._safe_feature_state, rows))

    def _evaluate_pairs(self, pairs, left: List[FeatureState], right: List[FeatureState]) -> List[float]:
        def evaluate(pair):
            i, j = pair
            return self._pair_value(left[i], right[j])

        if self.num_workers == 1 or len(pairs) <= 1:
            return [evaluate(p) for p in pairs]
        with ThreadPoolExecutor(max_workers=self.num_workers) as pool:
            return list(pool.map(evaluate, pairs))

    def matrix(self, X, Y=None) -> np.ndarray:
        """
        Kernel matrix.

        Args:
            X: Samples [n, features]
            Y: Optional second set [m, features] for a cross kernel

        Returns:
            [n, n] symmetric Gram matrix with unit diagonal, or [n, m]
            cross-kernel matrix when Y is given
        """
        X = _as_samples(X)
        states_x = self._encode_all(X)

        if Y is not None:
            Y = _as_samples(Y)
            states_y = self._encode_all(Y)
            pairs = list(itertools.product(range(X.shape[0]), range(Y.shape[0])))
            values = self._evaluate_pairs(pairs, states_x, states_y)
            return np.asarray(values, dtype=np.float64).reshape(X.shape[0], Y.shape[0])

        n_samples = X.shape[0]
        K = np.eye(n_samples, dtype=np.float64)
        pairs = list(itertools.combinations(range(n_samples), 2))
        values = self._evaluate_pairs(pairs, states_x, states_x)
        for (i, j), value in zip(pairs, values):
            K[i, j] = value
            K[j, i] = value
        return K


def _as_samples(X) -> np.ndarray:
    if isinstance(X, torch.Tensor):
        X = X.detach().cpu().numpy()
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ArgumentError(f"Expected a 2D sample matrix [n_samples, n_features], got shape {X.shape}")
    return X


def quantum_kernel(
    x1,
    x2,
    n_qubits: int,
    n_layers: int,
    coherence_weight: float = 0.1,
) -> float:
    """
    Kernel value between two data points.

    Returns a value in [0, 1]; 0.0 (with a warning) on internal failure.
    """
    return QuantumKernel(n_qubits, n_layers, coherence_weight=coherence_weight)(x1, x2)


def kernel_matrix(
    X,
    n_qubits: int,
    n_layers: int,
    coherence_weight: float = 0.1,
    num_workers: int = 1,
) -> np.ndarray:
    """Symmetric Gram matrix [n_samples, n_samples] with unit diagonal."""
    engine = QuantumKernel(
        n_qubits, n_layers, coherence_weight=coherence_weight, num_workers=num_workers
    )
    return engine.matrix(X)


def center_kernel(K: np.ndarray) -> np.ndarray:
    n = K.shape[0]
    H = np.eye(n) - np.ones((n, n)) / n
    return H @ K @ H


def kernel_alignment(K: np.ndarray, y: np.ndarray) -> float:
    """Centered alignment of a kernel with labels y in {-1, +1}."""
    y = np.asarray(y, dtype=np.float64).reshape(-1, 1)
    Y = y @ y.T
    Kc = center_kernel(K)
    Yc = center_kernel(Y)
    num = np.sum(Kc * Yc)
    den = np.sqrt(np.sum(Kc * Kc) * np.sum(Yc * Yc) + 1e-12)
    return float(num / den)
