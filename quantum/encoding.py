"""
Fractal (Hierarchical) Angle Encoding.

Maps a classical feature vector to rotation angles where deeper qubits
summarize exponentially larger prefixes of the data:

    level_i = floor(log2(i + 1))                (qubit i, 1-based)
    angle_i = pi * mean(x_norm[: min(m, 2^level_i)])

with x_norm the min-max normalized input. Qubits 1-2 see the first two
features, qubits 3-6 the first four, qubits 7-14 the first eight, and so on.
The initial state is RX(angle_i) on every qubit of |0...0>.

Two encodings exist on top of the angles:
- ``encode``: the canonical single RX rotation per qubit (used by the hybrid
  model's fractal variant and by ``encode`` callers directly)
- ``fractal_feature_map``: ``encode`` followed by ``n_layers`` of the standard
  RX/RY + CNOT ansatz with data-derived angles (RX angle_i, RY angle_i*pi/2);
  this is the feature map of the quantum kernel

All functions accept a single vector [m] or a batch [batch, m] and are
differentiable with respect to the data.
"""

import math
from typing import Sequence, Union

import numpy as np
import torch

from .circuits import apply_circuit, build_circuit
from .exceptions import ArgumentError
from .gates import RX, apply_gate
from .state import StateVector
from .utils import REAL_DTYPE, validate_layer_count, validate_qubit_count


RANGE_EPS = 1e-10
CONSTANT_FILL = 0.5

ArrayLike = Union[torch.Tensor, np.ndarray, Sequence[float]]


def _as_data_tensor(data: ArrayLike) -> torch.Tensor:
    if isinstance(data, torch.Tensor):
        return data.to(REAL_DTYPE)
    return torch.as_tensor(np.asarray(data, dtype=np.float64))


def minmax_normalize(data: ArrayLike) -> torch.Tensor:
    """
    Min-max normalize along the last axis to [0, 1].

    Rows whose range is below RANGE_EPS become all 0.5.

    Raises:
        ArgumentError: If the data is empty
    """
    values = _as_data_tensor(data)
    if values.ndim == 0 or values.shape[-1] == 0:
        raise ArgumentError("Input data cannot be empty")

    lo = values.min(dim=-1, keepdim=True).values
    hi = values.max(dim=-1, keepdim=True).values
    span = hi - lo

    constant = span.detach() < RANGE_EPS
    safe_span = torch.where(constant, torch.ones_like(span), span)
    scaled = (values - lo) / safe_span
    return torch.where(constant, torch.full_like(scaled, CONSTANT_FILL), scaled)


def fractal_level(qubit: int) -> int:
    """floor(log2(qubit + 1)) computed exactly on integers."""
    return (qubit + 1).bit_length() - 1


def fractal_angles(data: ArrayLike, n_qubits: int) -> torch.Tensor:
    """
    Compute one rotation angle per qubit.

    Args:
        data: Feature vector [m] or batch [batch, m]
        n_qubits: Number of qubits

    Returns:
        Angles [..., n_qubits] in [0, pi]
    """
    validate_qubit_count(n_qubits)
    normalized = minmax_normalize(data)
    n_features = normalized.shape[-1]

    angles = []
    for qubit in range(1, n_qubits + 1):
        count = min(n_features, 2 ** fractal_level(qubit))
        angles.append(normalized[..., :count].mean(dim=-1) * math.pi)
    return torch.stack(angles, dim=-1)


def encode(data: ArrayLike, n_qubits: int) -> StateVector:
    """
    Encode classical data into an n-qubit state.

    Args:
        data: Feature vector [m] or batch [batch, m]
        n_qubits: Number of qubits (1-20)

    Returns:
        StateVector (batched when ``data`` is)

    Raises:
        ArgumentError: On empty data or an invalid qubit count
    """
    angles = fractal_angles(data, n_qubits)
    state = StateVector.zero(n_qubits, batch_shape=tuple(angles.shape[:-1]))
    for qubit in range(1, n_qubits + 1):
        state = apply_gate(state, RX(qubit, angles[..., qubit - 1]))
    return state


def feature_map_parameters(angles: torch.Tensor, n_layers: int) -> torch.Tensor:
    """
    Data-derived ParameterVector for ``build_circuit(n, n_layers)``.

    Per layer and qubit the RX slot gets angle_i and the RY slot angle_i*pi/2.
    """
    validate_layer_count(n_layers)
    per_layer = torch.stack([angles, angles * (math.pi / 2)], dim=-1)
    per_layer = per_layer.reshape(*angles.shape[:-1], 2 * angles.shape[-1])
    return torch.cat([per_layer] * n_layers, dim=-1)


def fractal_feature_map(data: ArrayLike, n_qubits: int, n_layers: int) -> StateVector:
    """
    Multi-layer fractal feature map used by the quantum kernel.

    Args:
        data: Feature vector [m] or batch [batch, m]
        n_qubits: Number of qubits
        n_layers: Number of encoding layers (>= 1)

    Returns:
        Encoded StateVector
    """
    circuit = build_circuit(n_qubits, n_layers)
    angles = fractal_angles(data, n_qubits)
    state = encode(data, n_qubits)
    return apply_circuit(state, circuit, feature_map_parameters(angles, n_layers))


class FractalEncoder:
    """
    Encoder component bound to a register size.

    Attributes:
        n_qubits: Number of qubits
        n_layers: Feature-map depth used by ``feature_map``
    """

    def __init__(self, n_qubits: int, n_layers: int = 1):
        validate_qubit_count(n_qubits)
        validate_layer_count(n_layers)
        self.n_qubits = n_qubits
        self.n_layers = n_layers

    def angles(self, data: ArrayLike) -> torch.Tensor:
        return fractal_angles(data, self.n_qubits)

    def encode(self, data: ArrayLike) -> StateVector:
        return encode(data, self.n_qubits)

    def feature_map(self, data: ArrayLike) -> StateVector:
        return fractal_feature_map(data, self.n_qubits, self.n_layers)
