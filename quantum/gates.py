"""
Gate Specifications and Pure Gate Application.

Gates are immutable value objects (RX, RY, H, CNOT). ``apply_gate`` is a
pure function: it never touches the input state's buffer and returns a new
StateVector, so forgetting to capture the result is the only way to "lose"
a gate, never a way to apply it twice.

Implementation notes:
- Single-qubit gates contract the addressed tensor axis with the 2x2 gate
  matrix (O(2^n) per gate instead of building a 2^n x 2^n Kronecker matrix).
- CNOT is a pure index permutation: on the control=|1> slice the target
  axis is flipped.
- Angles may be floats, 0-d tensors (shared across a batch) or 1-d tensors
  with one angle per batch row (data-dependent encodings).
"""

import math
import numbers
from dataclasses import dataclass
from typing import Union

import torch

from .exceptions import InvalidGateError
from .state import StateVector
from .utils import COMPLEX_DTYPE, REAL_DTYPE


Angle = Union[float, torch.Tensor]


@dataclass(frozen=True, eq=False)
class RX:
    """Rotation about X: exp(-i * angle * X / 2)."""
    qubit: int
    angle: Angle


@dataclass(frozen=True, eq=False)
class RY:
    """Rotation about Y: exp(-i * angle * Y / 2)."""
    qubit: int
    angle: Angle


@dataclass(frozen=True)
class H:
    """Hadamard gate."""
    qubit: int


@dataclass(frozen=True)
class CNOT:
    """Controlled-NOT: flips ``target`` when ``control`` is |1>."""
    control: int
    target: int


GateSpec = Union[RX, RY, H, CNOT]

_HADAMARD = torch.tensor([[1.0, 1.0], [1.0, -1.0]], dtype=COMPLEX_DTYPE) / math.sqrt(2.0)


def _angle_tensor(angle: Angle, device) -> torch.Tensor:
    if isinstance(angle, torch.Tensor):
        return angle.to(device=device, dtype=REAL_DTYPE)
    return torch.tensor(float(angle), dtype=REAL_DTYPE, device=device)


def rx_matrix(angle: Angle, device=None) -> torch.Tensor:
    """RX matrix [..., 2, 2]; leading dims follow the angle's shape."""
    theta = _angle_tensor(angle, device)
    c = torch.cos(theta / 2).to(COMPLEX_DTYPE)
    s = torch.sin(theta / 2).to(COMPLEX_DTYPE)
    minus_i_s = -1j * s
    return torch.stack(
        [torch.stack([c, minus_i_s], dim=-1), torch.stack([minus_i_s, c], dim=-1)],
        dim=-2,
    )


def ry_matrix(angle: Angle, device=None) -> torch.Tensor:
    """RY matrix [..., 2, 2]; leading dims follow the angle's shape."""
    theta = _angle_tensor(angle, device)
    c = torch.cos(theta / 2).to(COMPLEX_DTYPE)
    s = torch.sin(theta / 2).to(COMPLEX_DTYPE)
    return torch.stack(
        [torch.stack([c, -s], dim=-1), torch.stack([s, c], dim=-1)],
        dim=-2,
    )


def _check_qubit(qubit: int, n_qubits: int) -> None:
    if isinstance(qubit, bool) or not isinstance(qubit, numbers.Integral):
        raise InvalidGateError(f"Qubit index must be an integer, got {qubit!r}")
    if not 1 <= qubit <= n_qubits:
        raise InvalidGateError(
            f"Qubit index {qubit} out of range [1, {n_qubits}]"
        )


def _apply_single_qubit(
    amplitudes: torch.Tensor,
    matrix: torch.Tensor,
    qubit: int,
    n_qubits: int,
) -> torch.Tensor:
    batch_shape = amplitudes.shape[:-1]
    n_batch = len(batch_shape)

    psi = amplitudes.reshape(*batch_shape, *([2] * n_qubits))
    axis = n_batch + qubit - 1
    psi = torch.movedim(psi, axis, -1)

    if matrix.ndim > 2:
        # per-row matrices [batch, 2, 2] -> broadcast over the remaining qubit axes
        matrix = matrix.reshape(*matrix.shape[:-2], *([1] * (n_qubits - 1)), 2, 2)

    psi = torch.matmul(matrix, psi.unsqueeze(-1)).squeeze(-1)
    psi = torch.movedim(psi, -1, axis)
    return psi.reshape(*batch_shape, 2 ** n_qubits)


def _apply_cnot(
    amplitudes: torch.Tensor,
    control: int,
    target: int,
    n_qubits: int,
) -> torch.Tensor:
    batch_shape = amplitudes.shape[:-1]
    n_batch = len(batch_shape)

    psi = amplitudes.reshape(*batch_shape, *([2] * n_qubits))
    control_axis = n_batch + control - 1
    target_axis = n_batch + target - 1

    control_zero = psi.select(control_axis, 0)
    control_one = psi.select(control_axis, 1)
    # selecting the control axis shifts every later axis down by one
    flip_axis = target_axis if target_axis < control_axis else target_axis - 1
    control_one = torch.flip(control_one, dims=[flip_axis])

    psi = torch.stack([control_zero, control_one], dim=control_axis)
    return psi.reshape(*batch_shape, 2 ** n_qubits)


def apply_gate(state: StateVector, gate: GateSpec) -> StateVector:
    """
    Apply one gate and return the resulting state.

    Args:
        state: Input state (single or batched)
        gate: RX, RY, H or CNOT with 1-based qubit indices

    Returns:
        New normalized StateVector

    Raises:
        InvalidGateError: If a qubit index is outside [1, n] or a CNOT
            uses the same qubit as control and target
    """
    n = state.n_qubits
    amps = state.tensor

    if isinstance(gate, RX):
        _check_qubit(gate.qubit, n)
        out = _apply_single_qubit(amps, rx_matrix(gate.angle, amps.device), gate.qubit, n)
    elif isinstance(gate, RY):
        _check_qubit(gate.qubit, n)
        out = _apply_single_qubit(amps, ry_matrix(gate.angle, amps.device), gate.qubit, n)
    elif isinstance(gate, H):
        _check_qubit(gate.qubit, n)
        out = _apply_single_qubit(amps, _HADAMARD.to(amps.device), gate.qubit, n)
    elif isinstance(gate, CNOT):
        _check_qubit(gate.control, n)
        _check_qubit(gate.target, n)
        if gate.control == gate.target:
            raise InvalidGateError(
                f"CNOT control and target must differ, got {gate.control} for both"
            )
        out = _apply_cnot(amps, gate.control, gate.target, n)
    else:
        raise InvalidGateError(f"Unknown gate: {gate!r}")

    return StateVector(out)

