"""
Parameterized Quantum Circuit (PQC) Definitions.

This module builds the hardware-efficient variational ansatz used by both
the hybrid model and the kernel feature map, and applies it on the native
state-vector simulator.

Design Decisions:
- A circuit is a *description* (ordered operations with parameter slots),
  independent of any parameter values; ``bind`` turns it into concrete gates
- RX + RY rotation on every qubit per layer (two parameters per qubit)
- Linear entanglement (CNOT chain 1->2->...->n) after each rotation layer
- Descriptions are immutable and cached per (n_qubits, n_layers)

Parameter layout (flat ParameterVector):
    index = 2 * (layer * n_qubits + (qubit - 1)) + {0: RX, 1: RY}
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from .exceptions import ArgumentError
from .gates import CNOT, RX, RY, GateSpec, apply_gate
from .state import StateVector
from .utils import REAL_DTYPE, validate_layer_count, validate_qubit_count


@dataclass(frozen=True)
class Operation:
    """
    One slot of a circuit description.

    Attributes:
        gate: 'RX', 'RY', 'H' or 'CNOT'
        wires: Qubit indices (1-based); (control, target) for CNOT
        param_index: Index into the ParameterVector, None for fixed gates
    """
    gate: str
    wires: Tuple[int, ...]
    param_index: Optional[int] = None


@dataclass(frozen=True)
class CircuitDescription:
    """
    Ordered, parameter-free description of a variational circuit.

    Attributes:
        n_qubits: Register size
        n_layers: Number of rotation + entanglement layers
        operations: Ordered operations
    """
    n_qubits: int
    n_layers: int
    operations: Tuple[Operation, ...]

    @property
    def n_parameters(self) -> int:
        return sum(1 for op in self.operations if op.param_index is not None)

    def check_parameters(self, parameters) -> torch.Tensor:
        """
        Validate a ParameterVector against this circuit.

        Args:
            parameters: Flat sequence/tensor of rotation angles

        Returns:
            float64 tensor [..., P] (autograd graph preserved)

        Raises:
            ArgumentError: If the input is a scalar or its last dimension
                differs from the circuit's parameter count
        """
        if isinstance(parameters, torch.Tensor):
            values = parameters.to(REAL_DTYPE)
        else:
            values = torch.as_tensor(np.asarray(parameters, dtype=np.float64))

        if values.ndim == 0:
            raise ArgumentError("Parameter vector must be at least 1-D, got a scalar")
        if values.shape[-1] != self.n_parameters:
            raise ArgumentError(
                f"Expected {self.n_parameters} parameters for {self.n_qubits} qubits "
                f"and {self.n_layers} layers, got {values.shape[-1]}"
            )
        return values

    def bind(self, parameters) -> Tuple[GateSpec, ...]:
        """
        Turn the description into concrete gates using ``parameters``.

        A 1-D vector is shared by every state in a batch; a [batch, P]
        tensor gives each batch row its own angles (data-driven feature maps).
        """
        values = self.check_parameters(parameters)
        gates = []
        for op in self.operations:
            if op.gate == "RX":
                gates.append(RX(op.wires[0], values[..., op.param_index]))
            elif op.gate == "RY":
                gates.append(RY(op.wires[0], values[..., op.param_index]))
            elif op.gate == "CNOT":
                gates.append(CNOT(op.wires[0], op.wires[1]))
            else:
                raise ArgumentError(f"Unsupported operation in circuit: {op.gate}")
        return tuple(gates)


def expected_parameter_count(circuit: Union[CircuitDescription, int], n_layers: Optional[int] = None) -> int:
    """
    Number of free parameters of the standard layer pattern: 2 * n * L.

    Accepts either a CircuitDescription or (n_qubits, n_layers).
    """
    if isinstance(circuit, CircuitDescription):
        return 2 * circuit.n_qubits * circuit.n_layers
    validate_qubit_count(circuit)
    validate_layer_count(n_layers)
    return 2 * circuit * n_layers


@lru_cache(maxsize=64)
def _cached_circuit(n_qubits: int, n_layers: int) -> CircuitDescription:
    operations = []
    index = 0
    for _ in range(n_layers):
        for qubit in range(1, n_qubits + 1):
            operations.append(Operation("RX", (qubit,), index))
            operations.append(Operation("RY", (qubit,), index + 1))
            index += 2
        for qubit in range(1, n_qubits):
            operations.append(Operation("CNOT", (qubit, qubit + 1)))
    return CircuitDescription(n_qubits, n_layers, tuple(operations))


def build_circuit(n_qubits: int, n_layers: int) -> CircuitDescription:
    """
    Build the standard rotation + entanglement ansatz.

    For each layer: RX then RY on every qubit (in qubit order), followed by
    CNOT(i, i+1) for i in 1..n-1.

    Args:
        n_qubits: Number of qubits (1-20)
        n_layers: Number of layers (>= 1)

    Returns:
        Immutable CircuitDescription

    Raises:
        ArgumentError: On invalid qubit or layer counts
    """
    validate_qubit_count(n_qubits)
    validate_layer_count(n_layers)
    return _cached_circuit(int(n_qubits), int(n_layers))


def clear_circuit_cache() -> None:
    """Drop all cached circuit descriptions."""
    _cached_circuit.cache_clear()


def apply_circuit(
    state: StateVector,
    circuit: CircuitDescription,
    parameters: Union[torch.Tensor, Sequence[float]],
) -> StateVector:
    """
    Apply every gate of ``circuit`` in order on the native simulator.

    Args:
        state: Input state (single or batched)
        circuit: Circuit description
        parameters: ParameterVector of length circuit.n_parameters

    Returns:
        Output StateVector
    """
    if state.n_qubits != circuit.n_qubits:
        raise ArgumentError(
            f"State has {state.n_qubits} qubits but circuit expects {circuit.n_qubits}"
        )
    for gate in circuit.bind(parameters):
        state = apply_gate(state, gate)
    return state


def circuit_resources(circuit: CircuitDescription) -> Dict[str, int]:
    """
    Compute resource requirements for a circuit.

    Returns:
        Dictionary with gate counts, depth and parameter count
    """
    single = sum(1 for op in circuit.operations if len(op.wires) == 1)
    two = sum(1 for op in circuit.operations if len(op.wires) == 2)

    # RX and RY layers are parallel across qubits; the CNOT chain is sequential
    depth = circuit.n_layers * (2 + max(circuit.n_qubits - 1, 0))

    return {
        'n_qubits': circuit.n_qubits,
        'n_layers': circuit.n_layers,
        'single_qubit_gates': single,
        'two_qubit_gates': two,
        'circuit_depth': depth,
        'trainable_parameters': circuit.n_parameters,
    }
