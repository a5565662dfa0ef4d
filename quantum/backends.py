"""
Acceleration Backends for Circuit Execution.

A backend is an optional capability that *tries* to run a circuit somewhere
other than the native CPU simulator (a CUDA device, or a PennyLane device
such as ``default.qubit`` / ``lightning.qubit``). Backends are resolved once
per call and never held between calls.

Contract:
    backend.try_run(state, circuit, parameters) -> StateVector
    raises on any failure; ``run_circuit`` then warns and reruns the same
    operation on the native CPU path. Callers never see backend errors.

Design Decisions:
- Parameter validation happens *before* the backend is tried, so a wrong
  ParameterVector length is always reported as ArgumentError
- Results are moved back to the CPU so downstream code is device-agnostic
- The PennyLane backend mirrors the native gate order exactly (wire i-1 for
  qubit i), so both paths produce the same amplitudes
"""

import warnings
from typing import Optional, Protocol, Sequence, Union

import pennylane as qml
import torch

from .circuits import CircuitDescription, apply_circuit
from .exceptions import ArgumentError, BackendUnavailable
from .state import StateVector


class SimulatorBackend(Protocol):
    """Interface every acceleration backend implements."""

    name: str

    def try_run(
        self,
        state: StateVector,
        circuit: CircuitDescription,
        parameters: torch.Tensor,
    ) -> StateVector:
        ...


class CudaBackend:
    """Run the native simulator on a CUDA device."""

    name = "cuda"

    def __init__(self, device: str = "cuda"):
        self.device = device

    def try_run(self, state, circuit, parameters):
        if not torch.cuda.is_available():
            raise BackendUnavailable("CUDA is not available")
        device = torch.device(self.device)
        result = apply_circuit(state.to(device), circuit, parameters.to(device))
        return result.to("cpu")


class PennyLaneBackend:
    """
    Run the circuit on a PennyLane device.

    The input state is loaded with ``qml.StatePrep`` and the final state is
    read back with ``qml.state()``. The torch interface keeps the call
    differentiable on simulators that support backpropagation.
    """

    def __init__(self, device_name: str = "default.qubit"):
        self.device_name = device_name
        self.name = f"pennylane:{device_name}"

    def _build_qnode(self, circuit: CircuitDescription):
        n_qubits = circuit.n_qubits
        dev = qml.device(self.device_name, wires=n_qubits)
        # only default.qubit supports backprop of qml.state()
        diff_method = 'backprop' if self.device_name == 'default.qubit' else 'best'

        @qml.qnode(dev, interface='torch', diff_method=diff_method)
        def qnode(amplitudes, weights):
            qml.StatePrep(amplitudes, wires=range(n_qubits))
            for op in circuit.operations:
                wires = [w - 1 for w in op.wires]
                if op.gate == 'RX':
                    qml.RX(weights[op.param_index], wires=wires[0])
                elif op.gate == 'RY':
                    qml.RY(weights[op.param_index], wires=wires[0])
                elif op.gate == 'H':
                    qml.Hadamard(wires=wires[0])
                elif op.gate == 'CNOT':
                    qml.CNOT(wires=wires)
                else:
                    raise ValueError(f"Unsupported operation: {op.gate}")
            return qml.state()

        return qnode

    def try_run(self, state, circuit, parameters):
        qnode = self._build_qnode(circuit)
        amplitudes = state.tensor

        if not state.is_batched:
            return StateVector(qnode(amplitudes, parameters))

        flat = amplitudes.reshape(-1, state.dim)
        try:
            # parameter broadcasting: one call for the whole batch
            result = qnode(flat, parameters)
            if result.shape != flat.shape:
                raise ValueError("device does not broadcast over StatePrep")
        except Exception:
            # sequential processing for devices without broadcasting
            result = torch.stack([qnode(row, parameters) for row in flat], dim=0)
        return StateVector(result.reshape(*state.batch_shape, state.dim))


def get_backend(name: Optional[str]) -> Optional[SimulatorBackend]:
    """
    Resolve a backend name.

    Args:
        name: None / 'cpu' / 'native' (native simulator), 'cuda',
            'pennylane' (default.qubit) or a PennyLane device name
            such as 'default.qubit' or 'lightning.qubit'

    Returns:
        Backend instance, or None for the native CPU path

    Raises:
        ArgumentError: If the name is not recognized
    """
    if name is None:
        return None
    key = name.lower()
    if key in ('cpu', 'native'):
        return None
    if key in ('cuda', 'gpu'):
        return CudaBackend()
    if key == 'pennylane':
        return PennyLaneBackend('default.qubit')
    if '.' in key:
        return PennyLaneBackend(name)
    raise ArgumentError(f"Unknown simulator backend: {name}")


def run_circuit(
    state: StateVector,
    circuit: CircuitDescription,
    parameters: Union[torch.Tensor, Sequence[float]],
    backend: Union[None, str, SimulatorBackend] = None,
) -> StateVector:
    """
    Apply ``circuit`` to ``state``, trying an acceleration backend first.

    Args:
        state: Input state (single or batched)
        circuit: Circuit description
        parameters: ParameterVector
        backend: Backend instance, backend name, or None for native CPU

    Returns:
        Output StateVector (on the CPU)

    Raises:
        ArgumentError: Invalid parameters or backend name (never backend
            runtime failures, which fall back to the CPU path)
    """
    values = circuit.check_parameters(parameters)
    if state.n_qubits != circuit.n_qubits:
        raise ArgumentError(
            f"State has {state.n_qubits} qubits but circuit expects {circuit.n_qubits}"
        )

    if backend is None or isinstance(backend, str):
        backend = get_backend(backend)
    if backend is None:
        return apply_circuit(state, circuit, values)

    try:
        return backend.try_run(state, circuit, values)
    except Exception as exc:
        warnings.warn(
            f"{backend.name} backend failed, falling back to CPU: {exc}",
            RuntimeWarning,
        )
        return apply_circuit(state, circuit, values)
