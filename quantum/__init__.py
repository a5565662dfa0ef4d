"""
Quantum Module for Hybrid Quantum-Classical ML.

Provides the state-vector simulator, circuit construction, fractal data
encoding, entanglement analysis, quantum kernels and acceleration backends.
"""

from .exceptions import (
    ArgumentError,
    BackendUnavailable,
    DimensionMismatch,
    InvalidGateError,
    QuantumMLError,
)
from .state import StateVector
from .gates import CNOT, H, RX, RY, GateSpec, apply_gate
from .circuits import (
    CircuitDescription,
    Operation,
    apply_circuit,
    build_circuit,
    circuit_resources,
    clear_circuit_cache,
    expected_parameter_count,
)
from .backends import CudaBackend, PennyLaneBackend, get_backend, run_circuit
from .encoding import FractalEncoder, encode, fractal_angles, fractal_feature_map
from .entanglement import EntanglementAnalyzer, entanglement_entropy, reduced_density_matrix
from .kernel import QuantumKernel, kernel_alignment, kernel_matrix, quantum_kernel
from .health import HealthStatus, check_health, is_healthy

__all__ = [
    "ArgumentError",
    "BackendUnavailable",
    "DimensionMismatch",
    "InvalidGateError",
    "QuantumMLError",
    "StateVector",
    "CNOT",
    "H",
    "RX",
    "RY",
    "GateSpec",
    "apply_gate",
    "CircuitDescription",
    "Operation",
    "apply_circuit",
    "build_circuit",
    "circuit_resources",
    "clear_circuit_cache",
    "expected_parameter_count",
    "CudaBackend",
    "PennyLaneBackend",
    "get_backend",
    "run_circuit",
    "FractalEncoder",
    "encode",
    "fractal_angles",
    "fractal_feature_map",
    "EntanglementAnalyzer",
    "entanglement_entropy",
    "reduced_density_matrix",
    "QuantumKernel",
    "kernel_alignment",
    "kernel_matrix",
    "quantum_kernel",
    "HealthStatus",
    "check_health",
    "is_healthy",
]
