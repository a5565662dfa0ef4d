"""
Health Check for the Quantum Simulation Stack.

Runs a Bell-state circuit (H on qubit 1, CNOT 1->2) through the native
simulator and every requested backend, and checks that the output is
normalized and maximally entangled (1 bit of entropy).
"""

import platform
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pennylane as qml
import torch

from .entanglement import entanglement_entropy
from .gates import CNOT, H, apply_gate
from .state import StateVector


@dataclass
class HealthStatus:
    """
    Result of a health check.

    Attributes:
        status: 'healthy', 'degraded' or 'unhealthy'
        cuda_available: Whether torch sees a CUDA device
        timestamp: Unix time of the check
        details: Per-check results
    """
    status: str
    cuda_available: bool
    timestamp: float
    details: Dict[str, Any] = field(default_factory=dict)


def bell_state() -> StateVector:
    state = StateVector.zero(2)
    state = apply_gate(state, H(1))
    return apply_gate(state, CNOT(1, 2))


def check_health(pennylane_devices: Optional[Sequence[str]] = ('default.qubit',)) -> HealthStatus:
    """
    Perform a health check of the simulator stack.

    Args:
        pennylane_devices: PennyLane devices to probe (failures only degrade)

    Returns:
        HealthStatus
    """
    status = 'healthy'
    details: Dict[str, Any] = {
        'python_version': platform.python_version(),
        'torch_version': torch.__version__,
        'pennylane_version': qml.__version__,
    }

    cuda_available = torch.cuda.is_available()
    details['cuda_available'] = cuda_available

    try:
        state = bell_state()
        entropy = entanglement_entropy(state)
        normalized = state.is_normalized()
        details['quantum_ops'] = 'working'
        details['bell_entropy'] = entropy
        if not normalized or abs(entropy - 1.0) > 1e-6:
            status = 'unhealthy'
            details['quantum_ops'] = f'wrong result (normalized={normalized}, entropy={entropy:.6f})'
    except Exception as exc:
        status = 'unhealthy'
        details['quantum_ops'] = f'error: {exc}'

    for device_name in pennylane_devices or ():
        try:
            dev = qml.device(device_name, wires=2)

            @qml.qnode(dev)
            def probe():
                qml.Hadamard(wires=0)
                qml.CNOT(wires=[0, 1])
                return qml.state()

            amps = np.asarray(probe())
            ok = np.allclose(np.abs(amps) ** 2, [0.5, 0.0, 0.0, 0.5], atol=1e-8)
            details[f'pennylane:{device_name}'] = 'working' if ok else 'wrong result'
            if not ok and status == 'healthy':
                status = 'degraded'
        except Exception as exc:
            details[f'pennylane:{device_name}'] = f'error: {exc}'
            if status == 'healthy':
                status = 'degraded'

    return HealthStatus(
        status=status,
        cuda_available=cuda_available,
        timestamp=time.time(),
        details=details,
    )


def is_healthy() -> bool:
    """Quick health check returning True if the system is healthy."""
    return check_health().status == 'healthy'
