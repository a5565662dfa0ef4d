"""
Hybrid Quantum-Classical Model.

This module provides the hybrid architecture that combines:
1. Classical preprocessor (input_dim -> 2^n_qubits)
2. Quantum layer (state preparation + variational circuit)
3. Classical postprocessor (2^n_qubits -> output_dim)

Design Decisions:
- End-to-end differentiable: gradients flow through the simulator into
  both classical MLPs and the circuit's rotation angles
- Quantum weights are float64 to match the complex128 simulator
- Models are created by an explicit factory and own all their parameters;
  nothing is initialized at import time
"""

import math
from typing import Dict, Optional, Union

import numpy as np
import torch
import torch.nn as nn

from configs.config import Config
from quantum.backends import SimulatorBackend, run_circuit
from quantum.circuits import build_circuit
from quantum.encoding import encode
from quantum.exceptions import ArgumentError
from quantum.state import StateVector
from quantum.utils import REAL_DTYPE


class QuantumLayer(nn.Module):
    """
    PyTorch-compatible quantum layer.

    Turns a batch of 2^n-dimensional feature vectors into quantum states and
    applies the variational circuit with the layer's current parameters.

    State preparation ('encoding'):
      amplitude: each feature vector is normalized into a state vector
                 (uniform superposition when its norm is ~0)
      fractal:   each feature vector is fractal angle-encoded on |0...0>

    Attributes:
        circuit: Circuit description (RX/RY + CNOT chain per layer)
        weights: Trainable ParameterVector [2 * n_qubits * n_layers]
        encoding: State preparation scheme
        backend: Acceleration backend name (falls back to CPU)
    """

    def __init__(
        self,
        n_qubits: int,
        n_layers: int = 1,
        parameters: Optional[Union[torch.Tensor, np.ndarray]] = None,
        encoding: str = 'amplitude',
        backend: Union[None, str, SimulatorBackend] = 'cpu',
    ):
        """
        Initialize the quantum layer.

        Args:
            n_qubits: Number of qubits (1-20)
            n_layers: Number of variational layers (>= 1)
            parameters: Initial ParameterVector; uniform in [0, 2*pi) if None
            encoding: 'amplitude' or 'fractal'
            backend: Simulator backend

        Raises:
            ArgumentError: On invalid counts, encoding or parameter length
        """
        super().__init__()

        if encoding not in ('amplitude', 'fractal'):
            raise ArgumentError(f"Unknown encoding: {encoding}")

        self.circuit = build_circuit(n_qubits, n_layers)
        self.n_qubits = n_qubits
        self.n_layers = n_layers
        self.encoding = encoding
        self.backend = backend

        if parameters is None:
            # Uniform in [0, 2*pi) for symmetry breaking
            values = torch.rand(self.circuit.n_parameters, dtype=REAL_DTYPE) * (2 * math.pi)
        else:
            values = self.circuit.check_parameters(parameters)
            if values.ndim != 1:
                raise ArgumentError(
                    f"Parameter vector must be 1-D, got shape {tuple(values.shape)}"
                )
            values = values.detach().clone()

        self.weights = nn.Parameter(values)

    @property
    def state_dim(self) -> int:
        return 2 ** self.n_qubits

    def prepare_state(self, features: torch.Tensor) -> StateVector:
        """Map a batch of feature vectors [batch, 2^n] to initial states."""
        if self.encoding == 'fractal':
            return encode(features, self.n_qubits)
        return StateVector(features)

    def forward(
        self,
        features: torch.Tensor,
        backend: Union[None, str, SimulatorBackend] = None,
    ) -> StateVector:
        """
        Prepare states and apply the variational circuit.

        Args:
            features: Real tensor [batch, 2^n_qubits]
            backend: Per-call backend override

        Returns:
            Batched output StateVector
        """
        state = self.prepare_state(features)
        return run_circuit(
            state,
            self.circuit,
            self.weights,
            backend=backend if backend is not None else self.backend,
        )

    def get_num_parameters(self) -> int:
        """Get number of trainable quantum parameters."""
        return self.weights.numel()

    def extra_repr(self) -> str:
        return (
            f"n_qubits={self.n_qubits}, n_layers={self.n_layers}, "
            f"encoding={self.encoding}, backend={self.backend}"
        )


class HybridQuantumModel(nn.Module):
    """
    Hybrid quantum-classical network.

    Architecture:
    1. Preprocessor: x [batch, input_dim] -> [batch, 2^n]
    2. Quantum layer: state preparation + circuit -> real amplitudes [batch, 2^n]
    3. Postprocessor: [batch, 2^n] -> [batch, output_dim]

    Attributes:
        preprocessor: Classical layers before the circuit
        quantum_layer: QuantumLayer
        postprocessor: Classical layers after the circuit
        input_dim: Declared input feature dimension (None if unknown)
        output_dim: Declared output dimension (None if unknown)
    """

    def __init__(
        self,
        preprocessor: nn.Module,
        quantum_layer: QuantumLayer,
        postprocessor: nn.Module,
        input_dim: Optional[int] = None,
        output_dim: Optional[int] = None,
    ):
        super().__init__()
        self.preprocessor = preprocessor
        self.quantum_layer = quantum_layer
        self.postprocessor = postprocessor
        self.input_dim = input_dim
        self.output_dim = output_dim

    @property
    def n_qubits(self) -> int:
        return self.quantum_layer.n_qubits

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass: preprocessor -> quantum layer -> postprocessor.

        Args:
            x: Input tensor [batch, input_dim]

        Returns:
            Output tensor [batch, output_dim]
        """
        from .pipeline import HybridPipeline

        return HybridPipeline().forward(self, x)


def _mlp(in_features: int, hidden_dim: int, out_features: int) -> nn.Sequential:
    return nn.Sequential(
        nn.Linear(in_features, hidden_dim),
        nn.ReLU(),
        nn.Linear(hidden_dim, out_features),
    )


def create_hybrid_model(
    input_dim: int,
    n_qubits: int,
    output_dim: int,
    n_layers: int = 1,
    hidden_dim: int = 32,
    encoding: str = 'amplitude',
    backend: Union[None, str, SimulatorBackend] = 'cpu',
    parameters: Optional[Union[torch.Tensor, np.ndarray]] = None,
    seed: Optional[int] = None,
) -> HybridQuantumModel:
    """
    Factory function for a fully-owned hybrid model.

    Args:
        input_dim: Input feature dimension
        n_qubits: Number of qubits (preprocessor output is 2^n_qubits)
        output_dim: Output dimension
        n_layers: Variational layers
        hidden_dim: Hidden width of the classical MLPs
        encoding: 'amplitude' or 'fractal'
        backend: Simulator backend
        parameters: Initial quantum ParameterVector
        seed: Seed for weight initialization

    Returns:
        HybridQuantumModel
    """
    if input_dim < 1 or output_dim < 1 or hidden_dim < 1:
        raise ArgumentError(
            f"Dimensions must be positive, got input_dim={input_dim}, "
            f"output_dim={output_dim}, hidden_dim={hidden_dim}"
        )
    if seed is not None:
        torch.manual_seed(seed)

    quantum_layer = QuantumLayer(
        n_qubits, n_layers, parameters=parameters, encoding=encoding, backend=backend
    )
    state_dim = quantum_layer.state_dim

    model = HybridQuantumModel(
        preprocessor=_mlp(input_dim, hidden_dim, state_dim),
        quantum_layer=quantum_layer,
        postprocessor=_mlp(state_dim, hidden_dim, output_dim),
        input_dim=input_dim,
        output_dim=output_dim,
    )

    print(f"HybridQuantumModel initialized:")
    print(f"  Input dim: {input_dim} -> state dim: {state_dim} ({n_qubits} qubits)")
    print(f"  Quantum layers: {n_layers} ({quantum_layer.get_num_parameters()} parameters, {encoding} encoding)")
    print(f"  Output dim: {output_dim}")

    return model


def create_model(config: Config) -> HybridQuantumModel:
    """Build a hybrid model from a Config."""
    return create_hybrid_model(
        input_dim=config.model.input_dim,
        n_qubits=config.quantum.n_qubits,
        output_dim=config.model.output_dim,
        n_layers=config.quantum.n_layers,
        hidden_dim=config.model.hidden_dim,
        encoding=config.quantum.encoding,
        backend=config.quantum.backend,
        seed=config.seed,
    )


def count_parameters(model: nn.Module) -> Dict[str, int]:
    """
    Count model parameters.

    Args:
        model: PyTorch model

    Returns:
        Dictionary with parameter counts
    """
    total = sum(p.numel() for p in model.parameters())
    trainable = sum(p.numel() for p in model.parameters() if p.requires_grad)

    counts = {
        'total': total,
        'trainable': trainable,
        'non_trainable': total - trainable,
    }

    for component in ('preprocessor', 'quantum_layer', 'postprocessor'):
        module = getattr(model, component, None)
        if module is not None:
            counts[component] = sum(p.numel() for p in module.parameters())

    return counts
