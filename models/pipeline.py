"""
Forward pipeline of a hybrid model.

    x [batch, input_dim]
      -> preprocessor           [batch, 2^n]
      -> normalize into states  (uniform superposition for ~0 rows)
      -> variational circuit    (model's current parameters)
      -> real part              [batch, 2^n]
      -> postprocessor          [batch, output_dim]

All samples of a batch go through the simulator as one batched state.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np
import torch
import torch.nn as nn

from quantum.backends import SimulatorBackend
from quantum.exceptions import DimensionMismatch
from quantum.state import StateVector
from quantum.utils import validate_input_dimension


@dataclass
class PipelineOutput:
    """Result of a pipeline run."""
    outputs: torch.Tensor
    states: StateVector
    features: torch.Tensor


class HybridPipeline:
    """
    Runs preprocessor -> quantum layer -> postprocessor.

    Args:
        backend: Backend override for the quantum layer (None = model's own)
    """

    def __init__(self, backend: Union[None, str, SimulatorBackend] = None):
        self.backend = backend

    @staticmethod
    def _as_batch(x) -> torch.Tensor:
        if not isinstance(x, torch.Tensor):
            x = torch.as_tensor(np.asarray(x, dtype=np.float32))
        if x.ndim == 1:
            x = x.unsqueeze(0)
        if x.ndim != 2:
            raise DimensionMismatch(
                f"Expected input of shape [batch, features], got {tuple(x.shape)}"
            )
        return x

    def run(self, model: nn.Module, x) -> PipelineOutput:
        """
        Full forward pass keeping the intermediate quantum states.

        Args:
            model: HybridQuantumModel
            x: Input batch [batch, input_dim] (a single vector is a batch of one)

        Returns:
            PipelineOutput

        Raises:
            DimensionMismatch: If x does not match the model's input_dim, or
                the preprocessor does not produce 2^n_qubits features
        """
        x = self._as_batch(x)
        if getattr(model, 'input_dim', None) is not None:
            validate_input_dimension(x, model.input_dim)

        features = model.preprocessor(x)
        validate_input_dimension(features, model.quantum_layer.state_dim)

        states = model.quantum_layer(features, backend=self.backend)
        quantum_out = states.real().to(features.dtype)

        outputs = model.postprocessor(quantum_out)
        return PipelineOutput(outputs=outputs, states=states, features=quantum_out)

    def forward(self, model: nn.Module, x) -> torch.Tensor:
        """Outputs [batch, output_dim] of the hybrid model."""
        return self.run(model, x).outputs

    __call__ = forward
