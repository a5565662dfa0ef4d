"""
Loss Functions for Hybrid Quantum-Classical Training.

The training objective is a regression loss plus a coherence term that
keeps the quantum layer's entanglement near a target:

    L = MSE(outputs, targets) + w * |S - S_target|

Design Decisions:
- Entropy S is a monitoring signal computed on detached states (numpy
  eigendecomposition), so the coherence term shifts the loss value but
  contributes no gradient; eigenvalue gradients are unstable at
  degenerate spectra
- Defaults w = 0.1, S_target = 1.0 bit
"""

import torch
import torch.nn as nn
import torch.nn.functional as F

from quantum.exceptions import ArgumentError


def coherence_penalty(entropy: float, weight: float = 0.1, target: float = 1.0) -> float:
    """w * |entropy - target|."""
    return weight * abs(entropy - target)


class CoherenceRegularizedLoss(nn.Module):
    """
    MSE with an entanglement-coherence penalty.

    Attributes:
        weight: Penalty weight w (>= 0)
        target: Target entropy in bits
    """

    def __init__(self, weight: float = 0.1, target: float = 1.0):
        super().__init__()

        if weight < 0:
            raise ArgumentError(f"Coherence weight must be >= 0, got {weight}")

        self.weight = weight
        self.target = target

    def forward(
        self,
        predictions: torch.Tensor,
        targets: torch.Tensor,
        entropy: float = None,
    ) -> torch.Tensor:
        """
        Compute the regularized loss.

        Args:
            predictions: Model outputs [batch, output_dim]
            targets: Targets, same shape as predictions
            entropy: Mean entanglement entropy of the batch (None = no penalty)

        Returns:
            Scalar loss
        """
        targets = targets.to(predictions.dtype)
        loss = F.mse_loss(predictions, targets)

        if entropy is not None:
            loss = loss + coherence_penalty(entropy, self.weight, self.target)

        return loss

    def extra_repr(self) -> str:
        return f"weight={self.weight}, target={self.target}"
