"""
Training module for Hybrid Quantum-Classical ML.

Provides the training loop, the coherence-regularized loss, metrics,
and logging.
"""

from .trainer import Trainer, TrainingRecord, train, train_epoch
from .losses import CoherenceRegularizedLoss, coherence_penalty
from .metrics import compute_metrics, kernel_diagnostics, regression_metrics
from .logger import TrainingLogger

__all__ = [
    "Trainer",
    "TrainingRecord",
    "train",
    "train_epoch",
    "CoherenceRegularizedLoss",
    "coherence_penalty",
    "compute_metrics",
    "kernel_diagnostics",
    "regression_metrics",
    "TrainingLogger",
]
