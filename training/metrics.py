"""
Metrics for Model Evaluation.

This module provides:
- Classification metrics (accuracy, precision, recall, F1, AUC) for the
  kernel SVM and for classifiers built on hybrid outputs
- Regression metrics (MSE, MAE, R^2) for the MSE-trained hybrid model
- Kernel-matrix diagnostics

Design Decisions:
- scikit-learn implementations throughout
- Macro averaging by default for multi-class
"""

from typing import Dict, List, Optional

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    precision_score,
    r2_score,
    recall_score,
    roc_auc_score,
)


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    y_score: Optional[np.ndarray] = None,
    average: str = 'macro'
) -> Dict[str, float]:
    """
    Compute classification metrics.

    Args:
        y_true: Ground truth labels [n_samples]
        y_pred: Predicted labels [n_samples]
        y_score: Scores for AUC: [n_samples] decision values (binary) or
            [n_samples, n_classes] probabilities
        average: Averaging method for multi-class ('macro', 'micro', 'weighted')

    Returns:
        Dictionary of metric names to values
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)

    metrics = {
        'accuracy': float(accuracy_score(y_true, y_pred)),
        'precision': float(precision_score(y_true, y_pred, average=average, zero_division=0)),
        'recall': float(recall_score(y_true, y_pred, average=average, zero_division=0)),
        'f1': float(f1_score(y_true, y_pred, average=average, zero_division=0)),
    }

    if y_score is not None:
        y_score = np.asarray(y_score)
        try:
            if y_score.ndim == 1:
                auc = roc_auc_score(y_true, y_score)
            elif y_score.shape[1] == 2:
                auc = roc_auc_score(y_true, y_score[:, 1])
            else:
                auc = roc_auc_score(y_true, y_score, multi_class='ovr', average=average)
            metrics['auc'] = float(auc)
        except ValueError:
            # AUC undefined if not all classes present in y_true
            metrics['auc'] = 0.0

    return metrics


def regression_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
    """
    MSE, MAE and R^2 over all output dimensions.

    Args:
        y_true: Targets [n_samples, ...]
        y_pred: Predictions, same shape

    Returns:
        Dictionary of metric names to values
    """
    y_true = np.asarray(y_true, dtype=np.float64).reshape(len(y_true), -1)
    y_pred = np.asarray(y_pred, dtype=np.float64).reshape(len(y_pred), -1)

    metrics = {
        'mse': float(mean_squared_error(y_true, y_pred)),
        'mae': float(mean_absolute_error(y_true, y_pred)),
    }
    if len(y_true) > 1:
        metrics['r2'] = float(r2_score(y_true, y_pred))
    return metrics


def kernel_diagnostics(K: np.ndarray) -> Dict[str, float]:
    """
    Summary statistics of a kernel matrix.

    Reports the symmetry error, the largest deviation of the diagonal from 1,
    the smallest eigenvalue (PSD check) and the mean off-diagonal value.
    """
    K = np.asarray(K, dtype=np.float64)
    n = K.shape[0]
    off_diagonal = K[~np.eye(n, dtype=bool)]

    return {
        'symmetry_error': float(np.max(np.abs(K - K.T))) if n else 0.0,
        'diagonal_error': float(np.max(np.abs(np.diag(K) - 1.0))) if n else 0.0,
        'min_eigenvalue': float(np.min(np.linalg.eigvalsh((K + K.T) / 2))) if n else 0.0,
        'mean_off_diagonal': float(off_diagonal.mean()) if off_diagonal.size else 0.0,
    }


def summarize_history(losses: List[float], entropies: List[float]) -> Dict[str, float]:
    """Best/final loss and final entropy of a training run (failed epochs skipped)."""
    finite = [l for l in losses if np.isfinite(l)]
    return {
        'epochs': float(len(losses)),
        'failed_epochs': float(len(losses) - len(finite)),
        'best_loss': float(min(finite)) if finite else float('inf'),
        'final_loss': float(losses[-1]) if losses else float('inf'),
        'final_entropy': float(entropies[-1]) if entropies else 0.0,
    }
