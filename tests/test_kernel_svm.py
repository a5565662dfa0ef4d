"""Tests for precomputed-kernel SVM evaluation and metrics."""

import numpy as np
import pytest

from configs.config import KernelConfig
from evaluation.kernel_svm import QuantumKernelSVM
from training.metrics import compute_metrics, kernel_diagnostics, regression_metrics, summarize_history


@pytest.fixture
def separable():
    rng = np.random.default_rng(21)
    low = rng.uniform(0.0, 0.2, size=(8, 4))
    high = low.copy()
    high[:, 2:] += 1.0
    X = np.vstack([low, high])
    y = np.array(["low"] * 8 + ["high"] * 8)
    return X, y


def test_fit_predict(separable):
    X, y = separable
    svm = QuantumKernelSVM(KernelConfig(n_qubits=2, n_layers=1, num_workers=2))
    svm.fit(X, y)
    assert svm.train_kernel.shape == (16, 16)
    predictions = svm.predict(X)
    assert set(predictions) <= {"low", "high"}
    metrics = svm.evaluate(X, y)
    assert set(metrics) >= {"accuracy", "precision", "recall", "f1", "auc"}
    assert 0.0 <= metrics["accuracy"] <= 1.0


def test_kernel_report(separable):
    X, y = separable
    svm = QuantumKernelSVM(KernelConfig(n_qubits=2, n_layers=1)).fit(X, y)
    report = svm.kernel_report(y)
    assert report["symmetry_error"] == 0.0
    assert report["diagonal_error"] == 0.0
    assert -1.0 <= report["alignment"] <= 1.0


def test_predict_before_fit():
    with pytest.raises(RuntimeError):
        QuantumKernelSVM(KernelConfig(n_qubits=2, n_layers=1)).predict(np.zeros((1, 4)))


def test_compute_metrics():
    metrics = compute_metrics([0, 1, 1, 0], [0, 1, 0, 0], y_score=[0.1, 0.9, 0.4, 0.2])
    assert metrics["accuracy"] == pytest.approx(0.75)
    assert metrics["auc"] == pytest.approx(1.0)


def test_regression_metrics():
    metrics = regression_metrics(np.array([[1.0], [2.0], [3.0]]), np.array([[1.0], [2.0], [4.0]]))
    assert metrics["mse"] == pytest.approx(1 / 3)
    assert metrics["mae"] == pytest.approx(1 / 3)


def test_kernel_diagnostics():
    report = kernel_diagnostics(np.array([[1.0, 0.5], [0.5, 1.0]]))
    assert report["min_eigenvalue"] == pytest.approx(0.5)
    assert report["mean_off_diagonal"] == pytest.approx(0.5)


def test_summarize_history():
    summary = summarize_history([1.0, float("inf"), 0.5], [0.2, 0.0, 0.4])
    assert summary["failed_epochs"] == 1.0
    assert summary["best_loss"] == 0.5
    assert summary["final_entropy"] == 0.4
