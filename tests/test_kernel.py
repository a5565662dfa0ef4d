"""Tests for the quantum kernel engine."""

import numpy as np
import pytest

import quantum.kernel as kernel_module
from quantum.exceptions import ArgumentError
from quantum.kernel import QuantumKernel, kernel_alignment, kernel_matrix, quantum_kernel


@pytest.fixture
def samples():
    rng = np.random.default_rng(11)
    return rng.normal(size=(6, 4))


def test_kernel_is_symmetric(samples):
    k12 = quantum_kernel(samples[0], samples[1], n_qubits=2, n_layers=2)
    k21 = quantum_kernel(samples[1], samples[0], n_qubits=2, n_layers=2)
    assert k12 == pytest.approx(k21)
    assert 0.0 <= k12 <= 1.0


def test_identical_points_without_penalty():
    x = [0.2, 0.8, 0.5, 0.1]
    assert quantum_kernel(x, x, n_qubits=2, n_layers=2, coherence_weight=0.0) == pytest.approx(1.0)


def test_penalty_shrinks_self_similarity():
    x = [0.2, 0.8, 0.5, 0.1]
    engine = QuantumKernel(2, 2)
    _, entropy = engine.feature_state(x)
    expected = np.exp(-0.1 * abs(entropy - 1.0))
    assert engine(x, x) == pytest.approx(expected)


def test_gram_matrix_properties(samples):
    K = kernel_matrix(samples, n_qubits=2, n_layers=2)
    assert K.shape == (6, 6)
    assert np.array_equal(K, K.T)
    assert np.all(np.diag(K) == 1.0)
    assert np.all((K >= 0.0) & (K <= 1.0))


def test_gram_matches_pairwise_kernel(samples):
    engine = QuantumKernel(2, 2)
    K = engine.matrix(samples)
    assert K[0, 3] == pytest.approx(engine(samples[0], samples[3]))


def test_threaded_gram_matches_serial(samples):
    serial = kernel_matrix(samples, n_qubits=2, n_layers=1, num_workers=1)
    threaded = kernel_matrix(samples, n_qubits=2, n_layers=1, num_workers=4)
    assert np.allclose(serial, threaded)


def test_cross_kernel(samples):
    engine = QuantumKernel(2, 1)
    K_cross = engine.matrix(samples[:2], samples[2:])
    K = engine.matrix(samples)
    assert K_cross.shape == (2, 4)
    assert np.allclose(K_cross, K[:2, 2:])


def test_failed_encoding_degrades_to_zero(samples, monkeypatch):
    def broken(*args, **kwargs):
        raise FloatingPointError("simulated failure")

    monkeypatch.setattr(kernel_module, "fractal_feature_map", broken)
    engine = QuantumKernel(2, 1)
    with pytest.warns(RuntimeWarning):
        assert engine(samples[0], samples[1]) == 0.0
    with pytest.warns(RuntimeWarning):
        K = engine.matrix(samples[:3])
    assert np.array_equal(K, np.eye(3))


def test_invalid_inputs():
    with pytest.raises(ArgumentError):
        QuantumKernel(0, 1)
    with pytest.raises(ArgumentError):
        QuantumKernel(2, 1, coherence_weight=-1.0)
    with pytest.raises(ArgumentError):
        QuantumKernel(2, 1).matrix(np.zeros(4))


def test_kernel_alignment_of_ideal_kernel():
    y = np.array([1, 1, -1, -1, 1, -1], dtype=float)
    assert kernel_alignment(np.outer(y, y), y) == pytest.approx(1.0)
