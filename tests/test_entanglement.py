"""Tests for entanglement entropy."""

import math

import numpy as np
import pytest

import quantum.entanglement as entanglement
from quantum.circuits import apply_circuit, build_circuit
from quantum.entanglement import (
    EntanglementAnalyzer,
    entanglement_entropy,
    reduced_density_matrix,
)
from quantum.exceptions import ArgumentError
from quantum.gates import CNOT, H, apply_gate
from quantum.health import bell_state
from quantum.state import StateVector


def ghz(n_qubits):
    state = apply_gate(StateVector.zero(n_qubits), H(1))
    for q in range(1, n_qubits):
        state = apply_gate(state, CNOT(q, q + 1))
    return state


def test_bell_state_has_one_bit():
    assert entanglement_entropy(bell_state()) == pytest.approx(1.0, abs=1e-6)


def test_product_state_has_zero_entropy():
    assert entanglement_entropy(StateVector.zero(2)) == pytest.approx(0.0, abs=1e-9)
    assert entanglement_entropy(StateVector.uniform(4)) == pytest.approx(0.0, abs=1e-9)


def test_entropy_never_negative():
    assert entanglement_entropy(StateVector.zero(3)) >= 0.0
    assert entanglement_entropy(StateVector.zero(1)) == 0.0


def test_ghz_subsystems():
    state = ghz(3)
    assert entanglement_entropy(state, subsystem=(1,)) == pytest.approx(1.0, abs=1e-6)
    assert entanglement_entropy(state, subsystem=(2, 3)) == pytest.approx(1.0, abs=1e-6)


def test_entropy_bounds():
    rng = np.random.default_rng(5)
    for _ in range(5):
        state = StateVector(rng.normal(size=16) + 1j * rng.normal(size=16))
        entropy = entanglement_entropy(state)
        # default partition: 2 qubits vs 2 qubits
        assert 0.0 <= entropy <= 2.0 + 1e-9


def test_reduced_density_matrix_properties():
    rng = np.random.default_rng(6)
    state = StateVector(rng.normal(size=8) + 1j * rng.normal(size=8))
    rho = reduced_density_matrix(state, subsystem=(1, 3))
    assert rho.shape == (4, 4)
    assert np.trace(rho).real == pytest.approx(1.0)
    assert np.allclose(rho, rho.conj().T)


def test_invalid_subsystem():
    with pytest.raises(ArgumentError):
        entanglement_entropy(StateVector.zero(2), subsystem=(3,))
    with pytest.raises(ArgumentError):
        entanglement_entropy(StateVector.zero(2), subsystem=(1, 1))


def test_numerical_failure_degrades_to_zero(monkeypatch):
    def broken(rho):
        raise np.linalg.LinAlgError("eigendecomposition did not converge")

    monkeypatch.setattr(entanglement, "density_eigenvalues", broken)
    with pytest.warns(RuntimeWarning):
        assert entanglement_entropy(bell_state()) == 0.0


def test_batch_entropy_matches_single():
    circuit = build_circuit(2, 1)
    rng = np.random.default_rng(7)
    batch = apply_circuit(StateVector(rng.normal(size=(4, 4))), circuit, rng.normal(size=4))

    serial = EntanglementAnalyzer().batch_entropy(batch)
    threaded = EntanglementAnalyzer(num_workers=3).batch_entropy(batch)

    assert serial.shape == (4,)
    assert np.allclose(serial, threaded)
    assert np.allclose(serial, [entanglement_entropy(batch[i]) for i in range(4)])


def test_mean_entropy():
    batch = StateVector.stack([bell_state(), StateVector.zero(2)])
    assert EntanglementAnalyzer().mean_entropy(batch) == pytest.approx(0.5, abs=1e-6)


def test_eigenvalues_normalized():
    values = EntanglementAnalyzer().eigenvalues(bell_state())
    assert values.sum() == pytest.approx(1.0)
    assert np.allclose(values, [0.5, 0.5])
