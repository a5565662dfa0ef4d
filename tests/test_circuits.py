"""Tests for circuit construction and execution."""

import math

import numpy as np
import pytest
import torch

from quantum.circuits import (
    apply_circuit,
    build_circuit,
    circuit_resources,
    clear_circuit_cache,
    expected_parameter_count,
)
from quantum.encoding import encode
from quantum.exceptions import ArgumentError
from quantum.state import StateVector


def test_parameter_count():
    circuit = build_circuit(3, 2)
    assert circuit.n_parameters == 12
    assert expected_parameter_count(circuit) == 12
    assert expected_parameter_count(4, 3) == 24


def test_layer_structure():
    circuit = build_circuit(3, 2)
    first_layer = [(op.gate, op.wires, op.param_index) for op in circuit.operations[:8]]
    assert first_layer == [
        ("RX", (1,), 0), ("RY", (1,), 1),
        ("RX", (2,), 2), ("RY", (2,), 3),
        ("RX", (3,), 4), ("RY", (3,), 5),
        ("CNOT", (1, 2), None), ("CNOT", (2, 3), None),
    ]
    assert len(circuit.operations) == 16
    assert circuit.operations[8].param_index == 6


@pytest.mark.parametrize("n_qubits, n_layers", [(0, 1), (21, 1), (2, 0), (-1, 2)])
def test_invalid_sizes(n_qubits, n_layers):
    with pytest.raises(ArgumentError):
        build_circuit(n_qubits, n_layers)


def test_circuit_cache():
    assert build_circuit(2, 1) is build_circuit(2, 1)
    cached = build_circuit(2, 1)
    clear_circuit_cache()
    assert build_circuit(2, 1) is not cached
    assert build_circuit(2, 1) == cached


def test_wrong_parameter_length():
    circuit = build_circuit(2, 1)
    with pytest.raises(ArgumentError):
        apply_circuit(StateVector.zero(2), circuit, np.zeros(3))
    with pytest.raises(ArgumentError):
        apply_circuit(StateVector.zero(2), circuit, np.zeros(5))


def test_qubit_mismatch():
    with pytest.raises(ArgumentError):
        apply_circuit(StateVector.zero(3), build_circuit(2, 1), np.zeros(4))


def test_zero_parameters_keep_ground_state():
    circuit = build_circuit(3, 2)
    out = apply_circuit(StateVector.zero(3), circuit, np.zeros(12))
    assert np.allclose(out.numpy(), StateVector.zero(3).numpy())


def test_norm_preserved():
    rng = np.random.default_rng(1)
    circuit = build_circuit(4, 3)
    state = StateVector(rng.normal(size=16))
    out = apply_circuit(state, circuit, rng.uniform(0, 2 * math.pi, size=24))
    assert out.is_normalized()


def test_bell_pair_from_ansatz():
    # RY(pi/2) on qubit 1 then CNOT(1, 2) gives (|00> + |11>)/sqrt(2)
    params = np.array([0.0, math.pi / 2, 0.0, 0.0])
    out = apply_circuit(StateVector.zero(2), build_circuit(2, 1), params)
    assert np.allclose(out.numpy(), [1 / math.sqrt(2), 0, 0, 1 / math.sqrt(2)])


def test_per_row_parameters():
    circuit = build_circuit(1, 1)
    params = torch.tensor([[0.0, 0.0], [math.pi, 0.0]], dtype=torch.float64)
    out = apply_circuit(StateVector.zero(1, batch_shape=(2,)), circuit, params)
    probs = out.probabilities().numpy()
    assert np.allclose(probs, [[1, 0], [0, 1]])


def test_parameter_gradients():
    circuit = build_circuit(2, 1)
    params = torch.full((4,), 0.3, dtype=torch.float64, requires_grad=True)
    out = apply_circuit(StateVector.zero(2), circuit, params)
    out.probabilities()[3].backward()
    assert params.grad is not None
    assert torch.any(params.grad != 0)


def test_circuit_resources():
    resources = circuit_resources(build_circuit(3, 2))
    assert resources['single_qubit_gates'] == 12
    assert resources['two_qubit_gates'] == 4
    assert resources['trainable_parameters'] == 12
    assert resources['circuit_depth'] == 8


def test_encoded_two_qubit_state_through_ansatz():
    state = encode([0.1, 0.9], 2)
    circuit = build_circuit(2, 1)
    out = apply_circuit(state, circuit, [0.3, 1.1, 2.0, 0.7])
    assert circuit.n_parameters == 4
    assert out.dim == 4
    assert out.is_normalized()
    assert math.isclose(float(out.norm()), 1.0, abs_tol=1e-10)
