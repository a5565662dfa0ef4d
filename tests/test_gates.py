"""Tests for gate application."""

import math

import numpy as np
import pytest
import torch

from quantum.exceptions import InvalidGateError
from quantum.gates import CNOT, H, RX, RY, apply_gate
from quantum.state import StateVector


def basis(n_qubits, index):
    amps = np.zeros(2 ** n_qubits)
    amps[index] = 1.0
    return StateVector(amps)


def test_rx_pi_flips_zero():
    out = apply_gate(StateVector.zero(1), RX(1, math.pi))
    assert np.allclose(out.numpy(), [0, -1j], atol=1e-12)


def test_ry_rotation_probabilities():
    out = apply_gate(StateVector.zero(1), RY(1, math.pi / 2))
    assert np.allclose(out.numpy(), [1 / math.sqrt(2), 1 / math.sqrt(2)])


def test_hadamard_acts_on_most_significant_qubit():
    out = apply_gate(StateVector.zero(2), H(1))
    # qubit 1 is the most significant bit: |00> + |10>
    assert np.allclose(out.numpy(), [1 / math.sqrt(2), 0, 1 / math.sqrt(2), 0])


def test_cnot_flips_target_when_control_set():
    out = apply_gate(basis(2, 0b10), CNOT(1, 2))
    assert np.allclose(out.numpy(), basis(2, 0b11).numpy())


def test_cnot_leaves_control_zero_alone():
    out = apply_gate(basis(2, 0b01), CNOT(1, 2))
    assert np.allclose(out.numpy(), basis(2, 0b01).numpy())


def test_cnot_reversed_and_non_adjacent():
    assert np.allclose(apply_gate(basis(2, 0b01), CNOT(2, 1)).numpy(), basis(2, 0b11).numpy())
    assert np.allclose(apply_gate(basis(3, 0b001), CNOT(3, 1)).numpy(), basis(3, 0b101).numpy())
    assert np.allclose(apply_gate(basis(3, 0b100), CNOT(1, 3)).numpy(), basis(3, 0b101).numpy())


@pytest.mark.parametrize("gate", [RX(0, 0.1), RY(3, 0.1), H(-1), CNOT(1, 3), CNOT(0, 1)])
def test_out_of_range_qubit(gate):
    with pytest.raises(InvalidGateError):
        apply_gate(StateVector.zero(2), gate)


def test_cnot_same_qubit():
    with pytest.raises(InvalidGateError):
        apply_gate(StateVector.zero(2), CNOT(1, 1))


def test_invalid_gate_error_is_index_error():
    with pytest.raises(IndexError):
        apply_gate(StateVector.zero(1), H(2))


def test_apply_gate_is_pure():
    state = StateVector.zero(2)
    before = state.numpy()
    apply_gate(state, H(1))
    assert np.array_equal(state.numpy(), before)


def test_norm_preserved():
    rng = np.random.default_rng(0)
    state = StateVector(rng.normal(size=8) + 1j * rng.normal(size=8))
    for gate in [RX(1, 0.3), RY(2, 1.7), H(3), CNOT(3, 2), RX(2, -2.2)]:
        state = apply_gate(state, gate)
        assert state.is_normalized()


def test_angle_gradient():
    theta = torch.tensor(0.7, dtype=torch.float64, requires_grad=True)
    out = apply_gate(StateVector.zero(1), RY(1, theta))
    p_one = out.probabilities()[1]
    p_one.backward()
    # P(1) = sin^2(theta/2), dP/dtheta = sin(theta)/2
    assert float(p_one) == pytest.approx(math.sin(0.35) ** 2)
    assert float(theta.grad) == pytest.approx(math.sin(0.7) / 2)


def test_per_row_angles():
    batch = StateVector.zero(1, batch_shape=(2,))
    out = apply_gate(batch, RX(1, torch.tensor([0.0, math.pi])))
    probs = out.probabilities().numpy()
    assert np.allclose(probs[0], [1, 0])
    assert np.allclose(probs[1], [0, 1])
