"""Tests for fractal data encoding."""

import math

import numpy as np
import pytest
import torch

from quantum.encoding import (
    FractalEncoder,
    encode,
    fractal_angles,
    fractal_feature_map,
    fractal_level,
    minmax_normalize,
)
from quantum.exceptions import ArgumentError


def test_fractal_levels():
    assert [fractal_level(q) for q in range(1, 8)] == [1, 1, 2, 2, 2, 2, 3]


def test_minmax_normalize():
    values = minmax_normalize([2.0, 4.0, 6.0]).numpy()
    assert np.allclose(values, [0.0, 0.5, 1.0])


def test_constant_input_maps_to_half():
    assert np.allclose(minmax_normalize([3.0, 3.0, 3.0]).numpy(), 0.5)
    angles = fractal_angles([3.0, 3.0, 3.0, 3.0], 3).numpy()
    assert np.allclose(angles, math.pi / 2)


def test_constant_input_state():
    state = encode([7.0, 7.0, 7.0, 7.0], 2)
    # RX(pi/2) on both qubits: every basis state has probability 1/4
    assert np.allclose(state.probabilities().numpy(), 0.25)


def test_hierarchical_angles():
    # normalized [0, 0, 1, 1]: qubits 1-2 average 2 values, qubit 3 averages 4
    angles = fractal_angles([0.0, 0.0, 1.0, 1.0], 3).numpy()
    assert np.allclose(angles, [0.0, 0.0, math.pi / 2])


def test_short_data_uses_all_values():
    angles = fractal_angles([0.0, 1.0], 4).numpy()
    assert np.allclose(angles, math.pi / 2)


def test_empty_data_raises():
    with pytest.raises(ArgumentError):
        encode([], 2)


def test_invalid_qubit_count():
    with pytest.raises(ArgumentError):
        encode([1.0, 2.0], 0)


def test_encoded_state_normalized():
    rng = np.random.default_rng(3)
    for n_qubits in (1, 3, 5):
        state = encode(rng.normal(size=10), n_qubits)
        assert state.n_qubits == n_qubits
        assert state.is_normalized()


def test_batched_encoding_matches_rows():
    rng = np.random.default_rng(4)
    data = rng.normal(size=(3, 8))
    batch = encode(data, 3)
    assert batch.batch_shape == (3,)
    for i in range(3):
        assert np.allclose(batch[i].numpy(), encode(data[i], 3).numpy())


def test_feature_map_deterministic_and_normalized():
    x = [0.1, 0.9, 0.4, 0.3]
    a = fractal_feature_map(x, 2, 3)
    b = fractal_feature_map(x, 2, 3)
    assert a.is_normalized()
    assert np.allclose(a.numpy(), b.numpy())


def test_encoder_object():
    encoder = FractalEncoder(2, n_layers=2)
    x = torch.tensor([0.0, 1.0, 2.0, 3.0])
    assert np.allclose(encoder.encode(x).numpy(), encode(x, 2).numpy())
    assert np.allclose(encoder.feature_map(x).numpy(), fractal_feature_map(x, 2, 2).numpy())
