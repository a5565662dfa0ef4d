"""Tests for the health check."""

import numpy as np

from quantum.health import HealthStatus, bell_state, check_health, is_healthy


def test_bell_state_amplitudes():
    assert np.allclose(bell_state().probabilities().numpy(), [0.5, 0, 0, 0.5])


def test_native_health_check():
    status = check_health(pennylane_devices=())
    assert isinstance(status, HealthStatus)
    assert status.status == "healthy"
    assert status.details["quantum_ops"] == "working"
    assert abs(status.details["bell_entropy"] - 1.0) < 1e-6


def test_pennylane_probe():
    status = check_health()
    assert status.details["pennylane:default.qubit"] == "working"
    assert is_healthy()


def test_missing_device_only_degrades():
    status = check_health(pennylane_devices=("no.such.device",))
    assert status.status == "degraded"
    assert status.details["pennylane:no.such.device"].startswith("error")
