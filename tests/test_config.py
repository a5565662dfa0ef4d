"""Tests for configuration management."""

import pytest

from configs.config import Config, KernelConfig, ModelConfig, QuantumConfig, TrainingConfig
from quantum.exceptions import ArgumentError


def test_defaults():
    config = Config()
    assert config.training.learning_rate == 0.01
    assert config.training.coherence_weight == 0.1
    assert config.training.target_entropy == 1.0
    assert config.model.hidden_dim == 32
    assert config.training.seed == config.seed


def test_yaml_round_trip(tmp_path):
    config = Config(
        quantum=QuantumConfig(n_qubits=3, n_layers=2, encoding="fractal", entropy_subsystem=(1, 3)),
        model=ModelConfig(input_dim=7, output_dim=2),
        training=TrainingConfig(num_epochs=5, batch_size=4, scheduler_type="cosine"),
        kernel=KernelConfig(n_qubits=2, num_workers=2),
        experiment_name="roundtrip",
        seed=123,
    )
    path = tmp_path / "config.yaml"
    config.save(str(path))
    loaded = Config.load(str(path))

    assert loaded == config
    assert loaded.quantum.entropy_subsystem == (1, 3)
    assert loaded.training.seed == 123


def test_partial_yaml_uses_defaults(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text("quantum:\n  n_qubits: 5\nseed: 9\n")
    loaded = Config.load(str(path))
    assert loaded.quantum.n_qubits == 5
    assert loaded.quantum.n_layers == 1
    assert loaded.training.seed == 9


@pytest.mark.parametrize("factory", [
    lambda: QuantumConfig(n_qubits=0),
    lambda: QuantumConfig(n_qubits=21),
    lambda: QuantumConfig(n_layers=0),
    lambda: QuantumConfig(encoding="basis"),
    lambda: ModelConfig(hidden_dim=0),
    lambda: TrainingConfig(num_epochs=0),
    lambda: TrainingConfig(learning_rate=0.0),
    lambda: TrainingConfig(optimizer="lbfgs"),
    lambda: TrainingConfig(batch_size=0),
    lambda: TrainingConfig(scheduler_type="plateau"),
    lambda: KernelConfig(coherence_weight=-0.1),
])
def test_validation(factory):
    with pytest.raises(ArgumentError):
        factory()


def test_repr_is_json():
    assert '"project_name": "hybrid_quantum_ml"' in repr(Config())
