"""Tests for the command line entry point."""

import json

import numpy as np

import main


def test_build_config_overrides(tmp_path):
    args = main.parse_args([
        "--n_qubits", "3", "--epochs", "2", "--lr", "0.05",
        "--encoding", "fractal", "--output_dir", str(tmp_path),
    ])
    config = main.build_config(args)
    assert config.quantum.n_qubits == 3
    assert config.kernel.n_qubits == 3
    assert config.quantum.encoding == "fractal"
    assert config.training.num_epochs == 2
    assert config.training.learning_rate == 0.05
    assert config.training.log_dir == str(tmp_path / "logs")


def test_train_mode(tmp_path):
    exit_code = main.main([
        "--mode", "train", "--n_samples", "8", "--input_dim", "3", "--output_dim", "1",
        "--n_qubits", "2", "--epochs", "2", "--output_dir", str(tmp_path),
    ])
    assert exit_code == 0
    assert (tmp_path / "hybrid_model.pt").exists()
    assert (tmp_path / "config.yaml").exists()


def test_train_mode_with_npy_data(tmp_path):
    rng = np.random.default_rng(0)
    np.save(tmp_path / "x.npy", rng.normal(size=(6, 5)))
    np.save(tmp_path / "y.npy", rng.normal(size=(6, 2)))
    exit_code = main.main([
        "--mode", "train", "--data", str(tmp_path / "x.npy"), "--targets", str(tmp_path / "y.npy"),
        "--n_qubits", "2", "--epochs", "1", "--output_dir", str(tmp_path),
    ])
    assert exit_code == 0


def test_kernel_mode(tmp_path):
    exit_code = main.main([
        "--mode", "kernel", "--n_samples", "16", "--n_qubits", "2", "--n_layers", "1",
        "--num_workers", "1", "--output_dir", str(tmp_path),
    ])
    assert exit_code == 0
    K = np.load(tmp_path / "train_kernel.npy")
    assert K.shape == (12, 12)
    with open(tmp_path / "kernel_results.json") as f:
        assert "accuracy" in json.load(f)["test"]


def test_health_mode():
    assert main.main(["--mode", "health"]) == 0
