#!/usr/bin/env python
"""
Main Entry Point for Hybrid Quantum-Classical ML.

This script provides a unified interface for:
- Training a hybrid model (classical -> quantum circuit -> classical)
- Quantum-kernel SVM classification
- Simulator health checks

Usage:
    python main.py --mode train --epochs 50 --n_qubits 3
    python main.py --mode train --data X.npy --targets y.npy --input_dim 8
    python main.py --mode kernel --n_samples 40 --n_qubits 3 --n_layers 2
    python main.py --mode health
    python main.py --mode train --config experiment.yaml
"""

import argparse
import json
import random
import sys
from dataclasses import asdict
from pathlib import Path

import numpy as np
import torch
from sklearn.datasets import make_classification
from sklearn.model_selection import train_test_split

from configs.config import Config
from evaluation.kernel_svm import QuantumKernelSVM
from models.hybrid_model import count_parameters, create_model
from quantum.health import check_health
from training.metrics import regression_metrics, summarize_history
from training.trainer import Trainer


def set_seed(seed: int) -> None:
    """Set random seeds for reproducibility."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Hybrid Quantum-Classical ML on a state-vector simulator'
    )

    parser.add_argument(
        '--mode', type=str, default='train',
        choices=['train', 'kernel', 'health'],
        help='Operation mode'
    )
    parser.add_argument('--config', type=str, default=None,
                        help='YAML configuration file (CLI flags override it)')

    # Data arguments
    parser.add_argument('--data', type=str, default=None,
                        help='Inputs as .npy [n_samples, n_features] (synthetic if omitted)')
    parser.add_argument('--targets', type=str, default=None,
                        help='Targets/labels as .npy')
    parser.add_argument('--n_samples', type=int, default=64,
                        help='Number of synthetic samples')

    # Model arguments
    parser.add_argument('--input_dim', type=int, default=None, help='Input feature dimension')
    parser.add_argument('--output_dim', type=int, default=None, help='Output dimension')
    parser.add_argument('--hidden_dim', type=int, default=None, help='Hidden width of classical layers')

    # Quantum arguments
    parser.add_argument('--n_qubits', type=int, default=None, help='Number of qubits')
    parser.add_argument('--n_layers', type=int, default=None, help='Number of circuit layers')
    parser.add_argument('--encoding', type=str, default=None,
                        choices=['amplitude', 'fractal'], help='State preparation')
    parser.add_argument('--backend', type=str, default=None,
                        help="Simulator backend: cpu, cuda, pennylane or a PennyLane device name")

    # Training arguments
    parser.add_argument('--epochs', type=int, default=None, help='Number of training epochs')
    parser.add_argument('--lr', type=float, default=None, help='Learning rate')
    parser.add_argument('--quantum_lr', type=float, default=None,
                        help='Quantum parameters learning rate')
    parser.add_argument('--batch_size', type=int, default=None, help='Mini-batch size')
    parser.add_argument('--coherence_weight', type=float, default=None,
                        help='Weight of the entanglement coherence penalty')
    parser.add_argument('--num_workers', type=int, default=None,
                        help='Threads for entropy monitoring and kernel pairs')

    # Other
    parser.add_argument('--output_dir', type=str, default='./outputs', help='Output directory')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')

    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Build configuration from a YAML file and/or arguments."""
    config = Config.load(args.config) if args.config else Config()
    config_dict = config._to_dict()

    overrides = {
        ('model', 'input_dim'): args.input_dim,
        ('model', 'output_dim'): args.output_dim,
        ('model', 'hidden_dim'): args.hidden_dim,
        ('quantum', 'n_qubits'): args.n_qubits,
        ('quantum', 'n_layers'): args.n_layers,
        ('quantum', 'encoding'): args.encoding,
        ('quantum', 'backend'): args.backend,
        ('training', 'num_epochs'): args.epochs,
        ('training', 'learning_rate'): args.lr,
        ('training', 'quantum_learning_rate'): args.quantum_lr,
        ('training', 'batch_size'): args.batch_size,
        ('training', 'coherence_weight'): args.coherence_weight,
        ('training', 'num_workers'): args.num_workers,
        ('kernel', 'n_qubits'): args.n_qubits,
        ('kernel', 'n_layers'): args.n_layers,
        ('kernel', 'coherence_weight'): args.coherence_weight,
        ('kernel', 'num_workers'): args.num_workers,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            config_dict[section][key] = value

    config_dict['training']['log_dir'] = str(Path(args.output_dir) / 'logs')
    if args.seed is not None:
        config_dict['seed'] = args.seed

    # Rebuild so every override goes through validation
    return Config._from_dict(config_dict)


def load_regression_data(args, config: Config):
    """Inputs/targets from .npy files, or a smooth synthetic regression task."""
    if args.data is not None:
        x = np.load(args.data).astype(np.float32)
        if args.targets is None:
            raise ValueError("--targets required together with --data")
        y = np.load(args.targets).astype(np.float32)
        return x, y

    rng = np.random.default_rng(config.seed)
    x = rng.normal(size=(args.n_samples, config.model.input_dim)).astype(np.float32)
    w = rng.normal(size=(config.model.input_dim, config.model.output_dim))
    y = np.tanh(x @ w / np.sqrt(config.model.input_dim)).astype(np.float32)
    return x, y


def train_model(args, config: Config):
    """Train the hybrid model."""
    print("\n" + "="*60)
    print("TRAINING HYBRID QUANTUM-CLASSICAL MODEL")
    print("="*60)

    set_seed(config.seed)

    x, y = load_regression_data(args, config)
    if x.shape[1] != config.model.input_dim:
        print(f"Setting input_dim to data dimension {x.shape[1]}")
        config.model.input_dim = x.shape[1]
    y_2d = y.reshape(len(y), -1)
    if y_2d.shape[1] != config.model.output_dim:
        print(f"Setting output_dim to target dimension {y_2d.shape[1]}")
        config.model.output_dim = y_2d.shape[1]
    print(f"Data: {x.shape[0]} samples, {x.shape[1]} features")

    model = create_model(config)
    print(f"Model parameters: {count_parameters(model)}")

    trainer = Trainer(model, config)
    trainer.logger.log_config(config._to_dict())
    trainer.logger.log_model_summary(model)
    record = trainer.train(x, y_2d)

    with torch.no_grad():
        predictions = model(torch.as_tensor(x)).numpy()
    results = regression_metrics(y_2d, predictions)
    trainer.logger.log_evaluation_results(results, phase='train')
    trainer.logger.log_evaluation_results(
        summarize_history(record.losses, record.entropies), phase='history'
    )

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    torch.save(model.state_dict(), output_dir / 'hybrid_model.pt')
    config.save(str(output_dir / 'config.yaml'))
    trainer.close()

    print(f"\nTraining complete! Final loss: {record.losses[-1]:.4f}" if len(record) else "\nNo epochs run")
    return model, record, results


def run_kernel(args, config: Config):
    """Quantum-kernel SVM on labelled data."""
    print("\n" + "="*60)
    print("QUANTUM KERNEL SVM")
    print("="*60)

    set_seed(config.seed)

    if args.data is not None:
        if args.targets is None:
            raise ValueError("--targets required together with --data")
        X = np.load(args.data).astype(np.float64)
        y = np.load(args.targets)
    else:
        X, y = make_classification(
            n_samples=args.n_samples,
            n_features=2 ** config.kernel.n_qubits,
            n_informative=min(4, 2 ** config.kernel.n_qubits),
            n_redundant=0,
            random_state=config.seed,
        )

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=0.25, random_state=config.seed, stratify=y
    )

    svm = QuantumKernelSVM(config.kernel)
    svm.fit(X_train, y_train)
    report = svm.kernel_report(y_train)
    results = svm.evaluate(X_test, y_test)

    print("\nKernel diagnostics:")
    for name, value in report.items():
        print(f"  {name}: {value:.4f}")
    print("\nTest results:")
    for name, value in results.items():
        print(f"  {name}: {value:.4f}")

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    np.save(output_dir / 'train_kernel.npy', svm.train_kernel)
    with open(output_dir / 'kernel_results.json', 'w') as f:
        json.dump({'kernel': report, 'test': results}, f, indent=2)

    return svm, results


def run_health() -> int:
    """Print the health report; exit code 0 only when healthy."""
    status = check_health()
    print(json.dumps(asdict(status), indent=2, default=str))
    return 0 if status.status == 'healthy' else 1


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.mode == 'health':
        return run_health()

    config = build_config(args)
    print(f"Configuration:\n{config}")

    if args.mode == 'train':
        train_model(args, config)
    elif args.mode == 'kernel':
        run_kernel(args, config)
    return 0


if __name__ == '__main__':
    sys.exit(main())
