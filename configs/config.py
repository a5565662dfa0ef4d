"""
Central Configuration Management for the Hybrid Quantum-Classical Pipeline.

This module provides a type-safe configuration system using dataclasses.
All hyperparameters and architectural choices are centralized here for
reproducibility.

Design Decisions:
- Dataclasses provide type safety and IDE autocompletion
- Nested configs for logical grouping (quantum, model, training, kernel)
- Default values chosen for small, fast state-vector simulation
- YAML round trip for experiment records
- Validation in __post_init__ raises ArgumentError at construction time
"""

from dataclasses import asdict, dataclass, field
from typing import Optional, Tuple
import json

import yaml

from quantum.exceptions import ArgumentError
from quantum.utils import validate_layer_count, validate_qubit_count


@dataclass
class QuantumConfig:
    """Configuration for the quantum layer."""

    # Number of qubits (1-20); the classical preprocessor outputs 2^n_qubits
    n_qubits: int = 4

    # Number of RX/RY + CNOT-chain layers in the variational circuit
    n_layers: int = 1

    # How preprocessed features enter the circuit:
    # 'amplitude': normalized directly into a 2^n state vector
    # 'fractal':   fractal angle encoding of the features, then the ansatz
    encoding: str = "amplitude"

    # Simulator backend: 'cpu' (native), 'cuda', 'pennylane',
    # or a PennyLane device name ('default.qubit', 'lightning.qubit').
    # Non-CPU backends fall back to the CPU path on failure.
    backend: str = "cpu"

    # Qubits (1-based) of partition A for entanglement entropy
    # None = first floor(n_qubits / 2) qubits
    entropy_subsystem: Optional[Tuple[int, ...]] = None

    def __post_init__(self):
        validate_qubit_count(self.n_qubits)
        validate_layer_count(self.n_layers)
        if self.encoding not in ("amplitude", "fractal"):
            raise ArgumentError(
                f"Unknown encoding: {self.encoding}. Must be 'amplitude' or 'fractal'"
            )
        if self.entropy_subsystem is not None:
            self.entropy_subsystem = tuple(self.entropy_subsystem)


@dataclass
class ModelConfig:
    """Configuration for the classical pre/post-processing layers."""

    # Input feature dimension
    input_dim: int = 16

    # Output dimension of the postprocessor
    output_dim: int = 10

    # Hidden width of both classical MLPs
    hidden_dim: int = 32

    def __post_init__(self):
        for name in ("input_dim", "output_dim", "hidden_dim"):
            value = getattr(self, name)
            if value < 1:
                raise ArgumentError(f"{name} must be at least 1, got {value}")


@dataclass
class TrainingConfig:
    """Configuration for training."""

    # Number of training epochs
    num_epochs: int = 100

    # Learning rate (classical layers, and quantum layer unless overridden)
    learning_rate: float = 0.01

    # Separate learning rate for quantum parameters (None = learning_rate)
    quantum_learning_rate: Optional[float] = None

    # Optimizer: 'adam', 'adamw', 'sgd'
    optimizer: str = "adam"

    # Weight decay for regularization
    weight_decay: float = 0.0

    # Coherence penalty: weight * |entropy - target_entropy|
    coherence_weight: float = 0.1
    target_entropy: float = 1.0

    # Mini-batch size (None = full batch per epoch)
    batch_size: Optional[int] = None
    shuffle: bool = True

    # Gradient clipping (0 disables)
    gradient_clip_value: float = 1.0

    # Learning rate scheduler: None, 'cosine', 'step'
    scheduler_type: Optional[str] = None
    scheduler_step_size: int = 10
    scheduler_factor: float = 0.5

    # Threads for per-sample entropy monitoring
    num_workers: int = 1

    # Logging
    log_dir: str = "./outputs/logs"
    use_tensorboard: bool = True
    progress_bar: bool = True

    # Random seed
    seed: int = 42

    def __post_init__(self):
        if self.num_epochs < 1:
            raise ArgumentError(f"num_epochs must be at least 1, got {self.num_epochs}")
        if self.learning_rate <= 0:
            raise ArgumentError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.optimizer.lower() not in ("adam", "adamw", "sgd"):
            raise ArgumentError(f"Unknown optimizer: {self.optimizer}")
        if self.batch_size is not None and self.batch_size < 1:
            raise ArgumentError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.scheduler_type not in (None, "cosine", "step"):
            raise ArgumentError(f"Unknown scheduler: {self.scheduler_type}")


@dataclass
class KernelConfig:
    """Configuration for quantum kernel computation."""

    # Feature-map register size and depth
    n_qubits: int = 4
    n_layers: int = 3

    # exp(-coherence_weight * mean |entropy - target_entropy|)
    coherence_weight: float = 0.1
    target_entropy: float = 1.0

    # Threads for sample encoding and pairwise overlaps
    num_workers: int = 4

    # Regularization of the precomputed-kernel SVM
    svm_c: float = 1.0

    def __post_init__(self):
        validate_qubit_count(self.n_qubits)
        validate_layer_count(self.n_layers)
        if self.coherence_weight < 0:
            raise ArgumentError(f"coherence_weight must be >= 0, got {self.coherence_weight}")


@dataclass
class Config:
    """Master configuration combining all sub-configurations."""

    # Sub-configurations
    quantum: QuantumConfig = field(default_factory=QuantumConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    kernel: KernelConfig = field(default_factory=KernelConfig)

    # Project-level settings
    project_name: str = "hybrid_quantum_ml"
    experiment_name: str = "default"

    # Random seed (master seed, propagated to sub-configs)
    seed: int = 42

    def __post_init__(self):
        """Propagate the master seed."""
        self.training.seed = self.seed

    def save(self, path: str) -> None:
        """Save configuration to YAML file."""
        with open(path, 'w') as f:
            yaml.safe_dump(self._to_dict(), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str) -> "Config":
        """Load configuration from YAML file."""
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        return cls._from_dict(config_dict)

    def _to_dict(self) -> dict:
        """Convert config to dictionary (tuples become lists for YAML)."""
        config_dict = asdict(self)
        subsystem = config_dict['quantum']['entropy_subsystem']
        if subsystem is not None:
            config_dict['quantum']['entropy_subsystem'] = list(subsystem)
        return config_dict

    @classmethod
    def _from_dict(cls, config_dict: dict) -> "Config":
        """Create config from dictionary."""
        return cls(
            quantum=QuantumConfig(**config_dict.get('quantum', {})),
            model=ModelConfig(**config_dict.get('model', {})),
            training=TrainingConfig(**config_dict.get('training', {})),
            kernel=KernelConfig(**config_dict.get('kernel', {})),
            project_name=config_dict.get('project_name', 'hybrid_quantum_ml'),
            experiment_name=config_dict.get('experiment_name', 'default'),
            seed=config_dict.get('seed', 42),
        )

    def __repr__(self) -> str:
        """Pretty print configuration."""
        return json.dumps(self._to_dict(), indent=2, default=str)
