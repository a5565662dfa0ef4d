"""
Configuration module for the Hybrid Quantum-Classical pipeline.

Provides centralized configuration management using dataclasses.
"""

from .config import (
    Config,
    KernelConfig,
    ModelConfig,
    QuantumConfig,
    TrainingConfig,
)

__all__ = [
    "Config",
    "KernelConfig",
    "ModelConfig",
    "QuantumConfig",
    "TrainingConfig",
]
