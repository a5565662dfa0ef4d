"""
Models module for Hybrid Quantum-Classical ML.

Provides the quantum layer, the hybrid model and its forward pipeline.
"""

from .hybrid_model import (
    HybridQuantumModel,
    QuantumLayer,
    count_parameters,
    create_hybrid_model,
    create_model,
)
from .pipeline import HybridPipeline, PipelineOutput

__all__ = [
    "HybridQuantumModel",
    "QuantumLayer",
    "count_parameters",
    "create_hybrid_model",
    "create_model",
    "HybridPipeline",
    "PipelineOutput",
]
