"""
Evaluation module.

Provides support vector classification on precomputed quantum kernels.
"""

from .kernel_svm import QuantumKernelSVM

__all__ = [
    "QuantumKernelSVM",
]
