"""
Support Vector Classification on Quantum Kernels.

Fits scikit-learn's SVC with a precomputed quantum Gram matrix and predicts
with the cross kernel between test and training samples.

Design Decisions:
- Kernel values come from QuantumKernel (fractal feature map + coherence
  penalty); the SVM only ever sees precomputed matrices
- Training samples are kept to build cross kernels at predict time
- Labels are encoded with LabelEncoder so any hashable labels work
"""

from typing import Dict, Optional

import numpy as np
from sklearn.preprocessing import LabelEncoder
from sklearn.svm import SVC

from configs.config import KernelConfig
from quantum.kernel import QuantumKernel, kernel_alignment
from training.metrics import compute_metrics, kernel_diagnostics


class QuantumKernelSVM:
    """
    SVC over a precomputed quantum kernel.

    Attributes:
        config: Kernel configuration
        kernel: QuantumKernel engine
        model: Fitted sklearn SVC (None before fit)
        label_encoder: Label encoder for class mapping
        train_kernel: Gram matrix of the training samples
    """

    def __init__(self, config: Optional[KernelConfig] = None):
        self.config = config if config is not None else KernelConfig()
        self.kernel = QuantumKernel(
            n_qubits=self.config.n_qubits,
            n_layers=self.config.n_layers,
            coherence_weight=self.config.coherence_weight,
            target_entropy=self.config.target_entropy,
            num_workers=self.config.num_workers,
        )
        self.model = None
        self.label_encoder = LabelEncoder()
        self.train_kernel = None
        self._X_train = None
        self.is_fitted = False

        print(
            f"QuantumKernelSVM initialized: {self.config.n_qubits} qubits, "
            f"{self.config.n_layers} feature-map layers, C={self.config.svm_c}"
        )

    def fit(self, X: np.ndarray, y: np.ndarray) -> "QuantumKernelSVM":
        """
        Compute the training Gram matrix and fit the SVM.

        Args:
            X: Training samples [n_samples, n_features]
            y: Training labels [n_samples]

        Returns:
            self
        """
        X = np.asarray(X, dtype=np.float64)
        y_encoded = self.label_encoder.fit_transform(np.asarray(y))

        self.train_kernel = self.kernel.matrix(X)
        self._X_train = X

        self.model = SVC(kernel='precomputed', C=self.config.svm_c)
        self.model.fit(self.train_kernel, y_encoded)
        self.is_fitted = True
        return self

    def _cross_kernel(self, X: np.ndarray) -> np.ndarray:
        if not self.is_fitted:
            raise RuntimeError("Model not fitted. Call fit() first.")
        return self.kernel.matrix(np.asarray(X, dtype=np.float64), self._X_train)

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """Decision values for samples [n_samples, n_features]."""
        K_test = self._cross_kernel(X)
        return self.model.decision_function(K_test)

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Predict class labels."""
        K_test = self._cross_kernel(X)
        y_encoded = self.model.predict(K_test)
        return self.label_encoder.inverse_transform(y_encoded)

    def evaluate(self, X: np.ndarray, y: np.ndarray) -> Dict[str, float]:
        """
        Classification metrics on a labelled set.

        Args:
            X: Samples [n_samples, n_features]
            y: True labels [n_samples]

        Returns:
            Metrics dictionary (accuracy, precision, recall, f1, and auc for
            binary problems)
        """
        K_test = self._cross_kernel(X)
        y_true = self.label_encoder.transform(np.asarray(y))
        y_pred = self.model.predict(K_test)

        y_score = None
        if len(self.label_encoder.classes_) == 2:
            y_score = self.model.decision_function(K_test)

        return compute_metrics(y_true, y_pred, y_score)

    def kernel_report(self, y: Optional[np.ndarray] = None) -> Dict[str, float]:
        """Diagnostics of the training Gram matrix (and label alignment for binary y)."""
        if self.train_kernel is None:
            raise RuntimeError("Model not fitted. Call fit() first.")

        report = kernel_diagnostics(self.train_kernel)
        if y is not None:
            y_encoded = self.label_encoder.transform(np.asarray(y))
            if len(self.label_encoder.classes_) == 2:
                report['alignment'] = kernel_alignment(self.train_kernel, 2.0 * y_encoded - 1.0)
        return report
