"""
Training Logger for Experiment Tracking.

This module provides logging utilities including:
- Console logging with timestamps
- File logging for reproducibility
- Optional TensorBoard integration
- History saving and loading

Design Decisions:
- One timestamped directory per run
- TensorBoard only when requested and installed
- JSON history (loss/entropy per epoch) for analysis
"""

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np


class TrainingLogger:
    """
    Training logger.

    Attributes:
        log_dir: Root directory for logs
        experiment_name: Name of the experiment
        exp_dir: Directory of this run
        log_file: Path to text log file
        tb_writer: TensorBoard SummaryWriter (if enabled and available)
    """

    def __init__(
        self,
        log_dir: str = './outputs/logs',
        experiment_name: str = 'experiment',
        use_tensorboard: bool = True,
        verbose: bool = True,
    ):
        """
        Initialize logger.

        Args:
            log_dir: Directory for log files
            experiment_name: Name for this experiment
            use_tensorboard: Write TensorBoard scalars if available
            verbose: Echo messages to the console
        """
        self.log_dir = Path(log_dir)
        self.experiment_name = experiment_name
        self.verbose = verbose

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
        self.exp_dir = self.log_dir / f'{experiment_name}_{timestamp}'
        self.exp_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.exp_dir / 'training.log'

        self.tb_writer = None
        if use_tensorboard:
            try:
                from torch.utils.tensorboard import SummaryWriter
                self.tb_writer = SummaryWriter(str(self.exp_dir / 'tensorboard'))
                self._log("TensorBoard logging enabled")
            except ImportError:
                self._log("TensorBoard not available, skipping")

        self._log(f"Experiment: {experiment_name}")
        self._log(f"Log directory: {self.exp_dir}")

    def _log(self, message: str) -> None:
        """Write message to console and log file."""
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        formatted = f"[{timestamp}] {message}"

        if self.verbose:
            print(formatted)

        with open(self.log_file, 'a') as f:
            f.write(formatted + '\n')

    def log_config(self, config: dict) -> None:
        """Dump a configuration dictionary to config.json."""
        config_path = self.exp_dir / 'config.json'
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2, default=str)

        self._log(f"Configuration saved to {config_path}")

    def log_epoch(
        self,
        epoch: int,
        metrics: Dict[str, float],
        learning_rate: float,
        epoch_time: float,
    ) -> None:
        """
        Log metrics for one epoch.

        Args:
            epoch: Epoch index (0-based)
            metrics: Epoch metrics (loss, entropy, ...)
            learning_rate: Current learning rate
            epoch_time: Time taken for the epoch
        """
        if self.tb_writer is not None:
            for name, value in metrics.items():
                if math.isfinite(value):
                    self.tb_writer.add_scalar(f'train/{name}', value, epoch)
            self.tb_writer.add_scalar('learning_rate', learning_rate, epoch)

        metric_str = ' | '.join(f'{k}: {v:.4f}' for k, v in metrics.items())
        self._log(f"Epoch {epoch + 1} | {metric_str} | LR: {learning_rate:.6f} | Time: {epoch_time:.2f}s")

    def log_message(self, message: str) -> None:
        """Log an arbitrary message."""
        self._log(message)

    def save_history(self, history: Dict[str, List[float]]) -> Path:
        """
        Save training history to JSON.

        Non-finite values (failed epochs) are written as strings
        ("inf", "nan") to keep the file valid JSON.

        Args:
            history: Dictionary of metric histories

        Returns:
            Path of the written file
        """
        history_path = self.exp_dir / 'history.json'

        def clean(value):
            value = float(value)
            return value if math.isfinite(value) else str(value)

        history_clean = {}
        for key, values in history.items():
            if isinstance(values, np.ndarray):
                values = values.tolist()
            history_clean[key] = [clean(v) for v in values]

        with open(history_path, 'w') as f:
            json.dump(history_clean, f, indent=2)

        self._log(f"History saved to {history_path}")
        return history_path

    def load_history(self, path: Optional[str] = None) -> Dict[str, List[float]]:
        """Load training history written by save_history."""
        if path is None:
            path = self.exp_dir / 'history.json'

        with open(path, 'r') as f:
            raw = json.load(f)
        return {key: [float(v) for v in values] for key, values in raw.items()}

    def log_model_summary(self, model) -> None:
        """Log parameter counts of a model."""
        total_params = sum(p.numel() for p in model.parameters())
        trainable_params = sum(p.numel() for p in model.parameters() if p.requires_grad)

        self._log("Model Summary:")
        self._log(f"  Total parameters: {total_params:,}")
        self._log(f"  Trainable parameters: {trainable_params:,}")
        self._log(f"  Non-trainable parameters: {total_params - trainable_params:,}")

    def log_evaluation_results(self, results: Dict[str, float], phase: str = 'test') -> None:
        """Log evaluation metrics and save them to <phase>_results.json."""
        self._log(f"{phase.upper()} Results:")
        for name, value in results.items():
            self._log(f"  {name}: {value:.4f}")

        results_path = self.exp_dir / f'{phase}_results.json'
        with open(results_path, 'w') as f:
            json.dump({k: float(v) for k, v in results.items()}, f, indent=2)

    def close(self) -> None:
        """Close logger and release resources."""
        if self.tb_writer is not None:
            self.tb_writer.close()
            self.tb_writer = None

        self._log("Training logger closed")

