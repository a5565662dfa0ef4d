"""
Training Loop for Hybrid Quantum-Classical Models.

This module provides the training infrastructure:
- TrainingRecord: append-only (loss, entropy) history, one pair per epoch
- train_epoch: one pass over the data with the coherence-regularized loss
- Trainer: optimizer/scheduler setup, epoch loop, logging, cancellation
- train: functional entry point

Design Decisions:
- Separate optimizer groups for preprocessor, quantum and postprocessor
  parameters (optional separate quantum learning rate)
- Gradient clipping per parameter group (quantum weights are float64,
  classical weights float32)
- A failing epoch (exception or non-finite loss) is logged and recorded as
  (inf, 0.0); model and optimizer state are rolled back to the start of
  that epoch and training continues with the next one
- Cancellation is only observed between epochs, so the parameters are
  never left half-updated
"""

import copy
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np
import torch
import torch.nn as nn
from torch.optim import SGD, Adam, AdamW
from torch.optim.lr_scheduler import CosineAnnealingLR, StepLR
from torch.utils.data import DataLoader, TensorDataset
from tqdm import tqdm

from configs.config import Config, TrainingConfig
from models.pipeline import HybridPipeline
from quantum.entanglement import EntanglementAnalyzer, resolve_subsystem
from quantum.exceptions import DimensionMismatch
from quantum.utils import validate_input_dimension
from .logger import TrainingLogger
from .losses import CoherenceRegularizedLoss


FAILED_EPOCH = (math.inf, 0.0)


@dataclass
class TrainingRecord:
    """Per-epoch (loss, entropy) history."""
    losses: List[float] = field(default_factory=list)
    entropies: List[float] = field(default_factory=list)

    def append(self, loss: float, entropy: float) -> None:
        self.losses.append(float(loss))
        self.entropies.append(float(entropy))

    def __len__(self) -> int:
        return len(self.losses)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return iter(zip(self.losses, self.entropies))

    def __getitem__(self, index: int) -> Tuple[float, float]:
        return self.losses[index], self.entropies[index]

    def as_dict(self) -> Dict[str, List[float]]:
        return {'loss': list(self.losses), 'entropy': list(self.entropies)}


def _as_float_tensor(values) -> torch.Tensor:
    if isinstance(values, torch.Tensor):
        return values.float()
    return torch.as_tensor(np.asarray(values, dtype=np.float32))


def train_epoch(
    model: nn.Module,
    batches,
    criterion: CoherenceRegularizedLoss,
    optimizer: torch.optim.Optimizer,
    analyzer: EntanglementAnalyzer,
    gradient_clip: float = 1.0,
    pipeline: Optional[HybridPipeline] = None,
) -> Tuple[float, float]:
    """
    Train for one epoch.

    For each batch: forward through the pipeline, mean entanglement entropy
    of the batch's quantum states, regularized loss, backward, one optimizer
    step.

    Args:
        model: HybridQuantumModel
        batches: Iterable of (x, y) tensors
        criterion: Coherence-regularized loss
        optimizer: Optimizer over the model's parameters
        analyzer: Entropy monitor
        gradient_clip: Max gradient norm per parameter group (0 disables)
        pipeline: Forward pipeline (default HybridPipeline())

    Returns:
        Tuple of (sample-weighted mean loss, mean entropy)

    Raises:
        FloatingPointError: If a batch loss is not finite
    """
    pipeline = pipeline or HybridPipeline()
    model.train()

    total_loss = 0.0
    total_entropy = 0.0
    n_samples = 0

    for x_batch, y_batch in batches:
        optimizer.zero_grad()

        result = pipeline.run(model, x_batch)
        entropy = analyzer.mean_entropy(result.states.detach())
        loss = criterion(result.outputs, y_batch, entropy)

        if not torch.isfinite(loss):
            raise FloatingPointError(f"non-finite loss {loss.item()}")

        loss.backward()

        if gradient_clip > 0:
            for group in optimizer.param_groups:
                torch.nn.utils.clip_grad_norm_(group['params'], gradient_clip)

        optimizer.step()

        batch_size = len(x_batch)
        total_loss += loss.item() * batch_size
        total_entropy += entropy * batch_size
        n_samples += batch_size

    if n_samples == 0:
        raise ValueError("no training batches")

    return total_loss / n_samples, total_entropy / n_samples


class Trainer:
    """
    Training pipeline for hybrid quantum-classical models.

    Attributes:
        model: Model to train (its parameters are mutated in place)
        config: Full configuration object
        train_config: Training section of the configuration
        criterion: Coherence-regularized loss
        optimizer: Optimizer with per-component parameter groups
        scheduler: Optional learning-rate scheduler
        logger: Training logger
        record: History of the last train() call
    """

    def __init__(
        self,
        model: nn.Module,
        config: Optional[Config] = None,
        logger: Optional[TrainingLogger] = None,
    ):
        """
        Initialize the trainer.

        Args:
            model: HybridQuantumModel
            config: Full configuration (defaults if None)
            logger: Logger (one is created from the config if None)

        Raises:
            ArgumentError: If the entropy subsystem does not fit the model
        """
        self.model = model
        self.config = config if config is not None else Config()
        self.train_config: TrainingConfig = self.config.training

        subsystem = self.config.quantum.entropy_subsystem
        resolve_subsystem(model.n_qubits, subsystem)
        self.analyzer = EntanglementAnalyzer(
            subsystem=subsystem,
            num_workers=self.train_config.num_workers,
        )

        self.criterion = CoherenceRegularizedLoss(
            weight=self.train_config.coherence_weight,
            target=self.train_config.target_entropy,
        )
        self.pipeline = HybridPipeline()

        self.optimizer = self._setup_optimizer()
        self.scheduler = self._setup_scheduler()

        if logger is None:
            logger = TrainingLogger(
                log_dir=self.train_config.log_dir,
                experiment_name=self.config.experiment_name,
                use_tensorboard=self.train_config.use_tensorboard,
            )
        self.logger = logger

        self.current_epoch = 0
        self.record = TrainingRecord()

    def _setup_optimizer(self) -> torch.optim.Optimizer:
        """
        Setup optimizer with separate parameter groups.

        Parameter groups:
          - 'preprocessor': classical layers before the circuit
          - 'quantum': rotation angles (LR = quantum_learning_rate if set)
          - 'postprocessor': classical layers after the circuit
        """
        cfg = self.train_config
        quantum_lr = cfg.quantum_learning_rate or cfg.learning_rate

        groups: Dict[str, List[nn.Parameter]] = {
            'preprocessor': [], 'quantum': [], 'postprocessor': [], 'other': []
        }
        for name, param in self.model.named_parameters():
            if not param.requires_grad:
                continue
            if name.startswith('quantum_layer.'):
                groups['quantum'].append(param)
            elif name.startswith('preprocessor.'):
                groups['preprocessor'].append(param)
            elif name.startswith('postprocessor.'):
                groups['postprocessor'].append(param)
            else:
                groups['other'].append(param)

        print(f"\n{'='*55}")
        print(f"  OPTIMIZER PARAMETER GROUPS")
        print(f"{'='*55}")

        param_groups = []
        for name, params in groups.items():
            if not params:
                continue
            lr = quantum_lr if name == 'quantum' else cfg.learning_rate
            param_groups.append({'params': params, 'lr': lr, 'name': name})
            print(f"  {name:<15} {sum(p.numel() for p in params):>8,} params  (lr={lr})")
        print(f"{'='*55}\n")

        if not param_groups:
            raise RuntimeError("No trainable parameters found! Check model initialization.")

        optimizer_name = cfg.optimizer.lower()
        if optimizer_name == 'adam':
            return Adam(param_groups, lr=cfg.learning_rate, weight_decay=cfg.weight_decay)
        if optimizer_name == 'adamw':
            return AdamW(param_groups, lr=cfg.learning_rate, weight_decay=cfg.weight_decay)
        return SGD(param_groups, lr=cfg.learning_rate, momentum=0.9, weight_decay=cfg.weight_decay)

    def _setup_scheduler(self):
        """Setup learning rate scheduler."""
        cfg = self.train_config
        if cfg.scheduler_type == 'cosine':
            return CosineAnnealingLR(self.optimizer, T_max=cfg.num_epochs, eta_min=1e-6)
        if cfg.scheduler_type == 'step':
            return StepLR(self.optimizer, step_size=cfg.scheduler_step_size, gamma=cfg.scheduler_factor)
        return None

    def _batches(self, x: torch.Tensor, y: torch.Tensor):
        """Full batch, or a shuffled DataLoader when batch_size is set."""
        cfg = self.train_config
        if cfg.batch_size is None or cfg.batch_size >= len(x):
            return [(x, y)]

        generator = torch.Generator().manual_seed(cfg.seed)
        return DataLoader(
            TensorDataset(x, y),
            batch_size=cfg.batch_size,
            shuffle=cfg.shuffle,
            generator=generator,
        )

    def _snapshot(self) -> Dict[str, dict]:
        """Copy of model and optimizer state at the start of an epoch."""
        return {
            'model': copy.deepcopy(self.model.state_dict()),
            'optimizer': copy.deepcopy(self.optimizer.state_dict()),
        }

    def _restore(self, snapshot: Dict[str, dict]) -> None:
        """Undo partial updates of a failed epoch."""
        self.model.load_state_dict(snapshot['model'])
        self.optimizer.load_state_dict(snapshot['optimizer'])

    def train(
        self,
        x,
        y,
        epochs: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TrainingRecord:
        """
        Full training loop.

        Args:
            x: Inputs [n_samples, input_dim]
            y: Targets [n_samples, output_dim] ([n_samples] for output_dim 1)
            epochs: Number of epochs (uses config if None)
            cancel_event: Checked before every epoch; set it to stop early

        Returns:
            TrainingRecord with one (loss, entropy) pair per completed epoch

        Raises:
            DimensionMismatch: If x and y have different numbers of samples,
                x does not match the model's input_dim, or y does not match
                its output_dim
        """
        if epochs is None:
            epochs = self.train_config.num_epochs

        x = _as_float_tensor(x)
        y = _as_float_tensor(y)
        if x.ndim == 1:
            x = x.unsqueeze(0)
        if y.ndim == 1:
            y = y.unsqueeze(-1) if len(y) == len(x) else y.unsqueeze(0)
        if len(x) != len(y):
            raise DimensionMismatch(
                f"x has {len(x)} samples but y has {len(y)}"
            )
        input_dim = getattr(self.model, 'input_dim', None)
        if input_dim is not None:
            validate_input_dimension(x, input_dim)
        output_dim = getattr(self.model, 'output_dim', None)
        if output_dim is not None and tuple(y.shape[1:]) != (output_dim,):
            raise DimensionMismatch(
                f"Expected targets of shape [n_samples, {output_dim}], "
                f"got {list(y.shape)}"
            )

        batches = self._batches(x, y)
        self.record = TrainingRecord()

        self.logger.log_message(
            f"Starting training for {epochs} epochs on {len(x)} samples"
        )
        start_time = time.time()

        progress = tqdm(
            range(epochs),
            desc="Training",
            disable=not self.train_config.progress_bar,
        )
        for epoch in progress:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.log_message(f"Training cancelled before epoch {epoch + 1}")
                break

            self.current_epoch = epoch
            epoch_start = time.time()
            snapshot = self._snapshot()

            try:
                loss, entropy = train_epoch(
                    self.model,
                    batches,
                    self.criterion,
                    self.optimizer,
                    self.analyzer,
                    gradient_clip=self.train_config.gradient_clip_value,
                    pipeline=self.pipeline,
                )
            except Exception as exc:
                self.logger.log_message(f"Error in epoch {epoch + 1}: {exc}")
                self._restore(snapshot)
                loss, entropy = FAILED_EPOCH

            self.record.append(loss, entropy)

            if self.scheduler is not None:
                self.scheduler.step()

            current_lr = self.optimizer.param_groups[0]['lr']
            self.logger.log_epoch(
                epoch,
                {'loss': loss, 'entropy': entropy},
                current_lr,
                time.time() - epoch_start,
            )
            progress.set_postfix({'loss': f'{loss:.4f}', 'entropy': f'{entropy:.4f}'})

        total_time = time.time() - start_time
        self.logger.log_message(
            f"Training completed: {len(self.record)} epochs in {total_time:.1f}s"
        )
        self.logger.save_history(self.record.as_dict())

        return self.record

    def close(self) -> None:
        self.logger.close()


def train(
    model: nn.Module,
    x,
    y,
    epochs: Optional[int] = None,
    config: Optional[Config] = None,
    logger: Optional[TrainingLogger] = None,
    cancel_event: Optional[threading.Event] = None,
) -> TrainingRecord:
    """
    Train a hybrid model with the coherence-regularized loss.

    Args:
        model: HybridQuantumModel (updated in place)
        x: Inputs [n_samples, input_dim]
        y: Targets [n_samples, output_dim]
        epochs: Number of epochs (config.training.num_epochs if None)
        config: Configuration (defaults: Adam, lr 0.01, w 0.1, target 1.0)
        logger: Optional logger
        cancel_event: Optional cancellation flag checked between epochs

    Returns:
        TrainingRecord
    """
    trainer = Trainer(model, config, logger=logger)
    try:
        return trainer.train(x, y, epochs=epochs, cancel_event=cancel_event)
    finally:
        trainer.close()
