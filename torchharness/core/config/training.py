"""
Training run configuration.

Defines the optimizer, learning-rate schedule, runtime and path settings of a
training run, loadable from a sectioned YAML file.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml

logger = logging.getLogger(__name__)

VALID_OPTIMIZERS = ["sgd", "adam", "adamw", "rmsprop"]
VALID_SCHEDULERS = ["none", "constant", "exponential", "cosine"]
VALID_DEVICES = ["auto", "cpu", "cuda", "mps"]
VALID_MODES = ["min", "max"]


@dataclass
class LrSchedulerConfig:
    """Learning rate schedule configuration."""

    kind: str = "none"
    gamma: float = 0.9  # exponential decay factor
    warmup_ratio: float = 0.1  # cosine warmup fraction
    min_lr_ratio: float = 0.1  # cosine floor as fraction of base LR

    def __post_init__(self) -> None:
        if self.kind not in VALID_SCHEDULERS:
            raise ValueError(
                f"Invalid scheduler: {self.kind}. Must be one of {VALID_SCHEDULERS}"
            )
        if self.gamma <= 0:
            raise ValueError("gamma must be positive")
        if not 0 <= self.warmup_ratio < 1:
            raise ValueError("warmup_ratio must be in [0, 1)")
        if not 0 <= self.min_lr_ratio <= 1:
            raise ValueError("min_lr_ratio must be in [0, 1]")


@dataclass
class TrainingConfig:
    """Complete training run configuration."""

    # Training loop
    epochs: int = 10
    initial_epoch: int = 0
    batch_size: int = 32

    # Optimizer
    optimizer: str = "adam"
    learning_rate: float = 1e-3
    weight_decay: float = 0.0
    momentum: float = 0.0  # sgd / rmsprop only

    # Schedule
    scheduler: LrSchedulerConfig = field(default_factory=LrSchedulerConfig)

    # Runtime
    device: str = "auto"
    use_multi_gpus: bool = False
    seed: int = 42
    monitor: str = "loss"
    mode: str = "min"

    # Paths
    log_dir: Optional[str] = None
    checkpoint_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.epochs <= 0:
            raise ValueError("epochs must be positive")
        if self.initial_epoch < 0:
            raise ValueError("initial_epoch must be non-negative")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.optimizer.lower() not in VALID_OPTIMIZERS:
            raise ValueError(
                f"Invalid optimizer: {self.optimizer}. Must be one of {VALID_OPTIMIZERS}"
            )
        if self.device not in VALID_DEVICES:
            raise ValueError(
                f"Invalid device: {self.device}. Must be one of {VALID_DEVICES}"
            )
        if self.mode not in VALID_MODES:
            raise ValueError(f"Invalid mode: {self.mode}. Must be one of {VALID_MODES}")

    @property
    def optimizer_kwargs(self) -> Dict[str, Any]:
        """Extra keyword arguments for the native optimizer."""
        kwargs: Dict[str, Any] = {"weight_decay": self.weight_decay}
        if self.optimizer.lower() in ("sgd", "rmsprop"):
            kwargs["momentum"] = self.momentum
        return kwargs

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingConfig":
        """
        Build a config from the sectioned layout used in YAML files.

        Sections: training, optimizer, scheduler, runtime, paths. Missing
        keys keep their defaults.

        Raises:
            ValueError: If the document or a section is not a mapping
        """
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping, got {type(data).__name__}")

        sections = {}
        for name in ("training", "optimizer", "scheduler", "runtime", "paths"):
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ValueError(
                    f"Config section '{name}' must be a mapping, got {type(section).__name__}"
                )
            sections[name] = section

        training = sections["training"]
        optimizer = sections["optimizer"]
        scheduler = sections["scheduler"]
        runtime = sections["runtime"]
        paths = sections["paths"]

        defaults = cls.__dataclass_fields__
        return cls(
            epochs=int(training.get("epochs", defaults["epochs"].default)),
            initial_epoch=int(training.get("initial_epoch", 0)),
            batch_size=int(training.get("batch_size", defaults["batch_size"].default)),
            optimizer=str(optimizer.get("name", defaults["optimizer"].default)),
            learning_rate=float(optimizer.get("learning_rate", defaults["learning_rate"].default)),
            weight_decay=float(optimizer.get("weight_decay", 0.0)),
            momentum=float(optimizer.get("momentum", 0.0)),
            scheduler=LrSchedulerConfig(
                kind=str(scheduler.get("kind", "none")),
                gamma=float(scheduler.get("gamma", 0.9)),
                warmup_ratio=float(scheduler.get("warmup_ratio", 0.1)),
                min_lr_ratio=float(scheduler.get("min_lr_ratio", 0.1)),
            ),
            device=str(runtime.get("device", "auto")),
            use_multi_gpus=bool(runtime.get("use_multi_gpus", False)),
            seed=int(runtime.get("seed", 42)),
            monitor=str(runtime.get("monitor", "loss")),
            mode=str(runtime.get("mode", "min")),
            log_dir=paths.get("log_dir"),
            checkpoint_path=paths.get("checkpoint_path"),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "TrainingConfig":
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded training config from {path}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
