"""
Learning rate schedulers.

Implements various LR scheduling strategies:
- Constant
- Exponential decay
- Cosine annealing with warmup
"""

from typing import Any, Optional

from ..config import LrSchedulerConfig
from .base import LrScheduler
from .constant import ConstantLr
from .cosine import CosineLr, CosineSchedulerConfig
from .exponential import ExponentialLr


def build_scheduler(
    config: LrSchedulerConfig,
    optimizer: Any,
    base_lr: float,
    total_steps: int,
) -> Optional[LrScheduler]:
    """
    Create the scheduler described by ``config``.

    Returns:
        Scheduler instance, or None when ``config.kind`` is "none"
    """
    if config.kind == "none":
        return None
    if config.kind == "constant":
        return ConstantLr(optimizer, base_lr)
    if config.kind == "exponential":
        return ExponentialLr(optimizer, gamma=config.gamma, initial_lr=base_lr)
    if config.kind == "cosine":
        return CosineLr(
            optimizer,
            base_lr=base_lr,
            total_steps=total_steps,
            config=CosineSchedulerConfig(
                warmup_ratio=config.warmup_ratio,
                min_lr_ratio=config.min_lr_ratio,
            ),
        )
    raise ValueError(f"Unknown scheduler: {config.kind}")


__all__ = [
    "LrScheduler",
    "ConstantLr",
    "ExponentialLr",
    "CosineLr",
    "CosineSchedulerConfig",
    "build_scheduler",
]
