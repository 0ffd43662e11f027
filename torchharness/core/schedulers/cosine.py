"""
Cosine annealing learning rate scheduler with warmup.

Based on: https://arxiv.org/abs/1608.03983
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from .base import LrScheduler


@dataclass
class CosineSchedulerConfig:
    """Cosine annealing with warmup configuration."""
    warmup_ratio: float = 0.1  # Fraction of steps for warmup
    min_lr_ratio: float = 0.1  # Minimum LR as fraction of base LR
    num_cycles: float = 0.5  # Number of cosine cycles


class CosineLr(LrScheduler):
    """
    Cosine annealing with linear warmup.

    Learning rate schedule:
    1. Linear warmup up to base_lr over warmup_steps
    2. Cosine decay from base_lr to min_lr over remaining steps
    """

    def __init__(
        self,
        optimizer: Any,
        base_lr: float,
        total_steps: int,
        config: Optional[CosineSchedulerConfig] = None,
    ):
        """
        Initialize cosine scheduler.

        The optimizer learning rate is set to the step-0 value immediately.

        Args:
            optimizer: Optimizer to be updated
            base_lr: Maximum learning rate
            total_steps: Total number of scheduler steps
            config: Scheduler configuration (uses defaults if None)
        """
        self.config = config or CosineSchedulerConfig()
        self.base_lr = base_lr
        self.total_steps = total_steps
        self.warmup_steps = int(total_steps * self.config.warmup_ratio)
        self.min_lr = base_lr * self.config.min_lr_ratio
        super().__init__(optimizer, self.get_lr(0))
        optimizer.lr = self.lr

    def get_lr(self, step: int) -> float:
        """
        Get learning rate for a given step.

        Args:
            step: Training step (0-indexed)

        Returns:
            Learning rate for this step
        """
        if step < self.warmup_steps:
            # Linear warmup
            return self.base_lr * ((step + 1) / self.warmup_steps)

        # Cosine decay
        decay_steps = max(1, self.total_steps - self.warmup_steps)
        progress = min(1.0, (step - self.warmup_steps) / decay_steps)
        cosine = math.cos(
            math.pi * 2.0 * self.config.num_cycles * progress
        )
        return self.min_lr + 0.5 * (self.base_lr - self.min_lr) * (1 + cosine)

    def update_lr(self) -> float:
        return self.get_lr(self.current_step + 1)
