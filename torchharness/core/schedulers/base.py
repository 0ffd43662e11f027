"""
Base learning rate scheduler interface.

A scheduler owns the optimizer it updates. Each ``step()`` computes the next
learning rate, writes it to the optimizer and advances the step counter.
"""

from abc import ABC, abstractmethod
from typing import Any


class LrScheduler(ABC):
    """
    Abstract base class for learning rate schedulers.

    Attributes:
        optimizer: Object exposing a settable ``lr`` (e.g. PyOptimizer)
        lr: Current learning rate
        current_step: Number of steps taken so far
    """

    def __init__(self, optimizer: Any, lr: float):
        self.optimizer = optimizer
        self.lr = lr
        self.current_step = 0

    @abstractmethod
    def update_lr(self) -> float:
        """
        Compute the learning rate for the next step.

        Returns:
            Updated learning rate
        """
        pass

    def step(self) -> None:
        """Call once per step (the training loop calls it once per epoch)."""
        self.lr = self.update_lr()
        self.optimizer.lr = self.lr
        self.current_step += 1
