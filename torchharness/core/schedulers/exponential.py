"""Exponential learning rate decay."""

from typing import Any

from .base import LrScheduler


class ExponentialLr(LrScheduler):
    """
    Multiplies the learning rate by ``gamma`` on every step.

    After ``n`` steps the learning rate is ``initial_lr * gamma ** n``.
    """

    def __init__(self, optimizer: Any, gamma: float, initial_lr: float):
        """
        Args:
            optimizer: Optimizer to be updated
            gamma: Multiplicative decay factor
            initial_lr: Learning rate before the first step
        """
        super().__init__(optimizer, initial_lr)
        self.gamma = gamma

    def update_lr(self) -> float:
        return self.lr * self.gamma
