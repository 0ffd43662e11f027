"""Constant learning rate."""

from typing import Any

from .base import LrScheduler


class ConstantLr(LrScheduler):
    """Keeps the learning rate fixed at ``lr``."""

    def __init__(self, optimizer: Any, lr: float):
        super().__init__(optimizer, lr)

    def update_lr(self) -> float:
        return self.lr
