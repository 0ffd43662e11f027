"""
Base loss interface.

All losses take the target first and the prediction second, and return a
``Tensor`` that the training loop can call ``backward()`` on.
"""

from abc import ABC, abstractmethod

from ..tensor import Tensor


class Loss(ABC):
    """Abstract base class for losses."""

    @abstractmethod
    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        """
        Compute the loss.

        Args:
            y_true: The target tensor
            y_pred: The model output

        Returns:
            Loss tensor
        """
        pass
