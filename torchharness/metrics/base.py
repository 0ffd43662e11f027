"""Base metric interface."""

from abc import ABC, abstractmethod

from ..tensor import Tensor


class Metric(ABC):
    """
    Abstract base class for metrics.

    Metrics reduce a target and a prediction to a single float that the
    training loop averages over the epoch.
    """

    @abstractmethod
    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        """
        Calculate the metric.

        Args:
            y_true: The target tensor
            y_pred: The model output

        Returns:
            Current metric value
        """
        pass
