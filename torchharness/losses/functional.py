"""Losses forwarded to ``torch.nn.functional``."""

from typing import Any, Callable, Optional

import torch.nn.functional as F

from ..tensor import Tensor, unwrap
from .base import Loss


class CrossEntropyLoss(Loss):
    """
    Cross entropy between class targets and logits.

    Args:
        weight: Optional per-class rescaling weight
        ignore_index: Target value that does not contribute to the gradient
    """

    def __init__(self, weight: Optional[Tensor] = None, ignore_index: int = -100):
        self.weight = weight
        self.ignore_index = ignore_index

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return Tensor(F.cross_entropy(
            unwrap(y_pred),
            unwrap(y_true),
            weight=unwrap(self.weight),
            ignore_index=self.ignore_index,
        ))


class KLDivLoss(Loss):
    """
    Kullback-Leibler divergence loss.

    Args:
        reduce: Average over the mini-batch ("batchmean") instead of "none"
        log_target: Whether the target is given in log space
    """

    def __init__(self, reduce: bool = True, log_target: bool = False):
        self.reduce = reduce
        self.log_target = log_target

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        reduction = "batchmean" if self.reduce else "none"
        return Tensor(F.kl_div(
            unwrap(y_pred),
            unwrap(y_true),
            reduction=reduction,
            log_target=self.log_target,
        ))


class MSELoss(Loss):
    """Mean squared error loss."""

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return Tensor(F.mse_loss(unwrap(y_pred), unwrap(y_true)))


class PyLoss(Loss):
    """Wraps a native loss callable such as ``torch.nn.CrossEntropyLoss()``."""

    def __init__(self, native: Callable[[Any, Any], Any]):
        self.native = native

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return Tensor(self.native(unwrap(y_pred), unwrap(y_true)))
