"""Regression metrics."""

from typing import Any, Callable

from ..tensor import Tensor, unwrap
from .base import Metric


class MAE(Metric):
    """Mean absolute error."""

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        diff = y_true - y_pred
        return float(diff.abs().mean())


class MSE(Metric):
    """Mean squared error."""

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        diff = (y_true - y_pred) ** 2
        return float(diff.abs().mean())


class PyMetric(Metric):
    """Wraps a native metric callable taking ``(input, target)``."""

    def __init__(self, native: Callable[[Any, Any], Any]):
        self.native = native

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        return float(self.native(unwrap(y_pred), unwrap(y_true)))
