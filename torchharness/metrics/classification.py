"""Classification metrics."""

from ..tensor import DType, Tensor
from .base import Metric


class Accuracy(Metric):
    """Fraction of predictions equal to the targets."""

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        return float(y_true.equal(y_pred).to_dtype(DType.FLOAT32).mean(axis=0))


class SparseCategoricalAccuracy(Accuracy):
    """Accuracy between integer labels and logits."""

    def __init__(self, axis: int = 1):
        self.axis = axis

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> float:
        return super().__call__(y_true, y_pred.argmax(axis=self.axis))
