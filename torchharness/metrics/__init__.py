"""
Metrics.

Each metric maps ``(y_true, y_pred)`` to a float.
"""

from .base import Metric
from .classification import Accuracy, SparseCategoricalAccuracy
from .regression import MAE, MSE, PyMetric

__all__ = [
    "Metric",
    "Accuracy",
    "SparseCategoricalAccuracy",
    "MAE",
    "MSE",
    "PyMetric",
]
