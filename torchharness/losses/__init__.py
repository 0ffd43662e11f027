"""
Loss functions.

- CrossEntropyLoss: classification from logits
- KLDivLoss: Kullback-Leibler divergence
- MSELoss: regression
- PyLoss: any native torch loss
"""

from .base import Loss
from .functional import CrossEntropyLoss, KLDivLoss, MSELoss, PyLoss

__all__ = [
    "Loss",
    "CrossEntropyLoss",
    "KLDivLoss",
    "MSELoss",
    "PyLoss",
]
