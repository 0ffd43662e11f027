"""Functional operations forwarded to ``torch.nn.functional``."""

import torch.nn.functional as F

from ..tensor import Tensor, unwrap


def softmax(x: Tensor, dim: int = 0) -> Tensor:
    return Tensor(F.softmax(unwrap(x), dim=dim))


def log_softmax(x: Tensor, dim: int = 0) -> Tensor:
    return Tensor(F.log_softmax(unwrap(x), dim=dim))
