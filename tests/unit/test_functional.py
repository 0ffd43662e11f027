"""
Tests for functional operations.
"""

import torch

from torchharness.nn import functional
from torchharness.tensor import Tensor


def test_softmax_default_dim():
    """Default dim 0 normalises over the first axis."""
    x = Tensor(torch.randn(3, 2))
    y = functional.softmax(x)
    assert torch.allclose(y.sum(axis=0).native, torch.ones(2))


def test_log_softmax_matches_log_of_softmax():
    """log_softmax equals the log of softmax."""
    x = Tensor(torch.randn(4, 5))
    assert torch.allclose(
        functional.log_softmax(x, dim=1).native,
        functional.softmax(x, dim=1).native.log(),
        atol=1e-6,
    )
