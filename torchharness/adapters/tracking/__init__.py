"""
Experiment tracking adapters.

Integrates with TensorBoard.
"""

from .tensorboard import SummaryWriter

__all__ = ["SummaryWriter"]
