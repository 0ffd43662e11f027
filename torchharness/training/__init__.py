"""
Training loops.

Hook-driven training and validation managers over harness modules.
"""

from .manager import EvaluatingManager, Manager, TrainingManager

__all__ = ["EvaluatingManager", "TrainingManager", "Manager"]
