"""Run configuration."""

from .training import LrSchedulerConfig, TrainingConfig

__all__ = ["LrSchedulerConfig", "TrainingConfig"]
