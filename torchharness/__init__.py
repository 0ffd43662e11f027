"""
torchharness - a thin training harness over PyTorch.

Tensor and module adapters, optimizers, learning-rate schedules, losses,
metrics and a hook-driven training manager.
"""

from .devices import Device, DeviceManager, DeviceMovable, search_all_devices
from .tensor import DType, Tensor, unwrap
from .nn import (
    Conv2D,
    DataParallelable,
    DataParalleledModule,
    Flatten,
    Linear,
    Module,
    PyModule,
    PySequential,
)
from .optim import Optimizer, PyOptimizer, build_optimizer
from .core.config import LrSchedulerConfig, TrainingConfig
from .core.schedulers import ConstantLr, CosineLr, ExponentialLr, LrScheduler, build_scheduler
from .losses import CrossEntropyLoss, KLDivLoss, Loss, MSELoss, PyLoss
from .metrics import MAE, MSE, Accuracy, Metric, PyMetric, SparseCategoricalAccuracy
from .training import EvaluatingManager, Manager, TrainingManager

__version__ = "0.1.0"

__all__ = [
    "Device",
    "DeviceManager",
    "DeviceMovable",
    "search_all_devices",
    "DType",
    "Tensor",
    "unwrap",
    "Module",
    "PyModule",
    "PySequential",
    "DataParallelable",
    "DataParalleledModule",
    "Linear",
    "Conv2D",
    "Flatten",
    "Optimizer",
    "PyOptimizer",
    "build_optimizer",
    "TrainingConfig",
    "LrSchedulerConfig",
    "LrScheduler",
    "ConstantLr",
    "ExponentialLr",
    "CosineLr",
    "build_scheduler",
    "Loss",
    "CrossEntropyLoss",
    "KLDivLoss",
    "MSELoss",
    "PyLoss",
    "Metric",
    "Accuracy",
    "SparseCategoricalAccuracy",
    "MAE",
    "MSE",
    "PyMetric",
    "EvaluatingManager",
    "TrainingManager",
    "Manager",
]
