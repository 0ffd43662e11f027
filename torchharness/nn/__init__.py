"""
Neural-network modules.

Reflective hand-rolled layers (Linear, Conv2D, Flatten), native module
wrappers (PyModule, PySequential) and data parallelism.
"""

from .module import DataParallelable, Module, PyModule, PySequential
from .layers import (
    Conv2D,
    Flatten,
    InvalidGroupsError,
    Linear,
    ModuleError,
    Padding,
    WeightedModule,
)
from .parallel import DataParalleledModule
from . import functional

__all__ = [
    "Module",
    "PyModule",
    "PySequential",
    "DataParallelable",
    "DataParalleledModule",
    "WeightedModule",
    "Linear",
    "Conv2D",
    "Flatten",
    "Padding",
    "ModuleError",
    "InvalidGroupsError",
    "functional",
]
