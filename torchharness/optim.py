"""
Optimizer adapters.

``PyOptimizer`` forwards ``step`` / ``zero_grad`` to a native
``torch.optim.Optimizer`` and exposes the learning rate as a settable
property shared by all parameter groups.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List
import logging

import torch

from .tensor import unwrap

logger = logging.getLogger(__name__)

OPTIMIZERS = {
    "sgd": torch.optim.SGD,
    "adam": torch.optim.Adam,
    "adamw": torch.optim.AdamW,
    "rmsprop": torch.optim.RMSprop,
}


class Optimizer(ABC):
    """Main optimizer interface."""

    @property
    @abstractmethod
    def lr(self) -> float:
        ...

    @lr.setter
    @abstractmethod
    def lr(self, value: float) -> None:
        ...

    @abstractmethod
    def step(self) -> None:
        """Update parameters for one step."""
        ...

    @abstractmethod
    def zero_grad(self) -> None:
        """Clear parameter gradients."""
        ...


class PyOptimizer(Optimizer):
    """Adapter around a native ``torch.optim.Optimizer``."""

    def __init__(self, native: torch.optim.Optimizer):
        self.native = native
        self._lr = float(native.param_groups[0]["lr"])

    @property
    def lr(self) -> float:
        return self._lr

    @lr.setter
    def lr(self, value: float) -> None:
        self._lr = float(value)
        for group in self.native.param_groups:
            group["lr"] = self._lr

    @property
    def param_groups(self) -> List[Dict[str, Any]]:
        return self.native.param_groups

    def step(self) -> None:
        self.native.step()

    def zero_grad(self) -> None:
        self.native.zero_grad()

    def state_dict(self) -> Dict[str, Any]:
        return self.native.state_dict()

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        self.native.load_state_dict(state)
        self._lr = float(self.native.param_groups[0]["lr"])

    def __repr__(self) -> str:
        return f"PyOptimizer({self.native!r})"


def build_optimizer(name: str, parameters: Iterable[Any], lr: float, **kwargs: Any) -> PyOptimizer:
    """
    Build a native optimizer by name and wrap it.

    Args:
        name: One of "sgd", "adam", "adamw", "rmsprop"
        parameters: Parameters as adapters or native tensors
        lr: Learning rate
        **kwargs: Extra optimizer arguments (momentum, weight_decay, ...)

    Raises:
        ValueError: If the optimizer name is unknown
    """
    key = name.lower()
    if key not in OPTIMIZERS:
        raise ValueError(
            f"Unknown optimizer: {name}. Available optimizers: {', '.join(OPTIMIZERS)}"
        )
    native = OPTIMIZERS[key]([unwrap(p) for p in parameters], lr=lr, **kwargs)
    logger.info(f"Created {key} optimizer with lr={lr}")
    return PyOptimizer(native)
