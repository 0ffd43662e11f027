"""
Module abstraction.

``Module`` is the capability interface for a trainable computation unit:
forward pass, mode switch, parameter/state access and persistence. It is
implemented either by reflecting over an object's attributes (hand-rolled
layers in ``layers.py``) or by delegating wholesale to a native
``torch.nn.Module`` (``PyModule``).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
import copy
import logging

import torch

from ..devices import Device, DeviceMovable, torch_device
from ..tensor import Tensor, unwrap

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def resolve_path(path: PathLike) -> Path:
    """Turn a path or ``file://`` URL into a ``Path``."""
    text = str(path)
    if text.startswith("file://"):
        text = text[len("file://"):]
    return Path(text)


class Module(DeviceMovable):
    """
    Main module interface.

    Subclasses provide ``forward``, state-dict access and persistence.
    Parameters, sub-modules and device moves are discovered by reflecting
    over instance attributes in definition order.
    """

    @classmethod
    @abstractmethod
    def load(cls, path: PathLike) -> "Module":
        """Create a new instance by loading from file."""
        ...

    @abstractmethod
    def copy(self) -> "Module":
        """Deep copy of current module."""
        ...

    @abstractmethod
    def forward(self, x: Tensor) -> Tensor:
        ...

    @abstractmethod
    def load_state_dict(self, state: Dict[str, Any]) -> None:
        ...

    @property
    @abstractmethod
    def state_dict(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def to_py_module(self) -> "PyModule":
        """Convert current module to a ``PyModule``."""
        ...

    @abstractmethod
    def save(self, path: PathLike) -> None:
        ...

    def train(self) -> None:
        """Set training mode. Hand-rolled layers have no mode."""
        return

    def eval(self) -> None:
        """Set evaluation mode. Hand-rolled layers have no mode."""
        return

    def __call__(self, x: Any) -> Tensor:
        return self.forward(x if isinstance(x, Tensor) else Tensor(x))

    @property
    def parameters(self) -> List[Tensor]:
        params: List[Tensor] = []
        for value in vars(self).values():
            if isinstance(value, Tensor):
                params.append(value)
            elif isinstance(value, Module):
                params += value.parameters
        return params

    @property
    def modules(self) -> List["PyModule"]:
        return [value.to_py_module() for value in vars(self).values() if isinstance(value, Module)]

    def to(self, device: Device, id: Optional[int] = None) -> "Module":
        for value in vars(self).values():
            if isinstance(value, (Tensor, Module)):
                value.to(device, id)
        return self


class DataParallelable(ABC):
    """Modules that can be replicated across multiple GPUs."""

    @abstractmethod
    def data_parallel(self) -> Module:
        """Return a data paralleled version of current module."""
        ...


class PyModule(Module, DataParallelable):
    """Module that delegates to a native ``torch.nn.Module``."""

    def __init__(self, native: torch.nn.Module):
        self.native = native

    @classmethod
    def load(cls, path: PathLike) -> "PyModule":
        native = torch.load(resolve_path(path), weights_only=False)
        return cls(native)

    @property
    def modules(self) -> List["PyModule"]:
        return [PyModule(child) for child in self.native.children()]

    @property
    def parameters(self) -> List[Tensor]:
        return [Tensor(p) for p in self.native.parameters()]

    @property
    def state_dict(self) -> Dict[str, Any]:
        return self.native.state_dict()

    def copy(self) -> "PyModule":
        return PyModule(copy.deepcopy(self.native))

    def data_parallel(self) -> "PyModule":
        return PyModule(torch.nn.DataParallel(self.native))

    def eval(self) -> None:
        self.native.eval()

    def train(self) -> None:
        self.native.train()

    def forward(self, x: Tensor) -> Tensor:
        return Tensor(self.native(unwrap(x)))

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        self.native.load_state_dict(unwrap(state))

    def to(self, device: Device, id: Optional[int] = None) -> "PyModule":
        self.native.to(torch_device(device, id))
        return self

    def to_py_module(self) -> "PyModule":
        return self

    def save(self, path: PathLike) -> None:
        file = resolve_path(path)
        file.parent.mkdir(parents=True, exist_ok=True)
        torch.save(self.native, file)
        logger.info(f"Saved module to {file}")

    def __repr__(self) -> str:
        return f"PyModule({self.native!r})"


class PySequential(Module, DataParallelable):
    """A sequential module of ``PyModule`` instances."""

    def __init__(self, modules: Optional[Iterable[PyModule]] = None):
        self._modules: List[PyModule] = list(modules) if modules is not None else []

    @classmethod
    def load(cls, path: PathLike) -> "PySequential":
        return cls(PyModule.load(path).modules)

    @property
    def modules(self) -> List[PyModule]:
        return self._modules

    @modules.setter
    def modules(self, modules: Iterable[PyModule]) -> None:
        self._modules = list(modules)

    @property
    def parameters(self) -> List[Tensor]:
        params: List[Tensor] = []
        for m in self._modules:
            params += m.parameters
        return params

    @property
    def state_dict(self) -> Dict[str, Any]:
        return self.to_py_module().state_dict

    def append(self, module: Union[PyModule, torch.nn.Module]) -> None:
        self._modules.append(module if isinstance(module, PyModule) else PyModule(module))

    def copy(self) -> "PySequential":
        return PySequential([m.copy() for m in self._modules])

    def data_parallel(self) -> "PySequential":
        return PySequential([m.data_parallel() for m in self._modules])

    def eval(self) -> None:
        for m in self._modules:
            m.eval()

    def train(self) -> None:
        for m in self._modules:
            m.train()

    def forward(self, x: Tensor) -> Tensor:
        for m in self._modules:
            x = m(x)
        return x

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        sequential = torch.nn.Sequential(*[m.native for m in self._modules])
        sequential.load_state_dict(unwrap(state))
        self._modules = [PyModule(child) for child in sequential.children()]

    def to(self, device: Device, id: Optional[int] = None) -> "PySequential":
        for m in self._modules:
            m.to(device, id)
        return self

    def to_py_module(self) -> PyModule:
        sequential = torch.nn.Sequential()
        for i, m in enumerate(self._modules):
            sequential.add_module(str(i), m.native)
        return PyModule(sequential)

    def save(self, path: PathLike) -> None:
        self.to_py_module().save(path)

    def __len__(self) -> int:
        return len(self._modules)
