"""
Hand-rolled layers.

Linear, Conv2D and Flatten keep their parameters as ``Tensor`` adapters and
forward the computation to ``torch.nn.functional``. Each layer persists its
``state_dict`` with ``torch.save`` and can be converted to the equivalent
native module.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import logging
import math

import torch
import torch.nn.functional as F

from ..tensor import Tensor, unwrap
from .module import DataParallelable, Module, PathLike, PyModule, resolve_path

logger = logging.getLogger(__name__)


class ModuleError(Exception):
    """Base error raised by modules."""


class InvalidGroupsError(ModuleError):
    """Input channels cannot be split exactly into the given groups."""


class Padding(Enum):
    """Supported padding methods."""

    VALID = "valid"
    SAME = "same"


def _parameter(value: Any) -> Tensor:
    """Wrap a native tensor (or adapter) as a trainable parameter."""
    native = unwrap(value)
    if not isinstance(native, torch.nn.Parameter):
        native = torch.nn.Parameter(native)
    return Tensor(native)


def _assign(current: Optional[Tensor], value: Any) -> Tensor:
    native = unwrap(value)
    if current is not None and current.shape == list(native.shape):
        with torch.no_grad():
            current.native.copy_(native)
        return current
    return _parameter(native)


def _clone_parameter(t: Tensor) -> Tensor:
    return Tensor(torch.nn.Parameter(t.native.detach().clone(), requires_grad=t.requires_grad))


def _reset_parameters(weight: torch.Tensor, bias: Optional[torch.Tensor], fan_in: int) -> None:
    # Same initialisation as torch.nn.Linear / torch.nn.Conv2d
    torch.nn.init.kaiming_uniform_(weight, a=math.sqrt(5))
    if bias is not None and fan_in > 0:
        bound = 1 / math.sqrt(fan_in)
        torch.nn.init.uniform_(bias, -bound, bound)


def _load_dict(path: PathLike) -> Dict[str, Any]:
    return torch.load(resolve_path(path), weights_only=True)


def _save_dict(state: Dict[str, Any], path: PathLike) -> None:
    file = resolve_path(path)
    file.parent.mkdir(parents=True, exist_ok=True)
    torch.save(state, file)
    logger.info(f"Saved state dict to {file}")


class WeightedModule(Module, DataParallelable):
    """A module with a weight and an optional bias."""

    weight: Tensor
    bias: Optional[Tensor]

    @property
    def in_features(self) -> int:
        return self.weight.shape[1]

    @property
    def out_features(self) -> int:
        return self.weight.shape[0]

    @property
    def parameters(self) -> List[Tensor]:
        if self.bias is not None:
            return [self.weight, self.bias]
        return [self.weight]

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        """
        Load weight and bias.

        Values are copied into the existing parameters when the shapes match,
        so optimizers holding them stay valid; otherwise they are replaced.
        """
        bias = state.get("bias")
        self.bias = _assign(getattr(self, "bias", None), bias) if bias is not None else None
        self.weight = _assign(getattr(self, "weight", None), state["weight"])

    def data_parallel(self) -> Module:
        from .parallel import DataParalleledModule

        return DataParalleledModule(self)

    def save(self, path: PathLike) -> None:
        _save_dict(self.state_dict, path)


class Linear(WeightedModule):
    """Main linear module."""

    def __init__(self, in_features: int, out_features: int, bias: bool = True):
        """
        Args:
            in_features: Number of input features
            out_features: Number of output features
            bias: Whether to add a learnable bias
        """
        weight = torch.empty(out_features, in_features)
        b = torch.empty(out_features) if bias else None
        _reset_parameters(weight, b, in_features)
        self.bias = _parameter(b) if b is not None else None
        self.weight = _parameter(weight)

    @classmethod
    def load(cls, path: PathLike) -> "Linear":
        state = _load_dict(path)
        weight = state["weight"]
        linear = cls(weight.shape[1], weight.shape[0], bias=state.get("bias") is not None)
        linear.load_state_dict(state)
        return linear

    @property
    def state_dict(self) -> Dict[str, Any]:
        return {
            "bias": self.bias.native if self.bias is not None else None,
            "weight": self.weight.native,
        }

    def copy(self) -> "Linear":
        new_linear = Linear(self.in_features, self.out_features, bias=self.bias is not None)
        new_linear.bias = _clone_parameter(self.bias) if self.bias is not None else None
        new_linear.weight = _clone_parameter(self.weight)
        return new_linear

    def forward(self, x: Tensor) -> Tensor:
        bias = self.bias.native if self.bias is not None else None
        return Tensor(F.linear(unwrap(x), self.weight.native, bias))

    def to_py_module(self) -> PyModule:
        m = torch.nn.Linear(self.in_features, self.out_features, bias=self.bias is not None)
        m.weight = self.weight.native
        if self.bias is not None:
            m.bias = self.bias.native
        return PyModule(m)


class Conv2D(WeightedModule):
    """Main 2D convolution module."""

    def __init__(
        self,
        in_channels: int,
        out_channels: int,
        kernel_size: Tuple[int, int],
        stride: Tuple[int, int] = (1, 1),
        padding: Padding = Padding.SAME,
        dilation: int = 1,
        groups: int = 1,
        bias: bool = True,
    ):
        """
        Args:
            in_channels: Number of input channels
            out_channels: Number of output channels
            kernel_size: (height, width) of the kernel
            stride: (height, width) of the stride
            padding: Padding method
            dilation: Kernel dilation
            groups: Number of blocked connections from input to output channels
            bias: Whether to add a learnable bias

        Raises:
            InvalidGroupsError: If in_channels is not divisible by groups
        """
        if in_channels % groups != 0:
            raise InvalidGroupsError(
                f"in_channels ({in_channels}) must be divisible by groups ({groups})"
            )
        kh, kw = kernel_size
        weight = torch.empty(out_channels, in_channels // groups, kh, kw)
        b = torch.empty(out_channels) if bias else None
        _reset_parameters(weight, b, (in_channels // groups) * kh * kw)

        self.bias = _parameter(b) if b is not None else None
        self.dilation = dilation
        self.groups = groups
        self.padding = padding
        self.stride = tuple(stride)
        self.weight = _parameter(weight)

    @classmethod
    def load(cls, path: PathLike) -> "Conv2D":
        state = _load_dict(path)
        weight = state["weight"]

        padding_value = state.get("padding", Padding.SAME.value)
        try:
            padding = Padding(padding_value)
        except ValueError:
            logger.warning(
                f"Padding with '{padding_value}' is currently not supported, using 'same' instead."
            )
            padding = Padding.SAME

        groups = int(state["groups"])
        conv = cls(
            in_channels=weight.shape[1] * groups,
            out_channels=weight.shape[0],
            kernel_size=(weight.shape[2], weight.shape[3]),
            stride=tuple(state["stride"]),
            padding=padding,
            dilation=int(state["dilation"]),
            groups=groups,
            bias=state.get("bias") is not None,
        )
        conv.load_state_dict(state)
        return conv

    @property
    def in_features(self) -> int:
        return self.weight.shape[1] * self.groups

    @property
    def kernel_size(self) -> Tuple[int, int]:
        return (self.weight.shape[2], self.weight.shape[3])

    @property
    def state_dict(self) -> Dict[str, Any]:
        return {
            "bias": self.bias.native if self.bias is not None else None,
            "dilation": self.dilation,
            "groups": self.groups,
            "padding": self.padding.value,
            "stride": list(self.stride),
            "weight": self.weight.native,
        }

    def copy(self) -> "Conv2D":
        new_conv = Conv2D(
            self.in_features,
            self.out_features,
            self.kernel_size,
            stride=self.stride,
            padding=self.padding,
            dilation=self.dilation,
            groups=self.groups,
            bias=self.bias is not None,
        )
        new_conv.bias = _clone_parameter(self.bias) if self.bias is not None else None
        new_conv.weight = _clone_parameter(self.weight)
        return new_conv

    def forward(self, x: Tensor) -> Tensor:
        bias = self.bias.native if self.bias is not None else None
        return Tensor(F.conv2d(
            unwrap(x),
            self.weight.native,
            bias,
            stride=self.stride,
            padding=self.padding.value,
            dilation=self.dilation,
            groups=self.groups,
        ))

    def to_py_module(self) -> PyModule:
        m = torch.nn.Conv2d(
            self.in_features,
            self.out_features,
            self.kernel_size,
            stride=self.stride,
            padding=self.padding.value,
            dilation=self.dilation,
            groups=self.groups,
            bias=self.bias is not None,
        )
        m.weight = self.weight.native
        if self.bias is not None:
            m.bias = self.bias.native
        return PyModule(m)


class Flatten(Module):
    """A module to flatten a tensor between two dims."""

    def __init__(self, start_dim: int = 1, end_dim: int = -1):
        self.start_dim = start_dim
        self.end_dim = end_dim

    @classmethod
    def load(cls, path: PathLike) -> "Flatten":
        state = _load_dict(path)
        return cls(start_dim=int(state["start_dim"]), end_dim=int(state["end_dim"]))

    @property
    def state_dict(self) -> Dict[str, Any]:
        return {"start_dim": self.start_dim, "end_dim": self.end_dim}

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        self.start_dim = int(state["start_dim"])
        self.end_dim = int(state["end_dim"])

    def copy(self) -> "Flatten":
        return Flatten(start_dim=self.start_dim, end_dim=self.end_dim)

    def forward(self, x: Tensor) -> Tensor:
        return x.flatten(self.start_dim, self.end_dim)

    def to_py_module(self) -> PyModule:
        return PyModule(torch.nn.Flatten(self.start_dim, self.end_dim))

    def save(self, path: PathLike) -> None:
        _save_dict(self.state_dict, path)
