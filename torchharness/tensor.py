"""
Tensor adapter.

Wraps a native ``torch.Tensor`` handle and forwards arithmetic, comparison,
reduction, reshape and dtype-cast operations to it. Values crossing the
boundary are marshalled with ``unwrap`` (adapter -> native) and ``Tensor``
(native -> adapter).
"""

from enum import Enum
from typing import Any, Iterator, List, Optional, Sequence, Union

import torch

from .devices import Device, DeviceMovable, torch_device


class DType(Enum):
    """PyTorch dtype mapping."""

    BOOL = "bool"
    COMPLEX32 = "complex32"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT16 = "float16"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    UINT8 = "uint8"

    def to_torch(self) -> torch.dtype:
        """Return the matching ``torch.<dtype>``."""
        return getattr(torch, self.value)


def unwrap(obj: Any) -> Any:
    """
    Convert adapters back into native torch objects.

    Lists, tuples and dicts are converted recursively; anything else is
    returned unchanged.
    """
    if isinstance(obj, Tensor):
        return obj.native
    if isinstance(obj, dict):
        return {k: unwrap(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return type(obj)(unwrap(v) for v in obj)
    return obj


class Tensor(DeviceMovable):
    """
    Adapter around a native ``torch.Tensor``.

    Native tensors are wrapped without copying. Any other value (scalar,
    nested list, numpy array) is converted with ``torch.tensor``.
    """

    def __init__(self, value: Any, dtype: Optional[DType] = None):
        if isinstance(value, Tensor):
            value = value.native
        if isinstance(value, torch.Tensor):
            self.native = value if dtype is None else value.to(dtype.to_torch())
        else:
            self.native = torch.tensor(
                unwrap(value),
                dtype=dtype.to_torch() if dtype is not None else None,
            )

    @classmethod
    def wrap(cls, obj: torch.Tensor) -> "Tensor":
        """Wrap an existing native handle."""
        return cls(obj)

    # properties

    @property
    def shape(self) -> List[int]:
        return list(self.native.shape)

    @property
    def dtype(self) -> torch.dtype:
        return self.native.dtype

    @property
    def device(self) -> torch.device:
        return self.native.device

    @property
    def requires_grad(self) -> bool:
        return self.native.requires_grad

    @property
    def grad(self) -> Optional["Tensor"]:
        grad = self.native.grad
        return Tensor(grad) if grad is not None else None

    @property
    def magnitude(self) -> "Tensor":
        return self.abs()

    def backward(self) -> None:
        self.native.backward()

    # arithmetic

    def __add__(self, other: Any) -> "Tensor":
        return Tensor(self.native + unwrap(other))

    def __radd__(self, other: Any) -> "Tensor":
        return Tensor(unwrap(other) + self.native)

    def __sub__(self, other: Any) -> "Tensor":
        return Tensor(self.native - unwrap(other))

    def __rsub__(self, other: Any) -> "Tensor":
        return Tensor(unwrap(other) - self.native)

    def __mul__(self, other: Any) -> "Tensor":
        return Tensor(self.native * unwrap(other))

    def __rmul__(self, other: Any) -> "Tensor":
        return Tensor(unwrap(other) * self.native)

    def __truediv__(self, other: Any) -> "Tensor":
        return Tensor(self.native / unwrap(other))

    def __rtruediv__(self, other: Any) -> "Tensor":
        return Tensor(unwrap(other) / self.native)

    def __pow__(self, other: Any) -> "Tensor":
        return Tensor(torch.pow(self.native, unwrap(other)))

    def __rpow__(self, other: Any) -> "Tensor":
        return Tensor(torch.pow(unwrap(other), self.native))

    def __neg__(self) -> "Tensor":
        return Tensor(-self.native)

    def __abs__(self) -> "Tensor":
        return self.abs()

    # In-place operators rebind the handle instead of mutating shared storage.
    def __iadd__(self, other: Any) -> "Tensor":
        self.native = self.native + unwrap(other)
        return self

    def __isub__(self, other: Any) -> "Tensor":
        self.native = self.native - unwrap(other)
        return self

    def __imul__(self, other: Any) -> "Tensor":
        self.native = self.native * unwrap(other)
        return self

    def __itruediv__(self, other: Any) -> "Tensor":
        self.native = self.native / unwrap(other)
        return self

    # comparison

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return bool(torch.equal(self.native, other.native))

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Tensor):
            return NotImplemented
        return not torch.equal(self.native, other.native)

    __hash__ = None

    def __lt__(self, other: Any) -> "Tensor":
        return Tensor(self.native < unwrap(other))

    def __le__(self, other: Any) -> "Tensor":
        return Tensor(self.native <= unwrap(other))

    def __gt__(self, other: Any) -> "Tensor":
        return Tensor(self.native > unwrap(other))

    def __ge__(self, other: Any) -> "Tensor":
        return Tensor(self.native >= unwrap(other))

    def equal(self, other: Any) -> "Tensor":
        """Element-wise equality as a tensor of bools."""
        return Tensor(torch.eq(self.native, unwrap(other)))

    # reductions and shape

    def abs(self) -> "Tensor":
        return Tensor(self.native.abs())

    def argmax(self, axis: Optional[int] = None) -> "Tensor":
        return Tensor(self.native.argmax(dim=axis))

    def mean(self, axis: Optional[int] = None) -> "Tensor":
        if axis is None:
            return Tensor(self.native.mean())
        return Tensor(self.native.mean(dim=axis))

    def sum(self, axis: Optional[int] = None) -> "Tensor":
        if axis is None:
            return Tensor(self.native.sum())
        return Tensor(self.native.sum(dim=axis))

    def reshape(self, shape: Sequence[int]) -> "Tensor":
        return Tensor(self.native.reshape(list(shape)))

    def flatten(self, start_dim: int = 0, end_dim: int = -1) -> "Tensor":
        return Tensor(self.native.flatten(start_dim, end_dim))

    @staticmethod
    def concat(tensors: Sequence["Tensor"], dim: int = 0) -> "Tensor":
        """Concatenate tensors along ``dim``."""
        return Tensor(torch.cat([unwrap(t) for t in tensors], dim=dim))

    # casting

    def to_dtype(self, dtype: DType) -> "Tensor":
        return Tensor(self.native.to(dtype.to_torch()))

    def __float__(self) -> float:
        return float(self.native.item())

    def __int__(self) -> int:
        return int(self.native.item())

    def __bool__(self) -> bool:
        return bool(self.native)

    def item(self) -> Union[int, float, bool]:
        return self.native.item()

    def tolist(self) -> Any:
        return self.native.tolist()

    def numpy(self):
        return self.native.detach().cpu().numpy()

    # device placement

    def to(self, device: Device, id: Optional[int] = None) -> "Tensor":
        """
        Move the handle to ``device`` (optionally a device index).

        Parameters are moved in place, the way ``torch.nn.Module.to`` does,
        so optimizers holding them keep working.
        """
        target = torch_device(device, id)
        if isinstance(self.native, torch.nn.Parameter):
            param = self.native
            param.data = param.data.to(target)
            if param.grad is not None:
                param.grad.data = param.grad.data.to(target)
        else:
            self.native = self.native.to(target)
        return self

    # sequence protocol

    def __len__(self) -> int:
        return len(self.native)

    def __iter__(self) -> Iterator["Tensor"]:
        for item in self.native:
            yield Tensor(item)

    def __getitem__(self, index: Any) -> "Tensor":
        return Tensor(self.native[unwrap(index)])

    def __repr__(self) -> str:
        return repr(self.native)

    def __str__(self) -> str:
        return str(self.native)
