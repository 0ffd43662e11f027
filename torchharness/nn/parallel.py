"""
Data parallelism for hand-rolled modules.

``DataParalleledModule`` replicates a module on each device, splits the
batch across the replicas and gathers the outputs on the output device.
Native modules are usually parallelised with ``torch.nn.DataParallel``
through ``PyModule.data_parallel()``; wrapped here they are copied onto each
CUDA device with ``torch.nn.parallel.replicate``.
"""

from typing import Any, Dict, List, Optional, Sequence, Type
import copy
import logging
import math

from torch.nn import parallel

from ..devices import Device, search_all_devices, torch_device
from ..tensor import Tensor, unwrap
from .module import DataParallelable, Module, PathLike, PyModule, PySequential

logger = logging.getLogger(__name__)

__all__ = ["DataParallelable", "DataParalleledModule", "replicate"]


def replicate(module: Module, device: Device, id: Optional[int] = None) -> Module:
    """
    Shallow copy of a reflective module with every tensor moved to a device.

    The moves are differentiable, so gradients computed through the replica
    reach the parameters of the source module. Native modules are copied
    with ``torch.nn.parallel.replicate`` on CUDA; on other devices the
    replica shares them.
    """
    if isinstance(module, PyModule):
        if device != Device.CUDA:
            return module
        return PyModule(parallel.replicate(module.native, [torch_device(device, id)])[0])
    if isinstance(module, PySequential):
        return PySequential([replicate(m, device, id) for m in module.modules])

    replica = copy.copy(module)
    for name, value in vars(module).items():
        if isinstance(value, Tensor):
            setattr(replica, name, Tensor(value.native.to(torch_device(device, id))))
        elif isinstance(value, Module):
            setattr(replica, name, replicate(value, device, id))
    return replica


class DataParalleledModule(Module):
    """
    A module replicated across several devices.

    Args:
        module: Module to replicate
        devices: Device indices (defaults to all visible CUDA devices)
        output_device: Index outputs are gathered on (defaults to the first device)
    """

    def __init__(
        self,
        module: Module,
        devices: Optional[Sequence[int]] = None,
        output_device: Optional[int] = None,
    ):
        self.module = module
        self.devices: List[int] = list(devices) if devices is not None else search_all_devices()
        if output_device is None and self.devices:
            output_device = self.devices[0]
        self.output_device = output_device
        self.replica_device: Optional[Device] = None

    @classmethod
    def load(cls, path: PathLike, module_type: Type[Module] = PyModule) -> "DataParalleledModule":
        return cls(module_type.load(path))

    @property
    def parameters(self) -> List[Tensor]:
        return self.module.parameters

    @property
    def modules(self) -> List[PyModule]:
        return [self.module.to_py_module()]

    @property
    def state_dict(self) -> Dict[str, Any]:
        return self.module.state_dict

    def copy(self) -> "DataParalleledModule":
        return DataParalleledModule(self.module.copy(), devices=self.devices, output_device=self.output_device)

    def eval(self) -> None:
        self.module.eval()

    def train(self) -> None:
        self.module.train()

    def forward(self, x: Tensor) -> Tensor:
        if not self.devices:
            return self.module(x)
        if self.replica_device is None:
            raise RuntimeError(
                "DataParalleledModule has not been placed; move it to a device with .to() first"
            )

        batch_per_device = math.ceil(x.shape[0] / len(self.devices))
        outputs = []
        for i, device_id in enumerate(self.devices):
            chunk = x[i * batch_per_device:(i + 1) * batch_per_device]
            if chunk.shape[0] == 0:
                break
            replica = replicate(self.module, self.replica_device, device_id)
            y = replica(chunk.to(self.replica_device, device_id))
            outputs.append(y.to(self.replica_device, self.output_device))

        if self.replica_device == Device.CUDA:
            return Tensor(parallel.gather(unwrap(outputs), self.output_device, dim=0))
        return Tensor.concat(outputs, dim=0)

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        self.module.load_state_dict(state)

    def to(self, device: Device, id: Optional[int] = None) -> "DataParalleledModule":
        """
        Place the replicas on ``device`` and keep the wrapped module on the
        output device.

        Moving to a single index is not meaningful for a replicated module
        and is ignored.
        """
        if id is not None:
            return self
        self.replica_device = device
        if self.output_device is not None:
            self.module.to(device, self.output_device)
        logger.debug(f"Placed {type(self.module).__name__} on {device.value} devices {self.devices}")
        return self

    def to_py_module(self) -> PyModule:
        m = self.module.to_py_module()
        return m.data_parallel()

    def save(self, path: PathLike) -> None:
        self.module.save(path)
