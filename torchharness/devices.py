"""
Device placement.

Translates the small ``Device`` enum into native ``torch.device`` objects and
provides device detection, cache clearing and moves with CPU fallback across
CUDA, MPS and CPU.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional
import logging

import torch

logger = logging.getLogger(__name__)


class Device(Enum):
    """Available devices."""

    CPU = "cpu"
    CUDA = "cuda"
    MPS = "mps"


def device_string(device: Device, id: Optional[int] = None) -> str:
    """
    Native device string, e.g. ``"cuda"`` or ``"cuda:1"``.

    The index is dropped for the CPU, which torch exposes as one device.
    """
    if id is None or device == Device.CPU:
        return device.value
    return f"{device.value}:{id}"


def torch_device(device: Device, id: Optional[int] = None) -> torch.device:
    """Native ``torch.device`` for a device and optional index."""
    return torch.device(device_string(device, id))


def search_all_devices() -> List[int]:
    """Indices of all visible CUDA devices (empty when CUDA is unavailable)."""
    if not torch.cuda.is_available():
        return []
    return list(range(torch.cuda.device_count()))


class DeviceMovable(ABC):
    """Instances that can be moved to a device."""

    @abstractmethod
    def to(self, device: Device, id: Optional[int] = None) -> Any:
        """Move current object to target device."""
        ...

    def cpu(self) -> Any:
        return self.to(Device.CPU)

    def cuda(self, id: Optional[int] = None) -> Any:
        return self.to(Device.CUDA, id)


class DeviceManager:
    """
    Device manager for the PyTorch runtime.

    Handles device detection, memory management, and object movement
    across CUDA, MPS, and CPU devices.
    """

    def __init__(self, device: str = "auto"):
        """
        Initialize device manager.

        Args:
            device: Target device ("auto", "cuda", "mps", "cpu")
        """
        self._device = self._resolve_device(device)
        logger.info(f"Device manager initialized with device: {self._device}")

    def _resolve_device(self, device: str) -> torch.device:
        """
        Resolve device string to torch.device.

        Args:
            device: Device string ("auto", "cuda", "mps", "cpu")

        Returns:
            torch.device instance
        """
        if device == "auto":
            if torch.cuda.is_available():
                return torch.device("cuda")
            elif torch.backends.mps.is_available():
                return torch.device("mps")
            else:
                return torch.device("cpu")

        elif device == "cuda":
            if not torch.cuda.is_available():
                logger.warning("CUDA requested but not available, falling back to CPU")
                return torch.device("cpu")
            return torch.device("cuda")

        elif device == "mps":
            if not torch.backends.mps.is_available():
                logger.warning("MPS requested but not available, falling back to CPU")
                return torch.device("cpu")
            return torch.device("mps")

        elif device == "cpu":
            return torch.device("cpu")

        else:
            logger.warning(f"Unknown device '{device}', falling back to auto")
            return self._resolve_device("auto")

    def get_device(self) -> torch.device:
        return self._device

    @property
    def device(self) -> Device:
        """The resolved device as a ``Device`` member."""
        return Device(self._device.type)

    def empty_cache(self) -> None:
        """Clear device memory cache (no-op on CPU)."""
        if self._device.type == "cuda":
            torch.cuda.empty_cache()
            logger.debug("Cleared CUDA cache")
        elif self._device.type == "mps":
            try:
                torch.mps.empty_cache()
                logger.debug("Cleared MPS cache")
            except Exception as e:
                logger.warning(f"Failed to clear MPS cache: {e}")

    def move_to_device(self, obj: Any, fallback_to_cpu: bool = True) -> Any:
        """
        Move object to the managed device.

        Adapters and harness modules are moved with ``to(Device)``; native
        tensors and modules with ``to(torch.device)``. Objects without a
        ``to`` method are returned unchanged.

        Args:
            obj: Object to move (module, tensor, adapter)
            fallback_to_cpu: If True, retry on CPU when the move fails

        Returns:
            Object on device
        """
        try:
            return self._move(obj, self._device)
        except Exception as e:
            if fallback_to_cpu and self._device.type != "cpu":
                logger.warning(f"Failed to move to {self._device}, falling back to CPU: {e}")
                return self._move(obj, torch.device("cpu"))
            raise

    @staticmethod
    def _move(obj: Any, device: torch.device) -> Any:
        if isinstance(obj, DeviceMovable):
            return obj.to(Device(device.type), device.index)
        if hasattr(obj, "to"):
            return obj.to(device)
        return obj

    def is_available(self) -> bool:
        """True if the managed device is an available accelerator."""
        if self._device.type == "cuda":
            return torch.cuda.is_available()
        elif self._device.type == "mps":
            return torch.backends.mps.is_available()
        return False

    @property
    def device_type(self) -> str:
        return self._device.type

    @property
    def is_mps(self) -> bool:
        return self._device.type == "mps"

    @property
    def is_cuda(self) -> bool:
        return self._device.type == "cuda"

    @property
    def is_cpu(self) -> bool:
        return self._device.type == "cpu"
