"""
Seeding and run fingerprints.

``set_seed`` is called once before building the model; ``hash_config`` and
``get_reproducibility_info`` are logged at the start of a run.
"""

from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime
from typing import Any, Dict, Union
import hashlib
import json
import platform
import random
import sys

import numpy as np
import torch


@dataclass
class SeedConfig:
    """Which generators ``set_seed`` touches."""
    seed: int = 42
    set_python: bool = True
    set_numpy: bool = True
    set_torch: bool = True
    deterministic: bool = False  # cuDNN deterministic kernels, no autotuning


def set_seed(seed_or_config: Union[int, SeedConfig] = 42) -> None:
    config = seed_or_config if isinstance(seed_or_config, SeedConfig) else SeedConfig(seed=seed_or_config)

    if config.set_python:
        random.seed(config.seed)
    if config.set_numpy:
        np.random.seed(config.seed)
    if config.set_torch:
        # Also seeds CUDA and MPS generators
        torch.manual_seed(config.seed)

    if config.deterministic:
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False


def hash_config(config: Union[Dict[str, Any], Any]) -> str:
    """SHA256 of a dict or dataclass config, independent of key order."""
    data = asdict(config) if is_dataclass(config) and not isinstance(config, type) else config
    payload = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode()).hexdigest()


def get_reproducibility_info() -> Dict[str, Any]:
    """Versions, accelerator and host of the current run."""
    if torch.cuda.is_available():
        device, device_name, device_count = "cuda", torch.cuda.get_device_name(0), torch.cuda.device_count()
    elif torch.backends.mps.is_available():
        device, device_name, device_count = "mps", "Apple Silicon", 1
    else:
        device, device_name, device_count = "cpu", "CPU", 0

    return {
        "python_version": sys.version.split()[0],
        "torch_version": torch.__version__,
        "numpy_version": np.__version__,
        "device": device,
        "device_name": device_name,
        "device_count": device_count,
        "platform": platform.platform(),
        "timestamp": datetime.now().isoformat(),
    }
