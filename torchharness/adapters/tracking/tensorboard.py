"""
TensorBoard integration for experiment tracking.

Tracks per-epoch training and validation metrics.
"""

from pathlib import Path
from typing import Dict, Optional, Union
import logging

from torch.utils import tensorboard

logger = logging.getLogger(__name__)


class SummaryWriter:
    """
    A summary writer that writes scalars into TensorBoard.

    The native writer only exists inside the ``with`` block:

        with SummaryWriter(log_dir) as writer:
            writer.add_scalar("loss", 0.5, 0)
    """

    def __init__(self, log_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            log_dir: Target directory (TensorBoard's ./runs/... default if None)
        """
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self._writer: Optional[tensorboard.SummaryWriter] = None

    def __enter__(self) -> "SummaryWriter":
        log_dir = str(self.log_dir) if self.log_dir is not None else None
        self._writer = tensorboard.SummaryWriter(log_dir)
        logger.debug(f"Opened TensorBoard writer at {self._writer.log_dir}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # Don't suppress exceptions
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    def _require_writer(self) -> tensorboard.SummaryWriter:
        if self._writer is None:
            raise RuntimeError("SummaryWriter is not open; use it inside a 'with' block")
        return self._writer

    def add_scalar(self, name: str, value: float, step: int) -> None:
        """
        Add a scalar to the board.

        Args:
            name: Scalar name
            value: Value to record
            step: Iteration index
        """
        self._require_writer().add_scalar(name, value, step)

    def add_scalars(self, main_tag: str, values: Dict[str, float], step: int) -> None:
        """
        Add several related scalars under one tag.

        Args:
            main_tag: Parent tag name
            values: Mapping of sub-tag to value
            step: Iteration index
        """
        self._require_writer().add_scalars(main_tag, values, step)

    def flush(self) -> None:
        self._require_writer().flush()
