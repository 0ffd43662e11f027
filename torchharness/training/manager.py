"""
Training and evaluation managers.

``EvaluatingManager`` and ``TrainingManager`` implement the epoch/batch loops
on top of a handful of overridable hooks; loss and metric computation are
delegated to the subclass. ``Manager`` is the ready-to-use implementation
built from a model, an optimizer, a loss and a dict of metrics.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union
import logging

import torch

from ..adapters.tracking import SummaryWriter
from ..core.config import TrainingConfig
from ..core.results import ResultAccumulator
from ..core.schedulers import LrScheduler, build_scheduler
from ..devices import Device, DeviceManager
from ..losses import Loss, PyLoss
from ..metrics import Metric, PyMetric
from ..nn.module import DataParallelable, Module, PathLike, PyModule
from ..nn.parallel import DataParalleledModule
from ..optim import Optimizer, PyOptimizer, build_optimizer
from ..tensor import Tensor

logger = logging.getLogger(__name__)

Result = Dict[str, float]


class EvaluatingManager(ABC):
    """
    Main validation interface.

    Subclasses set ``model`` and implement ``calculate_loss`` and
    ``calculate_metrics``.
    """

    model: Module
    device: Device = Device.CPU
    device_id: Optional[int] = None
    use_multi_gpus: bool = False

    @abstractmethod
    def calculate_loss(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        ...

    @abstractmethod
    def calculate_metrics(self, y_true: Tensor, y_pred: Tensor) -> Result:
        ...

    def on_val_start(self) -> None:
        """Called before validation starts."""
        self.model.eval()

    def on_batch_end(self, batch: int, result: Result) -> None:
        """Called after every training batch."""
        return

    def _unpack(self, example: Any) -> Tuple[Tensor, Tensor]:
        x, y = example
        x = x if isinstance(x, Tensor) else Tensor(x)
        y = y if isinstance(y, Tensor) else Tensor(y)

        # With multiple GPUs the model scatters its input itself
        if not self.use_multi_gpus:
            x.to(self.device, self.device_id)
        y.to(self.device, self.device_id)
        return x, y

    def val_step(self, x_test: Tensor, y_test: Tensor) -> Result:
        """
        Validation for a single step.

        Returns:
            Metrics of this step, including "loss"
        """
        y = self.model(x_test)
        loss = self.calculate_loss(y_test, y)
        result = self.calculate_metrics(y_test, y)
        result["loss"] = float(loss.mean())
        return result

    def validate(self, dataset: Iterable[Any]) -> Result:
        """
        Main validation function.

        Args:
            dataset: Iterable of (input, label) examples, e.g. a DataLoader

        Returns:
            Mean of every per-step result
        """
        self.on_val_start()
        results = ResultAccumulator()

        with torch.no_grad():
            for example in dataset:
                x_test, y_test = self._unpack(example)
                results.append(self.val_step(x_test, y_test))

        return results.mean()


class TrainingManager(EvaluatingManager):
    """
    Main training interface.

    Subclasses additionally set ``optimizer`` (and optionally
    ``lr_scheduler``) and implement ``on_epoch_end``.
    """

    optimizer: Optimizer
    lr_scheduler: Optional[LrScheduler] = None

    def on_epoch_start(self, epoch: int, total_epochs: int) -> None:
        """Called before every epoch."""
        self.model.train()

    @abstractmethod
    def on_epoch_end(
        self,
        epoch: int,
        total_epochs: int,
        training_result: Result,
        val_result: Optional[Result],
    ) -> bool:
        """
        Called after every epoch.

        Returns:
            True if this epoch's result is the best so far
        """
        ...

    def backward(self, loss: Tensor) -> None:
        loss.backward()
        self.optimizer.step()

    def train_step(self, x_train: Tensor, y_train: Tensor) -> Result:
        """
        Train for one step.

        Returns:
            Metrics of this step, including "loss"
        """
        self.optimizer.zero_grad()
        y = self.model(x_train)
        loss = self.calculate_loss(y_train, y)
        result = self.calculate_metrics(y_train, y)
        result["loss"] = float(loss.mean())
        self.backward(loss)
        return result

    def train(
        self,
        training_dataset: Iterable[Any],
        epochs: int,
        initial_epoch: int = 0,
        validation_dataset: Optional[Iterable[Any]] = None,
    ) -> Optional[Result]:
        """
        Main training function.

        Args:
            training_dataset: Iterable of (input, label) examples, e.g. a DataLoader
            epochs: Total number of epochs
            initial_epoch: Index of the starting epoch
            validation_dataset: Optional iterable used to validate after every epoch

        Returns:
            Validation result of the best epoch, or None
        """
        best_result: Optional[Result] = None

        if initial_epoch >= epochs:
            logger.warning(
                f"Initial epoch {initial_epoch} is larger than or equal to epochs {epochs}, nothing to train"
            )
            return None

        for epoch in range(initial_epoch, epochs):
            results = ResultAccumulator()
            self.on_epoch_start(epoch, epochs)

            for batch, example in enumerate(training_dataset):
                x_train, y_train = self._unpack(example)
                result = self.train_step(x_train, y_train)
                results.append(result)
                self.on_batch_end(batch, result)

            training_result = results.mean()
            val_result = self.validate(validation_dataset) if validation_dataset is not None else None

            is_best = self.on_epoch_end(epoch, epochs, training_result, val_result)
            if is_best:
                best_result = val_result

            if self.lr_scheduler is not None:
                self.lr_scheduler.step()

        return best_result


class Manager(TrainingManager):
    """
    Ready-to-use training manager.

    Args:
        model: Harness module or native ``torch.nn.Module``
        optimizer: Optimizer adapter or native ``torch.optim.Optimizer``
        loss_fn: Loss or native loss callable taking (input, target)
        metrics: Mapping of name to Metric or native metric callable
        lr_scheduler: Optional scheduler stepped after every epoch
        device: Target device
        device_id: Optional device index
        use_multi_gpus: Data-parallel the model across all visible GPUs
        monitor: Validation key used to pick the best epoch
        mode: "min" if lower monitored values are better, "max" otherwise
        writer: Optional open SummaryWriter receiving per-epoch scalars
    """

    def __init__(
        self,
        model: Union[Module, torch.nn.Module],
        optimizer: Union[Optimizer, torch.optim.Optimizer],
        loss_fn: Union[Loss, Callable[[Any, Any], Any]],
        metrics: Optional[Dict[str, Union[Metric, Callable[[Any, Any], Any]]]] = None,
        lr_scheduler: Optional[LrScheduler] = None,
        device: Device = Device.CPU,
        device_id: Optional[int] = None,
        use_multi_gpus: bool = False,
        monitor: str = "loss",
        mode: str = "min",
        writer: Optional[SummaryWriter] = None,
    ):
        if mode not in ("min", "max"):
            raise ValueError(f"Invalid mode: {mode}. Must be 'min' or 'max'")

        model = model if isinstance(model, Module) else PyModule(model)
        self.device = device
        self.device_id = device_id
        self.use_multi_gpus = use_multi_gpus

        if use_multi_gpus:
            if not isinstance(model, DataParallelable):
                raise ValueError(f"{type(model).__name__} does not support data parallelism")
            model = model.data_parallel()
            model.to(device)
        else:
            model.to(device, device_id)
        self.model = model

        self.optimizer = optimizer if isinstance(optimizer, Optimizer) else PyOptimizer(optimizer)
        self.loss_fn = loss_fn if isinstance(loss_fn, Loss) else PyLoss(loss_fn)
        self.metrics: Dict[str, Metric] = {
            name: m if isinstance(m, Metric) else PyMetric(m)
            for name, m in (metrics or {}).items()
        }
        self.lr_scheduler = lr_scheduler
        self.monitor = monitor
        self.mode = mode
        self.writer = writer
        self.best_score: Optional[float] = None
        self.history: List[Dict[str, Any]] = []

        logger.info(
            f"Manager ready: model={type(self.model).__name__}, device={device.value}, "
            f"multi_gpus={use_multi_gpus}, metrics={list(self.metrics)}"
        )

    @classmethod
    def from_config(
        cls,
        config: TrainingConfig,
        model: Union[Module, torch.nn.Module],
        loss_fn: Union[Loss, Callable[[Any, Any], Any]],
        metrics: Optional[Dict[str, Union[Metric, Callable[[Any, Any], Any]]]] = None,
        writer: Optional[SummaryWriter] = None,
    ) -> "Manager":
        """
        Build a manager, its optimizer and its scheduler from a TrainingConfig.

        The scheduler is stepped once per epoch, so cosine schedules span
        ``config.epochs`` steps.
        """
        model = model if isinstance(model, Module) else PyModule(model)
        device = DeviceManager(config.device).device
        optimizer = build_optimizer(
            config.optimizer,
            model.parameters,
            lr=config.learning_rate,
            **config.optimizer_kwargs,
        )
        lr_scheduler = build_scheduler(
            config.scheduler,
            optimizer,
            base_lr=config.learning_rate,
            total_steps=config.epochs,
        )
        return cls(
            model,
            optimizer,
            loss_fn,
            metrics=metrics,
            lr_scheduler=lr_scheduler,
            device=device,
            use_multi_gpus=config.use_multi_gpus,
            monitor=config.monitor,
            mode=config.mode,
            writer=writer,
        )

    def calculate_loss(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return self.loss_fn(y_true, y_pred)

    def calculate_metrics(self, y_true: Tensor, y_pred: Tensor) -> Result:
        return {name: metric(y_true, y_pred) for name, metric in self.metrics.items()}

    def on_batch_end(self, batch: int, result: Result) -> None:
        logger.debug(f"Batch {batch + 1}: {_format(result)}")

    def on_epoch_start(self, epoch: int, total_epochs: int) -> None:
        super().on_epoch_start(epoch, total_epochs)
        logger.info(f"Epoch {epoch + 1}/{total_epochs} (lr={self.optimizer.lr:.6g})")

    def on_epoch_end(
        self,
        epoch: int,
        total_epochs: int,
        training_result: Result,
        val_result: Optional[Result],
    ) -> bool:
        self.history.append({"epoch": epoch, "train": training_result, "val": val_result})
        summary = f"Epoch {epoch + 1}/{total_epochs} train: {_format(training_result)}"
        if val_result is not None:
            summary += f" | val: {_format(val_result)}"
        logger.info(summary)

        if self.writer is not None:
            for key, value in training_result.items():
                scalars = {"train": value}
                if val_result is not None and key in val_result:
                    scalars["val"] = val_result[key]
                self.writer.add_scalars(key, scalars, epoch + 1)

        if val_result is None or self.monitor not in val_result:
            return False

        score = val_result[self.monitor]
        if self.best_score is None or self._improves(score):
            self.best_score = score
            logger.info(f"New best {self.monitor}: {score:.4f}")
            return True
        return False

    def _improves(self, score: float) -> bool:
        if self.mode == "min":
            return score < self.best_score
        return score > self.best_score

    def save_model(self, path: PathLike) -> None:
        self.model.save(path)

    def load_model(self, path: PathLike) -> None:
        """Load weights saved with ``save_model`` into the current model."""
        target = self.model.module if isinstance(self.model, DataParalleledModule) else self.model
        loaded = type(target).load(path)
        target.load_state_dict(loaded.state_dict)
        logger.info(f"Loaded model weights from {path}")


def _format(result: Result) -> str:
    return ", ".join(f"{key}={value:.4f}" for key, value in result.items())
