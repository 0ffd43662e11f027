"""
Training CLI - trains a small classifier on synthetic data.

Exercises the whole harness end to end: YAML config, seeding, device
selection, optimizer and schedule construction, the training manager,
TensorBoard tracking and checkpointing.
"""

import argparse
import dataclasses
import logging
import sys
from typing import List, Optional, Tuple

import torch
import yaml
from torch.utils.data import DataLoader, TensorDataset

from .adapters.tracking import SummaryWriter
from .core.config import TrainingConfig
from .infrastructure import get_reproducibility_info, hash_config, set_seed, setup_logging
from .losses import CrossEntropyLoss
from .metrics import SparseCategoricalAccuracy
from .nn import PyModule, PySequential
from .training import Manager

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="torchharness training run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Train with defaults
  torchharness-train

  # Train from a config file for 20 epochs on CPU
  torchharness-train --config configs/train.yaml --epochs 20 --device cpu
""",
    )

    parser.add_argument(
        "--config",
        help="Path to a training config YAML file",
    )
    parser.add_argument(
        "--epochs",
        type=int,
        help="Override the number of epochs",
    )
    parser.add_argument(
        "--device",
        choices=["auto", "cpu", "cuda", "mps"],
        help="Override the target device",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=512,
        help="Number of synthetic samples (default: 512)",
    )
    parser.add_argument(
        "--features",
        type=int,
        default=16,
        help="Number of input features (default: 16)",
    )
    parser.add_argument(
        "--classes",
        type=int,
        default=4,
        help="Number of classes (default: 4)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> TrainingConfig:
    """Load the config file (if any) and apply command-line overrides."""
    config = TrainingConfig.from_yaml(args.config) if args.config else TrainingConfig()

    overrides = {}
    if args.epochs is not None:
        overrides["epochs"] = args.epochs
    if args.device is not None:
        overrides["device"] = args.device
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


def build_datasets(
    samples: int,
    features: int,
    classes: int,
    batch_size: int,
) -> Tuple[DataLoader, DataLoader]:
    """
    Synthetic, linearly separable classification data.

    Returns:
        (training loader, validation loader) with an 80/20 split
    """
    x = torch.randn(samples, features)
    projection = torch.randn(features, classes)
    y = (x @ projection).argmax(dim=1)

    split = int(samples * 0.8)
    train_set = TensorDataset(x[:split], y[:split])
    val_set = TensorDataset(x[split:], y[split:])
    return (
        DataLoader(train_set, batch_size=batch_size, shuffle=True),
        DataLoader(val_set, batch_size=batch_size),
    )


def build_model(features: int, classes: int, hidden: int = 32) -> PySequential:
    """Two-layer MLP."""
    return PySequential([
        PyModule(torch.nn.Linear(features, hidden)),
        PyModule(torch.nn.ReLU()),
        PyModule(torch.nn.Linear(hidden, classes)),
    ])


def run(config: TrainingConfig, args: argparse.Namespace, writer: Optional[SummaryWriter] = None) -> Optional[dict]:
    """Train and validate; return the best validation result."""
    training_loader, validation_loader = build_datasets(
        args.samples, args.features, args.classes, config.batch_size
    )
    model = build_model(args.features, args.classes)
    manager = Manager.from_config(
        config,
        model,
        CrossEntropyLoss(),
        metrics={"accuracy": SparseCategoricalAccuracy()},
        writer=writer,
    )

    best = manager.train(
        training_loader,
        config.epochs,
        initial_epoch=config.initial_epoch,
        validation_dataset=validation_loader,
    )

    if config.checkpoint_path:
        manager.save_model(config.checkpoint_path)
    return best


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the training CLI."""
    args = parse_args(argv)

    try:
        setup_logging(args.log_level)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        config = load_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to load config: {e}")
        return 1

    set_seed(config.seed)
    logger.info(f"Config hash: {hash_config(config)[:12]}")
    logger.info(f"Environment: {get_reproducibility_info()}")

    if config.log_dir:
        with SummaryWriter(config.log_dir) as writer:
            best = run(config, args, writer)
    else:
        best = run(config, args)

    if best is not None:
        summary = ", ".join(f"{k}={v:.4f}" for k, v in best.items())
        logger.info(f"Best validation result: {summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
