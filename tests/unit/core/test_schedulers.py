"""
Unit tests for learning rate schedulers.
"""

import math

import pytest

from torchharness.core.config import LrSchedulerConfig
from torchharness.core.schedulers import (
    ConstantLr,
    CosineLr,
    CosineSchedulerConfig,
    ExponentialLr,
    build_scheduler,
)


class FakeOptimizer:
    """Anything with a settable ``lr``."""

    def __init__(self, lr: float = 1.0):
        self.lr = lr


def test_constant_scheduler():
    """Constant LR never changes."""
    optimizer = FakeOptimizer()
    scheduler = ConstantLr(optimizer, 0.1)
    for _ in range(3):
        scheduler.step()
    assert scheduler.lr == 0.1
    assert optimizer.lr == 0.1
    assert scheduler.current_step == 3


def test_exponential_scheduler_compounds():
    """After n steps the LR is initial_lr * gamma ** n."""
    optimizer = FakeOptimizer()
    scheduler = ExponentialLr(optimizer, gamma=0.5, initial_lr=0.8)

    scheduler.step()
    assert optimizer.lr == pytest.approx(0.4)
    scheduler.step()
    scheduler.step()
    assert optimizer.lr == pytest.approx(0.8 * 0.5 ** 3)


def test_cosine_scheduler_sets_initial_lr():
    """The optimizer starts at the step-0 learning rate."""
    optimizer = FakeOptimizer(lr=123.0)
    scheduler = CosineLr(optimizer, base_lr=1e-3, total_steps=100)
    assert optimizer.lr == pytest.approx(scheduler.get_lr(0))
    assert optimizer.lr > 0


def test_cosine_scheduler_warmup():
    """Test cosine scheduler warmup phase."""
    scheduler = CosineLr(
        FakeOptimizer(),
        base_lr=1e-3,
        total_steps=1000,
        config=CosineSchedulerConfig(warmup_ratio=0.1)
    )

    # First step should be small but positive
    lr_0 = scheduler.get_lr(0)
    assert lr_0 > 0
    assert lr_0 < scheduler.base_lr

    # Middle of warmup
    lr_50 = scheduler.get_lr(50)
    assert lr_50 > lr_0
    assert lr_50 < scheduler.base_lr

    # Last warmup step reaches base_lr
    assert scheduler.get_lr(99) == pytest.approx(scheduler.base_lr)
    assert scheduler.get_lr(100) == pytest.approx(scheduler.base_lr)


def test_cosine_scheduler_decay():
    """Test cosine scheduler decay phase."""
    scheduler = CosineLr(
        FakeOptimizer(),
        base_lr=1e-3,
        total_steps=1000,
        config=CosineSchedulerConfig(warmup_ratio=0.1, min_lr_ratio=0.1)
    )

    lr_500 = scheduler.get_lr(500)
    lr_900 = scheduler.get_lr(900)

    assert lr_500 < scheduler.base_lr
    assert lr_900 < lr_500
    assert lr_900 >= scheduler.min_lr


def test_cosine_scheduler_final_lr():
    """The schedule ends at min_lr and stays there."""
    scheduler = CosineLr(
        FakeOptimizer(),
        base_lr=1e-3,
        total_steps=1000,
        config=CosineSchedulerConfig(warmup_ratio=0.1, min_lr_ratio=0.1)
    )

    assert scheduler.get_lr(1000) == pytest.approx(scheduler.min_lr)
    assert scheduler.get_lr(5000) == pytest.approx(scheduler.min_lr)


def test_cosine_scheduler_midpoint():
    """Halfway through decay the LR is the mean of base and min."""
    scheduler = CosineLr(
        FakeOptimizer(),
        base_lr=1.0,
        total_steps=100,
        config=CosineSchedulerConfig(warmup_ratio=0.0, min_lr_ratio=0.0)
    )
    assert scheduler.get_lr(50) == pytest.approx(0.5)
    assert scheduler.get_lr(0) == pytest.approx(1.0)


def test_cosine_scheduler_step_writes_optimizer():
    """step() writes the new LR to the optimizer."""
    optimizer = FakeOptimizer()
    scheduler = CosineLr(optimizer, base_lr=1.0, total_steps=10,
                         config=CosineSchedulerConfig(warmup_ratio=0.0, min_lr_ratio=0.0))
    scheduler.step()
    expected = 0.5 * (1 + math.cos(math.pi * 0.1))
    assert optimizer.lr == pytest.approx(expected)
    assert scheduler.current_step == 1


class TestBuildScheduler:
    """Test scheduler construction from config."""

    def test_none(self) -> None:
        """kind=none builds no schedule."""
        assert build_scheduler(LrSchedulerConfig(), FakeOptimizer(), 0.1, 10) is None

    def test_constant(self) -> None:
        """kind=constant builds ConstantLr."""
        scheduler = build_scheduler(LrSchedulerConfig(kind="constant"), FakeOptimizer(), 0.1, 10)
        assert isinstance(scheduler, ConstantLr)

    def test_exponential(self) -> None:
        """kind=exponential carries gamma."""
        scheduler = build_scheduler(
            LrSchedulerConfig(kind="exponential", gamma=0.5), FakeOptimizer(), 0.1, 10
        )
        assert isinstance(scheduler, ExponentialLr)
        assert scheduler.gamma == 0.5

    def test_cosine(self) -> None:
        """kind=cosine carries warmup and floor."""
        scheduler = build_scheduler(
            LrSchedulerConfig(kind="cosine", warmup_ratio=0.2, min_lr_ratio=0.05),
            FakeOptimizer(),
            0.1,
            10,
        )
        assert isinstance(scheduler, CosineLr)
        assert scheduler.warmup_steps == 2
        assert scheduler.min_lr == pytest.approx(0.005)
