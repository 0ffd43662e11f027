"""
Pytest configuration for torchharness tests.
"""

import pytest
import torch


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "cuda: marks tests that need a CUDA device"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is passed, and CUDA tests without CUDA."""
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    skip_cuda = pytest.mark.skip(reason="CUDA is not available")
    run_slow = config.getoption("--run-slow")
    has_cuda = torch.cuda.is_available()

    for item in items:
        if "slow" in item.keywords and not run_slow:
            item.add_marker(skip_slow)
        if "cuda" in item.keywords and not has_cuda:
            item.add_marker(skip_cuda)


@pytest.fixture(autouse=True)
def seed():
    """Deterministic weights and data in every test."""
    torch.manual_seed(0)
