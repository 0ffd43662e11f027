"""
Tests for the training CLI.
"""

import logging

import pytest
import yaml

from torchharness.cli import build_datasets, build_model, load_config, main, parse_args


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseArgs:
    """Test argument parsing and config overrides."""

    def test_defaults(self) -> None:
        """No arguments leaves every override unset."""
        args = parse_args([])
        assert args.config is None
        assert args.epochs is None
        assert args.samples == 512
        assert args.log_level == "INFO"

    def test_overrides(self, tmp_path) -> None:
        """Command-line flags win over the config file."""
        path = tmp_path / "train.yaml"
        path.write_text(yaml.safe_dump({"training": {"epochs": 9}, "runtime": {"device": "auto"}}))

        config = load_config(parse_args(["--config", str(path), "--epochs", "2", "--device", "cpu"]))
        assert config.epochs == 2
        assert config.device == "cpu"

    def test_config_without_overrides(self, tmp_path) -> None:
        """Config file values survive when no flags are given."""
        path = tmp_path / "train.yaml"
        path.write_text(yaml.safe_dump({"training": {"epochs": 9}}))
        assert load_config(parse_args(["--config", str(path)])).epochs == 9


class TestBuilders:
    """Test synthetic data and model construction."""

    def test_datasets_split(self) -> None:
        """Samples are split 80/20 into training and validation."""
        training, validation = build_datasets(100, 4, 3, batch_size=10)
        assert len(training.dataset) == 80
        assert len(validation.dataset) == 20

    def test_model_output_shape(self) -> None:
        """The MLP maps a batch to one logit per class."""
        training, _ = build_datasets(20, 4, 3, batch_size=5)
        x, _ = next(iter(training))
        assert build_model(4, 3)(x).shape == [5, 3]


class TestMain:
    """Test end-to-end runs."""

    def test_run_with_tracking_and_checkpoint(self, tmp_path) -> None:
        """A full run writes event files and a checkpoint."""
        path = tmp_path / "train.yaml"
        path.write_text(yaml.safe_dump({
            "training": {"epochs": 2, "batch_size": 16},
            "optimizer": {"name": "adam", "learning_rate": 0.01},
            "scheduler": {"kind": "cosine"},
            "runtime": {"device": "cpu", "monitor": "accuracy", "mode": "max"},
            "paths": {
                "log_dir": str(tmp_path / "runs"),
                "checkpoint_path": str(tmp_path / "ckpt" / "model.pt"),
            },
        }))

        assert main(["--config", str(path), "--samples", "64", "--log-level", "WARNING"]) == 0
        assert (tmp_path / "ckpt" / "model.pt").exists()
        assert list((tmp_path / "runs").rglob("events.out.tfevents.*"))

    def test_missing_config(self, tmp_path) -> None:
        """A missing config file exits with status 1."""
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1

    def test_invalid_config(self, tmp_path) -> None:
        """Invalid config values exit with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"training": {"epochs": 0}}))
        assert main(["--config", str(path)]) == 1

    def test_unknown_log_level(self) -> None:
        """An unknown log level exits with status 1."""
        assert main(["--log-level", "chatty"]) == 1

    @pytest.mark.parametrize("content", [
        "training: [epochs: 2\n",
        "- 1\n- 2\n",
        "training: 5\n",
        "runtime: cpu\n",
    ])
    def test_malformed_config(self, tmp_path, content) -> None:
        """Unparseable or wrongly shaped YAML exits with status 1."""
        path = tmp_path / "bad.yaml"
        path.write_text(content)
        assert main(["--config", str(path)]) == 1
