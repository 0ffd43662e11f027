"""
Tests for hand-rolled layers.

Tests cover:
- Linear, Conv2D and Flatten forward passes against native modules
- State dicts, in-place loading and persistence
- Copies and conversion to native modules
- Invalid configurations
"""

import pytest
import torch

from torchharness.nn import Conv2D, Flatten, InvalidGroupsError, Linear, Padding, PyModule
from torchharness.tensor import Tensor


class TestLinear:
    """Test the Linear layer."""

    def test_shapes(self) -> None:
        """Weights are stored as (out, in)."""
        linear = Linear(3, 5)
        assert linear.in_features == 3
        assert linear.out_features == 5
        assert linear.weight.shape == [5, 3]
        assert linear.bias.shape == [5]

    def test_no_bias(self) -> None:
        """Layers without bias expose only the weight."""
        linear = Linear(3, 5, bias=False)
        assert linear.bias is None
        assert len(linear.parameters) == 1
        assert linear.state_dict["bias"] is None

    def test_forward_matches_native(self) -> None:
        """Forward agrees with the equivalent native module."""
        linear = Linear(3, 2)
        native = linear.to_py_module().native
        x = torch.randn(4, 3)
        assert torch.allclose(linear(Tensor(x)).native, native(x))

    def test_to_py_module_shares_parameters(self) -> None:
        """The native module reuses the layer parameters."""
        linear = Linear(3, 2)
        native = linear.to_py_module().native
        assert native.weight is linear.weight.native
        assert native.bias is linear.bias.native

    def test_parameters_are_trainable(self) -> None:
        """Backward reaches weight and bias."""
        linear = Linear(3, 2)
        linear(torch.randn(4, 3)).sum().backward()
        assert linear.weight.grad is not None
        assert linear.bias.grad is not None

    def test_copy_is_independent(self) -> None:
        """Copies do not share storage with the source."""
        linear = Linear(3, 2)
        c = linear.copy()
        assert c.weight == linear.weight
        with torch.no_grad():
            c.weight.native.zero_()
        assert c.weight != linear.weight

    def test_load_state_dict_copies_in_place(self) -> None:
        """Matching shapes keep the parameter objects."""
        a, b = Linear(3, 2), Linear(3, 2)
        weight = b.weight.native
        b.load_state_dict(a.state_dict)
        assert b.weight.native is weight
        assert b.weight == a.weight

    def test_load_state_dict_replaces_on_shape_change(self) -> None:
        """A new shape replaces the parameters."""
        a, b = Linear(4, 2), Linear(3, 2)
        b.load_state_dict(a.state_dict)
        assert b.in_features == 4
        assert isinstance(b.weight.native, torch.nn.Parameter)

    def test_save_and_load(self, tmp_path) -> None:
        """Saved layers load back with the same configuration."""
        linear = Linear(3, 2)
        path = tmp_path / "linear.pt"
        linear.save(path)
        loaded = Linear.load(path)
        assert loaded.weight == linear.weight
        assert loaded.bias == linear.bias

    def test_save_and_load_without_bias(self, tmp_path) -> None:
        """A bias-free layer loads back without bias."""
        linear = Linear(3, 2, bias=False)
        path = tmp_path / "linear.pt"
        linear.save(path)
        assert Linear.load(path).bias is None


class TestConv2D:
    """Test the Conv2D layer."""

    def test_forward_same_padding_keeps_size(self) -> None:
        """Same padding keeps the spatial size."""
        conv = Conv2D(3, 8, (3, 3))
        y = conv(torch.randn(2, 3, 10, 10))
        assert y.shape == [2, 8, 10, 10]

    def test_forward_valid_padding(self) -> None:
        """Valid padding shrinks the spatial size."""
        conv = Conv2D(3, 8, (3, 3), padding=Padding.VALID)
        y = conv(torch.randn(2, 3, 10, 10))
        assert y.shape == [2, 8, 8, 8]

    def test_forward_matches_native(self) -> None:
        """Forward agrees with the equivalent native module."""
        conv = Conv2D(4, 6, (3, 5), stride=(1, 1), groups=2)
        native = conv.to_py_module().native
        x = torch.randn(1, 4, 9, 9)
        assert torch.allclose(conv(x).native, native(x), atol=1e-6)

    def test_properties(self) -> None:
        """Feature counts and kernel size are exposed."""
        conv = Conv2D(4, 6, (3, 5), groups=2)
        assert conv.in_features == 4
        assert conv.out_features == 6
        assert conv.kernel_size == (3, 5)

    def test_invalid_groups(self) -> None:
        """Channels must divide by groups."""
        with pytest.raises(InvalidGroupsError):
            Conv2D(3, 6, (3, 3), groups=2)

    def test_state_dict(self) -> None:
        """State records stride, padding and groups."""
        state = Conv2D(2, 4, (3, 3), stride=(2, 2), padding=Padding.VALID).state_dict
        assert state["stride"] == [2, 2]
        assert state["padding"] == "valid"
        assert state["groups"] == 1
        assert state["dilation"] == 1

    def test_save_and_load(self, tmp_path) -> None:
        """Saved layers load back with the same configuration."""
        conv = Conv2D(4, 6, (3, 3), stride=(2, 2), padding=Padding.VALID, groups=2)
        path = tmp_path / "conv.pt"
        conv.save(path)
        loaded = Conv2D.load(path)
        assert loaded.weight == conv.weight
        assert loaded.stride == (2, 2)
        assert loaded.padding == Padding.VALID
        assert loaded.groups == 2

    def test_load_unsupported_padding_uses_same(self, tmp_path) -> None:
        """Unknown padding modes load as same."""
        conv = Conv2D(2, 2, (3, 3))
        state = conv.state_dict
        state["padding"] = "reflect"
        path = tmp_path / "conv.pt"
        torch.save(state, path)
        assert Conv2D.load(path).padding == Padding.SAME

    def test_copy(self) -> None:
        """Copies hold equal but separate weights."""
        conv = Conv2D(2, 4, (3, 3), stride=(2, 2))
        c = conv.copy()
        assert c.weight == conv.weight
        assert c.weight.native is not conv.weight.native
        assert c.stride == conv.stride


class TestFlatten:
    """Test the Flatten layer."""

    def test_default_keeps_batch(self) -> None:
        """By default every dim after the batch is flattened."""
        assert Flatten()(torch.zeros(2, 3, 4)).shape == [2, 12]

    def test_custom_dims(self) -> None:
        """Start and end dims are honoured."""
        assert Flatten(0, 1)(torch.zeros(2, 3, 4)).shape == [6, 4]

    def test_no_parameters(self) -> None:
        """Flatten has no parameters."""
        assert Flatten().parameters == []

    def test_to_py_module(self) -> None:
        """Conversion yields a native Flatten."""
        m = Flatten(1, 2).to_py_module()
        assert isinstance(m, PyModule)
        assert isinstance(m.native, torch.nn.Flatten)

    def test_save_and_load(self, tmp_path) -> None:
        """Saved layers load back with the same configuration."""
        path = tmp_path / "flatten.pt"
        Flatten(0, 2).save(path)
        loaded = Flatten.load(path)
        assert (loaded.start_dim, loaded.end_dim) == (0, 2)
