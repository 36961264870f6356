# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the shared layers: conv-norm units, connections, DropPath,
LayerScale, squeeze-and-excite and the channel LayerNorm.
"""

import pytest
import torch
import torch.nn as nn

from convkit.model.layers.connections import (
    IdentityShortcut,
    Parallel,
    SkipConnection,
    add_relu,
    skip_identity,
    skip_projection,
)
from convkit.model.layers.conv import conv_norm, dwsep_conv_norm, same_padding
from convkit.model.layers.drop import DropPath, LayerScale, drop_path
from convkit.model.layers.norm import ChannelLayerNorm
from convkit.model.layers.squeeze_excite import EffectiveSqueezeExcite, SqueezeExcite


class TestConvNorm:
    def test_default_order_and_bias(self) -> None:
        conv, norm, act = conv_norm(3, 8, 16)
        assert isinstance(conv, nn.Conv2d)
        assert conv.bias is None
        assert isinstance(norm, nn.BatchNorm2d)
        assert norm.num_features == 16
        assert isinstance(act, nn.ReLU)

    def test_same_padding_keeps_size(self) -> None:
        assert same_padding(3) == 1
        assert same_padding(7) == 3
        layers = nn.Sequential(*conv_norm(5, 4, 4))
        assert layers(torch.randn(2, 4, 9, 9)).shape == (2, 4, 9, 9)

    def test_stride_halves_resolution(self) -> None:
        layers = nn.Sequential(*conv_norm(3, 4, 8, stride=2))
        assert layers(torch.randn(2, 4, 16, 16)).shape == (2, 8, 8, 8)

    def test_identity_norm_gets_bias(self) -> None:
        conv, norm, _ = conv_norm(1, 4, 8, norm_layer="identity")
        assert conv.bias is not None
        assert isinstance(norm, nn.Identity)

    def test_revnorm_normalizes_input_channels(self) -> None:
        norm, conv, act = conv_norm(
            2, 8, 16, "identity", norm_layer="channel_layernorm", revnorm=True, stride=2, padding=0
        )
        assert isinstance(norm, ChannelLayerNorm)
        assert norm.num_channels == 8
        assert isinstance(conv, nn.Conv2d)
        assert conv.bias is not None
        assert isinstance(act, nn.Identity)

    def test_groups(self) -> None:
        conv = conv_norm(3, 8, 8, groups=8)[0]
        assert conv.groups == 8

    def test_dwsep_conv_norm(self) -> None:
        block = dwsep_conv_norm(3, 8, 16, stride=2)
        assert block[0].groups == 8
        assert block(torch.randn(2, 8, 8, 8)).shape == (2, 16, 4, 4)


class TestConnections:
    def test_skip_connection_adds_input(self) -> None:
        skip = SkipConnection(nn.Identity(), torch.add)
        x = torch.randn(2, 3, 4, 4)
        assert torch.allclose(skip(x), 2 * x)

    def test_skip_connection_custom_join(self) -> None:
        skip = SkipConnection(nn.Identity(), torch.mul)
        x = torch.randn(2, 3)
        assert torch.allclose(skip(x), x * x)

    def test_parallel_folds_branches(self) -> None:
        par = Parallel(torch.add, nn.Identity(), nn.Identity(), nn.Identity())
        x = torch.randn(2, 3)
        assert torch.allclose(par(x), 3 * x)

    def test_parallel_needs_two_branches(self) -> None:
        with pytest.raises(ValueError, match="at least 2"):
            Parallel(torch.add, nn.Identity())

    def test_add_relu(self) -> None:
        x = torch.tensor([-2.0, 1.0])
        y = torch.tensor([1.0, 1.0])
        assert torch.equal(add_relu(x, y), torch.tensor([0.0, 2.0]))

    def test_skip_identity_same_shape_is_identity(self) -> None:
        assert isinstance(skip_identity(64, 64), nn.Identity)

    def test_identity_shortcut_pads_and_strides(self) -> None:
        shortcut = skip_identity(4, 8, downsample=True)
        assert isinstance(shortcut, IdentityShortcut)
        x = torch.randn(1, 4, 8, 8)
        out = shortcut(x)
        assert out.shape == (1, 8, 4, 4)
        assert torch.equal(out[:, :4], x[:, :, ::2, ::2])
        assert torch.count_nonzero(out[:, 4:]) == 0

    def test_identity_shortcut_has_no_parameters(self) -> None:
        assert sum(p.numel() for p in skip_identity(4, 8, downsample=True).parameters()) == 0

    def test_identity_shortcut_cannot_drop_channels(self) -> None:
        with pytest.raises(ValueError, match="cannot reduce channels"):
            skip_identity(128, 64)

    def test_skip_projection(self) -> None:
        proj = skip_projection(4, 8, downsample=True)
        assert proj(torch.randn(2, 4, 8, 8)).shape == (2, 8, 4, 4)
        assert proj[0].kernel_size == (1, 1)


class TestDropPath:
    def test_identity_in_eval(self) -> None:
        layer = DropPath(0.5).eval()
        x = torch.randn(4, 3, 2, 2)
        assert torch.equal(layer(x), x)

    def test_zero_rate_is_identity_in_training(self) -> None:
        layer = DropPath(0.0).train()
        x = torch.randn(4, 3)
        assert torch.equal(layer(x), x)

    def test_full_rate_zeroes_everything(self) -> None:
        x = torch.randn(4, 3)
        assert torch.count_nonzero(drop_path(x, 1.0, training=True)) == 0

    def test_whole_samples_are_dropped(self) -> None:
        torch.manual_seed(0)
        x = torch.ones(64, 3, 2, 2)
        out = drop_path(x, 0.5, training=True)
        per_sample = out.flatten(1)
        for row in per_sample:
            values = set(row.tolist())
            assert values == {0.0} or values == {2.0}

    @pytest.mark.parametrize("p", [-0.1, 1.1])
    def test_invalid_probability(self, p: float) -> None:
        with pytest.raises(ValueError, match="DropPath probability"):
            DropPath(p)


class TestLayerScale:
    def test_scales_last_dimension(self) -> None:
        layer = LayerScale(4, init_value=0.5)
        x = torch.ones(2, 3, 3, 4)
        assert torch.allclose(layer(x), torch.full_like(x, 0.5))

    def test_gamma_is_learnable(self) -> None:
        layer = LayerScale(8)
        assert layer.gamma.requires_grad
        assert layer.gamma.shape == (8,)


class TestSqueezeExcite:
    def test_hidden_width(self) -> None:
        assert SqueezeExcite(64, reduction=4).rd_planes == 16

    def test_tiny_hidden_width_rounds_up(self) -> None:
        assert SqueezeExcite(16, reduction=16).rd_planes == 8

    def test_explicit_hidden_width(self) -> None:
        assert SqueezeExcite(64, rd_planes=5).rd_planes == 5

    def test_preserves_shape(self) -> None:
        layer = SqueezeExcite(32, reduction=4, gate_activation="hardsigmoid")
        x = torch.randn(2, 32, 7, 7)
        assert layer(x).shape == x.shape

    def test_gate_bounds_output(self) -> None:
        """A sigmoid gate lies in (0, 1), so |y| never exceeds |x|."""
        layer = SqueezeExcite(16, reduction=4)
        x = torch.randn(2, 16, 5, 5)
        assert torch.all(layer(x).abs() <= x.abs() + 1e-6)

    def test_invalid_hidden_width(self) -> None:
        with pytest.raises(ValueError, match="hidden width"):
            SqueezeExcite(16, rd_planes=0)

    def test_effective_variant(self) -> None:
        layer = EffectiveSqueezeExcite(8)
        x = torch.randn(2, 8, 4, 4)
        assert layer(x).shape == x.shape

    def test_effective_variant_gates(self) -> None:
        assert isinstance(EffectiveSqueezeExcite(8).gate[-1], nn.Hardsigmoid)
        sigmoid_gated = EffectiveSqueezeExcite(8, gate_activation="sigmoid")
        assert isinstance(sigmoid_gated.gate[-1], nn.Sigmoid)


class TestChannelLayerNorm:
    def test_matches_layernorm_over_channels(self) -> None:
        torch.manual_seed(0)
        x = torch.randn(2, 6, 3, 3)
        norm = ChannelLayerNorm(6)
        reference = nn.LayerNorm(6, eps=1e-6)
        expected = reference(x.permute(0, 2, 3, 1)).permute(0, 3, 1, 2)
        assert torch.allclose(norm(x), expected, atol=1e-6)

    def test_normalized_channels(self) -> None:
        x = torch.randn(2, 16, 4, 4) * 5 + 3
        out = ChannelLayerNorm(16)(x)
        assert torch.allclose(out.mean(dim=1), torch.zeros(2, 4, 4), atol=1e-5)
