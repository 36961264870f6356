# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for ConvNeXt.
"""

import pytest
import torch
import torch.nn as nn

from convkit.model.convnext import ConvNeXt, convnext
from convkit.model.layers.drop import DropPath, LayerScale
from convkit.model.layers.norm import ChannelLayerNorm


class TestConvNeXtBuilder:
    def test_small_custom_network(self) -> None:
        layers = convnext((1, 1), (16, 32), num_classes=5)
        assert layers.eval()(torch.randn(2, 3, 32, 32)).shape == (2, 5)

    def test_stem_is_patchify(self) -> None:
        layers = convnext((1, 1), (16, 32))
        stem = layers[0][0]
        conv, norm = stem[0], stem[1]
        assert conv.kernel_size == (4, 4)
        assert conv.stride == (4, 4)
        assert isinstance(norm, ChannelLayerNorm)

    def test_downsample_normalizes_first(self) -> None:
        layers = convnext((1, 1), (16, 32))
        # stem, one block, then the second downsample layer
        downsample = layers[0][2]
        assert isinstance(downsample[0], ChannelLayerNorm)
        assert downsample[1].stride == (2, 2)

    def test_length_mismatch_raises(self) -> None:
        with pytest.raises(ValueError, match="one value for each stage"):
            convnext((3, 3, 9), (96, 192))

    def test_drop_path_schedule(self) -> None:
        layers = convnext((2, 2), (8, 16), drop_path_rate=0.3)
        rates = [m.p for m in layers.modules() if isinstance(m, DropPath)]
        assert rates == pytest.approx([0.0, 0.1, 0.2, 0.3])

    def test_layerscale_init(self) -> None:
        layers = convnext((1,), (8,), layerscale_init=0.5)
        scales = [m for m in layers.modules() if isinstance(m, LayerScale)]
        assert len(scales) == 1
        assert torch.allclose(scales[0].gamma, torch.full((8,), 0.5))

    def test_classifier_layout(self) -> None:
        layers = convnext((1,), (8,), num_classes=3)
        classifier = layers[1]
        assert isinstance(classifier[2], nn.LayerNorm)
        assert classifier[3].out_features == 3


class TestConvNeXtModel:
    def test_tiny_forward(self) -> None:
        model = ConvNeXt("tiny", num_classes=10).eval()
        assert model(torch.randn(1, 3, 32, 32)).shape == (1, 10)

    def test_tiny_parameter_count_matches_reference(self) -> None:
        assert ConvNeXt("tiny").count_parameters() == 28_589_128

    def test_unknown_variant_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown ConvNeXt variant"):
            ConvNeXt("huge")

    def test_variant_is_recorded(self) -> None:
        assert ConvNeXt("tiny", num_classes=2).variant == "tiny"
