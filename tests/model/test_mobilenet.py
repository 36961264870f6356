# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the MobileNet family and the shared inverted-residual builder.
"""

import pytest
import torch
import torch.nn as nn

from convkit.model.config import MOBILENETV2_CONFIGS
from convkit.model.layers.connections import SkipConnection
from convkit.model.layers.drop import DropPath
from convkit.model.layers.squeeze_excite import SqueezeExcite
from convkit.model.mobilenet import MobileNetV1, MobileNetV2, MobileNetV3, invres_model


class TestMobileNetV1:
    def test_forward(self) -> None:
        model = MobileNetV1(width_mult=0.5, num_classes=10).eval()
        assert model(torch.randn(2, 3, 64, 64)).shape == (2, 10)

    def test_width_multiplier_scales_classifier_input(self) -> None:
        assert MobileNetV1(width_mult=0.5).classifier[-1].in_features == 512
        assert MobileNetV1().classifier[-1].in_features == 1024

    def test_no_residuals(self) -> None:
        assert not any(isinstance(m, SkipConnection) for m in MobileNetV1().modules())

    def test_dropout(self) -> None:
        model = MobileNetV1(dropout=0.4)
        assert [m.p for m in model.modules() if isinstance(m, nn.Dropout)] == [0.4]


class TestMobileNetV2:
    def test_forward(self) -> None:
        model = MobileNetV2(num_classes=10).eval()
        assert model(torch.randn(2, 3, 64, 64)).shape == (2, 10)

    def test_head_never_shrinks_below_1280(self) -> None:
        assert MobileNetV2(width_mult=0.5).classifier[-1].in_features == 1280
        assert MobileNetV2(width_mult=1.4).classifier[-1].in_features == 1792

    def test_residual_blocks(self) -> None:
        model = MobileNetV2()
        assert sum(isinstance(m, SkipConnection) for m in model.modules()) == 10

    def test_uses_relu6(self) -> None:
        assert any(isinstance(m, nn.ReLU6) for m in MobileNetV2().modules())

    def test_drop_path_only_on_residual_blocks(self) -> None:
        model = MobileNetV2(drop_path_rate=0.2)
        assert sum(isinstance(m, DropPath) for m in model.modules()) == 10


class TestMobileNetV3:
    @pytest.mark.parametrize("variant", ["small", "large"])
    def test_forward(self, variant: str) -> None:
        model = MobileNetV3(variant, num_classes=10).eval()
        assert model(torch.randn(2, 3, 64, 64)).shape == (2, 10)

    def test_small_classifier_widths(self) -> None:
        hidden = MobileNetV3("small").classifier[2]
        assert hidden.in_features == 576
        assert hidden.out_features == 1024

    def test_large_classifier_widths(self) -> None:
        hidden = MobileNetV3("large").classifier[2]
        assert hidden.in_features == 960
        assert hidden.out_features == 1280

    def test_squeeze_excite_uses_hard_sigmoid(self) -> None:
        se_layers = [m for m in MobileNetV3("small").modules() if isinstance(m, SqueezeExcite)]
        assert se_layers
        assert all(isinstance(se.gate[-1], nn.Hardsigmoid) for se in se_layers)

    def test_uses_hardswish(self) -> None:
        assert any(isinstance(m, nn.Hardswish) for m in MobileNetV3("large").modules())

    def test_unknown_variant_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown MobileNetV3 variant"):
            MobileNetV3("medium")


class TestInvresModel:
    def test_layers_are_backbone_and_classifier(self) -> None:
        layers = invres_model(MOBILENETV2_CONFIGS, stem_planes=32, width_mult=1.0, num_classes=4)
        assert len(layers) == 2
        # stem plus one Sequential per stage, no head convolution
        assert len(layers[0]) == 1 + len(MOBILENETV2_CONFIGS)

    def test_head_convolution(self) -> None:
        layers = invres_model(
            MOBILENETV2_CONFIGS, stem_planes=32, head_planes=640, width_mult=1.0
        )
        assert len(layers[0]) == 2 + len(MOBILENETV2_CONFIGS)
        assert layers[1][-1].in_features == 640

    def test_invalid_width_multiplier(self) -> None:
        with pytest.raises(ValueError, match="width_mult"):
            invres_model(MOBILENETV2_CONFIGS, stem_planes=32, width_mult=0.0)
