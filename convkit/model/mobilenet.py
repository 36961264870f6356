# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
MobileNet family and the shared inverted-residual model builder.

  MobileNetV1  https://arxiv.org/abs/1704.04861  (depthwise-separable stages)
  MobileNetV2  https://arxiv.org/abs/1801.04381  (MBConv, ReLU6)
  MobileNetV3  https://arxiv.org/abs/1905.02244  (MBConv + SE, hard-swish)

Topology shared by all of them (and by EfficientNet):
  3x3/2 stem conv → stages from the stage table → [1x1 head conv]
  → global average pool → [linear + act] → dropout → linear
"""

import logging
from typing import Optional, Sequence

import torch.nn as nn

from convkit.model.blocks.mbconv import mbconv_stack_builder
from convkit.model.config import (
    MOBILENETV1_CONFIGS,
    MOBILENETV2_CONFIGS,
    MOBILENETV3_CONFIGS,
    StageConfig,
    linear_scheduler,
    round_channels,
)
from convkit.model.interfaces import ConvNet
from convkit.model.layers.build import build_activation
from convkit.model.layers.conv import conv_norm

logger = logging.getLogger(__name__)


def invres_model(
    block_configs: Sequence[StageConfig],
    *,
    stem_planes: int,
    head_planes: Optional[int] = None,
    fcsize: Optional[int] = None,
    activation: str = "relu",
    width_mult: Optional[float] = None,
    scalings: Optional[tuple[float, float]] = None,
    dropout: float = 0.2,
    drop_path_rate: float = 0.0,
    num_classes: int = 1000,
    in_channels: int = 3,
    norm_layer: str = "batchnorm",
    **block_kwargs: object,
) -> nn.Sequential:
    """
    Build the layers of an inverted-residual network from a stage table.

    Args:
        block_configs: Stage table rows (see ``convkit.model.config``).
        stem_planes: Unscaled output width of the 3x3/2 stem convolution.
        head_planes: Output width of the 1x1 head convolution; None for no
                     head convolution.
        fcsize: Width of an extra hidden linear layer in the classifier
                (MobileNetV3); None for a single linear layer.
        activation: Activation of the stem, head and hidden linear layer.
        width_mult: Width multiplier (mutually exclusive with ``scalings``).
        scalings: ``(width_mult, depth_mult)`` for compound scaling.
        dropout: Dropout before the final linear layer.
        drop_path_rate: Stochastic depth rate of the deepest residual block.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        norm_layer: Registered norm type used throughout.
        **block_kwargs: Forwarded to the MBConv stage builders.

    Returns:
        ``nn.Sequential(backbone, classifier)``.
    """
    if width_mult is not None and width_mult <= 0:
        raise ValueError(f"width_mult must be > 0, got {width_mult}")
    width = width_mult if width_mult is not None else (scalings[0] if scalings else 1.0)

    inplanes = round_channels(stem_planes * width)
    layers: list[nn.Module] = [
        nn.Sequential(
            *conv_norm(3, in_channels, inplanes, activation, norm_layer=norm_layer, stride=2)
        )
    ]

    get_layers, block_repeats = mbconv_stack_builder(
        block_configs,
        inplanes,
        scalings=scalings,
        width_mult=width_mult,
        norm_layer=norm_layer,
        **block_kwargs,
    )
    dp_rates = linear_scheduler(drop_path_rate, depth=sum(block_repeats))
    cur = 0
    for stage_idx, nrepeats in enumerate(block_repeats):
        layers.append(
            nn.Sequential(
                *(
                    get_layers(stage_idx, block_idx, dp_rates[cur + block_idx])
                    for block_idx in range(nrepeats)
                )
            )
        )
        cur += nrepeats

    outplanes = round_channels(block_configs[-1].outplanes * width)
    if head_planes is not None:
        layers.append(
            nn.Sequential(
                *conv_norm(1, outplanes, head_planes, activation, norm_layer=norm_layer)
            )
        )
        outplanes = head_planes

    classifier: list[nn.Module] = [nn.AdaptiveAvgPool2d(1), nn.Flatten()]
    if fcsize is not None:
        classifier.extend([nn.Linear(outplanes, fcsize), build_activation(activation)])
        outplanes = fcsize
    classifier.extend([nn.Dropout(dropout), nn.Linear(outplanes, num_classes)])

    logger.debug(
        "invres_layout",
        extra={"stem_planes": inplanes, "block_repeats": block_repeats, "head_planes": outplanes},
    )
    return nn.Sequential(nn.Sequential(*layers), nn.Sequential(*classifier))


class MobileNetV1(ConvNet):
    """
    MobileNetV1.

    Args:
        width_mult: Channel width multiplier.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        dropout: Dropout before the final linear layer.
    """

    def __init__(
        self,
        width_mult: float = 1.0,
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        dropout: float = 0.2,
    ) -> None:
        layers = invres_model(
            MOBILENETV1_CONFIGS,
            stem_planes=32,
            activation="relu",
            width_mult=width_mult,
            dropout=dropout,
            num_classes=num_classes,
            in_channels=in_channels,
        )
        super().__init__(layers)
        self.width_mult = width_mult


class MobileNetV2(ConvNet):
    """
    MobileNetV2.

    The head convolution never shrinks below 1280 channels for width
    multipliers under 1.

    Args:
        width_mult: Channel width multiplier.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        dropout: Dropout before the final linear layer.
        drop_path_rate: Stochastic depth rate of the deepest residual block.
    """

    def __init__(
        self,
        width_mult: float = 1.0,
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        dropout: float = 0.2,
        drop_path_rate: float = 0.0,
    ) -> None:
        layers = invres_model(
            MOBILENETV2_CONFIGS,
            stem_planes=32,
            head_planes=round_channels(1280 * max(1.0, width_mult)),
            activation="relu6",
            width_mult=width_mult,
            dropout=dropout,
            drop_path_rate=drop_path_rate,
            num_classes=num_classes,
            in_channels=in_channels,
        )
        super().__init__(layers)
        self.width_mult = width_mult


class MobileNetV3(ConvNet):
    """
    MobileNetV3.

    Squeeze-and-excite widths are computed from the expanded width and gated
    with hard-sigmoid, as in the paper.

    Args:
        variant: ``"small"`` or ``"large"``.
        width_mult: Channel width multiplier.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        dropout: Dropout before the final linear layer.
        drop_path_rate: Stochastic depth rate of the deepest residual block.

    Raises:
        ValueError: If ``variant`` is unknown.
    """

    def __init__(
        self,
        variant: str = "large",
        width_mult: float = 1.0,
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        dropout: float = 0.2,
        drop_path_rate: float = 0.0,
    ) -> None:
        if variant not in MOBILENETV3_CONFIGS:
            raise ValueError(
                f"Unknown MobileNetV3 variant '{variant}'. Available: {list(MOBILENETV3_CONFIGS)}"
            )
        block_configs, fcsize = MOBILENETV3_CONFIGS[variant]
        last_planes = round_channels(block_configs[-1].outplanes * width_mult)
        layers = invres_model(
            block_configs,
            stem_planes=16,
            head_planes=6 * last_planes,
            fcsize=round_channels(fcsize * width_mult),
            activation="hardswish",
            width_mult=width_mult,
            dropout=dropout,
            drop_path_rate=drop_path_rate,
            num_classes=num_classes,
            in_channels=in_channels,
            se_from_explanes=True,
            se_activation="relu",
            se_gate_activation="hardsigmoid",
        )
        super().__init__(layers)
        self.variant = variant
        self.width_mult = width_mult
