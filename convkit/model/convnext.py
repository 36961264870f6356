# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ConvNeXt (https://arxiv.org/abs/2201.03545).

Topology:
  4x4/4 patchify conv + channel LayerNorm
  → [stage 1] → (channel LayerNorm + 2x2/2 conv) → [stage 2] → ... → [stage n]
  → global average pool → LayerNorm → linear

Drop-path rates grow linearly over all blocks of all stages.
"""

from typing import Sequence

import torch.nn as nn

from convkit.model.blocks.convnext import convnext_block
from convkit.model.config import CONVNEXT_CONFIGS, linear_scheduler
from convkit.model.interfaces import ConvNet
from convkit.model.layers.conv import conv_norm


def convnext(
    depths: Sequence[int],
    planes: Sequence[int],
    *,
    drop_path_rate: float = 0.0,
    layerscale_init: float = 1e-6,
    in_channels: int = 3,
    num_classes: int = 1000,
) -> nn.Sequential:
    """
    Build the layers of a ConvNeXt model.

    Args:
        depths: Number of blocks in each stage.
        planes: Number of channels in each stage.
        drop_path_rate: Stochastic depth rate of the deepest block.
        layerscale_init: Initial LayerScale value
                         (https://arxiv.org/abs/2103.17239).
        in_channels: Number of input image channels.
        num_classes: Number of output classes.

    Returns:
        ``nn.Sequential(backbone, classifier)``.

    Raises:
        ValueError: If ``depths`` and ``planes`` differ in length.
    """
    if len(depths) != len(planes):
        raise ValueError(
            f"`planes` should have exactly one value for each stage "
            f"(got {len(planes)} planes for {len(depths)} stages)"
        )

    downsample_layers = [
        nn.Sequential(
            *conv_norm(
                4,
                in_channels,
                planes[0],
                "identity",
                norm_layer="channel_layernorm",
                stride=4,
                padding=0,
                bias=True,
            )
        )
    ]
    for i in range(len(depths) - 1):
        downsample_layers.append(
            nn.Sequential(
                *conv_norm(
                    2,
                    planes[i],
                    planes[i + 1],
                    "identity",
                    norm_layer="channel_layernorm",
                    revnorm=True,
                    stride=2,
                    padding=0,
                )
            )
        )

    dp_rates = linear_scheduler(drop_path_rate, depth=sum(depths))
    backbone: list[nn.Module] = []
    cur = 0
    for i, depth in enumerate(depths):
        backbone.append(downsample_layers[i])
        backbone.extend(
            convnext_block(planes[i], dp_rates[cur + j], layerscale_init) for j in range(depth)
        )
        cur += depth

    classifier = nn.Sequential(
        nn.AdaptiveAvgPool2d(1),
        nn.Flatten(),
        nn.LayerNorm(planes[-1]),
        nn.Linear(planes[-1], num_classes),
    )
    return nn.Sequential(nn.Sequential(*backbone), classifier)


class ConvNeXt(ConvNet):
    """
    ConvNeXt of a standard size.

    Args:
        variant: One of ``tiny``, ``small``, ``base``, ``large``, ``xlarge``.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        drop_path_rate: Stochastic depth rate of the deepest block.
        layerscale_init: Initial LayerScale value.

    Raises:
        ValueError: If ``variant`` is unknown.
    """

    def __init__(
        self,
        variant: str = "tiny",
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        drop_path_rate: float = 0.0,
        layerscale_init: float = 1e-6,
    ) -> None:
        if variant not in CONVNEXT_CONFIGS:
            raise ValueError(
                f"Unknown ConvNeXt variant '{variant}'. Available: {list(CONVNEXT_CONFIGS)}"
            )
        depths, planes = CONVNEXT_CONFIGS[variant]
        layers = convnext(
            depths,
            planes,
            drop_path_rate=drop_path_rate,
            layerscale_init=layerscale_init,
            in_channels=in_channels,
            num_classes=num_classes,
        )
        super().__init__(layers)
        self.variant = variant
