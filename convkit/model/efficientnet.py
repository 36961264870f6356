# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
EfficientNet (https://arxiv.org/abs/1905.11946) and
EfficientNetV2 (https://arxiv.org/abs/2104.00298).

EfficientNet B0–B7 share one stage table and differ only by compound
scaling: widths are multiplied by ``width_mult`` (rounded to 8) and stage
repeat counts by ``depth_mult`` (rounded up). EfficientNetV2 variants each
have their own table mixing fused and regular MBConv stages and are never
scaled.
"""

from typing import Optional

from convkit.model.config import (
    EFFICIENTNET_BLOCK_CONFIGS,
    EFFICIENTNET_GLOBAL_CONFIGS,
    EFFICIENTNETV2_CONFIGS,
    round_channels,
)
from convkit.model.interfaces import ConvNet
from convkit.model.mobilenet import invres_model

# Squeeze-excite in EfficientNet uses swish + sigmoid and is sized from the
# block input width.
_SE_KWARGS = {
    "se_from_explanes": False,
    "se_activation": "swish",
    "se_gate_activation": "sigmoid",
}


class EfficientNet(ConvNet):
    """
    EfficientNet B0–B7.

    Args:
        variant: One of ``b0`` … ``b7``.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        dropout: Dropout before the final linear layer; defaults to the
                 variant's published value.
        drop_path_rate: Stochastic depth rate of the deepest residual block.

    Raises:
        ValueError: If ``variant`` is unknown.
    """

    def __init__(
        self,
        variant: str = "b0",
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        dropout: Optional[float] = None,
        drop_path_rate: float = 0.2,
    ) -> None:
        if variant not in EFFICIENTNET_GLOBAL_CONFIGS:
            raise ValueError(
                f"Unknown EfficientNet variant '{variant}'. "
                f"Available: {list(EFFICIENTNET_GLOBAL_CONFIGS)}"
            )
        scalings, default_dropout = EFFICIENTNET_GLOBAL_CONFIGS[variant]
        last_planes = round_channels(EFFICIENTNET_BLOCK_CONFIGS[-1].outplanes * scalings[0])
        layers = invres_model(
            EFFICIENTNET_BLOCK_CONFIGS,
            stem_planes=32,
            head_planes=4 * last_planes,
            activation="swish",
            scalings=scalings,
            dropout=default_dropout if dropout is None else dropout,
            drop_path_rate=drop_path_rate,
            num_classes=num_classes,
            in_channels=in_channels,
            **_SE_KWARGS,
        )
        super().__init__(layers)
        self.variant = variant


class EfficientNetV2(ConvNet):
    """
    EfficientNetV2 small / medium / large / xlarge.

    Args:
        variant: One of ``small``, ``medium``, ``large``, ``xlarge``.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        dropout: Dropout before the final linear layer; defaults to the
                 variant's published value.
        drop_path_rate: Stochastic depth rate of the deepest residual block.

    Raises:
        ValueError: If ``variant`` is unknown.
    """

    def __init__(
        self,
        variant: str = "small",
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        dropout: Optional[float] = None,
        drop_path_rate: float = 0.2,
    ) -> None:
        if variant not in EFFICIENTNETV2_CONFIGS:
            raise ValueError(
                f"Unknown EfficientNetV2 variant '{variant}'. "
                f"Available: {list(EFFICIENTNETV2_CONFIGS)}"
            )
        block_configs, default_dropout = EFFICIENTNETV2_CONFIGS[variant]
        layers = invres_model(
            block_configs,
            stem_planes=block_configs[0].outplanes,
            head_planes=1280,
            activation="swish",
            scalings=(1, 1),
            dropout=default_dropout if dropout is None else dropout,
            drop_path_rate=drop_path_rate,
            num_classes=num_classes,
            in_channels=in_channels,
            **_SE_KWARGS,
        )
        super().__init__(layers)
        self.variant = variant
