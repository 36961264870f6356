# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Squeeze-and-excitation channel attention.

  gate = gate_act(conv(act(norm(conv(avgpool(x))))))
  y    = x * gate

Used by the MobileNetV3 and EfficientNet inverted-residual blocks.
References: SE-Nets (https://arxiv.org/abs/1709.01507) and
CenterMask for the effective variant (https://arxiv.org/abs/1911.06667).
"""

from typing import Optional

import torch
import torch.nn as nn

from convkit.model.config import round_channels
from convkit.model.layers.build import build_activation, build_norm


class SqueezeExcite(nn.Module):
    """
    Squeeze-and-excitation layer.

    Args:
        inplanes: Number of input feature maps.
        reduction: Reduction factor for the hidden width.
        rd_divisor: The hidden width is rounded to a multiple of this.
        activation: Activation after the squeeze convolution.
        gate_activation: Activation producing the channel gate.
        norm_layer: Norm after each convolution ("identity" for none).
        rd_planes: Explicit hidden width; overrides ``reduction``.

    Raises:
        ValueError: If the hidden width is smaller than 1.
    """

    def __init__(
        self,
        inplanes: int,
        reduction: int = 16,
        rd_divisor: int = 8,
        activation: str = "relu",
        gate_activation: str = "sigmoid",
        norm_layer: str = "identity",
        rd_planes: Optional[int] = None,
    ) -> None:
        super().__init__()
        if rd_planes is None:
            rd_planes = round_channels(inplanes // reduction, rd_divisor, 0)
        if rd_planes < 1:
            raise ValueError(f"Squeeze-excite hidden width must be >= 1, got {rd_planes}")
        self.rd_planes = rd_planes

        self.gate = nn.Sequential(
            nn.AdaptiveAvgPool2d(1),
            nn.Conv2d(inplanes, rd_planes, 1),
            build_norm(norm_layer, rd_planes),
            build_activation(activation),
            nn.Conv2d(rd_planes, inplanes, 1),
            build_norm(norm_layer, inplanes),
            build_activation(gate_activation),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x * self.gate(x)


class EffectiveSqueezeExcite(nn.Module):
    """
    Single-convolution squeeze-and-excitation without channel reduction.

    The gate defaults to hard-sigmoid to match the MobileNetV3 blocks it is
    usually paired with. The sigmoid-gated form from the CenterMask paper is
    ``EffectiveSqueezeExcite(planes, gate_activation="sigmoid")``.
    """

    def __init__(self, inplanes: int, gate_activation: str = "hardsigmoid") -> None:
        super().__init__()
        self.gate = nn.Sequential(
            nn.AdaptiveAvgPool2d(1),
            nn.Conv2d(inplanes, inplanes, 1),
            build_activation(gate_activation),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x * self.gate(x)
