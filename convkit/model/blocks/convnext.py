# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ConvNeXt block (https://arxiv.org/abs/2201.03545).

  x + DropPath(LayerScale(MLP(LayerNorm(DWConv7x7(x)))))

The normalization and MLP run channels-last, so the branch permutes
(N, C, H, W) → (N, H, W, C) after the depthwise convolution and back before
the drop path.
"""

from typing import Optional

import torch
import torch.nn as nn

from convkit.model.layers.build import build_activation
from convkit.model.layers.connections import SkipConnection
from convkit.model.layers.drop import DropPath, LayerScale
from convkit.model.registry import register_block


class Permute(nn.Module):
    """Permute tensor dimensions, e.g. between channels-first and channels-last."""

    def __init__(self, dims: tuple[int, ...]) -> None:
        super().__init__()
        self.dims = dims

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.permute(*self.dims)

    def extra_repr(self) -> str:
        return f"dims={self.dims}"


def mlp_block(
    inplanes: int,
    hidden_planes: int,
    outplanes: Optional[int] = None,
    activation: str = "gelu",
    dropout: float = 0.0,
) -> nn.Sequential:
    """Two-layer perceptron over the last dimension: Linear → act → Linear."""
    if outplanes is None:
        outplanes = inplanes
    return nn.Sequential(
        nn.Linear(inplanes, hidden_planes),
        build_activation(activation),
        nn.Dropout(dropout),
        nn.Linear(hidden_planes, outplanes),
        nn.Dropout(dropout),
    )


def convnext_block(
    planes: int,
    drop_path_rate: float = 0.0,
    layerscale_init: float = 1e-6,
) -> SkipConnection:
    """
    Build a single ConvNeXt block, skip connection included.

    Args:
        planes: Number of input (and output) channels.
        drop_path_rate: Stochastic depth rate of this block.
        layerscale_init: Initial LayerScale value.
    """
    branch = nn.Sequential(
        nn.Conv2d(planes, planes, 7, padding=3, groups=planes),
        Permute((0, 2, 3, 1)),
        nn.LayerNorm(planes, eps=1e-6),
        mlp_block(planes, 4 * planes),
        LayerScale(planes, layerscale_init),
        Permute((0, 3, 1, 2)),
        DropPath(drop_path_rate),
    )
    return SkipConnection(branch, torch.add)


# Register with the block registry
register_block("convnext", convnext_block)
