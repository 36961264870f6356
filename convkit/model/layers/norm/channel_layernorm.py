# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Channel-wise LayerNorm for channels-first feature maps.

ConvNeXt normalizes over the channel axis of (N, C, H, W) tensors, which
nn.LayerNorm cannot do directly. This layer moves channels last, applies
the norm, and moves them back. Registered as "channel_layernorm".
"""

import torch
import torch.nn as nn
import torch.nn.functional as F

from convkit.model.registry import register_norm


class ChannelLayerNorm(nn.Module):
    """
    LayerNorm over the channel dimension of an (N, C, H, W) tensor.

    Args:
        num_channels: Number of channels C.
        eps: Small constant for numerical stability.
    """

    def __init__(self, num_channels: int, eps: float = 1e-6) -> None:
        super().__init__()
        self.num_channels = num_channels
        self.eps = eps
        self.weight = nn.Parameter(torch.ones(num_channels))
        self.bias = nn.Parameter(torch.zeros(num_channels))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        x = x.permute(0, 2, 3, 1)
        x = F.layer_norm(x, (self.num_channels,), self.weight, self.bias, self.eps)
        return x.permute(0, 3, 1, 2)

    def extra_repr(self) -> str:
        return f"{self.num_channels}, eps={self.eps}"


# Register with the layer registry
register_norm("channel_layernorm", ChannelLayerNorm)
