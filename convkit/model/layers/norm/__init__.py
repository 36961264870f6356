# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Normalization layer implementations.

Importing this package registers all built-in Norm types with the registry.
"""

import torch.nn as nn

from convkit.model.layers.norm.channel_layernorm import ChannelLayerNorm
from convkit.model.registry import register_norm

register_norm("batchnorm", nn.BatchNorm2d)
register_norm("identity", nn.Identity)

__all__ = ["ChannelLayerNorm"]
