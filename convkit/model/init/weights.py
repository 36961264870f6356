# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deterministic weight initialization for convkit.

All initialization draws from a single torch.Generator seeded from the
config. Every call to init_weights produces identical parameter values given
the same seed and architecture, regardless of the global torch RNG state.

Scheme:
  Conv2d       kaiming normal, fan-out, ReLU gain; bias 0
  Linear       normal(0, init_std); bias 0
  norm layers  weight 1, bias 0
  LayerScale   left at its configured init value
"""

import math

import torch
import torch.nn as nn

from convkit.model.layers.norm import ChannelLayerNorm

_NORM_TYPES = (nn.BatchNorm2d, nn.LayerNorm, nn.GroupNorm, ChannelLayerNorm)


def init_weights(module: nn.Module, seed: int, init_std: float = 0.01) -> None:
    """
    Initialize all convolution, linear and norm parameters in a module deterministically.

    Args:
        module: The nn.Module to initialize.
        seed: Random seed for the Generator.
        init_std: Standard deviation for linear layer weights.

    Side effects:
        Modifies parameter tensors in-place.
    """
    generator = torch.Generator()
    generator.manual_seed(seed)

    with torch.no_grad():
        for layer in module.modules():
            if isinstance(layer, nn.Conv2d):
                out_channels, _, kernel_h, kernel_w = layer.weight.shape
                fan_out = out_channels * kernel_h * kernel_w
                layer.weight.normal_(0.0, math.sqrt(2.0 / fan_out), generator=generator)
                if layer.bias is not None:
                    layer.bias.zero_()
            elif isinstance(layer, nn.Linear):
                layer.weight.normal_(0.0, init_std, generator=generator)
                if layer.bias is not None:
                    layer.bias.zero_()
            elif isinstance(layer, _NORM_TYPES):
                if layer.weight is not None:
                    layer.weight.fill_(1.0)
                if layer.bias is not None:
                    layer.bias.zero_()
