# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Block constructors.

Importing this package registers all built-in block types with the registry:
  basic, bottleneck    ResNet residual branches
  convnext             ConvNeXt block (with its own skip connection)
  dwsep                depthwise-separable convolution (MobileNetV1)
  mbconv               inverted residual (MobileNetV2/V3, EfficientNet)
  fused_mbconv         fused inverted residual (EfficientNetV2)
"""

from convkit.model.blocks.convnext import convnext_block, mlp_block
from convkit.model.blocks.mbconv import fused_mbconv, mbconv, mbconv_stack_builder
from convkit.model.blocks.resnet import basicblock, bottleneck

__all__ = [
    "basicblock",
    "bottleneck",
    "convnext_block",
    "fused_mbconv",
    "mbconv",
    "mbconv_stack_builder",
    "mlp_block",
]
