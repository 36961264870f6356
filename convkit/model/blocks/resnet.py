# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ResNet residual branches (https://arxiv.org/abs/1512.03385).

Both constructors return only the main branch; the skip path and the join
are attached by ``convkit.model.resnet.resnet``. The last norm of each branch
has no activation because the join (``add_relu``) applies it after the sum.
"""

from typing import Sequence

import torch.nn as nn

from convkit.model.layers.conv import conv_norm
from convkit.model.registry import register_block


def _check_planes(outplanes: Sequence[int], expected: int, block: str) -> None:
    if len(outplanes) != expected:
        raise ValueError(
            f"{block} block needs {expected} output plane counts, got {len(outplanes)}"
        )


def basicblock(
    inplanes: int,
    outplanes: Sequence[int],
    downsample: bool = False,
) -> nn.Sequential:
    """
    Two 3x3 convolutions, the first strided when downsampling.

    Args:
        inplanes: Number of input feature maps.
        outplanes: Output feature maps of each of the two convolutions.
        downsample: Halve the spatial resolution.
    """
    _check_planes(outplanes, 2, "basic")
    stride = 2 if downsample else 1
    return nn.Sequential(
        *conv_norm(3, inplanes, outplanes[0], stride=stride, padding=1),
        *conv_norm(3, outplanes[0], outplanes[1], "identity", padding=1),
    )


def bottleneck(
    inplanes: int,
    outplanes: Sequence[int],
    downsample: bool = False,
) -> nn.Sequential:
    """
    1x1 reduce, 3x3 (strided when downsampling), 1x1 expand.

    The stride sits on the 3x3 convolution (the "v1.5" placement).

    Args:
        inplanes: Number of input feature maps.
        outplanes: Output feature maps of each of the three convolutions.
        downsample: Halve the spatial resolution.
    """
    _check_planes(outplanes, 3, "bottleneck")
    stride = 2 if downsample else 1
    return nn.Sequential(
        *conv_norm(1, inplanes, outplanes[0]),
        *conv_norm(3, outplanes[0], outplanes[1], stride=stride, padding=1),
        *conv_norm(1, outplanes[1], outplanes[2], "identity"),
    )


# Register with the block registry
register_block("basic", basicblock)
register_block("bottleneck", bottleneck)
