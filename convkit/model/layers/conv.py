# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Convolution + normalization + activation helpers.

Every convolutional block in the catalog is a chain of these units. The
helpers return plain lists of modules so callers can splice them into a
larger nn.Sequential.
"""

from typing import Optional

import torch.nn as nn

from convkit.model.layers.build import build_activation, build_norm


def same_padding(kernel_size: int) -> int:
    """Padding that keeps spatial size for odd kernels at stride 1."""
    return (kernel_size - 1) // 2


def conv_norm(
    kernel_size: int,
    in_channels: int,
    out_channels: int,
    activation: str = "relu",
    *,
    norm_layer: str = "batchnorm",
    revnorm: bool = False,
    stride: int = 1,
    padding: Optional[int] = None,
    groups: int = 1,
    bias: Optional[bool] = None,
    eps: Optional[float] = None,
) -> list[nn.Module]:
    """
    Build a convolution followed by normalization and activation.

    With ``revnorm`` the normalization comes first and runs over the input
    channels: norm → conv → activation. This is the ConvNeXt downsampling
    layout.

    Args:
        kernel_size: Square kernel size.
        in_channels: Input feature maps.
        out_channels: Output feature maps.
        activation: Registered activation name applied last.
        norm_layer: Registered norm name.
        revnorm: Normalize before the convolution instead of after.
        stride: Convolution stride.
        padding: Convolution padding. Defaults to "same" padding.
        groups: Convolution groups (``in_channels`` for depthwise).
        bias: Whether the convolution has a bias. Defaults to no bias when a
              norm directly follows the convolution.
        eps: Optional epsilon override for the norm.

    Returns:
        List of modules in application order.
    """
    if padding is None:
        padding = same_padding(kernel_size)
    if bias is None:
        bias = revnorm or norm_layer == "identity"

    conv = nn.Conv2d(
        in_channels,
        out_channels,
        kernel_size,
        stride=stride,
        padding=padding,
        groups=groups,
        bias=bias,
    )
    if revnorm:
        layers = [build_norm(norm_layer, in_channels, eps=eps), conv]
    else:
        layers = [conv, build_norm(norm_layer, out_channels, eps=eps)]
    layers.append(build_activation(activation))
    return layers


def dwsep_conv_norm(
    kernel_size: int,
    in_channels: int,
    out_channels: int,
    activation: str = "relu",
    *,
    norm_layer: str = "batchnorm",
    stride: int = 1,
    **kwargs: object,
) -> nn.Sequential:
    """
    Depthwise-separable convolution: depthwise kxk, then pointwise 1x1.

    Both convolutions are followed by ``norm_layer`` and ``activation``.
    Extra keyword arguments (e.g. ``drop_path_rate`` from a stage builder)
    are ignored since the block has no residual path.
    """
    return nn.Sequential(
        *conv_norm(
            kernel_size,
            in_channels,
            in_channels,
            activation,
            norm_layer=norm_layer,
            stride=stride,
            groups=in_channels,
        ),
        *conv_norm(1, in_channels, out_channels, activation, norm_layer=norm_layer),
    )
