# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Skip connections and branch combinators.

A residual block is expressed as two branches joined by a binary
``connection`` function:

  SkipConnection(layers, connection)  → connection(layers(x), x)
  Parallel(connection, main, skip)    → connection(main(x), skip(x))

The skip branch of a ResNet block is either parameter-free
(``skip_identity``, shortcut style "A") or a learned 1x1 projection
(``skip_projection``, styles "B" and "C").
"""

from typing import Callable

import torch
import torch.nn as nn
import torch.nn.functional as F

Connection = Callable[[torch.Tensor, torch.Tensor], torch.Tensor]


def add_relu(x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
    """Residual join used by ResNet: relu(x + y)."""
    return F.relu(x + y)


class SkipConnection(nn.Module):
    """
    Combine a branch with its own input: ``connection(layers(x), x)``.

    Args:
        layers: The residual branch.
        connection: Binary function joining branch output and input
                    (``torch.add`` for residuals, ``torch.mul`` for gating).
    """

    def __init__(self, layers: nn.Module, connection: Connection = torch.add) -> None:
        super().__init__()
        self.layers = layers
        self.connection = connection

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.connection(self.layers(x), x)

    def extra_repr(self) -> str:
        return f"connection={getattr(self.connection, '__name__', repr(self.connection))}"


class Parallel(nn.Module):
    """
    Apply every branch to the same input and fold the results with ``connection``.

    Args:
        connection: Binary function used to combine branch outputs left to right.
        branches: Two or more branches.

    Raises:
        ValueError: If fewer than two branches are given.
    """

    def __init__(self, connection: Connection, *branches: nn.Module) -> None:
        super().__init__()
        if len(branches) < 2:
            raise ValueError(f"Parallel needs at least 2 branches, got {len(branches)}")
        self.connection = connection
        self.branches = nn.ModuleList(branches)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        out = self.branches[0](x)
        for branch in self.branches[1:]:
            out = self.connection(out, branch(x))
        return out

    def extra_repr(self) -> str:
        return f"connection={getattr(self.connection, '__name__', repr(self.connection))}"


class IdentityShortcut(nn.Module):
    """
    Parameter-free shortcut ("option A").

    Subsamples spatially by ``stride`` and zero-pads the channel dimension
    from ``inplanes`` up to ``outplanes``.
    """

    def __init__(self, inplanes: int, outplanes: int, stride: int = 1) -> None:
        super().__init__()
        self.inplanes = inplanes
        self.outplanes = outplanes
        self.stride = stride

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        if self.stride > 1:
            x = x[:, :, :: self.stride, :: self.stride]
        extra = self.outplanes - self.inplanes
        if extra > 0:
            # pad order is (W_left, W_right, H_top, H_bottom, C_front, C_back)
            x = F.pad(x, (0, 0, 0, 0, 0, extra))
        return x

    def extra_repr(self) -> str:
        return f"{self.inplanes}, {self.outplanes}, stride={self.stride}"


def skip_identity(inplanes: int, outplanes: int, downsample: bool = False) -> nn.Module:
    """
    Parameter-free skip path for a residual block.

    Returns ``nn.Identity`` when shapes already match, otherwise an
    ``IdentityShortcut`` that strides and zero-pads.

    Raises:
        ValueError: If ``outplanes < inplanes`` (channels cannot be dropped
                    without parameters).
    """
    if outplanes < inplanes:
        raise ValueError(
            f"Identity shortcut cannot reduce channels ({inplanes} -> {outplanes}); "
            "use a projection shortcut instead"
        )
    if outplanes == inplanes and not downsample:
        return nn.Identity()
    return IdentityShortcut(inplanes, outplanes, stride=2 if downsample else 1)


def skip_projection(inplanes: int, outplanes: int, downsample: bool = False) -> nn.Module:
    """Learned skip path: 1x1 convolution (strided when downsampling) + batch norm."""
    return nn.Sequential(
        nn.Conv2d(inplanes, outplanes, 1, stride=2 if downsample else 1, bias=False),
        nn.BatchNorm2d(outplanes),
    )
