# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Registry-backed constructors for norm and activation layers.

Block constructors call these instead of naming torch classes directly, so a
layer type can be swapped by config string alone. This module depends only
on the registry, which lets block modules import it while the registry is
still registering builtins.
"""

from typing import Optional

import torch.nn as nn

from convkit.model.registry import get_activation, get_norm


def build_norm(name: str, num_channels: int, eps: Optional[float] = None) -> nn.Module:
    """
    Build a normalization layer from its registered name.

    Args:
        name: Registered norm type (e.g. ``"batchnorm"``).
        num_channels: Number of channels to normalize.
        eps: Optional epsilon override; the class default is used otherwise.

    Returns:
        An initialized normalization module.
    """
    norm_cls = get_norm(name)
    if eps is None:
        return norm_cls(num_channels)
    return norm_cls(num_channels, eps=eps)


def build_activation(name: str) -> nn.Module:
    """Build an activation layer from its registered name."""
    return get_activation(name)()
