# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Regularization layers: stochastic depth (DropPath) and LayerScale.
"""

import torch
import torch.nn as nn


def drop_path(x: torch.Tensor, p: float = 0.0, training: bool = False) -> torch.Tensor:
    """
    Zero whole samples of a residual branch with probability ``p``.

    Surviving samples are scaled by ``1 / (1 - p)`` so the expected value is
    unchanged. Outside training, or with ``p == 0``, the input is returned
    unchanged.
    """
    if p == 0.0 or not training:
        return x
    if p == 1.0:
        return torch.zeros_like(x)
    keep_prob = 1.0 - p
    # One Bernoulli draw per sample, broadcast over all other dims
    shape = (x.shape[0],) + (1,) * (x.ndim - 1)
    mask = x.new_empty(shape).bernoulli_(keep_prob)
    return x * mask / keep_prob


class DropPath(nn.Module):
    """
    Stochastic depth applied per sample.

    Args:
        p: Probability of dropping the branch for a given sample.

    Raises:
        ValueError: If ``p`` is outside [0, 1].
    """

    def __init__(self, p: float = 0.0) -> None:
        super().__init__()
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"DropPath probability must be in [0, 1], got {p}")
        self.p = p

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return drop_path(x, self.p, self.training)

    def extra_repr(self) -> str:
        return f"p={self.p}"


class LayerScale(nn.Module):
    """
    Learnable per-channel scaling of a residual branch.

    Operates on channels-last tensors (..., C).

    Args:
        planes: Number of channels C.
        init_value: Initial value of every scale entry.
    """

    def __init__(self, planes: int, init_value: float = 1e-6) -> None:
        super().__init__()
        self.init_value = init_value
        self.gamma = nn.Parameter(torch.full((planes,), init_value))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x * self.gamma
