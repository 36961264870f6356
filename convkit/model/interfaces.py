# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Common base class for catalog architectures.

Every architecture has the same top-level topology:

  Input image → backbone (stem + stages) → classifier head → logits

The layers are held as ``nn.Sequential(backbone, classifier)`` so that the
backbone can be reused as a feature extractor and the head can be replaced
for fine-tuning without knowing which family the model belongs to.
"""

import torch
import torch.nn as nn


class ConvNet(nn.Module):
    """
    A backbone followed by a classifier head.

    Contract:
        forward(x) -> logits  where x.shape == [N, C, H, W]
                              and logits.shape == [N, num_classes]

    Args:
        layers: ``nn.Sequential`` holding exactly (backbone, classifier).

    Raises:
        ValueError: If ``layers`` does not have exactly two children.
    """

    def __init__(self, layers: nn.Sequential) -> None:
        super().__init__()
        if len(layers) != 2:
            raise ValueError(
                f"Expected layers as (backbone, classifier), got {len(layers)} children"
            )
        self.layers = layers

    @property
    def backbone(self) -> nn.Module:
        """Feature extractor: stem and all stages."""
        return self.layers[0]

    @property
    def classifier(self) -> nn.Module:
        """Classification head: pooling, flattening and the output projection."""
        return self.layers[1]

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Forward pass through backbone and classifier.

        Args:
            x: Input images of shape (batch, channels, height, width).

        Returns:
            Logits of shape (batch, num_classes).
        """
        return self.layers(x)

    def count_parameters(self) -> int:
        """
        Count total trainable parameters.

        Returns:
            Integer count of all parameters with requires_grad=True.
        """
        return sum(p.numel() for p in self.parameters() if p.requires_grad)
