# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ResNet (https://arxiv.org/abs/1512.03385).

Topology:
  7x7/2 conv-bn-relu → 3x3/2 max pool → 4 stages of residual blocks
  → global average pool → linear

Each residual block is ``Parallel(connection, main, skip)``. The skip path of
the first block in a stage and of the remaining blocks is chosen from the
shortcut-style table:

  A: identity   / identity
  B: projection / identity
  C: projection / projection
"""

import logging
from typing import Optional, Sequence, Union

import torch.nn as nn

from convkit.model.config import RESNET_CONFIGS, linear_scheduler
from convkit.model.interfaces import ConvNet
from convkit.model.layers.connections import (
    Connection,
    Parallel,
    add_relu,
    skip_identity,
    skip_projection,
)
from convkit.model.layers.conv import conv_norm
from convkit.model.layers.drop import DropPath
from convkit.model.registry import BlockFn, get_block

logger = logging.getLogger(__name__)

SHORTCUT_STYLES = {
    "A": (skip_identity, skip_identity),
    "B": (skip_projection, skip_identity),
    "C": (skip_projection, skip_projection),
}

ShortcutConfig = Union[str, Sequence[str]]


def resolve_shortcuts(shortcut_config: ShortcutConfig, n_stages: int) -> list[tuple]:
    """
    Expand a shortcut config into one ``(first, rest)`` skip-builder pair per stage.

    Args:
        shortcut_config: A single style applied to every stage, or one style
                         per stage.
        n_stages: Number of stages in the network.

    Raises:
        ValueError: On unknown styles or a per-stage list of the wrong length.
    """
    styles = [shortcut_config] * n_stages if isinstance(shortcut_config, str) else list(
        shortcut_config
    )
    unknown = [style for style in styles if style not in SHORTCUT_STYLES]
    if unknown:
        raise ValueError(
            f"Unrecognized shortcut_config {shortcut_config!r} "
            f"(use only {', '.join(sorted(SHORTCUT_STYLES))})"
        )
    if len(styles) != n_stages:
        raise ValueError(
            f"shortcut_config has {len(styles)} entries but the network has {n_stages} stages"
        )
    return [SHORTCUT_STYLES[style] for style in styles]


def resnet(
    block: Union[str, BlockFn],
    shortcut_config: ShortcutConfig,
    connection: Connection = add_relu,
    *,
    channel_config: Sequence[int],
    block_config: Sequence[int],
    num_classes: int = 1000,
    in_channels: int = 3,
    drop_path_rate: float = 0.0,
) -> nn.Sequential:
    """
    Build the layers of a ResNet.

    Args:
        block: Registered residual block name (``"basic"`` or ``"bottleneck"``)
               or a constructor ``(inplanes, outplanes, downsample) -> nn.Module``.
        shortcut_config: Shortcut style(s), see module docstring.
        connection: Binary function joining main and skip paths.
        channel_config: Growth of the output feature maps within a block,
                        relative to the stage's base width.
        block_config: Number of residual blocks in each stage.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        drop_path_rate: Stochastic depth rate of the deepest block; earlier
                        blocks follow a linear schedule.

    Returns:
        ``nn.Sequential(backbone, classifier)``.
    """
    block_fn = get_block(block) if isinstance(block, str) else block
    shortcuts = resolve_shortcuts(shortcut_config, len(block_config))
    dp_rates = linear_scheduler(drop_path_rate, depth=sum(block_config))
    logger.debug(
        "resnet_layout",
        extra={"block_config": list(block_config), "channel_config": list(channel_config)},
    )

    inplanes = 64
    baseplanes = 64
    layers: list[nn.Module] = [
        *conv_norm(7, in_channels, inplanes, stride=2, padding=3),
        nn.MaxPool2d(3, stride=2, padding=1),
    ]

    block_idx = 0
    for stage_idx, nrepeats in enumerate(block_config):
        outplanes = [baseplanes * c for c in channel_config]
        first_skip, rest_skip = shortcuts[stage_idx]
        for repeat in range(nrepeats):
            # Only the first block of stages after the first downsamples
            downsample = stage_idx != 0 and repeat == 0
            skip_fn = first_skip if repeat == 0 else rest_skip
            main = block_fn(inplanes, outplanes, downsample)
            if dp_rates[block_idx] > 0.0:
                main = nn.Sequential(main, DropPath(dp_rates[block_idx]))
            layers.append(
                Parallel(connection, main, skip_fn(inplanes, outplanes[-1], downsample))
            )
            inplanes = outplanes[-1]
            block_idx += 1
        baseplanes *= 2

    classifier = nn.Sequential(
        nn.AdaptiveAvgPool2d(1),
        nn.Flatten(),
        nn.Linear(inplanes, num_classes),
    )
    return nn.Sequential(nn.Sequential(*layers), classifier)


class ResNet(ConvNet):
    """
    ResNet of a standard depth.

    ResNet-18/34 use the parameter-free shortcut in the first stage and
    projections elsewhere; pass ``shortcut_config="A"`` for the published
    all-identity variant.

    Args:
        depth: One of 18, 34, 50, 101, 152.
        num_classes: Number of output classes.
        in_channels: Number of input image channels.
        drop_path_rate: Stochastic depth rate of the deepest block.
        shortcut_config: Override of the depth's default shortcut styles.

    Raises:
        ValueError: If ``depth`` is not a known ResNet depth.
    """

    def __init__(
        self,
        depth: int = 50,
        *,
        num_classes: int = 1000,
        in_channels: int = 3,
        drop_path_rate: float = 0.0,
        shortcut_config: Optional[ShortcutConfig] = None,
    ) -> None:
        if depth not in RESNET_CONFIGS:
            raise ValueError(f"Unknown ResNet depth {depth}. Available: {sorted(RESNET_CONFIGS)}")
        layout = RESNET_CONFIGS[depth]
        layers = resnet(
            layout.block,
            layout.shortcut_config if shortcut_config is None else shortcut_config,
            channel_config=layout.channel_config,
            block_config=layout.block_config,
            num_classes=num_classes,
            in_channels=in_channels,
            drop_path_rate=drop_path_rate,
        )
        super().__init__(layers)
        self.depth = depth
