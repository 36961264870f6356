# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model configuration for convkit.

Holds the static architecture tables (ResNet, ConvNeXt, MobileNet,
EfficientNet), the channel / schedule arithmetic they rely on, and the
lightweight ConvNetConfig object passed to the factory.

Every architecture in the catalog is described by data only. The builders in
resnet.py, convnext.py, mobilenet.py and efficientnet.py iterate these tables
and never hardcode a stage layout themselves.

ConvNetConfig is a plain data object (not Pydantic) because it travels into
module construction and needs to be lightweight. Validation of user input
happens in config/schema.py.
"""

from typing import NamedTuple, Optional, Sequence, Union


def round_channels(
    channels: float,
    divisor: int = 8,
    min_value: Optional[int] = None,
) -> int:
    """
    Round a channel count to the nearest multiple of ``divisor``.

    Used to keep convolution widths hardware friendly when a width multiplier
    is applied. The result never drops below ``min_value`` and never rounds
    down by more than 10% of the requested value; if it would, one extra
    ``divisor`` is added back.

    Args:
        channels: Requested (possibly fractional) number of channels.
        divisor: The result is a multiple of this value.
        min_value: Lower bound for the result. Defaults to ``divisor``.

    Returns:
        The rounded channel count.

    Raises:
        ValueError: If ``divisor`` is smaller than 1.
    """
    if divisor < 1:
        raise ValueError(f"divisor must be >= 1, got {divisor}")
    if min_value is None:
        min_value = divisor
    new_channels = max(min_value, int(channels + divisor / 2) // divisor * divisor)
    if new_channels < 0.9 * channels:
        new_channels += divisor
    return int(new_channels)


def linear_scheduler(
    drop_prob: float = 0.0,
    depth: int = 1,
    start_value: float = 0.0,
) -> list[float]:
    """
    Linearly spaced per-block drop probabilities for stochastic depth.

    The first block gets ``start_value`` and the last block gets
    ``drop_prob``; blocks in between are interpolated.

    Args:
        drop_prob: Drop probability of the deepest block.
        depth: Total number of blocks the schedule covers.
        start_value: Drop probability of the shallowest block.

    Returns:
        List of ``depth`` probabilities.

    Raises:
        ValueError: If ``depth`` is negative or a probability lies outside [0, 1].
    """
    if depth < 0:
        raise ValueError(f"depth must be >= 0, got {depth}")
    for name, value in (("drop_prob", drop_prob), ("start_value", start_value)):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be in [0, 1], got {value}")
    if depth == 0:
        return []
    if depth == 1:
        return [start_value]
    step = (drop_prob - start_value) / (depth - 1)
    rates = [start_value + step * i for i in range(depth)]
    rates[-1] = drop_prob
    return rates


# ── Stage descriptors ──────────────────────────────────────────────────────


class ResNetLayout(NamedTuple):
    """Channel growth, blocks per stage, shortcut styles and block type of a ResNet."""

    channel_config: tuple[int, ...]
    block_config: tuple[int, ...]
    shortcut_config: tuple[str, ...]
    block: str


class DWSepStage(NamedTuple):
    """One stage of depthwise-separable convolutions (MobileNetV1)."""

    block: str
    kernel_size: int
    outplanes: int
    stride: int
    repeats: int
    activation: str


class MBConvStage(NamedTuple):
    """
    One stage of inverted-residual (MBConv) blocks.

    ``reduction`` is the squeeze-and-excite reduction factor, or None for
    stages without squeeze-and-excite.
    """

    block: str
    kernel_size: int
    outplanes: int
    expansion: float
    stride: int
    repeats: int
    reduction: Optional[int]
    activation: str


class FusedMBConvStage(NamedTuple):
    """One stage of fused inverted-residual blocks (EfficientNetV2)."""

    block: str
    kernel_size: int
    outplanes: int
    expansion: float
    stride: int
    repeats: int
    activation: str


StageConfig = Union[DWSepStage, MBConvStage, FusedMBConvStage]


# ── ResNet ─────────────────────────────────────────────────────────────────

# ResNet-18/34 use the parameter-free shortcut in the first stage and
# projections elsewhere (torchvision layout). The published models used "A"
# for all four stages; pass shortcut_config="A" to get that variant.
RESNET_CONFIGS: dict[int, ResNetLayout] = {
    18: ResNetLayout((1, 1), (2, 2, 2, 2), ("A", "B", "B", "B"), "basic"),
    34: ResNetLayout((1, 1), (3, 4, 6, 3), ("A", "B", "B", "B"), "basic"),
    50: ResNetLayout((1, 1, 4), (3, 4, 6, 3), ("B", "B", "B", "B"), "bottleneck"),
    101: ResNetLayout((1, 1, 4), (3, 4, 23, 3), ("B", "B", "B", "B"), "bottleneck"),
    152: ResNetLayout((1, 1, 4), (3, 8, 36, 3), ("B", "B", "B", "B"), "bottleneck"),
}


# ── ConvNeXt ───────────────────────────────────────────────────────────────

CONVNEXT_CONFIGS: dict[str, tuple[tuple[int, ...], tuple[int, ...]]] = {
    "tiny": ((3, 3, 9, 3), (96, 192, 384, 768)),
    "small": ((3, 3, 27, 3), (96, 192, 384, 768)),
    "base": ((3, 3, 27, 3), (128, 256, 512, 1024)),
    "large": ((3, 3, 27, 3), (192, 384, 768, 1536)),
    "xlarge": ((3, 3, 27, 3), (256, 512, 1024, 2048)),
}


# ── MobileNet ──────────────────────────────────────────────────────────────

MOBILENETV1_CONFIGS: list[DWSepStage] = [
    DWSepStage("dwsep", 3, 64, 1, 1, "relu"),
    DWSepStage("dwsep", 3, 128, 2, 2, "relu"),
    DWSepStage("dwsep", 3, 256, 2, 2, "relu"),
    DWSepStage("dwsep", 3, 512, 2, 6, "relu"),
    DWSepStage("dwsep", 3, 1024, 2, 2, "relu"),
]

MOBILENETV2_CONFIGS: list[MBConvStage] = [
    MBConvStage("mbconv", 3, 16, 1, 1, 1, None, "relu6"),
    MBConvStage("mbconv", 3, 24, 6, 2, 2, None, "relu6"),
    MBConvStage("mbconv", 3, 32, 6, 2, 3, None, "relu6"),
    MBConvStage("mbconv", 3, 64, 6, 2, 4, None, "relu6"),
    MBConvStage("mbconv", 3, 96, 6, 1, 3, None, "relu6"),
    MBConvStage("mbconv", 3, 160, 6, 2, 3, None, "relu6"),
    MBConvStage("mbconv", 3, 320, 6, 1, 1, None, "relu6"),
]

# Expansion ratios reproduce the explicit expanded widths of the paper
# (e.g. 2.3 * 80 rounds to 184, 3.67 * 24 rounds to 88).
MOBILENETV3_CONFIGS: dict[str, tuple[list[MBConvStage], int]] = {
    "small": (
        [
            MBConvStage("mbconv", 3, 16, 1, 2, 1, 4, "relu"),
            MBConvStage("mbconv", 3, 24, 4.5, 2, 1, None, "relu"),
            MBConvStage("mbconv", 3, 24, 3.67, 1, 1, None, "relu"),
            MBConvStage("mbconv", 5, 40, 4, 2, 1, 4, "hardswish"),
            MBConvStage("mbconv", 5, 40, 6, 1, 2, 4, "hardswish"),
            MBConvStage("mbconv", 5, 48, 3, 1, 2, 4, "hardswish"),
            MBConvStage("mbconv", 5, 96, 6, 2, 3, 4, "hardswish"),
        ],
        1024,
    ),
    "large": (
        [
            MBConvStage("mbconv", 3, 16, 1, 1, 1, None, "relu"),
            MBConvStage("mbconv", 3, 24, 4, 2, 1, None, "relu"),
            MBConvStage("mbconv", 3, 24, 3, 1, 1, None, "relu"),
            MBConvStage("mbconv", 5, 40, 3, 2, 1, 4, "relu"),
            MBConvStage("mbconv", 5, 40, 3, 1, 2, 4, "relu"),
            MBConvStage("mbconv", 3, 80, 6, 2, 1, None, "hardswish"),
            MBConvStage("mbconv", 3, 80, 2.5, 1, 1, None, "hardswish"),
            MBConvStage("mbconv", 3, 80, 2.3, 1, 2, None, "hardswish"),
            MBConvStage("mbconv", 3, 112, 6, 1, 2, 4, "hardswish"),
            MBConvStage("mbconv", 5, 160, 6, 2, 3, 4, "hardswish"),
        ],
        1280,
    ),
}


# ── EfficientNet ───────────────────────────────────────────────────────────

EFFICIENTNET_BLOCK_CONFIGS: list[MBConvStage] = [
    MBConvStage("mbconv", 3, 16, 1, 1, 1, 4, "swish"),
    MBConvStage("mbconv", 3, 24, 6, 2, 2, 4, "swish"),
    MBConvStage("mbconv", 5, 40, 6, 2, 2, 4, "swish"),
    MBConvStage("mbconv", 3, 80, 6, 2, 3, 4, "swish"),
    MBConvStage("mbconv", 5, 112, 6, 1, 3, 4, "swish"),
    MBConvStage("mbconv", 5, 192, 6, 2, 4, 4, "swish"),
    MBConvStage("mbconv", 3, 320, 6, 1, 1, 4, "swish"),
]

# variant -> ((width_mult, depth_mult), dropout)
EFFICIENTNET_GLOBAL_CONFIGS: dict[str, tuple[tuple[float, float], float]] = {
    "b0": ((1.0, 1.0), 0.2),
    "b1": ((1.0, 1.1), 0.2),
    "b2": ((1.1, 1.2), 0.3),
    "b3": ((1.2, 1.4), 0.3),
    "b4": ((1.4, 1.8), 0.4),
    "b5": ((1.6, 2.2), 0.4),
    "b6": ((1.8, 2.6), 0.5),
    "b7": ((2.0, 3.1), 0.5),
}

# variant -> (stages, dropout)
EFFICIENTNETV2_CONFIGS: dict[str, tuple[list[StageConfig], float]] = {
    "small": (
        [
            FusedMBConvStage("fused_mbconv", 3, 24, 1, 1, 2, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 48, 4, 2, 4, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 64, 4, 2, 4, "swish"),
            MBConvStage("mbconv", 3, 128, 4, 2, 6, 4, "swish"),
            MBConvStage("mbconv", 3, 160, 6, 1, 9, 4, "swish"),
            MBConvStage("mbconv", 3, 256, 6, 2, 15, 4, "swish"),
        ],
        0.2,
    ),
    "medium": (
        [
            FusedMBConvStage("fused_mbconv", 3, 24, 1, 1, 3, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 48, 4, 2, 5, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 80, 4, 2, 5, "swish"),
            MBConvStage("mbconv", 3, 160, 4, 2, 7, 4, "swish"),
            MBConvStage("mbconv", 3, 176, 6, 1, 14, 4, "swish"),
            MBConvStage("mbconv", 3, 304, 6, 2, 18, 4, "swish"),
            MBConvStage("mbconv", 3, 512, 6, 1, 5, 4, "swish"),
        ],
        0.3,
    ),
    "large": (
        [
            FusedMBConvStage("fused_mbconv", 3, 32, 1, 1, 4, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 64, 4, 2, 7, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 96, 4, 2, 7, "swish"),
            MBConvStage("mbconv", 3, 192, 4, 2, 10, 4, "swish"),
            MBConvStage("mbconv", 3, 224, 6, 1, 19, 4, "swish"),
            MBConvStage("mbconv", 3, 384, 6, 2, 25, 4, "swish"),
            MBConvStage("mbconv", 3, 640, 6, 1, 7, 4, "swish"),
        ],
        0.4,
    ),
    "xlarge": (
        [
            FusedMBConvStage("fused_mbconv", 3, 32, 1, 1, 4, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 64, 4, 2, 8, "swish"),
            FusedMBConvStage("fused_mbconv", 3, 96, 4, 2, 8, "swish"),
            MBConvStage("mbconv", 3, 192, 4, 2, 16, 4, "swish"),
            MBConvStage("mbconv", 3, 256, 6, 1, 24, 4, "swish"),
            MBConvStage("mbconv", 3, 512, 6, 2, 32, 4, "swish"),
            MBConvStage("mbconv", 3, 640, 6, 1, 8, 4, "swish"),
        ],
        0.4,
    ),
}


class ConvNetConfig:
    """
    Build options for a catalog architecture.

    Only ``architecture`` is required. Options left as None fall back to the
    architecture's own defaults; options an architecture does not support
    must stay None (the factory rejects them otherwise).

    Args:
        architecture: Preset name, e.g. ``"resnet50"`` or ``"convnext_tiny"``.
        num_classes: Width of the classifier output.
        in_channels: Number of input image channels.
        drop_path_rate: Stochastic depth rate of the deepest block.
        dropout: Dropout before the final linear layer.
        width_mult: Channel width multiplier (MobileNet family).
        layerscale_init: Initial LayerScale value (ConvNeXt).
        shortcut_config: ResNet shortcut style(s), "A", "B" or "C".
        init_std: Standard deviation for linear layer initialization.
        seed: Random seed for deterministic initialization.
    """

    __slots__ = (
        "architecture",
        "num_classes",
        "in_channels",
        "drop_path_rate",
        "dropout",
        "width_mult",
        "layerscale_init",
        "shortcut_config",
        "init_std",
        "seed",
    )

    def __init__(
        self,
        architecture: str,
        num_classes: int = 1000,
        in_channels: int = 3,
        drop_path_rate: Optional[float] = None,
        dropout: Optional[float] = None,
        width_mult: Optional[float] = None,
        layerscale_init: Optional[float] = None,
        shortcut_config: Optional[Union[str, Sequence[str]]] = None,
        init_std: float = 0.01,
        seed: int = 42,
    ) -> None:
        self.architecture = architecture
        self.num_classes = num_classes
        self.in_channels = in_channels
        self.drop_path_rate = drop_path_rate
        self.dropout = dropout
        self.width_mult = width_mult
        self.layerscale_init = layerscale_init
        self.shortcut_config = shortcut_config
        self.init_std = init_std
        self.seed = seed

    @property
    def options(self) -> dict[str, object]:
        """Architecture-specific options that were explicitly set."""
        names = (
            "drop_path_rate",
            "dropout",
            "width_mult",
            "layerscale_init",
            "shortcut_config",
        )
        return {
            name: getattr(self, name) for name in names if getattr(self, name) is not None
        }
