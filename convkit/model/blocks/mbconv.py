# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Inverted-residual blocks and the stage builders that stack them.

Blocks:
  mbconv        expand 1x1 → depthwise kxk → [squeeze-excite] → project 1x1
                (MobileNetV2 https://arxiv.org/abs/1801.04381,
                 MobileNetV3 https://arxiv.org/abs/1905.02244,
                 EfficientNet https://arxiv.org/abs/1905.11946)
  fused_mbconv  kxk expand → project 1x1 (EfficientNetV2 https://arxiv.org/abs/2104.00298)

Stage builders turn one row of a stage table into a function
``get_layers(block_idx, drop_path_rate)`` plus a repeat count. Only the
first block of a stage takes the stage stride and the previous stage's
width; later blocks keep stride 1 and ``inplanes == outplanes``, which is
when an identity residual (with stochastic depth) is attached.
"""

import logging
import math
from typing import Callable, Optional, Sequence

import torch
import torch.nn as nn

from convkit.model.config import (
    DWSepStage,
    FusedMBConvStage,
    MBConvStage,
    StageConfig,
    round_channels,
)
from convkit.model.layers.connections import SkipConnection
from convkit.model.layers.conv import conv_norm, dwsep_conv_norm
from convkit.model.layers.drop import DropPath
from convkit.model.layers.squeeze_excite import SqueezeExcite
from convkit.model.registry import get_block, register_block

logger = logging.getLogger(__name__)

LayerFn = Callable[[int, float], nn.Module]
StackFn = Callable[[int, int, float], nn.Module]


# ── Blocks ──────────────────────────────────────────────────────────────────


def mbconv(
    kernel_size: int,
    inplanes: int,
    explanes: int,
    outplanes: int,
    activation: str = "relu",
    *,
    stride: int = 1,
    reduction: Optional[float] = None,
    norm_layer: str = "batchnorm",
    se_activation: str = "relu",
    se_gate_activation: str = "hardsigmoid",
) -> nn.Sequential:
    """
    Inverted-residual main branch.

    The 1x1 expansion is skipped when ``explanes == inplanes``. The final
    projection has no activation (linear bottleneck).

    Args:
        kernel_size: Depthwise kernel size.
        inplanes: Input feature maps.
        explanes: Expanded (hidden) feature maps.
        outplanes: Output feature maps.
        activation: Registered activation for expansion and depthwise convs.
        stride: Depthwise convolution stride.
        reduction: Squeeze-excite reduction over ``explanes``; None disables it.
        norm_layer: Registered norm type.
        se_activation: Squeeze-excite hidden activation.
        se_gate_activation: Squeeze-excite gate activation.
    """
    layers: list[nn.Module] = []
    if explanes != inplanes:
        layers.extend(conv_norm(1, inplanes, explanes, activation, norm_layer=norm_layer))
    layers.extend(
        conv_norm(
            kernel_size,
            explanes,
            explanes,
            activation,
            norm_layer=norm_layer,
            stride=stride,
            groups=explanes,
        )
    )
    if reduction is not None:
        layers.append(
            SqueezeExcite(
                explanes,
                reduction=reduction,
                activation=se_activation,
                gate_activation=se_gate_activation,
            )
        )
    layers.extend(conv_norm(1, explanes, outplanes, "identity", norm_layer=norm_layer))
    return nn.Sequential(*layers)


def fused_mbconv(
    kernel_size: int,
    inplanes: int,
    explanes: int,
    outplanes: int,
    activation: str = "relu",
    *,
    stride: int = 1,
    norm_layer: str = "batchnorm",
) -> nn.Sequential:
    """
    Fused inverted-residual main branch.

    The expansion and depthwise convolutions are fused into one regular kxk
    convolution. Without expansion the block is a single kxk conv-norm-act.
    """
    if explanes == inplanes:
        return nn.Sequential(
            *conv_norm(
                kernel_size, inplanes, outplanes, activation, norm_layer=norm_layer, stride=stride
            )
        )
    return nn.Sequential(
        *conv_norm(
            kernel_size, inplanes, explanes, activation, norm_layer=norm_layer, stride=stride
        ),
        *conv_norm(1, explanes, outplanes, "identity", norm_layer=norm_layer),
    )


def _residual(block: nn.Module, drop_path_rate: float) -> nn.Module:
    """Wrap a shape-preserving block in an identity skip with stochastic depth."""
    if drop_path_rate > 0.0:
        block = nn.Sequential(block, DropPath(drop_path_rate))
    return SkipConnection(block, torch.add)


# ── Stage builders ──────────────────────────────────────────────────────────


def dwsepconv_builder(
    block_configs: Sequence[StageConfig],
    inplanes: int,
    stage_idx: int,
    width_mult: float,
    *,
    norm_layer: str = "batchnorm",
) -> tuple[LayerFn, int]:
    """
    Stage builder for depthwise-separable stages.

    Returns:
        ``(get_layers, repeats)``. ``get_layers`` accepts a drop path rate for
        interface compatibility and ignores it: these blocks have no residual.
    """
    stage = block_configs[stage_idx]
    block_fn = get_block(stage.block)
    outplanes = round_channels(stage.outplanes * width_mult)
    if stage_idx != 0:
        inplanes = round_channels(block_configs[stage_idx - 1].outplanes * width_mult)

    def get_layers(block_idx: int, drop_path_rate: float = 0.0) -> nn.Module:
        block_inplanes = inplanes if block_idx == 0 else outplanes
        stride = stage.stride if block_idx == 0 else 1
        return block_fn(
            stage.kernel_size,
            block_inplanes,
            outplanes,
            stage.activation,
            stride=stride,
            norm_layer=norm_layer,
        )

    return get_layers, stage.repeats


def mbconv_builder(
    block_configs: Sequence[StageConfig],
    inplanes: int,
    stage_idx: int,
    scalings: tuple[float, float],
    *,
    norm_layer: str = "batchnorm",
    divisor: int = 8,
    se_from_explanes: bool = False,
    se_activation: str = "relu",
    se_gate_activation: str = "hardsigmoid",
) -> tuple[LayerFn, int]:
    """
    Stage builder for MBConv stages.

    Widths are scaled by ``width_mult`` and rounded to ``divisor``; the repeat
    count is ``ceil(repeats * depth_mult)``.

    The squeeze-excite reduction in the table is relative to the block input
    width unless ``se_from_explanes`` is set, in which case it is relative to
    the expanded width (the MobileNetV3 convention).

    Args:
        block_configs: The full stage table.
        inplanes: Width of the stem output (input to the first stage).
        stage_idx: Zero-based index of the stage to build.
        scalings: ``(width_mult, depth_mult)``.
    """
    width_mult, depth_mult = scalings
    stage = block_configs[stage_idx]
    block_fn = get_block(stage.block)

    reduction = stage.reduction
    if reduction is not None and not se_from_explanes:
        reduction = reduction * stage.expansion

    if stage_idx != 0:
        inplanes = round_channels(block_configs[stage_idx - 1].outplanes * width_mult, divisor)
    outplanes = round_channels(stage.outplanes * width_mult, divisor)

    def get_layers(block_idx: int, drop_path_rate: float = 0.0) -> nn.Module:
        block_inplanes = inplanes if block_idx == 0 else outplanes
        explanes = round_channels(block_inplanes * stage.expansion, divisor)
        stride = stage.stride if block_idx == 0 else 1
        block = block_fn(
            stage.kernel_size,
            block_inplanes,
            explanes,
            outplanes,
            stage.activation,
            stride=stride,
            reduction=reduction,
            norm_layer=norm_layer,
            se_activation=se_activation,
            se_gate_activation=se_gate_activation,
        )
        if stride == 1 and block_inplanes == outplanes:
            return _residual(block, drop_path_rate)
        return block

    return get_layers, math.ceil(stage.repeats * depth_mult)


def fused_mbconv_builder(
    block_configs: Sequence[StageConfig],
    inplanes: int,
    stage_idx: int,
    *,
    norm_layer: str = "batchnorm",
) -> tuple[LayerFn, int]:
    """Stage builder for fused MBConv stages. Widths are never scaled."""
    stage = block_configs[stage_idx]
    block_fn = get_block(stage.block)
    if stage_idx != 0:
        inplanes = block_configs[stage_idx - 1].outplanes
    outplanes = stage.outplanes

    def get_layers(block_idx: int, drop_path_rate: float = 0.0) -> nn.Module:
        block_inplanes = inplanes if block_idx == 0 else outplanes
        explanes = round_channels(block_inplanes * stage.expansion, 8)
        stride = stage.stride if block_idx == 0 else 1
        block = block_fn(
            stage.kernel_size,
            block_inplanes,
            explanes,
            outplanes,
            stage.activation,
            stride=stride,
            norm_layer=norm_layer,
        )
        if stride == 1 and block_inplanes == outplanes:
            return _residual(block, drop_path_rate)
        return block

    return get_layers, stage.repeats


def _get_builder(
    block_configs: Sequence[StageConfig],
    inplanes: int,
    stage_idx: int,
    *,
    scalings: Optional[tuple[float, float]],
    width_mult: Optional[float],
    norm_layer: str,
    **kwargs: object,
) -> tuple[LayerFn, int]:
    """Dispatch a stage to its builder by descriptor type and check scaling arguments."""
    stage = block_configs[stage_idx]

    if isinstance(stage, DWSepStage):
        if scalings is not None:
            raise ValueError("Depthwise-separable stages do not support the `scalings` argument")
        return dwsepconv_builder(
            block_configs,
            inplanes,
            stage_idx,
            1.0 if width_mult is None else width_mult,
            norm_layer=norm_layer,
        )

    if isinstance(stage, MBConvStage):
        if (scalings is None) == (width_mult is None):
            raise ValueError("Exactly one of `scalings` and `width_mult` must be specified")
        if scalings is None:
            scalings = (width_mult, 1.0)
        return mbconv_builder(
            block_configs, inplanes, stage_idx, scalings, norm_layer=norm_layer, **kwargs
        )

    if isinstance(stage, FusedMBConvStage):
        if width_mult is not None:
            raise ValueError("Fused MBConv stages do not support the `width_mult` argument")
        if scalings is not None and tuple(scalings) != (1, 1):
            raise ValueError("Fused MBConv stages do not support the `scalings` argument")
        return fused_mbconv_builder(block_configs, inplanes, stage_idx, norm_layer=norm_layer)

    raise TypeError(f"Unsupported stage descriptor {type(stage).__name__}")


def mbconv_stack_builder(
    block_configs: Sequence[StageConfig],
    inplanes: int,
    *,
    scalings: Optional[tuple[float, float]] = None,
    width_mult: Optional[float] = None,
    norm_layer: str = "batchnorm",
    **kwargs: object,
) -> tuple[StackFn, list[int]]:
    """
    Build per-stage builders for a whole stage table.

    Args:
        block_configs: Stage table (DWSep, MBConv or FusedMBConv rows).
        inplanes: Width of the stem output.
        scalings: ``(width_mult, depth_mult)`` for compound-scaled models.
        width_mult: Width multiplier alone (depth unscaled).
        norm_layer: Registered norm type used by every block.
        **kwargs: Extra MBConv options (``divisor``, ``se_from_explanes``,
                  ``se_activation``, ``se_gate_activation``).

    Returns:
        ``(get_layers, block_repeats)`` where ``get_layers(stage_idx,
        block_idx, drop_path_rate)`` returns one block and ``block_repeats``
        lists the number of blocks per stage.
    """
    builders = [
        _get_builder(
            block_configs,
            inplanes,
            idx,
            scalings=scalings,
            width_mult=width_mult,
            norm_layer=norm_layer,
            **kwargs,
        )
        for idx in range(len(block_configs))
    ]
    layer_fns = [fn for fn, _ in builders]
    block_repeats = [repeats for _, repeats in builders]
    logger.debug(
        "stack_builder_ready",
        extra={"n_stages": len(block_configs), "block_repeats": block_repeats},
    )

    def get_layers(stage_idx: int, block_idx: int, drop_path_rate: float = 0.0) -> nn.Module:
        return layer_fns[stage_idx](block_idx, drop_path_rate)

    return get_layers, block_repeats


# Register with the block registry
register_block("dwsep", dwsep_conv_norm)
register_block("mbconv", mbconv)
register_block("fused_mbconv", fused_mbconv)
