# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model factory for convkit.

Provides the preset catalog, layer builder functions, and the build functions
that turn a ``ConvNetConfig`` into an initialized network. Every preset maps
to one architecture family plus fixed arguments; only config values change
between sizes of the same family.

Layer builder functions use the registry to resolve layer types from config
strings. No if/else chains; the registry handles dispatch.
"""

import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from convkit.model.config import ConvNetConfig
from convkit.model.init.weights import init_weights
from convkit.model.layers.build import build_activation, build_norm

if TYPE_CHECKING:
    from convkit.config.schema import ModelConfig
    from convkit.model.interfaces import ConvNet

logger = logging.getLogger(__name__)

__all__ = [
    "PRESETS",
    "Preset",
    "build_activation",
    "build_model",
    "build_model_from_preset",
    "build_norm",
    "config_from_schema",
    "list_presets",
]


class Preset(NamedTuple):
    """A catalog entry: model family, fixed constructor args, tunable options."""

    family: str
    kwargs: dict[str, Any]
    options: frozenset[str]


_RESNET_OPTIONS = frozenset({"drop_path_rate", "shortcut_config"})
_CONVNEXT_OPTIONS = frozenset({"drop_path_rate", "layerscale_init"})
_MOBILENET_V1_OPTIONS = frozenset({"width_mult", "dropout"})
_MOBILENET_OPTIONS = frozenset({"width_mult", "dropout", "drop_path_rate"})
_EFFICIENTNET_OPTIONS = frozenset({"dropout", "drop_path_rate"})


# ── Preset Configurations ──────────────────────────────────────────────────

PRESETS: dict[str, Preset] = {
    **{
        f"resnet{depth}": Preset("resnet", {"depth": depth}, _RESNET_OPTIONS)
        for depth in (18, 34, 50, 101, 152)
    },
    **{
        f"convnext_{variant}": Preset("convnext", {"variant": variant}, _CONVNEXT_OPTIONS)
        for variant in ("tiny", "small", "base", "large", "xlarge")
    },
    "mobilenet_v1": Preset("mobilenet_v1", {}, _MOBILENET_V1_OPTIONS),
    "mobilenet_v2": Preset("mobilenet_v2", {}, _MOBILENET_OPTIONS),
    "mobilenet_v3_small": Preset("mobilenet_v3", {"variant": "small"}, _MOBILENET_OPTIONS),
    "mobilenet_v3_large": Preset("mobilenet_v3", {"variant": "large"}, _MOBILENET_OPTIONS),
    **{
        f"efficientnet_b{idx}": Preset(
            "efficientnet", {"variant": f"b{idx}"}, _EFFICIENTNET_OPTIONS
        )
        for idx in range(8)
    },
    **{
        f"efficientnet_v2_{suffix}": Preset(
            "efficientnet_v2", {"variant": variant}, _EFFICIENTNET_OPTIONS
        )
        for suffix, variant in (
            ("s", "small"),
            ("m", "medium"),
            ("l", "large"),
            ("xl", "xlarge"),
        )
    },
}


def list_presets() -> list[str]:
    """Return sorted list of all preset names."""
    return sorted(PRESETS)


def _family_classes() -> dict[str, type["ConvNet"]]:
    # Deferred import so that importing the factory stays cheap
    from convkit.model.convnext import ConvNeXt
    from convkit.model.efficientnet import EfficientNet, EfficientNetV2
    from convkit.model.mobilenet import MobileNetV1, MobileNetV2, MobileNetV3
    from convkit.model.resnet import ResNet

    return {
        "resnet": ResNet,
        "convnext": ConvNeXt,
        "mobilenet_v1": MobileNetV1,
        "mobilenet_v2": MobileNetV2,
        "mobilenet_v3": MobileNetV3,
        "efficientnet": EfficientNet,
        "efficientnet_v2": EfficientNetV2,
    }


def build_model(config: ConvNetConfig) -> "ConvNet":
    """
    Build a network from a config object.

    This is the canonical entry point for model construction. The returned
    model is initialized deterministically from ``config.seed``.

    Args:
        config: Build options naming a preset architecture.

    Returns:
        Initialized ``ConvNet`` in training mode.

    Raises:
        ValueError: If the architecture is unknown or an option is not
                    supported by it.
    """
    preset = PRESETS.get(config.architecture)
    if preset is None:
        raise ValueError(
            f"Unknown architecture '{config.architecture}'. Available: {list_presets()}"
        )

    options = config.options
    unsupported = sorted(set(options) - preset.options)
    if unsupported:
        raise ValueError(
            f"Options {unsupported} are not supported by '{config.architecture}'. "
            f"Supported: {sorted(preset.options)}"
        )

    logger.info(
        "building_model",
        extra={
            "architecture": config.architecture,
            "family": preset.family,
            "num_classes": config.num_classes,
            "in_channels": config.in_channels,
            "options": options,
            "seed": config.seed,
        },
    )
    model_cls = _family_classes()[preset.family]
    model = model_cls(
        **preset.kwargs,
        **options,
        num_classes=config.num_classes,
        in_channels=config.in_channels,
    )
    init_weights(model, seed=config.seed, init_std=config.init_std)

    param_count = model.count_parameters()
    logger.info(
        "model_built",
        extra={"architecture": config.architecture, "total_parameters": param_count},
    )
    return model


def build_model_from_preset(
    preset: str,
    *,
    num_classes: int = 1000,
    in_channels: int = 3,
    seed: int = 42,
    **options: Any,
) -> "ConvNet":
    """
    Build a network from a named preset.

    Args:
        preset: One of ``list_presets()``.
        num_classes: Width of the classifier output.
        in_channels: Number of input image channels.
        seed: Random seed for deterministic initialization.
        **options: Architecture-specific options (``width_mult``, ...).

    Returns:
        Initialized ``ConvNet``.

    Raises:
        ValueError: If preset name is not recognized.
    """
    if preset not in PRESETS:
        raise ValueError(f"Unknown preset '{preset}'. Available: {list_presets()}")
    config = ConvNetConfig(
        architecture=preset,
        num_classes=num_classes,
        in_channels=in_channels,
        seed=seed,
        **options,
    )
    return build_model(config)


def config_from_schema(model_config: "ModelConfig", seed: int = 42) -> ConvNetConfig:
    """
    Convert the validated ``model:`` section of a YAML config into build options.

    The seed comes from the ``global:`` section, so it is passed separately.
    """
    shortcut_config = model_config.shortcut_config
    if isinstance(shortcut_config, list):
        shortcut_config = tuple(shortcut_config)
    return ConvNetConfig(
        architecture=model_config.architecture,
        num_classes=model_config.num_classes,
        in_channels=model_config.in_channels,
        drop_path_rate=model_config.drop_path_rate,
        dropout=model_config.dropout,
        width_mult=model_config.width_mult,
        layerscale_init=model_config.layerscale_init,
        shortcut_config=shortcut_config,
        init_std=model_config.init_std,
        seed=seed,
    )
