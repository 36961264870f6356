# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the convkit CLI.

Each function here corresponds to one CLI subcommand and returns an exit code.
No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

from convkit.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from convkit.config.exceptions import ConfigError, ConfigSchemaError
from convkit.config.loader import load_config
from convkit.config.schema import ConvKitConfig
from convkit.logging.logger import get_logger
from convkit.runtime.bootstrap import bootstrap, set_deterministic_seed

DEFAULT_SEED = 42


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[ConvKitConfig], logging.Logger]:
    """
    Shared setup for every command: configure logging, load config, bootstrap.

    Returns ``(exit_code, config, logger)``. A non-SUCCESS exit code means
    setup failed and the caller should return it immediately.
    """
    get_logger("convkit", log_level=args.log_level)
    logger = logging.getLogger(f"convkit.cli.{command_name}")

    config = None
    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "config_error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger

    if config is not None:
        bootstrap(config.global_config)
    else:
        logger.debug("no_config", extra={"command": command_name})

    if args.seed is not None:
        set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def _resolve_seed(args: argparse.Namespace, config: Optional[ConvKitConfig]) -> int:
    """The --seed flag wins over the config, which wins over the default."""
    if args.seed is not None:
        return args.seed
    if config is not None:
        return config.global_config.seed
    return DEFAULT_SEED


def handle_build(args: argparse.Namespace) -> int:
    """Build a model from a config file or a preset and run a dummy forward pass."""
    exit_code, config, logger = _load_and_bootstrap(args, "build")
    if exit_code != SUCCESS:
        return exit_code

    import torch

    from convkit.model.config import ConvNetConfig
    from convkit.model.factory import PRESETS, build_model, config_from_schema

    seed = _resolve_seed(args, config)
    input_size = args.input_size

    try:
        if args.preset is not None:
            if config is not None and config.model is not None:
                logger.warning(
                    "preset_overrides_config",
                    extra={
                        "preset": args.preset,
                        "ignored_architecture": config.model.architecture,
                        "config": args.config,
                    },
                )
            model_config = ConvNetConfig(
                architecture=args.preset,
                num_classes=args.num_classes,
                in_channels=args.in_channels,
                seed=seed,
            )
        elif config is not None:
            if config.model is None:
                raise ConfigSchemaError(f"Config {args.config} has no 'model' section")
            model_config = config_from_schema(config.model, seed=seed)
            if input_size is None:
                input_size = config.model.input_size
        else:
            logger.error("no_model_selected", extra={"hint": "pass --preset or --config"})
            return USER_ERROR
    except ConfigError as err:
        logger.error("config_error", extra={"command": "build", "error": str(err)})
        return CONFIG_ERROR

    if model_config.architecture not in PRESETS:
        logger.error(
            "unknown_preset",
            extra={"preset": model_config.architecture, "available": sorted(PRESETS)},
        )
        return VALIDATION_ERROR

    input_size = input_size if input_size is not None else 224
    logger.info(
        "build_started",
        extra={
            "architecture": model_config.architecture,
            "options": model_config.options,
            "seed": seed,
            "input_size": input_size,
            "dry_run": args.dry_run,
        },
    )
    if args.dry_run:
        logger.info("dry_run_complete", extra={"architecture": model_config.architecture})
        return SUCCESS

    try:
        model = build_model(model_config)
    except (ValueError, KeyError) as err:
        logger.error("invalid_model", extra={"error": str(err)})
        return VALIDATION_ERROR

    try:
        model.eval()
        generator = torch.Generator().manual_seed(seed)
        dummy = torch.randn(
            args.batch_size,
            model_config.in_channels,
            input_size,
            input_size,
            generator=generator,
        )
        with torch.no_grad():
            output = model(dummy)
    except Exception as err:
        logger.error("forward_failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR

    logger.info(
        "build_complete",
        extra={
            "architecture": model_config.architecture,
            "total_parameters": model.count_parameters(),
            "input_shape": list(dummy.shape),
            "output_shape": list(output.shape),
        },
    )
    return SUCCESS


def handle_list(args: argparse.Namespace) -> int:
    """Log the preset catalog and every registered layer type."""
    exit_code, _, logger = _load_and_bootstrap(args, "list")
    if exit_code != SUCCESS:
        return exit_code

    from convkit.model.factory import PRESETS, list_presets
    from convkit.model.registry import (
        list_activation_types,
        list_block_types,
        list_norm_types,
    )

    for name in list_presets():
        preset = PRESETS[name]
        logger.info(
            "preset",
            extra={
                "preset": name,
                "family": preset.family,
                "options": sorted(preset.options),
            },
        )
    logger.info(
        "layer_types",
        extra={
            "norm": list_norm_types(),
            "activation": list_activation_types(),
            "block": list_block_types(),
        },
    )
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and configuration information."""
    get_logger("convkit", log_level=args.log_level)
    logger = logging.getLogger("convkit.cli.info")

    from convkit import __version__
    from convkit.runtime.environment import get_system_info

    system_info = get_system_info()

    logger.info(
        "system_information",
        extra={
            "convkit_version": __version__,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "cuda_available": system_info.cuda_available,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "config": args.config,
        },
    )
    return SUCCESS
