# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Layer type registry for convkit.

Provides a deterministic, typed registry system for pluggable layers.
Each family (Norm, Activation, Block) has its own registry so that a
normalization class can never be resolved where an activation is expected.

Norm and activation registries are populated once at import time via
``_register_builtins()``. The block registry is populated on first lookup.
All registries remain deterministic thereafter.

Architecture tables refer to layers by config string alone ("batchnorm",
"hardswish", "mbconv"). The registry maps that string to the concrete class
or block constructor.
"""

import logging
from typing import Callable

import torch.nn as nn

logger = logging.getLogger(__name__)

BlockFn = Callable[..., nn.Module]

# ── Norm Registry ───────────────────────────────────────────────────────────

_NORM_REGISTRY: dict[str, type[nn.Module]] = {}


def register_norm(name: str, cls: type[nn.Module]) -> None:
    """
    Register a normalization class under a unique name.

    The class must accept ``(num_channels, eps=...)`` so the factory can
    construct it uniformly.

    Args:
        name: Config-level identifier (e.g. ``"batchnorm"``).
        cls: The ``nn.Module`` subclass to register.

    Raises:
        ValueError: If ``name`` is already registered.
    """
    if name in _NORM_REGISTRY:
        raise ValueError(
            f"Norm type '{name}' is already registered to {_NORM_REGISTRY[name].__name__}"
        )
    _NORM_REGISTRY[name] = cls
    logger.debug("registered_norm", extra={"norm_type": name, "cls": cls.__name__})


def get_norm(name: str) -> type[nn.Module]:
    """
    Retrieve a registered normalization class by name.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    if name not in _NORM_REGISTRY:
        available = sorted(_NORM_REGISTRY.keys())
        raise KeyError(f"Unknown Norm type '{name}'. Available: {available}")
    return _NORM_REGISTRY[name]


def list_norm_types() -> list[str]:
    """Return sorted list of all registered Norm type names."""
    return sorted(_NORM_REGISTRY.keys())


# ── Activation Registry ─────────────────────────────────────────────────────

_ACTIVATION_REGISTRY: dict[str, type[nn.Module]] = {}


def register_activation(name: str, cls: type[nn.Module]) -> None:
    """
    Register an activation class under a unique name.

    The same class may be registered under several aliases
    (e.g. ``"silu"`` and ``"swish"``).

    Raises:
        ValueError: If ``name`` is already registered.
    """
    if name in _ACTIVATION_REGISTRY:
        raise ValueError(
            f"Activation type '{name}' is already registered to "
            f"{_ACTIVATION_REGISTRY[name].__name__}"
        )
    _ACTIVATION_REGISTRY[name] = cls
    logger.debug(
        "registered_activation", extra={"activation_type": name, "cls": cls.__name__}
    )


def get_activation(name: str) -> type[nn.Module]:
    """
    Retrieve a registered activation class by name.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    if name not in _ACTIVATION_REGISTRY:
        available = sorted(_ACTIVATION_REGISTRY.keys())
        raise KeyError(f"Unknown Activation type '{name}'. Available: {available}")
    return _ACTIVATION_REGISTRY[name]


def list_activation_types() -> list[str]:
    """Return sorted list of all registered Activation type names."""
    return sorted(_ACTIVATION_REGISTRY.keys())


# ── Block Registry ──────────────────────────────────────────────────────────

_BLOCK_REGISTRY: dict[str, BlockFn] = {}


def register_block(name: str, fn: BlockFn) -> None:
    """
    Register a block constructor under a unique name.

    Blocks are plain functions returning an ``nn.Module`` (usually an
    ``nn.Sequential``), so the registry stores callables rather than classes.

    Args:
        name: Config-level identifier (e.g. ``"bottleneck"``, ``"mbconv"``).
        fn: The block constructor.

    Raises:
        ValueError: If ``name`` is already registered.
    """
    if name in _BLOCK_REGISTRY:
        raise ValueError(
            f"Block type '{name}' is already registered to {_BLOCK_REGISTRY[name].__name__}"
        )
    _BLOCK_REGISTRY[name] = fn
    logger.debug("registered_block", extra={"block_type": name, "fn": fn.__name__})


def get_block(name: str) -> BlockFn:
    """
    Retrieve a registered block constructor by name.

    Raises:
        KeyError: If ``name`` is not registered.
    """
    _register_builtin_blocks()
    if name not in _BLOCK_REGISTRY:
        available = sorted(_BLOCK_REGISTRY.keys())
        raise KeyError(f"Unknown Block type '{name}'. Available: {available}")
    return _BLOCK_REGISTRY[name]


def list_block_types() -> list[str]:
    """Return sorted list of all registered Block type names."""
    _register_builtin_blocks()
    return sorted(_BLOCK_REGISTRY.keys())


# ── Builtin Registration ───────────────────────────────────────────────────

_BUILTINS_REGISTERED: bool = False


def _register_builtins() -> None:
    """
    Register the built-in norm and activation layers.

    Called once at module import time. Importing the layer subpackages
    triggers their ``register_*`` calls. This function is idempotent.
    """
    global _BUILTINS_REGISTERED
    if _BUILTINS_REGISTERED:
        return

    # Importing subpackages triggers registration via their __init__.py
    import convkit.model.layers.norm  # noqa: F401
    import convkit.model.layers.activation  # noqa: F401

    _BUILTINS_REGISTERED = True
    logger.debug(
        "builtins_registered",
        extra={
            "norm_types": list_norm_types(),
            "activation_types": list_activation_types(),
        },
    )


def _register_builtin_blocks() -> None:
    """
    Register the built-in blocks on first lookup.

    Block modules depend on the layer helpers, which depend on this registry,
    so blocks cannot be imported while the registry itself is loading.
    """
    import convkit.model.blocks  # noqa: F401


# Register builtins on import
_register_builtins()
