# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the layer registries and the registry-backed layer builders.
"""

import logging

import pytest
import torch.nn as nn

from convkit.model import registry
from convkit.model.factory import build_activation, build_norm
from convkit.model.layers.norm import ChannelLayerNorm
from convkit.model.registry import (
    get_activation,
    get_block,
    get_norm,
    list_activation_types,
    list_block_types,
    list_norm_types,
    register_activation,
    register_block,
    register_norm,
)


class TestBuiltinRegistration:
    def test_norm_types(self) -> None:
        assert list_norm_types() == ["batchnorm", "channel_layernorm", "identity"]

    def test_activation_types(self) -> None:
        expected = {
            "relu", "relu6", "hardswish", "hardsigmoid", "sigmoid",
            "silu", "swish", "gelu", "identity",
        }
        assert set(list_activation_types()) == expected

    def test_block_types(self) -> None:
        assert list_block_types() == [
            "basic", "bottleneck", "convnext", "dwsep", "fused_mbconv", "mbconv",
        ]

    def test_lists_are_sorted(self) -> None:
        for names in (list_norm_types(), list_activation_types(), list_block_types()):
            assert names == sorted(names)

    def test_swish_is_silu(self) -> None:
        assert get_activation("swish") is nn.SiLU
        assert get_activation("silu") is nn.SiLU


class TestLookups:
    def test_get_norm(self) -> None:
        assert get_norm("batchnorm") is nn.BatchNorm2d
        assert get_norm("channel_layernorm") is ChannelLayerNorm

    def test_get_block_returns_callable(self) -> None:
        block = get_block("basic")(64, [64, 64])
        assert isinstance(block, nn.Module)

    def test_unknown_norm_raises_key_error(self) -> None:
        with pytest.raises(KeyError, match="Unknown Norm type 'groupnorm'"):
            get_norm("groupnorm")

    def test_unknown_activation_lists_available(self) -> None:
        with pytest.raises(KeyError, match="Available"):
            get_activation("mish")

    def test_unknown_block_raises_key_error(self) -> None:
        with pytest.raises(KeyError, match="Unknown Block type"):
            get_block("ghost")


class TestRegistration:
    def test_duplicate_norm_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):
            register_norm("batchnorm", nn.BatchNorm2d)

    def test_duplicate_activation_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):
            register_activation("relu", nn.ReLU)

    def test_duplicate_block_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):
            register_block("mbconv", lambda *args, **kwargs: nn.Identity())

    def test_custom_activation_is_buildable(self) -> None:
        if "test_tanh" not in list_activation_types():
            register_activation("test_tanh", nn.Tanh)
        assert isinstance(build_activation("test_tanh"), nn.Tanh)


class TestRegistrationLogging:
    """Registration is logged at DEBUG with the registered type under its own key."""

    @pytest.fixture(autouse=True)
    def _isolated_registries(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(registry, "_NORM_REGISTRY", dict(registry._NORM_REGISTRY))
        monkeypatch.setattr(
            registry, "_ACTIVATION_REGISTRY", dict(registry._ACTIVATION_REGISTRY)
        )
        monkeypatch.setattr(registry, "_BLOCK_REGISTRY", dict(registry._BLOCK_REGISTRY))

    def test_register_norm_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="convkit.model.registry")
        register_norm("groupnorm_debug", nn.GroupNorm)
        record = next(r for r in caplog.records if r.getMessage() == "registered_norm")
        assert record.norm_type == "groupnorm_debug"
        assert record.name == "convkit.model.registry"

    def test_register_activation_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="convkit.model.registry")
        register_activation("tanh_debug", nn.Tanh)
        record = next(
            r for r in caplog.records if r.getMessage() == "registered_activation"
        )
        assert record.activation_type == "tanh_debug"

    def test_register_block_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="convkit.model.registry")
        register_block("identity_debug", lambda *args, **kwargs: nn.Identity())
        record = next(r for r in caplog.records if r.getMessage() == "registered_block")
        assert record.block_type == "identity_debug"


class TestBuilders:
    def test_build_norm(self) -> None:
        norm = build_norm("batchnorm", 16)
        assert isinstance(norm, nn.BatchNorm2d)
        assert norm.num_features == 16

    def test_build_norm_eps_override(self) -> None:
        norm = build_norm("channel_layernorm", 8, eps=1e-3)
        assert isinstance(norm, ChannelLayerNorm)
        assert norm.eps == 1e-3

    def test_build_identity_norm_ignores_channels(self) -> None:
        assert isinstance(build_norm("identity", 32, eps=1e-5), nn.Identity)

    def test_build_activation(self) -> None:
        assert isinstance(build_activation("hardswish"), nn.Hardswish)

    def test_build_unknown_activation_raises(self) -> None:
        with pytest.raises(KeyError):
            build_activation("nope")
