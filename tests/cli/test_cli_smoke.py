# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI smoke tests.

We use subprocess to run the actual CLI entrypoint the way a user would.
This catches issues that unit tests miss, like broken imports or entrypoint
registration. Every command logs JSON lines to stdout, so assertions parse
those lines instead of matching free text.
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    """Run `convkit` with the given arguments and capture output."""
    return subprocess.run(
        [sys.executable, "-m", "convkit.cli.main", *args],
        capture_output=True,
        text=True,
        timeout=300,
    )


def _events(result: subprocess.CompletedProcess[str]) -> list[dict]:
    return [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]


def _event(result: subprocess.CompletedProcess[str], msg: str) -> dict:
    return next(event for event in _events(result) if event["msg"] == msg)


class TestHelpTexts:
    """Every subcommand must have working --help output."""

    @pytest.mark.parametrize("subcommand", ["build", "list", "info"])
    def test_subcommand_help_exits_zero(self, subcommand: str) -> None:
        result = _run_cli(subcommand, "--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_build_help_lists_preset_option(self) -> None:
        assert "--preset" in _run_cli("build", "--help").stdout

    def test_root_help_exits_with_user_error(self) -> None:
        """Running convkit with no args should show help and exit with USER_ERROR (1)."""
        assert _run_cli().returncode == 1


class TestInfoAndList:
    def test_info_runs_without_config(self) -> None:
        result = _run_cli("info")
        assert result.returncode == 0
        assert "torch_version" in _event(result, "system_information")

    def test_list_reports_presets_and_layers(self) -> None:
        result = _run_cli("list")
        assert result.returncode == 0
        presets = {event["preset"] for event in _events(result) if event["msg"] == "preset"}
        assert {"resnet50", "convnext_tiny", "efficientnet_v2_s"} <= presets
        layers = _event(result, "layer_types")
        assert "mbconv" in layers["block"]
        assert "channel_layernorm" in layers["norm"]


class TestBuild:
    def test_build_from_preset(self) -> None:
        result = _run_cli(
            "build", "--preset", "resnet18", "--num-classes", "10", "--input-size", "64",
            "--batch-size", "2",
        )
        assert result.returncode == 0, result.stdout + result.stderr
        done = _event(result, "build_complete")
        assert done["output_shape"] == [2, 10]
        assert done["input_shape"] == [2, 3, 64, 64]
        assert done["total_parameters"] > 0

    def test_build_from_config(self, model_config_file: Path) -> None:
        result = _run_cli("build", "--config", str(model_config_file))
        assert result.returncode == 0, result.stdout + result.stderr
        done = _event(result, "build_complete")
        assert done["architecture"] == "resnet18"
        assert done["input_shape"] == [1, 3, 64, 64]
        assert done["output_shape"] == [1, 10]

    def test_dry_run_skips_construction(self) -> None:
        result = _run_cli("build", "--preset", "efficientnet_b7", "--dry-run")
        assert result.returncode == 0
        assert not any(event["msg"] == "build_complete" for event in _events(result))

    def test_build_without_model_is_user_error(self) -> None:
        assert _run_cli("build").returncode == 1

    def test_unknown_preset_is_validation_error(self) -> None:
        assert _run_cli("build", "--preset", "resnet20").returncode == 4

    def test_config_without_model_section(self, tmp_config_file: Path) -> None:
        assert _run_cli("build", "--config", str(tmp_config_file)).returncode == 2


class TestConfigLoading:
    """Subcommands should handle config loading failures gracefully."""

    def test_nonexistent_config_returns_config_error(self) -> None:
        result = _run_cli("build", "--config", "/nonexistent/path.yaml")
        assert result.returncode == 2  # CONFIG_ERROR

    def test_invalid_config_returns_config_error(self, invalid_config_file: Path) -> None:
        assert _run_cli("list", "--config", str(invalid_config_file)).returncode == 2

    def test_broken_yaml_returns_config_error(self, broken_yaml_file: Path) -> None:
        assert _run_cli("list", "--config", str(broken_yaml_file)).returncode == 2

    def test_valid_config_is_accepted(self, tmp_config_file: Path) -> None:
        result = _run_cli("list", "--config", str(tmp_config_file))
        assert result.returncode == 0
        assert _event(result, "bootstrap_complete")["project_name"] == "convkit-test"


class TestGlobalOptions:
    """Global options work on either side of the subcommand name."""

    def test_options_before_subcommand_are_kept(self) -> None:
        result = _run_cli("--seed", "5", "--dry-run", "build", "--preset", "resnet18")
        assert result.returncode == 0, result.stdout + result.stderr
        started = _event(result, "build_started")
        assert started["seed"] == 5
        assert started["dry_run"] is True
        assert not any(event["msg"] == "build_complete" for event in _events(result))

    def test_config_before_subcommand_is_kept(self, model_config_file: Path) -> None:
        result = _run_cli("--config", str(model_config_file), "--dry-run", "build")
        assert result.returncode == 0, result.stdout + result.stderr
        assert _event(result, "build_started")["architecture"] == "resnet18"

    def test_list_at_debug_level(self) -> None:
        result = _run_cli("--log-level", "DEBUG", "list")
        assert result.returncode == 0, result.stdout + result.stderr
        assert any(event["msg"] == "registered_block" for event in _events(result))


class TestSeedPrecedence:
    def test_flag_wins_over_config(self, model_config_file: Path) -> None:
        result = _run_cli("build", "--config", str(model_config_file), "--seed", "5", "--dry-run")
        assert _event(result, "build_started")["seed"] == 5

    def test_config_wins_over_default(self, model_config_file: Path) -> None:
        result = _run_cli("build", "--config", str(model_config_file), "--dry-run")
        assert _event(result, "build_started")["seed"] == 7

    def test_default_without_flag_or_config(self) -> None:
        result = _run_cli("build", "--preset", "resnet18", "--dry-run")
        assert _event(result, "build_started")["seed"] == 42


class TestPresetWithConfig:
    def test_preset_override_is_reported(self, model_config_file: Path) -> None:
        result = _run_cli(
            "build", "--config", str(model_config_file), "--preset", "mobilenet_v2", "--dry-run"
        )
        assert result.returncode == 0, result.stdout + result.stderr
        warning = _event(result, "preset_overrides_config")
        assert warning["level"] == "WARNING"
        assert warning["preset"] == "mobilenet_v2"
        assert warning["ignored_architecture"] == "resnet18"
        assert _event(result, "build_started")["architecture"] == "mobilenet_v2"
