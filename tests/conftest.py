# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for convkit tests.

Fixtures here are available to every test file automatically.
"""

import logging
import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger() -> None:
    """
    Drop handlers that bootstrap or get_logger attached to the package logger,
    so a handler bound to one test's captured stdout never leaks into the next.
    """
    yield  # type: ignore[misc]
    logger = logging.getLogger("convkit")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation: a global section only."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "convkit-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def model_config_file(tmp_path: Path) -> Path:
    """A config that selects a small ResNet with non-default options."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "convkit-test"
          seed: 7
          log_level: "INFO"
        model:
          config_version: "1.0.0"
          architecture: "resnet18"
          num_classes: 10
          drop_path_rate: 0.1
          shortcut_config: ["A", "B", "B", "C"]
          input_size: 64
    """)
    config_file = tmp_path / "model_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "convkit-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
