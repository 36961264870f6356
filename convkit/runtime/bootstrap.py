# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for convkit.

Every CLI command runs this before building anything:
  1. Validate the environment (Python version)
  2. Set deterministic seeds
  3. Configure the package logger

Weight initialization uses its own seeded generator, so seeding here covers
the remaining random sources (dropout masks, drop-path draws, dummy inputs).
"""

import logging
import os
import random
from pathlib import Path

import torch

from convkit.config.schema import GlobalConfig
from convkit.logging.logger import get_logger
from convkit.runtime.environment import check_minimum_python, get_system_info


def set_deterministic_seed(seed: int) -> None:
    """
    Seed Python's ``random``, ``PYTHONHASHSEED`` and torch (CPU and CUDA).

    Args:
        seed: Integer seed value. Must be >= 0.
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)

    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False


def bootstrap(config: GlobalConfig) -> logging.Logger:
    """
    Put the process into a known state and return the package logger.

    Args:
        config: The validated global configuration.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file is not None else None
    logger = get_logger("convkit", log_level=config.log_level, log_file=log_file)

    system_info = get_system_info()
    logger.info(
        "bootstrap_complete",
        extra={
            "project_name": config.project_name,
            "seed": config.seed,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "platform": system_info.platform,
            "cuda_available": system_info.cuda_available,
        },
    )
    return logger
