# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Process exit codes returned by ``convkit`` subcommands.

  SUCCESS           command finished
  USER_ERROR        bad command line (missing subcommand, missing preset)
  CONFIG_ERROR      config file could not be loaded or validated
  RUNTIME_ERROR     unexpected failure while building or running a model
  VALIDATION_ERROR  well-formed request the model builders rejected
"""

SUCCESS: int = 0
USER_ERROR: int = 1
CONFIG_ERROR: int = 2
RUNTIME_ERROR: int = 3
VALIDATION_ERROR: int = 4
