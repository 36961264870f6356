# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Deterministic parameter initialization."""
