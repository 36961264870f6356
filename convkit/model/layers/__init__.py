# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Reusable layer implementations for convkit.

The norm/ and activation/ subpackages register themselves with the layer
registry on import. The remaining modules (conv, drop, squeeze_excite,
connections) are plain building blocks used by the block constructors.
"""
