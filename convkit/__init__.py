# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
convkit: convolutional network architectures assembled from reusable blocks.
"""

__version__ = "0.1.0"
