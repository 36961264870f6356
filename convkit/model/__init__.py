# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
convkit model architecture package.

Convolutional classifiers assembled from reusable blocks:
  - ResNet (basic / bottleneck residual blocks, A/B/C shortcut styles)
  - ConvNeXt (depthwise 7x7 blocks, LayerScale, stochastic depth)
  - MobileNet V1/V2/V3 and EfficientNet V1/V2 (inverted-residual stacks)

Every architecture is a backbone followed by a classifier head, built from
the static tables in config.py.
"""
