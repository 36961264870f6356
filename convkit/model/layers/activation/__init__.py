# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Activation layer registrations.

The activations used by the catalog are the stock torch modules; this
package only maps their config-level names. "swish" is an alias of "silu"
as used in the EfficientNet papers.
"""

import torch.nn as nn

from convkit.model.registry import register_activation

_BUILTIN_ACTIVATIONS: dict[str, type[nn.Module]] = {
    "relu": nn.ReLU,
    "relu6": nn.ReLU6,
    "hardswish": nn.Hardswish,
    "hardsigmoid": nn.Hardsigmoid,
    "sigmoid": nn.Sigmoid,
    "silu": nn.SiLU,
    "swish": nn.SiLU,
    "gelu": nn.GELU,
    "identity": nn.Identity,
}

for _name, _cls in _BUILTIN_ACTIVATIONS.items():
    register_activation(_name, _cls)
