# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions raised while loading build configs.

Kept apart from the loader so the CLI can catch config failures without
pulling in pydantic or yaml.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """The config file is missing, unreadable, or not a YAML mapping."""


class ConfigValidationError(ConfigError):
    """
    The YAML parsed but does not match the schema: a required field is
    missing, a value has the wrong type or range, an architecture name is
    unknown, or an unexpected key is present.
    """


class ConfigSchemaError(ConfigError):
    """A config section a command needs is absent from an otherwise valid file."""
