# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for convkit.

Each YAML section gets its own frozen pydantic model:
  - frozen=True: immutable after construction
  - extra="forbid": unknown fields fail immediately
  - validate_default=True: defaults are type-checked too

A build config is a ``global:`` section plus an optional ``model:`` section.
Architecture-specific options left out of ``model:`` fall back to the
architecture's own defaults.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_SHORTCUT_STYLES = ("A", "B", "C")


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility (seed), observability
    (log_level, log_file) and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="convkit", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Seed for weight initialization and all random sources",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class ModelConfig(BaseModel):
    """
    Which catalog architecture to build and how to configure it.

    Options set to None are left to the architecture. The validator rejects
    options the chosen architecture does not take, so a bad combination fails
    at load time rather than at build time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    architecture: str = Field(
        description="Preset name, e.g. 'resnet50', 'convnext_tiny', 'efficientnet_b0'"
    )
    num_classes: int = Field(default=1000, ge=1, description="Classifier output width")
    in_channels: int = Field(default=3, ge=1, description="Input image channels")
    drop_path_rate: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Stochastic depth rate of the deepest block",
    )
    dropout: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Dropout before the final linear layer",
    )
    width_mult: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Channel width multiplier (MobileNet family)",
    )
    layerscale_init: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="Initial LayerScale value (ConvNeXt)",
    )
    shortcut_config: Optional[Union[str, list[str]]] = Field(
        default=None,
        description="ResNet shortcut style for all stages, or one per stage",
    )
    init_std: float = Field(
        default=0.01,
        gt=0.0,
        description="Standard deviation for linear layer initialization",
    )
    input_size: int = Field(
        default=224,
        ge=32,
        description="Spatial size of the dummy input used by 'convkit build'",
    )

    @field_validator("architecture")
    @classmethod
    def _known_architecture(cls, value: str) -> str:
        from convkit.model.factory import list_presets

        if value not in list_presets():
            raise ValueError(f"unknown architecture '{value}', available: {list_presets()}")
        return value

    @field_validator("shortcut_config")
    @classmethod
    def _known_shortcuts(
        cls, value: Optional[Union[str, list[str]]]
    ) -> Optional[Union[str, list[str]]]:
        if value is None:
            return value
        styles = [value] if isinstance(value, str) else value
        for style in styles:
            if style not in _SHORTCUT_STYLES:
                raise ValueError(
                    f"unknown shortcut style '{style}', use one of {list(_SHORTCUT_STYLES)}"
                )
        return value

    @model_validator(mode="after")
    def _options_supported(self) -> "ModelConfig":
        from convkit.model.factory import PRESETS

        names = ("drop_path_rate", "dropout", "width_mult", "layerscale_init", "shortcut_config")
        given = {name for name in names if getattr(self, name) is not None}
        unsupported = sorted(given - PRESETS[self.architecture].options)
        if unsupported:
            raise ValueError(
                f"options {unsupported} are not supported by '{self.architecture}'"
            )
        return self


class ConvKitConfig(BaseModel):
    """
    Top-level config container.

    A YAML file always has ``global:``. ``model:`` is optional so that the
    same file layout serves commands that do not build anything.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    model: Optional[ModelConfig] = Field(default=None)
