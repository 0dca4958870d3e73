"""
Configuration schemas for the Cortical Learning Algorithm.

This module defines Pydantic models for region, node and system
configuration. Region options follow a "never crash on bad config" policy:
out-of-range numeric values are replaced by their documented default and a
warning is logged. A fail-fast mode is available through
:meth:`RegionConfig.build`.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

# Fallback used when synapses_per_segment is out of range, distinct from
# the field default.
SYNAPSES_PER_SEGMENT_FALLBACK = 0.2


def _is_strict(info: ValidationInfo) -> bool:
    return bool(info.context and info.context.get("strict"))


def _bounded(
    value: Any,
    info: ValidationInfo,
    default: Any,
    cast: Callable[[Any], Any],
    lower: float,
    upper: Optional[float] = None,
) -> Any:
    """Return ``value`` cast and range checked, or ``default`` if invalid."""
    try:
        number = cast(value)
    except (TypeError, ValueError):
        number = None

    if number is not None and number >= lower and (upper is None or number <= upper):
        return number

    bounds = f"[{lower}, {upper}]" if upper is not None else f">= {lower}"
    if _is_strict(info):
        raise ValueError(f"{info.field_name}={value!r} is outside {bounds}")

    logger.warning(
        f"{info.field_name}={value!r} is outside {bounds}, using default {default!r}"
    )
    return default


class RegionConfig(BaseModel):
    """Configuration of a single region and of every entity it owns.

    The instance is immutable and shared by reference between the region,
    its columns, cells, segments and synapses, so that several regions can
    coexist with different thresholds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Geometry
    column_width: int = 32
    column_height: int = 32
    input_width: int = 64
    input_height: int = 64

    # Spatial pooler fractions
    min_overlap: float = 0.1
    synapses_per_segment: float = 0.15
    desired_local_activity: float = 0.3

    # Temporal pooler
    cells_per_column: int = 20
    segment_activation_threshold: int = 15
    segment_min_threshold: int = Field(1, validate_default=True)
    new_synapse_count: int = 5

    # Synapses
    synapse_permanence_threshold: float = 0.2
    synapse_permanence_increment: float = 0.015
    synapse_permanence_decrement: float = 0.005
    synapse_initial_permanence: float = 0.3

    # Pipeline stages
    spatial_learning: bool = True
    temporal_learning: bool = True
    temporal_pooling: bool = False

    # Reproducibility
    seed: Optional[int] = None

    @field_validator(
        "column_width", "column_height", "input_width", "input_height", "cells_per_column",
        mode="before",
    )
    @classmethod
    def validate_dimension(cls, v: Any, info: ValidationInfo) -> int:
        """Dimensions must be positive integers."""
        return _bounded(v, info, cls.model_fields[info.field_name].default, int, 1)

    @field_validator("min_overlap", "desired_local_activity", mode="before")
    @classmethod
    def validate_fraction(cls, v: Any, info: ValidationInfo) -> float:
        """Fractions must lie in [0, 1]."""
        return _bounded(v, info, cls.model_fields[info.field_name].default, float, 0.0, 1.0)

    @field_validator("synapses_per_segment", mode="before")
    @classmethod
    def validate_synapses_per_segment(cls, v: Any, info: ValidationInfo) -> float:
        return _bounded(v, info, SYNAPSES_PER_SEGMENT_FALLBACK, float, 0.0, 1.0)

    @field_validator(
        "segment_activation_threshold", "segment_min_threshold", "new_synapse_count",
        mode="before",
    )
    @classmethod
    def validate_count(cls, v: Any, info: ValidationInfo) -> int:
        """Synapse counts must be non-negative integers."""
        return _bounded(v, info, cls.model_fields[info.field_name].default, int, 0)

    @field_validator(
        "synapse_permanence_threshold",
        "synapse_permanence_increment",
        "synapse_permanence_decrement",
        "synapse_initial_permanence",
        mode="before",
    )
    @classmethod
    def validate_permanence(cls, v: Any, info: ValidationInfo) -> float:
        """Permanence values must lie in [0, 1]."""
        return _bounded(v, info, cls.model_fields[info.field_name].default, float, 0.0, 1.0)

    @field_validator("segment_min_threshold", mode="after")
    @classmethod
    def clamp_min_threshold(cls, v: int, info: ValidationInfo) -> int:
        """Keep ``segment_min_threshold <= segment_activation_threshold``."""
        activation = info.data.get("segment_activation_threshold")
        if activation is not None and v > activation:
            logger.debug(f"segment_min_threshold {v} clamped to {activation}")
            return activation
        return v

    @classmethod
    def build(cls, strict: bool = False, **options: Any) -> "RegionConfig":
        """
        Create a configuration from keyword options.

        Args:
            strict: Raise a ``ValidationError`` for out-of-range values
                instead of replacing them with defaults
            **options: Region options

        Returns:
            Validated RegionConfig
        """
        return cls.model_validate(options, context={"strict": strict})

    def with_activation_threshold(self, value: int) -> "RegionConfig":
        """Return a copy with a new activation threshold, never below min_threshold."""
        value = max(int(value), self.segment_min_threshold)
        return self.model_copy(update={"segment_activation_threshold": value})

    def with_min_threshold(self, value: int) -> "RegionConfig":
        """Return a copy with a new min threshold, never above activation_threshold."""
        value = max(0, min(int(value), self.segment_activation_threshold))
        return self.model_copy(update={"segment_min_threshold": value})

    @property
    def size(self) -> int:
        """Number of columns."""
        return self.column_width * self.column_height

    @property
    def input_size(self) -> int:
        """Number of input bits."""
        return self.input_width * self.input_height


class NodeConfig(BaseModel):
    """Configuration of a dispatcher node forwarding region outputs upstream."""

    host: str = "localhost"
    port: int = Field(5001, ge=1, le=65535)
    parent_host: str = "localhost"
    parent_port: int = Field(5002, ge=1, le=65535)
    backlog: int = Field(16, ge=1)


class SystemConfig(BaseModel):
    """Main configuration combining region and node settings."""

    region: RegionConfig = Field(default_factory=RegionConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)

    # Experiment metadata
    experiment_name: str = "cortical_learning"

    # Logging
    log_level: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_dir: Optional[Path] = None

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
