"""
Configuration loading for the Cortical Learning Algorithm.

YAML files are loaded into an OmegaConf tree so that command-line overrides
can be merged with dotted keys before validation.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from omegaconf import OmegaConf

from .schema import SystemConfig

logger = logging.getLogger(__name__)


def load_system_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> SystemConfig:
    """
    Load a configuration file and apply overrides.

    Args:
        config_path: Path to a YAML configuration file, or None for defaults
        overrides: Mapping of dotted keys (e.g. ``"region.seed"``) to values;
            None values are ignored

    Returns:
        Validated SystemConfig

    Raises:
        ValueError: If the resulting configuration is invalid
    """
    config_dict: Dict[str, Any] = {}
    if config_path is not None:
        with open(config_path) as f:
            config_dict = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")

    cfg = OmegaConf.create(config_dict)

    for key, value in (overrides or {}).items():
        if value is not None:
            OmegaConf.update(cfg, key, value, merge=True)
            logger.debug(f"Override {key}={value!r}")

    try:
        return SystemConfig(**OmegaConf.to_container(cfg, resolve=True))
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}") from e
