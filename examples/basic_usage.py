#!/usr/bin/env python3
"""
Example usage script for the Cortical Learning Algorithm.

This script demonstrates how to:
1. Create a region configuration
2. Feed a repeating sequence of input patterns through a region
3. Inspect winning columns and region metrics
4. Enable the temporal pooling stage

Run with: python examples/basic_usage.py
"""

import logging

import numpy as np

from cortical_learning import Region, RegionConfig
from cortical_learning.utils.logging import setup_logging
from cortical_learning.utils.metrics import region_metrics

setup_logging(level="INFO", format_type="simple")
logger = logging.getLogger(__name__)


def make_patterns(input_size: int, count: int, density: float, seed: int) -> np.ndarray:
    """Random binary patterns used as a repeating sequence."""
    rng = np.random.default_rng(seed)
    return (rng.random((count, input_size)) < density).astype(np.uint8)


def demonstrate_spatial_pooling() -> None:
    logger.info("=== Spatial pooling ===")

    config = RegionConfig(
        column_width=8,
        column_height=8,
        input_width=16,
        input_height=16,
        cells_per_column=4,
        seed=42,
    )
    region = Region(config)
    patterns = make_patterns(region.input_size, 4, 0.3, seed=7)

    for epoch in range(5):
        for pattern in patterns:
            region.tick(pattern)
        winners = [(c.x, c.y) for c in region.active_columns]
        logger.info(f"epoch {epoch}: {len(winners)} winning columns for last pattern")

    for key, value in region_metrics(region).items():
        logger.info(f"  {key}: {value}")


def demonstrate_temporal_pooling() -> None:
    logger.info("=== Temporal pooling ===")

    config = RegionConfig(
        column_width=8,
        column_height=8,
        input_width=16,
        input_height=16,
        cells_per_column=4,
        segment_activation_threshold=2,
        new_synapse_count=4,
        temporal_pooling=True,
        seed=42,
    )
    region = Region(config)
    patterns = make_patterns(region.input_size, 3, 0.3, seed=11)

    for epoch in range(10):
        for pattern in patterns:
            output = region.tick(pattern)
        metrics = region_metrics(region)
        logger.info(
            f"epoch {epoch}: output {len(output)} bytes, "
            f"{metrics['predictive_cells']} predictive cells, "
            f"{metrics['distal_segments']} distal segments"
        )


if __name__ == "__main__":
    demonstrate_spatial_pooling()
    demonstrate_temporal_pooling()
