"""
Metrics Utilities for the Cortical Learning Algorithm.

Summaries of a region's state, used for logging and benchmarking.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from ..core.region import Region

logger = logging.getLogger(__name__)


def sparsity(bits: np.ndarray) -> float:
    """Fraction of set bits, 0.0 for an empty vector."""
    bits = np.asarray(bits)
    if bits.size == 0:
        return 0.0
    return float(np.count_nonzero(bits)) / bits.size


def region_metrics(region: Region) -> Dict[str, float]:
    """
    Compute summary metrics for the current state of a region.

    Args:
        region: The region to summarize

    Returns:
        Dictionary of metric names to values
    """
    boosts = np.array([column.boost for column in region.columns])
    active_cycles = np.array([column.active_duty_cycle for column in region.columns])
    overlap_cycles = np.array([column.overlap_duty_cycle for column in region.columns])

    active_cells = sum(1 for cell in region.cells if cell.active)
    predictive_cells = sum(1 for cell in region.cells if cell.predictive)
    connected = sum(len(column.connected_synapses()) for column in region.columns)
    segments = sum(len(cell) for cell in region.cells)

    active_columns = sum(1 for column in region.columns if column.active)

    return {
        "iteration": region.iteration,
        "active_columns": active_columns,
        "column_sparsity": active_columns / len(region.columns),
        "active_cells": active_cells,
        "predictive_cells": predictive_cells,
        "output_density": sparsity(region.output_bits()),
        "mean_boost": float(boosts.mean()),
        "max_boost": float(boosts.max()),
        "mean_active_duty_cycle": float(active_cycles.mean()),
        "max_active_duty_cycle": float(active_cycles.max()),
        "mean_overlap_duty_cycle": float(overlap_cycles.mean()),
        "connected_proximal_synapses": connected,
        "distal_segments": segments,
        "inhibition_radius": float(region.inhibition_radius),
        "desired_local_activity": region.desired_local_activity,
    }


def overlap_histogram(region: Region, bins: int = 10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Histogram of the last computed column overlaps.

    Args:
        region: The region to summarize
        bins: Number of histogram bins

    Returns:
        Tuple of (counts, bin_edges)
    """
    overlaps = np.array([column.overlap for column in region.columns], dtype=float)
    return np.histogram(overlaps, bins=bins)
