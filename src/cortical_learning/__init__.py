"""
Cortical Learning Algorithm.

A biologically-inspired online learning model converting a stream of binary
input vectors into sparse distributed representations. A region learns
spatial structure (spatial pooling) and temporal sequences (temporal
pooling) without supervision.

This package provides:
- The region, column, cell, dendrite segment and synapse model
- Configuration schemas with a clamp-or-default validation policy
- A byte codec and TCP dispatcher for chaining regions across processes
- Command-line tools for running a node and benchmarking a region
"""

__version__ = "0.1.0"

from .configs.schema import NodeConfig, RegionConfig, SystemConfig
from .core.region import Region

__all__ = [
    "NodeConfig",
    "Region",
    "RegionConfig",
    "SystemConfig",
]
