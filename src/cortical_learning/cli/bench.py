"""
Benchmark CLI for the Cortical Learning Algorithm.

Ticks a region over random input vectors and reports the time per tick
together with summary metrics of the region.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click
import numpy as np
from tqdm import tqdm

from ..configs.loader import load_system_config
from ..core.region import Region
from ..utils.logging import MetricsLogger, setup_logging
from ..utils.metrics import region_metrics

logger = logging.getLogger(__name__)


def run_benchmark(
    region: Region,
    iterations: int,
    density: float = 0.5,
    seed: Optional[int] = None,
    metrics_logger: Optional[MetricsLogger] = None,
    progress: bool = True,
) -> dict:
    """
    Tick ``region`` over random inputs.

    Args:
        region: Region to benchmark
        iterations: Number of ticks
        density: Probability of each input bit being set
        seed: Seed of the input generator
        metrics_logger: Optional CSV sink for per-tick metrics
        progress: Whether to display a progress bar

    Returns:
        Final region metrics plus timing information
    """
    rng = np.random.default_rng(seed)
    inputs = (rng.random((iterations, region.input_size)) < density).astype(np.uint8)

    start = time.perf_counter()
    for bits in tqdm(inputs, desc="ticks", disable=not progress):
        region.tick(bits)
        if metrics_logger is not None:
            metrics_logger.log_metrics_dict(region.iteration, region_metrics(region))
    elapsed = time.perf_counter() - start

    results = region_metrics(region)
    results["seconds"] = elapsed
    results["seconds_per_tick"] = elapsed / iterations if iterations else 0.0
    return results


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)"
)
@click.option(
    "--iterations",
    "-n",
    type=int,
    default=10,
    show_default=True,
    help="Number of ticks"
)
@click.option(
    "--density",
    type=click.FloatRange(0.0, 1.0),
    default=0.5,
    show_default=True,
    help="Probability of each input bit being set"
)
@click.option(
    "--temporal-pooling/--no-temporal-pooling",
    default=None,
    help="Enable or disable the temporal pooling stage"
)
@click.option(
    "--seed",
    type=int,
    help="Random seed for reproducibility"
)
@click.option(
    "--metrics-file",
    type=click.Path(path_type=Path),
    help="Write per-tick metrics to this CSV file"
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode"
)
def bench(
    config: Optional[Path] = None,
    iterations: int = 10,
    density: float = 0.5,
    temporal_pooling: Optional[bool] = None,
    seed: Optional[int] = None,
    metrics_file: Optional[Path] = None,
    debug: bool = False,
) -> None:
    """
    Benchmark region ticks over random inputs.
    """
    try:
        system_config = load_system_config(
            config,
            {
                "region.temporal_pooling": temporal_pooling,
                "region.seed": seed,
            },
        )

        setup_logging(
            level="DEBUG" if debug else system_config.log_level,
            log_dir=system_config.log_dir,
            experiment_name=system_config.experiment_name,
        )

        region = Region(system_config.region)
        metrics_logger = MetricsLogger(metrics_file) if metrics_file else None

        results = run_benchmark(
            region,
            iterations,
            density=density,
            seed=seed,
            metrics_logger=metrics_logger,
        )

        for key, value in results.items():
            if isinstance(value, float):
                click.echo(f"{key}: {value:.4f}")
            else:
                click.echo(f"{key}: {value}")

    except Exception as e:
        logger.error(f"Benchmark failed: {e}")
        if debug:
            raise
        sys.exit(1)


def main() -> None:
    """Main entry point for the benchmark CLI."""
    bench()


if __name__ == "__main__":
    main()
