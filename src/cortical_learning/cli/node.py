"""
Node CLI for the Cortical Learning Algorithm.

Runs a region behind a TCP dispatcher: inbound byte messages are ticked
through the region and outputs are forwarded to a parent node.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from ..configs.loader import load_system_config
from ..network.node import run_node
from ..utils.logging import setup_logging

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)"
)
@click.option(
    "--host",
    type=str,
    help="Override listening host"
)
@click.option(
    "--port",
    "-p",
    type=int,
    help="Override listening port"
)
@click.option(
    "--parent-host",
    type=str,
    help="Override parent node host"
)
@click.option(
    "--parent-port",
    type=int,
    help="Override parent node port"
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
    "--debug",
    is_flag=True,
    help="Enable debug mode"
)
def node(
    config: Optional[Path] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    parent_host: Optional[str] = None,
    parent_port: Optional[int] = None,
    temporal_pooling: Optional[bool] = None,
    seed: Optional[int] = None,
    debug: bool = False,
) -> None:
    """
    Run a region node.

    The node listens for input messages, ticks the region once per input
    frame and forwards every output to the parent node. Stop it with
    Ctrl-C.
    """
    try:
        system_config = load_system_config(
            config,
            {
                "node.host": host,
                "node.port": port,
                "node.parent_host": parent_host,
                "node.parent_port": parent_port,
                "region.temporal_pooling": temporal_pooling,
                "region.seed": seed,
            },
        )

        setup_logging(
            level="DEBUG" if debug else system_config.log_level,
            log_dir=system_config.log_dir,
            experiment_name=system_config.experiment_name,
        )

        click.echo(
            f"Starting node on {system_config.node.host}:{system_config.node.port}, "
            f"parent {system_config.node.parent_host}:{system_config.node.parent_port}"
        )
        run_node(system_config)

    except Exception as e:
        logger.error(f"Node failed: {e}")
        if debug:
            raise
        sys.exit(1)


def main() -> None:
    """Main entry point for the node CLI."""
    node()


if __name__ == "__main__":
    main()
