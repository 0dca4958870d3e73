"""
A network node: one region behind a dispatcher.

Inbound messages are split into input frames, each frame is ticked through
the region and each output is forwarded to the parent node.
"""

import logging
import signal
from typing import Callable, List, Optional

from ..configs.schema import SystemConfig
from ..core.region import Region
from .codec import decode_frames
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


def make_handler(region: Region) -> Callable[[bytes], List[bytes]]:
    """
    Build a dispatcher handler ticking ``region`` once per input frame.

    Malformed messages are logged and dropped.
    """

    def handle(payload: bytes) -> List[bytes]:
        try:
            frames = decode_frames(payload, region.input_size)
        except ValueError as e:
            logger.error(f"Dropping message: {e}")
            return []

        return [region.tick(bits) for bits in frames]

    return handle


def run_node(
    config: SystemConfig,
    region: Optional[Region] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> int:
    """
    Run a node until interrupted.

    Args:
        config: System configuration
        region: Region to use, built from ``config.region`` when omitted
        dispatcher: Dispatcher to use, built from ``config.node`` when omitted

    Returns:
        Number of messages handled
    """
    region = region or Region(config.region)
    dispatcher = dispatcher or Dispatcher(
        config.node.host,
        config.node.port,
        config.node.parent_host,
        config.node.parent_port,
        backlog=config.node.backlog,
    )

    def _stop(signum, frame) -> None:
        logger.info("Stopping nicely...")
        dispatcher.stop()

    previous_handler = signal.signal(signal.SIGINT, _stop)
    try:
        handled = dispatcher.run(make_handler(region))
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    logger.info(f"Bye. {handled} messages handled over {region.iteration} ticks")
    return handled
