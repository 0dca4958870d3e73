"""
TCP dispatcher moving opaque byte buffers between chained regions.

Each inbound connection carries one message, read until the peer closes
its side. The handler turns the message into zero or more outputs, each
sent to the parent node on a fresh connection. A failing peer, inbound
or parent, is logged and skipped without stopping the listener.
"""

import logging
import socket
from typing import Callable, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

Handler = Callable[[bytes], Iterable[bytes]]


class Dispatcher:
    """
    Blocking TCP listener forwarding handler outputs to a parent node.

    Attributes:
        host, port: Address to listen on (port 0 picks a free port)
        parent_host, parent_port: Address outputs are forwarded to
    """

    def __init__(
        self,
        host: str,
        port: int,
        parent_host: str,
        parent_port: int,
        backlog: int = 16,
        poll_interval: float = 0.5,
        timeout: Optional[float] = 10.0,
    ):
        self.host = host
        self.port = port
        self.parent_host = parent_host
        self.parent_port = parent_port
        self.backlog = backlog
        self.poll_interval = poll_interval
        self.timeout = timeout

        self._server: Optional[socket.socket] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Address the dispatcher listens on, once bound."""
        if self._server is None:
            return self.host, self.port
        return self._server.getsockname()[:2]

    def bind(self) -> Tuple[str, int]:
        """Open the listening socket, return the bound address."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server.bind((self.host, self.port))
            server.listen(self.backlog)
        except OSError:
            server.close()
            raise
        # Wake up regularly so that stop() is honored.
        server.settimeout(self.poll_interval)
        self._server = server

        logger.info(f"Listening on {self.address[0]}:{self.address[1]}")
        return self.address

    def run(self, handler: Handler, max_messages: Optional[int] = None) -> int:
        """
        Serve messages until :meth:`stop` is called.

        Args:
            handler: Turns an inbound message into outbound messages
            max_messages: Stop after this many non-empty messages

        Returns:
            Number of messages handled
        """
        if self._server is None:
            self.bind()

        self._running = True
        handled = 0
        try:
            while self._running:
                try:
                    client, peer = self._server.accept()
                except socket.timeout:
                    continue

                try:
                    with client:
                        client.settimeout(self.timeout)
                        payload = self._receive(client)
                except OSError as e:
                    logger.error(f"Failed to receive from {peer[0]}:{peer[1]}: {e}")
                    continue

                if not payload:
                    continue

                logger.debug(f"Received {len(payload)} bytes from {peer[0]}:{peer[1]}")
                for output in handler(payload):
                    try:
                        self.send(output)
                    except OSError as e:
                        logger.error(
                            f"Failed to forward {len(output)} bytes to "
                            f"{self.parent_host}:{self.parent_port}: {e}"
                        )

                handled += 1
                if max_messages is not None and handled >= max_messages:
                    break
        finally:
            self._running = False
            self.close()

        return handled

    @staticmethod
    def _receive(client: socket.socket) -> bytes:
        chunks = []
        while True:
            chunk = client.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)

    def send(self, data: bytes) -> None:
        """Send one message to the parent node."""
        with socket.create_connection(
            (self.parent_host, self.parent_port), timeout=self.timeout
        ) as sender:
            sender.sendall(data)
        logger.debug(f"Sent {len(data)} bytes to {self.parent_host}:{self.parent_port}")

    def stop(self) -> None:
        """Stop serving after the current message."""
        self._running = False

    def close(self) -> None:
        if self._server is not None:
            self._server.close()
            self._server = None
