"""
TCP Server Module

Line-oriented TCP front end for an OperationService.

One connection is served at a time: the server reads a request line,
dispatches it, writes the reply line, and repeats until the client sends
the exit operation or hangs up. Only then is the next connection
accepted. An I/O failure, or any other error while serving a client,
drops the current connection; the ledger lives on for the next client.
"""

import logging
import socket
from typing import Optional, Tuple

from ..service.operations import OperationService


logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 5
ENCODING = "utf-8"


class TransportFailure(ConnectionError):
    """Raised when reading from or writing to a connection fails."""
    pass


class BlockchainServer:
    """
    Serves one client connection at a time over TCP.

    Usage:
        server = BlockchainServer(service, "localhost", 6789)
        server.serve_forever()
    """

    def __init__(self, service: OperationService, host: str, port: int):
        self.service = service
        self.host = host
        self.port = port
        self._socket: Optional[socket.socket] = None
        self._running = False

    @property
    def server_address(self) -> Tuple[str, int]:
        """Address actually bound (port is real even if 0 was requested)."""
        if self._socket is None:
            return (self.host, self.port)
        return self._socket.getsockname()[:2]

    def bind(self) -> None:
        """Open the listening socket."""
        if self._socket is not None:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
            sock.listen(LISTEN_BACKLOG)
        except OSError:
            sock.close()
            raise
        self._socket = sock
        logger.info("Blockchain server running on %s:%d", *self.server_address)

    def serve_forever(self) -> None:
        """Accept and serve connections until shutdown() is called."""
        self.bind()
        self._running = True
        while self._running:
            listener = self._socket
            if listener is None:
                break
            try:
                conn, addr = listener.accept()
            except OSError:
                if not self._running:
                    break
                raise
            logger.info("We have a visitor: %s:%d", *addr[:2])
            try:
                self.handle_connection(conn)
            except TransportFailure as e:
                logger.error("Connection from %s:%d failed: %s", addr[0], addr[1], e)
            except Exception:
                # The ledger outlives any single session
                logger.exception("Unexpected error serving %s:%d", *addr[:2])
            logger.info("Connection from %s:%d closed", *addr[:2])

    def handle_connection(self, conn: socket.socket) -> None:
        """
        Serve one client until it exits or disconnects.

        Raises:
            TransportFailure: On socket errors or undecodable bytes
        """
        try:
            with conn, \
                    conn.makefile('r', encoding=ENCODING, newline='\n') as reader, \
                    conn.makefile('w', encoding=ENCODING, newline='\n') as writer:
                for line in reader:
                    if not line.strip():
                        continue
                    reply, keep_session = self.service.handle_line(line)
                    writer.write(reply + '\n')
                    writer.flush()
                    if not keep_session:
                        break
        except (OSError, UnicodeDecodeError) as e:
            raise TransportFailure(str(e)) from e

    def shutdown(self) -> None:
        """Stop accepting connections and close the listening socket."""
        self._running = False
        if self._socket is not None:
            try:
                # Wakes up a thread blocked in accept()
                self._socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._socket.close()
            self._socket = None

    def __enter__(self) -> 'BlockchainServer':
        self.bind()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
