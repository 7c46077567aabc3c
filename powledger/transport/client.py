"""
TCP Client Module

Persistent connection to a BlockchainServer. Each call() writes one
request line and blocks until the matching reply line arrives.
"""

import socket
from typing import Optional

from ..service.messages import Request, Response, encode_request, decode_response
from .server import TransportFailure, ENCODING


class RemoteClient:
    """
    Client side of the ledger protocol.

    Usage:
        with RemoteClient("localhost", 6789) as client:
            status = client.call(StatusRequest())
    """

    def __init__(self, host: str, port: int, timeout: Optional[float] = None):
        """
        Args:
            host: Server host
            port: Server port
            timeout: Socket timeout in seconds; None waits as long as
                mining takes
        """
        self.host = host
        self.port = port
        self.timeout = timeout
        self._socket: Optional[socket.socket] = None
        self._reader = None
        self._writer = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        """
        Open the connection if it is not open yet.

        Raises:
            TransportFailure: If the server cannot be reached
        """
        if self._socket is not None:
            return
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
        except OSError as e:
            raise TransportFailure(
                f"Cannot connect to {self.host}:{self.port}: {e}"
            ) from e
        self._socket = sock
        self._reader = sock.makefile('r', encoding=ENCODING, newline='\n')
        self._writer = sock.makefile('w', encoding=ENCODING, newline='\n')

    def call(self, request: Request) -> Response:
        """
        Send a request and wait for its response.

        Raises:
            TransportFailure: On socket errors or if the server hangs up
            MalformedResponse: If the reply cannot be decoded
        """
        self.connect()
        try:
            self._writer.write(encode_request(request) + '\n')
            self._writer.flush()
            line = self._reader.readline()
        except (OSError, UnicodeDecodeError) as e:
            self.close()
            raise TransportFailure(str(e)) from e

        if not line:
            self.close()
            raise TransportFailure("Server closed the connection")
        return decode_response(line)

    def close(self) -> None:
        """Close the connection (safe to call more than once)."""
        for stream in (self._writer, self._reader):
            if stream is not None:
                try:
                    stream.close()
                except OSError:
                    pass  # Peer already gone
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._reader = None
        self._writer = None

    def __enter__(self) -> 'RemoteClient':
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
