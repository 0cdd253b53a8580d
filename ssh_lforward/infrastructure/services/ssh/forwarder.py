"""
Per-connection SSH forwarder.

Each accepted inbound connection gets its own SSH session to the server
endpoint and its own direct-tcpip channel to the remote endpoint. Nothing
is shared between connections, so no locking is needed here.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import asyncssh

from ....core.domain.tunnel import DEFAULT_BUFFER_SIZE, Endpoint
from ....core.exceptions import ChannelOpenError, RelayError, SSHDialError
from ....core.interfaces.ssh import IConnectionForwarder

logger = logging.getLogger(__name__)


def format_peer(peername: Any) -> str:
    """Render a socket peer address as host:port."""
    if isinstance(peername, (tuple, list)) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


class ConnectionForwarder(IConnectionForwarder):
    """
    Bridges one inbound TCP connection to the remote endpoint through a
    fresh SSH session.

    A clean EOF in one relay direction half-closes the opposite side and
    lets the other direction drain. An error in either direction cancels
    the other one. Once both directions are done the inbound socket, the
    channel and the SSH session are closed.
    """

    def __init__(
        self,
        server: Endpoint,
        remote: Endpoint,
        client_options: Dict[str, Any],
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        connect_timeout: Optional[float] = None
    ):
        """
        Initialize the forwarder.

        Args:
            server: SSH server endpoint
            remote: Endpoint the server dials for each channel
            client_options: Resolved ``asyncssh.connect`` kwargs
            buffer_size: Maximum bytes read per relay step
            connect_timeout: SSH connect deadline in seconds, None for none
        """
        self._server = server
        self._remote = remote
        self._client_options = dict(client_options)
        self._buffer_size = buffer_size
        self._connect_timeout = connect_timeout

    @property
    def server(self) -> Endpoint:
        return self._server

    @property
    def remote(self) -> Endpoint:
        return self._remote

    async def forward(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        """Forward one inbound connection until both directions finish."""
        peer = format_peer(writer.get_extra_info('peername'))

        try:
            connection = await self._dial()
        except SSHDialError as e:
            logger.error(f"Server dial error for {peer}: {e}")
            await self._close_stream(writer)
            return

        try:
            try:
                remote_reader, remote_writer = await self._open_channel(connection)
            except ChannelOpenError as e:
                logger.error(f"Remote dial error for {peer}: {e}")
                return

            try:
                await self._relay(peer, reader, writer, remote_reader, remote_writer)
            finally:
                remote_writer.close()
        finally:
            await self._close_stream(writer)
            connection.close()
            await connection.wait_closed()
            logger.debug(f"Closed forwarded connection from {peer}")

    async def _dial(self) -> asyncssh.SSHClientConnection:
        """Open an SSH session to the server endpoint."""
        try:
            return await asyncio.wait_for(
                asyncssh.connect(
                    self._server.host, self._server.port, **self._client_options),
                timeout=self._connect_timeout
            )
        except asyncio.TimeoutError as e:
            raise SSHDialError(
                f"Timed out connecting to {self._server}",
                str(self._server)
            ) from e
        except (OSError, asyncssh.Error) as e:
            raise SSHDialError(
                f"Cannot connect to {self._server}: {e}", str(self._server)) from e

    async def _open_channel(
        self,
        connection: asyncssh.SSHClientConnection
    ) -> Tuple[asyncssh.SSHReader, asyncssh.SSHWriter]:
        """Open a direct-tcpip channel from the server to the remote endpoint."""
        try:
            return await connection.open_connection(self._remote.host, self._remote.port)
        except (OSError, asyncssh.Error) as e:
            raise ChannelOpenError(
                f"Cannot open channel to {self._remote}: {e}", str(self._remote)) from e

    async def _relay(
        self,
        peer: str,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        remote_reader: asyncssh.SSHReader,
        remote_writer: asyncssh.SSHWriter
    ) -> None:
        """Copy bytes in both directions concurrently."""
        tasks = [
            asyncio.ensure_future(
                self._pipe(reader, remote_writer, f"{peer} -> {self._remote}")),
            asyncio.ensure_future(
                self._pipe(remote_reader, writer, f"{self._remote} -> {peer}")),
        ]

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            results = await asyncio.gather(*tasks, return_exceptions=True)

        for result in results:
            if isinstance(result, RelayError):
                logger.error(f"Relay error: {result}")
            elif isinstance(result, Exception):
                logger.error(f"Unexpected relay failure for {peer}: {result!r}")

    async def _pipe(self, source: Any, sink: Any, direction: str) -> int:
        """
        Copy from source to sink until EOF, then half-close the sink.

        Returns:
            Number of bytes copied

        Raises:
            RelayError: If reading or writing fails
        """
        total = 0

        try:
            while True:
                data = await source.read(self._buffer_size)
                if not data:
                    break

                sink.write(data)
                await sink.drain()
                total += len(data)

            if sink.can_write_eof():
                sink.write_eof()
        except (OSError, asyncssh.Error) as e:
            raise RelayError(f"{direction}: {e}", direction) from e

        logger.debug(f"Relay {direction} finished after {total} bytes")
        return total

    async def _close_stream(self, writer: asyncio.StreamWriter) -> None:
        """Close the inbound connection, ignoring errors from a dead peer."""
        if writer.is_closing():
            return

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing inbound connection: {e}")
