"""
Local accept loop for the tunnel.

The listener owns the only process-wide resource, the listening socket,
and is the only reader of it. Every accepted connection is handed to the
forwarder as an independent task so a stalled connection never blocks
the next accept.
"""

import asyncio
import logging
import socket
from typing import Optional, Set

from ....core.domain.tunnel import DEFAULT_BACKLOG, Endpoint
from ....core.exceptions import AcceptError, BindError
from ....core.interfaces.ssh import IConnectionForwarder, ITunnelListener
from .forwarder import format_peer

logger = logging.getLogger(__name__)


class TunnelListener(ITunnelListener):
    """Binds the local endpoint and dispatches accepted connections."""

    def __init__(
        self,
        local: Endpoint,
        forwarder: IConnectionForwarder,
        backlog: int = DEFAULT_BACKLOG
    ):
        self._local = local
        self._forwarder = forwarder
        self._backlog = backlog
        self._socket: Optional[socket.socket] = None
        self._bound: Optional[Endpoint] = None
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def bound_endpoint(self) -> Optional[Endpoint]:
        return self._bound

    @property
    def active_connections(self) -> int:
        """Number of connections currently being forwarded."""
        return len(self._tasks)

    def bind(self) -> Endpoint:
        """Bind the local endpoint; any failure is fatal."""
        if self._socket is not None and self._bound is not None:
            return self._bound

        family = socket.AF_INET6 if ":" in self._local.host else socket.AF_INET

        try:
            sock = socket.create_server(
                self._local.address, family=family, backlog=self._backlog)
        except (OSError, OverflowError) as e:
            raise BindError(f"Cannot bind {self._local}: {e}", str(self._local)) from e

        sock.setblocking(False)
        host, port = sock.getsockname()[:2]

        self._socket = sock
        self._bound = Endpoint(host, port)
        logger.info(f"Listening on {self._bound}")
        return self._bound

    async def serve_forever(self) -> None:
        """Accept connections until an accept error terminates the loop."""
        self.bind()
        sock = self._socket
        if sock is None:
            raise BindError(f"Listener for {self._local} is not bound", str(self._local))

        loop = asyncio.get_running_loop()

        try:
            while True:
                try:
                    conn, peername = await loop.sock_accept(sock)
                except OSError as e:
                    logger.error(f"Accept error on {self._bound}: {e}")
                    raise AcceptError(
                        f"Cannot accept on {self._bound}: {e}", str(self._bound)) from e

                logger.info(f"Accepted connection from {format_peer(peername)}")
                self._dispatch(conn)
        finally:
            self.close()

    def close(self) -> None:
        """Close the listening socket and cancel in-flight forwards."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

        for task in list(self._tasks):
            task.cancel()

    def _dispatch(self, conn: socket.socket) -> None:
        task = asyncio.ensure_future(self._handle(conn))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[None]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Forwarding task failed: {error!r}")

    async def _handle(self, conn: socket.socket) -> None:
        try:
            reader, writer = await asyncio.open_connection(sock=conn)
        except OSError as e:
            logger.error(f"Cannot set up inbound connection: {e}")
            conn.close()
            return

        await self._forwarder.forward(reader, writer)
