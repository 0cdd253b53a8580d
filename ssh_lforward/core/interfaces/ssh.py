"""
SSH tunnel interfaces.

This module defines the contracts between the accept loop and the
per-connection forwarder so each can be exercised on its own.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..domain.tunnel import Endpoint


class IConnectionForwarder(ABC):
    """Interface for the per-connection unit of work."""

    @abstractmethod
    async def forward(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        """
        Bridge one accepted inbound connection to the remote endpoint.

        Implementations own the inbound streams once called and must not
        raise: failures are reported and only drop this connection.

        Args:
            reader: Inbound connection reader
            writer: Inbound connection writer
        """
        pass


class ITunnelListener(ABC):
    """Interface for the local accept loop."""

    @property
    @abstractmethod
    def bound_endpoint(self) -> Optional[Endpoint]:
        """Endpoint actually bound, or None before bind()."""
        pass

    @abstractmethod
    def bind(self) -> Endpoint:
        """
        Bind the local endpoint.

        Returns:
            The bound endpoint (with the real port if 0 was requested)

        Raises:
            BindError: If the endpoint cannot be bound.
        """
        pass

    @abstractmethod
    async def serve_forever(self) -> None:
        """
        Accept connections until a fatal error occurs.

        Raises:
            BindError: If binding was still pending and fails.
            AcceptError: If accepting a connection fails.
        """
        pass
