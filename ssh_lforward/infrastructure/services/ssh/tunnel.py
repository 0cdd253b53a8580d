"""
Tunnel construction surface.

A ``Tunnel`` is built from its topology, given exactly one authentication
method, and then set up. Setup resolves credentials, binds the local
endpoint and serves until a fatal error occurs.

Example:
    tunnel = Tunnel("127.0.0.1", "bastion.example.com", "db.internal",
                    5432, 22, 5432)
    tunnel.with_key_auth("deploy", "~/.ssh/id_ed25519")
    tunnel.setup()
"""

import asyncio
import logging
from typing import Optional

from ....core.domain.tunnel import (
    AuthConfig,
    Endpoint,
    KeyAuth,
    PasswordAuth,
    TunnelConfig,
    TunnelOptions,
)
from ....core.exceptions import MissingCredentialsError
from .auth import build_client_options
from .forwarder import ConnectionForwarder
from .listener import TunnelListener

logger = logging.getLogger(__name__)


class Tunnel:
    """Builder and entry point for one local-port-forwarding tunnel."""

    def __init__(
        self,
        local_host: str,
        server_host: str,
        remote_host: str,
        local_port: int,
        server_port: int,
        remote_port: int,
        options: Optional[TunnelOptions] = None
    ):
        self._local = Endpoint(local_host, local_port)
        self._server = Endpoint(server_host, server_port)
        self._remote = Endpoint(remote_host, remote_port)
        self._options = options or TunnelOptions()
        self._auth: Optional[AuthConfig] = None

    @property
    def local(self) -> Endpoint:
        return self._local

    @property
    def server(self) -> Endpoint:
        return self._server

    @property
    def remote(self) -> Endpoint:
        return self._remote

    @property
    def options(self) -> TunnelOptions:
        return self._options

    @property
    def auth(self) -> Optional[AuthConfig]:
        """Currently selected authentication method."""
        return self._auth

    def with_key_auth(self, username: str, key_path: str) -> "Tunnel":
        """Select public key authentication, replacing any previous choice."""
        self._auth = KeyAuth(username, key_path)
        return self

    def with_password_auth(self, username: str, password: str) -> "Tunnel":
        """Select password authentication, replacing any previous choice."""
        self._auth = PasswordAuth(username, password)
        return self

    def build_config(self) -> TunnelConfig:
        """
        Validate the tunnel and freeze it into a TunnelConfig.

        Raises:
            MissingCredentialsError: If no authentication method was selected
        """
        if self._auth is None or not self._auth.username:
            raise MissingCredentialsError()

        return TunnelConfig(
            local=self._local,
            server=self._server,
            remote=self._remote,
            auth=self._auth,
            options=self._options
        )

    async def start(self) -> TunnelListener:
        """
        Resolve credentials and bind the local endpoint without serving.

        Returns:
            A bound listener ready for ``serve_forever()``

        Raises:
            MissingCredentialsError: If no authentication method was selected
            KeyLoadError: If the private key cannot be loaded
            BindError: If the local endpoint cannot be bound
        """
        config = self.build_config()
        client_options = build_client_options(config.auth, config.options)

        forwarder = ConnectionForwarder(
            config.server,
            config.remote,
            client_options,
            buffer_size=config.options.buffer_size,
            connect_timeout=config.options.connect_timeout
        )
        listener = TunnelListener(config.local, forwarder, backlog=config.options.backlog)
        listener.bind()

        logger.info(f"Tunnel ready: {config.describe()}")
        return listener

    async def run(self) -> None:
        """Set up the tunnel and serve until a fatal error is raised."""
        listener = await self.start()
        await listener.serve_forever()

    def setup(self) -> None:
        """Blocking form of ``run()``; returns only by raising."""
        asyncio.run(self.run())
