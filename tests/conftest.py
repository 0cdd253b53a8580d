"""
Shared fixtures: an in-process SSH server, a TCP echo service and a
helper that runs tunnels in the background of the test's event loop.
"""

import asyncio
import socket
from pathlib import Path
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Set

import asyncssh
import pytest

from ssh_lforward.core.domain.tunnel import Endpoint
from ssh_lforward.infrastructure.services.ssh.listener import TunnelListener
from ssh_lforward.infrastructure.services.ssh.tunnel import Tunnel

SSH_USER = "tunnel"
SSH_PASSWORD = "s3cret"


class FakeSSHServer(asyncssh.SSHServer):
    """SSH server accepting one user by password or by one public key."""

    def __init__(self, client_key: asyncssh.SSHKey, refused_ports: Set[int]):
        self._client_key = client_key
        self._refused_ports = refused_ports

    def begin_auth(self, username: str) -> bool:
        return True

    def password_auth_supported(self) -> bool:
        return True

    def validate_password(self, username: str, password: str) -> bool:
        return username == SSH_USER and password == SSH_PASSWORD

    def public_key_auth_supported(self) -> bool:
        return True

    def validate_public_key(self, username: str, key: asyncssh.SSHKey) -> bool:
        return username == SSH_USER and key.public_data == self._client_key.public_data

    def connection_requested(self, dest_host: str, dest_port: int,
                             orig_host: str, orig_port: int) -> bool:
        return dest_port not in self._refused_ports


@pytest.fixture(scope="session")
def client_key() -> asyncssh.SSHKey:
    return asyncssh.generate_private_key("ssh-ed25519")


@pytest.fixture
def client_key_file(tmp_path: Path, client_key: asyncssh.SSHKey) -> str:
    path = tmp_path / "id_ed25519"
    client_key.write_private_key(str(path))
    return str(path)


@pytest.fixture
def refused_ports() -> Set[int]:
    """Remote ports the SSH server refuses to open channels to."""
    return set()


@pytest.fixture
async def ssh_server(
    client_key: asyncssh.SSHKey,
    refused_ports: Set[int]
) -> AsyncGenerator[Endpoint, None]:
    host_key = asyncssh.generate_private_key("ssh-ed25519")

    acceptor = await asyncssh.listen(
        "127.0.0.1", 0,
        server_factory=lambda: FakeSSHServer(client_key, refused_ports),
        server_host_keys=[host_key]
    )
    port = acceptor.sockets[0].getsockname()[1]

    yield Endpoint("127.0.0.1", port)

    acceptor.close()


@pytest.fixture
async def echo_server() -> AsyncGenerator[Endpoint, None]:
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            while True:
                data = await reader.read(65536)
                if not data:
                    break
                writer.write(data)
                await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]

    yield Endpoint("127.0.0.1", port)

    server.close()


@pytest.fixture
def unused_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


@pytest.fixture
async def run_tunnel() -> AsyncGenerator[Callable[[Tunnel], Awaitable[Dict[str, Any]]], None]:
    """Start tunnels in the background; returns listener, task and bound endpoint."""
    tasks: List["asyncio.Future[None]"] = []

    async def _run(tunnel: Tunnel) -> Dict[str, Any]:
        listener: TunnelListener = await tunnel.start()
        task = asyncio.ensure_future(listener.serve_forever())
        tasks.append(task)
        return {"listener": listener, "task": task, "endpoint": listener.bound_endpoint}

    yield _run

    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await asyncio.sleep(0.05)


@pytest.fixture
def ssh_user() -> str:
    return SSH_USER


@pytest.fixture
def ssh_password() -> str:
    return SSH_PASSWORD
