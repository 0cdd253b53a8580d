"""
SSH LForward - local port forwarding over SSH.

Accepts plaintext TCP connections on a local endpoint and carries each one
over its own SSH session to a server, which relays it to a remote endpoint.
"""

__version__ = "0.1.0"

from .core.domain.tunnel import Endpoint, KeyAuth, PasswordAuth, TunnelConfig, TunnelOptions
from .core.exceptions import (
    AcceptError,
    BindError,
    ChannelOpenError,
    KeyLoadError,
    KnownHostsError,
    MissingCredentialsError,
    RelayError,
    SSHDialError,
    TunnelError,
)
from .infrastructure.services.ssh.tunnel import Tunnel

__all__ = [
    "Endpoint",
    "KeyAuth",
    "PasswordAuth",
    "TunnelConfig",
    "TunnelOptions",
    "AcceptError",
    "BindError",
    "ChannelOpenError",
    "KeyLoadError",
    "KnownHostsError",
    "MissingCredentialsError",
    "RelayError",
    "SSHDialError",
    "TunnelError",
    "Tunnel",
]
