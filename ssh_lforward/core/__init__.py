"""
Core module containing domain models, interfaces and the error taxonomy.

Nothing in this package performs network or file I/O.
"""

from .domain.tunnel import (
    AuthConfig,
    Endpoint,
    KeyAuth,
    PasswordAuth,
    TunnelConfig,
    TunnelOptions,
)
from .exceptions import (
    AcceptError,
    BindError,
    ChannelOpenError,
    ErrorCode,
    ForwardingError,
    KeyLoadError,
    KnownHostsError,
    MissingCredentialsError,
    RelayError,
    SSHDialError,
    TunnelError,
)
from .interfaces.ssh import IConnectionForwarder, ITunnelListener

__all__ = [
    "AuthConfig",
    "Endpoint",
    "KeyAuth",
    "PasswordAuth",
    "TunnelConfig",
    "TunnelOptions",
    "AcceptError",
    "BindError",
    "ChannelOpenError",
    "ErrorCode",
    "ForwardingError",
    "KeyLoadError",
    "KnownHostsError",
    "MissingCredentialsError",
    "RelayError",
    "SSHDialError",
    "TunnelError",
    "IConnectionForwarder",
    "ITunnelListener",
]
