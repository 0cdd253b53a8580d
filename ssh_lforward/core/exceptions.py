"""
Exception taxonomy for the tunnel engine.

Setup errors (missing credentials, unusable key or known hosts file,
bind failure) and accept errors are fatal to the tunnel. Dial, channel and
relay errors only ever affect the single forwarded connection they
occurred on.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Tunnel error codes."""
    UNKNOWN_ERROR = 20000
    MISSING_CREDENTIALS = 20001
    KEY_LOAD_ERROR = 20002
    BIND_ERROR = 20003
    ACCEPT_ERROR = 20004
    SSH_DIAL_ERROR = 20005
    CHANNEL_OPEN_ERROR = 20006
    RELAY_ERROR = 20007
    KNOWN_HOSTS_ERROR = 20008


class TunnelError(Exception):
    """Base class for all tunnel errors."""

    fatal = True

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class MissingCredentialsError(TunnelError):
    """No authentication method was selected before setup."""
    def __init__(self, message: str = "Authentication not found", details: Any = None):
        super().__init__(ErrorCode.MISSING_CREDENTIALS, message, details)


class KeyLoadError(TunnelError):
    """Private key file could not be read or parsed."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.KEY_LOAD_ERROR, message, details)


class KnownHostsError(TunnelError):
    """Known hosts file could not be read or parsed."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.KNOWN_HOSTS_ERROR, message, details)


class BindError(TunnelError):
    """Local endpoint could not be bound."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.BIND_ERROR, message, details)


class AcceptError(TunnelError):
    """Accepting an inbound connection failed; terminates the listener."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.ACCEPT_ERROR, message, details)


class ForwardingError(TunnelError):
    """Base class for errors scoped to one forwarded connection."""

    fatal = False


class SSHDialError(ForwardingError):
    """SSH session to the server endpoint could not be established."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.SSH_DIAL_ERROR, message, details)


class ChannelOpenError(ForwardingError):
    """Server refused or failed to open a channel to the remote endpoint."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.CHANNEL_OPEN_ERROR, message, details)


class RelayError(ForwardingError):
    """Byte copying failed in one relay direction."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.RELAY_ERROR, message, details)
