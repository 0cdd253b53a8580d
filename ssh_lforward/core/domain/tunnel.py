"""
Domain models describing one local-port-forwarding tunnel.

These are plain value objects: they carry topology and credentials but
perform no I/O. Credential resolution and networking live in the
infrastructure layer.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

DEFAULT_BUFFER_SIZE = 65536
DEFAULT_BACKLOG = 100


@dataclass(frozen=True)
class Endpoint:
    """A host/port pair used as a bind or dial target."""
    host: str
    port: int

    @property
    def address(self) -> Tuple[str, int]:
        """Socket address tuple."""
        return (self.host, self.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class KeyAuth:
    """Public key authentication with a private key file loaded at setup."""
    username: str
    key_path: str

    def __repr__(self) -> str:
        return f"KeyAuth(username={self.username!r}, key_path={self.key_path!r})"


@dataclass(frozen=True)
class PasswordAuth:
    """Username/password authentication."""
    username: str
    password: str = field(repr=False)


AuthConfig = Union[KeyAuth, PasswordAuth]


@dataclass(frozen=True)
class TunnelOptions:
    """Transport knobs; defaults keep the plain behavior of no deadlines
    and no host key verification."""
    connect_timeout: Optional[float] = None
    known_hosts: Optional[str] = None
    buffer_size: int = DEFAULT_BUFFER_SIZE
    backlog: int = DEFAULT_BACKLOG

    def __post_init__(self) -> None:
        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError(
                f"Connect timeout must be positive, got {self.connect_timeout}")
        if self.buffer_size <= 0:
            raise ValueError(
                f"Buffer size must be positive, got {self.buffer_size}")
        if self.backlog <= 0:
            raise ValueError(f"Backlog must be positive, got {self.backlog}")


@dataclass(frozen=True)
class TunnelConfig:
    """Validated topology and credentials of one tunnel."""
    local: Endpoint
    server: Endpoint
    remote: Endpoint
    auth: AuthConfig
    options: TunnelOptions = field(default_factory=TunnelOptions)

    def describe(self) -> str:
        """Human readable `-L` style description."""
        return f"{self.local} -> {self.auth.username}@{self.server} -> {self.remote}"
