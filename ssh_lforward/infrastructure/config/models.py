"""
Configuration models and data structures.

This module defines the configuration models for a tunnel process,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

from ...core.domain.tunnel import DEFAULT_BACKLOG, DEFAULT_BUFFER_SIZE, TunnelOptions
from ..services.ssh.tunnel import Tunnel

AUTH_METHODS = ("key", "password")

T = TypeVar('T')


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return a nested mapping; an empty YAML section counts as empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(
            f"Section '{key}' must be a mapping, got {type(value).__name__}")
    return value


def _build(factory: Callable[..., T], name: str, values: Dict[str, Any]) -> T:
    """Construct a config dataclass, reporting unknown keys as ValueError."""
    try:
        return factory(**values)
    except TypeError as e:
        raise ValueError(f"Invalid {name} settings: {e}") from e


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class EndpointConfig:
    """Host/port configuration."""
    host: str = "127.0.0.1"
    port: int = 0


@dataclass
class AuthSettings:
    """SSH authentication configuration."""
    method: Optional[str] = None
    username: str = ""
    password: Optional[str] = None
    key_file: Optional[str] = None


@dataclass
class TunnelSettings:
    """Tunnel topology and transport configuration."""
    local: EndpointConfig = field(default_factory=EndpointConfig)
    server: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(host="localhost", port=22))
    remote: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(host="localhost", port=80))
    auth: AuthSettings = field(default_factory=AuthSettings)
    connect_timeout: Optional[float] = None
    known_hosts: Optional[str] = None
    buffer_size: int = DEFAULT_BUFFER_SIZE
    backlog: int = DEFAULT_BACKLOG

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TunnelSettings':
        """Create tunnel settings from dictionary."""
        defaults = cls()
        return cls(
            local=_build(EndpointConfig, 'tunnel.local',
                         {**asdict(defaults.local), **_section(data, 'local')}),
            server=_build(EndpointConfig, 'tunnel.server',
                          {**asdict(defaults.server), **_section(data, 'server')}),
            remote=_build(EndpointConfig, 'tunnel.remote',
                          {**asdict(defaults.remote), **_section(data, 'remote')}),
            auth=_build(AuthSettings, 'tunnel.auth', _section(data, 'auth')),
            connect_timeout=data.get('connect_timeout'),
            known_hosts=data.get('known_hosts'),
            buffer_size=data.get('buffer_size', DEFAULT_BUFFER_SIZE),
            backlog=data.get('backlog', DEFAULT_BACKLOG)
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "SSH LForward"
    version: str = "0.1.0"
    debug: bool = False

    tunnel: TunnelSettings = field(default_factory=TunnelSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration, raising ValueError on the first problem."""
        self._validate_ports()
        self._validate_transport()
        self._validate_auth()

    def _validate_ports(self) -> None:
        """Validate port numbers."""
        # Local port 0 asks the OS for an ephemeral port.
        ports = [
            ("Local port", self.tunnel.local.port, 0),
            ("Server port", self.tunnel.server.port, 1),
            ("Remote port", self.tunnel.remote.port, 1),
        ]

        for name, port, lowest in ports:
            if not _is_int(port):
                raise ValueError(f"{name} must be an integer, got {port!r}")
            if not (lowest <= port <= 65535):
                raise ValueError(
                    f"{name} must be between {lowest} and 65535, got {port}")

    def _validate_transport(self) -> None:
        """Validate timeouts and sizes."""
        timeout = self.tunnel.connect_timeout
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ValueError(f"Connect timeout must be a number, got {timeout!r}")
            if timeout <= 0:
                raise ValueError(f"Connect timeout must be positive, got {timeout}")

        for name, value in (("Buffer size", self.tunnel.buffer_size),
                            ("Backlog", self.tunnel.backlog)):
            if not _is_int(value):
                raise ValueError(f"{name} must be an integer, got {value!r}")

        if self.tunnel.buffer_size <= 0:
            raise ValueError(
                f"Buffer size must be positive, got {self.tunnel.buffer_size}")

        if self.tunnel.backlog <= 0:
            raise ValueError(f"Backlog must be positive, got {self.tunnel.backlog}")

    def _validate_auth(self) -> None:
        """Validate the authentication method name and its fields."""
        auth = self.tunnel.auth
        if not isinstance(auth.username, str):
            raise ValueError(f"Username must be a string, got {auth.username!r}")

        if auth.method is None:
            return

        if auth.method not in AUTH_METHODS:
            raise ValueError(
                f"Auth method must be one of {', '.join(AUTH_METHODS)}, got {auth.method}")

        if auth.method == "key" and not auth.key_file:
            raise ValueError("Key authentication requires key_file")

        if auth.method == "password" and auth.password is None:
            raise ValueError("Password authentication requires password")

    def create_tunnel(self) -> Tunnel:
        """
        Build a Tunnel from this configuration.

        The selected auth method is applied; with no method selected the
        tunnel is returned without credentials and fails at setup.
        """
        settings = self.tunnel
        tunnel = Tunnel(
            settings.local.host,
            settings.server.host,
            settings.remote.host,
            settings.local.port,
            settings.server.port,
            settings.remote.port,
            options=TunnelOptions(
                connect_timeout=settings.connect_timeout,
                known_hosts=settings.known_hosts,
                buffer_size=settings.buffer_size,
                backlog=settings.backlog
            )
        )

        auth = settings.auth
        if auth.method == "key":
            tunnel.with_key_auth(auth.username, auth.key_file or "")
        elif auth.method == "password":
            tunnel.with_password_auth(auth.username, auth.password or "")

        return tunnel

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        if not isinstance(data, dict):
            raise ValueError(
                f"Configuration must be a mapping, got {type(data).__name__}")

        return cls(
            name=data.get('name', 'SSH LForward'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            tunnel=TunnelSettings.from_dict(_section(data, 'tunnel')),
            logging=_build(LoggingConfig, 'logging', _section(data, 'logging')),
            config_file_path=data.get('config_file_path')
        )
