"""
Domain models representing tunnel topology and credentials.

This module contains pure value objects without I/O.
"""

from .tunnel import (
    AuthConfig,
    Endpoint,
    KeyAuth,
    PasswordAuth,
    TunnelConfig,
    TunnelOptions,
)

__all__ = [
    "AuthConfig",
    "Endpoint",
    "KeyAuth",
    "PasswordAuth",
    "TunnelConfig",
    "TunnelOptions",
]
