"""
Configuration infrastructure.

This module provides configuration models and file/environment loading
for a tunnel process.
"""

from .models import (
    ApplicationConfig,
    AuthSettings,
    EndpointConfig,
    LoggingConfig,
    TunnelSettings,
)
from .loader import ConfigLoader

__all__ = [
    "ApplicationConfig",
    "AuthSettings",
    "EndpointConfig",
    "LoggingConfig",
    "TunnelSettings",
    "ConfigLoader",
]
