"""
Infrastructure layer containing external dependencies and I/O operations.

This layer handles configuration, logging and the SSH tunnel services.
"""

from .config.loader import ConfigLoader
from .config.models import ApplicationConfig
from .logging.setup import setup_logging
from .services.ssh.tunnel import Tunnel

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "setup_logging",
    "Tunnel",
]
