"""
SSH local port forwarding services.
"""

from .auth import build_client_options, load_known_hosts, load_private_key
from .forwarder import ConnectionForwarder
from .listener import TunnelListener
from .tunnel import Tunnel

__all__ = [
    "build_client_options",
    "load_known_hosts",
    "load_private_key",
    "ConnectionForwarder",
    "TunnelListener",
    "Tunnel",
]
