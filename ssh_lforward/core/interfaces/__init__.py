"""
Core interfaces defining the contracts between tunnel components.
"""

from .ssh import IConnectionForwarder, ITunnelListener

__all__ = [
    "IConnectionForwarder",
    "ITunnelListener",
]
