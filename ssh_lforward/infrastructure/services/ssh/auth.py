"""
SSH credential resolution.

Turns the selected authentication variant into the keyword arguments
passed to ``asyncssh.connect`` for every forwarded connection. Resolution
runs once, before the listener binds, so configuration mistakes surface
before any traffic is accepted.
"""

import logging
import os
from typing import Any, Dict, Optional

import asyncssh

from ....core.domain.tunnel import AuthConfig, KeyAuth, PasswordAuth, TunnelOptions
from ....core.exceptions import KeyLoadError, KnownHostsError, MissingCredentialsError

logger = logging.getLogger(__name__)

CLIENT_VERSION = "SSH_LForward_1.0"


def load_private_key(key_path: str) -> asyncssh.SSHKey:
    """
    Read and parse an unencrypted private key file.

    Args:
        key_path: Path to the private key, ``~`` is expanded

    Returns:
        Parsed private key

    Raises:
        KeyLoadError: If the file cannot be read or parsed
    """
    path = os.path.expanduser(key_path)

    try:
        return asyncssh.read_private_key(path)
    except OSError as e:
        raise KeyLoadError(
            f"Cannot read private key {key_path}: {e}", key_path) from e
    except asyncssh.KeyImportError as e:
        raise KeyLoadError(
            f"Cannot parse private key {key_path}: {e}", key_path) from e


def load_known_hosts(known_hosts_path: str) -> asyncssh.SSHKnownHosts:
    """
    Read and parse an OpenSSH known hosts file.

    Raises:
        KnownHostsError: If the file cannot be read or parsed
    """
    path = os.path.expanduser(known_hosts_path)

    try:
        return asyncssh.read_known_hosts(path)
    except OSError as e:
        raise KnownHostsError(
            f"Cannot read known hosts {known_hosts_path}: {e}", known_hosts_path) from e
    except ValueError as e:
        raise KnownHostsError(
            f"Cannot parse known hosts {known_hosts_path}: {e}", known_hosts_path) from e


def build_client_options(
    auth: Optional[AuthConfig],
    options: Optional[TunnelOptions] = None
) -> Dict[str, Any]:
    """
    Resolve credentials into asyncssh connection kwargs.

    Only the selected method is offered to the server and the SSH agent
    is never consulted.

    Args:
        auth: Selected authentication variant, None if none was selected
        options: Transport options

    Returns:
        Keyword arguments for ``asyncssh.connect``

    Raises:
        MissingCredentialsError: If no method or no username was configured
        KeyLoadError: If key auth is selected and the key cannot be loaded
        KnownHostsError: If a known hosts file is configured but unusable
    """
    if auth is None or not auth.username:
        raise MissingCredentialsError()

    options = options or TunnelOptions()

    kwargs: Dict[str, Any] = {
        'username': auth.username,
        'client_version': CLIENT_VERSION,
        'known_hosts': None,
        'agent_path': None,
    }

    if options.known_hosts is not None:
        kwargs['known_hosts'] = load_known_hosts(options.known_hosts)

    if isinstance(auth, KeyAuth):
        kwargs['client_keys'] = [load_private_key(auth.key_path)]
        kwargs['password'] = None
        kwargs['preferred_auth'] = 'publickey'
        logger.debug(f"Using public key authentication for {auth.username} ({auth.key_path})")
    elif isinstance(auth, PasswordAuth):
        kwargs['client_keys'] = None
        kwargs['password'] = auth.password
        kwargs['preferred_auth'] = 'password'
        logger.debug(f"Using password authentication for {auth.username}")
    else:
        raise TypeError(f"Unsupported authentication config: {type(auth).__name__}")

    return kwargs
