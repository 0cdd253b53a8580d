"""
Main entry point for SSH LForward.

This module provides the command-line interface for running a local port
forwarding tunnel and managing its configuration file.
"""

import logging
import sys
from typing import Optional

import typer

from .core.exceptions import TunnelError
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging

cli = typer.Typer(
    name="ssh-lforward",
    help="Forward a local TCP port to a remote endpoint through an SSH server"
)

logger = logging.getLogger(__name__)


@cli.command()
def start(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    local_host: Optional[str] = typer.Option(
        None, "--local-host", help="Local address to listen on"
    ),
    local_port: Optional[int] = typer.Option(
        None, "--local-port", "-l", help="Local port to listen on"
    ),
    server_host: Optional[str] = typer.Option(
        None, "--server-host", "-s", help="SSH server host"
    ),
    server_port: Optional[int] = typer.Option(
        None, "--server-port", help="SSH server port"
    ),
    remote_host: Optional[str] = typer.Option(
        None, "--remote-host", "-r", help="Destination host, as seen from the SSH server"
    ),
    remote_port: Optional[int] = typer.Option(
        None, "--remote-port", help="Destination port"
    ),
    user: Optional[str] = typer.Option(
        None, "--user", "-u", help="SSH username"
    ),
    password: Optional[str] = typer.Option(
        None, "--password", help="SSH password (selects password authentication)"
    ),
    key_file: Optional[str] = typer.Option(
        None, "--key", "-k", help="Private key file (selects key authentication)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Start the tunnel and serve until a fatal error occurs."""

    try:
        config = ConfigLoader().load_config(config_file)
        tunnel_settings = config.tunnel

        if local_host:
            tunnel_settings.local.host = local_host
        if local_port is not None:
            tunnel_settings.local.port = local_port
        if server_host:
            tunnel_settings.server.host = server_host
        if server_port is not None:
            tunnel_settings.server.port = server_port
        if remote_host:
            tunnel_settings.remote.host = remote_host
        if remote_port is not None:
            tunnel_settings.remote.port = remote_port
        if user:
            tunnel_settings.auth.username = user

        # Last selector wins: a key on the command line beats a password.
        if password is not None:
            tunnel_settings.auth.method = "password"
            tunnel_settings.auth.password = password
        if key_file:
            tunnel_settings.auth.method = "key"
            tunnel_settings.auth.key_file = key_file

        if log_level:
            config.logging.level = log_level.upper()
        if debug:
            config.debug = True
            config.logging.level = "DEBUG"

        config.validate()
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(config.logging)

    logger.info(f"Starting {config.name} v{config.version}")

    tunnel = config.create_tunnel()

    try:
        tunnel.setup()
    except KeyboardInterrupt:
        logger.info("Tunnel interrupted by user")
    except TunnelError as e:
        logger.error(f"Tunnel failed: {e}")
        sys.exit(1)


@cli.command()
def init_config(
    output: str = typer.Option(
        "config.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except ValueError as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(...,
                                      help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        tunnel = config.create_tunnel()
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Tunnel: {tunnel.local} -> {tunnel.server} -> {tunnel.remote}")
        if tunnel.auth is None:
            typer.echo("Warning: no authentication method configured", err=True)
    except (ValueError, FileNotFoundError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
