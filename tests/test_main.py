"""
Tests for the main entry point and CLI commands.
"""

import json
import os
from pathlib import Path
from typing import Generator, Optional
from unittest.mock import Mock, patch

import pytest
import yaml
from typer.testing import CliRunner

from ssh_lforward.core.domain.tunnel import Endpoint, KeyAuth, PasswordAuth
from ssh_lforward.core.exceptions import BindError
from ssh_lforward.infrastructure.services.ssh.tunnel import Tunnel
from ssh_lforward.main import cli


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for name in list(os.environ):
        if name.startswith("LFORWARD_"):
            monkeypatch.delenv(name)
    yield


class TestMainCLI:
    """Test cases for the CLI commands."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_cli_help_command(self) -> None:
        result = self.runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "Forward a local TCP port" in result.output

    @patch('ssh_lforward.main.setup_logging')
    def test_start_without_auth_fails(self, mock_setup_logging: Mock) -> None:
        with patch('ssh_lforward.infrastructure.services.ssh.listener.socket.create_server') as mock_bind:
            result = self.runner.invoke(cli, ["start", "--local-port", "0"])

        assert result.exit_code == 1
        mock_setup_logging.assert_called_once()
        mock_bind.assert_not_called()

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup', autospec=True)
    def test_start_with_options(self, mock_setup: Mock, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(cli, [
            "start",
            "--local-port", "15432",
            "--server-host", "bastion",
            "--server-port", "2222",
            "--remote-host", "db",
            "--remote-port", "5432",
            "--user", "deploy",
            "--password", "pw",
        ])

        assert result.exit_code == 0, result.output
        mock_setup.assert_called_once()
        tunnel = mock_setup.call_args.args[0]
        assert tunnel.local == Endpoint("127.0.0.1", 15432)
        assert tunnel.server == Endpoint("bastion", 2222)
        assert tunnel.remote == Endpoint("db", 5432)
        assert tunnel.auth == PasswordAuth("deploy", "pw")

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup', side_effect=BindError("Cannot bind 127.0.0.1:22"))
    def test_start_fatal_error_exits(self, mock_setup: Mock, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(cli, ["start", "-u", "deploy", "--password", "pw"])

        assert result.exit_code == 1
        mock_setup.assert_called_once()

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup', side_effect=KeyboardInterrupt)
    def test_start_interrupted(self, mock_setup: Mock, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(cli, ["start", "-u", "deploy", "--password", "pw"])

        assert result.exit_code == 0

    @patch('ssh_lforward.main.setup_logging')
    def test_start_invalid_port(self, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(cli, ["start", "--remote-port", "0"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_setup_logging.assert_not_called()

    @patch('ssh_lforward.main.setup_logging')
    def test_start_missing_config_file(self, mock_setup_logging: Mock, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["start", "-c", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup')
    def test_start_debug_sets_level(self, mock_setup: Mock, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(cli, ["start", "-u", "u", "--password", "p", "--debug"])

        assert result.exit_code == 0
        logging_config = mock_setup_logging.call_args.args[0]
        assert logging_config.level == "DEBUG"

    def test_init_config_yaml(self, tmp_path: Path) -> None:
        output = tmp_path / "config.yaml"

        result = self.runner.invoke(cli, ["init-config", "--output", str(output)])

        assert result.exit_code == 0
        assert "Default configuration saved" in result.output
        data = yaml.safe_load(output.read_text())
        assert data["tunnel"]["server"]["port"] == 22

    def test_init_config_json(self, tmp_path: Path) -> None:
        output = tmp_path / "config.json"

        result = self.runner.invoke(cli, ["init-config", "-o", str(output), "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["tunnel"]["local"]["host"] == "127.0.0.1"

    def test_init_config_bad_format(self, tmp_path: Path) -> None:
        result = self.runner.invoke(
            cli, ["init-config", "--output", str(tmp_path / "c.ini"), "--format", "ini"])

        assert result.exit_code == 1

    def test_validate_config_valid(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "tunnel": {
                "local": {"port": 8080},
                "server": {"host": "bastion"},
                "remote": {"host": "web", "port": 80},
                "auth": {"method": "key", "username": "deploy", "key_file": "~/.ssh/id"}
            }
        }))

        result = self.runner.invoke(cli, ["validate-config", str(path)])

        assert result.exit_code == 0
        assert "is valid" in result.output
        assert "127.0.0.1:8080 -> bastion:22 -> web:80" in result.output

    def test_validate_config_without_auth_warns(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"tunnel": {"local": {"port": 8080}}}))

        result = self.runner.invoke(cli, ["validate-config", str(path)])

        assert result.exit_code == 0
        assert "no authentication method configured" in result.output

    def test_validate_config_invalid(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"tunnel": {"auth": {"method": "key", "username": "u"}}}))

        result = self.runner.invoke(cli, ["validate-config", str(path)])

        assert result.exit_code == 1
        assert "validation failed" in result.output


class TestAuthOverrides:
    """The last selected auth method on the command line wins."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup', autospec=True)
    def test_key_beats_password(self, mock_setup: Mock, mock_setup_logging: Mock) -> None:
        result = self.runner.invoke(
            cli, ["start", "-u", "deploy", "--password", "pw", "--key", "/keys/id"])

        assert result.exit_code == 0
        tunnel = mock_setup.call_args.args[0]
        assert tunnel.auth == KeyAuth("deploy", "/keys/id")

    @patch('ssh_lforward.main.setup_logging')
    @patch.object(Tunnel, 'setup', autospec=True)
    def test_password_overrides_config_key(
        self, mock_setup: Mock, mock_setup_logging: Mock, tmp_path: Path
    ) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "tunnel": {"auth": {"method": "key", "username": "deploy", "key_file": "/keys/id"}}
        }))

        result = self.runner.invoke(cli, ["start", "-c", str(path), "--password", "pw"])

        assert result.exit_code == 0
        tunnel = mock_setup.call_args.args[0]
        assert tunnel.auth == PasswordAuth("deploy", "pw")


MALFORMED_CONFIGS = [
    ("tunnel:\n  local:\n    hostname: x\n", "tunnel.local"),
    ("tunnel:\n", None),
    ("tunnel:\n  server:\n    port: '22'\n", "Server port must be an integer"),
    ("tunnel:\n  auth: password\n", "must be a mapping"),
]


class TestMalformedConfig:
    """Malformed configuration files are reported, never raised."""

    def setup_method(self) -> None:
        self.runner = CliRunner()

    @pytest.mark.parametrize("content,message", MALFORMED_CONFIGS)
    def test_validate_config(self, tmp_path: Path, content: str, message: Optional[str]) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(content)

        result = self.runner.invoke(cli, ["validate-config", str(path)])

        if message is None:
            # An empty section falls back to defaults.
            assert result.exit_code == 0, result.output
            assert "is valid" in result.output
        else:
            assert result.exit_code == 1
            assert isinstance(result.exception, SystemExit)
            assert "validation failed" in result.output
            assert message in result.output

    @pytest.mark.parametrize("content,message", [c for c in MALFORMED_CONFIGS if c[1]])
    @patch('ssh_lforward.main.setup_logging')
    def test_start(self, mock_setup_logging: Mock, tmp_path: Path, content: str, message: str) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(content)

        result = self.runner.invoke(cli, ["start", "-c", str(path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Invalid configuration" in result.output
        mock_setup_logging.assert_not_called()
