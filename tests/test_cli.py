"""Tests for CLI interface."""

import json
import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from polaris_export.cli.main import _confirm_overwrite, _load_config, cli
from polaris_export.config.config import Config, ConfigError
from polaris_export.pipeline.strategy import (
    ExportStatus,
    ExportSummary,
    ProjectBranchesStrategy,
)

FLAT_CONFIG = {
    'customer': 'acme',
    'email': 'dev@acme.test',
    'accesstoken': 'token-123',
    'authUrlTemplate': 'https://{customer}.polaris.test/auth',
    'authUrlV2Template': 'https://{customer}.polaris.test/auth/v2',
}


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch('polaris_export.cli.main.setup_logging'):
        yield


@pytest.fixture
def config():
    return Config.from_dict(FLAT_CONFIG)


class TestCLI:
    """Test CLI commands."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_cli_help(self):
        """Test CLI help command."""
        result = self.runner.invoke(cli, ['--help'])

        assert result.exit_code == 0
        assert 'Polaris Export' in result.output
        for command in ('init', 'projects', 'branches', 'members', 'users',
                        'set-properties', 'status'):
            assert command in result.output

    def test_cli_version(self):
        """Test CLI version command."""
        result = self.runner.invoke(cli, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_init_command_default_output(self):
        """Test init command with default output."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init'])

            assert result.exit_code == 0
            assert 'Configuration template created' in result.output
            with open('config.json') as f:
                assert json.load(f)['customer'] == 'your-customer-name'

    def test_init_command_yaml(self):
        """Test init command writing YAML."""
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['init', '--output', 'conf/polaris.yaml'])

            assert result.exit_code == 0
            assert os.path.exists('conf/polaris.yaml')

    @patch('polaris_export.cli.main.RunDriver')
    @patch('polaris_export.cli.main._load_config')
    def test_command_success(self, mock_load_config, mock_driver_class, config):
        """Test that a command runs its strategy through the driver."""
        mock_load_config.return_value = config
        mock_driver_class.return_value.run.return_value = ExportSummary(
            command='branches', status=ExportStatus.COMPLETED, items=3
        )

        result = self.runner.invoke(cli, ['branches'])

        assert result.exit_code == 0
        assert 'branches completed successfully' in result.output
        strategy = mock_driver_class.return_value.run.call_args.args[0]
        assert isinstance(strategy, ProjectBranchesStrategy)

    @patch('polaris_export.cli.main.RunDriver')
    @patch('polaris_export.cli.main._load_config')
    def test_command_cancelled(self, mock_load_config, mock_driver_class, config):
        """Test that declining an overwrite exits cleanly."""
        mock_load_config.return_value = config
        mock_driver_class.return_value.run.return_value = ExportSummary(
            command='users', status=ExportStatus.CANCELLED
        )

        result = self.runner.invoke(cli, ['users'])

        assert result.exit_code == 0
        assert 'Exiting without making changes' in result.output

    @patch('polaris_export.cli.main.RunDriver')
    @patch('polaris_export.cli.main._load_config')
    def test_command_aborted(self, mock_load_config, mock_driver_class, config):
        """Test that an aborted run exits with status 1."""
        mock_load_config.return_value = config
        mock_driver_class.return_value.run.return_value = ExportSummary(
            command='projects',
            status=ExportStatus.ABORTED,
            error_message='Authentication failed: HTTP 401',
        )

        result = self.runner.invoke(cli, ['projects'])

        assert result.exit_code == 1
        assert 'projects failed' in result.output

    @patch('polaris_export.cli.main._load_config')
    def test_command_config_not_found(self, mock_load_config):
        """Test command when config is not found."""
        mock_load_config.side_effect = ConfigError('No configuration found')

        result = self.runner.invoke(cli, ['set-properties'])

        assert result.exit_code == 1
        assert 'set-properties failed' in result.output

    @patch('polaris_export.cli.main._load_config')
    def test_status_command(self, mock_load_config, config):
        """Test status command."""
        mock_load_config.return_value = config

        result = self.runner.invoke(cli, ['status'])

        assert result.exit_code == 0
        assert 'Polaris Export Configuration' in result.output
        assert 'acme' in result.output
        assert 'access token' in result.output

    def test_config_option_must_exist(self):
        result = self.runner.invoke(cli, ['--config', '/nonexistent.json', 'status'])

        assert result.exit_code != 0


class TestConfirmOverwrite:
    """Test the overwrite prompt."""

    @pytest.mark.parametrize('answer', ['yes', 'y', ' YES ', 'Y'])
    def test_affirmative(self, answer):
        with patch('polaris_export.cli.main.click.prompt', return_value=answer):
            assert _confirm_overwrite(Path('projectList.json')) is True

    @pytest.mark.parametrize('answer', ['no', 'n', '', 'maybe'])
    def test_negative(self, answer):
        with patch('polaris_export.cli.main.click.prompt', return_value=answer):
            assert _confirm_overwrite(Path('projectList.json')) is False

    def test_prompt_names_file(self):
        with patch('polaris_export.cli.main.click.prompt', return_value='no') as prompt:
            _confirm_overwrite(Path('out/usersList.json'))

        assert prompt.call_args.args[0].startswith('usersList.json already exists')


class TestConfigLoading:
    """Test configuration loading functions."""

    @patch('polaris_export.config.config.Config.from_file')
    def test_load_config_with_file(self, mock_from_file):
        """Test loading config from specified file."""
        mock_config = Mock(spec=Config)
        mock_from_file.return_value = mock_config
        mock_ctx = Mock()
        mock_ctx.obj = {'config_path': '/path/to/config.json'}

        assert _load_config(mock_ctx) == mock_config
        mock_from_file.assert_called_once_with('/path/to/config.json')

    @patch('polaris_export.config.config.Config.from_file')
    def test_load_config_default_locations(self, mock_from_file):
        """Test loading config from default locations."""
        mock_config = Mock(spec=Config)
        mock_from_file.return_value = mock_config
        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch(
            'pathlib.Path.exists',
            autospec=True,
            side_effect=lambda path: str(path) == 'config.yaml',
        ):
            assert _load_config(mock_ctx) == mock_config

        mock_from_file.assert_called_once_with('config.yaml')

    @patch('polaris_export.config.config.Config.from_env')
    def test_load_config_from_env(self, mock_from_env):
        """Test loading config from environment variables."""
        mock_config = Mock(spec=Config)
        mock_from_env.return_value = mock_config
        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch('pathlib.Path.exists', return_value=False):
            assert _load_config(mock_ctx) == mock_config

        mock_from_env.assert_called_once()

    def test_load_config_not_found(self):
        """Test loading config when no config is found."""
        mock_ctx = Mock()
        mock_ctx.obj = {}

        with patch('pathlib.Path.exists', return_value=False):
            with patch(
                'polaris_export.config.config.Config.from_env',
                side_effect=ConfigError('invalid'),
            ):
                with pytest.raises(ConfigError, match='No configuration found'):
                    _load_config(mock_ctx)
