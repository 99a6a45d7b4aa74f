"""Configuration management for Polaris Export."""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

DEFAULT_ROLE_ASSIGNMENTS_URL_TEMPLATE = (
    'https://{customer}.polaris.synopsys.com/api/auth/v2/role-assignments'
    '?filter%5Brole-assignments%5D%5Bobject%5D%5B%24eq%5D='
    'urn%3Ax-swip%3Aprojects%3A{project_id}'
    '&include%5Brole-assignments%5D%5B%5D=role'
    '&include%5Brole-assignments%5D%5B%5D=user'
    '&include%5Brole-assignments%5D%5B%5D=group'
)
DEFAULT_USERS_URL_TEMPLATE = (
    'https://{customer}.polaris.synopsys.com/api/auth/v2/users'
    '?include%5Busers%5D%5B%5D=groups'
)


class ConfigError(ValueError):
    """Malformed or incomplete configuration."""

    pass


def resolve_template(template: str, **values: Any) -> str:
    """Substitute ``{name}`` placeholders in a URL template.

    Plain string replacement is used because templates may carry other
    brace-delimited placeholders (``{offset}``) that are filled in later.

    Args:
        template: URL template
        **values: Placeholder values

    Returns:
        Template with the given placeholders replaced
    """
    for name, value in values.items():
        template = template.replace('{' + name + '}', str(value))
    return template


class PolarisConfig(BaseModel):
    """Credentials and endpoint templates for a Polaris tenant."""

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    customer: str = Field(..., description='Customer (tenant) identifier')
    email: str = Field(..., description='Account email')
    password: Optional[str] = Field(default=None, description='Account password')
    access_token: Optional[str] = Field(
        default=None, alias='accesstoken', description='Personal access token'
    )

    auth_url_template: str = Field(
        ..., alias='authUrlTemplate', description='Password-flow auth endpoint'
    )
    auth_url_v2_template: str = Field(
        ..., alias='authUrlV2Template', description='Token-flow auth endpoint'
    )
    projects_url_template: Optional[str] = Field(
        default=None, alias='projectsUrlTemplate', description='Project listing'
    )
    set_property_url_template: Optional[str] = Field(
        default=None, alias='setPropertyUrlTemplate', description='Property set'
    )
    branches_url_template: Optional[str] = Field(
        default=None, alias='branchesUrlTemplate', description='Branch listing'
    )
    role_assignments_url_template: str = Field(
        default=DEFAULT_ROLE_ASSIGNMENTS_URL_TEMPLATE,
        alias='roleAssignmentsUrlTemplate',
        description='Per-project role assignments, with {project_id}',
    )
    users_url_template: str = Field(
        default=DEFAULT_USERS_URL_TEMPLATE,
        alias='usersUrlTemplate',
        description='User listing including groups',
    )

    @field_validator('customer', 'email')
    @classmethod
    def validate_required_text(cls, v):
        """Reject blank identifiers."""
        if not v or not v.strip():
            raise ValueError('must not be empty')
        return v.strip()

    @field_validator('password', 'access_token')
    @classmethod
    def normalize_secret(cls, v):
        """Treat whitespace-only secrets as absent."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def url(self, field_name: str, **values: Any) -> str:
        """Resolve a URL template with the customer substituted.

        Args:
            field_name: Name of the ``*_url_template`` field
            **values: Additional placeholder values

        Returns:
            Resolved URL

        Raises:
            ConfigError: If the template is not configured
        """
        template = getattr(self, field_name)
        if not template:
            alias = type(self).model_fields[field_name].alias or field_name
            raise ConfigError(f'{alias} is missing from the configuration')
        return resolve_template(template, customer=self.customer, **values)


class PaginationConfig(BaseModel):
    """Page sizes per collection endpoint."""

    projects: int = Field(default=500, description='Project listing page size')
    branches: int = Field(default=500, description='Branch listing page size')
    users: int = Field(default=500, description='User listing page size')

    @field_validator('projects', 'branches', 'users')
    @classmethod
    def validate_page_size(cls, v):
        """Validate page size is positive."""
        if v <= 0:
            raise ValueError('Page size must be positive')
        return v


class OutputConfig(BaseModel):
    """Output file settings."""

    directory: str = Field(default='.', description='Directory for output files')


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Console log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for Polaris Export."""

    model_config = ConfigDict(extra='forbid')

    polaris: PolarisConfig = Field(..., description='Polaris tenant settings')
    pagination: PaginationConfig = Field(
        default_factory=PaginationConfig, description='Page sizes'
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig, description='Output settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )
    timeout: Optional[float] = Field(
        default=None, description='Request timeout in seconds'
    )

    @model_validator(mode='before')
    @classmethod
    def accept_flat_layout(cls, data):
        """Accept the flat ``config.json`` layout with tenant keys at top level."""
        if isinstance(data, dict) and 'polaris' not in data and 'customer' in data:
            sections = ('pagination', 'output', 'logging', 'timeout')
            nested = {k: v for k, v in data.items() if k in sections}
            nested['polaris'] = {k: v for k, v in data.items() if k not in sections}
            return nested
        return data

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError('Timeout must be positive')
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Build configuration from a dictionary.

        Raises:
            ConfigError: If the data does not describe a valid configuration
        """
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f'Invalid configuration: {e}') from e

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from a JSON or YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise ConfigError(f'Configuration file not found: {config_path}')

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix in ('.yaml', '.yml'):
                    config_data = yaml.safe_load(f)
                else:
                    config_data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f'Could not parse {config_path}: {e}') from e

        if not isinstance(config_data, dict):
            raise ConfigError(f'Configuration in {config_path} must be a mapping')

        return cls.from_dict(config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        config_data = {
            'polaris': {
                'customer': os.getenv('POLARIS_CUSTOMER'),
                'email': os.getenv('POLARIS_EMAIL'),
                'password': os.getenv('POLARIS_PASSWORD'),
                'accesstoken': os.getenv('POLARIS_ACCESS_TOKEN'),
                'authUrlTemplate': os.getenv('POLARIS_AUTH_URL_TEMPLATE'),
                'authUrlV2Template': os.getenv('POLARIS_AUTH_URL_V2_TEMPLATE'),
                'projectsUrlTemplate': os.getenv('POLARIS_PROJECTS_URL_TEMPLATE'),
                'setPropertyUrlTemplate': os.getenv(
                    'POLARIS_SET_PROPERTY_URL_TEMPLATE'
                ),
                'branchesUrlTemplate': os.getenv('POLARIS_BRANCHES_URL_TEMPLATE'),
                'roleAssignmentsUrlTemplate': os.getenv(
                    'POLARIS_ROLE_ASSIGNMENTS_URL_TEMPLATE'
                ),
                'usersUrlTemplate': os.getenv('POLARIS_USERS_URL_TEMPLATE'),
            },
            'output': {
                'directory': os.getenv('POLARIS_OUTPUT_DIR'),
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls.from_dict(config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to a JSON or YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(by_alias=True, exclude_none=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            if config_file.suffix in ('.yaml', '.yml'):
                yaml.dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
            else:
                json.dump(data, f, indent=2)
                f.write('\n')


def create_template(output_path: str) -> None:
    """Create a configuration template file in the flat ``config.json`` layout."""
    template_config = {
        'customer': 'your-customer-name',
        'email': 'you@example.com',
        'password': '',
        'accesstoken': 'your-polaris-access-token',
        'authUrlTemplate': 'https://{customer}.polaris.synopsys.com/api/auth/authenticate',
        'authUrlV2Template': 'https://{customer}.polaris.synopsys.com/api/auth/v2/authenticate',
        'projectsUrlTemplate': 'https://{customer}.polaris.synopsys.com/api/common/v0/projects',
        'setPropertyUrlTemplate': 'https://{customer}.polaris.synopsys.com/api/common/v0/projects/properties',
        'branchesUrlTemplate': (
            'https://{customer}.polaris.synopsys.com/api/common/v0/branches'
            '?page%5Blimit%5D={limit}&page%5Boffset%5D={offset}'
        ),
        'roleAssignmentsUrlTemplate': DEFAULT_ROLE_ASSIGNMENTS_URL_TEMPLATE,
        'usersUrlTemplate': DEFAULT_USERS_URL_TEMPLATE,
        'pagination': {'projects': 500, 'branches': 500, 'users': 500},
        'output': {'directory': '.'},
        'logging': {'level': 'INFO', 'file': 'polaris-export.log'},
    }

    config_file = Path(output_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, 'w', encoding='utf-8') as f:
        if config_file.suffix in ('.yaml', '.yml'):
            yaml.dump(
                template_config, f, default_flow_style=False, indent=2, sort_keys=False
            )
        else:
            json.dump(template_config, f, indent=2)
            f.write('\n')
