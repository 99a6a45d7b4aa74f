"""Configuration models and loaders."""

from .config import (
    Config,
    ConfigError,
    LoggingConfig,
    OutputConfig,
    PaginationConfig,
    PolarisConfig,
    create_template,
    resolve_template,
)

__all__ = [
    'Config',
    'ConfigError',
    'LoggingConfig',
    'OutputConfig',
    'PaginationConfig',
    'PolarisConfig',
    'create_template',
    'resolve_template',
]
