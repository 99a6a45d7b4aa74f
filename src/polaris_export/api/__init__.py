"""Polaris API access: authentication, transport and pagination."""

from .auth import CredentialResolver
from .client import APIResponse, PolarisClient
from .exceptions import (
    PolarisAPIError,
    PolarisAuthenticationError,
    PolarisNotFoundError,
)
from .pagination import Paginator

__all__ = [
    'APIResponse',
    'CredentialResolver',
    'Paginator',
    'PolarisAPIError',
    'PolarisAuthenticationError',
    'PolarisClient',
    'PolarisNotFoundError',
]
