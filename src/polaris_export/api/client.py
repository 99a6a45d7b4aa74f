"""Polaris API client implementation."""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger
from pydantic import BaseModel

from .exceptions import (
    PolarisAPIError,
    PolarisAuthenticationError,
    PolarisNotFoundError,
)
from .pagination import Paginator

USER_AGENT = 'polaris-export/0.1.0'
JSON_API_MEDIA_TYPE = 'application/vnd.api+json'


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool


def decode_body(response: requests.Response) -> Any:
    """Decode a response body as JSON, falling back to text."""
    try:
        return response.json() if response.content else None
    except ValueError:
        return response.text


class PolarisClient:
    """Bearer-authenticated Polaris API client."""

    def __init__(self, token: str, timeout: Optional[float] = None):
        """Initialize Polaris client.

        Args:
            token: Bearer token obtained from the credential resolver
            timeout: Request timeout in seconds (transport default when None)
        """
        if not token:
            raise PolarisAuthenticationError('No bearer token provided')

        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                'Authorization': f'Bearer {token}',
                'Accept': JSON_API_MEDIA_TYPE,
                'User-Agent': USER_AGENT,
            }
        )

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            PolarisAPIError: For non-2xx responses
        """
        headers = dict(response.headers)

        if response.status_code == 401:
            raise PolarisAuthenticationError(
                'Authentication failed',
                status_code=401,
                response_data=decode_body(response),
            )

        if response.status_code == 404:
            raise PolarisNotFoundError(
                'Resource not found',
                status_code=404,
                response_data=decode_body(response),
            )

        if response.status_code >= 400:
            body = decode_body(response)
            raise PolarisAPIError(
                f'API request failed: HTTP {response.status_code}',
                status_code=response.status_code,
                response_data=body,
            )

        return APIResponse(
            status_code=response.status_code,
            data=decode_body(response),
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    def get(self, url: str, params: Optional[Any] = None) -> APIResponse:
        """Make GET request.

        Args:
            url: Absolute endpoint URL
            params: Query parameters (mapping or list of pairs)

        Returns:
            API response
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f'Network error during GET request: {e}')
            raise PolarisAPIError(f'Network error: {e}')
        return self._handle_response(response)

    def post(self, url: str, data: Optional[Dict[str, Any]] = None) -> APIResponse:
        """Make POST request with a JSON body.

        Args:
            url: Absolute endpoint URL
            data: Request body data

        Returns:
            API response
        """
        try:
            response = self.session.post(
                url,
                json=data,
                headers={'Accept': 'application/json'},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f'Network error during POST request: {e}')
            raise PolarisAPIError(f'Network error: {e}')
        return self._handle_response(response)

    def paginate(self, url: str, page_size: int) -> Paginator:
        """Create a paginator over a collection endpoint."""
        return Paginator(self, url, page_size)

    def get_paginated(self, url: str, page_size: int) -> List[Dict[str, Any]]:
        """Get all pages of a paginated endpoint.

        Args:
            url: Collection URL
            page_size: Items per page

        Returns:
            List of all items from all pages
        """
        return self.paginate(url, page_size).collect()

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.debug('Polaris client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
