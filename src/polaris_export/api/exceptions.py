"""Polaris API exceptions."""

from typing import Any, Optional


class PolarisAPIError(Exception):
    """Base exception for Polaris API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[Any] = None,
    ):
        """Initialize Polaris API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response_data: Response body from the API (decoded JSON or text)
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class PolarisAuthenticationError(PolarisAPIError):
    """Authentication error with Polaris API."""

    pass


class PolarisNotFoundError(PolarisAPIError):
    """Resource not found error."""

    pass
