"""Bearer token acquisition for the Polaris API."""

import re
from typing import Any, Dict, Optional, Tuple

import requests
from loguru import logger

from ..config.config import PolarisConfig
from .client import decode_body
from .exceptions import PolarisAuthenticationError

ACCESS_TOKEN_COOKIE = re.compile(r'(?:^|,)\s*access_token=([^;,]*)')


def token_from_set_cookie(header: Optional[str]) -> Optional[str]:
    """Extract the ``access_token`` cookie value from a Set-Cookie header.

    Multiple cookies folded into one header are separated by commas.

    Args:
        header: Raw Set-Cookie header value

    Returns:
        Token value, or None when no ``access_token`` cookie is present
    """
    if not header:
        return None
    match = ACCESS_TOKEN_COOKIE.search(header)
    if match and match.group(1):
        return match.group(1)
    return None


class CredentialResolver:
    """Exchange configured credentials for a bearer token.

    Exactly one authentication flow is attempted per call:

    * a non-empty password posts ``email`` and ``password`` to the
      password-flow endpoint (``authUrlTemplate``);
    * otherwise a non-empty access token posts ``email`` and ``accesstoken``
      to the token-flow endpoint (``authUrlV2Template``).

    The token is read from an ``access_token`` cookie, falling back to the
    ``jwt`` field of the response body.
    """

    def __init__(
        self,
        config: PolarisConfig,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the resolver.

        Args:
            config: Polaris tenant configuration
            session: HTTP session to use (a fresh one when omitted)
            timeout: Request timeout in seconds
        """
        self.config = config
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logger.bind(component='CredentialResolver')

    def select_flow(self) -> Tuple[str, Dict[str, str]]:
        """Choose the authentication endpoint and form body.

        Returns:
            Tuple of (auth URL, form fields)

        Raises:
            PolarisAuthenticationError: If neither password nor token is set
        """
        if self.config.password:
            return self.config.url('auth_url_template'), {
                'email': self.config.email,
                'password': self.config.password,
            }
        if self.config.access_token:
            return self.config.url('auth_url_v2_template'), {
                'email': self.config.email,
                'accesstoken': self.config.access_token,
            }
        raise PolarisAuthenticationError('no credential provided')

    def resolve(self) -> str:
        """Authenticate and return the bearer token.

        Raises:
            PolarisAuthenticationError: On missing credentials, a failed
                request, a non-2xx response, or a response without a token
        """
        url, form = self.select_flow()
        self.logger.info(f'Sending authentication request to {url}')

        try:
            response = self.session.post(
                url,
                data=form,
                headers={
                    'Accept': 'application/json',
                    'Content-Type': 'application/x-www-form-urlencoded',
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PolarisAuthenticationError(f'Authentication request failed: {e}')

        self.logger.info(f'Authentication response received: {response.status_code}')

        if not 200 <= response.status_code < 300:
            raise PolarisAuthenticationError(
                f'Authentication failed: HTTP {response.status_code}',
                status_code=response.status_code,
                response_data=decode_body(response),
            )

        token = self._extract_token(response)
        if not token:
            raise PolarisAuthenticationError(
                'token not found in response',
                status_code=response.status_code,
            )
        return token

    def _extract_token(self, response: requests.Response) -> Optional[str]:
        headers = {key.lower(): value for key, value in response.headers.items()}
        token = token_from_set_cookie(headers.get('set-cookie'))
        if token:
            self.logger.debug('Bearer token taken from access_token cookie')
            return token

        body: Any = decode_body(response)
        if isinstance(body, dict) and body.get('jwt'):
            self.logger.debug('Bearer token taken from jwt response field')
            return body['jwt']
        return None
