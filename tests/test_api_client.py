"""Tests for Polaris API client and pagination."""

from unittest.mock import Mock, patch

import pytest
import requests

from polaris_export.api.client import APIResponse, PolarisClient
from polaris_export.api.exceptions import (
    PolarisAPIError,
    PolarisAuthenticationError,
    PolarisNotFoundError,
)
from polaris_export.api.pagination import Paginator

PROJECTS_URL = 'https://acme.polaris.test/api/common/v0/projects'


def make_response(status_code=200, body=None, headers=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {'Content-Type': 'application/vnd.api+json'}
    response.content = b'{}' if body is not None else b''
    response.json.return_value = body
    response.text = ''
    return response


def page(count, start=0, included=None):
    body = {'data': [{'id': str(start + i), 'type': 'projects'} for i in range(count)]}
    if included is not None:
        body['included'] = included
    return make_response(body=body)


def offsets(mock_get):
    return [dict(call.kwargs['params'])['page[offset]'] for call in mock_get.call_args_list]


class TestAPIResponse:
    """Test API response model."""

    def test_api_response_creation(self):
        """Test API response creation."""
        response = APIResponse(
            status_code=200,
            data={'data': []},
            headers={'Content-Type': 'application/vnd.api+json'},
            success=True,
        )

        assert response.status_code == 200
        assert response.data == {'data': []}
        assert response.success is True


class TestPolarisClient:
    """Test Polaris API client."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = PolarisClient('bearer-token')

    def test_client_initialization(self):
        """Test that the session carries the bearer token."""
        assert self.client.session.headers['Authorization'] == 'Bearer bearer-token'
        assert self.client.session.headers['Accept'] == 'application/vnd.api+json'

    def test_client_requires_token(self):
        """Test client initialization without a token."""
        with pytest.raises(PolarisAuthenticationError):
            PolarisClient('')

    @patch('requests.Session.get')
    def test_get_request_success(self, mock_get):
        """Test successful GET request."""
        mock_get.return_value = make_response(body={'data': [{'id': '1'}]})

        response = self.client.get(PROJECTS_URL)

        assert response.success is True
        assert response.data == {'data': [{'id': '1'}]}
        mock_get.assert_called_once_with(PROJECTS_URL, params=None, timeout=None)

    @patch('requests.Session.get')
    def test_get_request_404(self, mock_get):
        """Test GET request with 404 error."""
        mock_get.return_value = make_response(status_code=404)

        with pytest.raises(PolarisNotFoundError):
            self.client.get(PROJECTS_URL)

    @patch('requests.Session.get')
    def test_get_request_401(self, mock_get):
        """Test GET request with authentication error."""
        mock_get.return_value = make_response(status_code=401)

        with pytest.raises(PolarisAuthenticationError):
            self.client.get(PROJECTS_URL)

    @patch('requests.Session.get')
    def test_get_request_500_carries_body(self, mock_get):
        """Test that server errors keep status and body."""
        mock_get.return_value = make_response(
            status_code=500, body={'errors': [{'detail': 'boom'}]}
        )

        with pytest.raises(PolarisAPIError) as exc_info:
            self.client.get(PROJECTS_URL)

        assert exc_info.value.status_code == 500
        assert exc_info.value.response_data == {'errors': [{'detail': 'boom'}]}

    @patch('requests.Session.get')
    def test_get_network_error(self, mock_get):
        """Test that transport failures become API errors."""
        mock_get.side_effect = requests.ConnectionError('unreachable')

        with pytest.raises(PolarisAPIError, match='Network error'):
            self.client.get(PROJECTS_URL)

    @patch('requests.Session.post')
    def test_post_request_success(self, mock_post):
        """Test successful POST request with a JSON body."""
        mock_post.return_value = make_response(body={'ok': True})
        payload = {'projects': ['p1'], 'properties': {'team': 'core'}}

        response = self.client.post(PROJECTS_URL + '/properties', data=payload)

        assert response.success is True
        assert mock_post.call_args.kwargs['json'] == payload

    def test_context_manager(self):
        """Test client as context manager."""
        with patch.object(PolarisClient, 'close') as mock_close:
            with PolarisClient('bearer-token') as client:
                assert isinstance(client, PolarisClient)
            mock_close.assert_called_once()


class TestPaginator:
    """Test offset/limit pagination."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = PolarisClient('bearer-token')

    @patch('requests.Session.get')
    def test_pages_until_short_page(self, mock_get):
        """Test that pages of 5, 5, 5 and 3 yield 18 items in 4 requests."""
        mock_get.side_effect = [page(5, 0), page(5, 5), page(5, 10), page(3, 15)]

        items = self.client.get_paginated(PROJECTS_URL, page_size=5)

        assert len(items) == 18
        assert [item['id'] for item in items] == [str(i) for i in range(18)]
        assert mock_get.call_count == 4
        assert offsets(mock_get) == [0, 5, 10, 15]

    @patch('requests.Session.get')
    def test_short_first_page(self, mock_get):
        """Test that a short first page ends pagination after one request."""
        mock_get.side_effect = [page(2)]

        items = self.client.get_paginated(PROJECTS_URL, page_size=5)

        assert len(items) == 2
        assert mock_get.call_count == 1

    @patch('requests.Session.get')
    def test_exactly_full_last_page(self, mock_get):
        """Test that a full final page is followed by one empty page."""
        mock_get.side_effect = [page(5), page(0)]

        items = self.client.get_paginated(PROJECTS_URL, page_size=5)

        assert len(items) == 5
        assert offsets(mock_get) == [0, 5]

    @patch('requests.Session.get')
    def test_error_page_stops_without_raising(self, mock_get):
        """Test that a failed page keeps earlier items and stops."""
        mock_get.side_effect = [page(5), make_response(status_code=503)]

        items = self.client.get_paginated(PROJECTS_URL, page_size=5)

        assert len(items) == 5
        assert mock_get.call_count == 2

    @patch('requests.Session.get')
    def test_non_200_success_stops(self, mock_get):
        """Test that a 2xx other than 200 is treated as no more data."""
        mock_get.side_effect = [make_response(status_code=204)]

        assert self.client.get_paginated(PROJECTS_URL, page_size=5) == []

    @patch('requests.Session.get')
    def test_network_error_stops(self, mock_get):
        """Test that a transport failure ends pagination."""
        mock_get.side_effect = requests.ConnectionError('reset')

        assert self.client.get_paginated(PROJECTS_URL, page_size=5) == []

    @patch('requests.Session.get')
    def test_page_parameters(self, mock_get):
        """Test that page parameters replace those already in the URL."""
        mock_get.side_effect = [page(0)]

        self.client.get_paginated(
            PROJECTS_URL + '?page[limit]=5&page[offset]=0&filter=active', page_size=50
        )

        url = mock_get.call_args.args[0]
        params = mock_get.call_args.kwargs['params']
        assert url == PROJECTS_URL
        assert params == [('filter', 'active'), ('page[limit]', 50), ('page[offset]', 0)]

    @patch('requests.Session.get')
    def test_offset_placeholder(self, mock_get):
        """Test that templated URLs get the offset substituted in place."""
        mock_get.side_effect = [page(2, 0), page(1, 2)]
        template = 'https://acme.polaris.test/branches?page[limit]={limit}&page[offset]={offset}'

        items = self.client.get_paginated(template, page_size=2)

        assert len(items) == 3
        urls = [call.args[0] for call in mock_get.call_args_list]
        assert urls == [
            'https://acme.polaris.test/branches?page[limit]=2&page[offset]=0',
            'https://acme.polaris.test/branches?page[limit]=2&page[offset]=2',
        ]

    @patch('requests.Session.get')
    def test_lazy_iteration(self, mock_get):
        """Test that iteration fetches pages only as items are consumed."""
        mock_get.side_effect = [page(2, 0), page(2, 2), page(0)]
        paginator = Paginator(self.client, PROJECTS_URL, page_size=2)

        iterator = iter(paginator)
        first = next(iterator)

        assert first['id'] == '0'
        assert mock_get.call_count == 1

    @patch('requests.Session.get')
    def test_not_restartable(self, mock_get):
        """Test that a paginator can only be consumed once."""
        mock_get.side_effect = [page(1)]
        paginator = Paginator(self.client, PROJECTS_URL, page_size=5)
        paginator.collect()

        with pytest.raises(RuntimeError):
            iter(paginator)

    @patch('requests.Session.get')
    def test_included_resources_gathered(self, mock_get):
        """Test that included resources are collected across pages once."""
        group = {'id': 'g1', 'type': 'groups', 'attributes': {'groupname': 'devs'}}
        mock_get.side_effect = [page(2, 0, included=[group]), page(1, 2, included=[group])]
        paginator = self.client.paginate(PROJECTS_URL, page_size=2)

        items = paginator.collect()

        assert len(items) == 3
        assert paginator.included == [group]

    def test_invalid_page_size(self):
        """Test that page size must be positive."""
        with pytest.raises(ValueError):
            Paginator(self.client, PROJECTS_URL, page_size=0)
