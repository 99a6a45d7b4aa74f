"""Offset/limit pagination over JSON:API collection endpoints."""

from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Tuple
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from loguru import logger

from ..config.config import resolve_template
from .exceptions import PolarisAPIError

if TYPE_CHECKING:
    from .client import PolarisClient

LIMIT_PARAM = 'page[limit]'
OFFSET_PARAM = 'page[offset]'


class Paginator:
    """Walk a collection endpoint page by page.

    Iterating yields the items of each page in order, fetching lazily. Pages
    are requested at offsets ``0, page_size, 2 * page_size, ...`` until a page
    holds fewer than ``page_size`` items or a request fails. A failed request
    is logged and ends the walk; it is never raised to the caller.

    A paginator can be iterated only once. Resources from the JSON:API
    ``included`` member of every page are gathered in :attr:`included`.
    """

    def __init__(self, client: 'PolarisClient', url: str, page_size: int):
        if page_size <= 0:
            raise ValueError('page_size must be positive')

        self.client = client
        self.url = url
        self.page_size = page_size
        self.offset = 0
        self.pages_fetched = 0
        self.included: List[Dict[str, Any]] = []
        self._seen_included = set()
        self._started = False
        self.logger = logger.bind(component='Paginator')

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        if self._started:
            raise RuntimeError('Paginator has already been consumed')
        self._started = True
        return self._walk()

    def collect(self) -> List[Dict[str, Any]]:
        """Fetch every page and return all items in order."""
        items = list(self)
        self.logger.info(
            f'Retrieved {len(items)} items from {self._base_url()} '
            f'in {self.pages_fetched} page(s)'
        )
        return items

    def _walk(self) -> Iterator[Dict[str, Any]]:
        while True:
            url, params = self._page_request()
            self.logger.debug(f'Fetching {url} (offset={self.offset})')

            try:
                response = self.client.get(url, params=params)
            except PolarisAPIError as e:
                self.logger.error(
                    f'Stopping pagination at offset {self.offset}: {e} '
                    f'(status={e.status_code}, body={e.response_data})'
                )
                return

            if response.status_code != 200:
                self.logger.error(
                    f'Stopping pagination at offset {self.offset}: '
                    f'unexpected HTTP {response.status_code}'
                )
                return

            self.pages_fetched += 1
            items = self._page_items(response.data)
            self._gather_included(response.data)

            yield from items

            self.offset += self.page_size
            if len(items) < self.page_size:
                return

    def _page_request(self) -> Tuple[str, List[Tuple[str, Any]]]:
        """Build the URL and query parameters for the current offset."""
        if '{offset}' in self.url:
            url = resolve_template(self.url, offset=self.offset, limit=self.page_size)
            return url, []

        parts = urlsplit(self.url)
        query = [
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key not in (LIMIT_PARAM, OFFSET_PARAM)
        ]
        query.append((LIMIT_PARAM, self.page_size))
        query.append((OFFSET_PARAM, self.offset))
        return urlunsplit(parts._replace(query='')), query

    def _base_url(self) -> str:
        return self.url.split('?')[0]

    def _page_items(self, body: Any) -> List[Dict[str, Any]]:
        if isinstance(body, dict):
            body = body.get('data')
        if isinstance(body, list):
            return body
        self.logger.warning(f'Page at offset {self.offset} carried no item list')
        return []

    def _gather_included(self, body: Any) -> None:
        if not isinstance(body, dict):
            return
        for resource in body.get('included') or []:
            key = (resource.get('type'), resource.get('id'))
            if key in self._seen_included:
                continue
            self._seen_included.add(key)
            self.included.append(resource)
