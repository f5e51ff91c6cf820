"""Shared fixtures: a fake requests session and engine factories."""

import threading
from typing import Dict, List, Optional, Tuple

import pytest
import requests

from odf_link_checker.check_links import StatusChecker
from odf_link_checker.http_client import HttpClient
from odf_link_checker.processor import UrlProcessor
from odf_link_checker.registry import UrlRegistry
from odf_link_checker.wikipedia import WikipediaTranslator

SITE = 'example.org'


class FakeResponse:
    """Just enough of requests.Response for the checker and translator."""

    def __init__(self, url: str, status_code: int = 200, reason: str = 'OK',
                 history: Optional[List['FakeResponse']] = None,
                 headers: Optional[Dict[str, str]] = None, json_body=None):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        self.history = history or []
        self.headers = headers or {}
        self._json = json_body
        self.closed = False

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class FakeSession:
    """
    Records requests and answers them from canned responses.

    HEAD requests for unknown URLs raise a connection error.
    """

    def __init__(self):
        self.heads: Dict[str, dict] = {}
        self.langlinks: Dict[Tuple[str, str, str], object] = {}
        self.calls: List[tuple] = []
        self.responses: List[FakeResponse] = []
        self.closed = False
        self._lock = threading.Lock()

    def add_head(self, url: str, status: int = 200, reason: str = 'OK',
                 redirect_to: Optional[str] = None, error: Optional[Exception] = None):
        self.heads[url] = {'status': status, 'reason': reason,
                           'redirect_to': redirect_to, 'error': error}

    def add_langlinks(self, language: str, title: str, target: str, body):
        """Register the API answer for title in language, queried for target."""
        self.langlinks[(language, title, target)] = body

    def head(self, url, **kwargs):
        with self._lock:
            self.calls.append(('HEAD', url))
        entry = self.heads.get(url)
        if entry is None:
            raise requests.ConnectionError(f"Failed to resolve {url}")
        if entry['error'] is not None:
            raise entry['error']
        history = []
        final_url = url
        if entry['redirect_to']:
            history = [FakeResponse(url, 301, 'Moved Permanently',
                                    headers={'Location': entry['redirect_to']})]
            final_url = entry['redirect_to']
        response = FakeResponse(final_url, entry['status'], entry['reason'], history=history)
        with self._lock:
            self.responses.append(response)
        return response

    def get(self, url, params=None, **kwargs):
        params = params or {}
        language = url.split('://', 1)[1].split('.', 1)[0]
        key = (language, params.get('titles'), params.get('lllang'))
        with self._lock:
            self.calls.append(('GET', url, params.get('titles'), params.get('lllang')))
        if key not in self.langlinks:
            return FakeResponse(url, 200, json_body={'query': {'pages': {'-1': {'missing': ''}}}})
        body = self.langlinks[key]
        if isinstance(body, FakeResponse):
            return body
        if isinstance(body, Exception):
            raise body
        return FakeResponse(url, 200, json_body=body)

    def close(self):
        self.closed = True

    def head_calls(self, url: Optional[str] = None) -> List[tuple]:
        return [c for c in self.calls if c[0] == 'HEAD' and (url is None or c[1] == url)]

    def get_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] == 'GET']


def langlinks_body(target: str, title: Optional[str], page_id: str = '190246'):
    """API body for an existing page, with or without a translation."""
    page = {'pageid': int(page_id), 'ns': 0, 'title': 'Source'}
    if title is not None:
        page['langlinks'] = [{'lang': target, '*': title}]
    return {'batchcomplete': '', 'query': {'pages': {page_id: page}}}


MISSING_BODY = {'batchcomplete': '', 'query': {'pages': {'-1': {'ns': 0, 'title': 'Lorem Hipsum', 'missing': ''}}}}


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    client = HttpClient(session, timeout=1.0, max_workers=4)
    yield client
    client.close()


@pytest.fixture
def make_processor(session):
    clients = []

    def factory(language: str = 'fr', parallelism: int = 1, site: str = SITE) -> UrlProcessor:
        client = HttpClient(session, timeout=1.0, max_workers=4)
        clients.append(client)
        checker = StatusChecker(client)
        translator = WikipediaTranslator(client, checker, language, site=site)
        return UrlProcessor(UrlRegistry(), checker, translator, parallelism=parallelism)

    yield factory
    for client in clients:
        client.close()
