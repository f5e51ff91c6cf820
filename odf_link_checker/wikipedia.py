"""
Wikipedia language handling.

Detects URLs pointing at a Wikipedia article and finds the equivalent
article in the document language using the langlinks query API, e.g.:

    https://en.wikipedia.org/w/api.php?action=query&prop=langlinks&titles=Lorem_ipsum&lllang=fr&format=json

    {"batchcomplete": "",
     "query": {"normalized": [{"from": "Lorem_ipsum", "to": "Lorem ipsum"}],
               "pages": {"190246": {"pageid": 190246, "ns": 0, "title": "Lorem ipsum",
                                    "langlinks": [{"lang": "fr", "*": "Lorem ipsum"}]}}}}

A non-existent page is reported under a negative page id:

    {"query": {"pages": {"-1": {"ns": 0, "title": "Lorem Hipsum", "missing": ""}}}}
"""

import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
from urllib.parse import unquote

import requests

from .check_links import StatusChecker
from .http_client import HttpClient, HttpTask
from .results import Result, failure, replace, success

logger = logging.getLogger(__name__)

DEFAULT_SITE = 'wikipedia.org'
SAME_LANGUAGE_MESSAGE = "URL language matches document language"
INVALID_PAGE_MESSAGE = "Not a valid wikipedia page"

class TranslationOutcome(str, Enum):
    SAME_LANGUAGE = 'same-language'
    FOUND = 'found'
    NOT_FOUND = 'not-found'
    INVALID = 'invalid'
    ERROR = 'error'


@dataclass
class ArticleRef:
    """Wikipedia article referenced by a URL."""
    scheme: str
    language: str
    page: str
    fragment: str = ''

    @property
    def title(self) -> str:
        """Page title as the API expects it."""
        return unquote(self.page)


@dataclass
class Translation:
    outcome: TranslationOutcome
    result: Result

    @property
    def found(self) -> bool:
        return self.outcome == TranslationOutcome.FOUND


def article_pattern(site: str = DEFAULT_SITE) -> re.Pattern:
    return re.compile(r'^(https?)://([\w-]+)\.' + re.escape(site) + r'/wiki/([^#]+)#?([^#]*)$')


def parse_article_url(url: str, site: str = DEFAULT_SITE) -> Optional[ArticleRef]:
    """Return the article referenced by url, or None if url isn't an article URL."""
    match = article_pattern(site).match(url)
    if not match:
        return None
    scheme, language, page, fragment = match.groups()
    return ArticleRef(scheme=scheme, language=language, page=page, fragment=fragment)


def article_url(language: str, title: str, site: str = DEFAULT_SITE, scheme: str = 'https') -> str:
    """
    Build the URL of an article from its title.

    The title is kept as written, spaces aside, so that the URL matches an
    href typed with the same raw title in a document.
    """
    return f"{scheme}://{language}.{site}/wiki/{title.replace(' ', '_')}"


def api_url(language: str, site: str = DEFAULT_SITE) -> str:
    return f"https://{language}.{site}/w/api.php"


def langlinks_params(title: str, target_language: str) -> Dict[str, str]:
    return {
        'action': 'query',
        'prop': 'langlinks',
        'titles': title,
        'lllang': target_language,
        'format': 'json',
    }


class WikipediaTranslator:
    """Suggests the document-language equivalent of Wikipedia article URLs."""

    def __init__(self, client: HttpClient, checker: StatusChecker, language: str,
                 site: str = DEFAULT_SITE):
        self.client = client
        self.checker = checker
        self.language = language
        self.site = site
        self.queries = 0
        self._lock = threading.Lock()

    def parse(self, url: str) -> Optional[ArticleRef]:
        return parse_article_url(url, self.site)

    def query(self, url: str, article: ArticleRef, outcome: dict) -> HttpTask:
        """
        Start the langlinks query for article and return its task.

        The task resolves to a replace result pointing at the translated
        article, a success result when no translation exists, or a failure
        for invalid pages and request errors. The outcome dict receives the
        TranslationOutcome once the response has been interpreted.
        """
        with self._lock:
            self.queries += 1
        target = self.language

        def work(task: HttpTask) -> Result:
            try:
                response = self.client.session.get(
                    api_url(article.language, self.site),
                    params=langlinks_params(article.title, target),
                    timeout=self.client.timeout,
                )
            except requests.RequestException as e:
                outcome['outcome'] = TranslationOutcome.ERROR
                return failure(url, f"Translation query failed: {type(e).__name__}: {e}")
            task.hold(response)
            with response:
                if response.status_code != 200:
                    outcome['outcome'] = TranslationOutcome.INVALID
                    return failure(url, f"{INVALID_PAGE_MESSAGE} (API status {response.status_code})")
                try:
                    pages = response.json()['query']['pages']
                    page_id, page = next(iter(pages.items()))
                    links = page.get('langlinks') or []
                except (KeyError, TypeError, ValueError, AttributeError, StopIteration) as e:
                    logger.info(f"[{task.request_id}] Unexpected API response for {article.title}: {e}")
                    outcome['outcome'] = TranslationOutcome.INVALID
                    return failure(url, f"{INVALID_PAGE_MESSAGE} (unexpected API response)")

            logger.info(f"[{task.request_id}] Translation of {article.title}: {links}")
            if str(page_id).startswith('-'):
                outcome['outcome'] = TranslationOutcome.INVALID
                return failure(url, INVALID_PAGE_MESSAGE)

            link = next((l for l in links if l.get('lang') == target), None)
            title = link and (link.get('*') or link.get('title'))
            if not title:
                outcome['outcome'] = TranslationOutcome.NOT_FOUND
                return success(url, f"No translation to {target}")

            to_url = article_url(target, title, self.site)
            result = replace(url, to_url, f"Found translation: {to_url}")
            if article.fragment:
                result.add_warning(f"Cannot carry fragment #{article.fragment} over to {target}")
            outcome['outcome'] = TranslationOutcome.FOUND
            return result

        return self.client.submit(url, work)

    def translate(self, url: str) -> Optional[Translation]:
        """
        Check url against the document language.

        Returns:
            None when url is not a Wikipedia article, otherwise a Translation
            whose result is the final result for url.
        """
        article = self.parse(url)
        if article is None:
            return None

        if article.language == self.language:
            result = self.checker.check(url).add_message(SAME_LANGUAGE_MESSAGE)
            return Translation(TranslationOutcome.SAME_LANGUAGE, result)

        outcome = {}
        task = self.query(url, article, outcome)
        result = task.result()
        if task.cancelled:
            return Translation(TranslationOutcome.ERROR, result)
        return Translation(outcome.get('outcome', TranslationOutcome.ERROR), result)
