"""
URL processing.

Each href goes through the same steps: dedup against the registry, scheme
check, pairing with its https counterpart, Wikipedia language resolution,
and assignment of its final result.

The https variant of a URL always leads: it is resolved first and on its
own, and the http variant derives its result from it. An http URL may wait
for its https counterpart but never the reverse, so no two URLs ever wait
on each other and no request is issued twice for the same URL.
"""

import logging
import threading
import concurrent.futures
from typing import Iterable, List, Optional

from tqdm import tqdm

from .check_links import StatusChecker
from .registry import UrlRegistry
from .results import Classification, Result, cancelled, failure, ignored, replace, success
from .utils import to_https
from .wikipedia import INVALID_PAGE_MESSAGE, TranslationOutcome, WikipediaTranslator

logger = logging.getLogger(__name__)


class UrlProcessor:
    """
    Resolves hrefs into results, sharing work between duplicates and
    http/https pairs.

    Args:
        registry: Registry receiving one result per distinct URL
        checker: Status checker issuing HEAD probes
        translator: Wikipedia translator for the document language
        parallelism: Number of hrefs processed concurrently (1 is sequential)
    """

    def __init__(self, registry: UrlRegistry, checker: StatusChecker,
                 translator: WikipediaTranslator, parallelism: int = 1):
        if parallelism < 1:
            raise ValueError(f"parallelism must be at least 1, got {parallelism}")
        self.registry = registry
        self.checker = checker
        self.translator = translator
        self.parallelism = parallelism
        self.input_urls: List[str] = []
        self._input_lock = threading.Lock()

    def add_input_url(self, url: str) -> None:
        """Record an href as seen in the input, duplicates included."""
        with self._input_lock:
            self.input_urls.append(url)

    def process_url(self, url: str) -> Result:
        """Record and resolve one href, returning its final result."""
        self.add_input_url(url)
        return self._process(url)

    def _process(self, url: str) -> Result:
        if not self.registry.register(url):
            # Seen before, possibly still being resolved elsewhere
            return self.registry.wait(url)

        https_url = to_https(url)
        if https_url is None:
            self.registry.assign(url, ignored(url, "Not an HTTP(S) URL"))
            return self.registry.result(url)

        if https_url == url:
            self._resolve_https(url, origin=url)
            return self.registry.result(url)

        fallback = None
        if self.registry.register(https_url):
            fallback = self._resolve_https(https_url, origin=url)
            https_result = self.registry.result(https_url)
        else:
            https_result = self.registry.wait(https_url)
        return self._process_http_based_on_https(url, https_url, https_result, fallback)

    def _resolve_https(self, https_url: str, origin: str) -> Optional[Result]:
        """
        Resolve an https URL registered by the caller and assign its result.

        Returns the result to use for the http origin should the https URL
        fail, or None when the http URL must be checked on its own.
        """
        translation = self.translator.translate(https_url)
        if translation is None:
            self.registry.assign(https_url, self.checker.check(https_url))
            return None

        result = translation.result
        self.registry.assign(https_url, result)

        if translation.found:
            # A translated URL already registered is resolved by whoever registered it
            if self.registry.register(result.location):
                translated = success(result.location, f"Translation for: {origin}").add_previous(result)
                self.registry.assign(result.location, translated)
        elif translation.outcome == TranslationOutcome.INVALID and origin != https_url:
            return failure(origin, f"{INVALID_PAGE_MESSAGE}.")
        return None

    def _process_http_based_on_https(self, url: str, https_url: str, https_result: Result,
                                     fallback: Optional[Result] = None) -> Result:
        """Derive the result of an http URL from the result of its https counterpart."""
        logger.info(f"Deriving {url} from {https_url} ({https_result.classification.value})")
        classification = https_result.classification
        if classification == Classification.SUCCESS:
            result = replace(url, https_url, "Upgrade to HTTPS")
        elif classification in (Classification.REDIRECT, Classification.REPLACE):
            result = replace(url, https_result.location, f"HTTPS version is a {classification.value}")
            result.warnings.extend(https_result.warnings)
        elif fallback is not None:
            result = fallback
        else:
            # https not validated, only the http URL matters now
            result = self.checker.check(url).add_message("HTTPS wasn't resolved satisfactorily")
        result.add_previous(https_result)
        self.registry.assign(url, result)
        return self.registry.result(url)

    def process_urls(self, urls: Iterable[str], progress: bool = False) -> List[Result]:
        """
        Process hrefs and return their results in input order.

        With parallelism above 1, hrefs are admitted to a bounded worker pool
        in input order and complete in any order. Any unexpected error aborts
        the run: pending hrefs are dropped and in-flight requests cancelled
        before the error propagates.
        """
        urls = list(urls)
        if not urls:
            return []

        logger.info(f"Processing {len(urls)} hrefs with parallelism {self.parallelism}")
        with tqdm(total=len(urls), desc="Checking links", unit="link", disable=not progress) as pbar:
            if self.parallelism == 1:
                results = []
                try:
                    for url in urls:
                        results.append(self.process_url(url))
                        pbar.update(1)
                except BaseException:
                    self.abort()
                    raise
                return results

            executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=self.parallelism, thread_name_prefix='url')
            futures = []
            try:
                for url in urls:
                    self.add_input_url(url)
                    futures.append(executor.submit(self._process, url))
                for future in concurrent.futures.as_completed(futures):
                    future.result()
                    pbar.update(1)
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                self.abort()
                raise
            finally:
                executor.shutdown(wait=True, cancel_futures=True)

    def abort(self) -> None:
        """Cancel every request still in flight and resolve unfinished URLs as cancelled."""
        count = self.checker.client.cancel_all()
        if count:
            logger.warning(f"Cancelled {count} in-flight requests")
        for url in self.registry.unassigned_urls:
            self.registry.assign(url, cancelled(url))
