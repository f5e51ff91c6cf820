"""
URL registry.

Every distinct URL seen during a run gets exactly one entry: a future that
receives the URL's Result once. Registration and assignment are guarded by
a lock so that only the caller that registered a URL performs the network
work for it; everybody else waits on the future.
"""

import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Set

from .results import Classification, Result

logger = logging.getLogger(__name__)


class UrlRegistry:
    """Deduplicating store of URL results for one processing run."""

    def __init__(self, on_assign: Optional[Callable[[Result], None]] = None):
        self._lock = threading.Lock()
        self._futures: Dict[str, Future] = OrderedDict()
        self._results: Dict[str, Result] = {}
        self._unassigned: Set[str] = set()
        self._by_classification: Dict[Classification, List[str]] = {}
        self._on_assign = on_assign
        self.created = 0
        self.assigned = 0

    def register(self, url: str) -> bool:
        """Create a pending entry for url. Returns False if it already existed."""
        with self._lock:
            if url in self._futures:
                return False
            self._futures[url] = Future()
            self._unassigned.add(url)
            self.created += 1
        logger.info(f"Registered {url}")
        return True

    def is_known(self, url: str) -> bool:
        with self._lock:
            return url in self._futures

    def wait(self, url: str, timeout: Optional[float] = None) -> Result:
        """
        Block until the result for url is assigned and return it.

        The URL must be registered. A caller must never wait on a URL it
        registered itself and has not yet assigned.
        """
        with self._lock:
            future = self._futures.get(url)
        if future is None:
            raise KeyError(f"URL not registered: {url}")
        return future.result(timeout)

    def assign(self, url: str, result: Result) -> bool:
        """
        Set the result for url if not already set.

        The first assignment wins, later ones are ignored and return False.
        """
        result = result.for_url(url)
        with self._lock:
            future = self._futures.get(url)
            if future is None:
                raise KeyError(f"URL not registered: {url}")
            if url in self._results:
                logger.info(f"Ignoring second assignment for {url}")
                return False
            self._results[url] = result
            self._unassigned.discard(url)
            self._by_classification.setdefault(result.classification, []).append(url)
            self.assigned += 1
        future.set_result(result)
        if self._on_assign is not None:
            self._on_assign(result)
        return True

    def add(self, url: str, result: Result) -> bool:
        """Register url and assign it a result already known."""
        self.register(url)
        return self.assign(url, result)

    def result(self, url: str) -> Optional[Result]:
        """Return the result for url, or None if not yet assigned."""
        with self._lock:
            return self._results.get(url)

    @property
    def urls(self) -> List[str]:
        """URLs in registration order."""
        with self._lock:
            return list(self._futures)

    @property
    def results(self) -> Dict[str, Result]:
        with self._lock:
            return dict(self._results)

    @property
    def unassigned_urls(self) -> Set[str]:
        with self._lock:
            return set(self._unassigned)

    @property
    def urls_by_classification(self) -> Dict[Classification, List[str]]:
        with self._lock:
            return {k: list(v) for k, v in self._by_classification.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._futures)

    def __contains__(self, url: str) -> bool:
        return self.is_known(url)
