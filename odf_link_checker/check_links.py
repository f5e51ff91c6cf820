import logging
import threading
from typing import Optional

import requests

from .http_client import HttpClient, HttpTask
from .results import Result, failure, from_response

logger = logging.getLogger(__name__)


class StatusChecker:
    """Issues HEAD probes for URLs through a shared HttpClient."""

    def __init__(self, client: HttpClient):
        self.client = client
        self.probes = 0
        self._lock = threading.Lock()

    def probe(self, url: str, cookies: Optional[dict] = None, headers: Optional[dict] = None,
              timeout: Optional[float] = None) -> HttpTask:
        """
        Start a HEAD request for url and return its task.

        The task never raises: errors, timeouts and cancellation all resolve
        to a failure Result.

        Args:
            url: URL to check
            cookies: Cookies to send with this request only
            headers: Extra headers merged with the session's
            timeout: Request timeout in seconds, defaults to the client's
        """
        with self._lock:
            self.probes += 1
        timeout = timeout if timeout is not None else self.client.timeout

        def work(task: HttpTask) -> Result:
            session = self.client.session
            try:
                response = session.head(url, headers=headers, timeout=timeout,
                                        allow_redirects=True, stream=True,
                                        cookies=cookies)
            except requests.Timeout:
                return failure(url, f"Timeout after {timeout}s")
            except requests.ConnectionError as e:
                return failure(url, f"Connection error: {e}")
            except requests.RequestException as e:
                return failure(url, f"{type(e).__name__}: {e}")
            task.hold(response)
            try:
                result = from_response(url, response)
            finally:
                response.close()
            logger.info(f"[{task.request_id}] HEAD {url} -> {response.status_code}")
            return result

        return self.client.submit(url, work)

    def check(self, url: str, **overrides) -> Result:
        """Probe url and wait for its result."""
        return self.probe(url, **overrides).result()
