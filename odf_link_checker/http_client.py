"""
HTTP client shared by every request of a processing run.

One requests.Session is opened per run with a bounded connection pool and
the application User-Agent, and closed when the run ends. Requests are
executed as HttpTasks on a small thread pool so a caller can stop waiting
for them: cancelling a task resolves it immediately with a failure result
and closes the response it holds, giving the connection back to the pool.
"""

import logging
import threading
import time
import warnings
import concurrent.futures
from concurrent.futures import Future
from http.cookiejar import DefaultCookiePolicy
from typing import Callable, Optional, Set

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .app import DEFAULT_HEADERS
from .results import Result, cancelled, failure

logger = logging.getLogger(__name__)

# Counter incremented for each request, used to follow one request in logs
_request_counter = 0
_request_counter_lock = threading.Lock()


def next_request_id() -> int:
    global _request_counter
    with _request_counter_lock:
        _request_counter += 1
        return _request_counter


class IdleTimeoutAdapter(HTTPAdapter):
    """HTTPAdapter dropping its pooled connections once they sat idle too long."""

    def __init__(self, idle_timeout: float = 10.0, **kwargs):
        self.idle_timeout = idle_timeout
        self._last_used = time.monotonic()
        self._idle_lock = threading.Lock()
        super().__init__(**kwargs)

    def send(self, request, **kwargs):
        with self._idle_lock:
            if self.idle_timeout and time.monotonic() - self._last_used > self.idle_timeout:
                logger.info("Connection pool idle, closing pooled connections")
                self.poolmanager.clear()
            self._last_used = time.monotonic()
        try:
            return super().send(request, **kwargs)
        finally:
            with self._idle_lock:
                self._last_used = time.monotonic()


def create_session(pool_connections: int = 20, pool_maxsize: int = 3,
                   idle_timeout: float = 10.0, insecure: bool = False) -> requests.Session:
    """
    Create a session with connection pooling and the application User-Agent.

    Args:
        pool_connections: Number of per-host pools to keep
        pool_maxsize: Maximum simultaneous connections per host
        idle_timeout: Seconds after which idle pooled connections are dropped
        insecure: Skip TLS certificate verification

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    # Cookies set by servers are never stored
    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    # A single attempt per request, blocking when the per-host pool is full
    adapter = IdleTimeoutAdapter(
        idle_timeout=idle_timeout,
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        pool_block=True,
        max_retries=Retry(total=0, read=False),
    )
    session.mount('https://', adapter)
    session.mount('http://', adapter)

    if insecure:
        session.verify = False
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        warnings.filterwarnings('ignore', message='Unverified HTTPS request')

    return session


class HttpTask:
    """
    A request running on the client's thread pool.

    The task resolves exactly once, either with the result computed by its
    work function or with a cancellation failure.
    """

    def __init__(self, url: str, request_id: int):
        self.url = url
        self.request_id = request_id
        self._outcome: Future = Future()
        self._response: Optional[requests.Response] = None
        self._future: Optional[concurrent.futures.Future] = None
        self._lock = threading.Lock()
        self.cancelled = False

    def _run(self, work: Callable[['HttpTask'], Result]) -> None:
        if self.done():
            return
        logger.info(f"[{self.request_id}] Executing request for {self.url}")
        try:
            result = work(self)
        except Exception as e:
            logger.info(f"[{self.request_id}] Request failed: {e}")
            result = failure(self.url, f"{type(e).__name__}: {e}")
        self._resolve(result)

    def _resolve(self, result: Result, cancelling: bool = False) -> bool:
        with self._lock:
            if self._outcome.done():
                return False
            self.cancelled = cancelling
            self._outcome.set_result(result)
            return True

    def hold(self, response: requests.Response) -> None:
        """Attach the response being read, closing it if the task is already cancelled."""
        with self._lock:
            self._response = response
            late = self._outcome.done()
        if late:
            response.close()

    def cancel(self) -> bool:
        """Resolve the task with a cancellation failure. Returns False if already resolved."""
        resolved = self._resolve(cancelled(self.url), cancelling=True)
        if resolved:
            logger.info(f"[{self.request_id}] Request cancelled for {self.url}")
            if self._future is not None:
                self._future.cancel()
        with self._lock:
            response = self._response
        if response is not None:
            response.close()
        return resolved

    def done(self) -> bool:
        return self._outcome.done()

    def result(self, timeout: Optional[float] = None) -> Result:
        return self._outcome.result(timeout)


class HttpClient:
    """Run-scoped session, request thread pool and in-flight task tracking."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10.0,
                 max_workers: int = 8, **session_options):
        self.session = session if session is not None else create_session(**session_options)
        self.timeout = timeout
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix='http')
        self._in_flight: Set[HttpTask] = set()
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, url: str, work: Callable[[HttpTask], Result]) -> HttpTask:
        """Schedule work for url and return its task."""
        task = HttpTask(url, next_request_id())
        logger.info(f"[{task.request_id}] Creating request for {url}")
        with self._lock:
            if self._closed:
                task.cancel()
                return task
            self._in_flight.add(task)
        task._outcome.add_done_callback(lambda _: self._forget(task))
        task._future = self._executor.submit(task._run, work)
        return task

    def _forget(self, task: HttpTask) -> None:
        with self._lock:
            self._in_flight.discard(task)

    def in_flight(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def cancel_all(self) -> int:
        """Cancel every pending request. Returns how many were cancelled."""
        with self._lock:
            tasks = list(self._in_flight)
        return sum(1 for task in tasks if task.cancel())

    def close(self) -> None:
        """Cancel what is left, stop the thread pool and close the session."""
        logger.info("Tearing down HTTP client")
        with self._lock:
            self._closed = True
        self.cancel_all()
        self._executor.shutdown(wait=True, cancel_futures=True)
        self.session.close()

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
