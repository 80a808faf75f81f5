"""
JSON-over-HTTP client shared by the live API sources.

Wraps a requests.Session with tenacity retries and the optional payload
cache, and turns every transport or decoding failure into a DataError.
"""

from typing import Any, Dict, Optional
import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter
from quantdash.cache import DataCache
from quantdash.errors import DataError
from quantdash.logging_config import get_logger

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

log = get_logger(__name__)


def is_retryable(exc: BaseException) -> bool:
    """Retry connection problems, timeouts, rate limits and 5xx responses."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


class JSONClient:
    """
    GET-only JSON client bound to one API base URL.

    Usage::

        with JSONClient("https://www.deribit.com/api/v2/public") as client:
            payload = client.get("/get_index_price", {"index_name": "eth_usd"})

    Representation Invariants:
        - base_url has no trailing slash
        - max_attempts >= 1
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        cache: Optional[DataCache] = None,
        session: Optional[requests.Session] = None,
        max_attempts: int = 3
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache
        self.max_attempts = max_attempts
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)

    def __enter__(self) -> "JSONClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _fetch(self, url: str, params: Optional[Dict[str, Any]]) -> Any:
        retrying = Retrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=1, max=30, jitter=2),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                log.debug("http_request", url=url, attempt=attempt.retry_state.attempt_number)
                response = self.session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None, use_cache: bool = True) -> Any:
        """
        GET a JSON payload, served from cache when a fresh entry exists.

        Args:
            path: Path relative to base_url, or an absolute URL
            params: Query parameters
            use_cache: Whether to read from and write to the cache

        Returns:
            Decoded JSON payload

        Raises:
            DataError: If the request fails after retries or the body is not JSON
        """
        url = self._url(path)
        query_params = {"url": url, "params": params or {}}

        if use_cache and self.cache is not None:
            cached = self.cache.get(query_params)
            if cached is not None:
                log.debug("cache_hit", url=url)
                return cached

        try:
            payload = self._fetch(url, params)
        except requests.RequestException as e:
            raise DataError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise DataError(f"Response from {url} is not valid JSON: {e}") from e

        if self.cache is not None:
            self.cache.set(query_params, payload)

        return payload
