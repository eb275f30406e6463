"""HTTP client for web search endpoints that answer in NOV format."""

from __future__ import annotations

import random
import time
from typing import TYPE_CHECKING, Mapping, Optional

import requests

from FedSearch.core.errors import EngineError, SearchConfigError
from FedSearch.utils.log import log

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

DEFAULT_TIMEOUT = 30.0
MAX_ATTEMPTS = 4
BASE_PAUSE = 0.8
MAX_SLEEP = 8.0
TOO_MANY_REQUESTS_BASE_PAUSE = 5.0
TOO_MANY_REQUESTS_MAX_SLEEP = 60.0
RETRYABLE_STATUS = {429, 500, 502, 503, 504}

HEADERS = {
    "User-Agent": "fedsearch/0.1",
    "Accept": "text/plain,*/*;q=0.8",
}


class WebSearchClient:
    """Low-level HTTP client for one search endpoint.

    Responsible only for the request and its retries; the NOV body is parsed
    elsewhere.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.url = url
        self.timeout = timeout or DEFAULT_TIMEOUT
        self.max_attempts = max(1, max_attempts)
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: EngineConfig) -> WebSearchClient:
        """Build a client from engine options.

        Raises:
            SearchConfigError: If the ``url`` option is missing.
        """
        url = config.option("url")
        if not url:
            raise SearchConfigError("web engine requires a url option")
        return cls(url, timeout=config.timeout, max_attempts=int(config.option("max_attempts", MAX_ATTEMPTS)))

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> WebSearchClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch(self, params: Mapping[str, str]) -> str:
        """GET the endpoint with ``params`` and return the body text.

        Raises:
            EngineError: When every attempt failed or the status is not retryable.
        """
        try:
            response = self._get_with_retry(params=dict(params))
            response.raise_for_status()
        except requests.RequestException as error:
            status = getattr(getattr(error, "response", None), "status_code", None)
            raise EngineError("web", f"request to {self.url} failed", exit_status=status, detail=str(error)) from error
        log.debug("web response ok: status=%s bytes=%s", response.status_code, len(response.text))
        return response.text

    def _get_with_retry(self, *, params: dict[str, str]) -> requests.Response:
        """Issue GET with retries for timeouts, connection errors and retryable statuses."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            status_code: int | None = None
            try:
                response = self._session.get(self.url, params=params, headers=HEADERS, timeout=self.timeout)
                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(f"HTTP {response.status_code}", response=response)
                return response
            except (requests.Timeout, requests.ConnectionError) as error:
                last_error = error
            except requests.HTTPError as error:
                last_error = error
                status_code = getattr(error.response, "status_code", None)
                if status_code not in RETRYABLE_STATUS:
                    raise

            if attempt < self.max_attempts:
                log.debug("web retry attempt=%d/%d error=%s", attempt, self.max_attempts, last_error)
                _sleep_backoff(attempt, status_code=status_code)

        assert last_error is not None
        raise last_error


def _sleep_backoff(attempt: int, *, status_code: int | None = None) -> None:
    if status_code == 429:
        time.sleep(min(TOO_MANY_REQUESTS_BASE_PAUSE * (2 ** (attempt - 1)), TOO_MANY_REQUESTS_MAX_SLEEP))
        return
    time.sleep(min(BASE_PAUSE * (2 ** (attempt - 1)) + random.uniform(0, 0.3), MAX_SLEEP))
