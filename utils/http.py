"""HTTP utilities for talking to the upstream forms API.

Provides reusable pieces for:
- Retry policy for idempotent requests
- Pooled sessions with JSON default headers
- URL and query-string assembly
"""

from typing import Optional, Dict, List, Mapping, Any, Union
from urllib.parse import urlencode

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry as URLRetry

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class RetryStrategy:
    """Defines retry behavior for HTTP requests."""

    def __init__(self, max_retries: int = 3, backoff_factor: float = 0.5,
                 status_forcelist: Optional[List[int]] = None):
        """Initialize retry strategy.

        Args:
            max_retries: Maximum number of retry attempts (default: 3)
            backoff_factor: Exponential backoff multiplier (default: 0.5)
            status_forcelist: HTTP status codes to retry on
                            (default: [429, 500, 502, 503, 504])
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.status_forcelist = status_forcelist or [429, 500, 502, 503, 504]

    def get_retry_object(self) -> URLRetry:
        """Get urllib3 Retry object configured with this strategy.

        Only GET and HEAD are retried; PATCH/POST/DELETE against the forms
        API must reach the server at most once. The final response is
        returned rather than raised so callers can read the error body.
        """
        return URLRetry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=self.status_forcelist,
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )


class SessionManager:
    """Manages HTTP sessions with connection pooling and retries."""

    def __init__(self, retry_strategy: Optional[RetryStrategy] = None,
                 pool_connections: int = 4, pool_maxsize: int = 16,
                 headers: Optional[Dict[str, str]] = None):
        """Initialize session manager.

        Args:
            retry_strategy: RetryStrategy to use (default: standard strategy)
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
            headers: Default headers sent with every request
        """
        self.retry_strategy = retry_strategy or RetryStrategy()
        self.pool_connections = pool_connections
        self.pool_maxsize = pool_maxsize
        self.headers = dict(JSON_HEADERS if headers is None else headers)
        self._session: Optional[requests.Session] = None

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session with retries and pooling."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.headers)

            adapter = HTTPAdapter(
                max_retries=self.retry_strategy.get_retry_object(),
                pool_connections=self.pool_connections,
                pool_maxsize=self.pool_maxsize,
            )
            self._session.mount("http://", adapter)
            self._session.mount("https://", adapter)

        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def build_url(base_url: str, path: str,
              params: Union[str, Mapping[str, Any], None] = None) -> str:
    """Join *base_url* and *path* and append an optional query string.

    ``params`` may be a pre-encoded query string (``"a=1&b=2"``) or a
    mapping; ``None`` values in a mapping are dropped.

    Examples:
        build_url("http://h/api/v1/", "/forms") -> "http://h/api/v1/forms"
        build_url("http://h/api", "/forms", "x=1") -> "http://h/api/forms?x=1"
    """
    url = base_url.rstrip("/") + "/" + path.lstrip("/")
    if not params:
        return url
    if isinstance(params, str):
        query = params.lstrip("?")
    else:
        query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{url}?{query}" if query else url
