"""HTTP client shared by the translation and nutrition integrations."""
from __future__ import annotations

from typing import Any, Dict, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


DEFAULT_HEADERS = {
    "User-Agent": "recipe-catalog/1.0",
    "Accept": "application/json",
}


class HttpClient:
    """Wrapper around :mod:`requests` for calls to external APIs.

    Retries are disabled unless *max_retries* is raised explicitly; a failed
    call fails the user-visible operation.
    """

    def __init__(
        self,
        timeout: int = 30,
        max_retries: int = 0,
        backoff_factor: float = 0.3,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        if headers:
            self._session.headers.update(headers)

        retry_strategy = Retry(
            total=max_retries,
            read=max_retries,
            connect=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(500, 502, 503, 504),
            allowed_methods=("POST",),
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)

    def post(self, url: str, **kwargs: Any) -> Response:
        """Perform an HTTP POST request and raise on error statuses."""

        timeout = kwargs.pop("timeout", self._timeout)
        response = self._session.post(url, timeout=timeout, **kwargs)
        response.raise_for_status()
        return response

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
