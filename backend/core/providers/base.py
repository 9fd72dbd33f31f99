from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests
from requests import Response
from requests.adapters import DEFAULT_POOLSIZE, HTTPAdapter


logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Base provider error."""


class QuotaExceeded(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    # None keeps the transport default (no client-side timeout).
    timeout: Optional[float] = None
    # Connections kept per host; size it to the number of concurrent requests.
    pool_maxsize: int = DEFAULT_POOLSIZE


class HttpProvider:
    """Base class wrapping a requests session with the provider error taxonomy."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        self._log = logging.getLogger(self.__class__.__name__)

    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_maxsize=config.pool_maxsize)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text[:200])
            raise QuotaExceeded("quota exceeded")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderError(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request to %s timed out", url)
            raise ProviderError("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request to %s failed: %s", url, exc)
            raise ProviderError("request failed") from exc
        return self._handle_response(response)


__all__ = ["HttpProvider", "ProviderError", "QuotaExceeded", "RequestConfig"]
