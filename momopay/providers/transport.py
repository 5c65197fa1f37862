"""
HTTP transport used by the MoMo clients.

The core only depends on the Transport interface:

    request(method, path, headers, body) -> (status_code, body)

RequestsTransport is the production implementation; tests substitute
their own.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import requests

from momopay.errors import TransportError

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Abstract HTTP capability"""

    @abstractmethod
    def request(
            self,
            method: str,
            path: str,
            headers: Optional[Dict[str, str]] = None,
            body: Optional[Any] = None
    ) -> Tuple[int, Any]:
        """
        Perform an HTTP call

        Args:
            method: HTTP method
            path: Path relative to the transport's base url
            headers: Extra request headers
            body: JSON-serializable request body, or None

        Returns:
            Tuple of (status_code, decoded body). The body is the decoded
            JSON document, raw text if it is not JSON, or None if empty.

        Raises:
            TransportError: If no HTTP response was obtained
        """
        pass


class RequestsTransport(Transport):
    """Transport backed by a requests.Session"""

    def __init__(self, base_url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        if not base_url:
            raise ValueError("RequestsTransport: 'base_url' is required")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def request(self, method, path, headers=None, body=None):
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self._session.request(
                method,
                url,
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path}: network error – {exc}") from exc

        logger.debug("MoMo %s %s -> HTTP %s", method, path, resp.status_code)
        return resp.status_code, self._decode(resp)

    def close(self):
        self._session.close()

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text
