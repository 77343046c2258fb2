"""
HTTP Transport

Single entry point for every outbound API call. Applies a fixed timeout,
retries once on server errors and validates the decoded body against a
pydantic model.
"""

import logging
import time
from typing import Any, TypeVar

import pydantic
import requests

from core.models import TransportError, ValidationError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10.0
RETRY_DELAY_SECONDS = 3.0

M = TypeVar("M", bound=pydantic.BaseModel)


def _describe(error: pydantic.ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class Transport:
    """Thin wrapper around a requests.Session with the retry/validation policy."""

    def __init__(self, session: requests.Session | None = None,
                 timeout: float = REQUEST_TIMEOUT_SECONDS,
                 retry_delay: float = RETRY_DELAY_SECONDS,
                 retries: int = 1):
        self._session = session or requests.Session()
        self._timeout = timeout
        self._retry_delay = retry_delay
        self._retries = retries

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        attempt = 0
        while True:
            try:
                response = self._session.request(method, url, timeout=self._timeout, **kwargs)
            except requests.RequestException as e:
                logger.error(f"{method} {url} failed: {e}")
                raise TransportError(f"{method} {url} failed: {e}") from e

            if response.status_code >= 500 and attempt < self._retries:
                attempt += 1
                logger.warning(f"Server error {response.status_code} on {method} {url}, "
                               f"retrying in {self._retry_delay:.0f}s...")
                time.sleep(self._retry_delay)
                continue

            return response

    def request(self, method: str, url: str, expected: type[M], *,
                params: dict | None = None, json: Any = None, data: dict | None = None,
                headers: dict | None = None) -> M:
        """Send a request and return the body parsed as `expected`."""
        response = self._send(method, url, params=params, json=json, data=data, headers=headers)

        if not response.ok:
            body = response.text[:500]
            logger.error(f"{method} {url} returned {response.status_code}: {body}")
            raise TransportError(
                f"{method} {url} returned {response.status_code}: {body or response.reason}",
                status_code=response.status_code,
                body=body,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"{method} {url} returned a non-JSON body")
            raise TransportError(f"{method} {url} returned a non-JSON body",
                                 status_code=response.status_code) from e

        try:
            return expected.model_validate(payload)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Unexpected response from {method} {url}: {_describe(e)}") from e
