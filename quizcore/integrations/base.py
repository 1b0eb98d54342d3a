"""
Shared HTTP plumbing for collaborator services.

Requests are retried with exponential backoff (1s, 2s, 4s, ...) on
timeouts, connection errors and 5xx responses. 4xx responses are not
retried.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger


class ServiceUnavailableError(Exception):
    """A collaborator service could not be reached after all retries."""

    def __init__(self, service: str, last_error: Exception | None):
        super().__init__(f"{service} unavailable: {last_error}")
        self.service = service
        self.last_error = last_error


class ServiceClient:
    """Synchronous httpx client with retry and backoff."""

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        timeout_ms: int = 10000,
        retry_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            base_url: Service root, without trailing slash
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Total tries per request (at least 1)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            sleep: Backoff sleep function
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_ms / 1000.0
        self.retry_attempts = max(1, retry_attempts)
        self._sleep = sleep
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Raises:
            httpx.HTTPStatusError: On a 4xx response
            ServiceUnavailableError: When every try failed
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            wait_time = 2 ** attempt
            try:
                response = self.client.request(method, path, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    logger.error(f"{self.service_name} client error: {e.response.status_code}")
                    raise
                last_error = e
                logger.warning(
                    f"{self.service_name} server error {e.response.status_code} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"{self.service_name} timeout on attempt {attempt + 1}/{self.retry_attempts}"
                )

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"{self.service_name} request error on attempt "
                    f"{attempt + 1}/{self.retry_attempts}: {e}"
                )

            if attempt < self.retry_attempts - 1:
                self._sleep(wait_time)

        logger.error(f"{self.service_name} failed after {self.retry_attempts} attempts: {last_error}")
        raise ServiceUnavailableError(self.service_name, last_error)
