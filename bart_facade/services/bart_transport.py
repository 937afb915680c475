"""HTTP transport for the BART legacy XML API."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

import httpx

from bart_facade.core.metrics import observe_bart_request
from bart_facade.services.bart_errors import TransportError

logger = logging.getLogger(__name__)

BART_API_BASE_URL = "http://api.bart.gov/api"
BART_API_TIMEOUT_SECONDS = 10.0
BART_API_MAX_REDIRECTS = 10


class BARTTransport:
    """Blocking-call contract over a shared ``httpx.AsyncClient``.

    Every request carries the pre-shared API key, follows up to
    ``BART_API_MAX_REDIRECTS`` redirects and is bounded by a fixed timeout.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BART_API_BASE_URL,
        timeout: float = BART_API_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=BART_API_MAX_REDIRECTS,
            headers={"User-Agent": "bart-facade/0.1"},
            transport=transport,
        )

    async def __aenter__(self) -> "BARTTransport":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch(
        self, command_path: str, params: Mapping[str, str] | None = None
    ) -> str:
        """Issue a GET for ``command_path`` and return the raw payload text.

        Raises:
            TransportError: On connection failures, timeouts, redirect loops
                or an HTTP error status.
        """
        query = dict(params or {})
        command = query.get("cmd", command_path)
        query["key"] = self._api_key
        url = f"{self._base_url}/{command_path.lstrip('/')}"

        start = time.perf_counter()
        try:
            response = await self.client.get(url, params=query)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            observe_bart_request(command, "timeout", time.perf_counter() - start)
            logger.warning("BART request %s timed out", command)
            raise TransportError(f"BART request '{command}' timed out.") from exc
        except httpx.HTTPStatusError as exc:
            observe_bart_request(command, "http_error", time.perf_counter() - start)
            logger.warning(
                "BART request %s failed with status %s",
                command,
                exc.response.status_code,
            )
            raise TransportError(
                f"BART request '{command}' failed with HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            observe_bart_request(command, "error", time.perf_counter() - start)
            logger.warning("BART request %s failed: %s", command, exc)
            raise TransportError(f"Failed to reach BART for '{command}'.") from exc

        observe_bart_request(command, "success", time.perf_counter() - start)
        return response.text


__all__ = [
    "BARTTransport",
    "BART_API_BASE_URL",
    "BART_API_TIMEOUT_SECONDS",
    "BART_API_MAX_REDIRECTS",
]
