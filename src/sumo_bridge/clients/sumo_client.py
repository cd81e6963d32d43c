"""HTTP client delivering exposition payloads to a Sumo Logic HTTP source."""

import asyncio
import logging
from typing import Dict, Optional

import aiohttp
from yarl import URL

from ..errors import StatusError, TransportError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/vnd.sumologic.prometheus"

# Optional source metadata, sent only when configured.
HEADER_CATEGORY = "X-Sumo-Category"
HEADER_NAME = "X-Sumo-Name"
HEADER_HOST = "X-Sumo-Host"
HEADER_CLIENT = "X-Sumo-Client"


class SumoClient:
    """Single-attempt POST client for a Sumo Logic collector URL.

    Redirects are never followed: a 3xx answer is reported as a failure so
    the caller learns that the endpoint moved.
    """

    def __init__(
        self,
        url: str,
        timeout: float,
        category: str = "",
        source_name: str = "",
        source_host: str = "",
        source_client: str = "",
        log: Optional[logging.Logger] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.category = category
        self.source_name = source_name
        self.source_host = source_host
        self.source_client = source_client
        self.session: Optional[aiohttp.ClientSession] = None
        self.log = log if log is not None else logger

    async def __aenter__(self):
        """Async context manager entry."""
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        # The session has to be created inside a running event loop.
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    async def close(self):
        """Release the underlying HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def build_headers(self) -> Dict[str, str]:
        """Headers for one submission; empty metadata values are left out."""
        headers = {"Content-Type": CONTENT_TYPE}

        if self.category:
            headers[HEADER_CATEGORY] = self.category
        if self.source_name:
            headers[HEADER_NAME] = self.source_name
        if self.source_host:
            headers[HEADER_HOST] = self.source_host
        if self.source_client:
            headers[HEADER_CLIENT] = self.source_client

        return headers

    async def submit(self, payload: bytes) -> None:
        """
        POST one payload to the collector.

        Args:
            payload: Encoded text exposition body

        Raises:
            TransportError: The request never produced a response
            StatusError: The collector answered with a non-2xx status
        """
        target = URL(self.url)
        if target.scheme not in ("http", "https") or not target.host:
            raise TransportError(f"unsupported collector URL {self.url!r}: expected an absolute http(s) URL")

        session = self._ensure_session()
        headers = self.build_headers()

        self.log.debug(f"Submitting {len(payload)} bytes to {self.url}")

        try:
            async with session.post(
                self.url,
                data=payload,
                headers=headers,
                allow_redirects=False,
            ) as response:
                status = response.status
        except asyncio.TimeoutError as e:
            raise TransportError(f"request to {self.url} timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise TransportError(f"request to {self.url} failed: {e}") from e

        if status < 200 or status >= 300:
            raise StatusError(status, self.url)

        self.log.debug(f"Collector accepted payload with status {status}")
