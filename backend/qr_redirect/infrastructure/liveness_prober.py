"""HTTP Liveness Prober — bounded-timeout reachability check for target URLs.

Invariants:
    - Never downloads a body: HEAD first, streamed GET (body unread) only on 405/501
    - Any final status < 400 is reachable; redirects are followed
    - Timeouts, transport errors and invalid URLs are "unreachable", never raised
    - Whole probe bounded by timeout_ms (asyncio.timeout), so a slow redirect chain
      cannot exceed it; cancellation from the caller propagates

Design Decisions:
    - Shared httpx.AsyncClient owned by the app lifespan (connection reuse)
    - transport injectable: tests use httpx.MockTransport
"""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

_HEAD_UNSUPPORTED = (405, 501)


class HttpLivenessProber:
    """LivenessProber backed by httpx."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        user_agent: str = "qr-redirect-liveness/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def probe(self, url: str, timeout_ms: int) -> bool:
        timeout = timeout_ms / 1000
        try:
            async with asyncio.timeout(timeout):
                status = await self._status_of(url, timeout)
        except TimeoutError:
            logger.info("Liveness probe timed out", extra={"reason": "timeout"})
            return False
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info(
                f"Liveness probe failed: {type(e).__name__}",
                extra={"reason": "transport_error"},
            )
            return False
        return status < 400

    async def _status_of(self, url: str, timeout: float) -> int:
        response = await self.client.head(url, timeout=timeout)
        if response.status_code not in _HEAD_UNSUPPORTED:
            return response.status_code
        async with self.client.stream("GET", url, timeout=timeout) as streamed:
            return streamed.status_code

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
