"""HTTP client for the external rewrite service.

Deep module: callers pass a list of strings in and get a same-length list
back, or ``None``. Transport, status, body-shape and count checks, the
optional circuit breaker, and recursive bisection of failing batches are all
handled internally.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from .circuit_breaker import CircuitBreaker, CircuitBreakerOpen
from .config import Settings, get_settings
from .exceptions import (
    RewriteContractError,
    RewriteProtocolError,
    RewriteServiceError,
    RewriteTransportError,
)

logger = logging.getLogger("redraft.api_client")


class RewriteClient:
    """Async client for the rewrite service.

    Args:
        api_url: Rewrite endpoint. Defaults to ``settings.rewrite_api_url``.
        api_token: Optional bearer token. Defaults to ``settings.rewrite_api_token``.
        timeout: Per-request timeout in seconds. Defaults to ``settings.request_timeout``.
        breaker: Optional circuit breaker guarding the endpoint.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        needs_defaults = api_url is None or api_token is None or timeout is None
        settings = get_settings() if needs_defaults else None
        self.api_url = api_url if api_url is not None else settings.rewrite_api_url
        self.api_token = api_token if api_token is not None else settings.rewrite_api_token
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.breaker = breaker
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RewriteClient":
        breaker = None
        if settings.breaker_failure_threshold > 0:
            breaker = CircuitBreaker(
                settings.rewrite_api_url,
                failure_threshold=settings.breaker_failure_threshold,
                cooldown_seconds=settings.breaker_cooldown_seconds,
            )
        return cls(
            api_url=settings.rewrite_api_url,
            api_token=settings.rewrite_api_token,
            timeout=settings.request_timeout,
            breaker=breaker,
            transport=transport,
        )

    async def __aenter__(self) -> "RewriteClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self.api_token:
                headers["Authorization"] = f"Bearer {self.api_token}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    # ----- single request --------------------------------------------------

    async def request_rewrite(
        self,
        segments: Sequence[str],
        directive: Optional[str] = None,
    ) -> list[str]:
        """Send one rewrite request and validate the answer.

        Returns:
            Rewritten strings, same length and order as *segments*.

        Raises:
            RewriteTransportError: connection failure, timeout, or open circuit.
            RewriteProtocolError: non-2xx status or malformed body.
            RewriteContractError: segment count mismatch. Never padded or truncated.
        """
        if self.breaker is not None:
            try:
                self.breaker.check()
            except CircuitBreakerOpen as exc:
                raise RewriteTransportError(str(exc), endpoint=self.api_url) from exc

        payload: dict[str, Any] = {"segments": list(segments)}
        if directive:
            payload["opinion"] = directive

        try:
            rewritten = await self._post_segments(payload, len(segments))
        except RewriteServiceError:
            if self.breaker is not None:
                self.breaker.record_failure()
            raise

        if self.breaker is not None:
            self.breaker.record_success()
        return rewritten

    async def _post_segments(self, payload: dict[str, Any], expected: int) -> list[str]:
        client = await self._get_client()
        try:
            response = await client.post(self.api_url, json=payload)
        except httpx.TimeoutException as exc:
            raise RewriteTransportError(
                f"Rewrite request timed out after {self.timeout:.0f}s", endpoint=self.api_url,
            ) from exc
        except httpx.TransportError as exc:
            raise RewriteTransportError(
                f"Rewrite request failed: {type(exc).__name__}: {exc}", endpoint=self.api_url,
            ) from exc

        if not response.is_success:
            raise RewriteProtocolError(
                f"Rewrite service returned HTTP {response.status_code}: {response.text[:300]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise RewriteProtocolError(
                f"Rewrite service returned non-JSON body: {response.text[:300]}",
                status_code=response.status_code,
            ) from exc

        rewritten = data.get("segments") if isinstance(data, dict) else None
        if not isinstance(rewritten, list):
            raise RewriteProtocolError(
                "Rewrite service response has no 'segments' array",
                status_code=response.status_code,
            )
        if len(rewritten) != expected:
            raise RewriteContractError(expected=expected, received=len(rewritten))

        return [str(value) for value in rewritten]

    # ----- bisection -------------------------------------------------------

    async def rewrite_segments(
        self,
        segments: Sequence[str],
        directive: Optional[str] = None,
    ) -> Optional[list[Optional[str]]]:
        """Rewrite a batch, bisecting on failure to save as much as possible.

        A failed request for more than one segment is split at the midpoint
        and each half is retried on its own, recursively, down to single
        segments. A failed single segment is final for that element.

        Returns:
            ``None`` if no element could be rewritten. Otherwise a list with
            one entry per input, in input order, where ``None`` marks an
            element the caller must rewrite some other way.
        """
        if not segments:
            return []

        results: list[Optional[str]] = []
        await self._rewrite_into(list(segments), directive, results, depth=0)

        if all(value is None for value in results):
            return None
        return results

    async def _rewrite_into(
        self,
        segments: list[str],
        directive: Optional[str],
        acc: list[Optional[str]],
        depth: int,
    ) -> None:
        try:
            rewritten = await self.request_rewrite(segments, directive)
        except RewriteServiceError as exc:
            logger.warning(
                "Rewrite of %d segment(s) failed [%s]: %s",
                len(segments), exc.kind, exc.message,
                extra={"error": exc.to_dict(), "depth": depth},
            )
            if len(segments) == 1:
                acc.append(None)
                return
            mid = len(segments) // 2
            logger.debug("Bisecting %d segments into %d + %d", len(segments), mid, len(segments) - mid)
            # Halves run one after the other so a worker never has more
            # than one request in flight.
            await self._rewrite_into(segments[:mid], directive, acc, depth + 1)
            await self._rewrite_into(segments[mid:], directive, acc, depth + 1)
            return

        acc.extend(rewritten)

    # ----- health ----------------------------------------------------------

    def health_url(self) -> str:
        return str(httpx.URL(self.api_url).join("/health"))

    async def health_check(self) -> bool:
        """Check if the rewrite service answers its health probe."""
        client = await self._get_client()
        try:
            response = await client.get(self.health_url(), timeout=5)
            return response.status_code == 200
        except httpx.HTTPError as exc:
            logger.warning("Health check failed: %s", exc)
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
