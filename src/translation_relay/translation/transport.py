"""HTTP transport for a single translation endpoint.

``EndpointClient`` is the only place in the translation layer that makes a
network call.  One *attempt* against one endpoint is:

1. ``POST url`` with the JSON body ``{"text": ..., "target": ...}``.
2. If that raised, returned a non-2xx status, or produced no usable body,
   ``GET url?text=...&target=...``.
3. ``None`` if neither yielded a translation.

Network errors, timeouts, bad statuses, malformed URLs and unparseable
bodies are logged and absorbed here; they never reach the router as
exceptions.  The router only sees "a translation" or ``None``.

Async client
------------
The client wraps one shared ``httpx.AsyncClient``.  It can be handed an
existing client (tests, or callers that manage their own connection pool)
or create one itself, in which case ``aclose`` closes it.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from translation_relay.translation.codec import preserve_blank_lines
from translation_relay.translation.normalizer import ResponseNormalizer

logger = logging.getLogger(__name__)


class EndpointClient:
    """Runs the POST-then-GET attempt protocol against one endpoint URL.

    Attributes:
        _http:        Shared async HTTP client.
        _owns_http:   Whether ``aclose`` should close ``_http``.
        _normalizer:  Turns response bodies into translations.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float | None = 15.0,
        http_client: httpx.AsyncClient | None = None,
        normalizer: ResponseNormalizer | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            timeout_seconds: Per-request deadline; ``None`` waits forever.
                             Ignored when ``http_client`` is supplied.
            http_client:     Optional pre-built ``httpx.AsyncClient``.
            normalizer:      Optional response normalizer.
        """
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._normalizer = normalizer or ResponseNormalizer()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ── Attempt protocol ──────────────────────────────────────────────────────

    async def attempt(self, url: str, text: str, target: str) -> Any:
        """Try one endpoint: POST first, then GET.

        Args:
            url:    Endpoint URL.
            text:   Text to translate (already placeholder-encoded).
            target: Target language code.

        Returns:
            The translation, or ``None`` when both requests failed.
        """
        result = await self._send(
            "POST",
            url,
            text,
            json={"text": text, "target": target},
            headers={"Content-Type": "application/json"},
        )
        if result is not None:
            return result

        return await self._send("GET", url, text, params={"text": text, "target": target})

    async def _send(self, method: str, url: str, text: str, **kwargs: Any) -> Any:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TimeoutException:
            logger.warning("%s request to %s timed out", method, url)
            return None
        except httpx.HTTPError as exc:
            logger.error("Error during %s request to %s: %s", method, url, exc)
            return None
        except Exception as exc:
            # Malformed URLs (httpx.InvalidURL, a non-string pushed by the feed)
            # fail before any I/O; they still only cost this endpoint its turn.
            logger.error("Could not send %s request to %r: %s", method, url, exc)
            return None

        if not response.is_success:
            logger.warning(
                "%s request to %s failed with status: %d", method, url, response.status_code
            )
            return None

        logger.debug("%s %s -> %d: %r", method, url, response.status_code, response.text[:200])
        try:
            result = self._normalizer.normalize(response.text)
        except Exception:
            logger.exception("Could not parse %s response from %s", method, url)
            return None
        return self._handle_result(result, text)

    @staticmethod
    def _handle_result(result: Any, text: str) -> Any:
        if isinstance(result, str):
            return preserve_blank_lines(text, result)
        return result
