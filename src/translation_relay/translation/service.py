"""Translation dispatcher service.

``TranslationDispatcher`` is the single public entry point of the
translation layer.  It owns every piece of process-wide state (endpoint
list, routing state, cache, dispatch queue) so that callers share one
explicitly constructed instance instead of module globals.

Caller contract
---------------
``translate_text(text, target)`` returns an awaitable future that resolves
to either:

- the translation (normally a string), or
- ``None`` when no translation is available: no endpoints configured, or
  every endpoint failed.

Transport and parsing failures never surface as exceptions.  ``None`` is
the only failure signal callers need to handle.

Call flow
---------
1. Cache hit on ``f"{target}:{text}"`` → already-resolved future; nothing is
   queued or sent.
2. Otherwise a job goes on the ``DispatchQueue``.  When its turn comes:

   a. the cache is checked again (an identical job ahead of it may have
      filled it);
   b. ``LineStructureCodec`` swaps newlines for a placeholder token;
   c. ``FailoverRouter`` runs one dispatch round;
   d. the placeholder is decoded, with blank-line reconstruction when the
      token did not survive;
   e. a non-``None`` result is cached and the cache persisted.

3. The queue waits out the throttle delay before the next job.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import Any

from translation_relay.config import RelayConfig
from translation_relay.translation.cache import JsonFileStore, MemoryStore, TranslationCache
from translation_relay.translation.codec import LineStructureCodec
from translation_relay.translation.dispatch_queue import DispatchJob, DispatchQueue
from translation_relay.translation.errors import NoEndpointsConfiguredError
from translation_relay.translation.registry import EndpointRegistry, RoutingState
from translation_relay.translation.router import DEFAULT_FAIL_THRESHOLD, FailoverRouter
from translation_relay.translation.transport import EndpointClient

logger = logging.getLogger(__name__)


class TranslationDispatcher:
    """Cache, queue, codec and router behind one ``translate_text`` call.

    Use it as an async context manager, or call ``aclose`` when done, so the
    worker task and HTTP connections are released::

        async with TranslationDispatcher.from_config() as dispatcher:
            text = await dispatcher.translate_text("Hello", "ja")

    Attributes:
        _registry: Endpoint list and routing state.
        _cache:    Translation cache.
        _codec:    Line-break placeholder codec.
        _client:   Per-endpoint attempt protocol.
        _router:   Failover across endpoints.
        _queue:    Serializes dispatches.
    """

    def __init__(
        self,
        *,
        registry: EndpointRegistry,
        cache: TranslationCache | None = None,
        client: EndpointClient | None = None,
        codec: LineStructureCodec | None = None,
        fail_threshold: int = DEFAULT_FAIL_THRESHOLD,
        throttle_seconds: float = 0.3,
        timeout_seconds: float | None = 15.0,
    ) -> None:
        """Initialise the dispatcher.

        Args:
            registry:         Endpoint registry; its default list is the
                              static configuration.
            cache:            Translation cache; memory-only when omitted.
            client:           Endpoint client; built with
                              ``timeout_seconds`` when omitted.
            codec:            Line-structure codec.
            fail_threshold:   Fully-failed rounds before demoting the primary.
            throttle_seconds: Pause between consecutive dispatches.
            timeout_seconds:  Per-request deadline for a built client.
        """
        self._registry = registry
        self._cache = cache if cache is not None else TranslationCache()
        self._codec = codec or LineStructureCodec()
        self._client = client or EndpointClient(timeout_seconds=timeout_seconds)
        self._router = FailoverRouter(
            registry=registry,
            client=self._client,
            fail_threshold=fail_threshold,
        )
        self._queue = DispatchQueue(self._run_job, throttle_seconds=throttle_seconds)

        logger.info(
            "TranslationDispatcher initialised (%d endpoint(s), %d cached)",
            len(registry),
            len(self._cache),
        )

    @classmethod
    def from_config(cls, cfg: RelayConfig | None = None) -> TranslationDispatcher:
        """Build a dispatcher from ``RelayConfig`` (the loaded singleton by default)."""
        if cfg is None:
            from translation_relay.config import config as cfg

        if cfg.cache.enabled:
            store: JsonFileStore | MemoryStore = JsonFileStore(cfg.cache.absolute_path)
        else:
            store = MemoryStore()

        return cls(
            registry=EndpointRegistry(cfg.endpoints.urls),
            cache=TranslationCache(store, namespace_key=cfg.cache.namespace_key),
            fail_threshold=cfg.dispatch.fail_threshold,
            throttle_seconds=cfg.dispatch.throttle_ms / 1000,
            timeout_seconds=cfg.timeout,
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def translate_text(self, text: str, target: str) -> asyncio.Future:
        """Translate ``text`` into ``target``.

        Must be called from a running event loop.  The returned future is
        already resolved on a cache hit.

        Args:
            text:   Source text; may span several lines.
            target: Target language code (e.g. ``"ja"``).

        Returns:
            Future resolving to the translation or ``None``.
        """
        if self._cache.contains(target, text):
            future = asyncio.get_running_loop().create_future()
            future.set_result(self._cache.get(target, text))
            return future
        return self._queue.submit(text, target)

    def replace_endpoints(self, endpoints: Iterable[str] | None) -> None:
        """Replace the endpoint list (or restore the default when empty)."""
        self._registry.replace_endpoints(endpoints)

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    @property
    def routing_state(self) -> RoutingState:
        return self._registry.state

    @property
    def cache(self) -> TranslationCache:
        return self._cache

    async def join(self) -> None:
        """Wait for every queued job to finish."""
        await self._queue.join()

    async def aclose(self) -> None:
        await self._queue.aclose()
        await self._client.aclose()

    async def __aenter__(self) -> TranslationDispatcher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # ── Internal helpers ──────────────────────────────────────────────────────

    async def _run_job(self, job: DispatchJob) -> Any:
        if self._cache.contains(job.target, job.text):
            return self._cache.get(job.target, job.text)

        result = await self._translate_with_line_breaks(job.text, job.target)
        if result is not None:
            self._cache.put(job.target, job.text, result)
        return result

    async def _translate_with_line_breaks(self, text: str, target: str) -> Any:
        encoded = self._codec.encode(text)
        try:
            translated = await self._router.dispatch(encoded.payload, target)
        except NoEndpointsConfiguredError:
            logger.warning("No translation endpoints configured")
            return None

        if not isinstance(translated, str):
            return translated
        return encoded.decode(translated)
