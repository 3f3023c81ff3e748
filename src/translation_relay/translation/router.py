"""Failover router: one dispatch round across the endpoint pool.

A round tries endpoints in rotation order starting at the current primary::

    idx = (primary_index + i) % len(endpoints)    for i in 0..len-1

The first endpoint that returns a translation becomes the primary and the
failure streak is cleared; rotation stops there.  When every endpoint fails,
the streak grows by one, and once it reaches ``fail_threshold`` the primary
is demoted to the next endpoint and the streak starts over.  A failed round
returns ``None``; it is not an error.

Starting from the current primary means an endpoint that just recovered is
tried first on the next call, while the threshold keeps a single transient
failure from moving the primary.
"""

from __future__ import annotations

import logging
from typing import Any

from translation_relay.translation.errors import NoEndpointsConfiguredError
from translation_relay.translation.registry import EndpointRegistry
from translation_relay.translation.transport import EndpointClient

logger = logging.getLogger(__name__)

# Fully-failed rounds tolerated before the primary endpoint is demoted.
DEFAULT_FAIL_THRESHOLD = 2


class FailoverRouter:
    """Runs dispatch rounds against the registry's endpoints.

    Attributes:
        _registry:       Endpoint list and routing state (shared, mutated here).
        _client:         Per-endpoint attempt protocol.
        _fail_threshold: Failed rounds before demoting the primary.
    """

    def __init__(
        self,
        *,
        registry: EndpointRegistry,
        client: EndpointClient,
        fail_threshold: int = DEFAULT_FAIL_THRESHOLD,
    ) -> None:
        if fail_threshold < 1:
            raise ValueError("fail_threshold must be at least 1")
        self._registry = registry
        self._client = client
        self._fail_threshold = fail_threshold

    async def dispatch(self, text: str, target: str) -> Any:
        """Run one dispatch round.

        Args:
            text:   Text to send (placeholder-encoded if it was multi-line).
            target: Target language code.

        Returns:
            The first successful translation, or ``None`` if all endpoints
            failed.

        Raises:
            NoEndpointsConfiguredError: The endpoint list is empty.
        """
        endpoints = self._registry.endpoints
        if not endpoints:
            raise NoEndpointsConfiguredError()

        generation = self._registry.generation
        state = self._registry.state
        count = len(endpoints)
        start = state.primary_index % count

        for i in range(count):
            idx = (start + i) % count
            result = await self._client.attempt(endpoints[idx], text, target)
            if result is not None:
                if self._registry.generation != generation:
                    logger.debug("Endpoint list replaced mid-round; routing state left as reset")
                    return result
                if idx != state.primary_index:
                    logger.info("Primary endpoint is now #%d (%s)", idx, endpoints[idx])
                state.primary_index = idx
                state.fail_streak = 0
                return result

        if self._registry.generation != generation:
            return None

        state.fail_streak += 1
        logger.warning(
            "All %d endpoint(s) failed (fail streak %d/%d)",
            count,
            state.fail_streak,
            self._fail_threshold,
        )
        if state.fail_streak >= self._fail_threshold:
            state.primary_index = (start + 1) % count
            state.fail_streak = 0
            logger.warning(
                "Demoting primary endpoint; #%d (%s) is tried first from now on",
                state.primary_index,
                endpoints[state.primary_index],
            )
        return None
